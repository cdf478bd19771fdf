"""Command-line interface for recital-player: prints the ordered catalog."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from . import __version__
from .logging_utils import setup_logging
from .paths import log_dir
from .runtime_config import resolve_library_dir, resolve_log_level
from .services.library_loader import load_library
from .services.track_catalog import TrackCatalog
from .version import build_help_epilog


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recital-player-cli",
        description="List the recitation library in playback order.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=build_help_epilog(),
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--quiet", action="store_true", help="Only show warnings and errors"
    )
    parser.add_argument("--log-file", help="Write logs to a file path")
    parser.add_argument("--library", help="Directory holding the audio files")
    return parser


def render_catalog(catalog: TrackCatalog) -> Table:
    table = Table(title="Playback order")
    table.add_column("#", justify="right")
    table.add_column("Token", justify="right")
    table.add_column("Title")
    table.add_column("File")
    table.add_column("Speed", justify="right")
    for position, track in enumerate(catalog, start=1):
        table.add_row(
            str(position),
            str(track.token),
            track.display_name,
            track.source_key,
            f"{track.speed:.2f}x",
        )
    return table


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = logging.getLogger(__name__)
    try:
        level = resolve_log_level(verbose=args.verbose, quiet=args.quiet)
        setup_logging(
            log_dir=log_dir(),
            level=level,
            log_file=Path(args.log_file) if args.log_file else None,
        )
        library = resolve_library_dir(args.library)
        logger.info("Listing library %s", library)
        catalog = load_library(library)
        console = Console()
        if not len(catalog):
            console.print(f"No audio files found in {library}.")
            return 0
        console.print(render_catalog(catalog))
        return 0
    except Exception as exc:  # pragma: no cover - top-level safety net
        logger.exception("Unhandled error: %s", exc)
        print("Unexpected error. Re-run with --verbose for details.", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
