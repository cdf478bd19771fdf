"""Runtime configuration normalization helpers.

These helpers keep CLI flag interpretation deterministic across entrypoints.
"""

from __future__ import annotations

from pathlib import Path

from .paths import default_library_dir

BACKEND_NAMES = ("fake", "vlc")
DEFAULT_BACKEND = "vlc"


def resolve_log_level(*, verbose: bool, quiet: bool) -> str:
    """Resolve effective log level from CLI flags.

    Precedence is deterministic: --quiet overrides --verbose.
    """
    if quiet:
        return "WARNING"
    if verbose:
        return "DEBUG"
    return "INFO"


def resolve_backend_name(value: str | None) -> str:
    """Normalize a backend flag value, falling back to the default backend."""
    if value is None:
        return DEFAULT_BACKEND
    normalized = value.strip().lower()
    if normalized in BACKEND_NAMES:
        return normalized
    return DEFAULT_BACKEND


def resolve_library_dir(value: str | None) -> Path:
    """Return the library directory from a CLI value or the per-user default."""
    if value:
        return Path(value).expanduser()
    return default_library_dir()
