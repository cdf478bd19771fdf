"""recital-player package."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

__all__ = ["__version__"]

try:
    __version__ = version("recital-player")
except PackageNotFoundError:  # pragma: no cover - running from a source checkout
    from .version import __version__
