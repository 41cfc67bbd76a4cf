"""hubctl: command line client for Hub stack instances.

Only version metadata lives here; the CLI entry point is :func:`hubctl.cli.main`.
"""
from __future__ import annotations

__all__ = ["__version__", "get_version"]

# Kept in step with ``version`` in pyproject.toml.
__version__ = "0.3.0"


def get_version() -> str:
    """Return the hubctl version string sent in the ``User-Agent`` header."""
    return __version__
