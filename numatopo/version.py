"""Version of the running program."""

from __future__ import annotations

UNDEFINED_VERSION = "undefined"

_version = UNDEFINED_VERSION


def get() -> str:
    """Return the version string."""
    return _version


def undefined() -> bool:
    """Tell whether the version is still at its default value."""
    return _version == UNDEFINED_VERSION