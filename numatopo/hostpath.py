"""Locations of host system directories, possibly mounted under a prefix."""

from __future__ import annotations

import posixpath

PATH_PREFIX = "/"


def _clean(path: str) -> str:
    if not path:
        return "."
    cleaned = posixpath.normpath(path)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


class HostDir(str):
    """A host system directory."""

    def path(self, *args: str) -> str:
        """Return the cleaned path of the given elements under this directory."""
        parts = [part for part in (str(self), *args) if part]
        if not parts:
            return ""
        return _clean("/".join(parts))


BOOT_DIR = HostDir(PATH_PREFIX + "boot")
ETC_DIR = HostDir(PATH_PREFIX + "etc")
SYSFS_DIR = HostDir(PATH_PREFIX + "sys")
USR_DIR = HostDir(PATH_PREFIX + "usr")
VAR_DIR = HostDir(PATH_PREFIX + "var")