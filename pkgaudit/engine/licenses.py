"""License presence checks for installed packages."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Any

import structlog

log = structlog.get_logger("pkgaudit.engine")

# Exact, case-sensitive names checked in the package root only.
LICENSE_FILENAMES: tuple[str, ...] = (
    "LICENSE",
    "LICENSE.txt",
    "LICENSE.md",
    "LICENSE-MIT",
    "LICENSE-APACHE",
    "LICENCE",
    "LICENCE.txt",
    "LICENCE.md",
    "COPYING",
    "COPYING.txt",
    "COPYING.md",
    "UNLICENSE",
    "UNLICENSE.txt",
    "UNLICENSE.md",
)

_LICENSE_FIELDS = ("license", "licenses")


def manifest_declares_license(manifest: dict[str, Any]) -> bool:
    """True if the manifest has a non-empty ``license`` or ``licenses`` field."""
    return any(bool(manifest.get(key)) for key in _LICENSE_FIELDS)


def find_license_files(package_dir: Path) -> list[str]:
    """Return the known license file names present in *package_dir*.

    Names come from a directory listing rather than existence checks, so
    ``license`` never matches ``LICENSE`` on case-insensitive filesystems.
    An unreadable directory yields no matches.
    """
    try:
        with os.scandir(package_dir) as it:
            present = {entry.name for entry in it if entry.name in LICENSE_FILENAMES and _is_file(entry)}
    except OSError as exc:
        log.debug("licenses.directory_unreadable", path=str(package_dir), error=str(exc))
        return []
    return [name for name in LICENSE_FILENAMES if name in present]


def _is_file(entry: os.DirEntry) -> bool:
    try:
        return entry.is_file()
    except OSError:
        return False


async def has_license(package_dir: Path | str, manifest: dict[str, Any]) -> bool:
    """Decide whether a package carries license information.

    The manifest fields are checked first; the package root is only listed
    when the manifest declares nothing.
    """
    if manifest_declares_license(manifest):
        return True
    found = await asyncio.to_thread(find_license_files, Path(package_dir))
    return bool(found)
