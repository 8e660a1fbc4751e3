"""Package reader: load ``package.json`` manifests from an installed tree."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Any

import structlog

from pkgaudit.engine.models import DependencyGroup, DependencyRef, PackageDescriptor

log = structlog.get_logger("pkgaudit.engine")

MANIFEST_NAME = "package.json"
UNKNOWN_VERSION = "unknown"


def _load_json(manifest_path: Path) -> Any:
    with open(manifest_path, encoding="utf-8") as f:
        return json.load(f)


async def read_manifest(manifest_path: Path) -> dict[str, Any] | None:
    """Read and parse a manifest file.

    Returns None when the file is missing, unreadable, not valid JSON, nested
    too deeply to decode, or not a JSON object. Many directories are simply
    not packages, so none of these conditions is an error.
    """
    try:
        data = await asyncio.to_thread(_load_json, manifest_path)
    except (OSError, ValueError, RecursionError) as exc:
        log.debug("reader.manifest_unreadable", path=str(manifest_path), error=str(exc))
        return None
    if not isinstance(data, dict):
        log.debug("reader.manifest_not_object", path=str(manifest_path))
        return None
    return data


def _non_empty_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


async def read_package(package_dir: Path, default_name: str) -> PackageDescriptor | None:
    """Build a descriptor for *package_dir*, or None if it has no usable manifest.

    *default_name* is used when the manifest does not declare a name.
    """
    manifest = await read_manifest(package_dir / MANIFEST_NAME)
    if manifest is None:
        return None
    return PackageDescriptor(
        name=_non_empty_str(manifest.get("name")) or default_name,
        version=_non_empty_str(manifest.get("version")) or UNKNOWN_VERSION,
        path=str(package_dir.absolute()),
        manifest=manifest,
    )


def extract_dependencies(manifest: dict[str, Any]) -> list[DependencyRef]:
    """Flatten all declared dependency groups, in group order then key order."""
    deps: list[DependencyRef] = []
    for group in DependencyGroup:
        section = manifest.get(group.value)
        if not isinstance(section, dict):
            continue
        for name, version_range in section.items():
            deps.append(
                DependencyRef(
                    name=name,
                    version_range=version_range if isinstance(version_range, str) else str(version_range),
                    group=group,
                )
            )
    return deps


def _list_package_dirs(node_modules: Path) -> list[tuple[str, Path]]:
    """List ``(package_name, dir)`` pairs directly under *node_modules*.

    Hidden entries are skipped. ``@scope`` directories carry no manifest of
    their own and are not expanded, so scoped packages only enter the graph
    as dependencies. Raises OSError if *node_modules* itself cannot be listed.
    """
    found: list[tuple[str, Path]] = []
    for entry in sorted(os.listdir(node_modules)):
        if entry.startswith("."):
            continue
        full = node_modules / entry
        if not full.is_dir():
            continue
        found.append((entry, full))
    return found


async def discover_top_level_packages(node_modules: Path) -> list[PackageDescriptor]:
    """Read every installed package directly under *node_modules*, sorted by directory name.

    Directories without a readable manifest are skipped.
    """
    dirs = await asyncio.to_thread(_list_package_dirs, node_modules)
    packages: list[PackageDescriptor] = []
    for dir_name, pkg_dir in dirs:
        pkg = await read_package(pkg_dir, dir_name)
        if pkg is not None:
            packages.append(pkg)
    log.debug("reader.top_level_discovered", directories=len(dirs), packages=len(packages))
    return packages
