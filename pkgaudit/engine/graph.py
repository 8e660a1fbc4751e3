"""Dependency graph builder: name-keyed, depth-first, pre-order traversal."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator

import structlog

from pkgaudit.core.config import env_int
from pkgaudit.engine.models import DependencyRef, GraphNode, PackageDescriptor
from pkgaudit.engine.reader import extract_dependencies, read_package

log = structlog.get_logger("pkgaudit.engine")

DEFAULT_MAX_DEPTH = env_int("PKGAUDIT_MAX_DEPTH", 512)


def _is_safe_package_name(name: str) -> bool:
    """Reject names that would resolve outside the analysis root."""
    if not name or name.startswith("/") or "\\" in name:
        return False
    return all(part not in ("", ".", "..") for part in name.split("/"))


async def resolve_dependency(node_modules: Path, ref: DependencyRef) -> PackageDescriptor | None:
    """Resolve *ref* to ``node_modules/<name>`` (flat lookup, no nested fallback)."""
    if not _is_safe_package_name(ref.name):
        log.debug("graph.dependency_rejected", dependency=ref.name)
        return None
    pkg = await read_package(node_modules.joinpath(*ref.name.split("/")), ref.name)
    if pkg is None:
        log.debug("graph.dependency_unresolved", dependency=ref.name, group=ref.group.value)
    return pkg


class GraphBuilder:
    """Build the dependency graph reachable from a set of root packages.

    Every package *name* is recorded at most once: the first descriptor
    reached under a name wins, even if a differently-versioned copy is
    reached later. Traversal is depth-first pre-order: a package's resolved
    dependencies are fully processed before its next sibling.

    The walk uses an explicit stack. Packages deeper than *max_depth* are
    still recorded, but their dependencies are not followed.
    """

    def __init__(self, node_modules: Path, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._node_modules = Path(node_modules)
        self._max_depth = max_depth

    async def build(self, root_packages: Iterable[PackageDescriptor]) -> dict[str, GraphNode]:
        """Return an insertion-ordered mapping of package name to node."""
        visited: set[str] = set()
        graph: dict[str, GraphNode] = {}
        stack: list[tuple[Iterator[PackageDescriptor], int]] = [(iter(root_packages), 0)]

        while stack:
            pending, depth = stack[-1]
            pkg = next(pending, None)
            if pkg is None:
                stack.pop()
                continue
            if pkg.name in visited:
                continue
            visited.add(pkg.name)

            dependencies = extract_dependencies(pkg.manifest)
            graph[pkg.name] = GraphNode(
                version=pkg.version,
                path=pkg.path,
                dependencies=tuple(dependencies),
                manifest=pkg.manifest,
            )
            if not dependencies:
                continue
            if depth >= self._max_depth:
                log.warning("graph.depth_limit_reached", package=pkg.name, depth=depth)
                continue

            resolved = await self._resolve_all(dependencies)
            if resolved:
                stack.append((iter(resolved), depth + 1))

        log.debug("graph.built", packages=len(graph))
        return graph

    async def _resolve_all(self, dependencies: list[DependencyRef]) -> list[PackageDescriptor]:
        resolved: list[PackageDescriptor] = []
        for ref in dependencies:
            pkg = await resolve_dependency(self._node_modules, ref)
            if pkg is not None:
                resolved.append(pkg)
        return resolved
