"""DependencyAnalyzer: discover, graph, inspect and report on a node_modules tree."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import structlog

from pkgaudit.engine.graph import DEFAULT_MAX_DEPTH, GraphBuilder
from pkgaudit.engine.hasher import DEFAULT_CONCURRENCY, compute_package_hash
from pkgaudit.engine.licenses import has_license
from pkgaudit.engine.models import GraphNode
from pkgaudit.engine.reader import discover_top_level_packages
from pkgaudit.engine.report import AnalysisReport, assemble_report
from pkgaudit.exceptions import NodeModulesAccessError, NodeModulesNotFoundError
from pkgaudit.progress import ProgressTracker

log = structlog.get_logger("pkgaudit.engine")

DEFAULT_NODE_MODULES = os.environ.get("PKGAUDIT_NODE_MODULES", "node_modules")

_PACKAGE_CONCURRENCY = 8


class DependencyAnalyzer:
    """Run one audit over an installed dependency tree.

    Each :meth:`analyze` call is independent; no state is shared between runs.
    """

    def __init__(
        self,
        node_modules_path: Path | str = DEFAULT_NODE_MODULES,
        *,
        hash_concurrency: int = DEFAULT_CONCURRENCY,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.node_modules_path = Path(node_modules_path).resolve()
        self._hash_concurrency = max(1, hash_concurrency)
        self._max_depth = max_depth
        self.progress = ProgressTracker()

    async def analyze(self) -> AnalysisReport:
        """Full pipeline: check root -> discover -> graph -> inspect -> report.

        Raises :class:`NodeModulesNotFoundError` or
        :class:`NodeModulesAccessError` before any traversal if the root is
        unusable. Every other I/O failure is skipped.
        """
        root = self.node_modules_path
        log.info("analyzer.started", node_modules=str(root))
        graph = await self.build_graph()

        with self.progress.track("inspect") as phase:
            hashes, license_status = await self._inspect_packages(graph)
            phase.detail = f"{sum(license_status.values())}/{len(license_status)} licensed"

        with self.progress.track("report"):
            report = assemble_report(str(root), graph, hashes, license_status)

        log.info(
            "analyzer.completed",
            total=report.total_packages,
            with_license=report.packages_with_licenses,
            without_license=report.packages_without_licenses,
        )
        return report

    async def build_graph(self) -> dict[str, GraphNode]:
        """Check the root, discover top-level packages and build the graph.

        Starts a fresh progress record. Raises the same root errors as
        :meth:`analyze`.
        """
        root = self.node_modules_path
        self.progress = ProgressTracker()

        if not root.is_dir():
            raise NodeModulesNotFoundError(str(root))

        with self.progress.track("discover") as phase:
            try:
                top_level = await discover_top_level_packages(root)
            except OSError as exc:
                raise NodeModulesAccessError(str(root), exc.strerror or str(exc)) from exc
            phase.detail = f"{len(top_level)} top-level packages"

        with self.progress.track("graph") as phase:
            graph = await GraphBuilder(root, max_depth=self._max_depth).build(top_level)
            phase.detail = f"{len(graph)} packages"
        return graph

    async def _inspect_packages(
        self, graph: dict[str, GraphNode]
    ) -> tuple[dict[str, str], dict[str, bool]]:
        """Hash and license-check every node. Results are keyed by name."""
        hashes: dict[str, str] = {}
        license_status: dict[str, bool] = {}
        package_sem = asyncio.Semaphore(_PACKAGE_CONCURRENCY)
        file_sem = asyncio.Semaphore(self._hash_concurrency)

        async def _inspect_one(name: str, node: GraphNode) -> None:
            async with package_sem:
                hashes[name] = await compute_package_hash(node.path, semaphore=file_sem)
                license_status[name] = await has_license(node.path, node.manifest)
            if not license_status[name]:
                log.debug("analyzer.license_missing", package=name, version=node.version)

        await asyncio.gather(*(_inspect_one(name, node) for name, node in graph.items()))
        return hashes, license_status


async def analyze(
    node_modules_path: Path | str = DEFAULT_NODE_MODULES,
    **kwargs,
) -> AnalysisReport:
    """Analyze a node_modules tree and return the report."""
    return await DependencyAnalyzer(node_modules_path, **kwargs).analyze()
