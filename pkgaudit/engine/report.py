"""Report assembly and serialisation."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from pkgaudit.engine.models import GraphNode, MissingLicense


@dataclass(frozen=True)
class AnalysisReport:
    """Immutable result of one analysis run.

    Mappings preserve graph discovery order. Counts are derived from
    ``license_status``, which has exactly one entry per graph node.
    """

    node_modules_path: str
    dependency_graph: Mapping[str, GraphNode]
    package_hashes: Mapping[str, str]
    license_status: Mapping[str, bool]
    missing_licenses: tuple[MissingLicense, ...]
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_packages(self) -> int:
        return len(self.license_status)

    @property
    def packages_with_licenses(self) -> int:
        return sum(1 for ok in self.license_status.values() if ok)

    @property
    def packages_without_licenses(self) -> int:
        return self.total_packages - self.packages_with_licenses

    def to_dict(self) -> dict[str, Any]:
        """Render the report document written by :func:`save_report`."""
        return {
            "timestamp": _iso_utc(self.generated_at),
            "nodeModulesPath": self.node_modules_path,
            "totalPackages": self.total_packages,
            "packagesWithLicenses": self.packages_with_licenses,
            "packagesWithoutLicenses": self.packages_without_licenses,
            "dependencyGraph": {name: node.to_dict() for name, node in self.dependency_graph.items()},
            "packageHashes": dict(self.package_hashes),
            "missingLicenses": [m.to_dict() for m in self.missing_licenses],
        }


def _iso_utc(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def assemble_report(
    node_modules_path: str,
    graph: Mapping[str, GraphNode],
    hashes: Mapping[str, str],
    license_status: Mapping[str, bool],
    generated_at: datetime | None = None,
) -> AnalysisReport:
    """Combine per-package findings into a report, in graph iteration order.

    Raises KeyError if a graph node lacks a hash or license finding.
    """
    ordered_hashes: dict[str, str] = {}
    ordered_status: dict[str, bool] = {}
    missing: list[MissingLicense] = []

    for name, node in graph.items():
        ordered_hashes[name] = hashes[name]
        licensed = license_status[name]
        ordered_status[name] = licensed
        if not licensed:
            missing.append(MissingLicense(name=name, version=node.version))

    return AnalysisReport(
        node_modules_path=node_modules_path,
        dependency_graph=MappingProxyType(dict(graph)),
        package_hashes=MappingProxyType(ordered_hashes),
        license_status=MappingProxyType(ordered_status),
        missing_licenses=tuple(missing),
        generated_at=generated_at or datetime.now(timezone.utc),
    )


def save_report(report: AnalysisReport, output: Path | str) -> Path:
    """Write the report as indented JSON and return the resolved output path."""
    path = Path(output).resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report.to_dict(), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return path
