"""Data models for the dependency audit engine."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DependencyGroup(str, Enum):
    """Manifest section a dependency is declared in. Order is extraction order."""

    DEPENDENCIES = "dependencies"
    DEV = "devDependencies"
    PEER = "peerDependencies"
    OPTIONAL = "optionalDependencies"


@dataclass(frozen=True)
class PackageDescriptor:
    """An installed package read from its ``package.json``."""

    name: str
    version: str  # "unknown" when the manifest has none
    path: str  # absolute directory
    manifest: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class DependencyRef:
    """A declared dependency. ``version_range`` is never resolved."""

    name: str
    version_range: str
    group: DependencyGroup

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "version": self.version_range, "type": self.group.value}


@dataclass(frozen=True)
class GraphNode:
    """Per-package record in the dependency graph, keyed by package name."""

    version: str
    path: str
    dependencies: tuple[DependencyRef, ...] = ()
    manifest: dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "path": self.path,
            "dependencies": [d.to_dict() for d in self.dependencies],
            "manifest": copy.deepcopy(self.manifest),
        }


@dataclass(frozen=True)
class MissingLicense:
    name: str
    version: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "version": self.version}
