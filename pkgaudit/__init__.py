"""pkgaudit: dependency graph, content hashes and license audit for node_modules trees."""

__version__ = "0.1.0"

from pkgaudit.engine import (
    AnalysisReport,
    DependencyAnalyzer,
    DependencyGroup,
    DependencyRef,
    GraphNode,
    MissingLicense,
    PackageDescriptor,
    analyze,
    save_report,
)
from pkgaudit.exceptions import (
    AnalyzerError,
    NodeModulesAccessError,
    NodeModulesNotFoundError,
)

__all__ = [
    "AnalysisReport",
    "AnalyzerError",
    "DependencyAnalyzer",
    "DependencyGroup",
    "DependencyRef",
    "GraphNode",
    "MissingLicense",
    "NodeModulesAccessError",
    "NodeModulesNotFoundError",
    "PackageDescriptor",
    "analyze",
    "save_report",
]
