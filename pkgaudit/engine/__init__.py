"""Dependency audit engine: graph, content hashes and license findings."""

from pkgaudit.engine.analyzer import DependencyAnalyzer, analyze
from pkgaudit.engine.models import (
    DependencyGroup,
    DependencyRef,
    GraphNode,
    MissingLicense,
    PackageDescriptor,
)
from pkgaudit.engine.report import AnalysisReport, assemble_report, save_report

__all__ = [
    "AnalysisReport",
    "DependencyAnalyzer",
    "DependencyGroup",
    "DependencyRef",
    "GraphNode",
    "MissingLicense",
    "PackageDescriptor",
    "analyze",
    "assemble_report",
    "save_report",
]
