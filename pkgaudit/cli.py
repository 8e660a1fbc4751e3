"""CLI entry point: pkgaudit.

Subcommands:
    pkgaudit analyze [NODE_MODULES] -o report.json   # Full audit, writes JSON report
    pkgaudit tree [NODE_MODULES]                     # Print the dependency graph
"""

from __future__ import annotations

import asyncio
import os
import sys

import click

from pkgaudit.core.logging import setup_logging
from pkgaudit.engine.analyzer import DEFAULT_NODE_MODULES, DependencyAnalyzer
from pkgaudit.engine.graph import DEFAULT_MAX_DEPTH
from pkgaudit.engine.hasher import DEFAULT_CONCURRENCY
from pkgaudit.engine.models import GraphNode
from pkgaudit.engine.report import AnalysisReport, save_report
from pkgaudit.exceptions import AnalyzerError

_DEFAULT_OUTPUT = os.environ.get("PKGAUDIT_OUTPUT", "dependency-analysis.json")

_STATUS_ICONS = {
    "completed": "+",
    "failed": "!",
    "running": "~",
    "pending": ".",
}


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default=None,
    help="Log renderer (default: $PKGAUDIT_LOG_FORMAT or console)",
)
def main(verbose: bool, log_format: str | None) -> None:
    """pkgaudit: dependency graph, content hashes and license audit for node_modules."""
    setup_logging(level="DEBUG" if verbose else None, fmt=log_format)


@main.command("analyze")
@click.argument("node_modules", required=False, default=DEFAULT_NODE_MODULES)
@click.option("-o", "--output", default=_DEFAULT_OUTPUT, show_default=True, help="Report file path")
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=DEFAULT_CONCURRENCY,
    show_default=True,
    help="Maximum concurrent file reads while hashing",
)
@click.option(
    "--max-depth",
    type=click.IntRange(min=0),
    default=DEFAULT_MAX_DEPTH,
    show_default=True,
    help="Maximum dependency depth to follow",
)
def analyze_cmd(node_modules: str, output: str, concurrency: int, max_depth: int) -> None:
    """Analyze NODE_MODULES and write the JSON report."""
    analyzer = DependencyAnalyzer(node_modules, hash_concurrency=concurrency, max_depth=max_depth)
    click.echo(f"Analyzing dependencies in: {analyzer.node_modules_path}")

    try:
        report = asyncio.run(analyzer.analyze())
    except AnalyzerError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    _print_summary(report)

    summary = analyzer.progress.get_summary()
    click.echo(f"\nPipeline summary (total: {summary['total_duration']}s):")
    for p in summary["phases"]:
        status_icon = _STATUS_ICONS.get(p["status"], "?")
        duration = f" ({p['duration']}s)" if p["duration"] is not None else ""
        detail = f" - {p['detail']}" if p["detail"] else ""
        click.echo(f"  [{status_icon}] {p['phase']}{duration}{detail}")

    try:
        path = save_report(report, output)
    except OSError as e:
        click.echo(f"Error: cannot write report to {output}: {e}", err=True)
        sys.exit(1)
    click.echo(f"\nResults saved to: {path}")


def _print_summary(report: AnalysisReport) -> None:
    click.echo("\nSummary:")
    click.echo(f"  Total packages: {report.total_packages}")
    click.echo(f"  With licenses: {report.packages_with_licenses}")
    click.echo(f"  Without licenses: {report.packages_without_licenses}")
    click.echo(f"  Package hashes computed: {len(report.package_hashes)}")

    if report.missing_licenses:
        click.echo("\nPackages missing licenses:")
        for pkg in report.missing_licenses:
            click.echo(f"  - {pkg.name}@{pkg.version}")


@main.command("tree")
@click.argument("node_modules", required=False, default=DEFAULT_NODE_MODULES)
@click.option(
    "--max-depth",
    type=click.IntRange(min=0),
    default=DEFAULT_MAX_DEPTH,
    show_default=True,
    help="Maximum dependency depth to follow",
)
def tree_cmd(node_modules: str, max_depth: int) -> None:
    """Print the dependency graph of NODE_MODULES (no hashing)."""
    analyzer = DependencyAnalyzer(node_modules, max_depth=max_depth)
    try:
        graph = asyncio.run(analyzer.build_graph())
    except AnalyzerError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not graph:
        click.echo("No packages found.")
        return
    for line in format_graph(graph):
        click.echo(line)


def format_graph(graph: dict[str, GraphNode]) -> list[str]:
    """Render each node as ``name@version`` followed by its declared dependencies."""
    lines: list[str] = []
    for name, node in graph.items():
        lines.append(f"{name}@{node.version}")
        for dep in node.dependencies:
            marker = "" if dep.name in graph else "  (not installed)"
            lines.append(f"  - {dep.name} {dep.version_range} [{dep.group.value}]{marker}")
    return lines


if __name__ == "__main__":
    main()
