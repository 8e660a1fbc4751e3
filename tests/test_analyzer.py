"""End-to-end tests for DependencyAnalyzer on fake node_modules trees."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from pkgaudit import analyze
from pkgaudit.engine.analyzer import DependencyAnalyzer
from pkgaudit.engine.models import MissingLicense
from pkgaudit.exceptions import AnalyzerError, NodeModulesAccessError, NodeModulesNotFoundError


def _stable(report) -> dict:
    doc = report.to_dict()
    doc.pop("timestamp")
    return doc


# ── scenarios ──


class TestScenarios:
    @pytest.mark.asyncio
    async def test_dependency_with_license_file(self, node_modules, make_package):
        make_package("a", {"name": "a", "version": "1.0.0", "license": "MIT", "dependencies": {"b": "^1.0.0"}})
        make_package("b", {"name": "b", "version": "1.0.0"}, files={"LICENSE": "MIT"})

        report = await analyze(node_modules)

        assert len(report.dependency_graph) == 2
        assert report.missing_licenses == ()
        assert report.packages_with_licenses == 2

    @pytest.mark.asyncio
    async def test_package_without_license(self, node_modules, make_package):
        make_package("c", {"name": "c", "version": "2.0.0"})

        report = await analyze(node_modules)

        assert report.missing_licenses == (MissingLicense("c", "2.0.0"),)
        assert report.to_dict()["missingLicenses"] == [{"name": "c", "version": "2.0.0"}]

    @pytest.mark.asyncio
    async def test_cycle_each_package_once(self, node_modules, make_package):
        make_package("a", {"name": "a", "dependencies": {"b": "*"}})
        make_package("b", {"name": "b", "optionalDependencies": {"a": "*"}})

        report = await analyze(node_modules)

        assert sorted(report.dependency_graph) == ["a", "b"]
        assert report.total_packages == 2

    @pytest.mark.asyncio
    async def test_uninstalled_dependency_absent(self, node_modules, make_package):
        make_package("a", {"name": "a", "license": "ISC", "peerDependencies": {"react": "^18"}})

        report = await analyze(node_modules)

        assert list(report.dependency_graph) == ["a"]
        assert "react" not in report.package_hashes

    @pytest.mark.asyncio
    async def test_counts_partition_exactly(self, node_modules, make_package):
        make_package("a", {"name": "a", "license": "MIT", "dependencies": {"b": "1", "c": "1"}})
        make_package("b", {"name": "b"}, files={"license": "lowercase does not count"})
        make_package("c", {"name": "c"}, files={"COPYING": "GPL"})
        make_package("d", {"name": "d", "devDependencies": {"a": "1"}})

        report = await analyze(node_modules)

        assert report.total_packages == report.packages_with_licenses + report.packages_without_licenses
        assert report.total_packages == len(report.dependency_graph) == 4
        assert [m.name for m in report.missing_licenses] == ["b", "d"]

    @pytest.mark.asyncio
    async def test_missing_licenses_follow_discovery_order(self, node_modules, make_package):
        make_package("a", {"name": "a", "dependencies": {"z": "1"}})
        make_package("m", {"name": "m"})
        make_package("z", {"name": "z"})

        report = await analyze(node_modules)

        assert [m.name for m in report.missing_licenses] == ["a", "z", "m"]

    @pytest.mark.asyncio
    async def test_scoped_package_only_reached_as_dependency(self, node_modules, make_package):
        make_package("a", {"name": "a", "dependencies": {"@babel/core": "^7"}})
        make_package("@babel/core", {"name": "@babel/core", "version": "7.0.0"})
        make_package("@types/node", {"name": "@types/node", "version": "20.0.0"})

        report = await analyze(node_modules)

        assert list(report.dependency_graph) == ["a", "@babel/core"]
        assert report.total_packages == 2

    @pytest.mark.asyncio
    async def test_empty_root(self, node_modules):
        report = await analyze(node_modules)
        assert report.total_packages == 0
        assert report.dependency_graph == {}


# ── determinism ──


class TestDeterminism:
    @pytest.mark.asyncio
    async def test_rerun_identical(self, node_modules, make_package):
        make_package("a", {"name": "a", "dependencies": {"b": "1"}}, files={"index.js": "a", "lib/x.js": "x"})
        make_package("b", {"name": "b", "license": "MIT", "dependencies": {"@s/c": "1"}}, files={"index.js": "b"})
        make_package("@s/c", {"name": "@s/c"}, files={"LICENSE": "MIT"})

        first = await analyze(node_modules)
        second = await analyze(node_modules)

        assert _stable(first) == _stable(second)

    @pytest.mark.asyncio
    async def test_hashes_match_hasher(self, node_modules, make_package):
        from pkgaudit.engine.hasher import compute_package_hash

        pkg = make_package("a", {"name": "a"}, files={"index.js": "a"})
        report = await analyze(node_modules)
        assert report.package_hashes["a"] == await compute_package_hash(pkg)

    @pytest.mark.asyncio
    async def test_concurrency_setting_does_not_change_result(self, node_modules, make_package):
        for i in range(12):
            make_package(f"p{i}", {"name": f"p{i}"}, files={f"f{j}.js": f"{i}-{j}" for j in range(5)})

        serial = await DependencyAnalyzer(node_modules, hash_concurrency=1).analyze()
        parallel = await DependencyAnalyzer(node_modules, hash_concurrency=32).analyze()

        assert _stable(serial) == _stable(parallel)


# ── failures ──


class TestFailures:
    @pytest.mark.asyncio
    async def test_missing_root_is_fatal(self, tmp_path):
        with pytest.raises(NodeModulesNotFoundError, match="node_modules not found at"):
            await analyze(tmp_path / "does-not-exist")

    @pytest.mark.asyncio
    async def test_root_is_a_file(self, tmp_path):
        f = tmp_path / "node_modules"
        f.write_text("not a dir")
        with pytest.raises(AnalyzerError):
            await analyze(f)

    @pytest.mark.asyncio
    async def test_unlistable_root_is_fatal(self, node_modules):
        analyzer = DependencyAnalyzer(node_modules)
        with patch("pkgaudit.engine.reader.os.listdir", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(NodeModulesAccessError, match="Permission denied"):
                await analyzer.analyze()
        summary = analyzer.progress.get_summary()
        assert summary["phases"][0]["phase"] == "discover"
        assert summary["phases"][0]["status"] == "failed"

    @pytest.mark.asyncio
    async def test_unreadable_file_still_hashed(self, node_modules, make_package):
        from pkgaudit.engine import hasher

        make_package("a", {"name": "a"}, files={"ok.js": "1", "bad.js": "2"})
        real_hash_file = hasher.hash_file

        def _flaky(path):
            if path.name == "bad.js":
                raise OSError("gone")
            return real_hash_file(path)

        with patch.object(hasher, "hash_file", _flaky):
            report = await analyze(node_modules)
        pkg_dir = node_modules / "a"
        expected = hasher.combine_digests(
            [f"{name}:{real_hash_file(pkg_dir / name)}" for name in ("ok.js", "package.json")]
        )
        assert report.package_hashes["a"] == expected

    @pytest.mark.asyncio
    async def test_deeply_nested_manifest_is_skipped(self, node_modules, make_package):
        make_package("evil", "[" * 200000)
        make_package("ok", {"name": "ok"})

        report = await analyze(node_modules)

        assert list(report.dependency_graph) == ["ok"]


# ── progress ──


class TestAnalyzerProgress:
    @pytest.mark.asyncio
    async def test_phases_recorded(self, node_modules, make_package):
        make_package("a", {"name": "a", "license": "MIT"})
        analyzer = DependencyAnalyzer(node_modules)
        await analyzer.analyze()

        phases = analyzer.progress.get_summary()["phases"]
        assert [p["phase"] for p in phases] == ["discover", "graph", "inspect", "report"]
        assert all(p["status"] == "completed" for p in phases)
        assert phases[1]["detail"] == "1 packages"
        assert phases[2]["detail"] == "1/1 licensed"

    @pytest.mark.asyncio
    async def test_build_graph_only(self, node_modules, make_package):
        make_package("a", {"name": "a", "dependencies": {"b": "1"}})
        make_package("b", {"name": "b"})
        analyzer = DependencyAnalyzer(node_modules)
        graph = await analyzer.build_graph()
        assert list(graph) == ["a", "b"]
        assert [p.phase for p in analyzer.progress.phases] == ["discover", "graph"]

    def test_path_is_resolved(self, node_modules, monkeypatch):
        monkeypatch.chdir(node_modules.parent)
        analyzer = DependencyAnalyzer("node_modules")
        assert analyzer.node_modules_path == node_modules.resolve()
