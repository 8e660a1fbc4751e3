"""Shared pytest fixtures for pkgaudit tests: fake node_modules trees under tmp_path."""

from __future__ import annotations

import json
from pathlib import Path

import pytest


@pytest.fixture
def node_modules(tmp_path: Path) -> Path:
    root = tmp_path / "node_modules"
    root.mkdir()
    return root


@pytest.fixture
def make_package(node_modules: Path):
    """Create ``node_modules/<dir_name>`` with an optional manifest and extra files.

    ``manifest=None`` writes no package.json; a str is written verbatim
    (for malformed manifests); a dict is JSON-encoded.
    """

    def _make(
        dir_name: str,
        manifest: dict | str | None = None,
        files: dict[str, bytes | str] | None = None,
        root: Path | None = None,
    ) -> Path:
        pkg_dir = (root or node_modules) / dir_name
        pkg_dir.mkdir(parents=True, exist_ok=True)
        if isinstance(manifest, dict):
            (pkg_dir / "package.json").write_text(json.dumps(manifest))
        elif isinstance(manifest, str):
            (pkg_dir / "package.json").write_text(manifest)
        for rel, content in (files or {}).items():
            target = pkg_dir / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, str):
                content = content.encode()
            target.write_bytes(content)
        return pkg_dir

    return _make
