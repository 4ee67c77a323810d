"""Tests for the source catalog."""

from __future__ import annotations

from pathlib import Path

import pytest

from abyss.catalog import collect_sources, is_binary
from abyss.config import IndexerConfig
from abyss.exceptions import ConfigError


def _paths(root: Path, config: IndexerConfig | None = None) -> list[str]:
    return [s.path for s in collect_sources(root, config)]


class TestCollectSources:
    def test_project(self, tmp_project: Path):
        sources = collect_sources(tmp_project)
        assert [s.path for s in sources] == [
            "README.md",
            "inventory/__init__.py",
            "inventory/models.py",
            "inventory/report.py",
            "inventory/store.py",
            "main.py",
        ]
        by_path = {s.path: s for s in sources}
        assert by_path["main.py"].language == "python"
        assert by_path["README.md"].language == "markdown"
        assert by_path["main.py"].size == len(by_path["main.py"].content)
        assert by_path["main.py"].modified > 0

    def test_missing_root(self, tmp_path: Path):
        with pytest.raises(ConfigError):
            collect_sources(tmp_path / "nowhere")

    def test_file_root(self, tmp_path: Path):
        target = tmp_path / "file.py"
        target.write_text("x = 1\n")
        with pytest.raises(ConfigError):
            collect_sources(target)

    def test_default_excludes(self, tmp_project: Path):
        (tmp_project / "node_modules" / "lib").mkdir(parents=True)
        (tmp_project / "node_modules" / "lib" / "index.js").write_text("module.exports = 1;\n")
        (tmp_project / "inventory" / "__pycache__").mkdir()
        (tmp_project / "inventory" / "__pycache__" / "models.cpython-312.pyc").write_bytes(b"x")
        (tmp_project / ".abyss").mkdir()
        (tmp_project / ".abyss" / "cache.json").write_text("{}")

        paths = _paths(tmp_project)
        assert not any(p.startswith(("node_modules", ".abyss")) for p in paths)
        assert not any("__pycache__" in p for p in paths)

    def test_gitignore(self, tmp_project: Path):
        (tmp_project / ".gitignore").write_text("# build output\n/generated/\n*.log\n!keep.log\n")
        (tmp_project / "generated").mkdir()
        (tmp_project / "generated" / "schema.py").write_text("SCHEMA = {}\n")
        (tmp_project / "debug.log").write_text("started\n")

        paths = _paths(tmp_project)
        assert "generated/schema.py" not in paths
        assert "debug.log" not in paths
        assert ".gitignore" in paths

    def test_gitignore_disabled(self, tmp_project: Path):
        (tmp_project / ".gitignore").write_text("*.log\n")
        (tmp_project / "debug.log").write_text("started\n")
        paths = _paths(tmp_project, IndexerConfig(respect_gitignore=False))
        assert "debug.log" in paths

    def test_abyssignore(self, tmp_project: Path):
        (tmp_project / ".abyssignore").write_text(
            "# Comment line\n*.test.py\n\nmock_*\n  # Indented comment  \n  spaced_pattern  \n"
        )
        (tmp_project / "store.test.py").write_text("assert True\n")
        (tmp_project / "inventory" / "mock_store.py").write_text("STORE = {}\n")
        (tmp_project / "spaced_pattern").mkdir()
        (tmp_project / "spaced_pattern" / "data.txt").write_text("rows\n")

        for config in (IndexerConfig(), IndexerConfig(respect_gitignore=False)):
            paths = _paths(tmp_project, config)
            assert "store.test.py" not in paths
            assert "inventory/mock_store.py" not in paths
            assert "spaced_pattern/data.txt" not in paths
            assert "inventory/store.py" in paths
            assert ".abyssignore" in paths

    def test_abyssignore_missing(self, tmp_project: Path):
        assert "main.py" in _paths(tmp_project)

    def test_binary_skipped(self, tmp_project: Path):
        (tmp_project / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR")
        assert "logo.png" not in _paths(tmp_project)

    def test_size_cap(self, tmp_project: Path):
        (tmp_project / "big.py").write_text("x = 1\n" * 400)
        assert "big.py" not in _paths(tmp_project, IndexerConfig(max_file_size_kb=1))
        assert "big.py" in _paths(tmp_project)

    def test_max_depth(self, tmp_project: Path):
        (tmp_project / "inventory" / "io").mkdir()
        (tmp_project / "inventory" / "io" / "csv.py").write_text("import csv\n")

        assert _paths(tmp_project, IndexerConfig(max_depth=0)) == ["README.md", "main.py"]
        shallow = _paths(tmp_project, IndexerConfig(max_depth=1))
        assert "inventory/store.py" in shallow
        assert "inventory/io/csv.py" not in shallow
        assert "inventory/io/csv.py" in _paths(tmp_project)

    def test_include_patterns(self, tmp_project: Path):
        paths = _paths(tmp_project, IndexerConfig(include_patterns=["*.md"]))
        assert paths == ["README.md"]

    def test_language_filter(self, tmp_project: Path):
        paths = _paths(tmp_project, IndexerConfig(languages=["python"]))
        assert "README.md" not in paths
        assert "main.py" in paths


class TestIsBinary:
    def test_text(self):
        assert not is_binary(b"plain text\n")

    def test_null_byte(self):
        assert is_binary(b"abc\x00def")

    def test_null_past_sniff_window(self):
        assert not is_binary(b"a" * 9000 + b"\x00")

    def test_empty(self):
        assert not is_binary(b"")
