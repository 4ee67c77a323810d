"""Shared test fixtures for Abyss."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from abyss.context.models import FileNode, SourceFile


@pytest.fixture
def tmp_project(tmp_path: Path) -> Path:
    """Create a temporary project directory with a small Python package."""
    (tmp_path / "README.md").write_text("# Inventory\n\nTracks stock levels.\n")

    pkg = tmp_path / "inventory"
    pkg.mkdir()
    (pkg / "__init__.py").write_text('"""Inventory package."""\n')

    (pkg / "models.py").write_text('''"""Stock records."""

from dataclasses import dataclass

REORDER_LEVEL = 5


@dataclass
class Item:
    sku: str
    quantity: int

    def needs_reorder(self) -> bool:
        """Whether stock is at or below the reorder level."""
        return self.quantity <= REORDER_LEVEL
''')

    (pkg / "store.py").write_text('''"""In-memory item store."""

from inventory.models import Item


class Store:
    def __init__(self):
        self._items: dict[str, Item] = {}

    def add(self, item: Item) -> None:
        self._items[item.sku] = item

    def low_stock(self) -> list[Item]:
        return [i for i in self._items.values() if i.needs_reorder()]
''')

    (pkg / "report.py").write_text('''"""Reporting helpers."""

from inventory.models import Item
from inventory.store import Store


def format_item(item: Item) -> str:
    return f"{item.sku}: {item.quantity}"


def low_stock_report(store: Store) -> str:
    # One line per item
    return "\\n".join(format_item(i) for i in store.low_stock())
''')

    (tmp_path / "main.py").write_text('''"""Command entry point."""

from inventory.report import low_stock_report
from inventory.store import Store


def main():
    store = Store()
    print(low_stock_report(store))


if __name__ == "__main__":
    main()
''')

    return tmp_path


@pytest.fixture
def sample_python_source() -> str:
    """Sample Python source code for parser testing."""
    return '''"""Sample module."""

import os
import json as jsonlib
from typing import List, Optional
from pathlib import Path
from . import siblings
from ..shared.helpers import slugify


CONSTANT_VALUE = 42
first, second = 1, 2
threshold: float = 0.5


class Tokenizer:
    """Split text into tokens."""

    def __init__(self, separator: str = " "):
        self.separator = separator

    def split(self, text: str) -> List[str]:
        """Split the text."""
        return [t for t in text.split(self.separator) if t]


async def fetch(path: Path) -> Optional[str]:
    """Read a file if it exists."""
    if not os.path.exists(path):
        return None
    return path.read_text()


def tokenize(text: str) -> List[str]:
    import re
    return re.findall(r"\\w+", text)
'''


@pytest.fixture
def make_source() -> Callable[..., SourceFile]:
    """Factory for in-memory source files."""

    def _make(path: str, text: str, language: str | None = None) -> SourceFile:
        return SourceFile(path=path, content=text.encode("utf-8"), language=language)

    return _make


@pytest.fixture
def make_node() -> Callable[..., FileNode]:
    """Factory for extracted file nodes with the given references."""

    def _make(
        path: str,
        referenced: set[str] | None = None,
        defined: set[str] | None = None,
        language: str | None = None,
        content: str = "",
        score: float = 0.0,
    ) -> FileNode:
        data = content.encode("utf-8")
        return FileNode(
            path=path,
            content=data,
            size=len(data),
            language=language,
            defined=frozenset(defined or ()),
            referenced=frozenset(referenced or ()),
            score=score,
        )

    return _make
