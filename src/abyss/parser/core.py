"""Core extractor orchestration - selects the best extractor for each language."""

from __future__ import annotations

import logging
from typing import Callable

from abyss.exceptions import ParserError
from abyss.parser.fallback import extract_fallback
from abyss.parser.models import Extraction
from abyss.parser.python_parser import extract_python
from abyss.parser.tree_sitter_parser import extract_tree_sitter, is_available

logger = logging.getLogger("abyss.parser")

Extractor = Callable[[str], Extraction]


def _tree_sitter_extractor(language: str) -> Extractor:
    def extract(source: str) -> Extraction:
        if not is_available(language):
            raise ParserError(f"No tree-sitter grammar installed for {language}")
        return extract_tree_sitter(source, language)

    return extract


# Structural extractors by language tag. Anything else uses the regex fallback.
EXTRACTORS: dict[str, Extractor] = {
    "python": extract_python,
    "javascript": _tree_sitter_extractor("javascript"),
    "typescript": _tree_sitter_extractor("typescript"),
    "tsx": _tree_sitter_extractor("tsx"),
    "go": _tree_sitter_extractor("go"),
    "rust": _tree_sitter_extractor("rust"),
    "java": _tree_sitter_extractor("java"),
}


def has_structural_support(language: str | None) -> bool:
    """Whether a language has a syntax-tree based extractor."""
    return language in EXTRACTORS


def extract(content: str | bytes, language: str | None, file_path: str = "") -> Extraction:
    """Extract defined symbols and referenced modules from a file.

    - Python: uses stdlib ast
    - JS/TS, Go, Rust, Java: uses tree-sitter
    - Everything else, or any structural failure: regex heuristics

    Never raises for malformed input; failures are recorded on the result.
    """
    if isinstance(content, bytes):
        content = content.decode("utf-8-sig", errors="replace")

    extractor = EXTRACTORS.get(language or "")
    if extractor is None:
        return extract_fallback(content, language)

    try:
        return extractor(content)
    except ParserError as e:
        logger.warning("Falling back to regex extraction for %s: %s", file_path or "<source>", e)
        result = extract_fallback(content, language)
        result.errors.append(str(e))
        return result
