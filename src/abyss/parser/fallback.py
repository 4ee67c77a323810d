"""Regex heuristics for languages without a structural parser.

Also used whenever structural parsing fails. Comments are stripped before
matching so commented-out imports never become references.
"""

from __future__ import annotations

import re

from abyss.parser.models import COMMENT_SYNTAX, Extraction

_REFERENCE_PATTERNS = [
    # import a.b / import a.b.C;
    re.compile(r"^\s*import\s+(?:static\s+)?([A-Za-z_][\w.]*)", re.MULTILINE),
    # from a.b import c
    re.compile(r"^\s*from\s+(\.*[\w.]*)\s+import\b", re.MULTILINE),
    # import x from "y" / import "y" / export * from "y"
    re.compile(r"""\b(?:import|export)\s+(?:[\w*{}\s,$]+\s+from\s+)?["']([^"'\n]+)["']"""),
    # require("x") / require_relative "x"
    re.compile(r"""\brequire(?:_relative)?\s*\(?\s*["']([^"'\n]+)["']"""),
    # #include "x.h"
    re.compile(r'^\s*#\s*include\s*[<"]([^>"\n]+)[>"]', re.MULTILINE),
    # use a::b;
    re.compile(r"^\s*(?:pub\s+)?use\s+([\w:]+)", re.MULTILINE),
    # source lib.sh / . ./lib.sh
    re.compile(r"""^\s*(?:source|\.)\s+["']?([\w./-]+)""", re.MULTILINE),
    # @import "x.css"
    re.compile(r"""@import\s+(?:url\()?["']?([^"')\s;]+)"""),
]

_DEFINITION_PATTERN = re.compile(
    r"^(?:pub(?:\([\w:]+\))?\s+)?(?:export\s+)?(?:default\s+)?(?:async\s+)?"
    r"(?:def|class|function|fn|func|interface|struct|enum|trait|module|type)\s+"
    r"([A-Za-z_]\w*)",
    re.MULTILINE,
)


def _block_end(lines: list[str], start: int, opener: str, closer: str) -> tuple[int, bool] | None:
    """Find the first closer after the opener on `lines[start]`.

    Returns the index of the closing line and whether only whitespace follows
    the closer, or None if the block is never closed.
    """
    offset = lines[start].index(opener) + len(opener)
    for index in range(start, len(lines)):
        line = lines[index]
        pos = line.find(closer, offset if index == start else 0)
        if pos != -1:
            return index, not line[pos + len(closer) :].strip()
    return None


def strip_comments(content: str, language: str | None) -> str:
    """Remove whole-line comments, line-leading block comments and blank lines.

    A block comment is dropped only when nothing but whitespace follows its
    closer; otherwise every line it spans is kept unchanged, so stripping
    twice gives the same text as stripping once.
    """
    line_markers, block = COMMENT_SYNTAX.get(language or "", ((), None))
    lines = content.splitlines()

    kept = []
    i = 0
    while i < len(lines):
        line = lines[i]
        stripped = line.strip()
        if block and stripped.startswith(block[0]):
            end = _block_end(lines, i, *block)
            if end is not None:
                last, whole_lines = end
                if not whole_lines:
                    kept.extend(lines[i : last + 1])
                i = last + 1
                continue
        if stripped and not (line_markers and stripped.startswith(line_markers)):
            kept.append(line)
        i += 1

    if not kept:
        return ""
    result = "\n".join(kept)
    if content.endswith("\n"):
        result += "\n"
    return result


def extract_fallback(content: str, language: str | None) -> Extraction:
    """Best-effort extraction of import-like statements and definitions."""
    text = strip_comments(content, language)
    result = Extraction(language=language, fallback=True)

    for pattern in _REFERENCE_PATTERNS:
        for m in pattern.finditer(text):
            ref = m.group(1).strip().rstrip(";")
            if ref:
                result.referenced.add(ref)

    for m in _DEFINITION_PATTERN.finditer(text):
        result.defined.add(m.group(1))

    return result
