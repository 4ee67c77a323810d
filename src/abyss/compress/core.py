"""Compression entry point: pick a strategy by mode and language."""

from __future__ import annotations

import logging

from abyss.compress.block_elider import elide_blocks, supports
from abyss.compress.python_elider import elide_python
from abyss.config import CompressionMode
from abyss.exceptions import ParserError
from abyss.parser.fallback import strip_comments

logger = logging.getLogger("abyss.compress")


def compress(content: str, language: str | None, mode: CompressionMode | str) -> str:
    """Return a compressed variant of `content`.

    `none` returns the content unchanged, `simple` strips comments and blank
    lines, `smart` elides function bodies and falls back to `simple` when the
    language has no structural support or the source doesn't parse.
    """
    mode = CompressionMode(mode)
    if mode == CompressionMode.NONE:
        return content
    if mode == CompressionMode.SIMPLE:
        return strip_comments(content, language)

    try:
        if language == "python":
            return elide_python(content)
        if supports(language):
            return elide_blocks(content, language)
    except ParserError as e:
        logger.debug("Structural compression unavailable (%s); stripping comments", e)
    return strip_comments(content, language)
