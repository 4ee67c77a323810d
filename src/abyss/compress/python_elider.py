"""Replace Python function bodies with `...`, keeping signatures."""

from __future__ import annotations

import ast

from abyss.parser.python_parser import parse_python

PLACEHOLDER = "..."

_FUNCTION_NODES = (ast.FunctionDef, ast.AsyncFunctionDef)


def _is_elided(body: list[ast.stmt]) -> bool:
    if len(body) != 1 or not isinstance(body[0], ast.Expr):
        return False
    value = body[0].value
    return isinstance(value, ast.Constant) and value.value is Ellipsis


def _line_offsets(data: bytes) -> list[int]:
    offsets = [0]
    for line in data.splitlines(keepends=True):
        offsets.append(offsets[-1] + len(line))
    return offsets


def _body_spans(tree: ast.Module, offsets: list[int]) -> list[tuple[int, int]]:
    """Byte spans of every outermost function body that isn't elided yet."""
    spans: list[tuple[int, int]] = []
    stack: list[ast.AST] = [tree]
    while stack:
        node = stack.pop()
        for child in ast.iter_child_nodes(node):
            if not isinstance(child, _FUNCTION_NODES):
                stack.append(child)
                continue
            if _is_elided(child.body):
                continue
            first, last = child.body[0], child.body[-1]
            # col offsets count UTF-8 bytes
            start = offsets[first.lineno - 1] + first.col_offset
            end = offsets[last.end_lineno - 1] + last.end_col_offset
            spans.append((start, end))
    return sorted(spans)


def elide_python(source: str) -> str:
    """Elide every outermost function and method body.

    Decorators, signatures, class statements and module-level code are kept.
    Raises ParserError when the source doesn't parse.
    """
    tree = parse_python(source)
    data = source.encode("utf-8")
    spans = _body_spans(tree, _line_offsets(data))
    if not spans:
        return source

    replacement = PLACEHOLDER.encode("utf-8")
    for start, end in reversed(spans):
        data = data[:start] + replacement + data[end:]
    return data.decode("utf-8")
