"""Replace brace-delimited function bodies with a placeholder via tree-sitter."""

from __future__ import annotations

from abyss.parser.tree_sitter_parser import parse_tree

PLACEHOLDER = "{ /* ... */ }"

_JS_BODIES = {
    "function_declaration": ("statement_block",),
    "generator_function_declaration": ("statement_block",),
    "function_expression": ("statement_block",),
    "function": ("statement_block",),
    "generator_function": ("statement_block",),
    "method_definition": ("statement_block",),
    "arrow_function": ("statement_block",),
}

# function node type -> body node types that get elided
BODY_NODE_TYPES: dict[str, dict[str, tuple[str, ...]]] = {
    "javascript": _JS_BODIES,
    "typescript": _JS_BODIES,
    "tsx": _JS_BODIES,
    "go": {
        "function_declaration": ("block",),
        "method_declaration": ("block",),
        "func_literal": ("block",),
    },
    "rust": {
        "function_item": ("block",),
    },
    "java": {
        "method_declaration": ("block",),
        "constructor_declaration": ("constructor_body",),
    },
}


def supports(language: str | None) -> bool:
    return language in BODY_NODE_TYPES


def _body_spans(root, source: bytes, functions: dict[str, tuple[str, ...]]) -> list[tuple[int, int]]:
    placeholder = PLACEHOLDER.encode("utf-8")
    spans: list[tuple[int, int]] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type in functions:
            body = node.child_by_field_name("body")
            if body is not None and body.type in functions[node.type]:
                if source[body.start_byte:body.end_byte] != placeholder:
                    spans.append((body.start_byte, body.end_byte))
                # Outermost bodies only
                continue
        stack.extend(node.children)
    return sorted(spans)


def elide_blocks(source: str, language: str) -> str:
    """Elide every outermost function body of a tree-sitter language.

    Raises ParserError when the grammar is missing or the source has
    syntax errors.
    """
    data = source.encode("utf-8")
    tree = parse_tree(data, language)
    spans = _body_spans(tree.root_node, data, BODY_NODE_TYPES[language])
    if not spans:
        return source

    replacement = PLACEHOLDER.encode("utf-8")
    for start, end in reversed(spans):
        data = data[:start] + replacement + data[end:]
    return data.decode("utf-8")
