"""Tree-sitter based extraction for JS/TS, Go, Rust and Java."""

from __future__ import annotations

from functools import lru_cache

from abyss.exceptions import ParserError
from abyss.parser.models import Extraction

# Tree-sitter grammar module and the factory attribute that returns its language
_TS_LANGUAGE_MODULES: dict[str, tuple[str, str]] = {
    "javascript": ("tree_sitter_javascript", "language"),
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
    "go": ("tree_sitter_go", "language"),
    "rust": ("tree_sitter_rust", "language"),
    "java": ("tree_sitter_java", "language"),
}

# Top-level node types that define a named symbol
_DEFINITION_NODE_TYPES: dict[str, set[str]] = {
    "javascript": {
        "function_declaration",
        "generator_function_declaration",
        "class_declaration",
    },
    "typescript": {
        "function_declaration",
        "generator_function_declaration",
        "function_signature",
        "class_declaration",
        "abstract_class_declaration",
        "interface_declaration",
        "type_alias_declaration",
        "enum_declaration",
    },
    "go": {"function_declaration", "method_declaration"},
    "rust": {
        "function_item",
        "struct_item",
        "enum_item",
        "union_item",
        "trait_item",
        "type_item",
        "const_item",
        "static_item",
        "mod_item",
        "macro_definition",
    },
    "java": {
        "class_declaration",
        "interface_declaration",
        "enum_declaration",
        "record_declaration",
        "annotation_type_declaration",
    },
}
_DEFINITION_NODE_TYPES["tsx"] = _DEFINITION_NODE_TYPES["typescript"]

# Declarations whose names live on nested declarator/spec children
_DECLARATOR_CONTAINERS: dict[str, dict[str, str]] = {
    "javascript": {
        "lexical_declaration": "variable_declarator",
        "variable_declaration": "variable_declarator",
    },
    "typescript": {
        "lexical_declaration": "variable_declarator",
        "variable_declaration": "variable_declarator",
    },
    "go": {
        "type_declaration": "type_spec",
        "const_declaration": "const_spec",
        "var_declaration": "var_spec",
    },
}
_DECLARATOR_CONTAINERS["tsx"] = _DECLARATOR_CONTAINERS["typescript"]

_NAME_NODE_TYPES = ("identifier", "type_identifier", "field_identifier", "property_identifier")


def is_available(language: str | None = None) -> bool:
    """Check if tree-sitter and the required language grammar are available."""
    try:
        import tree_sitter  # noqa: F401
    except ImportError:
        return False

    if language is None:
        return True

    entry = _TS_LANGUAGE_MODULES.get(language)
    if not entry:
        return False

    try:
        __import__(entry[0])
        return True
    except ImportError:
        return False


@lru_cache(maxsize=None)
def _get_language(lang: str):
    """Get a tree-sitter Language object for the given language."""
    from tree_sitter import Language

    entry = _TS_LANGUAGE_MODULES.get(lang)
    if not entry:
        raise ParserError(f"No tree-sitter grammar for language: {lang}")

    module_name, factory = entry
    try:
        module = __import__(module_name)
    except ImportError as e:
        raise ParserError(f"Grammar package '{module_name}' is not installed") from e
    return Language(getattr(module, factory)())


def parse_tree(source: bytes, language: str):
    """Parse source into a tree-sitter tree; ParserError if it has syntax errors."""
    from tree_sitter import Parser

    try:
        parser = Parser(_get_language(language))
        tree = parser.parse(source)
    except ParserError:
        raise
    except Exception as e:
        raise ParserError(f"tree-sitter parse error: {e}") from e

    if tree.root_node.has_error:
        raise ParserError(f"{language} source contains syntax errors")
    return tree


def extract_tree_sitter(source: str, language: str) -> Extraction:
    """Extract top-level definitions and module references with tree-sitter."""
    tree = parse_tree(source.encode("utf-8"), language)
    result = Extraction(language=language)

    for child in tree.root_node.children:
        _collect_definitions(child, language, result)

    _collect_references(tree.root_node, language, result)
    return result


def _node_text(node) -> str:
    return node.text.decode("utf-8", errors="replace")


def _strip_quotes(text: str) -> str:
    return text.strip().strip("\"'`")


def _extract_name(node) -> str:
    """Extract the name of a symbol from its tree-sitter node."""
    name_child = node.child_by_field_name("name")
    if name_child is not None:
        return _node_text(name_child)
    for child in node.children:
        if child.type in _NAME_NODE_TYPES:
            return _node_text(child)
    return ""


def _collect_definitions(node, language: str, result: Extraction) -> None:
    node_type = node.type

    if node_type == "export_statement":
        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            _collect_definitions(declaration, language, result)
        return

    if node_type in _DEFINITION_NODE_TYPES.get(language, set()):
        name = _extract_name(node)
        if name:
            result.defined.add(name)
        return

    spec_type = _DECLARATOR_CONTAINERS.get(language, {}).get(node_type)
    if spec_type is None:
        return
    for child in node.children:
        if child.type == spec_type:
            name_node = child.child_by_field_name("name")
            if name_node is not None and name_node.type in _NAME_NODE_TYPES:
                result.defined.add(_node_text(name_node))


def _collect_references(root, language: str, result: Extraction) -> None:
    """Walk the whole tree for import-like nodes."""
    stack = [root]
    while stack:
        node = stack.pop()
        ref = _reference_of(node, language)
        if ref:
            result.referenced.add(ref)
        stack.extend(node.children)


def _reference_of(node, language: str) -> str:
    node_type = node.type

    if language in ("javascript", "typescript", "tsx"):
        if node_type in ("import_statement", "export_statement"):
            source = node.child_by_field_name("source")
            if source is not None:
                return _strip_quotes(_node_text(source))
        elif node_type == "call_expression":
            func = node.child_by_field_name("function")
            args = node.child_by_field_name("arguments")
            if (
                func is not None
                and args is not None
                and (func.type == "import" or _node_text(func) == "require")
            ):
                for arg in args.named_children:
                    if arg.type == "string":
                        return _strip_quotes(_node_text(arg))
                    break

    elif language == "go":
        if node_type == "import_spec":
            path = node.child_by_field_name("path")
            if path is not None:
                return _strip_quotes(_node_text(path))

    elif language == "rust":
        if node_type == "use_declaration":
            argument = node.child_by_field_name("argument")
            if argument is not None:
                return _node_text(argument)
        elif node_type == "mod_item" and node.child_by_field_name("body") is None:
            # `mod foo;` pulls in a sibling file
            return _extract_name(node)
        elif node_type == "extern_crate_declaration":
            return _extract_name(node)

    elif language == "java":
        if node_type == "import_declaration":
            wildcard = any(child.type == "asterisk" for child in node.children)
            for child in node.named_children:
                if child.type in ("scoped_identifier", "identifier"):
                    name = _node_text(child)
                    return f"{name}.*" if wildcard else name

    return ""
