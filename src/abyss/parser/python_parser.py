"""Python-specific extractor using the built-in ast module. Always available, no extra deps."""

from __future__ import annotations

import ast

from abyss.exceptions import ParserError
from abyss.parser.models import Extraction


def parse_python(source: str, file_path: str = "<unknown>") -> ast.Module:
    """Parse Python source, raising ParserError on invalid or unparseable input.

    Deeply nested generated code can exhaust the parser's recursion limit;
    that is reported like a syntax error so the caller falls back.
    """
    try:
        return ast.parse(source, filename=file_path)
    except (SyntaxError, ValueError) as e:
        raise ParserError(f"SyntaxError: {e}") from e
    except (RecursionError, MemoryError) as e:
        raise ParserError(f"Source too deeply nested to parse: {type(e).__name__}") from e


def extract_python(source: str) -> Extraction:
    """Extract module-level definitions and every imported module."""
    tree = parse_python(source)
    result = Extraction(language="python")

    for node in tree.body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            result.defined.add(node.name)
        elif isinstance(node, ast.Assign):
            for target in node.targets:
                result.defined.update(_target_names(target))
        elif isinstance(node, ast.AnnAssign):
            result.defined.update(_target_names(node.target))

    # Function-local imports are dependencies too
    for node in ast.walk(tree):
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            result.referenced.update(_import_references(node))

    return result


def _target_names(target: ast.AST) -> list[str]:
    if isinstance(target, ast.Name):
        return [target.id]
    if isinstance(target, (ast.Tuple, ast.List)):
        names = []
        for elt in target.elts:
            names.extend(_target_names(elt))
        return names
    return []


def _import_references(node: ast.Import | ast.ImportFrom) -> list[str]:
    """Module paths an import statement may resolve to.

    `from pkg import name` yields both `pkg` and `pkg.name`, since `name`
    may be a submodule. Relative imports keep their leading dots.
    """
    if isinstance(node, ast.Import):
        return [alias.name for alias in node.names]

    prefix = "." * node.level
    module = node.module or ""
    base = prefix + module
    refs = [base] if module else []
    for alias in node.names:
        if alias.name == "*":
            continue
        if module:
            refs.append(f"{base}.{alias.name}")
        else:
            refs.append(f"{prefix}{alias.name}")
    return refs
