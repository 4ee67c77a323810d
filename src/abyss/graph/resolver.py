"""Resolve extracted module references to files in the scanned set.

Resolution is best-effort. Languages with import rules (Python, JS/TS, Go,
Rust, Java, C/C++) resolve only through those rules, so imports of the
standard library or third-party packages stay unresolved instead of landing
on a same-named project file. Other languages fall back to a match on file
stem, then on a uniquely defined symbol name. Anything left is unresolved
and dropped by the caller.
"""

from __future__ import annotations

import posixpath
import re
import sys
from collections import defaultdict
from pathlib import PurePosixPath
from typing import Iterable, Mapping

from abyss.parser.models import EXTENSION_LANGUAGE_MAP

_JS_EXTENSIONS = (".ts", ".tsx", ".d.ts", ".js", ".jsx", ".mjs", ".cjs")
_JS_LANGUAGES = ("javascript", "typescript", "tsx")
# Languages whose references are module paths with their own lookup rules
_RULE_LANGUAGES = frozenset(("python", "go", "rust", "java", "c", "cpp", *_JS_LANGUAGES))


def _common_prefix_len(a: str, b: str) -> int:
    parts_a = PurePosixPath(a).parent.parts
    parts_b = PurePosixPath(b).parent.parts
    n = 0
    for x, y in zip(parts_a, parts_b):
        if x != y:
            break
        n += 1
    return n


def reference_name(ref: str) -> str:
    """The trailing name of a reference, e.g. `a.b` -> `b`, `./x.js` -> `x`."""
    ref = ref.strip().rstrip("/;")
    if "::" in ref:
        return ref.split("{")[0].rstrip(":").split("::")[-1]
    if "/" in ref:
        return PurePosixPath(ref).stem
    if PurePosixPath(ref).suffix.lower() in EXTENSION_LANGUAGE_MAP:
        return PurePosixPath(ref).stem
    return ref.lstrip(".").split(".")[-1]


class ModuleResolver:
    """Maps references to file paths using an index over the scanned set."""

    def __init__(
        self,
        paths: Iterable[str],
        defined: Mapping[str, Iterable[str]] | None = None,
    ) -> None:
        self.paths: list[str] = sorted(set(paths))
        self._path_set = set(self.paths)
        self._by_stem: dict[str, list[str]] = defaultdict(list)
        self._by_dir: dict[str, list[str]] = defaultdict(list)
        self._by_symbol: dict[str, set[str]] = defaultdict(set)

        for path in self.paths:
            p = PurePosixPath(path)
            self._by_stem[p.stem].append(path)
            self._by_dir[posixpath.dirname(path)].append(path)

        for path, names in (defined or {}).items():
            for name in names:
                self._by_symbol[name].add(path)

    # -------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------

    def resolve(self, ref: str, from_path: str, language: str | None) -> list[str]:
        """Return the files satisfying `ref`, never including `from_path`."""
        ref = ref.strip()
        if not ref:
            return []

        if language in _RULE_LANGUAGES:
            targets = self._resolve_language(ref, from_path, language)
        else:
            targets = self._resolve_stem(ref, from_path) or self._resolve_symbol(ref)

        return sorted(t for t in set(targets) if t != from_path)

    def _resolve_language(self, ref: str, from_path: str, language: str | None) -> list[str]:
        if language == "python":
            return self._resolve_python(ref, from_path)
        if language in _JS_LANGUAGES:
            return self._resolve_js(ref, from_path)
        if language == "go":
            return self._resolve_go(ref)
        if language == "rust":
            return self._resolve_rust(ref, from_path)
        if language == "java":
            return self._resolve_java(ref)
        if language in ("c", "cpp"):
            return self._resolve_relative_file(ref, from_path)
        return []

    # -------------------------------------------------------------------
    # Language rules
    # -------------------------------------------------------------------

    def _resolve_python(self, ref: str, from_path: str) -> list[str]:
        if ref.startswith("."):
            level = len(ref) - len(ref.lstrip("."))
            rest = ref[level:]
            base = posixpath.dirname(from_path)
            for _ in range(level - 1):
                base = posixpath.dirname(base)
            rel = posixpath.join(base, *rest.split(".")) if rest else base
            for candidate in (f"{rel}.py", f"{rel}.pyi", posixpath.join(rel, "__init__.py")):
                candidate = posixpath.normpath(candidate)
                if candidate in self._path_set:
                    return [candidate]
            return []

        top = ref.split(".")[0]
        rel = "/".join(ref.split("."))
        for suffix in (f"{rel}.py", f"{rel}.pyi", f"{rel}/__init__.py"):
            matches = [
                m
                for m in self._match_suffix(suffix)
                if self._is_import_root(m[: len(m) - len(suffix)].rstrip("/"), top)
            ]
            if matches:
                return [self._closest(matches, from_path)]
        return []

    def _is_import_root(self, directory: str, top: str) -> bool:
        """Whether `top` is importable as a top-level name from `directory`.

        A directory that is itself a package would give the module a dotted
        prefix. Standard library names only match at the scan root.
        """
        if not directory:
            return True
        if top in sys.stdlib_module_names:
            return False
        return posixpath.join(directory, "__init__.py") not in self._path_set

    def _resolve_go(self, ref: str) -> list[str]:
        ref = ref.strip("/")
        # Standard library paths have no dot in their first segment
        if "." not in ref.partition("/")[0]:
            return []
        return self._resolve_package_dir(ref, ".go")

    def _resolve_js(self, ref: str, from_path: str) -> list[str]:
        if not ref.startswith((".", "/")):
            return []
        if ref.startswith("/"):
            base = posixpath.normpath(ref.lstrip("/"))
        else:
            base = posixpath.normpath(posixpath.join(posixpath.dirname(from_path), ref))
        candidates = [base]
        candidates.extend(base + ext for ext in _JS_EXTENSIONS)
        candidates.extend(posixpath.join(base, "index" + ext) for ext in _JS_EXTENSIONS)
        for candidate in candidates:
            if candidate in self._path_set:
                return [candidate]
        return []

    def _resolve_package_dir(self, ref: str, extension: str) -> list[str]:
        """Match an import path to the directory whose path is its suffix."""
        ref = ref.strip("/")
        best_dir = None
        for directory in self._by_dir:
            if not directory:
                continue
            if ref == directory or ref.endswith("/" + directory):
                if best_dir is None or len(directory) > len(best_dir):
                    best_dir = directory
        if best_dir is None:
            return []
        return [p for p in self._by_dir[best_dir] if p.endswith(extension)]

    def _resolve_rust(self, ref: str, from_path: str) -> list[str]:
        cleaned = re.sub(r"\s+", "", ref.split("{")[0]).rstrip(":")
        parts = [p for p in cleaned.split("::") if p]
        if not parts:
            return []

        module_dir = self._rust_module_dir(from_path)
        if parts[0] == "crate":
            base = self._rust_crate_root(from_path)
            rest = parts[1:]
        elif parts[0] == "super":
            base = module_dir
            rest = parts
            while rest and rest[0] == "super":
                base = posixpath.dirname(base)
                rest = rest[1:]
        elif parts[0] == "self":
            base = module_dir
            rest = parts[1:]
        else:
            base = module_dir
            rest = parts

        for k in range(len(rest), 0, -1):
            rel = posixpath.join(base, *rest[:k]) if base else "/".join(rest[:k])
            for candidate in (f"{rel}.rs", posixpath.join(rel, "mod.rs")):
                if candidate in self._path_set:
                    return [candidate]
        return []

    @staticmethod
    def _rust_module_dir(from_path: str) -> str:
        p = PurePosixPath(from_path)
        parent = posixpath.dirname(from_path)
        if p.stem in ("mod", "lib", "main"):
            return parent
        return posixpath.join(parent, p.stem) if parent else p.stem

    @staticmethod
    def _rust_crate_root(from_path: str) -> str:
        parts = PurePosixPath(from_path).parent.parts
        if "src" in parts:
            idx = len(parts) - 1 - list(reversed(parts)).index("src")
            return "/".join(parts[: idx + 1])
        return "/".join(parts)

    def _resolve_java(self, ref: str) -> list[str]:
        if ref.endswith(".*"):
            return self._resolve_package_dir(ref[:-2].replace(".", "/"), ".java")
        parts = ref.split(".")
        # Static imports name members; drop trailing segments until a class file matches
        for k in range(len(parts), 0, -1):
            matches = self._match_suffix("/".join(parts[:k]) + ".java")
            if matches:
                return [matches[0]]
        return []

    def _resolve_relative_file(self, ref: str, from_path: str) -> list[str]:
        local = posixpath.normpath(posixpath.join(posixpath.dirname(from_path), ref))
        if local in self._path_set:
            return [local]
        matches = self._match_suffix(ref)
        if matches:
            return [self._closest(matches, from_path)]
        return []

    # -------------------------------------------------------------------
    # Generic rules
    # -------------------------------------------------------------------

    def _resolve_stem(self, ref: str, from_path: str) -> list[str]:
        name = reference_name(ref)
        candidates = [p for p in self._by_stem.get(name, []) if p != from_path]
        if not candidates:
            return []
        return [self._closest(candidates, from_path)]

    def _resolve_symbol(self, ref: str) -> list[str]:
        owners = self._by_symbol.get(reference_name(ref), set())
        if len(owners) == 1:
            return list(owners)
        return []

    def _match_suffix(self, suffix: str) -> list[str]:
        suffix = suffix.lstrip("/")
        return [p for p in self.paths if p == suffix or p.endswith("/" + suffix)]

    @staticmethod
    def _closest(candidates: list[str], from_path: str) -> str:
        """Prefer the candidate sharing the longest directory prefix, then lexical order."""
        return min(candidates, key=lambda c: (-_common_prefix_len(c, from_path), len(c), c))
