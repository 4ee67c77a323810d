"""Tests for reference extraction."""

from __future__ import annotations

import pytest

from abyss.parser import detect_language, extract, has_structural_support
from abyss.parser.fallback import extract_fallback, strip_comments
from abyss.parser.python_parser import extract_python
from abyss.parser.tree_sitter_parser import is_available


class TestLanguageDetection:
    def test_python(self):
        assert detect_language("main.py") == "python"
        assert detect_language("types.pyi") == "python"

    def test_structural_languages(self):
        assert detect_language("app.js") == "javascript"
        assert detect_language("app.ts") == "typescript"
        assert detect_language("App.tsx") == "tsx"
        assert detect_language("main.go") == "go"
        assert detect_language("src/lib.rs") == "rust"
        assert detect_language("Main.java") == "java"

    def test_text_formats(self):
        assert detect_language("README.md") == "markdown"
        assert detect_language("config.yml") == "yaml"
        assert detect_language("Makefile") == "make"
        assert detect_language("docker/Dockerfile") == "dockerfile"

    def test_unknown(self):
        assert detect_language("LICENSE") is None
        assert detect_language("image.png") is None

    def test_structural_support(self):
        assert has_structural_support("python")
        assert has_structural_support("rust")
        assert not has_structural_support("ruby")
        assert not has_structural_support(None)


class TestPythonExtractor:
    def test_definitions(self, sample_python_source: str):
        result = extract_python(sample_python_source)
        assert result.defined == {
            "CONSTANT_VALUE",
            "first",
            "second",
            "threshold",
            "Tokenizer",
            "fetch",
            "tokenize",
        }
        assert not result.fallback

    def test_methods_are_not_module_level(self, sample_python_source: str):
        result = extract_python(sample_python_source)
        assert "split" not in result.defined
        assert "__init__" not in result.defined

    def test_absolute_imports(self, sample_python_source: str):
        result = extract_python(sample_python_source)
        assert "os" in result.referenced
        assert "json" in result.referenced
        assert "typing" in result.referenced
        assert "typing.List" in result.referenced
        assert "pathlib.Path" in result.referenced

    def test_relative_imports_keep_dots(self, sample_python_source: str):
        result = extract_python(sample_python_source)
        assert ".siblings" in result.referenced
        assert "..shared.helpers" in result.referenced
        assert "..shared.helpers.slugify" in result.referenced

    def test_function_local_imports(self, sample_python_source: str):
        result = extract_python(sample_python_source)
        assert "re" in result.referenced

    def test_star_import(self):
        result = extract_python("from pkg.mod import *\n")
        assert result.referenced == {"pkg.mod"}


class TestExtractRegistry:
    def test_python_dispatch(self):
        result = extract("import a.b\n\ndef f():\n    pass\n", "python")
        assert result.referenced == {"a.b"}
        assert result.defined == {"f"}
        assert result.errors == []

    def test_accepts_bytes(self):
        result = extract(b"import os\n", "python")
        assert result.referenced == {"os"}

    def test_bytes_with_byte_order_mark(self):
        result = extract(b"\xef\xbb\xbfimport os\n\nclass Config:\n    pass\n", "python")
        assert not result.fallback
        assert result.referenced == {"os"}
        assert result.defined == {"Config"}

    def test_syntax_error_falls_back(self):
        source = "import os\nfrom app import models\n\ndef broken(:\n    pass\n"
        result = extract(source, "python", "broken.py")

        assert result.fallback
        assert len(result.errors) == 1
        assert "SyntaxError" in result.errors[0]
        assert "os" in result.referenced
        assert "app" in result.referenced

    def test_deeply_nested_source_falls_back(self):
        source = "import os\nx = 1" + " + 1" * 10_000 + "\n"
        result = extract(source, "python", "gen.py")

        assert result.fallback
        assert len(result.errors) == 1
        assert result.referenced == {"os"}

    def test_syntax_error_is_logged(self, caplog):
        with caplog.at_level("WARNING", logger="abyss.parser"):
            extract("def broken(:\n", "python", "broken.py")
        assert "broken.py" in caplog.text

    def test_unknown_language_uses_fallback(self):
        result = extract('#include "util.h"\n#include <stdio.h>\n', "c")
        assert result.fallback
        assert result.errors == []
        assert result.referenced == {"util.h", "stdio.h"}

    def test_deterministic(self, sample_python_source: str):
        first = extract(sample_python_source, "python")
        second = extract(sample_python_source, "python")
        assert first == second


class TestFallbackExtractor:
    def test_shell_source(self):
        result = extract_fallback("#!/bin/sh\nsource lib/common.sh\n. ./env.sh\n", "shell")
        assert "lib/common.sh" in result.referenced
        assert "./env.sh" in result.referenced

    def test_commented_import_ignored(self):
        source = "# require 'secret'\nrequire 'json'\n"
        result = extract_fallback(source, "ruby")
        assert result.referenced == {"json"}

    def test_block_commented_import_ignored(self):
        source = "/*\nimport old.thing;\n*/\nimport new.thing;\n"
        result = extract_fallback(source, "kotlin")
        assert result.referenced == {"new.thing"}

    def test_css_import(self):
        result = extract_fallback('@import "base.css";\n', "css")
        assert result.referenced == {"base.css"}

    def test_definitions(self):
        source = "def helper\nend\n\nclass Widget\nend\n\n  def nested\n  end\n"
        result = extract_fallback(source, "ruby")
        assert result.defined == {"helper", "Widget"}


class TestStripComments:
    def test_removes_comments_and_blank_lines(self):
        source = "// header\nint x = 1;\n\n/* block\n   comment */\nint y = 2;\n"
        assert strip_comments(source, "c") == "int x = 1;\nint y = 2;\n"

    def test_keeps_trailing_comments(self):
        source = "x = 1  # explain\n"
        assert strip_comments(source, "python") == source

    def test_idempotent(self):
        source = "# a\nimport os\n\n# b\n\ndef f():\n    # c\n    return 1\n"
        once = strip_comments(source, "python")
        assert strip_comments(once, "python") == once

    @pytest.mark.parametrize(
        "source",
        [
            "/*\n/*////*/\n#//\nx/**/",
            "/* a */ int x;\n// b\n/* c\n*/\nint y;\n",
            "/*\n// */ y = 1;\n/* */\nz\n",
            "/* never closed\nint x;\n",
        ],
    )
    def test_idempotent_with_block_comments(self, source):
        once = strip_comments(source, "c")
        assert strip_comments(once, "c") == once

    def test_block_followed_by_code_is_kept(self):
        source = "/* legacy\n   note */ int x = 1;\n/* gone */\nint y;\n"
        assert strip_comments(source, "c") == "/* legacy\n   note */ int x = 1;\nint y;\n"

    def test_unknown_language_only_drops_blank_lines(self):
        assert strip_comments("a\n\n# b\n", None) == "a\n# b\n"


@pytest.mark.skipif(not is_available("javascript"), reason="tree-sitter-javascript not installed")
class TestJavaScriptExtractor:
    def test_imports_and_requires(self):
        source = (
            'import { render } from "./view";\n'
            "const fs = require('fs');\n"
            'export { helper } from "./helpers.js";\n'
            "export function main() { return render(); }\n"
            "class Widget {}\n"
            "const answer = 42;\n"
        )
        result = extract(source, "javascript")
        assert not result.fallback
        assert result.referenced == {"./view", "fs", "./helpers.js"}
        assert result.defined == {"main", "Widget", "fs", "answer"}

    def test_syntax_error_falls_back(self):
        result = extract("import { x from './x';\nfunction (\n", "javascript")
        assert result.fallback
        assert result.errors


@pytest.mark.skipif(not is_available("go"), reason="tree-sitter-go not installed")
class TestGoExtractor:
    def test_imports_and_definitions(self):
        source = (
            "package main\n\n"
            'import (\n\t"fmt"\n\t"example.com/app/store"\n)\n\n'
            "type Server struct{}\n\n"
            "func (s *Server) Run() {}\n\n"
            "func main() {\n\tfmt.Println(store.Name)\n}\n"
        )
        result = extract(source, "go")
        assert result.referenced == {"fmt", "example.com/app/store"}
        assert {"Server", "Run", "main"} <= result.defined


@pytest.mark.skipif(not is_available("rust"), reason="tree-sitter-rust not installed")
class TestRustExtractor:
    def test_use_and_mod(self):
        source = "mod config;\nuse crate::engine::Runner;\n\npub struct App;\n\nfn main() {}\n"
        result = extract(source, "rust")
        assert "config" in result.referenced
        assert "crate::engine::Runner" in result.referenced
        assert {"App", "main", "config"} <= result.defined


@pytest.mark.skipif(not is_available("java"), reason="tree-sitter-java not installed")
class TestJavaExtractor:
    def test_imports(self):
        source = (
            "package com.shop;\n\n"
            "import com.shop.model.Order;\n"
            "import java.util.*;\n\n"
            "public class Checkout {}\n"
        )
        result = extract(source, "java")
        assert result.referenced == {"com.shop.model.Order", "java.util.*"}
        assert result.defined == {"Checkout"}
