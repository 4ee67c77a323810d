"""Data models for per-file reference extraction."""

from __future__ import annotations

from pathlib import PurePosixPath

from pydantic import BaseModel, Field


class Extraction(BaseModel):
    """Symbols a file defines and modules it references."""

    language: str | None = None
    defined: set[str] = Field(default_factory=set)
    referenced: set[str] = Field(default_factory=set)
    errors: list[str] = Field(default_factory=list)
    fallback: bool = False  # extracted by the regex heuristics


# Language detection by file extension
EXTENSION_LANGUAGE_MAP: dict[str, str] = {
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".c": "c",
    ".h": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".kt": "kotlin",
    ".swift": "swift",
    ".scala": "scala",
    ".php": "php",
    ".rb": "ruby",
    ".sh": "shell",
    ".bash": "shell",
    ".zsh": "shell",
    ".pl": "perl",
    ".r": "r",
    ".lua": "lua",
    ".sql": "sql",
    ".css": "css",
    ".scss": "scss",
    ".less": "less",
    ".html": "html",
    ".xml": "xml",
    ".md": "markdown",
    ".rst": "rst",
    ".txt": "text",
    ".toml": "toml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".json": "json",
    ".ini": "ini",
    ".cfg": "ini",
}

# Extension-less files recognized by name
FILENAME_LANGUAGE_MAP: dict[str, str] = {
    "makefile": "make",
    "dockerfile": "dockerfile",
    "gemfile": "ruby",
    "rakefile": "ruby",
    "cmakelists.txt": "cmake",
}

# Line and block comment markers per language tag
COMMENT_SYNTAX: dict[str, tuple[tuple[str, ...], tuple[str, str] | None]] = {
    "python": (("#",), None),
    "javascript": (("//",), ("/*", "*/")),
    "typescript": (("//",), ("/*", "*/")),
    "tsx": (("//",), ("/*", "*/")),
    "go": (("//",), ("/*", "*/")),
    "rust": (("//",), ("/*", "*/")),
    "java": (("//",), ("/*", "*/")),
    "c": (("//",), ("/*", "*/")),
    "cpp": (("//",), ("/*", "*/")),
    "csharp": (("//",), ("/*", "*/")),
    "kotlin": (("//",), ("/*", "*/")),
    "swift": (("//",), ("/*", "*/")),
    "scala": (("//",), ("/*", "*/")),
    "php": (("//", "#"), ("/*", "*/")),
    "css": ((), ("/*", "*/")),
    "scss": (("//",), ("/*", "*/")),
    "less": (("//",), ("/*", "*/")),
    "ruby": (("#",), None),
    "shell": (("#",), None),
    "perl": (("#",), None),
    "r": (("#",), None),
    "make": (("#",), None),
    "dockerfile": (("#",), None),
    "cmake": (("#",), None),
    "toml": (("#",), None),
    "yaml": (("#",), None),
    "ini": ((";", "#"), None),
    "lua": (("--",), None),
    "sql": (("--",), ("/*", "*/")),
    "html": ((), ("<!--", "-->")),
    "xml": ((), ("<!--", "-->")),
    "markdown": ((), ("<!--", "-->")),
}


def detect_language(file_path: str) -> str | None:
    """Detect the language tag from a file's extension or name."""
    path = PurePosixPath(file_path)
    name = path.name.lower()
    if name in FILENAME_LANGUAGE_MAP:
        return FILENAME_LANGUAGE_MAP[name]
    return EXTENSION_LANGUAGE_MAP.get(path.suffix.lower())
