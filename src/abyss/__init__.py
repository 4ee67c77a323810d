"""Abyss - compile a source tree into a ranked, budgeted LLM context."""

__version__ = "0.1.0"

from abyss.context.engine import CancellationToken, ContextCompiler, compile_directory

__all__ = ["CancellationToken", "ContextCompiler", "compile_directory", "__version__"]
