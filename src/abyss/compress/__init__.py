"""Signature-preserving structural compression."""

from abyss.compress.core import compress

__all__ = ["compress"]
