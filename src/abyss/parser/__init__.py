"""Per-file reference extraction for Abyss."""

from abyss.parser.core import extract, has_structural_support
from abyss.parser.models import Extraction, detect_language

__all__ = ["Extraction", "detect_language", "extract", "has_structural_support"]
