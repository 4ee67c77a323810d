"""Custom exceptions for Abyss."""


class AbyssError(Exception):
    """Base exception for all Abyss errors."""


class ConfigError(AbyssError):
    """Configuration-related errors."""


class ParserError(AbyssError):
    """Structural parsing errors. Always recovered by the regex fallback."""


class ScanCancelled(AbyssError):
    """Raised when a scan is cancelled before it could complete."""

    def __init__(self, completed: int = 0, total: int = 0):
        self.completed = completed
        self.total = total
        super().__init__(
            f"Scan cancelled after {completed} of {total} files; "
            "partial results were discarded"
        )
