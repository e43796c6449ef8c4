"""Error definitions for the formlingo translation toolkit."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class ErrorCategory(Enum):
    """Categorises skipped work so passes can report it in aggregate."""

    RESOLUTION = auto()


class FormlingoError(Exception):
    """Base exception for all custom errors."""


class ConfigurationError(FormlingoError):
    """Raised when settings, rule files or bundles are unusable."""


class IgnoreRuleError(ConfigurationError):
    """Raised when an ignore rule set is empty or a pattern cannot be compiled."""


class BundleFormatError(ConfigurationError):
    """Raised when a translation bundle does not hold an id -> text object."""


class PersistenceError(FormlingoError):
    """Raised when the backing translation store fails."""

    def __init__(self, message: str, *, operation: str, context: str | None = None) -> None:
        self.operation = operation
        self.context = context
        detail = f" ({context})" if context else ""
        super().__init__(f"{message} [operation: {operation}{detail}]")


class IncompleteUpdateError(PersistenceError):
    """Raised when a bulk update applied fewer rows than it was given."""

    def __init__(self, *, operation: str, expected: int, applied: int) -> None:
        self.expected = expected
        self.applied = applied
        super().__init__(
            f"Could not save all rows: {applied} of {expected} applied.",
            operation=operation,
        )


@dataclass
class ErrorRecord:
    """Stores context for an item skipped during a pass."""

    category: ErrorCategory
    message: str
    details: Optional[str] = None

    def describe(self) -> str:
        return f"{self.message} ({self.details})" if self.details else self.message
