"""Heuristics deciding whether captured UI text can be a static translation id."""

from __future__ import annotations

import re
from typing import Sequence

from .errors import ConfigurationError
from .structures import DYNAMIC_TRANSLATION, TextClassification, TextKind

# Unedited designer defaults ("CheckBox12", "Label3") are replaced at runtime.
DEFAULT_NAME_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"CheckBox\d+$"),
    re.compile(r"Label\d+$"),
    re.compile(r"ToolStrip\w*\d+$"),
)

LINE_BREAKS = ("\r", "\n")


def contains_letter(text: str) -> bool:
    """Detect whether the text holds at least one alphabetic character."""

    return any(char.isalpha() for char in text)


def is_multiline(text: str) -> bool:
    return any(marker in text for marker in LINE_BREAKS)


def looks_like_default_name(
    text: str,
    patterns: Sequence[re.Pattern[str]] = DEFAULT_NAME_PATTERNS,
) -> bool:
    return any(pattern.search(text) for pattern in patterns)


def classify_text(
    text: str,
    patterns: Sequence[re.Pattern[str]] = DEFAULT_NAME_PATTERNS,
) -> TextClassification:
    """Classify ``text`` as a static id or as needing a runtime lookup."""

    if (
        not text
        or is_multiline(text)
        or not contains_letter(text)
        or looks_like_default_name(text, patterns)
    ):
        return TextClassification(kind=TextKind.DYNAMIC, id_text=DYNAMIC_TRANSLATION)
    return TextClassification(kind=TextKind.STATIC, id_text=text)


def compile_patterns(expressions: Sequence[str]) -> tuple[re.Pattern[str], ...]:
    """Compile caller-supplied default-name expressions."""

    compiled = []
    for expression in expressions:
        try:
            compiled.append(re.compile(expression))
        except re.error as exc:
            raise ConfigurationError(
                f"Invalid default-name pattern '{expression}': {exc}"
            ) from exc
    return tuple(compiled)
