"""Core data structures for formlingo."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Sequence


PATH_SEPARATOR = "_"

DYNAMIC_TRANSLATION = "ReplaceWithDynamicTranslation"
DO_NOT_TRANSLATE = "DoNotTranslate"
RESERVED_IDS = frozenset({DYNAMIC_TRANSLATION, DO_NOT_TRANSLATE})


TextGetter = Callable[[], str]
TextSetter = Callable[[str], None]


@dataclass
class ComponentHandle:
    """A text-bearing UI element found by a tree walker."""

    path: str
    getter: TextGetter
    setter: TextSetter
    tooltip: Optional["ComponentHandle"] = None
    kind: str = "control"

    @property
    def text(self) -> str:
        return self.getter() or ""

    @text.setter
    def text(self, value: str) -> None:
        self.setter(value)


NameIndex = Dict[str, ComponentHandle]


@dataclass(frozen=True)
class TranslationRecord:
    """One row of the ``translations`` table."""

    id_text: str
    language_code: str
    translation: str


@dataclass(frozen=True)
class FormControlBinding:
    """One row of the ``form_controls`` table."""

    form_name: str
    control_name: str
    id_text: str

    @property
    def is_dynamic(self) -> bool:
        return self.id_text == DYNAMIC_TRANSLATION

    @property
    def is_ignored(self) -> bool:
        return self.id_text == DO_NOT_TRANSLATE


class Verdict(str, Enum):
    """Outcome of evaluating an ignore rule set against a name."""

    STATIC = "static"
    IGNORE = "ignore"


class TextKind(str, Enum):
    STATIC = "static"
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class TextClassification:
    """Whether captured text becomes a static id or needs a runtime lookup."""

    kind: TextKind
    id_text: str

    @property
    def is_dynamic(self) -> bool:
        return self.kind is TextKind.DYNAMIC


def join_path(segments: Sequence[str]) -> str:
    """Serialise component path segments, outermost first."""

    if any(not segment for segment in segments):
        raise ValueError("Component path segments must be non-empty.")
    return PATH_SEPARATOR.join(segments)
