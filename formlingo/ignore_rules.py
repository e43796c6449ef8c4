"""Ignore rules: glob patterns that exempt component names from translation."""

from __future__ import annotations

import logging
import pathlib
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from .errors import ConfigurationError, IgnoreRuleError
from .structures import Verdict

logger = logging.getLogger(__name__)

COMMENT_MARKER = "#"
NEGATION_MARKER = "!"


def glob_to_regex(pattern: str, *, case_sensitive: bool = False) -> re.Pattern[str]:
    """Compile a LIKE-style glob (``%`` any run, ``_`` one character)."""

    parts: List[str] = []
    for char in pattern:
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    flags = re.DOTALL if case_sensitive else re.DOTALL | re.IGNORECASE
    try:
        return re.compile("".join(parts), flags)
    except re.error as exc:  # pragma: no cover - escaped input always compiles
        raise IgnoreRuleError(f"Invalid ignore pattern '{pattern}': {exc}") from exc


@dataclass(frozen=True)
class IgnoreRuleSet:
    """Include and exclude glob patterns evaluated against component names."""

    includes: Tuple[str, ...] = ()
    excludes: Tuple[str, ...] = ()
    case_sensitive: bool = False
    _include_patterns: Tuple[re.Pattern[str], ...] = field(
        init=False, repr=False, compare=False
    )
    _exclude_patterns: Tuple[re.Pattern[str], ...] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        includes = tuple(self.includes)
        excludes = tuple(self.excludes)
        if not includes and not excludes:
            raise IgnoreRuleError(
                "No ignore specifications were found. An ignore rule set needs at "
                "least one include or exclude pattern."
            )
        object.__setattr__(self, "includes", includes)
        object.__setattr__(self, "excludes", excludes)
        object.__setattr__(
            self,
            "_include_patterns",
            tuple(glob_to_regex(p, case_sensitive=self.case_sensitive) for p in includes),
        )
        object.__setattr__(
            self,
            "_exclude_patterns",
            tuple(glob_to_regex(p, case_sensitive=self.case_sensitive) for p in excludes),
        )

    def is_ignored(self, name: str) -> bool:
        """True when ``name`` matches an include and none of the excludes."""

        included = (
            any(p.fullmatch(name) for p in self._include_patterns)
            if self._include_patterns
            else True
        )
        if not included:
            return False
        return not any(p.fullmatch(name) for p in self._exclude_patterns)


def classify(name: str, rules: IgnoreRuleSet) -> Verdict:
    """Decide whether ``name`` is eligible for static translation."""

    return Verdict.IGNORE if rules.is_ignored(name) else Verdict.STATIC


def parse_ignore_rules(lines: Iterable[str], *, case_sensitive: bool = False) -> IgnoreRuleSet:
    """Build a rule set from ignore-file lines.

    Blank lines and ``#`` comments are skipped, ``!pattern`` lines are
    excludes and every other line is an include.
    """

    includes: List[str] = []
    excludes: List[str] = []
    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith(COMMENT_MARKER):
            continue
        if line.startswith(NEGATION_MARKER):
            excludes.append(line[len(NEGATION_MARKER):])
        else:
            includes.append(line)
    return IgnoreRuleSet(
        includes=tuple(includes),
        excludes=tuple(excludes),
        case_sensitive=case_sensitive,
    )


def load_ignore_file(path: pathlib.Path | str, *, case_sensitive: bool = False) -> IgnoreRuleSet:
    """Read and parse an ignore file."""

    path = pathlib.Path(path)
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Could not process ignore file: {path} ({exc})") from exc

    try:
        rules = parse_ignore_rules(lines, case_sensitive=case_sensitive)
    except IgnoreRuleError as exc:
        raise IgnoreRuleError(f"{path}: {exc}") from exc

    logger.info(
        "Loaded %d include and %d exclude patterns from %s.",
        len(rules.includes),
        len(rules.excludes),
        path,
    )
    return rules
