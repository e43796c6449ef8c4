"""Hierarchical component name resolution.

Translation keys are captured from one snapshot of a UI hierarchy and applied
to another. Wrapper containers are sometimes interposed between a known
ancestor and the leaf control in the meantime, so a key that is not found
verbatim is retried against paths holding exactly two extra segments between
the key's ancestors and its leaf. A fuzzy match is accepted only when it is
unique.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Generic, List, Mapping, Optional, TypeVar

from .structures import PATH_SEPARATOR

logger = logging.getLogger(__name__)

HandleT = TypeVar("HandleT")

MIN_FUZZY_SEGMENTS = 3
EXTRA_SEGMENTS = 2


class Outcome(str, Enum):
    EXACT = "exact"
    FUZZY = "fuzzy"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class Resolution(Generic[HandleT]):
    """Result of resolving one key, with enough detail for diagnostics."""

    key: str
    outcome: Outcome
    path: Optional[str] = None
    handle: Optional[HandleT] = None
    candidates: int = 0

    @property
    def found(self) -> bool:
        return self.outcome in (Outcome.EXACT, Outcome.FUZZY)


def fuzzy_pattern(key: str, separator: str = PATH_SEPARATOR) -> Optional[re.Pattern[str]]:
    """Build the anchored pattern for ``key``, or ``None`` if it is too short."""

    if len(key.split(separator)) < MIN_FUZZY_SEGMENTS:
        return None

    split_at = key.rindex(separator)
    prefix, leaf = key[:split_at], key[split_at:]
    sep = re.escape(separator)
    segment = f"[^{sep}]+"
    extra = "".join(f"{sep}{segment}" for _ in range(EXTRA_SEGMENTS))
    return re.compile(f"{re.escape(prefix)}{extra}{re.escape(leaf)}")


def resolve_detailed(
    key: str,
    index: Mapping[str, HandleT],
    separator: str = PATH_SEPARATOR,
) -> Resolution[HandleT]:
    """Resolve ``key`` against ``index`` and report how the match was made."""

    if key in index:
        return Resolution(key=key, outcome=Outcome.EXACT, path=key, handle=index[key], candidates=1)

    pattern = fuzzy_pattern(key, separator)
    if pattern is None:
        return Resolution(key=key, outcome=Outcome.NOT_FOUND)

    matches: List[str] = [path for path in index if pattern.fullmatch(path)]
    if len(matches) == 1:
        path = matches[0]
        logger.debug("Resolved '%s' to '%s' by hierarchy drift.", key, path)
        return Resolution(
            key=key,
            outcome=Outcome.FUZZY,
            path=path,
            handle=index[path],
            candidates=1,
        )
    if matches:
        logger.debug(
            "Skipping '%s': %d candidate paths (%s).",
            key,
            len(matches),
            ", ".join(sorted(matches)),
        )
        return Resolution(key=key, outcome=Outcome.AMBIGUOUS, candidates=len(matches))
    return Resolution(key=key, outcome=Outcome.NOT_FOUND)


def resolve(
    key: str,
    index: Mapping[str, HandleT],
    separator: str = PATH_SEPARATOR,
) -> Optional[HandleT]:
    """Return the handle for ``key``, or ``None`` when missing or ambiguous."""

    return resolve_detailed(key, index, separator).handle
