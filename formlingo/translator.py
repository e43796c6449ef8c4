"""Translation passes over an indexed component tree."""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .classifier import DEFAULT_NAME_PATTERNS
from .components import capture_bindings
from .errors import ErrorCategory, ErrorRecord
from .ignore_rules import IgnoreRuleSet
from .resolver import Outcome, resolve_detailed
from .store import TranslationStore, translate
from .structures import RESERVED_IDS, ComponentHandle, NameIndex, TranslationRecord

logger = logging.getLogger(__name__)


@dataclass
class TranslationSummary:
    """Report returned after translating one form."""

    form_name: str
    language: str
    static_applied: int
    dynamic_applied: int
    fuzzy_matches: int
    tooltips_translated: int
    unresolved: List[str]
    elapsed_seconds: float
    error_messages: List[str] = field(default_factory=list)

    @property
    def total_applied(self) -> int:
        return self.static_applied + self.dynamic_applied


@dataclass
class CaptureSummary:
    """Report returned after capturing a form's bindings into the store."""

    form_name: str
    source_language: str
    bindings_saved: int
    static_bindings: int
    dynamic_bindings: int
    translations_seeded: int
    controls_ignored: int


def _translate_tooltip(handle: ComponentHandle, language: str, store: TranslationStore) -> int:
    tooltip = handle.tooltip
    if tooltip is None or not tooltip.text:
        return 0
    tooltip.text = translate(tooltip.text, language, store)
    return 1


def translate_components(
    index: NameIndex,
    form_name: str,
    language: str,
    store: TranslationStore,
) -> TranslationSummary:
    """Translate every bound component of ``form_name`` into ``language``.

    Static bindings are resolved by name, tolerating hierarchy drift. Dynamic
    bindings must match exactly; their current text is looked up in either
    direction. Bindings without a matching component are skipped and listed
    in the summary.
    """

    start_time = time.time()
    records: List[ErrorRecord] = []
    unresolved: List[str] = []
    static_applied = dynamic_applied = fuzzy_matches = tooltips = 0

    for control_name, _id_text, translation in store.fetch_static_bindings(form_name, language):
        resolution = resolve_detailed(control_name, index)
        if resolution.handle is None:
            unresolved.append(control_name)
            records.append(
                ErrorRecord(
                    category=ErrorCategory.RESOLUTION,
                    message=f"No unique component matches '{control_name}'.",
                    details=resolution.outcome.value,
                )
            )
            continue
        resolution.handle.text = translation
        static_applied += 1
        if resolution.outcome is Outcome.FUZZY:
            fuzzy_matches += 1
        tooltips += _translate_tooltip(resolution.handle, language, store)

    for control_name in store.fetch_dynamic_controls(form_name):
        handle = index.get(control_name)
        if handle is None:
            unresolved.append(control_name)
            records.append(
                ErrorRecord(
                    category=ErrorCategory.RESOLUTION,
                    message=f"No component named '{control_name}' for dynamic translation.",
                    details=Outcome.NOT_FOUND.value,
                )
            )
            continue
        handle.text = translate(handle.text, language, store)
        dynamic_applied += 1
        tooltips += _translate_tooltip(handle, language, store)

    if unresolved:
        logger.info(
            "%s: %d bindings had no matching component.", form_name, len(unresolved)
        )

    return TranslationSummary(
        form_name=form_name,
        language=language,
        static_applied=static_applied,
        dynamic_applied=dynamic_applied,
        fuzzy_matches=fuzzy_matches,
        tooltips_translated=tooltips,
        unresolved=unresolved,
        elapsed_seconds=time.time() - start_time,
        error_messages=[record.describe() for record in records],
    )


def capture_translations(
    form_name: str,
    index: NameIndex,
    store: TranslationStore,
    *,
    source_language: str = "en",
    ignore_rules: Optional[IgnoreRuleSet] = None,
    patterns: Sequence[re.Pattern[str]] = DEFAULT_NAME_PATTERNS,
) -> CaptureSummary:
    """Save a form's bindings and seed source-language translations.

    Every literal id is stored as its own ``source_language`` translation so
    reverse lookups can find it. Controls matched by ``ignore_rules`` are not
    seeded and are rebound to ``DoNotTranslate``.
    """

    bindings = capture_bindings(form_name, index, patterns)
    saved = store.replace_bindings(bindings)

    seed_ids = dict.fromkeys(
        binding.id_text
        for binding in bindings
        if binding.id_text not in RESERVED_IDS
        and not (ignore_rules and ignore_rules.is_ignored(binding.control_name))
    )
    seeded = store.replace_translations(
        [
            TranslationRecord(id_text=id_text, language_code=source_language, translation=id_text)
            for id_text in seed_ids
        ]
    )
    ignored = store.mark_ignored(ignore_rules) if ignore_rules else 0

    dynamic = sum(1 for binding in bindings if binding.is_dynamic)
    return CaptureSummary(
        form_name=form_name,
        source_language=source_language,
        bindings_saved=saved,
        static_bindings=len(bindings) - dynamic,
        dynamic_bindings=dynamic,
        translations_seeded=seeded,
        controls_ignored=ignored,
    )
