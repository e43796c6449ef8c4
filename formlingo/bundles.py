"""Import and export of flat ``id -> translation`` JSON bundles.

One bundle holds one language, matching the files exchanged with
collaborative translation platforms.
"""

from __future__ import annotations

import json
import logging
import pathlib
from typing import Dict

from .errors import BundleFormatError, ConfigurationError
from .store import TranslationStore
from .structures import RESERVED_IDS, TranslationRecord

logger = logging.getLogger(__name__)


def load_bundle(path: pathlib.Path | str) -> Dict[str, str]:
    """Read a bundle file and validate its shape."""

    path = pathlib.Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise BundleFormatError(f"Translation bundle {path} is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Could not read translation bundle {path}: {exc}") from exc

    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise BundleFormatError(f"Translation bundle {path} is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise BundleFormatError(
            f"Translation bundle {path} must contain a single JSON object."
        )
    invalid = [key for key, value in payload.items() if not isinstance(value, str)]
    if invalid:
        raise BundleFormatError(
            f"Translation bundle {path} has non-text values for: " + ", ".join(invalid)
        )
    reserved = sorted(RESERVED_IDS.intersection(payload))
    if reserved:
        raise BundleFormatError(
            f"Translation bundle {path} uses reserved ids: " + ", ".join(reserved)
        )
    return payload


def import_bundle(store: TranslationStore, path: pathlib.Path | str, language: str) -> int:
    """Insert or update ``language`` translations from the bundle's entries.

    Rows for ids the bundle does not mention are kept.
    """

    bundle = load_bundle(path)
    records = [
        TranslationRecord(id_text=id_text, language_code=language, translation=text)
        for id_text, text in bundle.items()
    ]
    applied = store.replace_translations(records)
    logger.info("Imported %d %s translations from %s.", applied, language, path)
    return applied


def export_bundle(
    store: TranslationStore,
    path: pathlib.Path | str,
    language: str | None = None,
) -> int:
    """Write translations to a bundle file and return the number written."""

    records = store.fetch_translations(language=language)
    payload = {record.id_text: record.translation for record in records}
    if len(payload) != len(records):
        raise BundleFormatError(
            "Translations for several languages share ids; export one language per bundle."
        )
    path = pathlib.Path(path)
    try:
        path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2) + "\n",
            encoding="utf-8",
        )
    except OSError as exc:
        raise ConfigurationError(f"Could not write translation bundle {path}: {exc}") from exc
    logger.info("Exported %d translations to %s.", len(records), path)
    return len(records)
