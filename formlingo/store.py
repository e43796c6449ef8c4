"""Translation store backends and the bidirectional lookup."""

from __future__ import annotations

import logging
import pathlib
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .errors import ConfigurationError, IncompleteUpdateError, PersistenceError
from .ignore_rules import IgnoreRuleSet
from .structures import (
    DO_NOT_TRANSLATE,
    DYNAMIC_TRANSLATION,
    RESERVED_IDS,
    FormControlBinding,
    TranslationRecord,
)

logger = logging.getLogger(__name__)

MEMORY_LOCATIONS = {"memory", ":memory:"}

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS "form_controls" (
        "form_name" TEXT,
        "control_name" TEXT,
        "id_text" TEXT NOT NULL,
        PRIMARY KEY("form_name", "control_name")
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS "translations" (
        "id_text" TEXT,
        "language_code" TEXT,
        "translation" TEXT NOT NULL,
        PRIMARY KEY("id_text", "language_code")
    )
    """,
)

# Forward and reverse branches are parenthesised explicitly. The reverse branch
# maps already-translated text back to its id before looking up ``language``.
LOOKUP_QUERY = """
    SELECT translation FROM translations
    WHERE (language_code = ? AND id_text = ?)
       OR (language_code = ? AND id_text IN (
              SELECT id_text FROM translations WHERE translation = ?))
    LIMIT 1
"""

StaticRow = Tuple[str, str, str]


class TranslationStore(ABC):
    """Abstract backing store for translations and form control bindings."""

    name = "abstract"

    @abstractmethod
    def create_schema(self) -> None:
        """Create the ``form_controls`` and ``translations`` tables."""

    @abstractmethod
    def lookup(self, text: str, language: str) -> Optional[str]:
        """Return the forward or reverse translation of ``text``, if any."""

    @abstractmethod
    def fetch_translations(
        self,
        language: str | None = None,
        id_text: str | None = None,
    ) -> List[TranslationRecord]:
        """List translations, optionally filtered by language and id."""

    @abstractmethod
    def fetch_bindings(self, form_name: str | None = None) -> List[FormControlBinding]:
        """List form control bindings, optionally for one form."""

    @abstractmethod
    def fetch_static_bindings(self, form_name: str, language: str) -> List[StaticRow]:
        """Return ``(control_name, id_text, translation)`` rows for a form."""

    @abstractmethod
    def fetch_dynamic_controls(self, form_name: str) -> List[str]:
        """Return control names bound to the dynamic translation sentinel."""

    @abstractmethod
    def replace_translations(self, records: Sequence[TranslationRecord]) -> int:
        """Insert or replace translations and return the number applied."""

    @abstractmethod
    def replace_bindings(self, bindings: Sequence[FormControlBinding]) -> int:
        """Insert or replace bindings and return the number applied."""

    @abstractmethod
    def mark_ignored(self, rules: IgnoreRuleSet) -> int:
        """Bind every control the rules ignore to ``DoNotTranslate``."""


def _ensure_complete(operation: str, expected: int, applied: int) -> int:
    if applied != expected:
        raise IncompleteUpdateError(operation=operation, expected=expected, applied=applied)
    logger.info("%s: %d rows saved.", operation, applied)
    return applied


class MemoryTranslationStore(TranslationStore):
    """An in-process store with the same semantics as the SQLite backend."""

    name = "memory"

    def __init__(self) -> None:
        self._translations: Dict[Tuple[str, str], str] = {}
        self._bindings: Dict[Tuple[str, str], str] = {}

    def create_schema(self) -> None:
        return None

    def lookup(self, text: str, language: str) -> Optional[str]:
        forward = self._translations.get((text, language))
        if forward is not None:
            return forward
        for (id_text, _), translation in self._translations.items():
            if translation != text:
                continue
            reverse = self._translations.get((id_text, language))
            if reverse is not None:
                return reverse
        return None

    def fetch_translations(
        self,
        language: str | None = None,
        id_text: str | None = None,
    ) -> List[TranslationRecord]:
        return [
            TranslationRecord(id_text=key_id, language_code=key_language, translation=text)
            for (key_id, key_language), text in self._translations.items()
            if (not language or key_language == language)
            and (not id_text or key_id == id_text)
        ]

    def fetch_bindings(self, form_name: str | None = None) -> List[FormControlBinding]:
        return [
            FormControlBinding(form_name=form, control_name=control, id_text=id_text)
            for (form, control), id_text in self._bindings.items()
            if not form_name or form == form_name
        ]

    def fetch_static_bindings(self, form_name: str, language: str) -> List[StaticRow]:
        rows: List[StaticRow] = []
        for (form, control), id_text in self._bindings.items():
            if form != form_name or id_text in RESERVED_IDS:
                continue
            translation = self._translations.get((id_text, language))
            if translation is not None:
                rows.append((control, id_text, translation))
        return rows

    def fetch_dynamic_controls(self, form_name: str) -> List[str]:
        return [
            control
            for (form, control), id_text in self._bindings.items()
            if form == form_name and id_text == DYNAMIC_TRANSLATION
        ]

    def replace_translations(self, records: Sequence[TranslationRecord]) -> int:
        applied = 0
        for record in records:
            self._translations[(record.id_text, record.language_code)] = record.translation
            applied += 1
        return _ensure_complete("replace_translations", len(records), applied)

    def replace_bindings(self, bindings: Sequence[FormControlBinding]) -> int:
        applied = 0
        for binding in bindings:
            self._bindings[(binding.form_name, binding.control_name)] = binding.id_text
            applied += 1
        return _ensure_complete("replace_bindings", len(bindings), applied)

    def mark_ignored(self, rules: IgnoreRuleSet) -> int:
        updated = 0
        for key in self._bindings:
            if rules.is_ignored(key[1]):
                self._bindings[key] = DO_NOT_TRANSLATE
                updated += 1
        return updated


class SQLiteTranslationStore(TranslationStore):
    """Translation store backed by an SQLite database file."""

    name = "sqlite"

    def __init__(self, path: pathlib.Path | str, *, debug: bool = False) -> None:
        self.path = pathlib.Path(path).expanduser()
        self.debug = debug

    @contextmanager
    def _connect(
        self,
        operation: str,
        context: str | None = None,
        *,
        create: bool = False,
    ) -> Iterator[sqlite3.Connection]:
        """Open a short-lived connection; the database must exist unless ``create``."""

        mode = "rwc" if create else "rw"
        uri = f"{self.path.resolve().as_uri()}?mode={mode}"
        try:
            connection = sqlite3.connect(uri, uri=True)
        except sqlite3.Error as exc:
            raise PersistenceError(
                f"Could not open translation database {self.path}: {exc}",
                operation=operation,
                context=context,
            ) from exc

        if self.debug:
            connection.set_trace_callback(lambda statement: logger.debug("SQL: %s", statement))
        try:
            yield connection
        except sqlite3.Error as exc:
            raise PersistenceError(
                f"Translation database {self.path} failed: {exc}",
                operation=operation,
                context=context,
            ) from exc
        finally:
            connection.close()

    def create_schema(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(
                f"Could not create a directory for translation database {self.path}: {exc}",
                operation="create_schema",
                context=str(self.path),
            ) from exc
        with self._connect("create_schema", str(self.path), create=True) as connection:
            with connection:
                for statement in SCHEMA_STATEMENTS:
                    connection.execute(statement)
        logger.info("Translation database ready at %s.", self.path)

    def lookup(self, text: str, language: str) -> Optional[str]:
        context = f"language: {language}, text: {text!r}"
        with self._connect("lookup", context) as connection:
            row = connection.execute(
                LOOKUP_QUERY, (language, text, language, text)
            ).fetchone()
        return row[0] if row else None

    def fetch_translations(
        self,
        language: str | None = None,
        id_text: str | None = None,
    ) -> List[TranslationRecord]:
        clauses: List[str] = []
        parameters: List[str] = []
        if language:
            clauses.append("language_code = ?")
            parameters.append(language)
        if id_text:
            clauses.append("id_text = ?")
            parameters.append(id_text)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        query = f"SELECT id_text, language_code, translation FROM translations{where}"

        with self._connect("fetch_translations", f"language: {language or 'all'}") as connection:
            rows = connection.execute(query, parameters).fetchall()
        return [TranslationRecord(*row) for row in rows]

    def fetch_bindings(self, form_name: str | None = None) -> List[FormControlBinding]:
        query = "SELECT form_name, control_name, id_text FROM form_controls"
        parameters: Tuple[str, ...] = ()
        if form_name:
            query += " WHERE form_name = ?"
            parameters = (form_name,)
        with self._connect("fetch_bindings", f"form: {form_name or 'all'}") as connection:
            rows = connection.execute(query, parameters).fetchall()
        return [FormControlBinding(*row) for row in rows]

    def fetch_static_bindings(self, form_name: str, language: str) -> List[StaticRow]:
        query = """
            SELECT form_controls.control_name, form_controls.id_text, translations.translation
            FROM form_controls
            JOIN translations ON form_controls.id_text = translations.id_text
            WHERE form_controls.form_name = ? AND translations.language_code = ?
              AND form_controls.id_text NOT IN (?, ?)
        """
        parameters = (form_name, language, DYNAMIC_TRANSLATION, DO_NOT_TRANSLATE)
        context = f"form: {form_name}, language: {language}"
        with self._connect("fetch_static_bindings", context) as connection:
            rows = connection.execute(query, parameters).fetchall()
        return [tuple(row) for row in rows]  # type: ignore[misc]

    def fetch_dynamic_controls(self, form_name: str) -> List[str]:
        query = "SELECT control_name FROM form_controls WHERE form_name = ? AND id_text = ?"
        with self._connect("fetch_dynamic_controls", f"form: {form_name}") as connection:
            rows = connection.execute(query, (form_name, DYNAMIC_TRANSLATION)).fetchall()
        return [row[0] for row in rows]

    def replace_translations(self, records: Sequence[TranslationRecord]) -> int:
        rows = [(r.id_text, r.language_code, r.translation) for r in records]
        applied = self._replace_rows(
            "replace_translations",
            delete_sql="DELETE FROM translations WHERE id_text = ? AND language_code = ?",
            insert_sql=(
                "INSERT INTO translations (id_text, language_code, translation) "
                "VALUES (?, ?, ?)"
            ),
            rows=rows,
        )
        return _ensure_complete("replace_translations", len(rows), applied)

    def replace_bindings(self, bindings: Sequence[FormControlBinding]) -> int:
        rows = [(b.form_name, b.control_name, b.id_text) for b in bindings]
        applied = self._replace_rows(
            "replace_bindings",
            delete_sql="DELETE FROM form_controls WHERE form_name = ? AND control_name = ?",
            insert_sql=(
                "INSERT INTO form_controls (form_name, control_name, id_text) "
                "VALUES (?, ?, ?)"
            ),
            rows=rows,
        )
        return _ensure_complete("replace_bindings", len(rows), applied)

    def _replace_rows(
        self,
        operation: str,
        *,
        delete_sql: str,
        insert_sql: str,
        rows: Iterable[Tuple[str, str, str]],
    ) -> int:
        applied = 0
        with self._connect(operation, str(self.path)) as connection:
            for row in rows:
                # Each row is replaced in its own transaction.
                with connection:
                    connection.execute(delete_sql, row[:2])
                    applied += connection.execute(insert_sql, row).rowcount
        return applied

    def mark_ignored(self, rules: IgnoreRuleSet) -> int:
        with self._connect("mark_ignored", str(self.path)) as connection:
            connection.create_function(
                "is_ignored_name",
                1,
                lambda name: int(rules.is_ignored(name or "")),
                deterministic=True,
            )
            with connection:
                cursor = connection.execute(
                    "UPDATE form_controls SET id_text = ? WHERE is_ignored_name(control_name)",
                    (DO_NOT_TRANSLATE,),
                )
        logger.info("Marked %d controls as %s.", cursor.rowcount, DO_NOT_TRANSLATE)
        return cursor.rowcount


def translate(text: str, language: str, store: TranslationStore) -> str:
    """Return ``text`` translated into ``language``, or unchanged if unknown.

    Translations are bidirectional: ``text`` may be an id or an existing
    translation in any language. When several rows qualify the first one the
    backend returns wins.
    """

    if not text:
        return ""
    translation = store.lookup(text, language)
    if translation is None:
        logger.debug("No %s translation for %r.", language, text)
        return text
    return translation


def build_store(location: str | pathlib.Path | None, *, debug: bool = False) -> TranslationStore:
    """Factory to create stores by location."""

    normalized = str(location or "").strip()
    if not normalized:
        raise ConfigurationError("No translation database configured.")
    if normalized.lower() in MEMORY_LOCATIONS:
        return MemoryTranslationStore()
    return SQLiteTranslationStore(normalized, debug=debug)
