import logging

import pytest

from formlingo.errors import ConfigurationError, IncompleteUpdateError, PersistenceError
from formlingo.ignore_rules import IgnoreRuleSet
from formlingo.store import (
    MemoryTranslationStore,
    SQLiteTranslationStore,
    build_store,
    translate,
)
from formlingo.structures import (
    DO_NOT_TRANSLATE,
    DYNAMIC_TRANSLATION,
    FormControlBinding,
    TranslationRecord,
)


def _records(*rows):
    return [TranslationRecord(*row) for row in rows]


def _bindings(*rows):
    return [FormControlBinding(*row) for row in rows]


class TestLookup:
    def test_forward_translation(self, store):
        store.replace_translations(_records(("Save", "fr", "Enregistrer")))
        assert translate("Save", "fr", store) == "Enregistrer"

    def test_reverse_translation_between_languages(self, store):
        store.replace_translations(
            _records(
                ("Save", "en", "Save"),
                ("Save", "fr", "Enregistrer"),
                ("Save", "de", "Speichern"),
            )
        )
        assert translate("Enregistrer", "de", store) == "Speichern"
        assert translate("Speichern", "en", store) == "Save"

    def test_unknown_text_is_returned_unchanged(self, store):
        store.replace_translations(_records(("Save", "fr", "Enregistrer")))
        assert translate("Open", "fr", store) == "Open"
        assert translate("Save", "de", store) == "Save"

    def test_empty_text(self, store):
        assert translate("", "fr", store) == ""

    def test_quotes_round_trip(self, store):
        text = "Don't \"save\""
        store.replace_translations(_records((text, "fr", "N'enregistrez \"pas\"")))
        assert translate(text, "fr", store) == "N'enregistrez \"pas\""
        assert translate("N'enregistrez \"pas\"", "fr", store) == "N'enregistrez \"pas\""


class TestTranslations:
    def test_read_after_write_replaces_rows(self, store):
        store.replace_translations(_records(("Save", "fr", "Sauver")))
        assert store.replace_translations(_records(("Save", "fr", "Enregistrer"))) == 1
        assert store.fetch_translations(language="fr") == _records(("Save", "fr", "Enregistrer"))

    def test_fetch_filters(self, store):
        store.replace_translations(
            _records(("Save", "fr", "Enregistrer"), ("Open", "fr", "Ouvrir"), ("Save", "de", "Speichern"))
        )
        assert len(store.fetch_translations()) == 3
        assert {r.id_text for r in store.fetch_translations(language="fr")} == {"Save", "Open"}
        assert {r.language_code for r in store.fetch_translations(id_text="Save")} == {"fr", "de"}
        assert store.fetch_translations(language="de", id_text="Open") == []

    def test_empty_batch(self, store):
        assert store.replace_translations([]) == 0


class TestBindings:
    def test_static_and_dynamic_rows(self, store):
        store.replace_bindings(
            _bindings(
                ("frmMain", "frmMain_btnSave", "Save"),
                ("frmMain", "frmMain_lblStatus", DYNAMIC_TRANSLATION),
                ("frmOther", "frmOther_btnSave", "Save"),
            )
        )
        store.replace_translations(_records(("Save", "fr", "Enregistrer")))

        assert store.fetch_static_bindings("frmMain", "fr") == [
            ("frmMain_btnSave", "Save", "Enregistrer")
        ]
        assert store.fetch_static_bindings("frmMain", "de") == []
        assert store.fetch_dynamic_controls("frmMain") == ["frmMain_lblStatus"]
        assert len(store.fetch_bindings()) == 3
        assert len(store.fetch_bindings(form_name="frmOther")) == 1

    def test_reserved_ids_are_never_static_rows(self, store):
        store.replace_bindings(
            _bindings(
                ("frm", "frm_btnLogo", DO_NOT_TRANSLATE),
                ("frm", "frm_lblStatus", DYNAMIC_TRANSLATION),
            )
        )
        store.replace_translations(
            _records(
                (DO_NOT_TRANSLATE, "fr", "Ne pas traduire"),
                (DYNAMIC_TRANSLATION, "fr", "Traduction dynamique"),
            )
        )
        assert store.fetch_static_bindings("frm", "fr") == []

    def test_rebinding_replaces_id(self, store):
        store.replace_bindings(_bindings(("frm", "frm_btn", "Old")))
        store.replace_bindings(_bindings(("frm", "frm_btn", "New")))
        assert store.fetch_bindings() == _bindings(("frm", "frm_btn", "New"))

    def test_mark_ignored(self, store):
        store.replace_bindings(
            _bindings(
                ("frm", "frm_btnOK", "OK"),
                ("frm", "frm_btnCancel", "Cancel"),
                ("frm", "frm_lblTitle", "Title"),
            )
        )
        rules = IgnoreRuleSet(includes=("%btn%",), excludes=("%Cancel",))
        assert store.mark_ignored(rules) == 1
        by_control = {b.control_name: b for b in store.fetch_bindings()}
        assert by_control["frm_btnOK"].is_ignored
        assert by_control["frm_btnOK"].id_text == DO_NOT_TRANSLATE
        assert by_control["frm_btnCancel"].id_text == "Cancel"
        assert by_control["frm_lblTitle"].id_text == "Title"


class TestSQLiteStore:
    def test_schema_creation_is_idempotent(self, tmp_path):
        store = SQLiteTranslationStore(tmp_path / "nested" / "translations.db")
        store.create_schema()
        store.create_schema()
        assert store.path.exists()
        assert store.fetch_translations() == []

    def test_unusable_parent_directory(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = SQLiteTranslationStore(blocker / "translations.db")
        with pytest.raises(PersistenceError) as excinfo:
            store.create_schema()
        assert excinfo.value.operation == "create_schema"
        assert excinfo.value.context == str(store.path)

    def test_missing_database_is_a_persistence_error(self, tmp_path):
        store = SQLiteTranslationStore(tmp_path / "absent.db")
        with pytest.raises(PersistenceError) as excinfo:
            store.lookup("Save", "fr")
        assert excinfo.value.operation == "lookup"
        assert "language: fr" in str(excinfo.value)
        assert not store.path.exists()

    def test_database_without_tables(self, tmp_path):
        path = tmp_path / "blank.db"
        path.touch()
        with pytest.raises(PersistenceError, match="no such table"):
            SQLiteTranslationStore(path).fetch_bindings()

    def test_partial_update_is_reported(self, tmp_path):
        class LossyStore(SQLiteTranslationStore):
            def _replace_rows(self, operation, **kwargs):
                return super()._replace_rows(operation, **kwargs) - 1

        store = LossyStore(tmp_path / "translations.db")
        store.create_schema()
        with pytest.raises(IncompleteUpdateError) as excinfo:
            store.replace_translations(_records(("a", "fr", "A"), ("b", "fr", "B")))
        assert excinfo.value.expected == 2
        assert excinfo.value.applied == 1
        assert isinstance(excinfo.value, PersistenceError)

    def test_debug_traces_statements(self, tmp_path, caplog):
        caplog.set_level(logging.DEBUG, logger="formlingo.store")
        store = SQLiteTranslationStore(tmp_path / "translations.db", debug=True)
        store.create_schema()
        store.lookup("Save", "fr")
        assert any("SQL:" in message and "SELECT" in message for message in caplog.messages)


class TestBuildStore:
    @pytest.mark.parametrize("location", ["memory", ":memory:", "MEMORY"])
    def test_memory_locations(self, location):
        assert isinstance(build_store(location), MemoryTranslationStore)

    def test_file_location(self, tmp_path):
        store = build_store(tmp_path / "t.db", debug=True)
        assert isinstance(store, SQLiteTranslationStore)
        assert store.debug

    @pytest.mark.parametrize("location", [None, "", "   "])
    def test_missing_location(self, location):
        with pytest.raises(ConfigurationError):
            build_store(location)
