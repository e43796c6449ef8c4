import pytest

from fakes import FakeControl, index_controls
from formlingo.ignore_rules import IgnoreRuleSet
from formlingo.store import MemoryTranslationStore
from formlingo.structures import DO_NOT_TRANSLATE, FormControlBinding, TranslationRecord
from formlingo.translator import capture_translations, translate_components


@pytest.fixture
def form():
    return FakeControl(
        "frmMain",
        "Main",
        children=[
            FakeControl("btnSave", "Save", tooltip="Save"),
            FakeControl("lblStatus", ""),
            FakeControl("chkAuto", "CheckBox1"),
            FakeControl("btnCancel", "Cancel"),
        ],
    )


def _french(store):
    store.replace_translations(
        [
            TranslationRecord("Main", "fr", "Principal"),
            TranslationRecord("Save", "fr", "Enregistrer"),
            TranslationRecord("Cancel", "fr", "Annuler"),
            TranslationRecord("Ready", "en", "Ready"),
            TranslationRecord("Ready", "fr", "Prêt"),
        ]
    )


def test_capture_writes_bindings_and_seeds_ids(store, form):
    summary = capture_translations(
        "frmMain",
        index_controls(form),
        store,
        ignore_rules=IgnoreRuleSet(includes=("%Cancel",)),
    )

    assert summary.bindings_saved == 5
    assert summary.static_bindings == 3
    assert summary.dynamic_bindings == 2
    assert summary.translations_seeded == 2
    assert summary.controls_ignored == 1

    by_control = {b.control_name: b.id_text for b in store.fetch_bindings("frmMain")}
    assert by_control["frmMain_btnCancel"] == DO_NOT_TRANSLATE
    assert {r.id_text for r in store.fetch_translations(language="en")} == {"Main", "Save"}


def test_translate_there_and_back(store, form):
    index = index_controls(form)
    capture_translations(
        "frmMain", index, store, ignore_rules=IgnoreRuleSet(includes=("%Cancel",))
    )
    _french(store)
    form.children[1].text = "Ready"
    form.children[2].text = "Auto"

    summary = translate_components(index, "frmMain", "fr", store)

    assert [control.text for control in form.children] == ["Enregistrer", "Prêt", "Auto", "Cancel"]
    assert form.text == "Principal"
    assert form.children[0].tooltip == "Enregistrer"
    assert summary.static_applied == 2
    assert summary.dynamic_applied == 2
    assert summary.tooltips_translated == 1
    assert summary.total_applied == 4
    assert summary.unresolved == []

    translate_components(index, "frmMain", "en", store)
    assert [control.text for control in form.children] == ["Save", "Ready", "Auto", "Cancel"]
    assert form.text == "Main"


def test_static_bindings_tolerate_hierarchy_drift():
    store = MemoryTranslationStore()
    store.replace_bindings([FormControlBinding("frmMain", "frmMain_grpBox_btnGo", "Go")])
    store.replace_translations([TranslationRecord("Go", "fr", "Aller")])
    button = FakeControl("btnGo", "Go")
    form = FakeControl(
        "frmMain",
        children=[
            FakeControl("grpBox", children=[FakeControl("pnlA", children=[FakeControl("pnlB", children=[button])])])
        ],
    )

    summary = translate_components(index_controls(form), "frmMain", "fr", store)

    assert button.text == "Aller"
    assert summary.fuzzy_matches == 1


def test_unresolved_bindings_are_reported_not_raised():
    store = MemoryTranslationStore()
    store.replace_bindings(
        [
            FormControlBinding("frmMain", "frmMain_btnGone", "Gone"),
            FormControlBinding("frmMain", "frmMain_grp_lblMoved", "ReplaceWithDynamicTranslation"),
        ]
    )
    store.replace_translations([TranslationRecord("Gone", "fr", "Parti")])
    form = FakeControl(
        "frmMain",
        children=[FakeControl("grp", children=[FakeControl("a", children=[FakeControl("b", children=[FakeControl("lblMoved", "x")])])])],
    )

    summary = translate_components(index_controls(form), "frmMain", "fr", store)

    assert summary.total_applied == 0
    assert sorted(summary.unresolved) == ["frmMain_btnGone", "frmMain_grp_lblMoved"]
    assert len(summary.error_messages) == 2
    assert "No unique component matches 'frmMain_btnGone'. (not_found)" in summary.error_messages
    assert (
        "No component named 'frmMain_grp_lblMoved' for dynamic translation. (not_found)"
        in summary.error_messages
    )


def test_ambiguous_binding_reason_is_reported():
    store = MemoryTranslationStore()
    store.replace_bindings([FormControlBinding("frmMain", "frmMain_grp_btnGo", "Go")])
    store.replace_translations([TranslationRecord("Go", "fr", "Aller")])
    form = FakeControl(
        "frmMain",
        children=[
            FakeControl(
                "grp",
                children=[
                    FakeControl("a", children=[FakeControl("b", children=[FakeControl("btnGo", "Go")])]),
                    FakeControl("c", children=[FakeControl("d", children=[FakeControl("btnGo", "Go")])]),
                ],
            )
        ],
    )

    summary = translate_components(index_controls(form), "frmMain", "fr", store)

    assert summary.unresolved == ["frmMain_grp_btnGo"]
    assert summary.error_messages == ["No unique component matches 'frmMain_grp_btnGo'. (ambiguous)"]


def test_ignored_controls_keep_their_text(store):
    store.replace_bindings([FormControlBinding("frm", "frm_btnLogo", DO_NOT_TRANSLATE)])
    store.replace_translations([TranslationRecord(DO_NOT_TRANSLATE, "fr", "Ne pas traduire")])
    logo = FakeControl("btnLogo", "ACME")

    summary = translate_components(
        index_controls(FakeControl("frm", children=[logo])), "frm", "fr", store
    )

    assert logo.text == "ACME"
    assert summary.total_applied == 0
    assert summary.unresolved == []
