import pytest

from formlingo.errors import ConfigurationError, IgnoreRuleError
from formlingo.ignore_rules import (
    IgnoreRuleSet,
    classify,
    load_ignore_file,
    parse_ignore_rules,
)
from formlingo.structures import Verdict


def test_include_match_is_ignored():
    assert classify("btnOK", IgnoreRuleSet(includes=("btn%",))) is Verdict.IGNORE


def test_exclude_overrides_include():
    rules = IgnoreRuleSet(includes=("btn%",), excludes=("%Cancel",))
    assert classify("btnCancel", rules) is Verdict.STATIC
    assert classify("btnOK", rules) is Verdict.IGNORE


def test_name_outside_includes_is_static():
    assert classify("lblTitle", IgnoreRuleSet(includes=("btn%",))) is Verdict.STATIC


def test_excludes_only_ignore_everything_else():
    rules = IgnoreRuleSet(excludes=("%Cancel",))
    assert classify("lblTitle", rules) is Verdict.IGNORE
    assert classify("btnCancel", rules) is Verdict.STATIC


def test_empty_rule_set_is_rejected():
    with pytest.raises(IgnoreRuleError):
        IgnoreRuleSet(includes=(), excludes=())
    assert issubclass(IgnoreRuleError, ConfigurationError)


def test_underscore_matches_exactly_one_character():
    rules = IgnoreRuleSet(includes=("lbl_",))
    assert rules.is_ignored("lblA")
    assert not rules.is_ignored("lbl")
    assert not rules.is_ignored("lblAB")


def test_other_characters_are_literal():
    rules = IgnoreRuleSet(includes=("a.b%",))
    assert rules.is_ignored("a.b1")
    assert not rules.is_ignored("axb1")


def test_case_sensitivity_flag():
    assert IgnoreRuleSet(includes=("BTN%",)).is_ignored("btnOK")
    assert not IgnoreRuleSet(includes=("BTN%",), case_sensitive=True).is_ignored("btnOK")


def test_patterns_are_stored_as_tuples():
    rules = IgnoreRuleSet(includes=["a%"], excludes=["%b"])
    assert rules.includes == ("a%",)
    assert rules.excludes == ("%b",)


class TestIgnoreFile:
    def test_parse_skips_comments_and_blank_lines(self):
        rules = parse_ignore_rules(["# generated", "", "  btn%  ", "!%Cancel"])
        assert rules.includes == ("btn%",)
        assert rules.excludes == ("%Cancel",)

    def test_parse_without_patterns_fails(self):
        with pytest.raises(IgnoreRuleError):
            parse_ignore_rules(["# nothing here", "   "])

    def test_load_file(self, tmp_path):
        path = tmp_path / "ignore.txt"
        path.write_text("frm%_lbl%\n!%Title\n", encoding="utf-8")
        rules = load_ignore_file(path, case_sensitive=True)
        assert rules.case_sensitive
        assert rules.is_ignored("frmMain_lblCount")
        assert not rules.is_ignored("frmMain_lblTitle")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Could not process ignore file"):
            load_ignore_file(tmp_path / "absent.txt")

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "ignore.txt"
        path.write_bytes(b"btn\xe9%\n")
        with pytest.raises(ConfigurationError, match="Could not process ignore file"):
            load_ignore_file(path)

    def test_empty_file_names_the_path(self, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_text("", encoding="utf-8")
        with pytest.raises(IgnoreRuleError, match="empty.txt"):
            load_ignore_file(path)
