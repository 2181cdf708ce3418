"""
Tests for restriction rules and the applicability gate.
"""
import logging
import threading

import pytest

from docimporter.core.document import ImporterMetadata
from docimporter.core.functions.errors import ConfigurationError
from docimporter.core.functions.restriction import (
    ApplicabilityGate,
    RestrictionRule,
    RestrictionSet,
)

CONTENT_TYPE = "document.contentType"


@pytest.fixture
def gate():
    return ApplicabilityGate()


@pytest.fixture
def text_only():
    restrictions = RestrictionSet()
    restrictions.add(CONTENT_TYPE, "^text/.*$", case_sensitive=False)
    return restrictions


class TestRestrictionRule:

    def test_invalid_regex_fails_at_construction(self):
        with pytest.raises(ConfigurationError, match="Invalid restriction regex"):
            RestrictionRule(CONTENT_TYPE, "text/(html")

    def test_configuration_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            RestrictionRule(CONTENT_TYPE, "[")

    def test_empty_field_is_rejected(self):
        with pytest.raises(ConfigurationError):
            RestrictionRule("  ", ".*")

    def test_full_match_not_substring(self):
        rule = RestrictionRule(CONTENT_TYPE, "text")
        assert not rule.matches({CONTENT_TYPE: ["text/html"]})
        assert rule.matches({CONTENT_TYPE: ["text"]})

    def test_value_case_sensitivity(self):
        insensitive = RestrictionRule(CONTENT_TYPE, "TEXT/HTML", case_sensitive=False)
        sensitive = RestrictionRule(CONTENT_TYPE, "TEXT/HTML", case_sensitive=True)
        metadata = {CONTENT_TYPE: ["text/html"]}
        assert insensitive.matches(metadata)
        assert not sensitive.matches(metadata)

    def test_multi_valued_field_matches_any_value(self):
        rule = RestrictionRule("author", "John")
        assert rule.matches({"author": ["Jane", "John"]})
        assert not rule.matches({"author": ["Jane", "Joe"]})

    def test_missing_field_never_matches(self):
        rule = RestrictionRule("author", ".*")
        assert not rule.matches({"title": ["x"]})
        assert not rule.matches({"author": []})

    def test_field_lookup_is_case_sensitive_by_default(self):
        metadata = ImporterMetadata({"document.contentType": ["text/html"]})
        assert not RestrictionRule("Document.ContentType", "text/html").matches(metadata)
        assert RestrictionRule(
            "Document.ContentType", "text/html", ignore_field_case=True
        ).matches(metadata)

    def test_equality_and_hash_use_declared_fields(self):
        a = RestrictionRule("title", "^a$", case_sensitive=True)
        b = RestrictionRule("title", "^a$", case_sensitive=True)
        c = RestrictionRule("title", "^a$", case_sensitive=False)
        assert a == b
        assert hash(a) == hash(b)
        assert a != c
        assert len({a, b, c}) == 2

    def test_repr(self):
        rule = RestrictionRule("title", "^a$")
        assert repr(rule) == (
            "RestrictionRule(field='title', regex='^a$', "
            "case_sensitive=False, ignore_field_case=False)"
        )

    def test_config_round_trip(self):
        rule = RestrictionRule("title", "^a$", case_sensitive=True)
        assert RestrictionRule.from_config(rule.to_config()) == rule

    def test_from_config_defaults_to_case_insensitive(self):
        rule = RestrictionRule.from_config({"field": "title", "pattern": "^A$"})
        assert rule.case_sensitive is False
        assert rule.matches({"title": ["a"]})

    @pytest.mark.parametrize("value, expected", [
        ("false", False), ("FALSE", False), ("no", False), ("0", False),
        ("true", True), (" True ", True), ("yes", True), (1, True), (None, False),
    ])
    def test_from_config_reads_text_booleans(self, value, expected):
        rule = RestrictionRule.from_config({"field": "title", "pattern": "a", "case_sensitive": value})
        assert rule.case_sensitive is expected

    def test_from_config_rejects_unknown_boolean(self):
        with pytest.raises(ConfigurationError, match="case_sensitive"):
            RestrictionRule.from_config({"field": "title", "pattern": "a", "case_sensitive": "maybe"})

    def test_single_string_value_in_plain_mapping(self):
        rule = RestrictionRule(CONTENT_TYPE, "text/html")
        assert rule.matches({CONTENT_TYPE: "text/html"})
        assert not rule.matches({CONTENT_TYPE: "text"})

    def test_single_string_value_with_ignored_field_case(self):
        rule = RestrictionRule(CONTENT_TYPE, "text/html", ignore_field_case=True)
        assert rule.matches({CONTENT_TYPE.upper(): "text/html"})


class TestApplicabilityGate:

    def test_no_restrictions_always_applies(self, gate):
        assert gate.evaluate({}, RestrictionSet())
        assert gate.evaluate({"anything": ["x"]}, None)
        assert gate.evaluate({}, [])

    def test_text_handler_applies_to_html(self, gate, text_only):
        metadata = {CONTENT_TYPE: ["text/html"]}
        assert gate.evaluate(metadata, text_only) is True

    def test_text_handler_rejects_pdf(self, gate, text_only):
        metadata = {CONTENT_TYPE: ["application/pdf"]}
        assert gate.evaluate(metadata, text_only) is False

    def test_any_rule_is_enough(self, gate, text_only):
        text_only.add(CONTENT_TYPE, "application/pdf")
        assert gate.evaluate({CONTENT_TYPE: ["application/pdf"]}, text_only)
        assert gate.evaluate({CONTENT_TYPE: ["text/plain"]}, text_only)

    def test_adding_a_rule_never_revokes_applicability(self, gate, text_only):
        metadata = {CONTENT_TYPE: ["text/html"], "title": ["Report"]}
        assert gate.evaluate(metadata, text_only)
        for field, regex in [("title", "nope"), (CONTENT_TYPE, "image/.*"), ("missing", ".*")]:
            text_only.add(field, regex)
            assert gate.evaluate(metadata, text_only)

    def test_removing_only_matching_rule_flips_result(self, gate, text_only):
        pdf = text_only.add(CONTENT_TYPE, "application/pdf")
        metadata = {CONTENT_TYPE: ["application/pdf"]}
        assert gate.evaluate(metadata, text_only)
        assert text_only.remove(pdf) is True
        assert gate.evaluate(metadata, text_only) is False

    def test_rejection_is_logged(self, gate, text_only, caplog):
        with caplog.at_level(logging.DEBUG, logger="docimporter"):
            gate.evaluate({CONTENT_TYPE: ["application/pdf"]}, text_only,
                          reference="doc-42", parsed=True, handler=object())
        events = [r for r in caplog.records if getattr(r, "event", None) == "handler_rejected"]
        assert len(events) == 1
        assert events[0].reference == "doc-42"
        assert events[0].parsed is True
        assert events[0].handler == "object"


class TestRestrictionSet:

    def test_insertion_order_is_preserved(self):
        restrictions = RestrictionSet()
        restrictions.add("b", ".*")
        restrictions.add("a", ".*")
        restrictions.add("c", ".*")
        assert [r.field for r in restrictions] == ["b", "a", "c"]

    def test_add_all_and_add_rule(self):
        restrictions = RestrictionSet()
        restrictions.add_rule(RestrictionRule("a", "x"), RestrictionRule("b", "y"))
        restrictions.add_all([RestrictionRule("c", "z")])
        restrictions.add_all(None)
        assert len(restrictions) == 3

    def test_add_with_invalid_regex_leaves_set_unchanged(self):
        restrictions = RestrictionSet()
        with pytest.raises(ConfigurationError):
            restrictions.add("title", "(")
        assert len(restrictions) == 0

    def test_remove_field_respects_each_rule_case_sensitivity(self):
        restrictions = RestrictionSet()
        restrictions.add("Title", ".*", case_sensitive=False)
        restrictions.add("Title", ".*", case_sensitive=True)
        restrictions.add("Author", ".*", case_sensitive=False)

        assert restrictions.remove_field("title") == 1
        remaining = restrictions.snapshot()
        assert [(r.field, r.case_sensitive) for r in remaining] == [
            ("Title", True), ("Author", False)
        ]
        assert restrictions.remove_field("Title") == 1

    def test_remove_by_equality(self):
        restrictions = RestrictionSet()
        restrictions.add("title", "^a$")
        assert restrictions.remove(RestrictionRule("title", "^a$")) is True
        assert restrictions.remove(RestrictionRule("title", "^a$")) is False

    def test_clear(self):
        restrictions = RestrictionSet()
        restrictions.add("title", ".*")
        restrictions.clear()
        assert not restrictions

    def test_concurrent_mutation_while_evaluating(self, gate):
        restrictions = RestrictionSet()
        restrictions.add(CONTENT_TYPE, "^text/.*$")
        metadata = {CONTENT_TYPE: ["text/html"]}
        errors = []
        stop = threading.Event()

        def mutate():
            try:
                while not stop.is_set():
                    rule = restrictions.add("title", "x")
                    restrictions.remove(rule)
                    restrictions.remove_field("other")
            except Exception as e:  # pragma: no cover
                errors.append(e)

        worker = threading.Thread(target=mutate)
        worker.start()
        try:
            for _ in range(2000):
                assert gate.evaluate(metadata, restrictions)
        finally:
            stop.set()
            worker.join()
        assert errors == []
