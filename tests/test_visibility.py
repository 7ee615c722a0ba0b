"""Tests for question visibility."""

import pytest

from src.assessment.catalog import VisibilityRule
from src.assessment.visibility import VisibilityResolver, evaluate_rule

from tests.fixtures_catalog import make_catalog, single_question


def _ids(resolver, answers):
    return [q.id for q in resolver.visible_questions(answers)]


def test_only_routing_question_until_segment_is_chosen(synthetic_catalog):
    resolver = VisibilityResolver(synthetic_catalog)
    assert _ids(resolver, {}) == ["practice_type"]
    assert _ids(resolver, {"practice_type": ""}) == ["practice_type"]


def test_routing_question_disappears_once_answered(synthetic_catalog):
    resolver = VisibilityResolver(synthetic_catalog)
    visible = _ids(resolver, {"practice_type": "A"})
    assert "practice_type" not in visible
    assert visible[:3] == ["monthly_billing", "q1", "q2"]


def test_catalog_order_is_preserved(synthetic_catalog):
    resolver = VisibilityResolver(synthetic_catalog)
    visible = _ids(resolver, {"practice_type": "A", "tools": ["a"]})
    catalog_order = [q.id for q in synthetic_catalog if q.id in visible]
    assert visible == catalog_order


def test_segment_filtering():
    catalog = make_catalog([
        single_question("shared"),
        single_question("snf_only", segments=["SNF"]),
    ])
    resolver = VisibilityResolver(catalog)
    assert _ids(resolver, {"practice_type": "A"}) == ["shared"]
    assert _ids(resolver, {"practice_type": "SNF"}) == ["shared", "snf_only"]


def test_unknown_segment_shows_no_segment_questions(synthetic_catalog):
    resolver = VisibilityResolver(synthetic_catalog)
    assert _ids(resolver, {"practice_type": "ZZ"}) == []


def test_show_if_includes_any_toggles(synthetic_catalog):
    resolver = VisibilityResolver(synthetic_catalog)
    question = synthetic_catalog.get_question("tool_setup")

    answers = {"practice_type": "A", "tools": ["c"]}
    assert not resolver.is_visible(question, answers)

    answers["tools"] = ["c", "a"]
    assert resolver.is_visible(question, answers)

    answers["tools"] = ["c"]
    assert not resolver.is_visible(question, answers)


def test_show_if_includes_any_hidden_when_parent_unset(synthetic_catalog):
    resolver = VisibilityResolver(synthetic_catalog)
    question = synthetic_catalog.get_question("tool_setup")
    assert not resolver.is_visible(question, {"practice_type": "A"})


class TestEvaluateRule:
    def test_show_if_equals(self):
        rule = VisibilityRule("parent", show_if_equals="yes")
        assert evaluate_rule(rule, {"parent": "yes"})
        assert not evaluate_rule(rule, {"parent": "no"})
        assert not evaluate_rule(rule, {})

    def test_show_if_includes_list_and_scalar(self):
        rule = VisibilityRule("parent", show_if_includes="x")
        assert evaluate_rule(rule, {"parent": ["w", "x"]})
        assert not evaluate_rule(rule, {"parent": ["w"]})
        assert evaluate_rule(rule, {"parent": "x"})
        assert not evaluate_rule(rule, {"parent": "w"})

    def test_show_if_includes_any_scalar(self):
        rule = VisibilityRule("parent", show_if_includes_any=("x", "y"))
        assert evaluate_rule(rule, {"parent": "y"})
        assert not evaluate_rule(rule, {"parent": "z"})

    def test_hide_if_includes_any(self):
        rule = VisibilityRule("parent", hide_if_includes_any=("none",))
        assert not evaluate_rule(rule, {"parent": ["a", "none"]})
        assert not evaluate_rule(rule, {"parent": "none"})
        assert evaluate_rule(rule, {"parent": ["a"]})

    def test_hide_rule_does_not_hide_when_parent_unset(self):
        rule = VisibilityRule("parent", hide_if_includes_any=("none",))
        assert evaluate_rule(rule, {})

    def test_skip_if_option(self):
        rule = VisibilityRule("parent", skip_if_option="not_applicable")
        assert not evaluate_rule(rule, {"parent": "not_applicable"})
        assert evaluate_rule(rule, {"parent": "applicable"})
        assert evaluate_rule(rule, {})

    @pytest.mark.parametrize("parent,expected", [
        (["x"], True),
        (["x", "blocked"], False),
        (["y"], False),
    ])
    def test_multiple_rule_kinds_are_anded(self, parent, expected):
        rule = VisibilityRule("parent", show_if_includes="x", hide_if_includes_any=("blocked",))
        assert evaluate_rule(rule, {"parent": parent}) is expected


def test_default_catalog_autopay_chain(sample_answers):
    resolver = VisibilityResolver()
    answers = dict(sample_answers)
    answers["payment_options"] = ["front_desk"]
    answers.pop("autopay_plan_setup")
    visible = resolver.visible_ids(answers)
    assert "autopay_plan_setup" not in visible
    assert "autopay_enrollment" not in visible

    answers["payment_options"] = ["front_desk", "autopay"]
    answers["autopay_plan_setup"] = "semi_automated"
    visible = resolver.visible_ids(answers)
    assert "autopay_plan_setup" in visible
    assert "autopay_enrollment" in visible


def test_default_catalog_segment_specific_questions(sample_answers):
    resolver = VisibilityResolver()
    visible = resolver.visible_ids(sample_answers)
    assert "pt_copay_collection" in visible
    assert "bh_noshow_management" not in visible
