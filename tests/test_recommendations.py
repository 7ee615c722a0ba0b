"""Tests for recommendation triggers and selection."""

import logging

import pytest

from src.assessment.recommendations import (
    RECOMMENDATION_DEFINITIONS,
    AnswerEquals,
    AnswerIn,
    Includes,
    LessThan,
    RecommendationDefinition,
    RecommendationSelector,
    evaluate_trigger,
)
from src.assessment.projections import SCORE_IMPROVEMENTS
from src.assessment.questions import get_citation
from src.assessment.scoring import ScoreResult

from tests.fixtures_catalog import make_catalog, single_question


def _definition(rec_id, priority, trigger, category="Revenue", segments=frozenset()):
    return RecommendationDefinition(
        id=rec_id,
        title=rec_id.title(),
        description=f"Do {rec_id}",
        category=category,
        priority=priority,
        trigger=trigger,
        segments=segments,
    )


@pytest.fixture
def catalog():
    return make_catalog([single_question("x"), single_question("y", category_index=2)])


class TestTriggers:
    def test_negated_equality_triggers_when_unset(self):
        trigger = ~AnswerEquals("x", "good")
        assert trigger({}) is True
        assert trigger({"x": "poor"}) is True
        assert trigger({"x": "good"}) is False

    def test_answer_in(self):
        trigger = AnswerIn("x", ("poor", "ok"))
        assert trigger({"x": "ok"})
        assert not trigger({"x": "good"})
        assert not trigger({})

    def test_includes_requires_a_list(self):
        trigger = Includes("tools", "autopay")
        assert trigger({"tools": ["portal", "autopay"]})
        assert not trigger({"tools": "autopay"})
        assert not trigger({})

    def test_less_than_uses_default_when_unanswered(self):
        assert LessThan("enrollment", 30)({})
        assert not LessThan("enrollment", 30, default=50)({})
        assert not LessThan("enrollment", 30)({"enrollment": "45"})

    def test_combinators(self):
        trigger = Includes("tools", "autopay") & LessThan("enrollment", 30)
        assert trigger({"tools": ["autopay"], "enrollment": 10})
        assert not trigger({"tools": ["autopay"], "enrollment": 40})
        either = AnswerEquals("x", "a") | AnswerEquals("x", "b")
        assert either({"x": "b"})
        assert not either({"x": "c"})

    def test_failing_trigger_counts_as_not_triggered(self, caplog):
        def broken(answers):
            return answers["missing"] > 3

        with caplog.at_level(logging.WARNING):
            assert evaluate_trigger(broken, {}, name="broken") is False
        assert "Error evaluating broken" in caplog.text


class TestSelector:
    def test_sorted_by_priority_with_stable_ties(self, catalog):
        definitions = [
            _definition("low", 50, AnswerEquals("x", "poor")),
            _definition("first_tie", 80, AnswerEquals("x", "poor")),
            _definition("high", 90, AnswerEquals("x", "poor")),
            _definition("second_tie", 80, AnswerEquals("x", "poor")),
        ]
        selector = RecommendationSelector(definitions, catalog)
        ids = [r.id for r in selector.select({"practice_type": "A", "x": "poor"})]
        assert ids == ["high", "first_tie", "second_tie", "low"]

    def test_untriggered_are_excluded(self, catalog):
        definitions = [_definition("fix_x", 50, AnswerEquals("x", "poor"))]
        selector = RecommendationSelector(definitions, catalog)
        assert selector.select({"practice_type": "A", "x": "good"}) == []

    def test_failing_trigger_is_excluded_not_raised(self, catalog):
        definitions = [
            _definition("broken", 99, lambda answers: answers["nope"]),
            _definition("fine", 10, AnswerEquals("x", "poor")),
        ]
        selector = RecommendationSelector(definitions, catalog)
        assert [r.id for r in selector.select({"practice_type": "A", "x": "poor"})] == ["fine"]

    def test_segment_restricted_definitions(self, catalog):
        definitions = [_definition("snf_only", 50, AnswerEquals("x", "poor"), segments=frozenset({"SNF"}))]
        selector = RecommendationSelector(definitions, catalog)
        assert selector.select({"practice_type": "A", "x": "poor"}) == []
        assert len(selector.select({"practice_type": "SNF", "x": "poor"})) == 1

    def test_disabled_third_category_is_excluded(self, catalog):
        definitions = [
            _definition("competitive", 50, AnswerEquals("y", "poor"), category="Competitive"),
            _definition("revenue", 40, AnswerEquals("x", "poor")),
        ]
        selector = RecommendationSelector(definitions, catalog)
        answers = {"x": "poor", "y": "poor"}
        assert [r.id for r in selector.select(dict(answers, practice_type="A"))] == ["competitive", "revenue"]
        assert [r.id for r in selector.select(dict(answers, practice_type="SNF"))] == ["revenue"]

    def test_weak_category_boosts_priority(self, catalog):
        definitions = [
            _definition("revenue", 60, AnswerEquals("x", "poor")),
            _definition("competitive", 65, AnswerEquals("y", "poor"), category="Competitive"),
        ]
        selector = RecommendationSelector(definitions, catalog)
        scores = ScoreResult(overall=40, categories=(20, 50, 60), segment="A")
        selected = selector.select({"practice_type": "A", "x": "poor", "y": "poor"}, scores)

        assert [r.id for r in selected] == ["revenue", "competitive"]
        assert selected[0].priority == 60
        assert selected[0].adjusted_priority == 70
        assert selected[1].adjusted_priority == 65

    def test_priority_bumps_are_monotonic(self, catalog):
        selector = RecommendationSelector([], catalog, priority_boosts=((60, 5), (40, 10)))
        definition = _definition("rec", 50, AnswerEquals("x", "poor"))
        assert selector.adjusted_priority(definition, 80) == 50
        assert selector.adjusted_priority(definition, 50) == 55
        assert selector.adjusted_priority(definition, 30) == 65
        assert selector.adjusted_priority(definition, None) == 50


class TestShippedRecommendations:
    def test_definitions_have_unique_ids(self):
        ids = [d.id for d in RECOMMENDATION_DEFINITIONS]
        assert len(ids) == len(set(ids))

    def test_unanswered_payment_options_trigger_autopay(self):
        selector = RecommendationSelector()
        ids = [r.id for r in selector.select({"practice_type": "PP"})]
        assert "enable_autopay" in ids
        assert "implement_text_to_pay" in ids

    def test_sample_answers(self, sample_answers):
        selector = RecommendationSelector()
        selected = selector.select(sample_answers)
        ids = [r.id for r in selected]

        assert "enable_autopay" in ids
        assert "add_payment_plans" not in ids
        assert "automate_plans_and_autopay" in ids
        assert "modernize_billing_delivery" in ids
        priorities = [r.adjusted_priority for r in selected]
        assert priorities == sorted(priorities, reverse=True)


def test_every_source_ref_resolves_to_a_citation():
    refs = {d.source_ref for d in RECOMMENDATION_DEFINITIONS if d.source_ref is not None}
    refs |= {i.source_ref for i in SCORE_IMPROVEMENTS.values() if i.source_ref is not None}

    assert refs
    for ref in refs:
        assert get_citation(ref)["id"] == ref
    assert get_citation(None) is None
    assert get_citation(999) is None


def test_recommendation_dict_carries_its_source(sample_answers):
    recommendations = RecommendationSelector().select(sample_answers, ScoreResult(50, (40, 40, 40), "PT"))
    data = recommendations[0].to_dict()
    assert data["source"] == get_citation(data["source_ref"])
