"""Tests for the question scorer and score aggregator."""

import pytest

from src.assessment.catalog import get_default_catalog
from src.assessment.scoring import (
    ContributionState,
    ScoreAggregator,
    ScoreResult,
    score_question,
)

from tests.fixtures_catalog import make_catalog, single_question


# ============================================================================
# Question scorer
# ============================================================================


class TestScoreQuestion:
    def test_unanswered_returns_none(self, synthetic_catalog):
        assert score_question(synthetic_catalog.get_question("q1"), None) is None

    def test_routing_and_diagnostic_never_score(self, synthetic_catalog):
        assert score_question(synthetic_catalog.get_question("practice_type"), "A") is None
        assert score_question(synthetic_catalog.get_question("monthly_billing"), 90000) is None

    def test_single_by_value_and_label(self, synthetic_catalog):
        question = synthetic_catalog.get_question("q1")
        assert score_question(question, "good") == 80
        assert score_question(question, "Ok") == 60

    def test_unmatched_single_is_excluded(self, synthetic_catalog):
        assert score_question(synthetic_catalog.get_question("q1"), "excellent") is None

    def test_slider_linear_interpolation(self, synthetic_catalog):
        question = synthetic_catalog.get_question("enrollment")
        assert score_question(question, 40) == 50
        assert score_question(question, 20) == 25
        assert score_question(question, 0) == 0

    def test_slider_out_of_range_is_clamped(self, synthetic_catalog):
        question = synthetic_catalog.get_question("enrollment")
        assert score_question(question, 200) == 100
        assert score_question(question, -40) == 0

    def test_slider_scoring_function(self):
        question = get_default_catalog().get_question("autopay_enrollment")
        assert score_question(question, 55) == 95
        assert score_question(question, 30) == 70
        assert score_question(question, 15) == 45
        assert score_question(question, 5) == 20

    def test_multi_sums_points(self, synthetic_catalog):
        assert score_question(synthetic_catalog.get_question("tools"), ["a", "b"]) == 30

    def test_multi_caps_at_max_score(self, synthetic_catalog):
        assert score_question(synthetic_catalog.get_question("tools"), ["a", "b", "c"]) == 50

    def test_multi_exclusive_option_short_circuits(self, synthetic_catalog):
        question = synthetic_catalog.get_question("tools")
        assert score_question(question, ["a", "b", "c", "none"]) == 5

    def test_multi_non_list_scores_zero(self, synthetic_catalog):
        question = synthetic_catalog.get_question("tools")
        assert score_question(question, "a") == 0
        assert score_question(question, []) == 0

    def test_multi_scoring_function_overrides_sum(self):
        catalog = make_catalog([{
            "id": "channels",
            "type": "multi",
            "category_index": 0,
            "options": [{"value": "x", "points": 10}, {"value": "y", "points": 10}],
            "scoring": lambda selected: 100 if len(selected) >= 2 else 40,
        }])
        question = catalog.get_question("channels")
        assert score_question(question, ["x", "y"]) == 100
        assert score_question(question, ["x"]) == 40

    def test_half_values_round_up(self):
        catalog = make_catalog([single_question("q", scores={"half": 62.5})])
        assert score_question(catalog.get_question("q"), "half") == 63

    @pytest.mark.parametrize("answer", ["nan", "inf", float("nan"), float("-inf"), 10 ** 400, [40], {"v": 40}])
    def test_slider_non_finite_or_container_is_unscored(self, synthetic_catalog, answer):
        question = synthetic_catalog.get_question("enrollment")
        assert score_question(question, answer) is None
        assert not question.kind.is_valid(answer)

    def test_multi_ignores_nested_selections(self, synthetic_catalog):
        question = synthetic_catalog.get_question("tools")
        assert score_question(question, [["a"], {"b": 1}, "c"]) == 30
        assert score_question(question, [["none"]]) == 0
        assert not question.kind.is_valid([["a"]])
        assert question.kind.is_valid(["a", "none"])


# ============================================================================
# Score aggregator
# ============================================================================


def test_single_category_average_with_neutral_defaults():
    catalog = make_catalog([single_question("q1"), single_question("q2")])
    result = ScoreAggregator(catalog).calculate_scores({"practice_type": "A", "q1": "good", "q2": "ok"})

    assert result.categories == (70, 50, 50)
    # round(70*0.4 + 50*0.35 + 50*0.25) = round(58.0)
    assert result.overall == 58
    assert result.segment == "A"


def test_two_category_segment_ignores_third_category():
    catalog = make_catalog([
        single_question("rev", category_index=0, scores={"top": 90}),
        single_question("exp", category_index=1, scores={"mid": 40}),
        single_question("comp", category_index=2, scores={"low": 0}),
        single_question("split", category_weights=[0, 0, 1.0], scores={"low": 0}),
    ])
    answers = {"practice_type": "SNF", "rev": "top", "exp": "mid", "comp": "low", "split": "low"}
    aggregator = ScoreAggregator(catalog)
    result = aggregator.calculate_scores(answers)

    assert result.categories == (90, 40)
    assert result.use_two_categories is True
    assert result.category_score(2) is None
    # round(90*0.6 + 40*0.4) = round(70.0)
    assert result.overall == 70
    assert set(aggregator.accumulate(answers)) == {0, 1}


def test_cross_category_weights_are_conserved():
    catalog = make_catalog([single_question("cross", category_weights=[0.7, 0.3])])
    totals = ScoreAggregator(catalog).accumulate({"practice_type": "A", "cross": "good"})

    assert totals[0].weighted_sum == pytest.approx(0.7 * 80)
    assert totals[0].total_weight == pytest.approx(0.7)
    assert totals[1].weighted_sum == pytest.approx(0.3 * 80)
    assert totals[1].total_weight == pytest.approx(0.3)
    assert totals[2].is_empty


def test_cross_category_question_sets_both_categories():
    catalog = make_catalog([single_question("cross", category_weights=[0.7, 0.3])])
    result = ScoreAggregator(catalog).calculate_scores({"practice_type": "A", "cross": "good"})
    assert result.categories == (80, 80, 50)


def test_auto_score_contributes_while_hidden(synthetic_catalog):
    aggregator = ScoreAggregator(synthetic_catalog)

    hidden = aggregator.calculate_scores({"practice_type": "A", "tools": ["c"]})
    # tools=30 plus tool_setup auto score 5: round(17.5)
    assert hidden.category_score(1) == 18

    visible = aggregator.calculate_scores({"practice_type": "A", "tools": ["a"]})
    # tool_setup is shown but unanswered, so only tools=10 counts
    assert visible.category_score(1) == 10


def test_evaluation_states(synthetic_catalog):
    evaluations = {
        e.question.id: e
        for e in ScoreAggregator(synthetic_catalog).evaluate({"practice_type": "A", "tools": ["c"], "q1": "good"})
    }
    assert evaluations["q1"].state == ContributionState.VISIBLE
    assert evaluations["q1"].score == 80
    assert evaluations["tool_setup"].state == ContributionState.HIDDEN_AUTO_SCORED
    assert evaluations["tool_setup"].score == 5
    assert not evaluations["q2"].contributes
    assert "monthly_billing" not in evaluations


def test_auto_score_when_parent_is():
    catalog = make_catalog([
        single_question("parent", scores={"yes": 90, "no": 10, "maybe": 50}),
        single_question(
            "child",
            category_index=1,
            conditional={"question_id": "parent", "show_if_equals": "yes"},
            auto_score={"when_parent_is": ["no"], "score": 0},
        ),
    ])
    aggregator = ScoreAggregator(catalog)

    declined = aggregator.calculate_scores({"practice_type": "A", "parent": "no"})
    assert declined.category_score(1) == 0

    undecided = aggregator.calculate_scores({"practice_type": "A", "parent": "maybe"})
    assert undecided.category_score(1) == 50


def test_no_contributions_use_default_category_score():
    catalog = make_catalog([single_question("q1")])
    assert ScoreAggregator(catalog).calculate_scores({"practice_type": "A"}).categories == (50, 50, 50)
    assert ScoreAggregator(catalog, default_category_score=0).calculate_scores(
        {"practice_type": "A"}
    ).categories == (0, 0, 0)


def test_unmatched_option_is_excluded_from_average():
    catalog = make_catalog([single_question("q1"), single_question("q2")])
    result = ScoreAggregator(catalog).calculate_scores({"practice_type": "A", "q1": "good", "q2": "bogus"})
    assert result.category_score(0) == 80


def test_unset_segment_scores_with_default_segment(synthetic_catalog):
    result = ScoreAggregator(synthetic_catalog).calculate_scores({})
    assert result.segment == "A"
    # only the hidden tool_setup auto score contributes
    assert result.categories == (50, 5, 50)
    assert result.overall == 34


def test_scores_are_idempotent(sample_answers):
    aggregator = ScoreAggregator()
    assert aggregator.calculate_scores(sample_answers) == aggregator.calculate_scores(sample_answers)


@pytest.mark.parametrize("answers", [
    {},
    {"practice_type": "A", "enrollment": 500, "q1": "good", "cross": "good"},
    {"practice_type": "A", "enrollment": -500, "q1": "poor", "tools": ["none"]},
    {"practice_type": "SNF", "tools": ["a", "b", "c"], "tool_setup": "good"},
    {"practice_type": "ZZ", "q1": "good"},
])
def test_scores_are_clamped(synthetic_catalog, answers):
    result = ScoreAggregator(synthetic_catalog).calculate_scores(answers)
    assert 0 <= result.overall <= 100
    assert all(0 <= c <= 100 for c in result.categories)


@pytest.mark.parametrize("answers", [
    {"practice_type": "A", "enrollment": float("nan")},
    {"practice_type": "A", "enrollment": "inf"},
    {"practice_type": "A", "tools": [["a"], ["b"]]},
    {"practice_type": "A", "q1": ["good"], "tool_setup": {"good": True}},
    {"practice_type": ["A"], "q1": "good"},
])
def test_malformed_answers_never_raise(synthetic_catalog, answers):
    result = ScoreAggregator(synthetic_catalog).calculate_scores(answers)
    assert result.segment == "A"
    assert all(0 <= c <= 100 for c in result.categories)


def test_question_scores_lists_visible_answers(synthetic_catalog):
    scores = ScoreAggregator(synthetic_catalog).question_scores(
        {"practice_type": "A", "q1": "good", "tools": ["c"]}
    )
    assert scores == {"q1": 80, "tools": 30}


def test_score_result_round_trips_through_dict(sample_answers):
    result = ScoreAggregator().calculate_scores(sample_answers)
    assert ScoreResult.from_dict(result.to_dict()) == result


def test_default_catalog_scores_every_segment(sample_answers):
    aggregator = ScoreAggregator()
    for segment in get_default_catalog().segments:
        answers = dict(sample_answers, practice_type=segment)
        result = aggregator.calculate_scores(answers)
        assert result.segment == segment
        assert len(result.categories) == 3
