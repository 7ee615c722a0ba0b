"""Tests for tier classification and the benchmark gap analysis."""

import pytest

from src.assessment.questions import CATEGORY_NAMES
from src.assessment.scoring import ScoreResult
from src.patterns.benchmark_engine import BenchmarkEngine, create_benchmark_engine, create_practice_benchmarks
from src.patterns.tier_classification import (
    TierClassifier,
    TierDirection,
    TierThreshold,
    create_exposure_level_classifier,
    create_gap_tier_classifier,
    create_resiliency_level_classifier,
    create_score_level_classifier,
)
from src.patterns.weighted_scoring import WeightedAverage, linear_score, normalize_weights, round_half_up


class TestWeightedScoring:
    @pytest.mark.parametrize("value,expected", [(2.5, 3), (2.49, 2), (-2.5, -2), (17.5, 18), (0, 0)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_linear_score_degenerate_range(self):
        assert linear_score(5, 5, 5) == 100
        assert linear_score(4, 5, 5) == 0

    def test_normalize_weights_rejects_zero_sum(self):
        with pytest.raises(ValueError):
            normalize_weights([0, 0])

    def test_weighted_average_ignores_zero_weights(self):
        average = WeightedAverage()
        average.add(90, 0)
        assert average.is_empty
        assert average.mean(default=50) == 50
        average.add(90, 0.5)
        assert average.mean() == 90
        assert average.count == 1


class TestTierClassifier:
    def test_gap_tiers(self):
        classifier = create_gap_tier_classifier()
        assert classifier.key_for(10) == "above"
        assert classifier.key_for(9) == "near"
        assert classifier.key_for(-5) == "near"
        assert classifier.key_for(-6) == "below"
        assert classifier.key_for(-15) == "below"
        assert classifier.key_for(-16) == "significantly_below"

    def test_score_levels(self):
        classifier = create_score_level_classifier()
        assert classifier.label_for(85) == "Highly Resilient"
        assert classifier.label_for(70) == "Well Positioned"
        assert classifier.label_for(55) == "Building Resilience"
        assert classifier.label_for(40) == "At Risk"
        assert classifier.label_for(39) == "Significant Gaps"

    def test_resiliency_levels(self):
        classifier = create_resiliency_level_classifier()
        assert classifier.label_for(80) == "Highly Resilient"
        assert classifier.label_for(64) == "Moderately Resilient"
        assert classifier.label_for(10) == "Highly Vulnerable"

    def test_exposure_levels_use_upper_bounds(self):
        classifier = create_exposure_level_classifier()
        assert classifier.direction == TierDirection.AT_MOST
        assert classifier.label_for(20) == "Well Protected"
        assert classifier.label_for(21) == "Moderately Protected"
        assert classifier.label_for(95) == "Highly Vulnerable"

    def test_catch_all_must_come_last(self):
        with pytest.raises(ValueError, match="catch-all"):
            TierClassifier([TierThreshold("low", "Low", None), TierThreshold("high", "High", 50)])

    def test_bounds_must_be_ordered(self):
        with pytest.raises(ValueError, match="decrease"):
            TierClassifier([
                TierThreshold("a", "A", 10),
                TierThreshold("b", "B", 20),
                TierThreshold("c", "C", None),
            ])

    def test_threshold_summary(self):
        summary = create_gap_tier_classifier().get_threshold_summary()
        assert [t["key"] for t in summary] == ["above", "near", "below", "significantly_below"]
        assert summary[-1]["bound"] is None


class TestGapAnalysis:
    @pytest.fixture
    def engine(self):
        return create_benchmark_engine(CATEGORY_NAMES)

    def test_gaps_against_segment_row(self, engine):
        scores = ScoreResult(overall=60, categories=(70, 40, 48), segment="PT")
        result = engine.gap_analysis(scores)

        assert result.segment == "PT"
        assert result.overall.benchmark == 52
        assert result.overall.gap == 8
        assert result.overall.performance_tier == "near"
        assert [c.gap for c in result.categories] == [15, -8, 0]
        assert [c.performance_tier for c in result.categories] == ["above", "below", "near"]

    def test_biggest_opportunity_and_strongest_area(self, engine):
        scores = ScoreResult(overall=60, categories=(70, 40, 48), segment="PT")
        result = engine.gap_analysis(scores)
        assert result.biggest_opportunity.name == CATEGORY_NAMES[1]
        assert result.strongest_area.name == CATEGORY_NAMES[0]

    def test_ties_keep_the_first_category(self, engine):
        scores = ScoreResult(overall=55, categories=(55, 50, 50), segment="PP")
        result = engine.gap_analysis(scores)
        assert result.biggest_opportunity.category_index == 0
        assert result.strongest_area.category_index == 0

    def test_unknown_segment_uses_default_row(self, engine):
        scores = ScoreResult(overall=55, categories=(55, 50, 50), segment="ZZ")
        result = engine.gap_analysis(scores)
        assert result.segment == "PP"
        assert result.overall.gap == 0

    def test_two_category_scores_only_compare_active_categories(self, engine):
        scores = ScoreResult(overall=70, categories=(90, 40), segment="PP", use_two_categories=True)
        result = engine.gap_analysis(scores)
        assert len(result.categories) == 2
        assert result.category(2) is None

    def test_same_thresholds_apply_to_overall_and_categories(self, engine):
        scores = ScoreResult(overall=39, categories=(39, 34, 34), segment="PP")
        result = engine.gap_analysis(scores)
        assert result.overall.performance_tier == "significantly_below"
        assert {c.performance_tier for c in result.categories} == {"significantly_below"}

    def test_to_dict(self, engine):
        data = engine.gap_analysis(ScoreResult(overall=50, categories=(50, 50, 50), segment="BH")).to_dict()
        assert data["segment_label"] == "Behavioral Health"
        assert data["benchmark"]["ar_days"] == 65
        assert data["biggest_opportunity"]["key"].startswith("category_")

    def test_default_segment_must_have_a_row(self):
        with pytest.raises(ValueError):
            BenchmarkEngine(create_practice_benchmarks(), CATEGORY_NAMES, default_segment="SNF")
