"""Tests for catalog loading and validation."""

import logging

import pytest

from src.assessment.catalog import (
    CatalogValidationError,
    CurrencyInput,
    MultiChoice,
    QuestionType,
    SingleChoice,
    Slider,
    get_default_catalog,
    load_catalog,
)
from src.assessment.questions import CATEGORY_NAMES, SEGMENTS

from tests.fixtures_catalog import SYNTHETIC_CATEGORIES, SYNTHETIC_SEGMENTS, make_catalog, single_question


class TestDefaultCatalog:
    def test_loads_shipped_tables(self):
        catalog = get_default_catalog()
        assert len(catalog) > 0
        assert catalog.category_names == tuple(CATEGORY_NAMES)
        assert set(catalog.segments) == set(SEGMENTS)

    def test_is_a_singleton(self):
        assert get_default_catalog() is get_default_catalog()

    def test_question_ids_are_unique(self):
        ids = [q.id for q in get_default_catalog()]
        assert len(ids) == len(set(ids))

    def test_every_conditional_parent_exists(self):
        catalog = get_default_catalog()
        for question in catalog:
            if question.conditional:
                assert catalog.get_question(question.conditional.question_id) is not None

    def test_segment_weights_sum_to_one(self):
        for config in get_default_catalog().segments.values():
            assert sum(config.category_weights) == pytest.approx(1.0)

    def test_routing_question(self):
        routing = get_default_catalog().routing_questions()
        assert [q.id for q in routing] == ["practice_type"]
        assert not routing[0].is_scored


class TestAnswerKinds:
    def test_types_are_dispatched_to_kinds(self, synthetic_catalog):
        assert isinstance(synthetic_catalog.get_question("q1").kind, SingleChoice)
        assert isinstance(synthetic_catalog.get_question("tools").kind, MultiChoice)
        assert isinstance(synthetic_catalog.get_question("enrollment").kind, Slider)
        assert isinstance(synthetic_catalog.get_question("monthly_billing").kind, CurrencyInput)
        assert synthetic_catalog.get_question("monthly_billing").type == QuestionType.CURRENCY

    def test_single_choice_validity(self, synthetic_catalog):
        kind = synthetic_catalog.get_question("q1").kind
        assert kind.is_valid("good")
        assert kind.is_valid("Good")
        assert not kind.is_valid("excellent")

    def test_multi_choice_validity(self, synthetic_catalog):
        kind = synthetic_catalog.get_question("tools").kind
        assert kind.is_valid(["a", "none"])
        assert not kind.is_valid(["z"])
        assert not kind.is_valid("a")

    def test_slider_validity(self, synthetic_catalog):
        kind = synthetic_catalog.get_question("enrollment").kind
        assert kind.is_valid(40)
        assert kind.is_valid("40")
        assert not kind.is_valid(81)
        assert not kind.is_valid(True)

    def test_question_to_dict_includes_options(self, synthetic_catalog):
        data = synthetic_catalog.get_question("tools").to_dict()
        assert data["type"] == "multi"
        assert [o["value"] for o in data["options"]] == ["a", "b", "c"]
        assert data["exclusive_option"]["score"] == 5


class TestSegmentConfig:
    def test_two_category_segment_has_two_active_categories(self, synthetic_catalog):
        assert synthetic_catalog.segment_config("SNF").active_categories == (0, 1)
        assert synthetic_catalog.segment_config("A").active_categories == (0, 1, 2)

    def test_unknown_segment_falls_back_to_default(self, synthetic_catalog, caplog):
        with caplog.at_level(logging.WARNING):
            config = synthetic_catalog.segment_config("ZZ")
        assert config.id == "A"
        assert "Unknown segment" in caplog.text

    def test_unset_segment_uses_default_silently(self, synthetic_catalog, caplog):
        with caplog.at_level(logging.WARNING):
            config = synthetic_catalog.segment_config(None)
        assert config.id == "A"
        assert caplog.text == ""

    def test_weights_are_normalized_with_warning(self, caplog):
        segments = {"A": {"category_weights": [2, 1, 1]}}
        with caplog.at_level(logging.WARNING):
            catalog = make_catalog([single_question("q1")], segments=segments)
        assert catalog.segment_config("A").category_weights == pytest.approx((0.5, 0.25, 0.25))
        assert "Normalizing" in caplog.text


class TestValidationErrors:
    def test_validation_error_is_a_value_error(self):
        assert issubclass(CatalogValidationError, ValueError)

    def test_category_index_out_of_range(self):
        with pytest.raises(CatalogValidationError, match="category index 3"):
            make_catalog([single_question("q1", category_index=3)])

    def test_category_weight_out_of_range(self):
        with pytest.raises(CatalogValidationError, match="weights category 3"):
            make_catalog([single_question("q1", category_weights={3: 1.0})])

    def test_negative_question_weight(self):
        with pytest.raises(CatalogValidationError, match="negative"):
            make_catalog([single_question("q1", category_weights=[1.0, -0.5])])

    def test_scored_question_without_category(self):
        question = single_question("q1")
        question["category_index"] = None
        with pytest.raises(CatalogValidationError, match="no category"):
            make_catalog([question])

    def test_unknown_type(self):
        question = single_question("q1")
        question["type"] = "dropdown"
        with pytest.raises(CatalogValidationError, match="unknown type"):
            make_catalog([question])

    def test_duplicate_ids(self):
        with pytest.raises(CatalogValidationError, match="Duplicate"):
            make_catalog([single_question("q1"), single_question("q1")])

    def test_conditional_parent_must_exist(self):
        question = single_question("q1", conditional={"question_id": "missing", "show_if_equals": "x"})
        with pytest.raises(CatalogValidationError, match="unknown question"):
            make_catalog([question])

    def test_conditional_needs_a_predicate(self):
        question = single_question("q1", conditional={"question_id": "practice_type"})
        with pytest.raises(CatalogValidationError, match="no predicate"):
            make_catalog([question])

    def test_slider_needs_a_range(self):
        slider = {"id": "s", "type": "slider", "category_index": 0, "min": 10, "max": 10}
        with pytest.raises(CatalogValidationError, match="min < max"):
            make_catalog([slider])

    def test_single_needs_options(self):
        question = single_question("q1")
        question["options"] = []
        with pytest.raises(CatalogValidationError, match="no options"):
            make_catalog([question])

    def test_unknown_segment_on_question(self):
        with pytest.raises(CatalogValidationError, match="unknown segments"):
            make_catalog([single_question("q1", segments=["A", "XYZ"])])

    def test_segment_weight_count(self):
        with pytest.raises(CatalogValidationError, match="needs 3 category weights"):
            make_catalog([single_question("q1")], segments={"A": {"category_weights": [0.5, 0.5]}})

    def test_two_category_segment_must_zero_third_weight(self):
        segments = {"A": {"category_weights": [0.5, 0.3, 0.2], "use_two_categories": True}}
        with pytest.raises(CatalogValidationError, match="third category"):
            make_catalog([single_question("q1")], segments=segments)

    def test_segment_weights_must_be_positive(self):
        with pytest.raises(CatalogValidationError, match="positive sum"):
            make_catalog([single_question("q1")], segments={"A": {"category_weights": [0, 0, 0]}})

    def test_default_segment_must_exist(self):
        with pytest.raises(CatalogValidationError, match="Default segment"):
            load_catalog(
                questions=[single_question("q1")],
                segments=SYNTHETIC_SEGMENTS,
                category_names=SYNTHETIC_CATEGORIES,
                default_segment="PP",
            )

    def test_category_count(self):
        with pytest.raises(CatalogValidationError, match="Expected 2 or 3 categories"):
            load_catalog(questions=[], segments=SYNTHETIC_SEGMENTS, category_names=["Only"], default_segment="A")
