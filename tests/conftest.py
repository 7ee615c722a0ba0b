"""Pytest configuration and fixtures."""

import pytest

from config.settings import TestingConfig
from tests.fixtures_catalog import make_catalog, single_question


@pytest.fixture
def synthetic_catalog():
    """Small catalog covering every answer kind and visibility rule."""
    return make_catalog([
        {"id": "monthly_billing", "type": "currency", "is_diagnostic": True, "min": 0},
        single_question("q1"),
        single_question("q2"),
        single_question("cross", category_weights=[0.7, 0.3]),
        single_question("competitive", category_index=2),
        {
            "id": "tools",
            "text": "Which tools?",
            "type": "multi",
            "category_index": 1,
            "max_score": 50,
            "options": [
                {"value": "a", "label": "A", "points": 10},
                {"value": "b", "label": "B", "points": 20},
                {"value": "c", "label": "C", "points": 30},
            ],
            "exclusive_option": {"value": "none", "label": "None of these", "score": 5},
        },
        single_question(
            "tool_setup",
            category_index=1,
            conditional={"question_id": "tools", "show_if_includes_any": ["a", "b"]},
            auto_score={"when_hidden": True, "score": 5},
        ),
        {
            "id": "enrollment",
            "text": "Enrollment %",
            "type": "slider",
            "category_index": 0,
            "min": 0,
            "max": 80,
        },
    ])


@pytest.fixture
def app():
    """Flask app built with the testing configuration."""
    from web.app import create_app
    return create_app(TestingConfig)


@pytest.fixture
def client(app):
    """Test client for the app."""
    return app.test_client()


@pytest.fixture
def sample_answers():
    """A complete physical therapy answer set."""
    return {
        "practice_type": "PT",
        "monthly_patient_billing": 85000,
        "patient_ar_days": 48,
        "hdhp_percentage": 40,
        "billing_staff_burden": "1_2_dedicated",
        "unpaid_and_bad_debt": "chase_manual",
        "billing_notification": "paper_mailed",
        "bill_clarity": "basic",
        "payment_options": ["front_desk", "portal", "payment_plan"],
        "autopay_plan_setup": "mostly_manual",
        "upfront_collection": "copays_at_checkout",
        "convenience_fee": "absorb",
        "billing_competitive": "regular_neutral",
        "pt_copay_collection": "sometimes",
    }


@pytest.fixture
def assessment_result(sample_answers):
    """Full assessment of the sample answers."""
    from src.assessment.assessment_engine import AssessmentEngine
    return AssessmentEngine().assess(sample_answers, assessment_id="abc12345-0000")


@pytest.fixture
def contact_form():
    return {"first_name": "Dana", "last_name": "Reyes", "email": "dana@example.com", "facility_name": "Reyes PT"}
