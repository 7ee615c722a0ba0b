"""
Financial Insights and Strengths

Turns the diagnostic answers into dollar figures (cash tied up in AR, bad
debt, staff cost, card fees) and picks out what the practice already does
well relative to its peers.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Mapping, Optional
import logging

from src.patterns.benchmark_engine import BenchmarkEngine
from src.patterns.weighted_scoring import round_half_up

from .catalog import QuestionCatalog, as_number, get_default_catalog
from .projections import OutcomeMetrics
from .scoring import ScoreAggregator, ScoreResult

logger = logging.getLogger(__name__)

DEFAULT_MONTHLY_BILLING = 75000
DEFAULT_AR_DAYS = 45
DEFAULT_HDHP_PERCENTAGE = 30

CARD_PAYMENT_SHARE = 0.65
CREDIT_CARD_FEE_RATE = 0.03
HDHP_GROWTH_RATE = 0.22
AUTOPAY_AR_FACTOR = 0.8
PAYMENT_PLAN_RECOVERY = 0.50
STAFF_SAVINGS_RATE = 0.50

BAD_DEBT_RATES = {
    "write_off_high": 0.06,
    "chase_manual": 0.04,
    "collections_agency": 0.025,
    "automated_low": 0.015,
    "not_sure": 0.04,
}

STAFF_COSTS = {
    "3_plus": 135000,
    "1_2_dedicated": 90000,
    "part_of_roles": 30000,
    "minimal_automated": 5000,
}

CATEGORY_COLORS = ["#3c8fc7", "#8B5CF6", "#fcc93b"]


def _number_answer(answers: Mapping[str, Any], question_id: str, default: float) -> float:
    """Numeric answer; missing, malformed and zero answers take the default."""
    value = as_number(answers.get(question_id))
    return value if value else default


def _choice_answer(answers: Mapping[str, Any], question_id: str, default: str) -> str:
    """Single-choice answer value; anything but a non-empty string takes the default."""
    value = answers.get(question_id)
    return value if isinstance(value, str) and value else default


@dataclass
class FinancialInsights:
    """Dollar-denominated view of the practice's patient billing"""
    monthly_billing: float
    annual_billing: float
    daily_billing: float
    ar_days: float
    cash_in_ar: int
    projected_ar_days: int
    cash_freed_by_ar_reduction: int
    bad_debt_rate: float
    current_bad_debt: int
    bad_debt_savings: int
    autopay_enrollment: float
    autopay_target: float
    ar_days_reduction_from_autopay: int
    cash_freed_by_autopay: int
    payment_plan_opportunity: int
    current_staff_cost: int
    staff_time_savings: int
    annual_card_fees_absorbed: int
    hdhp_percentage: float
    hdhp_exposure: int
    projected_hdhp_growth: int
    potential_freed_cash: int
    total_financial_opportunity: int
    target_ar_days: int
    segment: str
    practice_type: str

    @property
    def autopay_opportunity(self) -> int:
        return self.cash_freed_by_autopay

    @property
    def credit_card_fee_savings(self) -> int:
        return self.annual_card_fees_absorbed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "monthly_billing": self.monthly_billing,
            "annual_billing": self.annual_billing,
            "daily_billing": round(self.daily_billing, 2),
            "ar_days": self.ar_days,
            "cash_in_ar": self.cash_in_ar,
            "projected_ar_days": self.projected_ar_days,
            "cash_freed_by_ar_reduction": self.cash_freed_by_ar_reduction,
            "bad_debt_rate": self.bad_debt_rate,
            "current_bad_debt": self.current_bad_debt,
            "bad_debt_savings": self.bad_debt_savings,
            "autopay_enrollment": self.autopay_enrollment,
            "autopay_target": self.autopay_target,
            "ar_days_reduction_from_autopay": self.ar_days_reduction_from_autopay,
            "cash_freed_by_autopay": self.cash_freed_by_autopay,
            "autopay_opportunity": self.autopay_opportunity,
            "payment_plan_opportunity": self.payment_plan_opportunity,
            "current_staff_cost": self.current_staff_cost,
            "staff_time_savings": self.staff_time_savings,
            "credit_card_fee_savings": self.credit_card_fee_savings,
            "annual_card_fees_absorbed": self.annual_card_fees_absorbed,
            "hdhp_percentage": self.hdhp_percentage,
            "hdhp_exposure": self.hdhp_exposure,
            "projected_hdhp_growth": self.projected_hdhp_growth,
            "potential_freed_cash": self.potential_freed_cash,
            "total_financial_opportunity": self.total_financial_opportunity,
            "target_ar_days": self.target_ar_days,
            "segment": self.segment,
            "practice_type": self.practice_type
        }


def calculate_insights(
    answers: Mapping[str, Any],
    catalog: Optional[QuestionCatalog] = None,
    metrics: Optional[OutcomeMetrics] = None
) -> FinancialInsights:
    """Compute the financial snapshot for an answer set."""
    catalog = catalog or get_default_catalog()
    metrics = metrics or OutcomeMetrics()
    segment_config = catalog.segment_config(catalog.resolve_segment(answers))

    monthly_billing = _number_answer(answers, "monthly_patient_billing", DEFAULT_MONTHLY_BILLING)
    annual_billing = monthly_billing * 12
    daily_billing = annual_billing / 365
    ar_days = _number_answer(answers, "patient_ar_days", DEFAULT_AR_DAYS)
    hdhp_share = _number_answer(answers, "hdhp_percentage", DEFAULT_HDHP_PERCENTAGE) / 100
    target_ar_days = segment_config.target_ar_days

    cash_in_ar = round_half_up(daily_billing * ar_days)
    projected_ar_days = round_half_up(ar_days * (1 - metrics.ar_days_reduction))
    cash_freed = round_half_up(daily_billing * (ar_days - projected_ar_days))

    unpaid_answer = _choice_answer(answers, "unpaid_and_bad_debt", "chase_manual")
    bad_debt_rate = BAD_DEBT_RATES.get(unpaid_answer, BAD_DEBT_RATES["chase_manual"])
    current_bad_debt = round_half_up(annual_billing * bad_debt_rate)
    bad_debt_savings = round_half_up(current_bad_debt * metrics.bad_debt_reduction)

    enrollment = (as_number(answers.get("autopay_enrollment")) or 0) / 100
    autopay_gap = max(0, metrics.autopay_target - enrollment)
    ar_reduction_from_autopay = round_half_up(ar_days * autopay_gap * AUTOPAY_AR_FACTOR)
    cash_freed_by_autopay = round_half_up(daily_billing * ar_reduction_from_autopay)

    payment_plan_opportunity = round_half_up(current_bad_debt * PAYMENT_PLAN_RECOVERY)

    staff_answer = _choice_answer(answers, "billing_staff_burden", "part_of_roles")
    current_staff_cost = STAFF_COSTS.get(staff_answer, STAFF_COSTS["part_of_roles"])
    staff_time_savings = round_half_up(current_staff_cost * STAFF_SAVINGS_RATE)

    fee_answer = _choice_answer(answers, "convenience_fee", "absorb")
    card_fees_absorbed = 0
    if fee_answer in ("absorb", "considering"):
        card_fees_absorbed = round_half_up(annual_billing * CARD_PAYMENT_SHARE * CREDIT_CARD_FEE_RATE)

    hdhp_exposure = round_half_up(annual_billing * hdhp_share)
    projected_hdhp_growth = round_half_up(hdhp_exposure * HDHP_GROWTH_RATE)

    potential_freed_cash = max(0, round_half_up(daily_billing * max(0, ar_days - target_ar_days)))

    total_opportunity = cash_freed + bad_debt_savings + staff_time_savings

    return FinancialInsights(
        monthly_billing=monthly_billing,
        annual_billing=annual_billing,
        daily_billing=daily_billing,
        ar_days=ar_days,
        cash_in_ar=cash_in_ar,
        projected_ar_days=projected_ar_days,
        cash_freed_by_ar_reduction=cash_freed,
        bad_debt_rate=bad_debt_rate,
        current_bad_debt=current_bad_debt,
        bad_debt_savings=bad_debt_savings,
        autopay_enrollment=enrollment * 100,
        autopay_target=metrics.autopay_target * 100,
        ar_days_reduction_from_autopay=ar_reduction_from_autopay,
        cash_freed_by_autopay=cash_freed_by_autopay,
        payment_plan_opportunity=payment_plan_opportunity,
        current_staff_cost=current_staff_cost,
        staff_time_savings=staff_time_savings,
        annual_card_fees_absorbed=card_fees_absorbed,
        hdhp_percentage=hdhp_share * 100,
        hdhp_exposure=hdhp_exposure,
        projected_hdhp_growth=projected_hdhp_growth,
        potential_freed_cash=potential_freed_cash,
        total_financial_opportunity=total_opportunity,
        target_ar_days=target_ar_days,
        segment=segment_config.id,
        practice_type=segment_config.label
    )


# =============================================================================
# Strengths
# =============================================================================

@dataclass
class CategoryStrength:
    index: int
    name: str
    score: int
    gap: int
    color: str
    celebration_text: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "name": self.name,
            "score": self.score,
            "gap": self.gap,
            "color": self.color,
            "celebration_text": self.celebration_text
        }


@dataclass
class QuestionStrength:
    question_id: str
    question: str
    score: int
    answer: Any = None
    category_index: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question_id": self.question_id,
            "question": self.question,
            "score": self.score,
            "answer": self.answer,
            "category_index": self.category_index
        }


@dataclass
class StrengthsReport:
    summary_statement: str
    strong_categories: List[CategoryStrength] = field(default_factory=list)
    strong_questions: List[QuestionStrength] = field(default_factory=list)
    moderate_questions: List[QuestionStrength] = field(default_factory=list)
    relative_strength: Optional[CategoryStrength] = None

    @property
    def has_strengths(self) -> bool:
        return len(self.strong_categories) > 0 or len(self.strong_questions) >= 2

    @property
    def is_early_journey(self) -> bool:
        return not self.has_strengths

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary_statement": self.summary_statement,
            "strong_categories": [c.to_dict() for c in self.strong_categories],
            "strong_questions": [q.to_dict() for q in self.strong_questions],
            "moderate_questions": [q.to_dict() for q in self.moderate_questions],
            "has_strengths": self.has_strengths,
            "is_early_journey": self.is_early_journey,
            "relative_strength": self.relative_strength.to_dict() if self.relative_strength else None
        }


STRONG_QUESTION_SCORE = 65
MODERATE_QUESTION_SCORE = 40


def _celebration_text(gap: int, benchmark_label: str) -> str:
    if gap >= 15:
        return f"Excellent! You're {gap} points above the {benchmark_label} benchmark."
    if gap >= 5:
        return "Solid! You're above the industry benchmark here."
    return "You're meeting the industry standard, a good foundation to build on."


def _summary_statement(strong_categories: List[CategoryStrength], strong_questions: List[QuestionStrength]) -> str:
    if len(strong_categories) >= 2:
        return (f"Your practice shows strong performance across {len(strong_categories)} categories. "
                "You've already built a solid foundation for financial resilience.")
    if len(strong_categories) == 1:
        return (f"Your {strong_categories[0].name} score stands out. "
                "Let's build on this strength while addressing other areas.")
    if strong_questions:
        return ("While your overall scores show room to grow, you have specific areas where you're "
                "performing well. These are foundations to build on.")
    return ("Your assessment reveals significant opportunities across the board. "
            "The good news: these are all things within your control to improve.")


def analyze_strengths(
    answers: Mapping[str, Any],
    scores: ScoreResult,
    aggregator: ScoreAggregator,
    benchmark_engine: BenchmarkEngine
) -> StrengthsReport:
    """Categories at or above benchmark and the best-answered questions."""
    gaps = benchmark_engine.gap_analysis(scores)
    benchmark_label = gaps.segment_label

    strong_categories = []
    for entry in gaps.categories:
        if entry.gap >= 0:
            strong_categories.append(CategoryStrength(
                index=entry.category_index,
                name=entry.name,
                score=entry.score,
                gap=entry.gap,
                color=CATEGORY_COLORS[entry.category_index % len(CATEGORY_COLORS)],
                celebration_text=_celebration_text(entry.gap, benchmark_label)
            ))

    strong_questions = []
    moderate_questions = []
    for question_id, score in aggregator.question_scores(answers).items():
        question = aggregator.catalog.get_question(question_id)
        strength = QuestionStrength(
            question_id=question_id,
            question=question.text,
            score=score,
            answer=answers.get(question_id),
            category_index=question.category_index
        )
        if score >= STRONG_QUESTION_SCORE:
            strong_questions.append(strength)
        elif score >= MODERATE_QUESTION_SCORE:
            moderate_questions.append(strength)

    strong_questions.sort(key=lambda q: q.score, reverse=True)
    moderate_questions.sort(key=lambda q: q.score, reverse=True)

    report = StrengthsReport(
        summary_statement=_summary_statement(strong_categories, strong_questions),
        strong_categories=strong_categories,
        strong_questions=strong_questions[:5],
        moderate_questions=moderate_questions[:4]
    )

    if report.is_early_journey and gaps.categories:
        best = gaps.categories[0]
        for entry in gaps.categories[1:]:
            if entry.score > best.score:
                best = entry
        report.relative_strength = CategoryStrength(
            index=best.category_index,
            name=best.name,
            score=best.score,
            gap=best.gap,
            color=CATEGORY_COLORS[best.category_index % len(CATEGORY_COLORS)]
        )

    return report
