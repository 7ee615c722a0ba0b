"""
Recommendation Selector

Canned recommendations with declarative answer triggers. Triggered
recommendations get a priority bump when their category scores weakly and
are returned highest priority first.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple, Union
import logging

from .catalog import QuestionCatalog, as_number, get_default_catalog, is_list_answer
from .questions import get_citation

logger = logging.getLogger(__name__)


# =============================================================================
# Trigger predicates
# =============================================================================

class Trigger:
    """Base class for answer predicates. Combine with ``&``, ``|`` and ``~``."""

    def __call__(self, answers: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def __and__(self, other: "Trigger") -> "AllOf":
        return AllOf((self, other))

    def __or__(self, other: "Trigger") -> "AnyOf":
        return AnyOf((self, other))

    def __invert__(self) -> "Not":
        return Not(self)


@dataclass(frozen=True)
class AnswerEquals(Trigger):
    """The answer equals a value. An unanswered key equals nothing."""
    question_id: str
    value: Any

    def __call__(self, answers: Mapping[str, Any]) -> bool:
        answer = answers.get(self.question_id)
        return answer is not None and answer == self.value


@dataclass(frozen=True)
class AnswerIn(Trigger):
    question_id: str
    values: Tuple[Any, ...]

    def __call__(self, answers: Mapping[str, Any]) -> bool:
        answer = answers.get(self.question_id)
        return answer is not None and answer in self.values


@dataclass(frozen=True)
class Includes(Trigger):
    """A multi-select answer contains the value."""
    question_id: str
    value: Any

    def __call__(self, answers: Mapping[str, Any]) -> bool:
        answer = answers.get(self.question_id)
        return is_list_answer(answer) and self.value in answer


@dataclass(frozen=True)
class LessThan(Trigger):
    """A numeric answer, or ``default`` when unanswered, is below the threshold."""
    question_id: str
    threshold: float
    default: float = 0

    def __call__(self, answers: Mapping[str, Any]) -> bool:
        value = as_number(answers.get(self.question_id))
        if value is None:
            value = self.default
        return value < self.threshold


@dataclass(frozen=True)
class AllOf(Trigger):
    triggers: Tuple[Any, ...]

    def __call__(self, answers: Mapping[str, Any]) -> bool:
        return all(t(answers) for t in self.triggers)


@dataclass(frozen=True)
class AnyOf(Trigger):
    triggers: Tuple[Any, ...]

    def __call__(self, answers: Mapping[str, Any]) -> bool:
        return any(t(answers) for t in self.triggers)


@dataclass(frozen=True)
class Not(Trigger):
    trigger: Any

    def __call__(self, answers: Mapping[str, Any]) -> bool:
        return not self.trigger(answers)


TriggerLike = Union[Trigger, Callable[[Mapping[str, Any]], bool]]


def evaluate_trigger(trigger: TriggerLike, answers: Mapping[str, Any], name: str = "trigger") -> bool:
    """Evaluate a trigger; a trigger that raises counts as not triggered."""
    try:
        return bool(trigger(answers))
    except Exception as e:
        logger.warning(f"Error evaluating {name}: {e}")
        return False


# =============================================================================
# Definitions
# =============================================================================

@dataclass(frozen=True)
class RecommendationDefinition:
    id: str
    title: str
    description: str
    category: str
    priority: int
    trigger: Any
    impact: str = "medium"
    financial_impact: str = ""
    feature: str = ""
    source_ref: Optional[int] = None
    segments: FrozenSet[str] = frozenset()


@dataclass
class Recommendation:
    """A triggered recommendation with its score-adjusted priority"""
    id: str
    title: str
    description: str
    category: str
    category_index: Optional[int]
    priority: int
    adjusted_priority: int
    impact: str
    financial_impact: str = ""
    feature: str = ""
    source_ref: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "category_index": self.category_index,
            "priority": self.priority,
            "adjusted_priority": self.adjusted_priority,
            "impact": self.impact,
            "financial_impact": self.financial_impact,
            "feature": self.feature,
            "source_ref": self.source_ref,
            "source": get_citation(self.source_ref)
        }


REVENUE_CYCLE = "Revenue Cycle Resilience"
PATIENT_EXPERIENCE = "Patient Payment Experience"
COMPETITIVE_POSITION = "Competitive Position"

RECOMMENDATION_DEFINITIONS: List[RecommendationDefinition] = [
    RecommendationDefinition(
        id="enable_autopay",
        title="Enable Autopay for Patient Balances",
        description="Implement autopay so patients opt in to automatic payments when bills arrive. "
                    "The single biggest lever for reducing AR and improving cash flow.",
        category=REVENUE_CYCLE,
        priority=95,
        impact="high",
        trigger=~Includes("payment_options", "autopay"),
        financial_impact="Autopay patients have 0 AR days. Even 30% enrollment can reduce overall AR days by 30%+.",
        feature="Autopay",
        source_ref=8
    ),
    RecommendationDefinition(
        id="increase_autopay_enrollment",
        title="Increase Autopay Enrollment",
        description="Your autopay exists but enrollment is low. Promote autopay at check-in and through "
                    "digital communications to capture more patients.",
        category=REVENUE_CYCLE,
        priority=88,
        impact="high",
        trigger=Includes("payment_options", "autopay") & LessThan("autopay_enrollment", 30),
        financial_impact="Every 10% increase in autopay enrollment reduces AR days by about 10% "
                         "and bad debt proportionally.",
        feature="Autopay promotion tools",
        source_ref=8
    ),
    RecommendationDefinition(
        id="implement_text_to_pay",
        title="Add Text-to-Pay Billing",
        description="Send patients a text with a secure pay link. 98% open rate within 90 seconds "
                    "versus weeks for paper.",
        category=PATIENT_EXPERIENCE,
        priority=90,
        impact="high",
        trigger=~Includes("payment_options", "text_to_pay"),
        financial_impact="60% text-to-pay engagement versus under 25% portal adoption. "
                         "Faster payments mean lower AR days.",
        feature="Text-to-Pay",
        source_ref=8
    ),
    RecommendationDefinition(
        id="modernize_billing_delivery",
        title="Move Beyond Paper Statements",
        description="Transition from paper-first to digital-first billing. Paper costs $3-5 per statement "
                    "and delays payment by weeks.",
        category=REVENUE_CYCLE,
        priority=82,
        impact="high",
        trigger=AnswerIn("billing_notification", ("paper_mailed", "paper_plus_portal")),
        financial_impact="Digital-first billing reduces cost-to-collect by 50%+ and accelerates payment by 2-4 weeks.",
        feature="Digital statements",
        source_ref=8
    ),
    RecommendationDefinition(
        id="improve_bill_clarity",
        title="Simplify Your Patient Bills",
        description="Clear, plain-language bills reduce confusion calls and speed up payment. "
                    "Visual breakdowns make a big difference.",
        category=PATIENT_EXPERIENCE,
        priority=75,
        impact="medium",
        trigger=AnswerIn("bill_clarity", ("confusing", "basic")),
        financial_impact="37% of patients miss bills due to complexity. Clear bills reduce inbound calls 40-60%.",
        feature="Clear statements",
        source_ref=5
    ),
    RecommendationDefinition(
        id="add_payment_plans",
        title="Offer Self-Service Payment Plans",
        description="Let patients set up their own plans online. Automated plan management reduces "
                    "staff burden and recovers more revenue.",
        category=PATIENT_EXPERIENCE,
        priority=85,
        impact="high",
        trigger=~Includes("payment_options", "payment_plan"),
        financial_impact="77% want payment plans. Self-service plans recover 50%+ of difficult balances "
                         "versus 12% manual.",
        feature="Payment plans",
        source_ref=6
    ),
    RecommendationDefinition(
        id="automate_plans_and_autopay",
        title="Fully Automate Plans and Autopay",
        description="Move from manual plan management to fully self-service. Patients enroll themselves, "
                    "payments auto-debit, and staff time is freed up.",
        category=REVENUE_CYCLE,
        priority=78,
        impact="high",
        trigger=AnswerEquals("autopay_plan_setup", "mostly_manual"),
        financial_impact="Automated plans have 3-4x higher completion rates. Self-service autopay enrollment "
                         "doubles adoption.",
        feature="Automation suite",
        source_ref=8
    ),
    RecommendationDefinition(
        id="implement_surcharging",
        title="Implement Compliant Surcharging",
        description="A compliant program offsets 2.5-3.5% processing costs while maintaining patient satisfaction.",
        category=REVENUE_CYCLE,
        priority=55,
        impact="medium",
        trigger=AnswerIn("convenience_fee", ("absorb", "considering")),
        financial_impact="Recovering processing fees can save $15,000-$50,000+ annually.",
        feature="Compliant surcharging",
        source_ref=8
    ),
    RecommendationDefinition(
        id="improve_upfront_collection",
        title="Strengthen Upfront Collection and Cost Transparency",
        description="Provide cost estimates before visits and collect at check-in with real-time "
                    "eligibility verification.",
        category=COMPETITIVE_POSITION,
        priority=72,
        impact="high",
        trigger=AnswerIn("upfront_collection", ("bill_after", "copays_at_checkout")),
        financial_impact="80% of patients want upfront estimates. Every dollar collected at service has 0 AR days.",
        feature="Point-of-service collection and cost estimation",
        source_ref=1
    ),
    RecommendationDefinition(
        id="reduce_billing_staff",
        title="Reduce Billing Staff Burden Through Automation",
        description="Automate statement generation, payment posting, follow-up reminders, and plan "
                    "management to free staff.",
        category=REVENUE_CYCLE,
        priority=70,
        impact="high",
        trigger=AnswerIn("billing_staff_burden", ("3_plus", "1_2_dedicated")),
        financial_impact="With labor at 84% of expenses and rising 11%+ annually, automation is essential "
                         "for margin protection.",
        feature="Automation suite",
        source_ref=2
    ),
    RecommendationDefinition(
        id="implement_auto_dunning",
        title="Implement Intelligent Auto-Dunning",
        description="Replace manual phone calls with automated digital follow-up sequences that include "
                    "payment plan offers and escalate intelligently.",
        category=REVENUE_CYCLE,
        priority=80,
        impact="high",
        trigger=AnswerIn("unpaid_and_bad_debt", ("write_off_high", "chase_manual", "not_sure")),
        financial_impact="Automated dunning recovers 2-3x more than manual follow-up by making it easy "
                         "to pay at every touchpoint.",
        feature="Smart dunning engine",
        source_ref=8
    ),
    RecommendationDefinition(
        id="leverage_billing_reputation",
        title="Turn Billing Into a Competitive Advantage",
        description="Transform billing from a neutral or negative factor into a positive differentiator "
                    "that attracts and retains patients.",
        category=COMPETITIVE_POSITION,
        priority=60,
        impact="medium",
        trigger=AnswerIn("billing_competitive", ("frequent_negative", "regular_neutral")),
        financial_impact="38% of patients have switched providers over billing. Making billing easy reduces "
                         "churn and attracts new patients.",
        feature="Patient experience suite",
        source_ref=3
    ),
    RecommendationDefinition(
        id="expand_digital_payments",
        title="Expand Digital Payment Options",
        description="Add mobile wallet, HSA/FSA, and text-to-pay. Patients who can pay their preferred "
                    "way pay faster.",
        category=PATIENT_EXPERIENCE,
        priority=65,
        impact="medium",
        trigger=(
            (~Includes("payment_options", "mobile_wallet") | ~Includes("payment_options", "hsa_fsa"))
            & ~Includes("payment_options", "text_to_pay")
        ),
        financial_impact="37% of patients now prefer mobile wallets. HSA/FSA acceptance captures "
                         "tax-advantaged dollars.",
        feature="Multi-payment support",
        source_ref=7
    ),
]


class RecommendationSelector:
    """
    Selects and ranks recommendations for an answer set.

    ``priority_boosts`` is a sequence of (threshold, bump) pairs; every
    threshold the category score falls below adds its bump.
    """

    def __init__(
        self,
        definitions: Sequence[RecommendationDefinition] = RECOMMENDATION_DEFINITIONS,
        catalog: Optional[QuestionCatalog] = None,
        priority_boosts: Sequence[Tuple[float, int]] = ((40, 10),)
    ):
        self.catalog = catalog or get_default_catalog()
        self.definitions = list(definitions)
        self.priority_boosts = tuple(priority_boosts)

        for definition in self.definitions:
            if definition.category not in self.catalog.category_names:
                logger.warning(
                    f"Recommendation '{definition.id}' names unknown category '{definition.category}'"
                )

    def _category_index(self, category: str) -> Optional[int]:
        try:
            return self.catalog.category_names.index(category)
        except ValueError:
            return None

    def adjusted_priority(self, definition: RecommendationDefinition, category_score: Optional[int]) -> int:
        priority = definition.priority
        if category_score is None:
            return priority
        for threshold, bump in self.priority_boosts:
            if category_score < threshold:
                priority += bump
        return priority

    def select(self, answers: Mapping[str, Any], scores=None) -> List[Recommendation]:
        """Triggered recommendations sorted by adjusted priority, highest first."""
        segment = scores.segment if scores is not None else self.catalog.resolve_segment(answers)
        config = self.catalog.segment_config(segment)

        selected = []
        for definition in self.definitions:
            if definition.segments and config.id not in definition.segments:
                continue

            category_index = self._category_index(definition.category)
            if category_index is not None and category_index not in config.active_categories:
                continue

            if not evaluate_trigger(definition.trigger, answers, name=f"trigger for '{definition.id}'"):
                continue

            category_score = None
            if scores is not None and category_index is not None:
                category_score = scores.category_score(category_index)

            selected.append(Recommendation(
                id=definition.id,
                title=definition.title,
                description=definition.description,
                category=definition.category,
                category_index=category_index,
                priority=definition.priority,
                adjusted_priority=self.adjusted_priority(definition, category_score),
                impact=definition.impact,
                financial_impact=definition.financial_impact,
                feature=definition.feature,
                source_ref=definition.source_ref
            ))

        # sorted() is stable, so ties keep definition order
        return sorted(selected, key=lambda r: r.adjusted_priority, reverse=True)
