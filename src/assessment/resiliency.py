"""
Resiliency Index

Measures how well a practice withstands five external market forces it
cannot control. Answers are re-read through a vulnerability lens:

    Resiliency Index = 100 - sum(force weight x amplified exposure)
    Exposure         = 100 - preparedness
    Preparedness     = weighted mean of the mapped question scores

Amplifiers scale a force's exposure by the practice's own situation (HDHP
share, billing headcount, current bad debt).
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
import logging

from src.patterns.tier_classification import (
    TierClassifier,
    create_exposure_level_classifier,
    create_resiliency_level_classifier
)
from src.patterns.weighted_scoring import WeightedAverage, clamp_score, round_half_up

from .catalog import QuestionCatalog, as_number, get_default_catalog, is_list_answer
from .projections import ProjectionConfig
from .scoring import score_question
from .visibility import VisibilityResolver

logger = logging.getLogger(__name__)

DEFAULT_PREPAREDNESS = 30
DEFAULT_PROJECTED_PREPAREDNESS = 50
OFFERED_SCORE = 85
NOT_OFFERED_SCORE = 5
PROJECTED_AMPLIFIER_DAMPING = 0.7

METHODOLOGY = (
    "The Resiliency Index measures your practice's preparedness against 5 external market forces: "
    "rising patient responsibility, digital payment expectations, labor costs, bad debt trends, and "
    "competitive billing pressure. Each force is weighted by its acceleration rate and amplified by "
    "your specific exposure (for example, a higher HDHP percentage increases your patient "
    "responsibility vulnerability). Your answers determine your preparedness score per force, and the "
    "index reflects how well-protected your practice is against forces you cannot control but can "
    "prepare for."
)


@dataclass(frozen=True)
class ForceQuestion:
    """
    A question feeding a force's preparedness.

    With ``sub_values`` the question is read as "offers all of these":
    85 when the multi-select answer contains every value, else 5.
    """
    question_id: str
    weight: float
    label: str = ""
    sub_values: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MarketForce:
    id: str
    name: str
    short_name: str
    weight: float
    questions: Tuple[ForceQuestion, ...]
    description: str = ""
    trend: str = ""
    amplifier: Optional[Callable[[Mapping[str, Any]], float]] = None

    def amplifier_for(self, answers: Mapping[str, Any]) -> float:
        if self.amplifier is None:
            return 1.0
        return self.amplifier(answers)


def _hdhp_amplifier(answers: Mapping[str, Any]) -> float:
    hdhp = (as_number(answers.get("hdhp_percentage")) or 30) / 100
    # 0.7 at 0% HDHP up to 1.3 at 80%
    return 0.7 + hdhp * 0.75


def _staff_amplifier(answers: Mapping[str, Any]) -> float:
    staff = answers.get("billing_staff_burden")
    if staff == "3_plus":
        return 1.3
    if staff == "1_2_dedicated":
        return 1.15
    return 1.0


def _bad_debt_amplifier(answers: Mapping[str, Any]) -> float:
    bad_debt = answers.get("unpaid_and_bad_debt")
    if bad_debt == "write_off_high":
        return 1.4
    if bad_debt in ("chase_manual", "not_sure"):
        return 1.2
    return 1.0


MARKET_FORCES: List[MarketForce] = [
    MarketForce(
        id="patient_responsibility",
        name="Rising Patient Responsibility",
        short_name="Patient Responsibility",
        weight=0.25,
        description="HDHP enrollment grew 22% in one year and deductibles average $1,886. More of your "
                    "revenue depends on patients paying you, not insurance.",
        trend="HDHP enrollment 27% to 33% in one year, still accelerating",
        questions=(
            ForceQuestion("payment_options", 1.5, "Autopay available", ("autopay",)),
            ForceQuestion("payment_options", 1.2, "Payment plans available", ("payment_plan",)),
            ForceQuestion("autopay_plan_setup", 1.3, "Autopay/plan automation"),
            ForceQuestion("autopay_enrollment", 1.0, "Autopay adoption"),
            ForceQuestion("upfront_collection", 1.0, "Upfront collection"),
            ForceQuestion("billing_notification", 0.8, "Fast billing notification"),
        ),
        amplifier=_hdhp_amplifier
    ),
    MarketForce(
        id="expectation_gap",
        name="Patient Expectation Gap",
        short_name="Expectation Gap",
        weight=0.25,
        description="92% of consumers use digital payments daily and 56% would switch providers over "
                    "billing. Patients expect healthcare billing to work like the rest of their life.",
        trend="Digital payment adoption universal, 73% want retail convenience",
        questions=(
            ForceQuestion("billing_notification", 1.3, "Digital-first notifications"),
            ForceQuestion("bill_clarity", 1.0, "Bill clarity"),
            ForceQuestion("payment_options", 1.2, "Payment options breadth"),
            ForceQuestion("billing_competitive", 1.0, "Patient perception"),
            ForceQuestion("upfront_collection", 0.8, "Cost transparency"),
        )
    ),
    MarketForce(
        id="labor_cost",
        name="Labor Cost Pressure",
        short_name="Labor Costs",
        weight=0.20,
        description="Labor is 84% of practice expenses and operating costs rose 11% last year. Adding "
                    "people to billing is not sustainable; automation is.",
        trend="90% of medical groups report rising costs, 11.1% increase in 2025",
        questions=(
            ForceQuestion("billing_staff_burden", 1.5, "Staff dependency"),
            ForceQuestion("autopay_plan_setup", 1.2, "Process automation"),
            ForceQuestion("billing_notification", 1.0, "Notification automation"),
            ForceQuestion("unpaid_and_bad_debt", 0.8, "Follow-up automation"),
        ),
        amplifier=_staff_amplifier
    ),
    MarketForce(
        id="bad_debt_trajectory",
        name="Bad Debt Acceleration",
        short_name="Bad Debt",
        weight=0.20,
        description="Bad debt jumped 14% last year and 58% now comes from insured patients who have "
                    "coverage but cannot navigate the payment process.",
        trend="Bad debt up 14% year over year, 58% from insured patients",
        questions=(
            ForceQuestion("unpaid_and_bad_debt", 1.5, "Collection process"),
            ForceQuestion("payment_options", 1.3, "Payment plans", ("payment_plan",)),
            ForceQuestion("payment_options", 1.3, "Autopay", ("autopay",)),
            ForceQuestion("autopay_plan_setup", 1.0, "Plan automation"),
            ForceQuestion("billing_notification", 0.8, "Timely notification"),
            ForceQuestion("bill_clarity", 0.7, "Bill clarity"),
        ),
        amplifier=_bad_debt_amplifier
    ),
    MarketForce(
        id="competitive_billing",
        name="Competitive Billing Pressure",
        short_name="Competitive Risk",
        weight=0.10,
        description="38% of patients have already switched providers over billing and 94% say billing "
                    "matters for whether they return. Competitors are modernizing.",
        trend="56% would switch, 74% of under-26 patients",
        questions=(
            ForceQuestion("billing_competitive", 1.5, "Billing reputation"),
            ForceQuestion("bill_clarity", 1.0, "Bill clarity"),
            ForceQuestion("payment_options", 1.0, "Payment convenience"),
            ForceQuestion("upfront_collection", 1.0, "Cost transparency"),
        )
    ),
]


@dataclass
class ForceResult:
    id: str
    name: str
    short_name: str
    weight: float
    preparedness: int
    exposure: int
    amplified_exposure: int
    vulnerability: int
    level: str
    color: str = ""
    description: str = ""
    trend: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "short_name": self.short_name,
            "weight": self.weight,
            "preparedness": self.preparedness,
            "exposure": self.exposure,
            "amplified_exposure": self.amplified_exposure,
            "vulnerability": self.vulnerability,
            "level": self.level,
            "color": self.color,
            "description": self.description,
            "trend": self.trend
        }


@dataclass
class ResiliencyResult:
    index: int
    level: str
    color: str
    composite_vulnerability: int
    forces: List[ForceResult]
    projected_index: int
    projected_forces: List[ForceResult]
    summary: str
    methodology: str = METHODOLOGY
    most_vulnerable: Optional[ForceResult] = None
    most_protected: Optional[ForceResult] = None

    @property
    def projected_improvement(self) -> int:
        return self.projected_index - self.index

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "level": self.level,
            "color": self.color,
            "composite_vulnerability": self.composite_vulnerability,
            "forces": [f.to_dict() for f in self.forces],
            "projected_index": self.projected_index,
            "projected_forces": [f.to_dict() for f in self.projected_forces],
            "projected_improvement": self.projected_improvement,
            "summary": self.summary,
            "methodology": self.methodology,
            "most_vulnerable": self.most_vulnerable.id if self.most_vulnerable else None,
            "most_protected": self.most_protected.id if self.most_protected else None
        }


class ResiliencyCalculator:
    """
    Computes the current and projected Resiliency Index.

    Example:
        calculator = ResiliencyCalculator(catalog)
        result = calculator.calculate(answers)
        print(f"{result.index}/100 ({result.level})")
    """

    def __init__(
        self,
        catalog: Optional[QuestionCatalog] = None,
        resolver: Optional[VisibilityResolver] = None,
        projection_config: Optional[ProjectionConfig] = None,
        forces: Optional[List[MarketForce]] = None,
        level_classifier: Optional[TierClassifier] = None,
        exposure_classifier: Optional[TierClassifier] = None
    ):
        self.catalog = catalog or get_default_catalog()
        self.resolver = resolver or VisibilityResolver(self.catalog)
        self.projection_config = projection_config or ProjectionConfig()
        self.forces = forces if forces is not None else MARKET_FORCES
        self.level_classifier = level_classifier or create_resiliency_level_classifier()
        self.exposure_classifier = exposure_classifier or create_exposure_level_classifier()

        total = sum(f.weight for f in self.forces)
        if abs(total - 1.0) > 0.01:
            logger.warning(f"Market force weights sum to {total}, not 1.0")

    def question_preparedness(
        self,
        mapping: ForceQuestion,
        answers: Mapping[str, Any],
        visible_ids: set
    ) -> int:
        answer = answers.get(mapping.question_id)

        if mapping.sub_values:
            if is_list_answer(answer) and all(v in answer for v in mapping.sub_values):
                return OFFERED_SCORE
            return NOT_OFFERED_SCORE

        question = self.catalog.get_question(mapping.question_id)
        if question is not None:
            score = score_question(question, answer)
            if score is not None:
                return score
            auto_score = question.auto_score
            if auto_score is not None and auto_score.when_hidden and question.id not in visible_ids:
                return clamp_score(auto_score.score)
        return DEFAULT_PREPAREDNESS

    def projected_question_preparedness(
        self,
        mapping: ForceQuestion,
        answers: Mapping[str, Any],
        visible_ids: set
    ) -> int:
        if "autopay" in mapping.sub_values or "payment_plan" in mapping.sub_values:
            return OFFERED_SCORE

        current = self.question_preparedness(mapping, answers, visible_ids)
        improvement = self.projection_config.improvements.get(mapping.question_id)
        if improvement is not None:
            return min(improvement.max_score, current + improvement.boost)
        return current

    def _force_result(
        self,
        force: MarketForce,
        preparedness: int,
        amplifier: float
    ) -> ForceResult:
        exposure = 100 - preparedness
        amplified = min(100, round_half_up(exposure * amplifier))
        level = self.exposure_classifier.classify(amplified)
        return ForceResult(
            id=force.id,
            name=force.name,
            short_name=force.short_name,
            weight=force.weight,
            preparedness=preparedness,
            exposure=exposure,
            amplified_exposure=amplified,
            vulnerability=round_half_up(force.weight * amplified),
            level=level.label,
            color=level.color,
            description=force.description,
            trend=force.trend
        )

    def _preparedness(self, force: MarketForce, score_for: Callable[[ForceQuestion], int], default: int) -> int:
        average = WeightedAverage()
        for mapping in force.questions:
            average.add(score_for(mapping), mapping.weight)
        return average.mean(default=default)

    def _summary(self, index: int, most_vulnerable: ForceResult, most_protected: ForceResult) -> str:
        if index >= 65:
            return (f"Your practice shows strong resilience against external market pressures. Your strongest "
                    f"protection is against {most_protected.name.lower()}. Continue building on these foundations.")
        if index >= 40:
            return (f"Your practice has moderate resilience, but significant exposure to "
                    f"{most_vulnerable.name.lower()}. The market forces affecting patient billing are "
                    f"accelerating, so closing these gaps now protects your revenue.")
        return (f"Your practice is significantly exposed to the market forces reshaping healthcare billing. "
                f"Your biggest vulnerability is {most_vulnerable.name.lower()}, and these pressures are "
                f"accelerating. The good news: these are all things within your control to address.")

    def calculate(self, answers: Mapping[str, Any]) -> ResiliencyResult:
        visible_ids = self.resolver.visible_ids(answers)

        forces = []
        projected_forces = []
        for force in self.forces:
            amplifier = force.amplifier_for(answers)

            preparedness = self._preparedness(
                force,
                lambda m: self.question_preparedness(m, answers, visible_ids),
                DEFAULT_PREPAREDNESS
            )
            forces.append(self._force_result(force, preparedness, amplifier))

            projected_preparedness = self._preparedness(
                force,
                lambda m: self.projected_question_preparedness(m, answers, visible_ids),
                DEFAULT_PROJECTED_PREPAREDNESS
            )
            projected_amplifier = max(1.0, amplifier * PROJECTED_AMPLIFIER_DAMPING) if force.amplifier else 1.0
            projected_forces.append(self._force_result(force, projected_preparedness, projected_amplifier))

        composite = sum(f.vulnerability for f in forces)
        index = clamp_score(100 - composite)
        projected_index = clamp_score(100 - sum(f.vulnerability for f in projected_forces))

        # First force wins ties in both directions
        most_vulnerable = max(forces, key=lambda f: f.amplified_exposure) if forces else None
        most_protected = min(forces, key=lambda f: f.amplified_exposure) if forces else None

        level = self.level_classifier.classify(index)

        return ResiliencyResult(
            index=index,
            level=level.label,
            color=level.color,
            composite_vulnerability=composite,
            forces=forces,
            projected_index=projected_index,
            projected_forces=projected_forces,
            summary=self._summary(index, most_vulnerable, most_protected) if forces else "",
            most_vulnerable=most_vulnerable,
            most_protected=most_protected
        )


def calculate_resiliency_index(
    answers: Mapping[str, Any],
    catalog: Optional[QuestionCatalog] = None
) -> ResiliencyResult:
    """Resiliency Index with the shipped market forces."""
    return ResiliencyCalculator(catalog).calculate(answers)
