"""
Projection Estimator

Simulates how category and overall scores would move once the billing
platform is in place, by applying a static boost to each eligible question
and feeding the gains back through the segment weights with diminishing
returns near the top of the scale.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Mapping, Optional, Tuple
import logging

from src.patterns.weighted_scoring import round_half_up, weighted_overall

from .catalog import QuestionCatalog, get_default_catalog
from .questions import get_citation
from .scoring import ContributionState, QuestionEvaluation, ScoreAggregator, ScoreResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreImprovement:
    """Boost applied to one question's score, capped at ``max_score``."""
    boost: int
    max_score: int
    description: str = ""
    source_ref: Optional[int] = None


@dataclass(frozen=True)
class OutcomeMetrics:
    """Observed customer outcomes used by the financial insights."""
    ar_days_reduction: float = 0.47
    bad_debt_reduction: float = 0.40
    collections_improvement: float = 2.0
    first_30_days_improvement: float = 0.25
    text_to_pay_rate: float = 0.60
    industry_text_to_pay_rate: float = 0.43
    digital_adoption: float = 0.90
    autopay_target: float = 0.40

    def to_dict(self) -> Dict[str, float]:
        return {
            "ar_days_reduction": self.ar_days_reduction,
            "bad_debt_reduction": self.bad_debt_reduction,
            "collections_improvement": self.collections_improvement,
            "first_30_days_improvement": self.first_30_days_improvement,
            "text_to_pay_rate": self.text_to_pay_rate,
            "industry_text_to_pay_rate": self.industry_text_to_pay_rate,
            "digital_adoption": self.digital_adoption,
            "autopay_target": self.autopay_target
        }


SCORE_IMPROVEMENTS: Dict[str, ScoreImprovement] = {
    "billing_staff_burden": ScoreImprovement(30, 85, "Automate billing operations", 8),
    "unpaid_and_bad_debt": ScoreImprovement(35, 85, "Smart dunning and payment plans reduce write-offs", 8),
    "billing_notification": ScoreImprovement(40, 90, "Instant digital notifications with click-to-pay", 8),
    "bill_clarity": ScoreImprovement(35, 95, "Clear, patient-friendly statement design", 8),
    "payment_options": ScoreImprovement(30, 100, "Full-spectrum digital payment options", 8),
    "autopay_plan_setup": ScoreImprovement(45, 90, "Fully self-service autopay and payment plans", 8),
    "autopay_enrollment": ScoreImprovement(30, 80, "Proven autopay promotion tools", 8),
    "upfront_collection": ScoreImprovement(25, 85, "Pre-visit cost estimates and point-of-service collection", 1),
    "convenience_fee": ScoreImprovement(20, 90, "Compliant surcharging program", 8),
    "billing_competitive": ScoreImprovement(25, 85, "Transform billing into a competitive edge", 3),
    # Segment-specific
    "pt_copay_collection": ScoreImprovement(25, 90, "Automated copay collection per visit", 8),
    "bh_noshow_management": ScoreImprovement(30, 85, "Card on file with automated no-show fees", 8),
    "bh_affordability": ScoreImprovement(25, 85, "Self-service plans and autopay for ongoing care", 8),
    "uc_selfpay_process": ScoreImprovement(30, 90, "Transparent pricing and instant payment", 8),
    "asc_financial_clearance": ScoreImprovement(25, 85, "Pre-procedure financial clearance workflow", 8),
    "fc_financial_counseling": ScoreImprovement(20, 80, "Financial counseling and payment plan tools", 8),
    "fc_bundled_pricing": ScoreImprovement(15, 75, "Bundled payment and financing integration", 8),
}


@dataclass(frozen=True)
class ProjectionConfig:
    improvements: Mapping[str, ScoreImprovement] = field(default_factory=lambda: dict(SCORE_IMPROVEMENTS))
    multiplier: float = 1.5
    headroom_fraction: float = 0.7
    top_n: int = 5
    metrics: OutcomeMetrics = field(default_factory=OutcomeMetrics)


@dataclass
class QuestionImprovement:
    question_id: str
    description: str
    question_text: str
    current_score: int
    projected_score: int
    improvement: int
    overall_impact: int
    category_impacts: Dict[int, int]
    category_index: Optional[int] = None
    category: str = ""
    source_ref: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question_id": self.question_id,
            "description": self.description,
            "question_text": self.question_text,
            "current_score": self.current_score,
            "projected_score": self.projected_score,
            "improvement": self.improvement,
            "overall_impact": self.overall_impact,
            "category_impacts": {str(i): v for i, v in self.category_impacts.items()},
            "category_index": self.category_index,
            "category": self.category,
            "source_ref": self.source_ref,
            "source": get_citation(self.source_ref)
        }


@dataclass
class CategoryImprovement:
    index: int
    name: str
    current: int
    projected: int

    @property
    def improvement(self) -> int:
        return self.projected - self.current

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "name": self.name,
            "current": self.current,
            "projected": self.projected,
            "improvement": self.improvement
        }


@dataclass
class Projection:
    """Current versus projected scores with the improvements behind them"""
    current_overall: int
    current_categories: Tuple[int, ...]
    projected_overall: int
    projected_categories: Tuple[int, ...]
    top_improvements: List[QuestionImprovement] = field(default_factory=list)
    additional_improvements: List[QuestionImprovement] = field(default_factory=list)
    category_improvements: List[CategoryImprovement] = field(default_factory=list)

    @property
    def overall_improvement(self) -> int:
        return self.projected_overall - self.current_overall

    @property
    def questions_improved(self) -> int:
        return len(self.top_improvements) + len(self.additional_improvements)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": {"overall": self.current_overall, "categories": list(self.current_categories)},
            "projected": {"overall": self.projected_overall, "categories": list(self.projected_categories)},
            "overall_improvement": self.overall_improvement,
            "top_improvements": [i.to_dict() for i in self.top_improvements],
            "additional_improvements": [i.to_dict() for i in self.additional_improvements],
            "category_improvements": [c.to_dict() for c in self.category_improvements],
            "questions_improved": self.questions_improved
        }


class ProjectionEstimator:
    """
    Estimates projected scores for an answer set.

    Example:
        estimator = ProjectionEstimator(catalog, aggregator)
        projection = estimator.project(answers, scores)
        print(projection.current_overall, "->", projection.projected_overall)
    """

    def __init__(
        self,
        catalog: Optional[QuestionCatalog] = None,
        aggregator: Optional[ScoreAggregator] = None,
        config: Optional[ProjectionConfig] = None
    ):
        self.catalog = catalog or get_default_catalog()
        self.aggregator = aggregator or ScoreAggregator(self.catalog)
        self.config = config or ProjectionConfig()

    def _relevant_questions(self, answers: Mapping[str, Any]) -> List[QuestionEvaluation]:
        """Scored questions that currently count: answered visible ones, then auto-scored hidden ones."""
        evaluations = [e for e in self.aggregator.evaluate(answers) if e.contributes]
        visible = [e for e in evaluations if e.state == ContributionState.VISIBLE]
        hidden = [e for e in evaluations if e.state == ContributionState.HIDDEN_AUTO_SCORED]
        return visible + hidden

    def _question_improvement(
        self,
        evaluation: QuestionEvaluation,
        weights: Tuple[float, ...],
        active_categories: Tuple[int, ...]
    ) -> Optional[QuestionImprovement]:
        question = evaluation.question
        improvement_def = self.config.improvements.get(question.id)
        if improvement_def is None:
            return None

        current = evaluation.score

        projected = min(improvement_def.max_score, current + improvement_def.boost)
        improvement = projected - current
        if improvement <= 0:
            return None

        category_impacts = {
            index: round_half_up(improvement * weight)
            for index, weight in self.aggregator.split_by_category(question, active_categories)
        }
        overall_impact = round_half_up(sum(impact * weights[i] for i, impact in category_impacts.items()))
        if overall_impact <= 0:
            return None

        return QuestionImprovement(
            question_id=question.id,
            description=improvement_def.description,
            question_text=question.text,
            current_score=current,
            projected_score=projected,
            improvement=improvement,
            overall_impact=overall_impact,
            category_impacts=category_impacts,
            category_index=question.category_index,
            category=self.catalog.category_name(question.category_index)
            if question.category_index is not None else "",
            source_ref=improvement_def.source_ref
        )

    def project(self, answers: Mapping[str, Any], scores: Optional[ScoreResult] = None) -> Projection:
        """Project category and overall scores for an answer set."""
        if scores is None:
            scores = self.aggregator.calculate_scores(answers)

        segment_config = self.catalog.segment_config(scores.segment)
        weights = segment_config.category_weights
        active = segment_config.active_categories

        improvements = []
        for evaluation in self._relevant_questions(answers):
            entry = self._question_improvement(evaluation, weights, active)
            if entry is not None:
                improvements.append(entry)

        improvements.sort(key=lambda i: i.overall_impact, reverse=True)

        # Average of the positive impacts per category
        totals = {index: 0 for index in active}
        counts = {index: 0 for index in active}
        for entry in improvements:
            for index, impact in entry.category_impacts.items():
                if impact > 0:
                    totals[index] += impact
                    counts[index] += 1

        projected = list(scores.categories)
        for index in active:
            if index >= len(projected) or counts[index] == 0:
                continue
            average = totals[index] / counts[index]
            headroom = 100 - projected[index]
            effective = min(average * self.config.multiplier, headroom * self.config.headroom_fraction)
            projected[index] = min(100, round_half_up(projected[index] + effective))

        projected_overall = weighted_overall(projected, weights, range(len(projected)))

        category_improvements = [
            CategoryImprovement(
                index=index,
                name=self.catalog.category_name(index),
                current=scores.categories[index],
                projected=projected[index]
            )
            for index in range(len(projected))
        ]

        top_n = self.config.top_n
        return Projection(
            current_overall=scores.overall,
            current_categories=tuple(scores.categories),
            projected_overall=projected_overall,
            projected_categories=tuple(projected),
            top_improvements=improvements[:top_n],
            additional_improvements=improvements[top_n:],
            category_improvements=category_improvements
        )
