"""
Assessment Scoring

Question Scorer and Score Aggregator:
- Per-question 0-100 scores from the answer kind's scoring payload
- Per-category weighted means with cross-category weights
- Auto scores for conditional questions that are hidden
- Overall score from the segment's category weights
"""

from dataclasses import dataclass
from typing import Dict, List, Any, Mapping, Optional, Tuple
from enum import Enum
import logging

from src.patterns.weighted_scoring import WeightedAverage, clamp_score, weighted_overall

from .catalog import QuestionCatalog, QuestionDefinition, get_default_catalog, is_list_answer
from .visibility import VisibilityResolver

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_SCORE = 50


def score_question(question: QuestionDefinition, answer: Any) -> Optional[int]:
    """
    Score one answer on the 0-100 scale.

    Returns None for unanswered, routing and diagnostic questions, for
    number/currency inputs, and for single answers that match no option.
    """
    if answer is None or not question.is_scored:
        return None

    raw_score = question.kind.score(answer)
    if raw_score is None:
        return None
    return clamp_score(raw_score)


class ContributionState(Enum):
    """How a scoring question takes part in category scores."""
    VISIBLE = "visible"
    HIDDEN_AUTO_SCORED = "hidden_auto_scored"
    HIDDEN_NO_CONTRIBUTION = "hidden_no_contribution"


@dataclass
class QuestionEvaluation:
    """Outcome of evaluating one scoring question against an answer set"""
    question: QuestionDefinition
    state: ContributionState
    score: Optional[int] = None

    @property
    def contributes(self) -> bool:
        return self.state != ContributionState.HIDDEN_NO_CONTRIBUTION and self.score is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "question_id": self.question.id,
            "state": self.state.value,
            "score": self.score
        }


@dataclass
class ScoreResult:
    """Overall and per-category scores for one answer set"""
    overall: int
    categories: Tuple[int, ...]
    segment: str
    weights: Tuple[float, ...] = ()
    use_two_categories: bool = False

    def category_score(self, index: int) -> Optional[int]:
        if 0 <= index < len(self.categories):
            return self.categories[index]
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "overall": self.overall,
            "categories": list(self.categories),
            "segment": self.segment,
            "weights": list(self.weights),
            "use_two_categories": self.use_two_categories
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScoreResult":
        return cls(
            overall=int(data["overall"]),
            categories=tuple(int(c) for c in data["categories"]),
            segment=data["segment"],
            weights=tuple(data.get("weights") or ()),
            use_two_categories=bool(data.get("use_two_categories", False))
        )


def _parent_matches(question: QuestionDefinition, answers: Mapping[str, Any]) -> bool:
    """True when the parent answer is one of the auto score's trigger values."""
    if question.auto_score is None or not question.auto_score.when_parent_is:
        return False
    parent_answer = answers.get(question.conditional.question_id)
    trigger_values = question.auto_score.when_parent_is
    if is_list_answer(parent_answer):
        return any(v in parent_answer for v in trigger_values)
    return parent_answer in trigger_values


class ScoreAggregator:
    """
    Combines question scores into category and overall scores.

    Example:
        aggregator = ScoreAggregator(get_default_catalog())
        result = aggregator.calculate_scores({
            "practice_type": "PP",
            "billing_notification": "email_digital",
            "bill_clarity": "clear",
        })
        print(result.overall, result.categories)
    """

    def __init__(
        self,
        catalog: Optional[QuestionCatalog] = None,
        resolver: Optional[VisibilityResolver] = None,
        default_category_score: int = DEFAULT_CATEGORY_SCORE
    ):
        self.catalog = catalog or get_default_catalog()
        self.resolver = resolver or VisibilityResolver(self.catalog)
        self.default_category_score = default_category_score

    def evaluate(self, answers: Mapping[str, Any]) -> List[QuestionEvaluation]:
        """Classify every scoring question of the resolved segment."""
        segment = self.catalog.resolve_segment(answers)
        visible_ids = self.resolver.visible_ids(answers)

        evaluations = []
        for question in self.catalog.questions:
            if not question.is_scored or not question.applies_to(segment):
                continue

            if question.id in visible_ids:
                evaluations.append(QuestionEvaluation(
                    question=question,
                    state=ContributionState.VISIBLE,
                    score=score_question(question, answers.get(question.id))
                ))
                continue

            auto_score = question.auto_score
            if auto_score is not None and (auto_score.when_hidden or _parent_matches(question, answers)):
                evaluations.append(QuestionEvaluation(
                    question=question,
                    state=ContributionState.HIDDEN_AUTO_SCORED,
                    score=clamp_score(auto_score.score)
                ))
            else:
                evaluations.append(QuestionEvaluation(
                    question=question,
                    state=ContributionState.HIDDEN_NO_CONTRIBUTION
                ))

        return evaluations

    def split_by_category(
        self,
        question: QuestionDefinition,
        active_categories: Tuple[int, ...]
    ) -> List[Tuple[int, float]]:
        """Weight pairs of a question limited to the active categories."""
        return [(index, weight) for index, weight in question.weight_pairs() if index in active_categories]

    def accumulate(self, answers: Mapping[str, Any]) -> Dict[int, WeightedAverage]:
        """Weighted sum and weight total per active category."""
        config = self.catalog.segment_config(self.catalog.resolve_segment(answers))
        totals = {index: WeightedAverage() for index in config.active_categories}

        for evaluation in self.evaluate(answers):
            if not evaluation.contributes:
                continue
            for index, weight in self.split_by_category(evaluation.question, config.active_categories):
                totals[index].add(evaluation.score, weight)

        return totals

    def calculate_scores(self, answers: Mapping[str, Any]) -> ScoreResult:
        """Compute the category and overall scores for an answer set."""
        config = self.catalog.segment_config(self.catalog.resolve_segment(answers))
        totals = self.accumulate(answers)

        category_scores = [self.default_category_score] * len(config.category_weights)
        for index in config.active_categories:
            category_scores[index] = totals[index].mean(default=self.default_category_score)

        overall = weighted_overall(category_scores, config.category_weights, config.active_categories)

        logger.debug(f"Scored segment {config.id}: overall={overall}, categories={category_scores}")

        return ScoreResult(
            overall=overall,
            categories=tuple(category_scores[i] for i in config.active_categories),
            segment=config.id,
            weights=config.category_weights,
            use_two_categories=config.use_two_categories
        )

    def question_scores(self, answers: Mapping[str, Any]) -> Dict[str, int]:
        """Scores of the visible, answered scoring questions."""
        return {
            e.question.id: e.score
            for e in self.evaluate(answers)
            if e.state == ContributionState.VISIBLE and e.score is not None
        }
