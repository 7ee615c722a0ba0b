"""
Practice Financial Resiliency Assessment Engine

Scores assessment responses and generates insights:
- Overall and category scores (0-100) under segment weights
- Gap analysis against segment benchmarks
- Prioritized recommendations and projected improvements
- Financial insights, strengths and the Resiliency Index
"""

from dataclasses import dataclass
from typing import Dict, List, Any, Mapping, Optional
from datetime import datetime
import logging
import uuid

from src.patterns.benchmark_engine import BenchmarkEngine, GapResult, create_benchmark_engine
from src.patterns.tier_classification import (
    TierClassification,
    create_score_color_classifier,
    create_score_level_classifier
)

from .catalog import QuestionCatalog, QuestionDefinition, get_default_catalog
from .insights import FinancialInsights, StrengthsReport, analyze_strengths, calculate_insights
from .projections import Projection, ProjectionConfig, ProjectionEstimator
from .recommendations import RECOMMENDATION_DEFINITIONS, Recommendation, RecommendationSelector
from .resiliency import ResiliencyCalculator, ResiliencyResult
from .scoring import ScoreAggregator, ScoreResult, score_question
from .visibility import VisibilityResolver

logger = logging.getLogger(__name__)


@dataclass
class AssessmentResult:
    """Complete assessment result"""
    assessment_id: str
    completed_at: datetime
    segment: str
    segment_label: str
    scores: ScoreResult
    score_level: TierClassification
    gap_analysis: GapResult
    recommendations: List[Recommendation]
    projection: Projection
    insights: FinancialInsights
    strengths: StrengthsReport
    resiliency: ResiliencyResult
    answers: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "assessment_id": self.assessment_id,
            "completed_at": self.completed_at.isoformat(),
            "segment": self.segment,
            "segment_label": self.segment_label,
            "scores": self.scores.to_dict(),
            "score_level": self.score_level.to_dict(),
            "gap_analysis": self.gap_analysis.to_dict(),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "projection": self.projection.to_dict(),
            "insights": self.insights.to_dict(),
            "strengths": self.strengths.to_dict(),
            "resiliency": self.resiliency.to_dict(),
            "answers": self.answers
        }


class AssessmentEngine:
    """
    Engine for scoring practice financial resiliency assessments.

    Wires the catalog, visibility resolver, score aggregator, benchmark
    engine, recommendation selector, projection estimator and Resiliency
    Index calculator together. Each collaborator can be injected.

    Example:
        engine = AssessmentEngine()

        answers = {
            "practice_type": "PT",
            "billing_notification": "paper_mailed",
            "payment_options": ["front_desk", "portal"],
            ...
        }

        result = engine.assess(answers, assessment_id="abc123")
        print(f"Overall Score: {result.scores.overall}")
        print(f"Resiliency Index: {result.resiliency.index}")
    """

    def __init__(
        self,
        catalog: Optional[QuestionCatalog] = None,
        benchmark_engine: Optional[BenchmarkEngine] = None,
        projection_config: Optional[ProjectionConfig] = None,
        default_category_score: int = 50
    ):
        """Initialize the assessment engine"""
        self.catalog = catalog or get_default_catalog()
        self.resolver = VisibilityResolver(self.catalog)
        self.aggregator = ScoreAggregator(self.catalog, self.resolver, default_category_score)
        self.benchmark_engine = benchmark_engine or create_benchmark_engine(
            self.catalog.category_names, self.catalog.default_segment
        )
        self.projection_config = projection_config or ProjectionConfig()
        self.selector = RecommendationSelector(RECOMMENDATION_DEFINITIONS, self.catalog)
        self.estimator = ProjectionEstimator(self.catalog, self.aggregator, self.projection_config)
        self.resiliency_calculator = ResiliencyCalculator(self.catalog, self.resolver, self.projection_config)
        self.level_classifier = create_score_level_classifier()
        self.color_classifier = create_score_color_classifier()

    def visible_questions(self, answers: Mapping[str, Any]) -> List[QuestionDefinition]:
        return self.resolver.visible_questions(answers)

    def score_question(self, question_id: str, answer: Any) -> Optional[int]:
        question = self.catalog.get_question(question_id)
        if question is None:
            return None
        return score_question(question, answer)

    def calculate_scores(self, answers: Mapping[str, Any]) -> ScoreResult:
        return self.aggregator.calculate_scores(answers)

    def gap_analysis(self, scores: ScoreResult) -> GapResult:
        return self.benchmark_engine.gap_analysis(scores)

    def recommendations(
        self,
        answers: Mapping[str, Any],
        scores: Optional[ScoreResult] = None
    ) -> List[Recommendation]:
        if scores is None:
            scores = self.calculate_scores(answers)
        return self.selector.select(answers, scores)

    def projected_scores(
        self,
        answers: Mapping[str, Any],
        scores: Optional[ScoreResult] = None
    ) -> Projection:
        return self.estimator.project(answers, scores)

    def insights(self, answers: Mapping[str, Any]) -> FinancialInsights:
        return calculate_insights(answers, self.catalog, self.projection_config.metrics)

    def strengths(
        self,
        answers: Mapping[str, Any],
        scores: Optional[ScoreResult] = None
    ) -> StrengthsReport:
        if scores is None:
            scores = self.calculate_scores(answers)
        return analyze_strengths(answers, scores, self.aggregator, self.benchmark_engine)

    def resiliency_index(self, answers: Mapping[str, Any]) -> ResiliencyResult:
        return self.resiliency_calculator.calculate(answers)

    def score_level(self, score: float) -> TierClassification:
        return self.level_classifier.classify(score)

    def score_color(self, score: float) -> str:
        return self.color_classifier.color_for(score)

    def assess(
        self,
        answers: Mapping[str, Any],
        assessment_id: Optional[str] = None
    ) -> AssessmentResult:
        """
        Run every analysis over an answer set.

        Args:
            answers: Dict mapping question_id to the answer value
            assessment_id: Optional ID for this assessment

        Returns:
            AssessmentResult with scores, gaps, recommendations and insights
        """
        if assessment_id is None:
            assessment_id = str(uuid.uuid4())

        scores = self.calculate_scores(answers)
        segment_config = self.catalog.segment_config(scores.segment)

        logger.info(f"Assessment {assessment_id}: segment={scores.segment}, overall={scores.overall}")

        return AssessmentResult(
            assessment_id=assessment_id,
            completed_at=datetime.now(),
            segment=scores.segment,
            segment_label=segment_config.label,
            scores=scores,
            score_level=self.score_level(scores.overall),
            gap_analysis=self.gap_analysis(scores),
            recommendations=self.recommendations(answers, scores),
            projection=self.projected_scores(answers, scores),
            insights=self.insights(answers),
            strengths=self.strengths(answers, scores),
            resiliency=self.resiliency_index(answers),
            answers=dict(answers)
        )

    def get_question(self, question_id: str) -> Optional[QuestionDefinition]:
        return self.catalog.get_question(question_id)

    def get_segments(self) -> List[Dict[str, Any]]:
        return [config.to_dict() for config in self.catalog.segments.values()]

    def validate_answers(self, answers: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Validate answer set against the currently visible questions.

        Returns dict with:
        - valid: bool
        - missing_questions: list of missing question IDs
        - invalid_values: list of questions with invalid values
        - completion_percentage: float
        """
        missing = []
        invalid = []

        visible = self.visible_questions(answers)
        for question in visible:
            answer = answers.get(question.id)
            if answer is None or answer == "" or answer == []:
                missing.append(question.id)
            elif not question.kind.is_valid(answer):
                invalid.append(question.id)

        total = len(visible)
        answered = total - len(missing)

        return {
            "valid": len(missing) == 0 and len(invalid) == 0,
            "missing_questions": missing,
            "invalid_values": invalid,
            "completion_percentage": (answered / total * 100) if total > 0 else 0,
            "answered_count": answered,
            "total_count": total
        }


# Singleton instance
_engine: Optional[AssessmentEngine] = None


def get_assessment_engine() -> AssessmentEngine:
    """Get or create singleton assessment engine"""
    global _engine
    if _engine is None:
        _engine = AssessmentEngine()
    return _engine
