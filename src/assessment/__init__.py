"""
Practice Financial Resiliency Assessment Module

Patient billing readiness assessment with:
- Segment-routed questionnaire with conditional questions
- Weighted, cross-category scoring engine
- Benchmark gap analysis and recommendations
- Projections, financial insights and the Resiliency Index
"""

from .assessment_engine import AssessmentEngine, AssessmentResult, get_assessment_engine
from .catalog import (
    CatalogValidationError,
    QuestionCatalog,
    QuestionDefinition,
    QuestionType,
    SegmentConfig,
    get_default_catalog,
    load_catalog
)
from .questions import ASSESSMENT_QUESTIONS, CATEGORY_NAMES, SEGMENTS, SOURCE_CITATIONS, get_citation
from .scoring import ScoreAggregator, ScoreResult, score_question
from .visibility import VisibilityResolver

__all__ = [
    'AssessmentEngine', 'AssessmentResult', 'get_assessment_engine',
    'CatalogValidationError', 'QuestionCatalog', 'QuestionDefinition', 'QuestionType',
    'SegmentConfig', 'get_default_catalog', 'load_catalog',
    'ASSESSMENT_QUESTIONS', 'CATEGORY_NAMES', 'SEGMENTS', 'SOURCE_CITATIONS', 'get_citation',
    'ScoreAggregator', 'ScoreResult', 'score_question',
    'VisibilityResolver'
]
