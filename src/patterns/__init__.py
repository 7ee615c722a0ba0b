"""
Patterns Module for Practice Financial Resiliency

Reusable analytical patterns: tier banding, weighted scoring and
segment benchmarking.
"""

from .tier_classification import (
    TierClassifier,
    TierClassification,
    TierDirection,
    TierThreshold,
    create_score_level_classifier,
    create_score_color_classifier,
    create_gap_tier_classifier,
    create_resiliency_level_classifier,
    create_exposure_level_classifier
)

from .weighted_scoring import (
    WeightedAverage,
    clamp_score,
    linear_score,
    normalize_weights,
    round_half_up,
    weighted_overall
)

from .benchmark_engine import (
    BenchmarkEngine,
    GapEntry,
    GapResult,
    SegmentBenchmark,
    create_benchmark_engine,
    create_practice_benchmarks
)

__all__ = [
    # Tier Classification
    'TierClassifier',
    'TierClassification',
    'TierDirection',
    'TierThreshold',
    'create_score_level_classifier',
    'create_score_color_classifier',
    'create_gap_tier_classifier',
    'create_resiliency_level_classifier',
    'create_exposure_level_classifier',
    # Weighted Scoring
    'WeightedAverage',
    'clamp_score',
    'linear_score',
    'normalize_weights',
    'round_half_up',
    'weighted_overall',
    # Benchmarking
    'BenchmarkEngine',
    'GapEntry',
    'GapResult',
    'SegmentBenchmark',
    'create_benchmark_engine',
    'create_practice_benchmarks',
]
