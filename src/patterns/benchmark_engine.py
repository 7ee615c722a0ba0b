"""
Benchmark Engine Pattern - Practice Financial Resiliency

Compares assessment scores against static per-segment peer benchmarks and
produces a gap analysis: signed gaps, performance tiers, the biggest
opportunity and the strongest area.

Use cases:
- Segment benchmark comparison on the results page
- Strength analysis (categories at or above benchmark)
- Report snapshot figures (AR days, collection rate, bad debt)
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Any, Sequence
import logging

from .tier_classification import TierClassifier, create_gap_tier_classifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SegmentBenchmark:
    """Peer benchmark figures for one practice segment."""
    segment: str
    label: str
    overall: int
    categories: Dict[int, int]
    ar_days: int
    collection_rate: float
    bad_debt_rate: float

    def category(self, index: int) -> Optional[int]:
        return self.categories.get(index)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "segment": self.segment,
            "label": self.label,
            "overall": self.overall,
            "categories": dict(self.categories),
            "ar_days": self.ar_days,
            "collection_rate": self.collection_rate,
            "bad_debt_rate": self.bad_debt_rate
        }


@dataclass
class GapEntry:
    """Score versus benchmark for the overall score or one category."""
    key: str
    name: str
    score: int
    benchmark: int
    gap: int
    performance_tier: str
    tier_label: str = ""
    category_index: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "score": self.score,
            "benchmark": self.benchmark,
            "gap": self.gap,
            "performance_tier": self.performance_tier,
            "tier_label": self.tier_label,
            "category_index": self.category_index
        }


@dataclass
class GapResult:
    """Complete gap analysis for one score result."""
    segment: str
    segment_label: str
    overall: GapEntry
    categories: List[GapEntry]
    biggest_opportunity: Optional[GapEntry] = None
    strongest_area: Optional[GapEntry] = None
    benchmark: Optional[SegmentBenchmark] = None

    def category(self, index: int) -> Optional[GapEntry]:
        for entry in self.categories:
            if entry.category_index == index:
                return entry
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "segment": self.segment,
            "segment_label": self.segment_label,
            "overall": self.overall.to_dict(),
            "categories": [c.to_dict() for c in self.categories],
            "biggest_opportunity": self.biggest_opportunity.to_dict() if self.biggest_opportunity else None,
            "strongest_area": self.strongest_area.to_dict() if self.strongest_area else None,
            "benchmark": self.benchmark.to_dict() if self.benchmark else None
        }


class BenchmarkEngine:
    """
    Segment benchmarking engine.

    Example:
    ```python
    engine = BenchmarkEngine(create_practice_benchmarks(), CATEGORY_NAMES)

    result = engine.gap_analysis(scores)
    print(result.overall.gap, result.overall.performance_tier)
    print(f"Focus on: {result.biggest_opportunity.name}")
    ```
    """

    def __init__(
        self,
        benchmarks: Dict[str, SegmentBenchmark],
        category_names: Sequence[str],
        default_segment: str = "PP",
        tier_classifier: Optional[TierClassifier] = None
    ):
        if default_segment not in benchmarks:
            raise ValueError(f"No benchmark configured for default segment '{default_segment}'")
        self.benchmarks = dict(benchmarks)
        self.category_names = list(category_names)
        self.default_segment = default_segment
        self.tier_classifier = tier_classifier or create_gap_tier_classifier()

    def get_benchmark(self, segment: Optional[str]) -> SegmentBenchmark:
        """Benchmark row for a segment, falling back to the default row."""
        benchmark = self.benchmarks.get(segment) if segment else None
        if benchmark is None:
            logger.debug(f"No benchmark for segment '{segment}', using '{self.default_segment}'")
            benchmark = self.benchmarks[self.default_segment]
        return benchmark

    def _entry(
        self,
        key: str,
        name: str,
        score: int,
        benchmark: int,
        category_index: Optional[int] = None
    ) -> GapEntry:
        gap = score - benchmark
        tier = self.tier_classifier.threshold_for(gap)
        return GapEntry(
            key=key,
            name=name,
            score=score,
            benchmark=benchmark,
            gap=gap,
            performance_tier=tier.key,
            tier_label=tier.label,
            category_index=category_index
        )

    def gap_analysis(self, scores) -> GapResult:
        """
        Compare a ScoreResult with its segment benchmark.

        Categories are taken in the order of ``scores.categories``, which
        lists the active categories only.
        """
        benchmark = self.get_benchmark(scores.segment)

        overall = self._entry("overall", "Overall", scores.overall, benchmark.overall)

        categories = []
        for index, score in enumerate(scores.categories):
            category_benchmark = benchmark.category(index)
            if category_benchmark is None:
                continue
            name = self.category_names[index] if index < len(self.category_names) else f"Category {index}"
            categories.append(self._entry(f"category_{index}", name, score, category_benchmark, index))

        biggest_opportunity = None
        strongest_area = None
        for entry in categories:
            if biggest_opportunity is None or entry.gap < biggest_opportunity.gap:
                biggest_opportunity = entry
            if strongest_area is None or entry.gap > strongest_area.gap:
                strongest_area = entry

        return GapResult(
            segment=benchmark.segment,
            segment_label=benchmark.label,
            overall=overall,
            categories=categories,
            biggest_opportunity=biggest_opportunity,
            strongest_area=strongest_area,
            benchmark=benchmark
        )


# =============================================================================
# Factory Functions
# =============================================================================

def create_practice_benchmarks() -> Dict[str, SegmentBenchmark]:
    """Peer benchmarks for the six ambulatory segments."""
    rows = [
        # segment, label, overall, categories, AR days, collection rate, bad debt
        ("PP", "Physician Practice", 55, (55, 50, 50), 38, 0.96, 0.03),
        ("PT", "Physical Therapy", 52, (55, 48, 48), 30, 0.95, 0.035),
        ("BH", "Behavioral Health", 42, (40, 42, 40), 65, 0.88, 0.05),
        ("UC", "Urgent Care", 55, (58, 50, 50), 28, 0.94, 0.04),
        ("ASC", "Surgery Center", 58, (60, 52, 55), 25, 0.97, 0.025),
        ("FC", "Fertility Clinic", 50, (48, 50, 48), 30, 0.90, 0.04),
    ]
    return {
        segment: SegmentBenchmark(
            segment=segment,
            label=label,
            overall=overall,
            categories=dict(enumerate(categories)),
            ar_days=ar_days,
            collection_rate=collection_rate,
            bad_debt_rate=bad_debt_rate
        )
        for segment, label, overall, categories, ar_days, collection_rate, bad_debt_rate in rows
    }


def create_benchmark_engine(category_names: Sequence[str], default_segment: str = "PP") -> BenchmarkEngine:
    """Benchmark engine preloaded with the practice benchmarks."""
    return BenchmarkEngine(create_practice_benchmarks(), category_names, default_segment)
