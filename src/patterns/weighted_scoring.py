"""
Weighted Scoring Pattern - Practice Financial Resiliency

Small building blocks shared by every score calculation in the assessment:
half-up rounding, clamping to the 0-100 scale, linear normalization of
numeric answers, and a weighted-mean accumulator for category scores.

Use cases:
- Category scores from cross-weighted question contributions
- Overall score from segment category weights
- Force preparedness in the Resiliency Index
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence
import math
import logging

logger = logging.getLogger(__name__)

SCORE_MIN = 0
SCORE_MAX = 100


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float, low: int = SCORE_MIN, high: int = SCORE_MAX) -> int:
    """Round and clamp a score into [low, high]."""
    return max(low, min(high, round_half_up(value)))


def linear_score(value: float, min_value: float, max_value: float) -> int:
    """Map a value on [min_value, max_value] linearly onto 0-100."""
    if max_value == min_value:
        return SCORE_MAX if value >= max_value else SCORE_MIN
    return round_half_up((value - min_value) / (max_value - min_value) * 100)


def normalize_weights(weights: Sequence[float], label: str = "weights") -> List[float]:
    """Return weights rescaled to sum to 1.0, warning when they did not."""
    total_weight = sum(weights)
    if total_weight <= 0:
        raise ValueError(f"{label} must have a positive sum, got {list(weights)}")
    if abs(total_weight - 1.0) > 0.01:
        logger.warning(f"{label} sum to {total_weight}, not 1.0. Normalizing...")
        return [w / total_weight for w in weights]
    return list(weights)


@dataclass
class WeightedAverage:
    """Running weighted mean of (score, weight) contributions."""
    weighted_sum: float = 0.0
    total_weight: float = 0.0
    count: int = 0

    def add(self, score: float, weight: float = 1.0) -> None:
        if weight <= 0:
            return
        self.weighted_sum += score * weight
        self.total_weight += weight
        self.count += 1

    @property
    def is_empty(self) -> bool:
        return self.total_weight <= 0

    def mean(self, default: Optional[int] = None) -> Optional[int]:
        """Rounded, clamped mean; ``default`` when nothing contributed."""
        if self.is_empty:
            return default
        return clamp_score(self.weighted_sum / self.total_weight)


def weighted_overall(
    category_scores: Sequence[float],
    weights: Sequence[float],
    active: Optional[Iterable[int]] = None
) -> int:
    """
    Combine category scores into one overall score.

    Only categories listed in ``active`` take part (all by default). The
    weights are used as given, so a two-category segment whose third weight is
    zero produces the same total either way.
    """
    indexes = list(active) if active is not None else list(range(len(category_scores)))
    total = sum(category_scores[i] * weights[i] for i in indexes)
    return clamp_score(total)
