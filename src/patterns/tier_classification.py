"""
Tier Classification Pattern - Practice Financial Resiliency

Converts continuous values into discrete, labelled tiers. One classifier
type covers every banding the assessment needs:

- Score levels (Highly Resilient ... Significant Gaps)
- Benchmark gap performance tiers (above / near / below / significantly below)
- Resiliency Index levels
- Force exposure levels (lower exposure is better)
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Any
from enum import Enum
import logging

logger = logging.getLogger(__name__)


# Brand palette shared by the report layer
COLOR_SUCCESS = "#10B981"
COLOR_SECONDARY = "#3c8fc7"
COLOR_WARNING = "#F59E0B"
COLOR_DANGER = "#EF4444"
COLOR_CRITICAL = "#DC2626"


class TierDirection(Enum):
    """How a value is compared against tier bounds."""
    AT_LEAST = "at_least"  # first tier whose bound is <= value, highest bound first
    AT_MOST = "at_most"    # first tier whose bound is >= value, lowest bound first


@dataclass(frozen=True)
class TierThreshold:
    """A single tier. ``bound=None`` marks the catch-all tier."""
    key: str
    label: str
    bound: Optional[float]
    color: str = ""
    description: str = ""


@dataclass
class TierClassification:
    """Result of classifying one value."""
    value: float
    key: str
    label: str
    color: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "key": self.key,
            "label": self.label,
            "color": self.color,
            "description": self.description
        }


class TierClassifier:
    """
    Classifies a value into the first matching tier.

    Example:
    ```python
    classifier = TierClassifier([
        TierThreshold("strong", "Strong", 70),
        TierThreshold("fair", "Fair", 40),
        TierThreshold("weak", "Weak", None),
    ])

    classifier.classify(55).label  # "Fair"
    ```
    """

    def __init__(
        self,
        thresholds: List[TierThreshold],
        direction: TierDirection = TierDirection.AT_LEAST,
        name: str = "tier"
    ):
        self.direction = direction
        self.name = name
        self.thresholds = list(thresholds)
        self._validate_thresholds()

    def _validate_thresholds(self) -> None:
        """Validate threshold configuration."""
        if not self.thresholds:
            raise ValueError(f"{self.name}: at least one threshold must be defined")

        bounded = [t for t in self.thresholds if t.bound is not None]
        catch_all = [t for t in self.thresholds if t.bound is None]

        if len(catch_all) != 1 or self.thresholds[-1].bound is not None:
            raise ValueError(f"{self.name}: exactly one catch-all tier must come last")

        for current, next_t in zip(bounded, bounded[1:]):
            if self.direction == TierDirection.AT_LEAST and not current.bound > next_t.bound:
                raise ValueError(
                    f"{self.name}: bounds must decrease ({current.key}={current.bound}, "
                    f"{next_t.key}={next_t.bound})"
                )
            if self.direction == TierDirection.AT_MOST and not current.bound < next_t.bound:
                raise ValueError(
                    f"{self.name}: bounds must increase ({current.key}={current.bound}, "
                    f"{next_t.key}={next_t.bound})"
                )

    def _matches(self, value: float, threshold: TierThreshold) -> bool:
        if threshold.bound is None:
            return True
        if self.direction == TierDirection.AT_LEAST:
            return value >= threshold.bound
        return value <= threshold.bound

    def threshold_for(self, value: float) -> TierThreshold:
        for threshold in self.thresholds:
            if self._matches(value, threshold):
                return threshold
        return self.thresholds[-1]

    def classify(self, value: float) -> TierClassification:
        """Classify a value into its tier."""
        threshold = self.threshold_for(value)
        return TierClassification(
            value=value,
            key=threshold.key,
            label=threshold.label,
            color=threshold.color,
            description=threshold.description
        )

    def label_for(self, value: float) -> str:
        return self.threshold_for(value).label

    def key_for(self, value: float) -> str:
        return self.threshold_for(value).key

    def color_for(self, value: float) -> str:
        return self.threshold_for(value).color

    def get_threshold_summary(self) -> List[Dict[str, Any]]:
        """Get summary of configured thresholds."""
        return [
            {
                "key": t.key,
                "label": t.label,
                "bound": t.bound,
                "color": t.color,
                "description": t.description
            }
            for t in self.thresholds
        ]


# =============================================================================
# Factory Functions
# =============================================================================

def create_score_level_classifier() -> TierClassifier:
    """Readiness score (0-100, higher is better) to a named level."""
    return TierClassifier([
        TierThreshold("highly_resilient", "Highly Resilient", 85, COLOR_SUCCESS,
                      "Billing operations are built to absorb market pressure"),
        TierThreshold("well_positioned", "Well Positioned", 70, COLOR_SECONDARY,
                      "Solid foundation with a few targeted gaps"),
        TierThreshold("building_resilience", "Building Resilience", 55, COLOR_SECONDARY,
                      "Progress made, several processes still manual"),
        TierThreshold("at_risk", "At Risk", 40, COLOR_WARNING,
                      "Meaningful revenue exposed to collection friction"),
        TierThreshold("significant_gaps", "Significant Gaps", None, COLOR_DANGER,
                      "Patient revenue is highly exposed"),
    ], name="score_level")


def create_score_color_classifier() -> TierClassifier:
    """Display color for a 0-100 score."""
    return TierClassifier([
        TierThreshold("strong", "Strong", 80, COLOR_SUCCESS),
        TierThreshold("fair", "Fair", 60, COLOR_SECONDARY),
        TierThreshold("weak", "Weak", 40, COLOR_WARNING),
        TierThreshold("critical", "Critical", None, COLOR_DANGER),
    ], name="score_color")


def create_gap_tier_classifier() -> TierClassifier:
    """Score-minus-benchmark gap to a performance tier."""
    return TierClassifier([
        TierThreshold("above", "Above Benchmark", 10, COLOR_SUCCESS),
        TierThreshold("near", "Near Benchmark", -5, COLOR_SECONDARY),
        TierThreshold("below", "Below Benchmark", -15, COLOR_WARNING),
        TierThreshold("significantly_below", "Significantly Below Benchmark", None, COLOR_DANGER),
    ], name="gap_tier")


def create_resiliency_level_classifier() -> TierClassifier:
    """Resiliency Index (0-100, higher is better) to a named level."""
    return TierClassifier([
        TierThreshold("highly_resilient", "Highly Resilient", 80, COLOR_SUCCESS),
        TierThreshold("resilient", "Resilient", 65, COLOR_SECONDARY),
        TierThreshold("moderately_resilient", "Moderately Resilient", 45, COLOR_WARNING),
        TierThreshold("vulnerable", "Vulnerable", 25, COLOR_DANGER),
        TierThreshold("highly_vulnerable", "Highly Vulnerable", None, COLOR_CRITICAL),
    ], name="resiliency_level")


def create_exposure_level_classifier() -> TierClassifier:
    """Force exposure (0-100, lower is better) to a named level."""
    return TierClassifier([
        TierThreshold("well_protected", "Well Protected", 20, COLOR_SUCCESS),
        TierThreshold("moderately_protected", "Moderately Protected", 40, COLOR_SECONDARY),
        TierThreshold("partially_exposed", "Partially Exposed", 60, COLOR_WARNING),
        TierThreshold("significantly_exposed", "Significantly Exposed", 80, COLOR_DANGER),
        TierThreshold("highly_vulnerable", "Highly Vulnerable", None, COLOR_CRITICAL),
    ], direction=TierDirection.AT_MOST, name="exposure_level")
