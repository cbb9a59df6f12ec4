"""
Engagement component models.

Scoring configuration and score input/output types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Protocol

EngagementLevel = Literal["low", "medium", "high"]

ENGAGEMENT_LEVELS: tuple[EngagementLevel, ...] = ("low", "medium", "high")

# Metric name -> (saturation cap, weight)
DEFAULT_SCORING_TABLE: dict[str, tuple[float, float]] = {
    "time_on_page_seconds": (300.0, 0.30),  # 5 minutes
    "scroll_depth_percent": (100.0, 0.20),
    "interaction_count": (20.0, 0.20),
    "page_views": (10.0, 0.10),
    "share_count": (5.0, 0.10),
    "search_count": (5.0, 0.10),
}

WEIGHT_TOLERANCE = 1e-6


class MetricsLike(Protocol):
    """Anything exposing the scored metric attributes."""

    page_views: int
    time_on_page_seconds: int
    scroll_depth_percent: float
    interaction_count: int
    share_count: int
    search_count: int


@dataclass(frozen=True)
class EngagementValidationError:
    """Engagement validation error."""

    code: str
    message: str
    field_name: str | None = None


@dataclass(frozen=True)
class ScoringConfig:
    """
    Caps and weights for the engagement score.

    Weights must sum to 1.0 so a fully saturated session scores exactly 100.
    Level thresholds: low < medium_threshold <= medium < high_threshold <= high.
    """

    table: dict[str, tuple[float, float]] = field(
        default_factory=lambda: dict(DEFAULT_SCORING_TABLE)
    )
    medium_threshold: int = 34
    high_threshold: int = 67

    def __post_init__(self) -> None:
        total = sum(weight for _, weight in self.table.values())
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise ValueError(f"Engagement weights must sum to 1.0, got {total:.6f}")
        for metric, (cap, weight) in self.table.items():
            if cap <= 0:
                raise ValueError(f"Cap for {metric} must be positive")
            if weight < 0:
                raise ValueError(f"Weight for {metric} cannot be negative")
        if not 0 <= self.medium_threshold <= self.high_threshold <= 100:
            raise ValueError("Thresholds must satisfy 0 <= medium <= high <= 100")


DEFAULT_SCORING = ScoringConfig()


# --- Input/Output Models ---


@dataclass(frozen=True)
class ScoreEngagementInput:
    """Raw metric values to score."""

    page_views: int = 0
    time_on_page_seconds: int = 0
    scroll_depth_percent: float = 0.0
    interaction_count: int = 0
    share_count: int = 0
    search_count: int = 0


@dataclass(frozen=True)
class ScoreEngagementOutput:
    """Score and derived level."""

    score: int
    level: EngagementLevel
    contributions: dict[str, float] = field(default_factory=dict)
    errors: list[EngagementValidationError] = field(default_factory=list)
    success: bool = True
