"""
Engagement component - session engagement scoring.

Scores a metrics snapshot on a 0-100 scale. Each metric is normalized
against a saturation cap and weighted; no single metric can contribute
more than its weight.

Invariants:
- score() is pure and deterministic
- 0 <= score <= 100 for any non-negative metrics
- all metrics at or above their caps score exactly 100
"""

from __future__ import annotations

import math
from typing import Any

from .models import (
    DEFAULT_SCORING,
    DEFAULT_SCORING_TABLE,
    EngagementLevel,
    EngagementValidationError,
    MetricsLike,
    ScoreEngagementInput,
    ScoreEngagementOutput,
    ScoringConfig,
)

# --- Pure Functions (Functional Core) ---


def normalize(value: float, cap: float) -> float:
    """Scale value to 0-1 against cap, saturating at 1."""
    if value <= 0:
        return 0.0
    return min(value / cap, 1.0)


def metric_contributions(
    metrics: MetricsLike,
    config: ScoringConfig | None = None,
) -> dict[str, float]:
    """Weighted, normalized contribution of each metric (0 to its weight)."""
    config = config or DEFAULT_SCORING
    return {
        metric: weight * normalize(float(getattr(metrics, metric, 0) or 0), cap)
        for metric, (cap, weight) in config.table.items()
    }


def score_engagement(
    metrics: MetricsLike,
    config: ScoringConfig | None = None,
) -> int:
    """
    Compute the engagement score for a metrics snapshot.

    Args:
        metrics: Current session metrics
        config: Optional caps/weights override

    Returns:
        Integer score in [0, 100]
    """
    total = sum(metric_contributions(metrics, config).values())
    # Round half up; the weighted sum can land a hair under a whole number.
    score = math.floor(total * 100 + 0.5)
    return max(0, min(100, score))


def engagement_level(
    score: int,
    config: ScoringConfig | None = None,
) -> EngagementLevel:
    """Bucket a score into low / medium / high."""
    config = config or DEFAULT_SCORING
    if score < config.medium_threshold:
        return "low"
    if score < config.high_threshold:
        return "medium"
    return "high"


def validate_score_input(inp: ScoreEngagementInput) -> list[EngagementValidationError]:
    """Metrics are counters; negative values are rejected."""
    errors: list[EngagementValidationError] = []
    for metric in DEFAULT_SCORING_TABLE:
        if getattr(inp, metric) < 0:
            errors.append(
                EngagementValidationError(
                    code="NEGATIVE_METRIC",
                    message=f"{metric} cannot be negative",
                    field_name=metric,
                )
            )
    if inp.scroll_depth_percent > 100:
        errors.append(
            EngagementValidationError(
                code="INVALID_SCROLL",
                message="Scroll depth cannot exceed 100%",
                field_name="scroll_depth_percent",
            )
        )
    return errors


# --- Component Entry Point ---


def run(
    inp: ScoreEngagementInput,
    *,
    config: ScoringConfig | None = None,
) -> ScoreEngagementOutput:
    """
    Main entry point for the engagement component.

    Validates the metrics, then scores and buckets them.
    """
    if not isinstance(inp, ScoreEngagementInput):
        raise ValueError(f"Unknown input type: {type(inp)}")

    errors = validate_score_input(inp)
    if errors:
        return ScoreEngagementOutput(
            score=0,
            level="low",
            errors=errors,
            success=False,
        )

    score = score_engagement(inp, config)
    return ScoreEngagementOutput(
        score=score,
        level=engagement_level(score, config),
        contributions=metric_contributions(inp, config),
    )


# --- Configuration Loader ---


def load_config_from_rules(rules: dict[str, Any]) -> ScoringConfig:
    """
    Load ScoringConfig from the ``engagement`` section of rules.yaml.

    Expected shape::

        engagement:
          metrics:
            time_on_page_seconds: {cap: 300, weight: 0.3}
            ...
          thresholds: {medium: 34, high: 67}

    Raises:
        ValueError: If weights do not sum to 1.0 or a cap is not positive
    """
    engagement = rules.get("engagement", {}) or {}
    metrics = engagement.get("metrics") or {}
    thresholds = engagement.get("thresholds") or {}

    table = dict(DEFAULT_SCORING_TABLE)
    if metrics:
        table = {
            name: (float(entry["cap"]), float(entry["weight"]))
            for name, entry in metrics.items()
        }

    return ScoringConfig(
        table=table,
        medium_threshold=int(thresholds.get("medium", DEFAULT_SCORING.medium_threshold)),
        high_threshold=int(thresholds.get("high", DEFAULT_SCORING.high_threshold)),
    )
