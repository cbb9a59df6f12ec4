"""
Engagement component - Session engagement scoring.
"""

from .component import (
    engagement_level,
    load_config_from_rules,
    metric_contributions,
    normalize,
    run,
    score_engagement,
    validate_score_input,
)
from .models import (
    DEFAULT_SCORING,
    DEFAULT_SCORING_TABLE,
    ENGAGEMENT_LEVELS,
    EngagementLevel,
    EngagementValidationError,
    MetricsLike,
    ScoreEngagementInput,
    ScoreEngagementOutput,
    ScoringConfig,
)

__all__ = [
    # Component functions
    "run",
    "load_config_from_rules",
    # Pure functions
    "normalize",
    "metric_contributions",
    "score_engagement",
    "engagement_level",
    "validate_score_input",
    # Models
    "ScoreEngagementInput",
    "ScoreEngagementOutput",
    "ScoringConfig",
    "EngagementLevel",
    "EngagementValidationError",
    "MetricsLike",
    # Constants
    "DEFAULT_SCORING",
    "DEFAULT_SCORING_TABLE",
    "ENGAGEMENT_LEVELS",
]
