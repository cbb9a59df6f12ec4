"""
Engagement Scoring API Routes.

Scores a metrics snapshot reported by a client-side tracker.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.api.deps import get_scoring_config
from src.components.engagement import (
    ScoreEngagementInput,
    ScoringConfig,
    run,
)

router = APIRouter()


class MetricsRequest(BaseModel):
    """Engagement metrics snapshot."""

    page_views: int = Field(0, ge=0)
    time_on_page_seconds: int = Field(0, ge=0)
    scroll_depth_percent: float = Field(0.0, ge=0, le=100)
    interaction_count: int = Field(0, ge=0)
    ad_activation_count: int = Field(0, ge=0)
    share_count: int = Field(0, ge=0)
    search_count: int = Field(0, ge=0)


class ScoreResponse(BaseModel):
    score: int
    level: str
    contributions: dict[str, float]


@router.post("/score", response_model=ScoreResponse)
def score_metrics(
    body: MetricsRequest,
    config: ScoringConfig = Depends(get_scoring_config),
) -> ScoreResponse:
    """Compute the 0-100 engagement score and its low/medium/high level."""
    result = run(
        ScoreEngagementInput(
            page_views=body.page_views,
            time_on_page_seconds=body.time_on_page_seconds,
            scroll_depth_percent=body.scroll_depth_percent,
            interaction_count=body.interaction_count,
            share_count=body.share_count,
            search_count=body.search_count,
        ),
        config=config,
    )
    return ScoreResponse(
        score=result.score,
        level=result.level,
        contributions=result.contributions,
    )
