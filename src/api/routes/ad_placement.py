"""
Ad Placement API Routes.

Lets the rendering layer ask which ad slots a page should show.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field

from src.adapters.entitlement_stub import EntitlementStubAdapter
from src.api.deps import get_entitlement_adapter, get_placement_rules
from src.components.ad_placement import (
    PlacementRules,
    ResolvePlacementInput,
    plan_inline_ads,
    resolve_for_visitor,
)

router = APIRouter()


# --- Request/Response Models ---


class PlacementResponse(BaseModel):
    """Ad layout, keyed the way the rendering layer reads it."""

    show_header_ad: bool = Field(alias="showHeaderAd")
    show_sidebar_ads: bool = Field(alias="showSidebarAds")
    show_inline_ads: bool = Field(alias="showInlineAds")
    show_footer_ad: bool = Field(alias="showFooterAd")
    inline_ad_frequency: int = Field(alias="inlineAdFrequency")
    max_ads_per_page: int = Field(alias="maxAdsPerPage")

    model_config = ConfigDict(populate_by_name=True)


class InlinePlanRequest(BaseModel):
    paragraph_lengths: list[int] = Field(..., description="Character count per paragraph")
    frequency: int = Field(..., description="Paragraphs between inline ads")


class InlinePlanResponse(BaseModel):
    indexes: list[int]
    total_paragraphs: int


# --- Routes ---


@router.get("/placement", response_model=PlacementResponse, response_model_by_alias=True)
def resolve_placement(
    strategy: str | None = Query(None, description="aggressive, balanced or minimal"),
    page_type: str = Query("article", description="home, article, listing or category"),
    content_length: str = Query("medium", description="short, medium or long"),
    engagement: str = Query("medium", description="low, medium or high"),
    visitor_id: str | None = Query(None, description="Visitor for entitlement lookup"),
    rules: PlacementRules = Depends(get_placement_rules),
    entitlements: EntitlementStubAdapter = Depends(get_entitlement_adapter),
) -> PlacementResponse:
    """
    Resolve the ad layout for a page.

    Unknown strategies resolve to a no-ads layout rather than an error.
    """
    inp = ResolvePlacementInput(
        strategy=strategy or rules.default_strategy,
        page_type=page_type,
        content_length=content_length,
        engagement_level=engagement,
        entitlement=entitlements.get_entitlement_level(visitor_id),
    )
    config = resolve_for_visitor(inp, rules)
    return PlacementResponse.model_validate(config.to_dict())


@router.post("/inline-plan", response_model=InlinePlanResponse)
def inline_plan(
    body: InlinePlanRequest,
    rules: PlacementRules = Depends(get_placement_rules),
) -> InlinePlanResponse:
    """Paragraph indexes after which inline ads should be inserted."""
    result = plan_inline_ads(
        body.paragraph_lengths,
        body.frequency,
        max_inline_ads=rules.max_inline_ads,
        min_paragraph_chars=rules.min_paragraph_chars,
    )
    return InlinePlanResponse(
        indexes=list(result.indexes),
        total_paragraphs=result.total_paragraphs,
    )
