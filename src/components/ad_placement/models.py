"""
Ad placement component models.

Placement inputs, the derived layout configuration and rule settings.

Invariants:
- AdPlacementConfig is a pure projection of its inputs (never stored)
- inline_ad_frequency == 0 means inline ads are disabled
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

# --- Enums ---

Strategy = Literal["aggressive", "balanced", "minimal"]
PageType = Literal["home", "article", "listing", "category"]
ContentLength = Literal["short", "medium", "long"]
EngagementLevel = Literal["low", "medium", "high"]
EntitlementLevel = Literal["free", "premium", "subscriber"]

STRATEGIES: tuple[Strategy, ...] = ("aggressive", "balanced", "minimal")
PAGE_TYPES: tuple[PageType, ...] = ("home", "article", "listing", "category")
CONTENT_LENGTHS: tuple[ContentLength, ...] = ("short", "medium", "long")


# --- Placement Config ---


@dataclass(frozen=True)
class AdPlacementConfig:
    """Which ad slots a page renders and how many ads it may show."""

    show_header_ad: bool = False
    show_sidebar_ads: bool = False
    show_inline_ads: bool = False
    show_footer_ad: bool = False
    inline_ad_frequency: int = 0  # content blocks between inline ads
    max_ads_per_page: int = 0

    @property
    def enabled_slots(self) -> tuple[str, ...]:
        slots = (
            ("header", self.show_header_ad),
            ("sidebar", self.show_sidebar_ads),
            ("inline", self.show_inline_ads),
            ("footer", self.show_footer_ad),
        )
        return tuple(name for name, enabled in slots if enabled)

    def to_dict(self) -> dict[str, Any]:
        """Keys as consumed by the rendering layer."""
        return {
            "showHeaderAd": self.show_header_ad,
            "showSidebarAds": self.show_sidebar_ads,
            "showInlineAds": self.show_inline_ads,
            "showFooterAd": self.show_footer_ad,
            "inlineAdFrequency": self.inline_ad_frequency,
            "maxAdsPerPage": self.max_ads_per_page,
        }


# Step 1 default for unrecognized strategies: nothing shown.
NO_ADS = AdPlacementConfig()


# --- Rules ---


@dataclass(frozen=True)
class PlacementRules:
    """Ad placement settings from rules."""

    enabled: bool = True
    default_strategy: Strategy = "balanced"
    min_ads_per_page: int = 1  # floor under low engagement
    max_ads_per_page: int = 8  # ceiling under high engagement
    max_inline_ads: int = 3
    min_paragraph_chars: int = 100
    ad_free_entitlements: frozenset[str] = field(
        default_factory=lambda: frozenset({"premium", "subscriber"})
    )


DEFAULT_RULES = PlacementRules()


# --- Input/Output Models ---


@dataclass(frozen=True)
class ResolvePlacementInput:
    """Input for resolving a page's ad layout."""

    strategy: str
    page_type: str
    content_length: str = "medium"
    engagement_level: str = "medium"
    entitlement: EntitlementLevel = "free"


@dataclass(frozen=True)
class InlinePlanInput:
    """Input for planning inline ad positions in an article body."""

    paragraph_lengths: tuple[int, ...]
    frequency: int


@dataclass(frozen=True)
class InlinePlanOutput:
    """Paragraph indexes after which an inline ad is inserted."""

    indexes: tuple[int, ...]
    total_paragraphs: int

    @property
    def ad_count(self) -> int:
        return len(self.indexes)
