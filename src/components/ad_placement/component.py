"""
Ad placement component.

Pure functions mapping page context and visitor engagement onto an ad
layout. Placement is two composable steps: the strategy table expresses
site policy, the engagement adjustment expresses per-visitor elasticity.

Key behaviors:
- Unknown strategies degrade to no ads instead of raising
- Low engagement drops one ad (floor 1) and disables inline ads
- High engagement allows one more ad (ceiling 8)
- Premium and subscriber visitors see no ads
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from .models import (
    DEFAULT_RULES,
    NO_ADS,
    STRATEGIES,
    AdPlacementConfig,
    InlinePlanInput,
    InlinePlanOutput,
    PlacementRules,
    ResolvePlacementInput,
)
from .ports import EntitlementPort

logger = logging.getLogger(__name__)

# --- Pure Functions ---


def base_config(strategy: str, page_type: str, content_length: str) -> AdPlacementConfig:
    """
    Step 1: layout dictated by the site's ad strategy.

    Args:
        strategy: aggressive / balanced / minimal
        page_type: home / article / listing / category
        content_length: short / medium / long

    Returns:
        Base AdPlacementConfig (NO_ADS for unrecognized strategies)
    """
    if strategy == "aggressive":
        return AdPlacementConfig(
            show_header_ad=True,
            show_sidebar_ads=True,
            show_inline_ads=True,
            show_footer_ad=True,
            inline_ad_frequency=3,
            max_ads_per_page=6,
        )

    if strategy == "balanced":
        return AdPlacementConfig(
            show_header_ad=page_type == "home",
            show_sidebar_ads=page_type in ("article", "category"),
            show_inline_ads=page_type == "article" and content_length == "long",
            show_footer_ad=True,
            inline_ad_frequency=5,
            max_ads_per_page=3,
        )

    if strategy == "minimal":
        return AdPlacementConfig(
            show_header_ad=False,
            show_sidebar_ads=False,
            show_inline_ads=False,
            show_footer_ad=page_type != "article",
            inline_ad_frequency=0,
            max_ads_per_page=1,
        )

    logger.warning("Unknown ad strategy %r, showing no ads", strategy)
    return NO_ADS


def adjust_for_engagement(
    config: AdPlacementConfig,
    engagement_level: str,
    rules: PlacementRules | None = None,
) -> AdPlacementConfig:
    """
    Step 2: scale the ad budget to the visitor's engagement.

    Medium (or unrecognized) engagement leaves the config unchanged.
    """
    rules = rules or DEFAULT_RULES

    if engagement_level == "low":
        return replace(
            config,
            max_ads_per_page=max(rules.min_ads_per_page, config.max_ads_per_page - 1),
            show_inline_ads=False,
        )

    if engagement_level == "high":
        return replace(
            config,
            max_ads_per_page=min(rules.max_ads_per_page, config.max_ads_per_page + 1),
        )

    if engagement_level != "medium":
        logger.debug("Unknown engagement level %r, no adjustment", engagement_level)
    return config


def resolve(
    strategy: str,
    page_type: str,
    content_length: str,
    engagement_level: str,
    rules: PlacementRules | None = None,
) -> AdPlacementConfig:
    """
    Resolve the ad layout for a page view.

    Pure: identical arguments always produce an identical config.
    Never raises for unrecognized values.
    """
    rules = rules or DEFAULT_RULES
    if not rules.enabled:
        return NO_ADS

    config = base_config(strategy, page_type, content_length)
    return adjust_for_engagement(config, engagement_level, rules)


def apply_entitlement(
    config: AdPlacementConfig,
    entitlement: str,
    rules: PlacementRules | None = None,
) -> AdPlacementConfig:
    """Paying visitors get an ad-free page."""
    rules = rules or DEFAULT_RULES
    if entitlement in rules.ad_free_entitlements:
        return NO_ADS
    return config


def resolve_for_visitor(
    inp: ResolvePlacementInput,
    rules: PlacementRules | None = None,
) -> AdPlacementConfig:
    """Resolve, then suppress ads for ad-free entitlements."""
    config = resolve(
        inp.strategy,
        inp.page_type,
        inp.content_length,
        inp.engagement_level,
        rules,
    )
    return apply_entitlement(config, inp.entitlement, rules)


def plan_inline_ads(
    paragraph_lengths: list[int] | tuple[int, ...],
    frequency: int,
    max_inline_ads: int = DEFAULT_RULES.max_inline_ads,
    min_paragraph_chars: int = DEFAULT_RULES.min_paragraph_chars,
) -> InlinePlanOutput:
    """
    Choose paragraphs to follow with an inline ad.

    An ad goes after paragraph i when i > 0, i is a multiple of frequency
    and the paragraph is longer than min_paragraph_chars, up to
    max_inline_ads ads. frequency <= 0 plans nothing.

    Args:
        paragraph_lengths: Character length of each paragraph, in order
        frequency: Paragraphs between ads (AdPlacementConfig.inline_ad_frequency)

    Returns:
        InlinePlanOutput with ascending paragraph indexes
    """
    total = len(paragraph_lengths)
    if frequency <= 0:
        return InlinePlanOutput(indexes=(), total_paragraphs=total)

    indexes: list[int] = []
    for index, length in enumerate(paragraph_lengths):
        if len(indexes) >= max_inline_ads:
            break
        if index > 0 and index % frequency == 0 and length > min_paragraph_chars:
            indexes.append(index)

    return InlinePlanOutput(indexes=tuple(indexes), total_paragraphs=total)


# --- Run Function (Atomic Component Pattern) ---


def run(
    input_data: ResolvePlacementInput | InlinePlanInput,
    rules: PlacementRules | None = None,
    entitlement_adapter: EntitlementPort | None = None,
    visitor_id: str | None = None,
) -> AdPlacementConfig | InlinePlanOutput:
    """
    Run an ad placement operation based on input type.

    Args:
        input_data: One of the input types
        rules: Placement rules
        entitlement_adapter: Optional port; when given it overrides the
            input's entitlement with the visitor's actual level
        visitor_id: Visitor to look up through the entitlement port

    Returns:
        Corresponding output type
    """
    rules = rules or DEFAULT_RULES

    if isinstance(input_data, ResolvePlacementInput):
        if entitlement_adapter is not None:
            level = entitlement_adapter.get_entitlement_level(visitor_id)
            input_data = replace(input_data, entitlement=level)
        return resolve_for_visitor(input_data, rules)

    if isinstance(input_data, InlinePlanInput):
        return plan_inline_ads(
            input_data.paragraph_lengths,
            input_data.frequency,
            max_inline_ads=rules.max_inline_ads,
            min_paragraph_chars=rules.min_paragraph_chars,
        )

    raise TypeError(f"Unknown input type: {type(input_data)}")


# --- Configuration Loader ---


def load_config_from_rules(rules: dict[str, Any]) -> PlacementRules:
    """
    Load PlacementRules from the ``ad_placement`` section of rules.yaml.

    Args:
        rules: Parsed rules dictionary

    Returns:
        PlacementRules instance
    """
    placement = rules.get("ad_placement", {}) or {}

    default_strategy = placement.get("default_strategy", DEFAULT_RULES.default_strategy)
    if default_strategy not in STRATEGIES:
        raise ValueError(f"Unknown default_strategy: {default_strategy}")

    ad_free = placement.get("ad_free_entitlements")
    return PlacementRules(
        enabled=placement.get("enabled", DEFAULT_RULES.enabled),
        default_strategy=default_strategy,
        min_ads_per_page=placement.get("min_ads_per_page", DEFAULT_RULES.min_ads_per_page),
        max_ads_per_page=placement.get("max_ads_per_page", DEFAULT_RULES.max_ads_per_page),
        max_inline_ads=placement.get("max_inline_ads", DEFAULT_RULES.max_inline_ads),
        min_paragraph_chars=placement.get(
            "min_paragraph_chars", DEFAULT_RULES.min_paragraph_chars
        ),
        ad_free_entitlements=(
            frozenset(ad_free) if ad_free is not None else DEFAULT_RULES.ad_free_entitlements
        ),
    )
