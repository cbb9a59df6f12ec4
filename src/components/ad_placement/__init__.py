"""
Ad placement component.

Public API for adaptive ad layout decisions.
"""

from .component import (
    adjust_for_engagement,
    apply_entitlement,
    base_config,
    load_config_from_rules,
    plan_inline_ads,
    resolve,
    resolve_for_visitor,
    run,
)
from .models import (
    CONTENT_LENGTHS,
    DEFAULT_RULES,
    NO_ADS,
    PAGE_TYPES,
    STRATEGIES,
    AdPlacementConfig,
    ContentLength,
    EngagementLevel,
    EntitlementLevel,
    InlinePlanInput,
    InlinePlanOutput,
    PageType,
    PlacementRules,
    ResolvePlacementInput,
    Strategy,
)
from .ports import EntitlementPort

__all__ = [
    # Functions
    "base_config",
    "adjust_for_engagement",
    "apply_entitlement",
    "resolve",
    "resolve_for_visitor",
    "plan_inline_ads",
    "load_config_from_rules",
    "run",
    # Models
    "AdPlacementConfig",
    "PlacementRules",
    "ResolvePlacementInput",
    "InlinePlanInput",
    "InlinePlanOutput",
    "Strategy",
    "PageType",
    "ContentLength",
    "EngagementLevel",
    "EntitlementLevel",
    "STRATEGIES",
    "PAGE_TYPES",
    "CONTENT_LENGTHS",
    "NO_ADS",
    "DEFAULT_RULES",
    # Ports
    "EntitlementPort",
]
