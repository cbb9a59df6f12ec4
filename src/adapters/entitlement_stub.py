"""
Entitlement stub adapter (dev/MVP).

Stub implementation of EntitlementPort that always returns "free", so
every visitor is eligible for ads until subscriptions exist.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from src.components.ad_placement import EntitlementLevel, EntitlementPort

logger = logging.getLogger(__name__)


@dataclass
class EntitlementStubAdapter:
    """
    Stub entitlement adapter for dev/MVP.

    Always returns "free" for all visitors.
    Can be configured to return different levels for testing.
    """

    _override_level: EntitlementLevel | None = None
    _override_visitor_ids: dict[str, EntitlementLevel] | None = None

    def get_entitlement_level(self, visitor_id: str | None = None) -> EntitlementLevel:
        """
        Get entitlement level for visitor.

        Args:
            visitor_id: Optional visitor/user identifier

        Returns:
            EntitlementLevel (always "free" in stub, or override)
        """
        level = self._get_level_for_visitor(visitor_id)
        logger.debug(
            "EntitlementStubAdapter.get_entitlement_level: visitor_id=%s, level=%s",
            visitor_id,
            level,
        )
        return level

    def _get_level_for_visitor(self, visitor_id: str | None) -> EntitlementLevel:
        """Get entitlement level, checking overrides."""
        if visitor_id and self._override_visitor_ids:
            if visitor_id in self._override_visitor_ids:
                return self._override_visitor_ids[visitor_id]

        if self._override_level:
            return self._override_level

        return "free"

    # --- Testing Helpers ---

    def set_override_level(self, level: EntitlementLevel | None) -> None:
        """Set global override level for testing."""
        self._override_level = level

    def set_visitor_level(self, visitor_id: str, level: EntitlementLevel) -> None:
        """Set entitlement level for specific visitor (testing)."""
        if self._override_visitor_ids is None:
            self._override_visitor_ids = {}
        self._override_visitor_ids[visitor_id] = level

    def clear_overrides(self) -> None:
        """Clear all overrides."""
        self._override_level = None
        self._override_visitor_ids = None


# Verify protocol compliance at module load time
def _verify_protocol_compliance() -> None:
    """Verify EntitlementStubAdapter satisfies EntitlementPort protocol."""
    adapter: EntitlementPort = EntitlementStubAdapter()
    _ = adapter.get_entitlement_level(None)


_verify_protocol_compliance()
