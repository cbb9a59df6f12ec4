"""
Ad placement component ports.

External interfaces for ad placement.
"""

from __future__ import annotations

from typing import Protocol

from .models import EntitlementLevel


class EntitlementPort(Protocol):
    """
    Port for visitor subscription checks.

    Implementations:
    - EntitlementStubAdapter: Always returns "free" (dev/MVP)
    """

    def get_entitlement_level(self, visitor_id: str | None) -> EntitlementLevel:
        """
        Get entitlement level for visitor.

        Args:
            visitor_id: Optional visitor/user identifier

        Returns:
            EntitlementLevel ("free", "premium", or "subscriber")
        """
        ...
