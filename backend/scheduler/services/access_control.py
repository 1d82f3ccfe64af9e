"""Access Control — store-backed authorization checks for every operation.

Invariants:
    - Membership is read fresh on every call (never cached across requests)
    - ADMIN callers skip the membership lookup entirely
    - The decision itself is delegated to core/enforce_access.py
"""

import logging
from uuid import UUID

from scheduler.core.domain_types import Capability
from scheduler.core.enforce_access import require_capability
from scheduler.core.errors import UnauthorizedError
from scheduler.core.identity import CallerIdentity
from scheduler.core.repository_protocols import MembershipRepository

logger = logging.getLogger(__name__)


class AccessControl:
    """Resolves the caller's membership and evaluates a capability."""

    def __init__(self, memberships: MembershipRepository):
        self.memberships = memberships

    async def _membership(self, caller: CallerIdentity, band_id: UUID):
        if caller.is_admin:
            return None
        return await self.memberships.get(band_id, caller.user_id)

    async def require(
        self, caller: CallerIdentity, band_id: UUID, capability: Capability,
    ) -> None:
        """Raise UnauthorizedError unless the caller holds capability on band_id."""
        membership = await self._membership(caller, band_id)
        try:
            require_capability(caller, membership, capability, band_id)
        except UnauthorizedError:
            logger.info(
                f"Access denied: capability={capability.value}",
                extra={"band_id": band_id, "user_id": caller.user_id},
            )
            raise
