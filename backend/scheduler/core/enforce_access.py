"""Access Enforcement — pure capability decisions over one membership row.

Invariants:
    - Pure: the caller supplies the membership (or None); no IO happens here
    - ADMIN satisfies every capability
    - MANAGE requires role BAND_MANAGER; membership status is not consulted
    - MEMBER requires any membership row, whatever its status
    - require_capability raises UnauthorizedError with no detail beyond "access denied"
"""

from typing import Protocol

from scheduler.core.domain_types import Capability, MembershipRole
from scheduler.core.errors import ErrorContext, UnauthorizedError
from scheduler.core.identity import CallerIdentity


class MembershipLike(Protocol):
    """Structural contract for membership rows passed to the evaluator."""
    role: str
    status: str


def can_manage(caller: CallerIdentity, membership: MembershipLike | None) -> bool:
    if caller.is_admin:
        return True
    return (
        membership is not None
        and membership.role == MembershipRole.BAND_MANAGER.value
    )


def is_member(caller: CallerIdentity, membership: MembershipLike | None) -> bool:
    if caller.is_admin:
        return True
    return membership is not None


def evaluate(
    caller: CallerIdentity,
    membership: MembershipLike | None,
    capability: Capability,
) -> bool:
    """Map (caller, membership, capability) to allow/deny."""
    if capability == Capability.MANAGE:
        return can_manage(caller, membership)
    return is_member(caller, membership)


def require_capability(
    caller: CallerIdentity,
    membership: MembershipLike | None,
    capability: Capability,
    band_id=None,
) -> None:
    if not evaluate(caller, membership, capability):
        raise UnauthorizedError(ErrorContext(
            band_id=str(band_id) if band_id else None,
            user_id=str(caller.user_id),
        ))
