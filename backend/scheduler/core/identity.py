"""Caller Identity — the already-verified {user_id, role} pair for the current request.

Invariants:
    - Built once per request at the boundary, never cached across requests
    - Any role other than ADMIN is treated as a plain user
"""

from dataclasses import dataclass

from scheduler.core.domain_types import GlobalRole, UserId


@dataclass(frozen=True)
class CallerIdentity:
    """Trusted identity handed over by the authentication gateway."""
    user_id: UserId
    role: GlobalRole = GlobalRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == GlobalRole.ADMIN

    @classmethod
    def from_raw(cls, user_id, role: str | None) -> "CallerIdentity":
        try:
            global_role = GlobalRole((role or "").upper())
        except ValueError:
            global_role = GlobalRole.USER
        return cls(user_id=UserId(user_id), role=global_role)
