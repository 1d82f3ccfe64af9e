"""BandMember ORM — the Band <-> User relationship with a per-band role.

Invariants:
    - At most one row per (band_id, user_id) — uq_band_members_band_user
    - role: MEMBER | BAND_MANAGER; status: ACTIVE | INACTIVE
    - Mutated by band management elsewhere; read-only for the scheduler core
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from scheduler.db.base import Base


class BandMember(Base):
    __tablename__ = "band_members"
    __table_args__ = (
        UniqueConstraint("band_id", "user_id", name="uq_band_members_band_user"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    band_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("bands.id"), nullable=False, index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True,
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="MEMBER")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="ACTIVE")
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    band: Mapped["Band"] = relationship("Band", back_populates="members")
