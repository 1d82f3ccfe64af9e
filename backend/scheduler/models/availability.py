"""Availability ORM — a user's declared attendance intent for one rehearsal.

Invariants:
    - Exactly one row per (user_id, rehearsal_id) — uq_availability_user_rehearsal
    - Written only by the declaring user, through an atomic upsert
    - response_time is the instant of the last write
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from scheduler.db.base import Base


class Availability(Base):
    __tablename__ = "availability"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "rehearsal_id", name="uq_availability_user_rehearsal",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False,
    )
    rehearsal_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("rehearsals.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    response_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    rehearsal: Mapped["Rehearsal"] = relationship(
        "Rehearsal", back_populates="availability",
    )
    user: Mapped["User"] = relationship("User", lazy="selectin")
