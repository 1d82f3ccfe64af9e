"""Rehearsal ORM — the scheduled event owned by a band.

Invariants:
    - band_id immutable after creation
    - end_time > start_time (enforced in core/enforce_schedule.py and by
      ck_rehearsals_time_range)
    - status transitions: SCHEDULED -> CANCELED | COMPLETED (terminal)
    - items ordered by order_index

Design Decisions:
    - status stored as string, validated with RehearsalStatus in core
    - items/band eager-loaded (selectin); availability and attendance only
      loaded on the detail query
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from scheduler.db.base import Base


class Rehearsal(Base):
    __tablename__ = "rehearsals"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_rehearsals_time_range"),
        Index("ix_rehearsals_band_start", "band_id", "start_time"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    band_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("bands.id"), nullable=False,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    location: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="SCHEDULED",
    )
    created_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    band: Mapped["Band"] = relationship("Band", lazy="selectin")
    items: Mapped[list["AgendaItem"]] = relationship(
        "AgendaItem", back_populates="rehearsal",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="AgendaItem.order_index",
    )
    availability: Mapped[list["Availability"]] = relationship(
        "Availability", back_populates="rehearsal", lazy="raise",
    )
    attendance: Mapped[list["Attendance"]] = relationship(
        "Attendance", back_populates="rehearsal", lazy="raise",
    )
