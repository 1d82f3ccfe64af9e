"""AgendaItem ORM — ordered planning entry within a rehearsal.

Invariants:
    - Created atomically with its Rehearsal; immutable afterwards
    - order_index is the 0-based position in the creation payload
    - duration_minutes >= 1
"""

import uuid

from sqlalchemy import String, Text, Integer, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from scheduler.db.base import Base


class AgendaItem(Base):
    __tablename__ = "agenda_items"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_agenda_items_duration"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    rehearsal_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("rehearsals.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False)

    rehearsal: Mapped["Rehearsal"] = relationship(
        "Rehearsal", back_populates="items",
    )
