"""Band ORM — the membership-scoped group that owns rehearsals.

Invariants:
    - id is UUID primary key
    - Never deleted by the scheduler core
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from scheduler.db.base import Base


class Band(Base):
    """Band aggregate root — owns memberships and rehearsals."""
    __tablename__ = "bands"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    members: Mapped[list["BandMember"]] = relationship(
        "BandMember", back_populates="band", lazy="raise",
    )
