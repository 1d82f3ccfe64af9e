"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Band is the aggregate root; rehearsals scoped by band_id

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from scheduler.models.band import Band  # noqa: F401
from scheduler.models.user import User  # noqa: F401
from scheduler.models.band_member import BandMember  # noqa: F401
from scheduler.models.rehearsal import Rehearsal  # noqa: F401
from scheduler.models.agenda_item import AgendaItem  # noqa: F401
from scheduler.models.availability import Availability  # noqa: F401
from scheduler.models.attendance import Attendance  # noqa: F401
from scheduler.models.notification import Notification  # noqa: F401
