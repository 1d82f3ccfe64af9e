"""Notification Formatting — message text and per-recipient rows for fan-out.

Invariants:
    - One row per recipient, duplicates collapsed, recipient order preserved
    - Cancellation messages use the title as it was BEFORE the update
    - Rows share one created_at instant per triggering event
"""

from datetime import datetime
from uuid import UUID

from scheduler.core.domain_types import NotificationType


def format_created_message(title: str) -> str:
    return f"New rehearsal scheduled: {title}"


def format_cancellation_message(previous_title: str) -> str:
    return f"Rehearsal canceled: {previous_title}"


def build_notification_rows(
    recipients: list[UUID],
    rehearsal_id: UUID,
    notification_type: NotificationType,
    message: str,
    created_at: datetime,
) -> list[dict]:
    """Pure: expand an event into insertable notification rows."""
    return [
        {
            "user_id": user_id,
            "rehearsal_id": rehearsal_id,
            "type": notification_type.value,
            "message": message,
            "created_at": created_at,
        }
        for user_id in dict.fromkeys(recipients)
    ]
