"""Band Channel Events — pure builders for live updates pushed to band subscribers.

Invariants:
    - Every event is {"type": str, "data": dict} with JSON-safe values
    - Identifiers are rendered as strings
"""


def rehearsal_event(kind: str, rehearsal) -> dict:
    """kind: created | updated | canceled."""
    return {
        "type": f"rehearsal_{kind}",
        "data": {
            "band_id": str(rehearsal.band_id),
            "rehearsal_id": str(rehearsal.id),
            "title": rehearsal.title,
            "status": rehearsal.status,
            "start_time": rehearsal.start_time.isoformat(),
            "end_time": rehearsal.end_time.isoformat(),
        },
    }


def availability_event(band_id, availability) -> dict:
    return {
        "type": "availability_updated",
        "data": {
            "band_id": str(band_id),
            "rehearsal_id": str(availability.rehearsal_id),
            "user_id": str(availability.user_id),
            "status": availability.status,
        },
    }


def keepalive_event() -> dict:
    return {"type": "keepalive", "data": {}}
