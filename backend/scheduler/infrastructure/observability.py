"""Scheduler Logging — one stream handler, JSON lines in deployments.

Invariants:
    - Each line carries the record's own creation time (UTC), level, logger, message
    - Only whitelisted context keys are emitted; identifiers render as strings
    - Re-running setup replaces the scheduler handler instead of stacking another

Design Decisions:
    - Context travels through `extra=` on the stdlib logger, so services never
      import this module
"""

import json
import logging
from datetime import datetime, timezone
from uuid import UUID

_CONTEXT_KEYS = (
    "band_id", "rehearsal_id", "user_id", "error_code",
    "recipients", "notification_type", "path",
)
_TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s %(message)s"


def _render(value):
    if isinstance(value, (UUID, datetime)):
        return str(value)
    return value


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        line.update(
            (key, _render(getattr(record, key)))
            for key in _CONTEXT_KEYS
            if getattr(record, key, None) is not None
        )
        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False)


class _SchedulerHandler(logging.StreamHandler):
    """Marker type so setup_logging can find its own handler again."""


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    root = logging.getLogger()
    for existing in [h for h in root.handlers if isinstance(h, _SchedulerHandler)]:
        root.removeHandler(existing)

    handler = _SchedulerHandler()
    handler.setFormatter(
        JSONFormatter() if fmt == "json" else logging.Formatter(_TEXT_FORMAT),
    )
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
