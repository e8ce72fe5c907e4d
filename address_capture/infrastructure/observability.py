"""Structured Logging — one JSON object per line in production, plain text locally.

Invariants:
    - Every JSON line has timestamp (record creation time, UTC), level, logger, message
    - Only the whitelisted EXTRA_FIELDS are copied from `extra=` into the JSON line
    - setup_logging() is idempotent: it swaps its own root handler, never stacks one

Design Decisions:
    - stdlib logging + a small Formatter subclass; modules just call
      logging.getLogger(__name__) and pass context through `extra=`
"""

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "address_id", "storage_key", "error_code", "operation",
    "path", "outcome", "address_count",
)

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_HANDLER_NAME = "address_capture"


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        line = {
            "timestamp": created.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        line.update(
            (name, getattr(record, name))
            for name in EXTRA_FIELDS
            if getattr(record, name, None) is not None
        )
        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the service's root handler (json or text) at the given level."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)
    root.setLevel(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))
    return handler
