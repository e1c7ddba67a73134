"""Logging setup: plain text locally, JSON lines in deployed environments."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = ("socket_id", "user_id", "request_id", "room_id", "event", "error_code")


class JSONFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            value = record.__dict__.get(key)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Install a single stream handler on the root logger."""

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_skillswap", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler._skillswap = True  # type: ignore[attr-defined]
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Engine.IO heartbeats are noisy at INFO.
    logging.getLogger("engineio").setLevel(logging.WARNING)
    logging.getLogger("socketio").setLevel(logging.WARNING)
