import json
import logging
from datetime import datetime, timezone
from typing import Optional

from core.config import CacheSettings

LOGGER_NAME = "kvcache"

EXTRA_FIELDS = (
    "cycle",
    "scanned",
    "candidates",
    "removed",
    "notification_failures",
    "duration_ms",
    "interval_seconds",
    "key",
    "handler",
)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        # extras
        for k in EXTRA_FIELDS:
            if hasattr(record, k):
                payload[k] = getattr(record, k)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=repr)


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a single JSON stream handler to the ``kvcache`` logger."""
    if level is None:
        level = CacheSettings.from_env().log_level
    level = level.upper()

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    logger.handlers = [handler]
    return logger
