from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from enjoyrecord.core.config import Settings

ROOT_LOGGER_NAME = "enjoyrecord"

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


def record_meta(record: logging.LogRecord) -> dict[str, object]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JsonLinesFormatter(logging.Formatter):
    """One JSON object per line: time, level, logger, message and optional meta."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        meta = record_meta(record)
        if record.exc_info:
            meta["exception"] = self.formatException(record.exc_info)
        if meta:
            entry["meta"] = meta
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(settings: Settings) -> logging.Logger:
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(settings.log_level)

    log_path = Path(settings.log_path)
    already_attached = any(
        isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_path.resolve()
        for h in logger.handlers
    )
    if already_attached:
        return logger

    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, mode="a", encoding="utf-8", delay=True)
    handler.setFormatter(JsonLinesFormatter())
    logger.addHandler(handler)
    return logger
