"""
Structured logging for the insight engine.

Provides:
    - StructuredFormatter: JSON formatter for machine-parseable log output.
    - configure_logging: Root logger setup used by the API lifespan.
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

TEXT_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class StructuredFormatter(logging.Formatter):
    """JSON formatter for machine-parseable log output.

    Each log record is serialised as a single JSON line containing at minimum:
        timestamp, level, logger, message.
    If the record carries a ``context`` attribute (set via
    ``extra={"context": {...}}``), those key-value pairs are included under
    the ``"context"`` key.  Services use it to attach job ids and query
    sizes without baking them into the message text.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "context"):
            log_entry["context"] = record.context
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def configure_logging(level: str = "INFO", fmt: str = "structured") -> None:
    """Configure the root logger for the service process.

    ``fmt == "json"`` installs a ``StructuredFormatter`` on a stderr handler;
    anything else uses the human-readable pipe-separated text format.
    """
    effective_level = getattr(logging, level.upper(), logging.INFO)
    if fmt == "json":
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logging.basicConfig(level=effective_level, handlers=[handler], force=True)
    else:
        logging.basicConfig(
            level=effective_level,
            format=TEXT_FORMAT,
            datefmt=DATE_FORMAT,
            force=True,
        )
