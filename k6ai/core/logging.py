"""Centralized logging configuration."""

import json
import logging
import sys
from datetime import datetime, timezone

from k6ai.core.config import settings


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter for CI log collectors."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            log_data["exception"] = self.formatException(record.exc_info)
        if hasattr(record, "provider"):
            log_data["provider"] = record.provider
        return json.dumps(log_data, ensure_ascii=False)


def setup_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure the root logger. Arguments override the env settings."""
    level_name = level or settings.log_level
    log_level = getattr(logging, level_name.upper(), logging.INFO)
    use_json = settings.log_json if json_logs is None else json_logs

    root = logging.getLogger()
    root.setLevel(log_level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    # stdout is reserved for AI output in the CLI
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)

    if use_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root.addHandler(handler)

    # httpx logs full request URLs at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
