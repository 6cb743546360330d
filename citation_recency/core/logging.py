"""Centralized logging configuration."""

import json
import logging
import sys
from datetime import datetime, timezone

from citation_recency.core.config import settings

SERVICE_NAME = "citation_recency"

# Per-record fields passed via ``extra=`` (request middleware, batch processor)
_CONTEXT_FIELDS = ("request_id", "url", "extraction_method")


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter for production."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            log_data["exception"] = self.formatException(record.exc_info)
        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = str(value)
        return json.dumps(log_data, ensure_ascii=False)


def _parse_level(name: str, default: int) -> int:
    level = logging.getLevelName((name or "").upper())
    return level if isinstance(level, int) else default


def setup_logging() -> None:
    """Configure logging for the entire application."""
    level = _parse_level(settings.log_level, logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)

    if settings.log_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root.addHandler(handler)

    # Scrape outcomes (status codes, 429s, timeouts) can be turned up on their own
    logging.getLogger("citation_recency.collectors").setLevel(_parse_level(settings.scrape_log_level, level))

    # Firecrawl calls are logged by the collector itself
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    # dateparser logs every language it tries on metadata values
    logging.getLogger("dateparser").setLevel(logging.WARNING)
    logging.getLogger("tzlocal").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING if not settings.app_debug else level)
