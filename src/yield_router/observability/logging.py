"""
Structured logging setup.

Console output is colored by decision tag; the optional JSON-lines file
carries the decision extras (protocol, chain, error code, improvement, cost).
Feed credentials embedded in URLs are masked before either handler sees them.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from yield_router.config.settings import Settings

# Log tags for special message handling
LOG_TAG_DECISION = "[DECISION]"
LOG_TAG_HEALTH = "[HEALTH]"
LOG_TAG_SCAN = "[SCAN]"

__all__ = [
    "setup_logging",
    "get_logger",
    "FeedCredentialFilter",
    "JSONFormatter",
    "RouterLogFormatter",
    "DecimalEncoder",
    "LOG_TAG_DECISION",
    "LOG_TAG_HEALTH",
    "LOG_TAG_SCAN",
]


class FeedCredentialFilter(logging.Filter):
    """
    Masks API keys that can ride along in a feed URL.

    `DEFILLAMA_URL` may point at the pro endpoint, whose key is a path
    segment (https://pro-api.llama.fi/<key>/yields/pools), or carry an
    `apikey=` query parameter. Both end up in feed error messages.
    """

    PATTERNS = [
        (re.compile(r"(pro-api\.llama\.fi/)([A-Za-z0-9_-]{8,})"), r"\1***MASKED***"),
        (re.compile(r"([?&](?:api[_-]?key|token)=)([^&\s'\"]+)", re.IGNORECASE), r"\1***MASKED***"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        original = record.getMessage()
        masked = original
        for pattern, replacement in self.PATTERNS:
            masked = pattern.sub(replacement, masked)

        if masked != original:
            record.msg = masked
            record.args = ()
        return True


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder for Decimal, datetime and enum extras."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines."""

    EXTRA_FIELDS = ("protocol", "chain", "error_code", "should_act", "improvement", "cost_usd")

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in self.EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = value

        return json.dumps(log_data, cls=DecimalEncoder)


class RouterLogFormatter(logging.Formatter):
    """
    Console formatter.

    Messages tagged [DECISION], [HEALTH] or [SCAN] get the tag's color and
    label in place of the level; everything else is colored by level.
    """

    RESET = "\033[0m"
    GREY = "\033[90m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BOLD_RED = "\033[1;91m"
    CYAN = "\033[96m"
    BLUE = "\033[94m"

    DATEFMT = "%H:%M:%S"

    def __init__(self):
        super().__init__(datefmt=self.DATEFMT)
        # label -> (color, whole line colored?)
        styles = {
            "DEBUG": (self.GREY, True),
            "INFO": (self.GREEN, False),
            "WARN": (self.YELLOW, True),
            "ERROR": (self.RED, True),
            "CRITICAL": (self.BOLD_RED, True),
            "DECISION": (self.CYAN, False),
            "HEALTH": (self.BLUE, False),
            "SCAN": (self.GREY, False),
        }
        self._formatters: dict[str, logging.Formatter] = {}
        for label, (color, whole_line) in styles.items():
            if whole_line:
                fmt = f"{color}%(asctime)s [{label}] %(message)s{self.RESET}"
            else:
                fmt = f"{color}%(asctime)s [{label}]{self.RESET} %(message)s"
            self._formatters[label] = logging.Formatter(fmt, datefmt=self.DATEFMT)

    _TAGS = ((LOG_TAG_DECISION, "DECISION"), (LOG_TAG_HEALTH, "HEALTH"), (LOG_TAG_SCAN, "SCAN"))

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        for tag, label in self._TAGS:
            if tag in msg:
                record.msg = msg.replace(tag, "").strip()
                record.args = ()
                return self._formatters[label].format(record)

        label = "WARN" if record.levelname == "WARNING" else record.levelname
        return self._formatters.get(label, self._formatters["INFO"]).format(record)


def setup_logging(settings: Settings | None = None) -> logging.Logger:
    """
    Set up logging with console and (optionally) JSON file handlers.

    Returns the root logger.
    """
    if settings is None:
        from yield_router.config.settings import get_settings

        settings = get_settings()

    level = getattr(logging, settings.logging.level.upper(), logging.INFO)
    if settings.testing_mode and level > logging.DEBUG:
        level = logging.DEBUG

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    credential_filter = FeedCredentialFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(RouterLogFormatter())
    console_handler.addFilter(credential_filter)
    root_logger.addHandler(console_handler)

    if settings.logging.json_enabled:
        json_path = Path(settings.logging.json_file)
        json_path.parent.mkdir(parents=True, exist_ok=True)

        # json_max_bytes = 0 disables rotation
        max_bytes = int(settings.logging.json_max_bytes or 0)
        backup_count = int(settings.logging.json_backup_count or 0)
        if max_bytes > 0 and backup_count > 0:
            json_handler: logging.Handler = RotatingFileHandler(
                json_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
            )
        else:
            json_handler = logging.FileHandler(json_path, encoding="utf-8")
        json_handler.setLevel(level)
        json_handler.setFormatter(JSONFormatter())
        json_handler.addFilter(credential_filter)
        root_logger.addHandler(json_handler)

    # aiohttp logs every connection at DEBUG
    for lib in ("asyncio", "aiohttp"):
        logging.getLogger(lib).setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a named logger."""
    return logging.getLogger(name)
