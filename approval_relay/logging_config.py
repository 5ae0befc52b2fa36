"""JSON logging configuration for Approval Relay.

Bot API URLs embed the bot token (``/bot<token>/sendMessage``) and httpx
errors quote those URLs, so the formatter masks configured secrets in every
line it writes.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Iterable

REDACTED = "***"


class JSONFormatter(logging.Formatter):
    """Format log records as JSON, masking secrets."""

    def __init__(self, secrets: Iterable[str] = ()):
        super().__init__()
        # Longest first so a secret containing another is masked whole
        self.secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "context") and record.context:
            log_data["context"] = record.context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return self.redact(json.dumps(log_data, ensure_ascii=False, default=str))

    def redact(self, line: str) -> str:
        for secret in self.secrets:
            line = line.replace(secret, REDACTED)
        return line


def setup_logging(level: str = "INFO", secrets: Iterable[str] = ()) -> None:
    """Send JSON lines to stdout; ``secrets`` never appear in the output."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter(secrets))
    root_logger.addHandler(handler)

    # httpx logs every request URL, token included, at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the approval_relay namespace."""
    return logging.getLogger(f"approval_relay.{name}")
