"""
Logging configuration for the settlement service.

One pipe-separated line per record on stdout. Configured secrets
(the admin API key) are scrubbed from every record before it is
formatted, so a key echoed into an error message never reaches the log.
"""

import logging
import sys
from typing import Iterable

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
REDACTED = "***"

# Raised to WARNING: request lines and per-poll chatter.
NOISY_LOGGERS = ("uvicorn.access", "uvicorn.error", "httpx", "httpcore", "apscheduler")


class SecretRedactingFilter(logging.Filter):
    """Replaces known secret values in the rendered message."""

    def __init__(self, secrets: Iterable[str]) -> None:
        super().__init__()
        self._secrets = tuple(s for s in secrets if s)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        scrubbed = message
        for secret in self._secrets:
            scrubbed = scrubbed.replace(secret, REDACTED)
        if scrubbed != message:
            record.msg = scrubbed
            record.args = None
        return True


def configure_logging(level: str = "INFO", secrets: Iterable[str] = ()) -> None:
    """Install the stdout handler on the root logger.

    Args:
        level: Root log level name (DEBUG, INFO, WARNING, ERROR).
        secrets: Values to redact from every log record.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(SecretRedactingFilter(secrets))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
