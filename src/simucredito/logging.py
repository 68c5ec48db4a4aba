"""Logging setup for the command-line front end.

Library modules only call ``logging.getLogger(__name__)``; the single handler
lives on the ``simucredito`` package logger, so embedding applications keep
control of the root logger.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any, Optional

PACKAGE_LOGGER = "simucredito"

_STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Attributes every LogRecord carries; anything else arrived through ``extra=``
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def setup_logging(
    level: str = "INFO",
    format_type: str = "standard",
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Install one handler on the package logger and return that logger.

    ``level`` falls back to INFO when it is not a logging level name;
    ``format_type`` is "standard" (pipe separated) or "json". Records go to
    stderr unless *stream* is given, keeping them out of the rich tables on
    stdout. Calling it again replaces the previous handler.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=_STANDARD_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(formatter)

    logger = logging.getLogger(PACKAGE_LOGGER)
    for old in logger.handlers[:]:
        logger.removeHandler(old)
    logger.addHandler(handler)
    logger.setLevel(log_level)

    # requests logs every connection at DEBUG through urllib3
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return logger


class JsonFormatter(logging.Formatter):
    """One JSON object per line; fields passed with ``extra=`` are kept."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in vars(record).items() if key not in _RESERVED
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        # Decimal amounts serialize as their exact string form
        return json.dumps(payload, default=str)
