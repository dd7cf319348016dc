# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Structured JSON logging.

One handler is installed per top-level logger name ("oncall_rotation" for
the package, the service name for main.py); module loggers propagate to it.
Fields passed through `extra=` (request_id, error_code, entry_id, ...) are
copied into the JSON line as-is.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from oncall_rotation.core.config import settings

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "logger": record.name,
            "message": record.getMessage(),
        }
        line.update(
            (key, value) for key, value in vars(record).items()
            if key not in _RESERVED and key not in line
        )
        if record.exc_info:
            line["error_type"] = record.exc_info[0].__name__
            line["traceback"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


def _install_handler(logger: logging.Logger) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.propagate = False


def get_logger(name: str | None = None) -> logging.Logger:
    name = name or settings.SERVICE_NAME
    top = logging.getLogger(name.split(".", 1)[0])
    if not top.handlers:
        _install_handler(top)
    return logging.getLogger(name)
