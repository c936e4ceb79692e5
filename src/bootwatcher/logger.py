from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

ROOT_LOGGER_NAME = "bootwatcher"

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """
    One JSON object per log line.

    Fields passed with `extra=` are emitted as top-level keys next to the
    message, so `logger.info("sms.sent", extra={"sid": sid})` stays greppable.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO") -> logging.Logger:
    """
    Attach the JSON handler to the package root logger.

    Safe to call many times; the handler is only installed once.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not getattr(root, "_configured", False):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        root.addHandler(handler)
        root.propagate = False
        root._configured = True  # type: ignore[attr-defined]

    return root


def get_logger(name: str) -> logging.Logger:
    """Child of the package root logger, e.g. get_logger("relay") -> bootwatcher.relay."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
