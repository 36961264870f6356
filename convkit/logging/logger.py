# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logging for convkit.

Library modules log through ``logging.getLogger(__name__)`` with snake_case
event names and an ``extra`` payload, e.g.::

    logger.info("model_built", extra={"total_parameters": 25_557_032})

The CLI attaches a JsonFormatter to the ``convkit`` logger via ``get_logger``,
so every record from the package comes out as one JSON line::

    {"ts": "...", "level": "INFO", "module": "convkit.model.factory",
     "msg": "model_built", "total_parameters": 25557032}

Keys in ``extra`` must not collide with ``RESERVED_ATTRS``. The standard
library refuses to overwrite a LogRecord attribute and raises ``KeyError``
from inside the logging call, so name payload keys after what they hold
(``preset``, ``norm_type``) rather than generic words like ``name``.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

# Attributes every LogRecord carries, plus the two ``makeRecord`` rejects
# explicitly. Anything else on a record came in through ``extra``.
RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in RESERVED_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Every line carries ``ts`` (UTC, ISO 8601), ``level``, ``module`` (the
    logger name) and ``msg`` (the event name), followed by the ``extra``
    payload and, for ``exc_info=True`` calls, the traceback under ``exc``.
    Values JSON cannot encode (torch.Size, paths) are rendered with ``str``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }
        entry.update(_extra_fields(record))
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _resolve_log_level(level_name: str) -> int:
    upper = level_name.upper()
    if upper not in _VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level '{level_name}'. Must be one of: {', '.join(_VALID_LOG_LEVELS)}"
        )
    return logging.getLevelName(upper)


def _make_handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


def get_logger(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Attach JSON output to the logger ``name`` and return it.

    Child loggers (``convkit.model.factory`` under ``convkit``) propagate to
    the configured logger, so configuring ``convkit`` once covers the package.
    Calling this again for an already configured logger only changes the
    level; handlers are never duplicated.

    Args:
        name: Logger name.
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        log_file: Optional path to a log file. Records then go to both
                  stdout and the file.

    Raises:
        ValueError: If ``log_level`` is not a known level name.
    """
    logger = logging.getLogger(name)
    level = _resolve_log_level(log_level)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    logger.addHandler(_make_handler(logging.StreamHandler(stream=sys.stdout), level))
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(
            _make_handler(logging.FileHandler(str(log_file), encoding="utf-8"), level)
        )
    logger.propagate = False
    return logger
