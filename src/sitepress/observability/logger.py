"""Structured JSON logger for sitepress.

Each record is one JSON object per line, e.g.::

    {"ts": "2026-10-18T12:00:00.123456+00:00", "level": "WARNING",
     "logger": "sitepress.retry", "message": "Version conflict, retrying",
     "op": "write", "path": "mon-cafe/index.html", "attempt": 2, "delay": 1.0}

A record logged with a :class:`~sitepress.errors.SitepressError` attached
also carries its ``error_code``, so failures can be grouped by kind without
parsing the traceback.

Usage::

    from sitepress.observability import get_logger

    log = get_logger("sitepress.publish")
    log.info("site published", extra={"extra_fields": {"slug": "mon-cafe"}})
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from sitepress.errors import SitepressError


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    ``ts`` (the record's creation time), ``level``, ``logger`` and
    ``message`` always come from the record itself; an ``extra_fields``
    entry with one of those names is dropped.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in (getattr(record, "extra_fields", None) or {}).items():
            entry.setdefault(key, value)

        exc = record.exc_info[1] if record.exc_info else None
        if exc is not None:
            if isinstance(exc, SitepressError):
                entry["error_code"] = getattr(exc.code, "value", exc.code)
            entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)


def _has_structured_handler(logger: logging.Logger) -> bool:
    return any(isinstance(h.formatter, StructuredFormatter) for h in logger.handlers)


def get_logger(
    name: str = "sitepress",
    *,
    level: int | str = logging.DEBUG,
    stream: Any | None = None,
) -> logging.Logger:
    """Get a logger named *name* that writes structured JSON lines.

    The first call attaches a :class:`StructuredFormatter` stream handler
    (to *stream*, default ``sys.stderr``) and sets *level*, given as an
    ``int`` or a case-insensitive name.  Later calls for the same name
    return the logger untouched.
    """
    logger = logging.getLogger(name)
    if _has_structured_handler(logger):
        return logger

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger
