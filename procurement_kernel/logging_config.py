"""
Module: procurement_kernel.logging_config
Responsibility: One JSON object per log line for the whole procurement
    namespace, with request-scoped fields (correlation id, acting user,
    document) attached from context.
Architecture position: Kernel, no internal imports.  Every other package
    logs through ``get_logger``.

Invariants enforced:
    - Only the names in ``CONTEXT_FIELDS`` can be bound to the context.
    - ``extra`` keys never overwrite the base fields (ts, level, logger,
      message) or bound context fields.
    - ``configure_logging`` installs exactly one JSON handler no matter how
      often it is called.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

__all__ = [
    "CONTEXT_FIELDS",
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

NAMESPACE = "procurement_kernel"

CONTEXT_FIELDS = (
    "correlation_id",
    "actor_id",
    "actor_role",
    "entity_type",
    "entity_id",
)

_context: ContextVar[Mapping[str, str]] = ContextVar("procurement_log_context", default={})


class LogContext:
    """
    Request-scoped log fields, safe across threads and asyncio tasks.

        with LogContext.bind(actor_id=actor.actor_id, actor_role="vendor"):
            logger.info("catalog_submit_started")   # carries both fields
    """

    @staticmethod
    def _merged(fields: Mapping[str, Any]) -> dict[str, str]:
        merged = dict(_context.get())
        for name, value in fields.items():
            if name in CONTEXT_FIELDS and value is not None:
                merged[name] = str(value)
        return merged

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Set fields for the rest of the current context.  None is ignored."""
        _context.set(cls._merged(fields))

    @classmethod
    def get(cls, name: str) -> str | None:
        return _context.get().get(name)

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set({})

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[type[LogContext]]:
        """Set fields on entry, restore the previous context on exit."""
        token = _context.set(cls._merged(fields))
        try:
            yield cls
        finally:
            _context.reset(token)


# LogRecord attributes, never copied into the payload as extras
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (tuple, set, frozenset)):
        return list(value)
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # ProcurementError subclasses keep their structured detail as attributes
    for name, value in vars(exc).items():
        if not name.startswith("_") and name != "code":
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for name, value in vars(record).items():
            if name not in _RECORD_ATTRIBUTES:
                payload.setdefault(name, value)
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=_jsonable)


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``procurement_kernel`` namespace."""
    return logging.getLogger(f"{NAMESPACE}.{name}")


_HANDLER_NAME = "procurement-json"


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach the JSON handler to the namespace logger.

    Idempotent: once a JSON handler is installed, later calls change
    nothing, so library code (e.g. engine setup) may call it freely.
    """
    root = logging.getLogger(NAMESPACE)
    if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        return
    target = handler or logging.StreamHandler(stream or sys.stderr)
    target.set_name(_HANDLER_NAME)
    target.setFormatter(StructuredFormatter())
    root.addHandler(target)
    root.setLevel(level)
    root.propagate = False


def reset_logging() -> None:
    """Remove the JSON handler and restore the default level.  Tests only."""
    root = logging.getLogger(NAMESPACE)
    for h in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(h)
    root.setLevel(logging.WARNING)
    root.propagate = True
