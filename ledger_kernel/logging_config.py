"""
Structured JSON logging for the ledger kernel.

Every record is one JSON object per line:

    {"ts": ..., "level": ..., "logger": ..., "message": "posting_completed",
     "correlation_id": ..., "company_id": ..., "transaction_id": ..., ...}

Messages are short snake_case event names; details travel in ``extra``.
Request-scoped fields (correlation, company, actor, transaction) are held
in LogContext and merged into every record emitted while they are bound.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any, Iterator, Mapping
from uuid import UUID

LOGGER_NAMESPACE = "ledger_kernel"

CONTEXT_FIELDS = ("correlation_id", "company_id", "actor_id", "transaction_id")

_context: ContextVar[Mapping[str, str]] = ContextVar("ledger_log_context", default={})


class LogContext:
    """Request-scoped log fields, safe across threads and tasks."""

    @staticmethod
    def _known(fields: Mapping[str, Any]) -> dict[str, str]:
        return {
            key: str(value)
            for key, value in fields.items()
            if key in CONTEXT_FIELDS and value is not None
        }

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Merge non-None fields into the current context."""
        _context.set({**_context.get(), **cls._known(fields)})

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set({})

    @classmethod
    @contextmanager
    def bind(cls, **fields: Any) -> Iterator[type["LogContext"]]:
        """
        Bind fields for the duration of a with-block.

        The previous context is restored on exit, including after an
        exception.  Unknown field names are ignored.
        """
        token = _context.set({**_context.get(), **cls._known(fields)})
        try:
            yield cls
        finally:
            _context.reset(token)


# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # Kernel errors keep their structured attributes (account_id, field, ...)
    for key, value in vars(exc).items():
        if not key.startswith("_") and key != "code":
            fields[f"exc_{key}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }

        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ledger_kernel namespace."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ledger_kernel logger (idempotent).

    Records do not propagate to the root logger, so host applications that
    configure their own logging see kernel events only through this handler.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    kernel_logger = logging.getLogger(LOGGER_NAMESPACE)
    kernel_logger.setLevel(level)
    kernel_logger.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    kernel_logger.addHandler(h)


def reset_logging() -> None:
    """Drop handlers and configuration. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    kernel_logger = logging.getLogger(LOGGER_NAMESPACE)
    kernel_logger.handlers.clear()
    kernel_logger.setLevel(logging.WARNING)
