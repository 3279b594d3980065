"""Structured logging for the ledger kernel: JSON lines by default, plain text for local runs."""

__all__ = [
    "StructuredFormatter",
    "TextFormatter",
    "build_payload",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextvars import ContextVar
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------


class LogContext:
    """Thread-safe / async-safe context holder for request-scoped log fields."""

    _correlation_id: ContextVar[str | None] = ContextVar(
        "log_correlation_id", default=None
    )
    _legal_entity_id: ContextVar[str | None] = ContextVar(
        "log_legal_entity_id", default=None
    )
    _actor_id: ContextVar[str | None] = ContextVar(
        "log_actor_id", default=None
    )
    _entry_id: ContextVar[str | None] = ContextVar(
        "log_entry_id", default=None
    )
    _deal_id: ContextVar[str | None] = ContextVar(
        "log_deal_id", default=None
    )

    _FIELD_NAMES = (
        "correlation_id",
        "legal_entity_id",
        "actor_id",
        "entry_id",
        "deal_id",
    )

    @classmethod
    def set(
        cls,
        *,
        correlation_id: str | None = None,
        legal_entity_id: str | None = None,
        actor_id: str | None = None,
        entry_id: str | None = None,
        deal_id: str | None = None,
    ) -> None:
        """Set context fields. Only non-None values are updated."""
        values = {
            "correlation_id": correlation_id,
            "legal_entity_id": legal_entity_id,
            "actor_id": actor_id,
            "entry_id": entry_id,
            "deal_id": deal_id,
        }
        for name, val in values.items():
            if val is not None:
                getattr(cls, f"_{name}").set(str(val))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        """Return all non-None context fields as a dict."""
        ctx: dict[str, str] = {}
        for name in cls._FIELD_NAMES:
            val = getattr(cls, f"_{name}").get()
            if val is not None:
                ctx[name] = val
        return ctx

    @classmethod
    def clear(cls) -> None:
        """Reset all context fields to None."""
        for name in cls._FIELD_NAMES:
            getattr(cls, f"_{name}").set(None)

    @classmethod
    def bind(cls, **kwargs: Any) -> "_LogContextManager":
        """Context manager that sets fields on entry and restores on exit."""
        return _LogContextManager(**kwargs)


class _LogContextManager:
    """Context manager for LogContext.bind()."""

    def __init__(self, **kwargs: Any):
        self._kwargs = kwargs
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> type[LogContext]:
        for key, val in self._kwargs.items():
            if val is None:
                continue
            var = getattr(LogContext, f"_{key}", None)
            if var is not None:
                self._tokens[key] = var.set(str(val))
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        for key, token in self._tokens.items():
            getattr(LogContext, f"_{key}").reset(token)


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}

_ENVELOPE_KEYS = ("ts", "level", "logger", "message")


class _JSONEncoder(json.JSONEncoder):
    """Handle UUID, date/datetime, Decimal and Enum in log payloads."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


def build_payload(record: logging.LogRecord) -> dict[str, Any]:
    """
    Flatten a record into envelope, context, extra and exception fields.

    Context fields win over ``extra`` keys of the same name.  Exceptions
    carrying a ``code`` (every LedgerKernelError) add ``exc_code`` and their
    public attributes as ``exc_<name>``.
    """
    payload: dict[str, Any] = {
        "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    payload.update(LogContext.get_all())

    for key, val in vars(record).items():
        if key not in _STDLIB_KEYS and key not in payload:
            payload[key] = val

    if record.exc_info and record.exc_info[1] is not None:
        exc = record.exc_info[1]
        payload["exc_type"] = type(exc).__name__
        payload["exc_message"] = str(exc)
        if hasattr(exc, "code"):
            payload["exc_code"] = exc.code
        for k, v in vars(exc).items():
            if not k.startswith("_") and k not in ("args", "code"):
                payload[f"exc_{k}"] = v
    return payload


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = build_payload(record)
        if record.exc_info and record.exc_info[1] is not None:
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, cls=_JSONEncoder, default=str)


def _text_value(val: Any) -> str:
    if isinstance(val, str):
        return val
    return json.dumps(val, cls=_JSONEncoder, default=str)


class TextFormatter(logging.Formatter):
    """
    Human-readable single line for local runs:

        2024-01-01T12:00:00+00:00 INFO ledger_kernel.services.journal journal_entry_posted entry_id=... ledger_row_count=2
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = build_payload(record)
        head = " ".join(str(payload.pop(key)) for key in _ENVELOPE_KEYS)
        fields = " ".join(f"{key}={_text_value(val)}" for key, val in payload.items())
        line = f"{head} {fields}" if fields else head
        if record.exc_info and record.exc_info[1] is not None:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


_FORMATTERS: dict[str, type[logging.Formatter]] = {
    "json": StructuredFormatter,
    "text": TextFormatter,
}


# ---------------------------------------------------------------------------
# Logger factory
# ---------------------------------------------------------------------------

_LOGGER_PREFIX = "ledger_kernel"


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ledger_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------

_configured = False
_lock = threading.Lock()


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


def configure_logging(
    *,
    level: int | str = logging.INFO,
    fmt: str = "json",
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Configure the ledger_kernel logger hierarchy (idempotent).

    Args:
        level: A logging level or its name ("DEBUG", "info", ...).
        fmt: "json" (one JSON object per line) or "text".
        stream: Target stream when no handler is given; stderr by default.
        handler: Use this handler instead of a new StreamHandler.
    """
    global _configured
    if fmt not in _FORMATTERS:
        raise ValueError(f"Unknown log format: {fmt!r}")
    resolved_level = _resolve_level(level)

    with _lock:
        if _configured:
            return
        _configured = True

    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(resolved_level)
    root_logger.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(_FORMATTERS[fmt]())
    root_logger.addHandler(h)


def reset_logging() -> None:
    """Reset logging configuration. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.handlers.clear()
    logger.setLevel(logging.WARNING)
