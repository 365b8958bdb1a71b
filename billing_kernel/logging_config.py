"""
Logging -- Structured JSON log records for the billing kernel.

Responsibility:
    Give every module a logger under the ``billing_kernel`` namespace and
    render its records as one JSON object per line.  Engines log event
    names (``cap_applied``, ``schedule_generation_completed``) with their
    data in ``extra``; the formatter flattens that data into the object.

Architecture position:
    Kernel -- imported by engines, config loader and CLI alike.  Nothing is
    configured at import time; only entry points call ``configure_logging``
    or ``quiet_logging``.

Context:
    ``LogContext`` holds the identifiers of the schedule being worked on.
    The CLI binds ``schedule_id`` (parameter checksum prefix) and, when
    given, ``correlation_id`` around generation, so every engine record of
    that run carries them without the engines knowing about either.

Usage:
    from billing_kernel.logging_config import LogContext, get_logger

    logger = get_logger("engines.schedule")
    with LogContext.bind(schedule_id="3f9a0c21d4e5b6a7"):
        logger.info("schedule_generation_started", extra={"cycle": "quarterly"})
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "quiet_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from datetime import UTC, date, datetime
from typing import Any

_LOGGER_PREFIX = "billing_kernel"


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------


class LogContext:
    """Schedule-scoped identifiers attached to every record (async-safe)."""

    FIELDS = ("schedule_id", "correlation_id")

    _vars: dict[str, ContextVar[str | None]] = {
        name: ContextVar(f"billing_log_{name}", default=None) for name in FIELDS
    }

    @classmethod
    def _check(cls, names: Any) -> None:
        unknown = sorted(set(names) - set(cls.FIELDS))
        if unknown:
            raise TypeError(f"Unknown log context fields: {unknown}")

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Set the given fields; ``None`` values leave a field untouched."""
        cls._check(fields)
        for name, value in fields.items():
            if value is not None:
                cls._vars[name].set(value)

    @classmethod
    def get_all(cls) -> dict[str, str]:
        values = {name: var.get() for name, var in cls._vars.items()}
        return {name: value for name, value in values.items() if value is not None}

    @classmethod
    def clear(cls) -> None:
        for var in cls._vars.values():
            var.set(None)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Set fields for the duration of a ``with`` block, then restore them."""
        cls._check(fields)
        tokens: list[tuple[ContextVar[str | None], Token]] = [
            (cls._vars[name], cls._vars[name].set(value))
            for name, value in fields.items()
            if value is not None
        ]
        try:
            yield cls
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# Formatter
# ---------------------------------------------------------------------------

# Attributes every LogRecord has; anything else came in through ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    """Type, message, error code and the structured attributes of ``exc``."""
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: base keys, context, extras, exception."""

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

        return json.dumps(payload, default=_to_json)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger ``billing_kernel.<name>``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Send ``billing_kernel`` records to one JSON handler.

    Idempotent: only the first call in a process takes effect until
    ``reset_logging`` is called.  Records stop propagating to the root
    logger so host applications do not print them twice.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    if handler is None:
        handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger(_LOGGER_PREFIX)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(handler)


@contextmanager
def quiet_logging() -> Iterator[None]:
    """
    Drop ``billing_kernel`` records inside the block.

    Other loggers in the process are left alone.
    """
    root = logging.getLogger(_LOGGER_PREFIX)
    sink = logging.NullHandler()
    propagate = root.propagate
    root.addHandler(sink)
    root.propagate = False
    try:
        yield
    finally:
        root.removeHandler(sink)
        root.propagate = propagate


def reset_logging() -> None:
    """Undo ``configure_logging``. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_LOGGER_PREFIX)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    root.propagate = True
