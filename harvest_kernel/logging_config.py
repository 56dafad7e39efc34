"""
harvest_kernel.logging_config -- JSON-lines logging for harvest computations.

Every record is one JSON object:

    {"ts": ..., "level": ..., "logger": "harvest_kernel.<area>",
     "message": "<snake_case event>",
     "correlation_id": ..., "harvest_id": ..., "crop_zone_id": ...,
     <extra fields>, <exc_* fields>}

The context fields are bound by HarvestFinancialsService around one
computation; engines log bare events and inherit them.  Monetary values are
Decimals and are written as strings, so a logged margin reads exactly like
the stored one.
"""

__all__ = [
    "CONTEXT_FIELDS",
    "ROOT_LOGGER",
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any

ROOT_LOGGER = "harvest_kernel"

CONTEXT_FIELDS = ("correlation_id", "harvest_id", "crop_zone_id")

_NO_CONTEXT: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar(
    "harvest_log_context", default=_NO_CONTEXT
)


class LogContext:
    """Fields stamped on every record logged inside a computation."""

    @staticmethod
    def current() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set(_NO_CONTEXT)

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[None]:
        """
        Add fields for the duration of the block.

        Nested binds layer on top of the outer ones; leaving the block brings
        the outer values back.  None values are ignored.

        Raises:
            TypeError: A field outside CONTEXT_FIELDS.
        """
        unknown = sorted(set(fields) - set(CONTEXT_FIELDS))
        if unknown:
            raise TypeError(f"Unknown log context field(s): {', '.join(unknown)}")

        merged = dict(_context.get())
        merged.update({k: str(v) for k, v in fields.items() if v is not None})
        token = _context.set(MappingProxyType(merged))
        try:
            yield
        finally:
            _context.reset(token)


# Attributes every LogRecord has; anything else on a record came from extra=.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "taskName",
}


def _json_default(value: Any) -> str:
    # Decimal, UUID and enums all have a lossless str()
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # HarvestFinanceError subclasses keep their ids as public attributes
    for name, value in vars(exc).items():
        if not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record; context first, then extra fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_context.get())

        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_json_default)


def get_logger(name: str) -> logging.Logger:
    """Logger for one area of the engine, e.g. ``get_logger("engines.summary")``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


_guard = threading.Lock()
_HANDLER_NAME = "harvest_kernel.json"


def _is_ours(handler: logging.Handler) -> bool:
    return handler.get_name() == _HANDLER_NAME


def configure_logging(
    *,
    level: int = logging.INFO,
    handler: logging.Handler | None = None,
) -> logging.Logger:
    """
    Attach the JSON handler to the ``harvest_kernel`` logger.

    Only the first call has an effect; the engine calls this when the
    database engine is initialized, and an application that configured
    logging earlier keeps its handler and level.
    """
    root = logging.getLogger(ROOT_LOGGER)
    with _guard:
        if any(_is_ours(h) for h in root.handlers):
            return root
        target = handler if handler is not None else logging.StreamHandler(sys.stderr)
        target.setFormatter(StructuredFormatter())
        target.set_name(_HANDLER_NAME)
        root.addHandler(target)
        root.setLevel(level)
        root.propagate = False
    return root


def reset_logging() -> None:
    """Detach the JSON handler so the next configure_logging() applies again."""
    root = logging.getLogger(ROOT_LOGGER)
    with _guard:
        for handler in [h for h in root.handlers if _is_ours(h)]:
            root.removeHandler(handler)
        root.setLevel(logging.NOTSET)
        root.propagate = True
