"""
Structured logging for modscope (stdlib logging + Pydantic v2).

Every record carries an event name under the ``modscope.`` namespace and an
optional ``data`` mapping. Events with a registered payload model have their
data validated strictly before the record is emitted, so a misspelt field
fails loudly in tests instead of producing silently different logs.

Rendered as NDJSON, one record looks like::

    {"event_id": "...", "timestamp": "2024-01-01T00:00:00.000Z", "level": "info",
     "event": "modscope.archive.built", "message": "...", "data": {...}}

Library code only logs through :func:`get_logger`; handlers are attached by the
CLI (or the embedding application) via :func:`configure_logging`.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, TextIO, TypeAlias, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

NAMESPACE = "modscope"
LOGGER_NAME = NAMESPACE
DEFAULT_EVENT = f"{NAMESPACE}.log"

PayloadModel: TypeAlias = type[BaseModel] | None
M = TypeVar("M", bound=type[BaseModel])

# Event name -> payload model. ``None`` marks a known event with free-form data.
EVENT_SCHEMAS: dict[str, PayloadModel] = {
    DEFAULT_EVENT: None,
    f"{NAMESPACE}.staging.directory_created": None,
    f"{NAMESPACE}.scope.activated": None,
}


def _schema(*events: str) -> Callable[[M], M]:
    def register(model: M) -> M:
        for event in events:
            EVENT_SCHEMAS[qualify_event_name(event)] = model
        return model

    return register


def qualify_event_name(name: str) -> str:
    """Prefix ``name`` with ``modscope.`` unless it already carries it."""

    cleaned = (name or "").strip().strip(".")
    if not cleaned:
        raise ValueError("event name cannot be empty")
    if cleaned == NAMESPACE or cleaned.startswith(f"{NAMESPACE}."):
        return cleaned
    return f"{NAMESPACE}.{cleaned}"


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------

class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid")


@_schema("staging.created", "staging.removed")
class StagingPayload(_Payload):
    staging_dir: str


@_schema("staging.cleanup_failed")
class StagingCleanupFailedPayload(_Payload):
    staging_dir: str
    error: str


@_schema("module.staged")
class ModuleStagedPayload(_Payload):
    module: str
    resource: str
    bytes: int


@_schema("archive.built")
class ArchiveBuiltPayload(_Payload):
    output: str
    entry_count: int
    module_count: int


@_schema("archive.located")
class ArchiveLocatedPayload(_Payload):
    target: str
    archive: str | None = None


@_schema("member.resolved")
class MemberResolvedPayload(_Payload):
    target: str
    member: str
    kind: str
    source: str


def validate_payload(event: str, payload: Mapping[str, Any]) -> dict[str, Any]:
    if event not in EVENT_SCHEMAS:
        raise ValueError(f"Unknown event '{event}' (add it to EVENT_SCHEMAS)")
    model = EVENT_SCHEMAS[event]
    if model is None:
        return dict(payload)
    try:
        validated = model.model_validate(dict(payload), strict=True)
    except ValidationError as exc:
        raise ValueError(f"Invalid payload for event '{event}': {exc}") from exc
    return validated.model_dump(mode="python", exclude_none=True)


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------

def _event_record(record: logging.LogRecord, formatter: logging.Formatter) -> dict[str, Any]:
    timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
    out: dict[str, Any] = {
        "event_id": getattr(record, "event_id", None) or uuid.uuid4().hex,
        "timestamp": timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "level": record.levelname.lower(),
        "event": getattr(record, "event", None) or DEFAULT_EVENT,
        "message": record.getMessage(),
    }
    data = getattr(record, "data", None)
    if isinstance(data, Mapping) and data:
        out["data"] = dict(data)
    if record.exc_info and record.exc_info[1] is not None:
        exc = record.exc_info[1]
        out["error"] = {
            "type": type(exc).__name__,
            "message": str(exc),
            "stack_trace": formatter.formatException(record.exc_info),
        }
    return out


class NdjsonFormatter(logging.Formatter):
    """One compact JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        return json.dumps(_event_record(record, self), ensure_ascii=False, default=str, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    """``[time] LEVEL event: message (key=value, ...)`` plus any traceback."""

    max_value_len = 120

    def _value(self, value: Any) -> str:
        text = str(value)
        if len(text) > self.max_value_len:
            return text[: self.max_value_len - 1] + "…"
        return text

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        event = _event_record(record, self)
        line = f"[{event['timestamp']}] {event['level'].upper()} {event['event']}"
        if event["message"] and event["message"] != event["event"]:
            line += f": {event['message']}"
        data = event.get("data")
        if data:
            line += " (" + ", ".join(f"{key}={self._value(data[key])}" for key in sorted(data)) + ")"
        error = event.get("error")
        if error:
            line += "\n" + error["stack_trace"].rstrip("\n")
        return line


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------

class EventLogger(logging.LoggerAdapter):
    """LoggerAdapter stamping records with an event id and event name.

    Plain ``.info()``/``.debug()`` calls become ``modscope.log`` events;
    :meth:`event` emits a named, validated domain event.
    """

    def process(self, msg: Any, kwargs: dict[str, Any]) -> tuple[Any, dict[str, Any]]:
        extra = dict(kwargs.pop("extra", None) or {})
        extra.setdefault("event", DEFAULT_EVENT)
        extra["event_id"] = extra.get("event_id") or uuid.uuid4().hex
        kwargs["extra"] = extra
        return msg, kwargs

    def event(
        self,
        name: str,
        *,
        message: str | None = None,
        level: int = logging.INFO,
        data: Mapping[str, Any] | None = None,
        exc: BaseException | None = None,
        **fields: Any,
    ) -> None:
        if not self.isEnabledFor(level):
            return

        event = qualify_event_name(name)
        payload = validate_payload(event, {**(data or {}), **fields})
        extra: dict[str, Any] = {"event": event}
        if payload:
            extra["data"] = payload
        exc_info = (type(exc), exc, exc.__traceback__) if exc is not None else None
        self.log(level, message or event, extra=extra, exc_info=exc_info)


def get_logger(name: str | None = None) -> EventLogger:
    """Return the library logger (``modscope`` or a child of it)."""

    suffix = (name or "").strip(".")
    return EventLogger(logging.getLogger(f"{LOGGER_NAME}.{suffix}" if suffix else LOGGER_NAME), {})


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

@dataclass
class LogContext:
    """A handler attached by :func:`configure_logging`; ``close()`` detaches it."""

    logger: logging.Logger
    handler: logging.Handler
    previous_level: int

    def close(self) -> None:
        if self.handler in self.logger.handlers:
            self.logger.removeHandler(self.handler)
            self.handler.close()
        self.logger.setLevel(self.previous_level)

    def __enter__(self) -> "LogContext":
        return self

    def __exit__(self, _exc_type, _exc, _tb) -> None:
        self.close()


_FORMATTERS: dict[str, type[logging.Formatter]] = {
    "text": TextFormatter,
    "ndjson": NdjsonFormatter,
    "json": NdjsonFormatter,
}


def configure_logging(
    *,
    log_format: str = "text",
    log_level: int = logging.INFO,
    stream: TextIO | None = None,
) -> LogContext:
    """Attach a structured handler to the ``modscope`` logger."""

    formatter_cls = _FORMATTERS.get((log_format or "text").strip().lower())
    if formatter_cls is None:
        raise ValueError("log_format must be 'text' or 'ndjson' (or 'json')")

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(formatter_cls())

    logger = logging.getLogger(LOGGER_NAME)
    context = LogContext(logger=logger, handler=handler, previous_level=logger.level)
    logger.setLevel(log_level)
    logger.addHandler(handler)
    return context


__all__ = [
    "EVENT_SCHEMAS",
    "EventLogger",
    "LogContext",
    "NdjsonFormatter",
    "TextFormatter",
    "configure_logging",
    "get_logger",
    "qualify_event_name",
    "validate_payload",
]
