"""Logging setup and structured log helpers.

``log_with_fields`` writes ``key=value`` pairs after the message for plain
output and attaches the same fields to the record, so the JSON formatter can
emit them as an object instead of parsing the message. The request middleware
binds a :class:`RequestContext`; every record logged while a request is
served carries its id, method and path.
"""

from __future__ import annotations

import json
import logging
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import UTC, datetime
from logging.config import dictConfig
from typing import Any

from slightly.settings import Settings, get_settings

AUDIT_LOGGER_NAME = "slightly.security.audit"

# Cookie values and paths come from the client; longer values are cut.
MAX_FIELD_LENGTH = 200

_MESSAGE_ATTR = "slightly_message"
_FIELDS_ATTR = "slightly_fields"
_QUOTE_TRIGGERS = frozenset(' ="')


@dataclass(frozen=True)
class RequestContext:
    request_id: str
    method: str = ""
    path: str = ""


_request_context: ContextVar[RequestContext | None] = ContextVar(
    "slightly_request_context", default=None
)


def bind_request_context(context: RequestContext) -> Token[RequestContext | None]:
    return _request_context.set(context)


def reset_request_context(token: Token[RequestContext | None]) -> None:
    _request_context.reset(token)


def current_request_context() -> RequestContext | None:
    return _request_context.get()


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        context = current_request_context()
        record.request_id = context.request_id if context is not None else "-"
        record.http_method = context.method if context is not None else ""
        record.http_path = context.path if context is not None else ""
        return True


def normalize_log_level(raw_level: str) -> str:
    level = raw_level.strip().upper()
    if level != "NOTSET" and level in logging.getLevelNamesMapping():
        return level
    return "INFO"


def _truncate(text: str) -> str:
    if len(text) <= MAX_FIELD_LENGTH:
        return text
    return text[:MAX_FIELD_LENGTH] + "..."


def _format_log_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"

    text = _truncate(value if isinstance(value, str) else str(value))
    # One record per line, whatever the client sent.
    text = text.encode("unicode_escape").decode("ascii")
    # "light dark" is a valid scheme value, so spaced values are quoted.
    if not text or _QUOTE_TRIGGERS.intersection(text):
        return '"' + text.replace('"', '\\"') + '"'
    return text


def _json_value(value: object) -> object:
    if isinstance(value, bool | int | float):
        return value
    return _truncate(value if isinstance(value, str) else str(value))


def format_log_fields(**fields: object) -> str:
    return " ".join(
        f"{key}={_format_log_value(fields[key])}"
        for key in sorted(fields)
        if fields[key] is not None
    )


def log_with_fields(
    logger: logging.Logger,
    level: int,
    message: str,
    *,
    exc_info: Any | None = None,
    **fields: object,
) -> None:
    if not logger.isEnabledFor(level):
        return

    present = {key: value for key, value in fields.items() if value is not None}
    extra = {
        _MESSAGE_ATTR: message,
        _FIELDS_ATTR: {key: _json_value(value) for key, value in present.items()},
    }
    if present:
        logger.log(
            level, "%s %s", message, format_log_fields(**present), exc_info=exc_info, extra=extra
        )
        return
    logger.log(level, "%s", message, exc_info=exc_info, extra=extra)


def log_security_audit_event(
    *,
    audit_event: str,
    outcome: str,
    level: int = logging.INFO,
    **fields: object,
) -> None:
    log_with_fields(
        logging.getLogger(AUDIT_LOGGER_NAME),
        level,
        "security audit event",
        audit_event=audit_event,
        outcome=outcome,
        **fields,
    )


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", "-"),
            "message": getattr(record, _MESSAGE_ATTR, None) or record.getMessage(),
        }

        path = getattr(record, "http_path", "")
        if path:
            payload["request"] = {"method": getattr(record, "http_method", ""), "path": path}

        fields = getattr(record, _FIELDS_ATTR, None)
        if fields:
            payload["fields"] = fields

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def configure_logging(settings: Settings | None = None) -> None:
    selected_settings = settings if settings is not None else get_settings()
    level = normalize_log_level(selected_settings.log_level)

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "request_context": {"()": RequestContextFilter},
            },
            "formatters": {
                "plain": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] [req=%(request_id)s] %(message)s",
                },
                "json": {"()": JsonLogFormatter},
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "filters": ["request_context"],
                    "formatter": "json" if selected_settings.log_json else "plain",
                }
            },
            "root": {"handlers": ["default"], "level": level},
            "loggers": {
                # Audit entries are kept even when the app runs at WARNING or above.
                AUDIT_LOGGER_NAME: {"level": "INFO"},
                "uvicorn": {"level": level},
                "uvicorn.error": {"level": level},
                "uvicorn.access": {"level": level},
            },
        }
    )
