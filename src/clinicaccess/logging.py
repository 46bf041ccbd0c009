"""Centralized logging utilities for clinicaccess.

This module provides:
- Logging configuration from AccessConfig
- Safe preview utilities for logged values
- Secret redaction
- Structured logging with actor/user context
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from .config import AccessConfig, LogLevel


SECRET_PATTERNS = [
    r'(?i)(?:password|passwd|pwd|secret|token|api[_-]?key|access[_-]?token|refresh[_-]?token)\s*[:=]\s*["\']?([^"\'\s,}]+)',
    r'(?i)(?:bearer|basic)\s+([a-zA-Z0-9+/=._-]+)',
    r'eyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+',  # JWTs from the identity provider
]

# Record attributes owned by the logging module itself
_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName", "actor_id", "user_id",
})


def safe_preview(value: Any, limit: int = 240) -> str:
    """Create a single-line, length-bounded preview of a value for logging.

    Args:
        value: The value to preview (any type)
        limit: Maximum length of the preview (default: 240)

    Returns:
        A truncated string representation
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list)):
        try:
            s = json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"

    return s


def redact_secrets(text: str, replacement: str = "[REDACTED]") -> str:
    """Redact passwords, tokens and bearer credentials from text."""
    if not isinstance(text, str):
        return text

    result = text
    for pattern in SECRET_PATTERNS:
        result = re.sub(pattern, replacement, result)

    return result


def safe_log_value(value: Any, limit: int = 240, redact: bool = True) -> str:
    """Combine safe_preview() and redact_secrets() for one value."""
    preview = safe_preview(value, limit=limit)
    if redact:
        preview = redact_secrets(preview)
    return preview


class AccessLogFormatter(logging.Formatter):
    """Formatter that includes actor/user context and structured JSON output.

    Plain-text output looks like::

        [2026-01-01 10:00:00,000] WARNING clinicaccess.permissions.resolver actor_id=u1 : ...
    """

    def __init__(
        self,
        json_format: bool = True,
        redact_secrets: bool = True,
        *args: Any,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.json_format = json_format
        self.redact_secrets = redact_secrets

    def format(self, record: logging.LogRecord) -> str:
        actor_id = getattr(record, "actor_id", None)
        user_id = getattr(record, "user_id", None)

        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if actor_id:
            log_data["actor_id"] = str(actor_id)
        if user_id:
            log_data["user_id"] = str(user_id)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = safe_log_value(value, redact=self.redact_secrets)

        if self.redact_secrets:
            log_data["message"] = redact_secrets(log_data["message"])

        if self.json_format:
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [
            f"[{log_data['timestamp']}]",
            f"{log_data['level']}",
            f"{log_data['logger']}",
        ]
        if actor_id:
            parts.append(f"actor_id={log_data['actor_id']}")
        if "diagnostic" in log_data:
            parts.append(f"diagnostic={log_data['diagnostic']}")
        parts.append(f": {log_data['message']}")
        return " ".join(parts)


class AccessLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds actor_id and user_id to log records.

    Usage:
        logger = get_access_logger(__name__, actor_id=actor.id)
        logger.info("Override saved", user_id=target.id)
    """

    def __init__(
        self,
        logger: logging.Logger,
        actor_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ):
        super().__init__(logger, {})
        self.actor_id = actor_id
        self.user_id = user_id

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        actor_id = kwargs.pop("actor_id", self.actor_id)
        user_id = kwargs.pop("user_id", self.user_id)

        extra = kwargs.get("extra", {})
        if actor_id:
            extra["actor_id"] = actor_id
        if user_id:
            extra["user_id"] = user_id
        kwargs["extra"] = extra

        return msg, kwargs


def setup_logging(
    config: Optional[AccessConfig] = None,
    json_format: Optional[bool] = None,
    redact_secrets: bool = True,
) -> None:
    """Configure root logging for a process embedding clinicaccess.

    Args:
        config: AccessConfig instance (if None, loads from environment)
        json_format: Override ``config.log_json``
        redact_secrets: Whether to redact secrets (default: True)
    """
    if config is None:
        from .config import load_config_from_env
        config = load_config_from_env()

    level_map = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.CRITICAL: logging.CRITICAL,
    }
    log_level = level_map.get(config.log_level, logging.INFO)
    if json_format is None:
        json_format = config.log_json

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        AccessLogFormatter(json_format=json_format, redact_secrets=redact_secrets)
    )
    root_logger.addHandler(console_handler)

    if config.service_name:
        logging.getLogger(config.service_name).setLevel(log_level)


def get_access_logger(
    name: str,
    actor_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> AccessLoggerAdapter:
    """Get a logger adapter bound to an acting user.

    Example:
        logger = get_access_logger(__name__, actor_id=actor.id)
        logger.warning("Role deleted", user_id=None)
    """
    logger = logging.getLogger(name)
    return AccessLoggerAdapter(logger, actor_id=actor_id, user_id=user_id)


__all__ = [
    "safe_preview",
    "redact_secrets",
    "safe_log_value",
    "AccessLogFormatter",
    "AccessLoggerAdapter",
    "setup_logging",
    "get_access_logger",
]
