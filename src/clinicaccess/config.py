"""Configuration contract for clinicaccess.

Pydantic-validated settings shared by the resolver, the administrative
operations and the store adapters. Direct os.environ/os.getenv usage is
confined to :func:`load_config_from_env`.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AccessConfig(BaseModel):
    """Settings for the access-control subsystem.

    ``super_role`` is the role with unconditional edit access. ``fallback_role``
    is applied to profile records that carry no role at all; left unset, such
    profiles fail closed.
    """

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )

    # Record store
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL for RedisRecordStore (e.g., redis://localhost:6379/0)",
    )
    key_prefix: str = Field(
        default="clinicaccess",
        description="Key prefix for records kept in Redis",
    )

    # Roles
    super_role: str = Field(
        default="director",
        description="Role id with unconditional edit access to every tab",
    )
    fallback_role: Optional[str] = Field(
        default=None,
        description="Role assigned to profiles without a role (None = fail closed)",
    )

    service_name: Optional[str] = Field(
        default=None,
        description="Service name used for logger identification",
    )

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate Redis URL format."""
        if v is None:
            return v
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("Redis URL must start with redis://, rediss://, or unix://")
        return v

    @field_validator("key_prefix")
    @classmethod
    def validate_key_prefix(cls, v: str) -> str:
        if not v or not re.fullmatch(r"[\w.:-]+", v):
            raise ValueError(f"Invalid key prefix: {v!r}")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    model_config = {
        "use_enum_values": True,
        "extra": "forbid",
    }


def load_config_from_env() -> AccessConfig:
    """Load configuration from environment variables.

    Environment variables:
    - LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - LOG_JSON: Use JSON log format (true/false, default: false)
    - REDIS_URL: Redis connection URL
    - CLINICACCESS_KEY_PREFIX: Redis key prefix
    - CLINICACCESS_FALLBACK_ROLE: Role for profiles without a role
    - SERVICE_NAME: Service name for logger identification

    Returns:
        AccessConfig instance with values from environment or defaults.
    """
    import os

    return AccessConfig(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_json=os.getenv("LOG_JSON", "false").lower() in ("true", "1", "yes"),
        redis_url=os.getenv("REDIS_URL") or None,
        key_prefix=os.getenv("CLINICACCESS_KEY_PREFIX", "clinicaccess"),
        fallback_role=os.getenv("CLINICACCESS_FALLBACK_ROLE") or None,
        service_name=os.getenv("SERVICE_NAME") or None,
    )


__all__ = [
    "AccessConfig",
    "LogLevel",
    "load_config_from_env",
]
