"""Configuration for idempotent request processing.

This module provides the IdempotencyConfig class. It covers the settings
that are plain values: the activation strategy tag, header names, which
methods the ASGI adapter routes into the engine, the in-memory TTL and
logging options. Collaborators (server specification, storage driver, a
custom activation predicate, hooks) are passed to the middleware directly.

Example:
    Basic usage with defaults:

        >>> config = IdempotencyConfig()
        >>> config.activation_strategy
        'always'
        >>> config.enabled_methods
        ['POST', 'PATCH']

    Loading from environment:

        >>> import os
        >>> os.environ['IDEMPOTENCY_ACTIVATION_STRATEGY'] = 'opt-in'
        >>> os.environ['IDEMPOTENCY_ENABLED_METHODS'] = 'POST,PUT'
        >>> config = IdempotencyConfig.from_env()

    Loading from dictionary:

        >>> config = IdempotencyConfig.from_dict({'status_header': 'X-Idempotency-Status'})
"""

import os
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

VALID_HTTP_METHODS = {
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "DELETE",
    "CONNECT",
    "OPTIONS",
    "TRACE",
    "PATCH",
}

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class IdempotencyConfig(BaseModel):
    """Configuration for idempotent request processing.

    Attributes:
        activation_strategy: ``"always"`` handles every request entering the
            middleware, ``"opt-in"`` only those carrying the key header.
            A custom predicate can be passed to the middleware instead.
        key_header: Name of the request header carrying the idempotency key.
        status_header: If set, responses carry the situation tag in this
            header (e.g. ``X-Idempotency-Status``).
        enabled_methods: HTTP methods the ASGI adapter routes into the engine.
            Other methods reach the application untouched.
        fingerprint_headers: Header names included in the default
            specification's fingerprint. Normalized to lowercase.
        memory_ttl_seconds: TTL of records in the in-memory driver, or None
            to keep them forever.
        log_level: Level passed to ``configure_logging``.
        log_json: Emit JSON logs when True, console logs otherwise.

    Note:
        This class is immutable (frozen=True).
    """

    activation_strategy: Literal["always", "opt-in"] = Field(
        default="always",
        description="Built-in activation strategy tag",
    )
    key_header: str = Field(
        default="Idempotency-Key",
        min_length=1,
        description="Request header carrying the idempotency key",
    )
    status_header: str | None = Field(
        default=None,
        description="Response header reporting the situation tag (disabled when None)",
    )
    enabled_methods: list[str] = Field(
        default=["POST", "PATCH"],
        description="HTTP methods routed into the engine by the ASGI adapter",
    )
    fingerprint_headers: list[str] = Field(
        default=["content-type"],
        description="Header names included in the request fingerprint",
    )
    memory_ttl_seconds: int | None = Field(
        default=None,
        description="TTL of in-memory records in seconds (None keeps them forever)",
    )
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(default=True, description="Emit JSON logs")

    model_config = {"frozen": True}

    @field_validator("enabled_methods", mode="before")
    @classmethod
    def validate_enabled_methods(cls, v: Any) -> list[str]:
        """Validate and normalize enabled HTTP methods.

        Raises:
            ValueError: If any method is not a valid HTTP method.

        Example:
            >>> IdempotencyConfig(enabled_methods=["post", "put"]).enabled_methods
            ['POST', 'PUT']
        """
        if isinstance(v, str):
            v = [method.strip() for method in v.split(",") if method.strip()]

        if not isinstance(v, list):
            raise ValueError("enabled_methods must be a list or comma-separated string")

        methods = [method.upper() for method in v]

        invalid_methods = set(methods) - VALID_HTTP_METHODS
        if invalid_methods:
            raise ValueError(
                f"Invalid HTTP methods: {', '.join(sorted(invalid_methods))}. "
                f"Valid methods are: {', '.join(sorted(VALID_HTTP_METHODS))}"
            )

        return methods

    @field_validator("fingerprint_headers", mode="before")
    @classmethod
    def validate_fingerprint_headers(cls, v: Any) -> list[str]:
        """Validate and normalize fingerprint headers to lowercase."""
        if isinstance(v, str):
            v = [header.strip() for header in v.split(",") if header.strip()]

        if not isinstance(v, list):
            raise ValueError("fingerprint_headers must be a list or comma-separated string")

        return [header.lower() for header in v]

    @field_validator("status_header", mode="before")
    @classmethod
    def validate_status_header(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("memory_ttl_seconds")
    @classmethod
    def validate_memory_ttl_seconds(cls, v: int | None) -> int | None:
        if v is not None and v <= 0:
            raise ValueError(f"memory_ttl_seconds must be positive, got {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level {v!r}")
        return level

    @classmethod
    def from_env(cls, prefix: str = "IDEMPOTENCY_") -> "IdempotencyConfig":
        """Create configuration from environment variables.

        Variable names are uppercase field names with the prefix. List
        fields accept comma-separated values.

        Args:
            prefix: Prefix for environment variable names. Default is "IDEMPOTENCY_".

        Returns:
            IdempotencyConfig instance populated from environment variables.
        """
        config_dict: dict[str, Any] = {}

        field_types = {
            "activation_strategy": str,
            "key_header": str,
            "status_header": str,
            "enabled_methods": list,
            "fingerprint_headers": list,
            "memory_ttl_seconds": int,
            "log_level": str,
            "log_json": bool,
        }

        for field_name, field_type in field_types.items():
            env_value = os.environ.get(f"{prefix}{field_name.upper()}")
            if env_value is None:
                continue

            if field_type is int:
                config_dict[field_name] = int(env_value)
            elif field_type is bool:
                config_dict[field_name] = env_value.strip().lower() in {"1", "true", "yes", "on"}
            else:
                config_dict[field_name] = env_value

        return cls(**config_dict)

    @classmethod
    def from_dict(cls, config_dict: dict[str, Any]) -> "IdempotencyConfig":
        """Create configuration from a dictionary.

        Raises:
            ValidationError: If the dictionary contains invalid values.
        """
        return cls(**config_dict)
