"""Environment-based tracing configuration."""

import os
from dataclasses import dataclass, field

DEFAULT_OPERATION_PREFIX = "api-request"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class TracingSettings:
    """Immutable tracing configuration read from environment variables.

    The tracer itself is not configured here: it is created once per process
    and passed explicitly to the middleware.
    """

    service_name: str
    operation_prefix: str = field(
        default_factory=lambda: os.getenv("TRACING_OPERATION_PREFIX", DEFAULT_OPERATION_PREFIX)
    )
    abort_on_errors: bool = field(
        default_factory=lambda: _env_flag("TRACING_ABORT_ON_ERRORS", "false")
    )
    enabled: bool = field(default_factory=lambda: _env_flag("TRACING_ENABLED", "true"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: os.getenv("LOG_FORMAT", "json"))

    def __post_init__(self) -> None:
        object.__setattr__(self, "log_level", self.log_level.upper())
        if not self.operation_prefix:
            object.__setattr__(self, "operation_prefix", DEFAULT_OPERATION_PREFIX)
