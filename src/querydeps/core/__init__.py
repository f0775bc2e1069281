"""Core module exports."""

from querydeps.core.errors import (
    ConfigError,
    ErrorCode,
    InternalError,
    ParseError,
    QueryDepsError,
)
from querydeps.core.logging import (
    clear_request_id,
    configure_logging,
    file_context,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Errors
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "ParseError",
    "QueryDepsError",
    # Logging
    "clear_request_id",
    "configure_logging",
    "file_context",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
