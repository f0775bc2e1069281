"""querydeps error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Parse
- 9xxx: Internal

The analysis engine itself never raises: malformed or unexpected syntax
degrades to "excluded from both key and dependency sets". These errors
surface only from the parsing front-end and the configuration layer.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Parse (3xxx)
    PARSE_UNSUPPORTED_LANGUAGE = 3001
    PARSE_GRAMMAR_UNAVAILABLE = 3002
    PARSE_FILE_UNREADABLE = 3003

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class QueryDepsError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON reports."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(QueryDepsError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class ParseError(QueryDepsError):
    """Errors raised while turning source text into a syntax tree."""

    @classmethod
    def unsupported_language(cls, path: str, ext: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_UNSUPPORTED_LANGUAGE,
            message=f"Unsupported file extension '{ext}' for {path}",
            details={"path": path, "extension": ext},
        )

    @classmethod
    def grammar_unavailable(cls, language: str, reason: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_GRAMMAR_UNAVAILABLE,
            message=f"Grammar not available for {language}: {reason}",
            details={"language": language, "reason": reason},
        )

    @classmethod
    def file_unreadable(cls, path: str, reason: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_FILE_UNREADABLE,
            message=f"Cannot read {path}: {reason}",
            retryable=True,
            details={"path": path, "reason": reason},
        )


class InternalError(QueryDepsError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
