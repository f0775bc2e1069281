"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (QUERYDEPS__SECTION__KEY)
3. Repo YAML (.querydeps.yaml)
4. Global YAML (~/.config/querydeps/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    QUERYDEPS__<SECTION>__<KEY>=<VALUE>

Examples:
    QUERYDEPS__LOGGING__LEVEL=DEBUG
    QUERYDEPS__ANALYZER__NO_OP_SENTINEL=disabledFetch
    QUERYDEPS__ANALYZER__HOOK_NAMES='["useQuery", "useApiQuery"]'
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_HOOK_NAMES: tuple[str, ...] = (
    "useQuery",
    "useSuspenseQuery",
    "useInfiniteQuery",
    "useSuspenseInfiniteQuery",
    "usePrefetchQuery",
    "usePrefetchInfiniteQuery",
    "createQuery",
    "createInfiniteQuery",
    "injectQuery",
    "injectInfiniteQuery",
    "queryOptions",
    "infiniteQueryOptions",
)


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        QUERYDEPS__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. DEBUG emits one event per analyzed call site.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class AnalyzerConfig(BaseModel):
    """Query-key coverage analysis options.

    Env vars:
        QUERYDEPS__ANALYZER__KEY_FIELD: Name of the cache key property
        QUERYDEPS__ANALYZER__FETCH_FIELD: Name of the fetch function property
        QUERYDEPS__ANALYZER__NO_OP_SENTINEL: Identifier meaning "fetch disabled"
        QUERYDEPS__ANALYZER__MAX_INLINE_DEPTH: Key factory inlining depth
    """

    hook_names: list[str] = Field(
        default_factory=lambda: list(DEFAULT_HOOK_NAMES),
        description="Calls whose first argument is an options object to analyze. "
        "Matched against the callee identifier or the last property of a member callee.",
    )
    key_field: str = Field(
        default="queryKey",
        description="Options property holding the cache key.",
    )
    fetch_field: str = Field(
        default="queryFn",
        description="Options property holding the fetch function.",
    )
    callback_fields: list[str] = Field(
        default_factory=lambda: ["enabled"],
        description="Additional options properties scanned for dependencies "
        "when their value is a function.",
    )
    no_op_sentinel: str = Field(
        default="skipToken",
        description="Identifier that disables fetching in `cond ? fn : sentinel`.",
    )
    hook_prefixes: list[str] = Field(
        default_factory=lambda: ["use"],
        description="Name prefixes marking a function as hook-shaped (reactive boundary).",
    )
    capitalized_components: bool = Field(
        default=True,
        description="Treat functions with a capitalized name as component-shaped.",
    )
    detect_option_objects: bool = Field(
        default=True,
        description="Analyze any object literal declaring both key and fetch fields, "
        "not only arguments of recognized hook calls.",
    )
    max_inline_depth: int = Field(
        default=8,
        description="Maximum nesting of key factory calls inlined while flattening a key. "
        "Deeper calls are treated as opaque.",
    )

    @field_validator("key_field", "fetch_field", "no_op_sentinel")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field name must not be empty")
        return v.strip()

    @field_validator("max_inline_depth")
    @classmethod
    def validate_depth(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_inline_depth must be >= 1, got {v}")
        return v


class QueryDepsConfig(BaseModel):
    """Root configuration for querydeps.

    All settings can be configured via:
    1. Environment variables: QUERYDEPS__SECTION__KEY
    2. YAML config files (repo or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    analyzer: AnalyzerConfig = Field(default_factory=AnalyzerConfig)
