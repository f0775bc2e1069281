"""Config module exports."""

from querydeps.config.loader import load_config
from querydeps.config.models import (
    AnalyzerConfig,
    LoggingConfig,
    LogOutputConfig,
    QueryDepsConfig,
)

__all__ = [
    "load_config",
    "AnalyzerConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "QueryDepsConfig",
]
