"""Tests for config/models.py module.

Covers:
- LogOutputConfig model
- LoggingConfig model
- AnalyzerConfig model
- QueryDepsConfig root model
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from querydeps.config.models import (
    DEFAULT_HOOK_NAMES,
    AnalyzerConfig,
    LoggingConfig,
    LogOutputConfig,
    QueryDepsConfig,
)


class TestLogOutputConfig:
    """Tests for LogOutputConfig model."""

    def test_defaults(self) -> None:
        config = LogOutputConfig()
        assert config.format == "console"
        assert config.destination == "stderr"
        assert config.level is None

    @pytest.mark.parametrize("destination", ["stderr", "stdout", "/var/log/querydeps.log"])
    def test_valid_destinations(self, destination: str) -> None:
        assert LogOutputConfig(destination=destination).destination == destination

    def test_relative_path_fails(self) -> None:
        """Relative path is rejected."""
        with pytest.raises(ValidationError, match="absolute path"):
            LogOutputConfig(destination="logs/app.log")

    def test_invalid_format(self) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(format="xml")  # type: ignore[arg-type]


class TestLoggingConfig:
    """Tests for LoggingConfig model."""

    def test_defaults(self) -> None:
        config = LoggingConfig()
        assert config.level == "WARNING"
        assert len(config.outputs) == 1

    def test_invalid_level(self) -> None:
        with pytest.raises(ValidationError):
            LoggingConfig(level="VERBOSE")  # type: ignore[arg-type]


class TestAnalyzerConfig:
    """Tests for AnalyzerConfig model."""

    def test_defaults(self) -> None:
        config = AnalyzerConfig()
        assert config.hook_names == list(DEFAULT_HOOK_NAMES)
        assert "useQuery" in config.hook_names
        assert config.key_field == "queryKey"
        assert config.fetch_field == "queryFn"
        assert config.callback_fields == ["enabled"]
        assert config.no_op_sentinel == "skipToken"
        assert config.hook_prefixes == ["use"]
        assert config.capitalized_components is True
        assert config.detect_option_objects is True
        assert config.max_inline_depth == 8

    def test_default_lists_are_independent(self) -> None:
        first = AnalyzerConfig()
        first.hook_names.append("useApiQuery")
        assert "useApiQuery" not in AnalyzerConfig().hook_names

    def test_names_are_stripped(self) -> None:
        assert AnalyzerConfig(key_field="  cacheKey ").key_field == "cacheKey"

    @pytest.mark.parametrize("field", ["key_field", "fetch_field", "no_op_sentinel"])
    def test_empty_names_fail(self, field: str) -> None:
        with pytest.raises(ValidationError, match="must not be empty"):
            AnalyzerConfig(**{field: "   "})

    @pytest.mark.parametrize("depth", [0, -3])
    def test_depth_must_be_positive(self, depth: int) -> None:
        with pytest.raises(ValidationError, match="max_inline_depth"):
            AnalyzerConfig(max_inline_depth=depth)


class TestQueryDepsConfig:
    """Tests for the root model."""

    def test_sections(self) -> None:
        config = QueryDepsConfig()
        assert isinstance(config.logging, LoggingConfig)
        assert isinstance(config.analyzer, AnalyzerConfig)

    def test_nested_dict_validation(self) -> None:
        config = QueryDepsConfig.model_validate(
            {"analyzer": {"hook_names": ["useApiQuery"], "max_inline_depth": 2}}
        )
        assert config.analyzer.hook_names == ["useApiQuery"]
        assert config.analyzer.max_inline_depth == 2
