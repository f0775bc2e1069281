"""Analysis models - fixes, diagnostics and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

MISSING_DEPS_CODE = "missing-deps"
DIAGNOSTIC_SOURCE = "querydeps"


class Severity(Enum):
    """Diagnostic severity level."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    HINT = "hint"


@dataclass(frozen=True)
class Fix:
    """A single text insertion/replacement in the source."""

    start_byte: int
    end_byte: int
    replacement: str
    result: str  # fixed key literal, for messages

    def apply(self, source: bytes | str) -> bytes:
        data = source.encode("utf-8") if isinstance(source, str) else source
        return data[: self.start_byte] + self.replacement.encode("utf-8") + data[self.end_byte :]

    @property
    def message(self) -> str:
        return f"Fix to {self.result}"


@dataclass
class Diagnostic:
    """A missing-dependencies finding for one query call site."""

    path: str
    line: int
    message: str
    source: str = DIAGNOSTIC_SOURCE
    severity: Severity = Severity.WARNING
    column: int | None = None
    end_line: int | None = None
    end_column: int | None = None
    code: str | None = MISSING_DEPS_CODE
    missing: list[str] = field(default_factory=list)
    fix: Fix | None = None

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "line": self.line,
            "column": self.column,
            "end_line": self.end_line,
            "end_column": self.end_column,
            "message": self.message,
            "source": self.source,
            "severity": self.severity.value,
            "code": self.code,
            "missing": list(self.missing),
            "fix": None if self.fix is None else {
                "start_byte": self.fix.start_byte,
                "end_byte": self.fix.end_byte,
                "replacement": self.fix.replacement,
                "result": self.fix.result,
            },
        }


@dataclass
class CheckResult:
    """Result of checking one source file or snippet."""

    path: str
    language: str
    diagnostics: list[Diagnostic] = field(default_factory=list)
    sites_checked: int = 0
    parse_errors: int = 0
    error_detail: str | None = None  # set when the file could not be checked

    @property
    def status(self) -> Literal["clean", "dirty", "error"]:
        if self.error_detail is not None:
            return "error"
        return "dirty" if self.diagnostics else "clean"

    @classmethod
    def failed(cls, path: str, language: str, detail: str) -> CheckResult:
        return cls(path=path, language=language, error_detail=detail)
