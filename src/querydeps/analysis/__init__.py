"""Query key dependency-coverage analysis."""

from querydeps.analysis.models import CheckResult, Diagnostic, Fix, Severity
from querydeps.analysis.ops import check_file, check_paths, check_source
from querydeps.analysis.paths import KeyAtom, ValuePath
from querydeps.analysis.rule import QueryKeyRule

__all__ = [
    "CheckResult",
    "Diagnostic",
    "Fix",
    "KeyAtom",
    "QueryKeyRule",
    "Severity",
    "ValuePath",
    "check_file",
    "check_paths",
    "check_source",
]
