"""Check operations - run the query key rule over sources, files and trees."""

from __future__ import annotations

import time
from collections.abc import Iterable
from pathlib import Path

from querydeps.analysis.models import CheckResult
from querydeps.analysis.rule import QueryKeyRule
from querydeps.config.models import AnalyzerConfig
from querydeps.core.errors import InternalError, QueryDepsError
from querydeps.core.logging import clear_request_id, file_context, get_logger, set_request_id
from querydeps.parsing.treesitter import EXTENSION_MAP, ParseResult, TreeSitterParser, language_for_path

_SKIPPED_DIRS = frozenset({"node_modules"})


def _run(rule: QueryKeyRule, parsed: ParseResult, path: str) -> CheckResult:
    try:
        diagnostics, sites = rule.analyze(parsed, path)
    except RecursionError as e:
        raise InternalError.unexpected("syntax tree too deep to analyze", path=path) from e
    diagnostics.sort(key=lambda d: (d.line, d.column or 0))
    return CheckResult(
        path=path,
        language=parsed.language,
        diagnostics=diagnostics,
        sites_checked=sites,
        parse_errors=parsed.error_count,
    )


def check_source(
    source: bytes | str,
    language: str = "tsx",
    path: str = "<input>",
    config: AnalyzerConfig | None = None,
) -> CheckResult:
    """Check in-memory source parsed with the named grammar."""
    parsed = TreeSitterParser().parse_source(source, language)
    return _run(QueryKeyRule(config), parsed, path)


def check_file(path: Path | str, config: AnalyzerConfig | None = None) -> CheckResult:
    """Check one file.

    Raises:
        ParseError: unsupported extension, missing grammar or unreadable file.
    """
    log = get_logger(__name__)
    path = Path(path)
    with file_context(str(path)):
        parsed = TreeSitterParser().parse(path)
        result = _run(QueryKeyRule(config), parsed, str(path))
    log.info(
        "file_checked",
        path=str(path),
        sites=result.sites_checked,
        diagnostics=len(result.diagnostics),
        parse_errors=result.parse_errors,
    )
    return result


def iter_source_files(paths: Iterable[Path | str]) -> list[Path]:
    """Supported source files under ``paths``, sorted, skipping ``node_modules``."""
    files: set[Path] = set()
    for entry in paths:
        entry = Path(entry)
        if entry.is_dir():
            for candidate in entry.rglob("*"):
                if _SKIPPED_DIRS.intersection(candidate.relative_to(entry).parts):
                    continue
                if candidate.is_file() and language_for_path(candidate) is not None:
                    files.add(candidate)
        elif language_for_path(entry) is not None:
            files.add(entry)
    return sorted(files)


def check_paths(paths: Iterable[Path | str], config: AnalyzerConfig | None = None) -> list[CheckResult]:
    """Check every supported file under ``paths``.

    Files that cannot be checked produce an ``error`` result instead of
    aborting the run.
    """
    log = get_logger(__name__)
    set_request_id()
    start_time = time.time()
    parser = TreeSitterParser()
    rule = QueryKeyRule(config)

    results: list[CheckResult] = []
    try:
        for file_path in iter_source_files(paths):
            language = EXTENSION_MAP[file_path.suffix.lower().lstrip(".")]
            try:
                with file_context(str(file_path)):
                    results.append(_run(rule, parser.parse(file_path), str(file_path)))
            except QueryDepsError as e:
                log.warning(
                    "file_check_failed", path=str(file_path), error=e.error_name, detail=e.message
                )
                results.append(CheckResult.failed(str(file_path), language, e.message))

        log.info(
            "paths_checked",
            files=len(results),
            diagnostics=sum(len(r.diagnostics) for r in results),
            duration_seconds=round(time.time() - start_time, 3),
        )
    finally:
        clear_request_id()
    return results
