"""Tests for check operations over sources, files and directories."""

from __future__ import annotations

from pathlib import Path

import pytest

from querydeps.analysis.ops import check_file, check_paths, check_source, iter_source_files
from querydeps.config.models import AnalyzerConfig
from querydeps.core.errors import ErrorCode, ParseError
from querydeps.core.logging import get_request_id

DIRTY = """
function Todo({ id }) {
  useQuery({ queryKey: ['todo'], queryFn: () => fetchTodo(id) });
}
"""

CLEAN = """
function Todo({ id }) {
  useQuery({ queryKey: ['todo', id], queryFn: () => fetchTodo(id) });
}
"""


class TestCheckSource:
    """In-memory checks."""

    def test_dirty_source(self) -> None:
        result = check_source(DIRTY, "typescript", path="todo.ts")

        assert result.status == "dirty"
        assert result.path == "todo.ts"
        assert result.sites_checked == 1
        [diag] = result.diagnostics
        assert diag.missing == ["id"]
        assert diag.fix is not None
        assert diag.fix.result == "['todo', id]"

    def test_clean_source(self) -> None:
        result = check_source(CLEAN)
        assert result.status == "clean"
        assert result.language == "tsx"

    def test_custom_config(self) -> None:
        source = DIRTY.replace("useQuery", "useApiQuery").replace("queryKey", "key")
        config = AnalyzerConfig(hook_names=["useApiQuery"], key_field="key")

        result = check_source(source, config=config)

        assert [d.missing for d in result.diagnostics] == [["id"]]

    def test_syntax_errors_are_reported_not_raised(self) -> None:
        result = check_source(DIRTY + "\nconst = ;\n", "typescript")
        assert result.parse_errors >= 1
        assert result.status == "dirty"


class TestCheckFile:
    """Single file checks."""

    def test_check_file(self, tmp_path: Path) -> None:
        path = tmp_path / "todo.tsx"
        path.write_text(DIRTY)

        result = check_file(path)

        assert result.path == str(path)
        assert result.language == "tsx"
        assert len(result.diagnostics) == 1

    def test_unsupported_file_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "todo.vue"
        path.write_text(DIRTY)

        with pytest.raises(ParseError) as exc:
            check_file(path)
        assert exc.value.code == ErrorCode.PARSE_UNSUPPORTED_LANGUAGE


class TestCheckPaths:
    """Directory walks."""

    @pytest.fixture
    def tree(self, tmp_path: Path) -> Path:
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "dirty.ts").write_text(DIRTY)
        (tmp_path / "src" / "clean.jsx").write_text(CLEAN)
        (tmp_path / "src" / "notes.md").write_text("# notes")
        (tmp_path / "node_modules" / "lib").mkdir(parents=True)
        (tmp_path / "node_modules" / "lib" / "index.js").write_text(DIRTY)
        return tmp_path

    def test_iter_source_files(self, tree: Path) -> None:
        files = iter_source_files([tree])
        assert [f.name for f in files] == ["clean.jsx", "dirty.ts"]

    def test_explicit_files_are_kept_once(self, tree: Path) -> None:
        dirty = tree / "src" / "dirty.ts"
        assert iter_source_files([dirty, tree / "src"]).count(dirty) == 1

    def test_check_paths(self, tree: Path) -> None:
        results = check_paths([tree])

        assert {Path(r.path).name: r.status for r in results} == {
            "clean.jsx": "clean",
            "dirty.ts": "dirty",
        }
        assert get_request_id() is None

    def test_unreadable_file_becomes_error_result(self, tree: Path) -> None:
        missing = tree / "gone.tsx"

        results = check_paths([missing, tree / "src" / "clean.jsx"])

        by_name = {Path(r.path).name: r for r in results}
        assert by_name["gone.tsx"].status == "error"
        assert by_name["gone.tsx"].language == "tsx"
        assert "gone.tsx" in (by_name["gone.tsx"].error_detail or "")
        assert by_name["clean.jsx"].status == "clean"
