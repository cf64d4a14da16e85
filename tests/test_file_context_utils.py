# tests/test_file_context_utils.py
from unittest.mock import MagicMock

import pytest
from rich.table import Table

from silk.data_models import File
from silk.errors import LimitExceededError
from silk.file_context_utils import (
    FileStats,
    LimitChecker,
    format_size,
    gather_context_info,
    resolve_content,
)


@pytest.fixture
def mock_console():
    return MagicMock()


@pytest.fixture
def project(tmp_path):
    files = {
        "src/app.py": "import os\n",
        "src/util/helpers.py": "def helper():\n    return 1\n",
        "src/generated/schema.py": "SCHEMA = {}\n",
        "README.md": "# Project\n",
        "node_modules/lib/index.js": "module.exports = {}\n",
        "src/node_modules/deep.py": "x = 1\n",
        ".env": "SECRET=1\n",
        "src/__pycache__/app.cpython-312.pyc": "cache",
    }
    for relative_path, content in files.items():
        path = tmp_path / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    (tmp_path / "logo.png").write_bytes(b"\x89PNG\x00\x00binary")
    return tmp_path


# --- gather_context_info ---

def test_gather_expands_globs_sorted(project):
    files = gather_context_info(["src/**/*.py", "README.md"], cwd=project)
    assert [f.path for f in files] == [
        "README.md",
        "src/app.py",
        "src/generated/schema.py",
        "src/util/helpers.py",
    ]
    assert all(f.content is None for f in files)
    assert files[0].size == len("# Project\n")


def test_gather_applies_default_ignore(project):
    paths = [f.path for f in gather_context_info("**/*", cwd=project)]
    assert "node_modules/lib/index.js" not in paths
    assert ".env" not in paths
    assert not any("__pycache__" in p for p in paths)
    assert "src/app.py" in paths


def test_gather_applies_extra_ignore(project):
    files = gather_context_info(["src/**/*.py"], ignore=["src/generated/**"], cwd=project)
    assert [f.path for f in files] == ["src/app.py", "src/util/helpers.py"]


def test_gather_anchors_default_directories_to_root(project):
    (project / "test").mkdir()
    (project / "test" / "it.py").write_text("x = 1\n", encoding="utf-8")
    (project / "src" / "test").mkdir()
    (project / "src" / "test" / "Main.java").write_text("class Main {}\n", encoding="utf-8")

    paths = [f.path for f in gather_context_info("**/*", cwd=project)]

    assert "test/it.py" not in paths
    assert "src/test/Main.java" in paths
    assert "src/node_modules/deep.py" in paths


def test_gather_respects_root_gitignore(project):
    (project / ".gitignore").write_text("secrets/\n*.log\n", encoding="utf-8")
    (project / "secrets").mkdir()
    (project / "secrets" / "key.txt").write_text("hunter2", encoding="utf-8")
    (project / "run.log").write_text("log line\n", encoding="utf-8")
    (project / "src" / "debug.log").write_text("log line\n", encoding="utf-8")

    paths = [f.path for f in gather_context_info("**/*", cwd=project)]

    assert "secrets/key.txt" not in paths
    assert "run.log" not in paths
    assert "src/debug.log" not in paths
    assert "src/app.py" in paths


def test_gather_accepts_single_ignore_string(project):
    files = gather_context_info(["src/**/*.py"], ignore="src/generated/**", cwd=project)
    assert [f.path for f in files] == ["src/app.py", "src/util/helpers.py"]


def test_gather_deduplicates_overlapping_patterns(project):
    files = gather_context_info(["src/*.py", "src/**/*.py", "src/app.py"], cwd=project)
    assert [f.path for f in files].count("src/app.py") == 1


def test_gather_skips_absolute_patterns(project):
    assert gather_context_info([str(project / "README.md")], cwd=project) == []


def test_gather_without_patterns():
    assert gather_context_info(None) == []
    assert gather_context_info([]) == []


def test_gather_uses_cwd_by_default(project, monkeypatch):
    monkeypatch.chdir(project)
    assert [f.path for f in gather_context_info(["*.md"])] == ["README.md"]


# --- resolve_content ---

@pytest.mark.asyncio
async def test_resolve_content_keeps_order_and_drops_binary(project):
    files = gather_context_info(["README.md", "logo.png", "src/app.py"], cwd=project)

    resolved = await resolve_content(files, cwd=project)

    assert [f.path for f in resolved] == ["README.md", "src/app.py"]
    assert resolved[0].content == "# Project\n"
    assert resolved[1].size == len("import os\n")


@pytest.mark.asyncio
async def test_resolve_content_returns_new_values(project):
    original = File(path="README.md", size=0)

    resolved = await resolve_content([original], cwd=project)

    assert original.content is None
    assert resolved[0] is not original
    assert resolved[0].is_resolved


@pytest.mark.asyncio
async def test_resolve_content_keeps_resolved_files_and_drops_missing(project):
    already = File(path="inline.txt", content="given", size=5)
    missing = File(path="gone.txt", size=3)

    resolved = await resolve_content([already, missing], cwd=project)

    assert resolved == [already]


# --- FileStats ---

def test_file_stats_totals_and_largest():
    stats = FileStats()
    for path, size in [("a.py", 10), ("b.py", 300), ("c.md", 40), ("Makefile", 5)]:
        stats.add_file(File(path=path, size=size))

    assert stats.total_size == 355
    assert stats.size_by_extension[".py"] == 310
    assert stats.count_by_extension["(none)"] == 1
    assert [f.path for f in stats.largest_files(2)] == ["b.py", "c.md"]


def test_file_stats_print_summary(mock_console):
    stats = FileStats()
    stats.add_file(File(path="a.py", size=2048))

    stats.print_summary(mock_console, show_largest_files=5)

    printed = [c[0][0] for c in mock_console.print.call_args_list if c[0]]
    assert isinstance(printed[0], Table)
    assert any("a.py" in str(p) and "2.0 KB" in str(p) for p in printed[1:])


def test_file_stats_print_summary_empty(mock_console):
    FileStats().print_summary(mock_console)
    mock_console.print.assert_called_once_with("[yellow]No context files matched the include patterns.[/yellow]")


@pytest.mark.parametrize("size, expected", [
    (0, "0 B"),
    (1023, "1023 B"),
    (1536, "1.5 KB"),
    (5 * 1024 * 1024, "5.0 MB"),
])
def test_format_size(size, expected):
    assert format_size(size) == expected


# --- LimitChecker ---

def test_limit_checker_accepts_files_within_limits():
    checker = LimitChecker(max_file_size=100, max_total_size=150)
    checker.check_files([File(path="a", size=100), File(path="b", size=50)])
    assert checker.total_size == 150


def test_limit_checker_rejects_large_file():
    checker = LimitChecker(max_file_size=100, max_total_size=1000)
    with pytest.raises(LimitExceededError, match="'big.py'.*per-file limit"):
        checker.check_files([File(path="big.py", size=101)])


def test_limit_checker_rejects_total():
    checker = LimitChecker(max_file_size=100, max_total_size=150)
    with pytest.raises(LimitExceededError, match="total limit"):
        checker.check_files([File(path="a", size=100), File(path="b", size=51)])


def test_limit_checker_zero_disables_limits():
    checker = LimitChecker(max_file_size=0, max_total_size=0)
    checker.check_file("huge", 10 ** 12)
