"""Tests for parseme.repo_scanner."""

from __future__ import annotations

from pathlib import Path

import pytest

from parseme.git import GitCommandError, GitFileLister
from parseme.models import Dialect
from parseme.repo_scanner import DiscoveryError, PathMatcher, RepoScanner, select_sources
from tests._fixtures.repo_builder import RepoBuilder


def _write(path: Path, content: str = "") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_walker_lists_relative_paths_depth_first(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "src/b.ts": "export const b = 1;\n",
            "src/a/index.js": "module.exports = {};\n",
            "README.md": "# demo\n",
            ".env": "SECRET=1\n",
            ".cache/blob.js": "",
        }
    )

    files = repo_builder.list_files()

    assert files == ["README.md", "src/a/index.js", "src/b.ts"]


def test_walker_honours_exclude_patterns_for_vendor_directory(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "index.js": "",
            "node_modules/lib/index.js": "",
            "node_modules/lib/deep/more.js": "",
            "lib/node_modules.js": "",
        }
    )

    files = repo_builder.list_files(exclude_patterns=["node_modules/**"])

    assert files == ["index.js", "lib/node_modules.js"]
    assert not any(path.startswith("node_modules/") for path in files)


def test_negated_pattern_reincludes_file(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"dist/bundle.js": "", "dist/keep.js": "", "src/app.js": ""})

    files = repo_builder.list_files(exclude_patterns=["dist/", "!dist/keep.js"])

    assert files == ["dist/keep.js", "src/app.js"]


def test_include_patterns_limit_results(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"src/app.ts": "", "scripts/build.js": "", "package.json": "{}"})

    files = repo_builder.list_files(include_patterns=["src/**", "package.json"])

    assert files == ["package.json", "src/app.ts"]


def test_extension_filter_accepts_dotted_and_bare_forms(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"a.ts": "", "b.tsx": "", "c.js": "", "d.md": ""})

    assert repo_builder.list_files(extensions=["ts", ".tsx"]) == ["a.ts", "b.tsx"]


def test_max_depth_stops_descent(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"top.js": "", "one/mid.js": "", "one/two/deep.js": ""})

    assert repo_builder.list_files(max_depth=1) == ["one/mid.js", "top.js"]
    assert repo_builder.list_files(max_depth=0) == ["top.js"]


def test_missing_root_raises_discovery_error(tmp_path: Path) -> None:
    missing = tmp_path / "missing"

    with pytest.raises(DiscoveryError, match="missing"):
        RepoScanner().list_files(missing, use_git=False)


def test_file_root_raises_discovery_error(tmp_path: Path) -> None:
    target = tmp_path / "file.js"
    _write(target)

    with pytest.raises(DiscoveryError):
        RepoScanner().list_files(target, use_git=False)


def test_git_mode_uses_tracked_files_and_drops_missing_entries(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    _write(repo / "src" / "app.ts")
    _write(repo / "src" / "untracked.ts")
    _write(repo / "vendor" / "lib.js")
    calls: list[list[str]] = []

    def runner(args, *, cwd, timeout=None):  # type: ignore[no-untyped-def]
        calls.append(list(args))
        if args[:2] == ["git", "rev-parse"]:
            return "true\n"
        if args[:2] == ["git", "ls-files"]:
            return "src/app.ts\0deleted.ts\0vendor/lib.js\0src/app.ts\0"
        raise AssertionError(args)

    scanner = RepoScanner(GitFileLister(runner))
    files = scanner.list_files(repo, exclude_patterns=["vendor/"])

    assert files == ["src/app.ts"]
    assert calls[1] == ["git", "ls-files", "-z"]


def test_git_listing_failure_is_fatal(tmp_path: Path) -> None:
    def runner(args, *, cwd, timeout=None):  # type: ignore[no-untyped-def]
        if args[:2] == ["git", "rev-parse"]:
            return "true\n"
        raise GitCommandError("index is locked")

    scanner = RepoScanner(GitFileLister(runner))

    with pytest.raises(DiscoveryError, match="index is locked"):
        scanner.list_files(tmp_path)


def test_non_repository_falls_back_to_walker(tmp_path: Path) -> None:
    _write(tmp_path / "app.js")

    def runner(args, *, cwd, timeout=None):  # type: ignore[no-untyped-def]
        raise GitCommandError("not a git repository")

    scanner = RepoScanner(GitFileLister(runner))

    assert scanner.list_files(tmp_path) == ["app.js"]


def test_discover_returns_source_files_with_dialects(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"a.js": "", "b.jsx": "", "c.ts": "", "d.tsx": "", "e.css": ""})

    sources = RepoScanner().discover(repo_builder.path(), file_types=["js", "jsx", "ts", "tsx"], use_git=False)

    assert [(source.path, source.dialect) for source in sources] == [
        ("a.js", Dialect.PLAIN),
        ("b.jsx", Dialect.MARKUP_PLAIN),
        ("c.ts", Dialect.TYPED),
        ("d.tsx", Dialect.MARKUP_TYPED),
    ]


def test_select_sources_filters_by_file_types() -> None:
    sources = select_sources(["a.ts", "b.js", "README.md"], ["ts"])

    assert [source.path for source in sources] == ["a.ts"]


def test_path_matcher_semantics() -> None:
    matcher = PathMatcher(["/build", "*.log", "docs/**/*.md", "cache/"])

    assert matcher.ignores("build/out.js")
    assert not matcher.ignores("src/build/out.js")
    assert matcher.ignores("logs/server.log")
    assert matcher.ignores("docs/guide/intro.md")
    assert matcher.ignores("src/cache/entry.js")
    assert not matcher.ignores("src/cache.js")


def test_single_star_stays_within_one_directory() -> None:
    matcher = PathMatcher(["src/*.js"])

    assert matcher.ignores("src/a.js")
    assert not matcher.ignores("src/lib/b.js")
    assert not matcher.ignores("src/a.ts")


def test_double_star_matches_zero_or_more_directories() -> None:
    middle = PathMatcher(["a/**/b.js"])
    leading = PathMatcher(["**/fixtures"])
    trailing = PathMatcher(["dist/**"])

    assert middle.ignores("a/b.js")
    assert middle.ignores("a/x/y/b.js")
    assert not middle.ignores("c/a/b.js")
    assert leading.ignores("fixtures/data.json")
    assert leading.ignores("tests/unit/fixtures/data.json")
    assert trailing.ignores("dist/bundle.js")
    assert trailing.ignores("dist/assets/app.css")
    assert not trailing.ignores("src/dist.js")
