"""Tests for the git subprocess runner and tracked-file lister."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from parseme.git import GitCommandError, GitFileLister, default_runner


def test_default_runner_returns_stdout(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    seen: dict[str, object] = {}

    def fake_run(command, **kwargs):  # type: ignore[no-untyped-def]
        seen["command"] = command
        seen.update(kwargs)
        return subprocess.CompletedProcess(command, 0, stdout="main\n", stderr="")

    monkeypatch.setattr(subprocess, "run", fake_run)

    assert default_runner(["git", "branch", "--show-current"], cwd=tmp_path, timeout=3.0) == "main\n"
    assert seen["command"] == ["git", "branch", "--show-current"]
    assert seen["cwd"] == str(tmp_path)
    assert seen["timeout"] == 3.0
    assert seen["check"] is True


def test_default_runner_wraps_timeouts(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(command, **kwargs):  # type: ignore[no-untyped-def]
        raise subprocess.TimeoutExpired(command, kwargs["timeout"])

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(GitCommandError, match="timed out"):
        default_runner(["git", "status"], cwd=tmp_path, timeout=0.5)


def test_default_runner_wraps_failures(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(command, **kwargs):  # type: ignore[no-untyped-def]
        raise subprocess.CalledProcessError(128, command, stderr="fatal: not a git repository\n")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(GitCommandError, match="not a git repository"):
        default_runner(["git", "status"], cwd=tmp_path)


def test_default_runner_wraps_missing_binary(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(command, **kwargs):  # type: ignore[no-untyped-def]
        raise FileNotFoundError("git")

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(GitCommandError, match="could not be started"):
        default_runner(["git", "status"], cwd=tmp_path)


def test_file_lister_reports_repository_state(tmp_path: Path) -> None:
    def runner(args, *, cwd, timeout=None):  # type: ignore[no-untyped-def]
        if args[:2] == ["git", "rev-parse"]:
            return "false\n"
        return "a.js\0b dir/c.ts\0\0"

    lister = GitFileLister(runner)

    assert lister.is_repository(tmp_path) is False
    assert lister.tracked_files(tmp_path) == ["a.js", "b dir/c.ts"]
