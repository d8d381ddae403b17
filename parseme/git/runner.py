"""Subprocess runner shared by the git helpers."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Iterable, Protocol


class GitRunner(Protocol):
    """Callable that runs a git command and returns its stdout."""

    def __call__(self, args: Iterable[str], *, cwd: Path, timeout: float | None = None) -> str:
        ...


class GitCommandError(RuntimeError):
    """Raised when a git command fails, times out, or git is not installed."""


def default_runner(args: Iterable[str], *, cwd: Path, timeout: float | None = None) -> str:
    """Run ``args`` in ``cwd`` and return stdout, raising GitCommandError on failure."""
    command = list(args)
    try:
        completed = subprocess.run(
            command,
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise GitCommandError(f"{' '.join(command)} timed out after {timeout}s") from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise GitCommandError(f"{' '.join(command)} failed: {stderr or exc.returncode}") from exc
    except OSError as exc:
        raise GitCommandError(f"{' '.join(command)} could not be started: {exc}") from exc
    return completed.stdout


__all__ = ["GitCommandError", "GitRunner", "default_runner"]
