"""Tracked-file enumeration through ``git ls-files``."""

from __future__ import annotations

from pathlib import Path
from typing import List

from .runner import GitCommandError, GitRunner, default_runner


class GitFileLister:
    """Lists the files git tracks below a directory."""

    def __init__(self, runner: GitRunner | None = None, *, timeout: float | None = 10.0) -> None:
        self._runner = runner or default_runner
        self._timeout = timeout

    def is_repository(self, root: Path) -> bool:
        try:
            output = self._runner(
                ["git", "rev-parse", "--is-inside-work-tree"], cwd=root, timeout=self._timeout
            )
        except GitCommandError:
            return False
        return output.strip() == "true"

    def tracked_files(self, root: Path) -> List[str]:
        """Return tracked paths relative to ``root`` in git's index order.

        Raises GitCommandError when the query fails; callers decide whether
        that is fatal.
        """
        output = self._runner(["git", "ls-files", "-z"], cwd=root, timeout=self._timeout)
        return [entry for entry in output.split("\0") if entry.strip()]


__all__ = ["GitFileLister"]
