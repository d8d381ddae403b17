"""Repository state collection for the context bundle."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

from ..logging import get_logger
from ..models import VersionControlMetadata
from .runner import GitCommandError, GitRunner, default_runner


class GitMetadataCollector:
    """Collects branch, commit, status and diff information.

    Each query degrades to a default on failure; only a root that is not a
    git repository (or a missing git binary) makes :meth:`collect` return
    ``None``. Every query is bounded by ``timeout`` seconds.
    """

    def __init__(self, runner: GitRunner | None = None, *, timeout: float = 10.0) -> None:
        self._runner = runner or default_runner
        self._timeout = timeout
        self.logger = get_logger("git.metadata")

    def collect(self, root: str | Path) -> Optional[VersionControlMetadata]:
        repo = Path(root)
        if self._query(repo, ["git", "rev-parse", "--git-dir"]) is None:
            self.logger.debug("%s is not a git repository", repo)
            return None

        branch = (self._query(repo, ["git", "branch", "--show-current"]) or "").strip()
        last_commit = (self._query(repo, ["git", "log", "-1", "--format=%H %s"]) or "").strip()
        status_output = self._query(repo, ["git", "status", "--porcelain"]) or ""
        origin = (self._query(repo, ["git", "remote", "get-url", "origin"]) or "").strip()
        diff_stat = self._query(repo, ["git", "diff", "--stat"])

        changed_files = _parse_porcelain(status_output)
        return VersionControlMetadata(
            branch=branch or "unknown",
            last_commit=last_commit or "No commits",
            status="dirty" if status_output.strip() else "clean",
            changed_files=tuple(changed_files),
            origin=origin or None,
            diff_stat=diff_stat.strip() if diff_stat is not None else None,
        )

    def _query(self, repo: Path, args: Sequence[str]) -> Optional[str]:
        try:
            return self._runner(args, cwd=repo, timeout=self._timeout)
        except GitCommandError as exc:
            self.logger.debug("git query unavailable: %s", exc)
            return None


def _parse_porcelain(output: str) -> List[str]:
    files: List[str] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        path = line[3:]
        if " -> " in path:
            path = path.split(" -> ", 1)[1]
        files.append(path)
    return files


__all__ = ["GitMetadataCollector"]
