"""Candidate file discovery for the analysis pipeline."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Pattern, Sequence

from .git import GitCommandError, GitFileLister
from .logging import get_logger
from .models import SourceFile


class DiscoveryError(RuntimeError):
    """Raised when the candidate file list cannot be produced."""


@dataclass
class IgnoreRule:
    """One gitignore-style pattern."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool
    regex: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.regex = _translate(self.pattern)

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        parts = rel_path.split("/")
        # A rule that matches a directory also covers everything below it.
        for index in range(1, len(parts) + 1):
            candidate_is_dir = index < len(parts) or is_dir
            if self.directory_only and not candidate_is_dir:
                continue
            if self._matches_single("/".join(parts[:index]), parts[index - 1]):
                return True
        return False

    def _matches_single(self, path: str, name: str) -> bool:
        if self.anchored or self.has_slash:
            return self.regex.fullmatch(path) is not None
        return self.regex.fullmatch(name) is not None


def _translate(pattern: str) -> Pattern[str]:
    """Compile a gitignore glob; only ``**`` may cross directory separators."""
    out: List[str] = []
    index = 0
    length = len(pattern)
    while index < length:
        at_segment_start = index == 0 or pattern[index - 1] == "/"
        if at_segment_start and pattern.startswith("**/", index):
            # Zero or more whole directories.
            out.append("(?:.*/)?")
            index += 3
            continue
        if at_segment_start and pattern.startswith("**", index) and index + 2 == length:
            out.append(".*")
            index += 2
            continue
        char = pattern[index]
        if char == "*":
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "[":
            close = pattern.find("]", index + 2)
            if close == -1:
                out.append(re.escape(char))
            else:
                body = pattern[index + 1 : close].replace("\\", "\\\\")
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                index = close
        else:
            out.append(re.escape(char))
        index += 1
    return re.compile("".join(out))


def build_ignore_rule(pattern: str) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern or pattern.startswith("#"):
        return None

    negate = pattern.startswith("!")
    if negate:
        pattern = pattern[1:]

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern.rstrip("/")

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern.lstrip("/")

    if not pattern:
        return None

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


class PathMatcher:
    """Applies an ordered list of ignore rules; later rules win."""

    def __init__(self, patterns: Iterable[str] = ()) -> None:
        self.rules: List[IgnoreRule] = []
        for pattern in patterns:
            rule = build_ignore_rule(pattern)
            if rule is not None:
                self.rules.append(rule)

    @property
    def has_negations(self) -> bool:
        return any(rule.negate for rule in self.rules)

    def __bool__(self) -> bool:
        return bool(self.rules)

    def ignores(self, rel_path: str, is_dir: bool = False) -> bool:
        ignored = False
        for rule in self.rules:
            if rule.matches(rel_path, is_dir):
                ignored = not rule.negate
        return ignored


def normalize_extensions(extensions: Optional[Iterable[str]]) -> Optional[set[str]]:
    if extensions is None:
        return None
    normalized = {ext if ext.startswith(".") else f".{ext}" for ext in extensions if ext}
    return {ext.lower() for ext in normalized} or None


def select_sources(paths: Iterable[str], file_types: Optional[Iterable[str]] = None) -> List[SourceFile]:
    """Return SourceFiles for ``paths`` whose extension is an analyzable dialect."""
    allowed = normalize_extensions(file_types)
    sources: List[SourceFile] = []
    for path in paths:
        if allowed is not None and _extension(path) not in allowed:
            continue
        source = SourceFile.from_path(path)
        if source is not None:
            sources.append(source)
    return sources


def _extension(path: str) -> str:
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return "." + name.rsplit(".", 1)[-1].lower()


class RepoScanner:
    """Produces the ordered candidate file list for a root directory."""

    def __init__(self, git: GitFileLister | None = None) -> None:
        self.git = git or GitFileLister()
        self.logger = get_logger("scanner")

    def list_files(
        self,
        root: str | Path,
        *,
        exclude_patterns: Sequence[str] = (),
        include_patterns: Sequence[str] = (),
        extensions: Optional[Iterable[str]] = None,
        use_git: bool = True,
        max_depth: int = 10,
    ) -> List[str]:
        """Return relative POSIX paths of candidate files under ``root``."""
        root_path = _resolve_root(root)
        excludes = PathMatcher(exclude_patterns)

        if use_git and self.git.is_repository(root_path):
            try:
                tracked = self.git.tracked_files(root_path)
            except GitCommandError as exc:
                raise DiscoveryError(f"Failed to list tracked files in {root_path}: {exc}") from exc
            candidates: Iterable[str] = (
                path for path in tracked if (root_path / path).is_file()
            )
            self.logger.debug("Using git tracked files for %s", root_path)
        else:
            candidates = self._walk(root_path, excludes, max_depth)

        includes = PathMatcher(include_patterns)
        allowed = normalize_extensions(extensions)

        seen: set[str] = set()
        files: List[str] = []
        for path in candidates:
            if path in seen:
                continue
            seen.add(path)
            if excludes.ignores(path):
                continue
            if includes and not includes.ignores(path):
                continue
            if allowed is not None and _extension(path) not in allowed:
                continue
            files.append(path)
        return files

    def discover(
        self,
        root: str | Path,
        *,
        file_types: Optional[Iterable[str]] = None,
        **options,
    ) -> List[SourceFile]:
        """Return analyzable SourceFiles, filtered to ``file_types`` when given."""
        paths = self.list_files(root, extensions=file_types, **options)
        return select_sources(paths, file_types)

    def _walk(self, root: Path, excludes: PathMatcher, max_depth: int) -> List[str]:
        prune = bool(excludes) and not excludes.has_negations
        try:
            return list(self._walk_dir(root, "", 0, excludes if prune else None, max_depth))
        except OSError as exc:
            raise DiscoveryError(f"Failed to read {root}: {exc}") from exc

    def _walk_dir(
        self,
        directory: Path,
        rel_dir: str,
        depth: int,
        prune: Optional[PathMatcher],
        max_depth: int,
    ) -> Iterator[str]:
        if depth == 0:
            entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
        else:
            try:
                entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
            except OSError as exc:
                self.logger.debug("Skipping unreadable directory %s: %s", directory, exc)
                return

        for entry in entries:
            if entry.name.startswith("."):
                continue
            rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
            try:
                is_dir = entry.is_dir()
                is_file = entry.is_file()
            except OSError as exc:
                self.logger.debug("Skipping unreadable entry %s: %s", rel_path, exc)
                continue
            if is_file:
                yield rel_path
            elif is_dir:
                if depth >= max_depth:
                    continue
                if prune is not None and prune.ignores(rel_path, is_dir=True):
                    continue
                yield from self._walk_dir(Path(entry.path), rel_path, depth + 1, prune, max_depth)


def _resolve_root(root: str | Path) -> Path:
    root_path = Path(root).expanduser().resolve()
    if not root_path.exists():
        raise DiscoveryError(f"Repository path not found: {root}")
    if not root_path.is_dir():
        raise DiscoveryError(f"Repository path is not a directory: {root}")
    return root_path


__all__ = [
    "DiscoveryError",
    "IgnoreRule",
    "PathMatcher",
    "RepoScanner",
    "build_ignore_rule",
    "select_sources",
]
