"""Helper utilities for constructing temporary JavaScript projects in tests."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Any, List, Mapping

from parseme.repo_scanner import RepoScanner


class RepoBuilder:
    """Writes files into a throwaway project and lists them without git."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()
        self._scanner = RepoScanner()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def package_json(self, data: Mapping[str, Any]) -> None:
        """Write a package.json manifest at the project root."""
        (self.root / "package.json").write_text(json.dumps(data, indent=2), encoding="utf-8")

    def list_files(self, **options: Any) -> List[str]:
        """Return the walker's view of the project (git disabled)."""
        options.setdefault("use_git", False)
        return self._scanner.list_files(self.root, **options)

    def path(self) -> Path:
        """Return the project root path."""
        return self.root


__all__ = ["RepoBuilder"]
