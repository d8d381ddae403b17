"""Pipeline orchestration: discovery, classification, inference and assembly."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional

from .analyzers import FrameworkInferer, ProjectAnalyzer, SyntaxClassifier
from .config import ConfigError, ParsemeConfig, load_config
from .context import SECONDARY_DOCUMENTS, ContextBuilder
from .git import GitFileLister, GitMetadataCollector
from .logging import get_logger, log_diagnostics
from .models import (
    ContextBundle,
    Diagnostic,
    FileAnalysisRecord,
    FrameworkSignal,
    ProjectManifestInfo,
    VersionControlMetadata,
)
from .repo_scanner import DiscoveryError, RepoScanner, select_sources


@dataclass
class GenerationResult:
    """Everything produced by one pipeline run."""

    bundle: ContextBundle
    diagnostics: List[Diagnostic]
    records: List[FileAnalysisRecord]
    frameworks: List[FrameworkSignal]
    manifest: ProjectManifestInfo
    git: Optional[VersionControlMetadata] = None
    written: List[Path] = field(default_factory=list)


class Orchestrator:
    """Coordinates one context-bundle generation for a repository root."""

    def __init__(
        self,
        config: ParsemeConfig | None = None,
        *,
        scanner: RepoScanner | None = None,
        classifier: SyntaxClassifier | None = None,
        project_analyzer: ProjectAnalyzer | None = None,
        framework_inferer: FrameworkInferer | None = None,
        git_collector: GitMetadataCollector | None = None,
        builder: ContextBuilder | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.config = config
        self.scanner = scanner
        self.classifier = classifier or SyntaxClassifier()
        self.project_analyzer = project_analyzer or ProjectAnalyzer()
        self.framework_inferer = framework_inferer or FrameworkInferer()
        self.git_collector = git_collector
        self.builder = builder
        self.today = today
        self.logger = get_logger("orchestrator")

    def generate(self, root: str | Path | None = None, **overrides: object) -> GenerationResult:
        """Run the pipeline and return the bundle without touching the filesystem."""
        config = self._resolve_config(root, overrides)
        repo_path = config.root
        self.logger.info("Generating context for %s", repo_path)

        scanner = self.scanner or RepoScanner(GitFileLister(timeout=config.git_timeout))
        files = scanner.list_files(
            repo_path,
            exclude_patterns=[*config.exclude_patterns, *generated_patterns(config)],
            include_patterns=config.include_patterns,
            use_git=config.use_git_for_files,
            max_depth=config.max_depth,
        )
        sources = select_sources(files, config.analyze_file_types)
        self.logger.debug("Discovered %d files, %d analyzable", len(files), len(sources))

        manifest = self.project_analyzer.analyze(repo_path, files)
        records, diagnostics = self.classifier.classify_files(repo_path, sources)
        endpoints = [endpoint for record in records for endpoint in record.endpoints]
        frameworks = self.framework_inferer.infer(manifest, endpoints)

        git: Optional[VersionControlMetadata] = None
        if config.include_git_info:
            collector = self.git_collector or GitMetadataCollector(timeout=config.git_timeout)
            git = collector.collect(repo_path)
            if git is None:
                diagnostics.append(
                    Diagnostic(
                        code="git_unavailable",
                        message="Git information requested but the repository state could not be read",
                        level="info",
                    )
                )

        builder = self.builder or ContextBuilder(config.limits)
        bundle, build_diagnostics = builder.build(
            records,
            files,
            manifest,
            frameworks,
            git,
            link_path=context_link_path(config),
            generated_on=self.today(),
        )
        diagnostics.extend(build_diagnostics)
        log_diagnostics(self.logger, diagnostics)

        return GenerationResult(
            bundle=bundle,
            diagnostics=diagnostics,
            records=records,
            frameworks=frameworks,
            manifest=manifest,
            git=git,
        )

    def generate_to_disk(self, root: str | Path | None = None, **overrides: object) -> GenerationResult:
        """Run the pipeline and write the primary file plus the context directory."""
        config = self._resolve_config(root, overrides)
        output_file = output_path(config)
        context_dir = context_path(config)
        resolved = context_dir.resolve()
        repo_root = config.root.resolve()
        if resolved == repo_root or resolved in repo_root.parents:
            raise ConfigError(f"Refusing to write context files into {context_dir}")

        result = self.generate(config.root, **overrides)
        removed = _remove_stale_outputs(output_file, context_dir)
        if removed:
            self.logger.debug("Removed %d stale context files", removed)
        context_dir.mkdir(parents=True, exist_ok=True)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        for document in result.bundle.primary:
            target = output_file
            if document.part > 1:
                name = f"{output_file.stem}_part{document.part}{output_file.suffix}"
                target = output_file.with_name(name)
            target.write_text(document.content, encoding="utf-8")
            result.written.append(target)

        for _, parts in result.bundle.secondary:
            for document in parts:
                target = context_dir / document.filename
                target.write_text(document.content, encoding="utf-8")
                result.written.append(target)

        context_count = len(result.written) - len(result.bundle.primary)
        self.logger.info("Wrote %s and %d context files", output_file, context_count)
        return result

    def _resolve_config(self, root: str | Path | None, overrides: dict) -> ParsemeConfig:
        if self.config is None:
            repo_path = Path(root).expanduser() if root is not None else Path.cwd()
            if not repo_path.is_dir():
                raise DiscoveryError(f"Repository path not found: {repo_path}")
            return load_config(repo_path, **overrides)
        if root is not None:
            overrides = {**overrides, "root": root}
        return self.config.with_overrides(**overrides) if overrides else self.config.validate()


def output_path(config: ParsemeConfig) -> Path:
    path = Path(config.output_path).expanduser()
    return path if path.is_absolute() else config.root / path


def context_path(config: ParsemeConfig) -> Path:
    path = Path(config.context_dir).expanduser()
    return path if path.is_absolute() else output_path(config).parent / path


_CONTEXT_FILE = re.compile(rf"(?:{'|'.join(SECONDARY_DOCUMENTS)})(?:_part\d+)?\.(?:md|json)")


def _remove_stale_outputs(output_file: Path, context_dir: Path) -> int:
    """Delete files an earlier run wrote; anything else in the directories is kept."""
    primary_part = re.compile(rf"{re.escape(output_file.stem)}_part\d+{re.escape(output_file.suffix)}")
    stale: List[Path] = []
    if output_file.parent.is_dir():
        stale.extend(path for path in output_file.parent.iterdir() if primary_part.fullmatch(path.name))
    if context_dir.is_dir():
        stale.extend(path for path in context_dir.iterdir() if _CONTEXT_FILE.fullmatch(path.name))
    removed = 0
    for path in stale:
        if path.is_file():
            path.unlink()
            removed += 1
    return removed


def generated_patterns(config: ParsemeConfig) -> List[str]:
    """Anchored exclude patterns for the files this pipeline writes inside the root."""
    output_file = output_path(config)
    candidates = (
        (output_file, ""),
        (output_file.with_name(f"{output_file.stem}_part*{output_file.suffix}"), ""),
        (context_path(config), "/"),
    )
    patterns: List[str] = []
    for path, suffix in candidates:
        try:
            relative = path.parent.resolve().joinpath(path.name).relative_to(config.root)
        except ValueError:
            continue
        if relative.parts:
            patterns.append(f"/{relative.as_posix()}{suffix}")
    return patterns


def context_link_path(config: ParsemeConfig) -> str:
    """Return the context directory as linked from the primary document."""
    context_dir = Path(config.context_dir)
    if not context_dir.is_absolute():
        return context_dir.as_posix()
    return Path(os.path.relpath(context_dir, output_path(config).parent)).as_posix()


__all__ = [
    "GenerationResult",
    "Orchestrator",
    "context_link_path",
    "context_path",
    "generated_patterns",
    "output_path",
]
