"""Assembles the primary overview and linked secondary context documents."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader

from ..config import LimitsConfig
from ..logging import get_logger
from ..models import (
    ContextBundle,
    ContextDocument,
    Diagnostic,
    DocumentKind,
    DocumentReference,
    Endpoint,
    FileAnalysisRecord,
    FrameworkSignal,
    ProjectManifestInfo,
    VersionControlMetadata,
)
from .limits import ContentLimiter

PRIMARY_DOCUMENT = "PARSEME"
ROUTES_DOCUMENT = "routes"
SECONDARY_DOCUMENTS = ("files", "structure", ROUTES_DOCUMENT, "dependencies", "framework", "gitDiff")

# Inline element lists added to structure entries when non-empty.
_ELEMENT_SECTIONS = (
    ("component", "components"),
    ("service", "services"),
    ("model", "models"),
    ("middleware", "middleware"),
    ("utility", "utilities"),
    ("config", "configs"),
)


def _to_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


class ContextBuilder:
    """Builds a :class:`ContextBundle` from analysis results."""

    def __init__(self, limits: LimitsConfig | None = None, templates_dir: Path | None = None) -> None:
        self.limits = limits or LimitsConfig()
        self.limiter = ContentLimiter(self.limits)
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.logger = get_logger("context")

    def build(
        self,
        records: Sequence[FileAnalysisRecord],
        files: Sequence[str],
        project: ProjectManifestInfo,
        frameworks: Sequence[FrameworkSignal] = (),
        git: Optional[VersionControlMetadata] = None,
        *,
        link_path: str = "parseme-context",
        generated_on: Optional[date] = None,
    ) -> Tuple[ContextBundle, List[Diagnostic]]:
        """Return the assembled bundle and the diagnostics raised while bounding it."""
        diagnostics: List[Diagnostic] = []
        kept = self._limit_records(records, diagnostics)

        routes = [endpoint for record in kept for endpoint in record.endpoints]
        has_routes = bool(routes)
        has_diff = bool(git is not None and git.diff_stat and git.diff_stat.strip())

        documents: List[Tuple[str, DocumentKind, str]] = [
            ("files", DocumentKind.TEXT, self._files_document(files)),
            ("structure", DocumentKind.STRUCTURED, self._structure_document(kept, has_routes)),
        ]
        if has_routes:
            documents.append((ROUTES_DOCUMENT, DocumentKind.STRUCTURED, self._routes_document(routes)))
        documents.append(("dependencies", DocumentKind.STRUCTURED, self._dependencies_document(project)))
        if frameworks:
            documents.append(("framework", DocumentKind.TEXT, self._render("framework.md.j2", frameworks=frameworks)))
        if has_diff and git is not None:
            documents.append(("gitDiff", DocumentKind.TEXT, f"# Git Diff Statistics\n{git.diff_stat}"))

        secondary: List[Tuple[str, Tuple[ContextDocument, ...]]] = []
        for name, kind, content in documents:
            secondary.append((name, self._bound(name, kind, content, diagnostics)))

        overview = self._render(
            "overview.md.j2",
            project=project,
            frameworks=list(frameworks),
            git=git,
            has_routes=has_routes,
            has_diff=has_diff,
            link_path=link_path,
            generated_on=(generated_on or date.today()).isoformat(),
        )
        primary = self._bound(PRIMARY_DOCUMENT, DocumentKind.TEXT, overview, diagnostics)
        self.logger.debug("Assembled %d secondary documents", len(secondary))
        return ContextBundle(primary=primary, secondary=tuple(secondary)), diagnostics

    def _limit_records(
        self, records: Sequence[FileAnalysisRecord], diagnostics: List[Diagnostic]
    ) -> Sequence[FileAnalysisRecord]:
        cap = self.limits.max_files_per_context
        total = len(records)
        if cap is None or total <= cap:
            return records
        diagnostics.append(
            Diagnostic(
                code="file_limit",
                message=(
                    f"File limit reached: {total - cap} files excluded from analysis "
                    f"(analyzed {cap}/{total}). Increase limits.max_files_per_context to include more."
                ),
                details={"excluded": total - cap, "analyzed": cap, "total": total},
            )
        )
        return records[:cap]

    def _bound(
        self, name: str, kind: DocumentKind, content: str, diagnostics: List[Diagnostic]
    ) -> Tuple[ContextDocument, ...]:
        parts, diagnostic = self.limiter.bound(name, kind, content)
        if diagnostic is not None:
            diagnostics.append(diagnostic)
        return parts

    def _render(self, template_name: str, **context: Any) -> str:
        return self._env.get_template(template_name).render(**context)

    @staticmethod
    def _files_document(files: Sequence[str]) -> str:
        lines = ["# Project Files"]
        lines.extend(f"- {path}" for path in files)
        return "\n".join(lines) + "\n"

    @staticmethod
    def _structure_document(records: Sequence[FileAnalysisRecord], has_routes: bool) -> str:
        entries: List[Dict[str, Any]] = []
        for record in records:
            endpoints = record.endpoints
            routes: Any = []
            if has_routes and endpoints:
                routes = DocumentReference(ROUTES_DOCUMENT, record.path, len(endpoints)).to_dict()
            entry: Dict[str, Any] = {
                "path": record.path,
                "type": record.category.value,
                "exports": record.exports,
                "imports": record.imports,
                "functions": record.functions,
                "classes": record.classes,
                "routes": routes,
            }
            for kind, key in _ELEMENT_SECTIONS:
                elements = record.of_kind(kind)
                if elements:
                    entry[key] = [element.to_dict() for element in elements]
            entries.append(entry)
        return _to_json(entries)

    @staticmethod
    def _routes_document(routes: Sequence[Endpoint]) -> str:
        return _to_json([endpoint.to_dict() for endpoint in routes])

    @staticmethod
    def _dependencies_document(project: ProjectManifestInfo) -> str:
        return _to_json(
            {
                "dependencies": project.dependencies,
                "devDependencies": project.dev_dependencies,
                "packageManager": project.package_manager,
                "version": project.version,
            }
        )


__all__ = ["ContextBuilder", "PRIMARY_DOCUMENT", "ROUTES_DOCUMENT", "SECONDARY_DOCUMENTS"]
