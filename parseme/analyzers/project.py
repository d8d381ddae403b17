"""Project metadata derived from ``package.json`` and lockfiles."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, List, Mapping

from ..logging import get_logger
from ..models import ProjectManifestInfo

_LOCKFILES = (
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("bun.lockb", "bun"),
    ("package-lock.json", "npm"),
)

_OUTPUT_DIRECTORIES = ("dist", "build", "lib")

_APP_DEPENDENCIES = (
    "react",
    "vue",
    "angular",
    "svelte",
    "express",
    "fastify",
    "@nestjs/core",
    "next",
    "nuxt",
    "electron",
    "react-native",
)

# Checked in order; the first category with a matching dependency wins.
_CATEGORY_DEPENDENCIES = (
    ("desktop-app", ("electron", "tauri")),
    ("frontend-mobile", ("react-native", "@ionic/react", "@ionic/angular")),
    ("fullstack", ("next", "nuxt", "sveltekit", "remix")),
    ("frontend-web", ("react", "vue", "angular", "svelte", "@angular/core", "vue-router")),
    ("backend-api", ("express", "fastify", "@nestjs/core", "koa", "@hapi/hapi")),
)


def load_package_json(root: Path) -> Dict[str, object] | None:
    """Return the parsed package.json contents, or None when absent or invalid."""
    package_json = root / "package.json"
    if not package_json.is_file():
        return None
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return None
    return data if isinstance(data, dict) else None


def detect_package_manager(root: Path) -> str:
    """Infer the Node package manager from lockfiles."""
    for lockfile, manager in _LOCKFILES:
        if (root / lockfile).exists():
            return manager
    return "npm"


def detect_project_type(paths: Iterable[str]) -> str:
    has_ts = False
    has_js = False
    for path in paths:
        if path.endswith(".ts") and not path.endswith(".d.ts"):
            has_ts = True
        elif path.endswith(".js"):
            has_js = True
    if has_ts and has_js:
        return "mixed"
    if has_ts:
        return "typescript"
    return "javascript"


def detect_entry_points(package: Mapping[str, object]) -> List[str]:
    entries: List[str] = []
    for key in ("main", "module", "browser"):
        value = package.get(key)
        if isinstance(value, str):
            entries.append(value)
    exports = package.get("exports")
    if isinstance(exports, str):
        entries.append(exports)
    elif isinstance(exports, dict):
        entries.extend(value for value in exports.values() if isinstance(value, str))
    return list(dict.fromkeys(entries))


def detect_output_targets(package: Mapping[str, object]) -> List[str]:
    main = package.get("main")
    if not isinstance(main, str):
        return []
    return [target for target in _OUTPUT_DIRECTORIES if f"{target}/" in main]


def detect_project_category(package: Mapping[str, object], dependencies: Mapping[str, str]) -> str:
    if package.get("workspaces") or package.get("private"):
        return "monorepo"
    if package.get("bin"):
        return "cli-tool"
    for category, names in _CATEGORY_DEPENDENCIES:
        if any(dependencies.get(name) for name in names):
            return category
    is_library = any(package.get(key) for key in ("main", "module", "exports"))
    if is_library and not any(dependencies.get(name) for name in _APP_DEPENDENCIES):
        return "npm-package"
    return "unknown"


def _string_map(value: object) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(key): str(item) for key, item in value.items()}


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) else None


class ProjectAnalyzer:
    """Builds :class:`ProjectManifestInfo` for a repository root."""

    def __init__(self) -> None:
        self.logger = get_logger("project")

    def analyze(self, root: Path, files: Iterable[str] = ()) -> ProjectManifestInfo:
        project_type = detect_project_type(files)
        package = load_package_json(root)
        if package is None:
            self.logger.debug("No usable package.json under %s", root)
            return ProjectManifestInfo(name=root.name, project_type=project_type)

        dependencies = _string_map(package.get("dependencies"))
        dev_dependencies = _string_map(package.get("devDependencies"))
        merged = {**dependencies, **dev_dependencies}
        return ProjectManifestInfo(
            name=_optional_str(package.get("name")) or root.name,
            version=_optional_str(package.get("version")),
            description=_optional_str(package.get("description")),
            project_type=project_type,
            category=detect_project_category(package, merged),
            package_manager=detect_package_manager(root),
            dependencies=dependencies,
            dev_dependencies=dev_dependencies,
            scripts=_string_map(package.get("scripts")),
            entry_points=detect_entry_points(package),
            output_targets=detect_output_targets(package),
        )


__all__ = [
    "ProjectAnalyzer",
    "detect_entry_points",
    "detect_output_targets",
    "detect_package_manager",
    "detect_project_category",
    "detect_project_type",
    "load_package_json",
]
