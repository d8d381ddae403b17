"""Tests for context bundle assembly."""

from __future__ import annotations

import json
from datetime import date

from parseme.config import LimitsConfig
from parseme.context import PRIMARY_DOCUMENT, ContextBuilder
from parseme.models import (
    Component,
    Endpoint,
    FileAnalysisRecord,
    FileCategory,
    FrameworkSignal,
    ProjectManifestInfo,
    Service,
    VersionControlMetadata,
)

GENERATED_ON = date(2024, 5, 1)


def _route_record(path: str, *paths: str) -> FileAnalysisRecord:
    return FileAnalysisRecord(
        path=path,
        category=FileCategory.ROUTE,
        imports=["express"],
        elements=[
            Endpoint(name=f"handler{index}", file=path, line=index + 1, method="GET", path=route, framework="express")
            for index, route in enumerate(paths)
        ],
    )


def _project(**overrides: object) -> ProjectManifestInfo:
    values: dict = {
        "name": "shop",
        "version": "1.0.0",
        "description": "Demo shop",
        "package_manager": "npm",
        "dependencies": {"express": "^4.18.0"},
        "scripts": {"start": "node index.js"},
        "entry_points": ["index.js"],
    }
    values.update(overrides)
    return ProjectManifestInfo(**values)  # type: ignore[arg-type]


def _build(builder: ContextBuilder | None = None, **kwargs):  # type: ignore[no-untyped-def]
    builder = builder or ContextBuilder()
    kwargs.setdefault("project", _project())
    kwargs.setdefault("generated_on", GENERATED_ON)
    return builder.build(**kwargs)


def test_routes_are_cross_referenced_from_structure() -> None:
    records = [
        _route_record("src/users.js", "/users", "/users/:id"),
        FileAnalysisRecord(
            path="src/user.service.ts",
            category=FileCategory.SERVICE,
            classes=["UserService"],
            elements=[Service(name="UserService", file="src/user.service.ts", line=1, methods=("findAll",))],
        ),
        _route_record("src/orders.js", "/orders"),
    ]

    bundle, diagnostics = _build(records=records, files=[r.path for r in records])

    assert diagnostics == []
    assert bundle.names() == ["files", "structure", "routes", "dependencies"]
    assert [document.filename for document in bundle.iter_documents()] == [
        "PARSEME.md",
        "files.md",
        "structure.json",
        "routes.json",
        "dependencies.json",
    ]
    routes = json.loads(bundle.document("routes")[0].content)
    structure = json.loads(bundle.document("structure")[0].content)

    assert [route["path"] for route in routes] == ["/users", "/users/:id", "/orders"]
    assert routes[0] == {
        "method": "GET",
        "path": "/users",
        "handler": "handler0",
        "file": "src/users.js",
        "line": 1,
    }
    assert structure[0]["routes"] == {"$ref": "./routes.json", "filter": {"file": "src/users.js"}, "count": 2}
    assert structure[1]["routes"] == []
    assert structure[1]["type"] == "service"
    assert structure[1]["services"] == [
        {"name": "UserService", "file": "src/user.service.ts", "line": 1, "methods": ["findAll"]}
    ]
    referenced = sum(entry["routes"]["count"] for entry in structure if entry["routes"])
    assert referenced == len(routes)
    for entry in structure:
        if entry["routes"]:
            matching = [route for route in routes if route["file"] == entry["routes"]["filter"]["file"]]
            assert len(matching) == entry["routes"]["count"]


def test_file_cap_reports_excluded_records() -> None:
    records = [FileAnalysisRecord(path=f"src/file{index}.js") for index in range(5)]
    builder = ContextBuilder(LimitsConfig(max_files_per_context=2))

    bundle, diagnostics = _build(builder, records=records, files=[r.path for r in records])

    structure = json.loads(bundle.document("structure")[0].content)
    assert [entry["path"] for entry in structure] == ["src/file0.js", "src/file1.js"]
    [diagnostic] = diagnostics
    assert diagnostic.code == "file_limit"
    assert diagnostic.details == {"excluded": 3, "analyzed": 2, "total": 5}
    assert "5" in diagnostic.message and "3" in diagnostic.message


def test_projects_without_routes_have_no_routes_document() -> None:
    records = [
        FileAnalysisRecord(
            path="src/App.jsx",
            category=FileCategory.COMPONENT,
            exports=["default"],
            functions=["App"],
            elements=[Component(name="App", file="src/App.jsx", line=3)],
        )
    ]

    bundle, _ = _build(records=records, files=["src/App.jsx"], project=_project(dependencies={"react": "18"}))

    assert "routes" not in bundle
    structure_text = bundle.document("structure")[0].content
    assert "$ref" not in structure_text
    [entry] = json.loads(structure_text)
    assert entry["routes"] == []
    assert entry["components"] == [{"name": "App", "file": "src/App.jsx", "line": 3}]
    overview = bundle.primary[0].content
    assert "routes.json" not in overview
    assert "## API Routes" not in overview


def test_primary_overview_links_documents_and_project_details() -> None:
    records = [_route_record("src/users.js", "/users")]
    frameworks = [FrameworkSignal(name="express", version="^4.18.0", features=("cors",))]

    bundle, _ = _build(
        records=records,
        files=["src/users.js"],
        frameworks=frameworks,
        link_path="../context",
    )

    [primary] = bundle.primary
    assert primary.name == PRIMARY_DOCUMENT
    assert primary.filename == "PARSEME.md"
    content = primary.content
    assert content.startswith("## PARSEME - AI Agent Context\n")
    assert "**Project:** shop v1.0.0" in content
    assert "**Framework:** express" in content
    assert "**Main Entry Point:** index.js" in content
    assert "- **start**: `node index.js`" in content
    assert "[../context/routes.json](../context/routes.json)" in content
    assert "[../context/framework.md](../context/framework.md)" in content
    assert "## Git Information" not in content
    assert content.rstrip().endswith("*Generated by parseme on 2024-05-01*")


def test_framework_document_lists_features() -> None:
    frameworks = [
        FrameworkSignal(name="express", version="^4.18.0", features=("cors", "security")),
        FrameworkSignal(name="react"),
    ]

    bundle, _ = _build(records=[], files=[], frameworks=frameworks)

    content = bundle.document("framework")[0].content
    assert "# Framework: express" in content
    assert "**Version**: ^4.18.0" in content
    assert "- cors\n- security" in content
    assert "# Framework: react" in content
    assert "**Version**: Unknown" in content


def test_dependencies_document_shape() -> None:
    bundle, _ = _build(
        records=[],
        files=[],
        project=_project(dev_dependencies={"jest": "^29.0.0"}, package_manager="pnpm"),
    )

    assert json.loads(bundle.document("dependencies")[0].content) == {
        "dependencies": {"express": "^4.18.0"},
        "devDependencies": {"jest": "^29.0.0"},
        "packageManager": "pnpm",
        "version": "1.0.0",
    }


def test_git_diff_document_only_with_changes() -> None:
    clean = VersionControlMetadata(branch="main", last_commit="abc123 init", status="clean", diff_stat="")
    dirty = VersionControlMetadata(
        branch="main",
        last_commit="abc123 init",
        status="dirty",
        changed_files=("src/app.js",),
        origin="git@example.com:shop.git",
        diff_stat=" src/app.js | 2 +-\n 1 file changed",
    )

    clean_bundle, _ = _build(records=[], files=[], git=clean)
    dirty_bundle, _ = _build(records=[], files=[], git=dirty)

    assert "gitDiff" not in clean_bundle
    assert "no changes at the time of generation" in clean_bundle.primary[0].content
    assert dirty_bundle.document("gitDiff")[0].content == "# Git Diff Statistics\n src/app.js | 2 +-\n 1 file changed"
    overview = dirty_bundle.primary[0].content
    assert "- **Branch:** main" in overview
    assert "- **Origin:** git@example.com:shop.git" in overview
    assert "- **Status:** dirty (1 changed files)" in overview
    assert "git diff --stat" in overview


def test_files_document_lists_every_discovered_path() -> None:
    bundle, _ = _build(records=[], files=["README.md", "src/app.js"])

    assert bundle.document("files")[0].content == "# Project Files\n- README.md\n- src/app.js\n"


def test_build_is_deterministic_for_fixed_date() -> None:
    records = [_route_record("src/users.js", "/users")]

    first, _ = _build(records=records, files=["src/users.js"])
    second, _ = _build(records=records, files=["src/users.js"])

    assert first == second


def test_oversized_documents_are_split_with_diagnostics() -> None:
    files = [f"src/module{index:03d}.js" for index in range(200)]
    builder = ContextBuilder(LimitsConfig(max_chars_per_document=1000, truncate_strategy="split"))

    bundle, diagnostics = _build(builder, records=[], files=files)

    parts = bundle.document("files")
    assert len(parts) > 1
    assert parts[1].filename == "files_part2.md"
    assert all(len(part.content) <= 1000 for part in parts)
    assert [d.path for d in diagnostics if d.code == "size_limit"] == ["files", PRIMARY_DOCUMENT]
