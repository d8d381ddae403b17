"""Tests for framework inference."""

from __future__ import annotations

from parseme.analyzers import FrameworkInferer
from parseme.models import Endpoint, FrameworkSignal, ProjectManifestInfo


def _endpoint(framework: str | None) -> Endpoint:
    return Endpoint(name="handler", file="src/app.js", line=1, framework=framework)


def test_express_features_come_from_companion_packages() -> None:
    manifest = ProjectManifestInfo(
        name="api",
        dependencies={"express": "^4.18.2", "helmet": "^7.0.0", "cors": "^2.8.5"},
        dev_dependencies={"passport": "^0.7.0"},
    )

    signals = FrameworkInferer().infer(manifest)

    assert signals == [
        FrameworkSignal(
            name="express",
            version="^4.18.2",
            features=("authentication", "security", "cors"),
        )
    ]


def test_builtin_features_follow_companion_features() -> None:
    manifest = ProjectManifestInfo(
        name="api",
        dependencies={"@nestjs/common": "^10.0.0", "@nestjs/swagger": "^7.0.0"},
    )

    [signal] = FrameworkInferer().infer(manifest)

    assert signal.name == "nestjs"
    assert signal.version is None
    assert signal.features == ("swagger", "decorators", "dependency-injection", "modules")


def test_multiple_frameworks_keep_table_order() -> None:
    manifest = ProjectManifestInfo(
        name="web",
        dependencies={"react": "18.2.0", "next": "14.1.0", "react-router-dom": "6"},
    )

    signals = FrameworkInferer().infer(manifest)

    assert [signal.name for signal in signals] == ["next.js", "react"]
    assert signals[1].features == ("routing",)


def test_manifest_signals_win_over_endpoint_tags() -> None:
    manifest = ProjectManifestInfo(name="api", dependencies={"fastify": "4.0.0"})

    signals = FrameworkInferer().infer(manifest, [_endpoint("express")] * 3)

    assert [signal.name for signal in signals] == ["fastify"]


def test_endpoint_fallback_picks_most_frequent_tag() -> None:
    endpoints = [_endpoint("express"), _endpoint("express"), _endpoint("fastify"), _endpoint(None)]

    signals = FrameworkInferer().infer(ProjectManifestInfo(name="api"), endpoints)

    assert signals == [FrameworkSignal(name="express")]


def test_endpoint_fallback_keeps_ties_in_name_order() -> None:
    endpoints = [_endpoint("nuxt.js"), _endpoint("express"), _endpoint("nestjs")]

    signals = FrameworkInferer.from_endpoints(endpoints)

    assert [signal.name for signal in signals] == ["express", "nestjs", "nuxt.js"]


def test_no_signals_without_dependencies_or_tags() -> None:
    assert FrameworkInferer().infer(ProjectManifestInfo(name="lib"), [_endpoint(None)]) == []
