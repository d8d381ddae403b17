"""Framework inference from manifest dependencies and endpoint tags."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Sequence, Tuple

from ..models import Endpoint, FrameworkSignal, ProjectManifestInfo


@dataclass(frozen=True)
class FrameworkRule:
    """Dependency checklist entry for one framework."""

    name: str
    triggers: Tuple[str, ...]
    version_from: str
    companions: Tuple[Tuple[Tuple[str, ...], str], ...] = ()
    builtin_features: Tuple[str, ...] = ()

    def matches(self, dependencies: Mapping[str, str]) -> bool:
        return any(dependencies.get(name) for name in self.triggers)

    def signal(self, dependencies: Mapping[str, str]) -> FrameworkSignal:
        features = [
            feature
            for packages, feature in self.companions
            if any(dependencies.get(package) for package in packages)
        ]
        features.extend(self.builtin_features)
        return FrameworkSignal(
            name=self.name,
            version=dependencies.get(self.version_from),
            features=tuple(features),
        )


FRAMEWORK_RULES: Sequence[FrameworkRule] = (
    FrameworkRule(
        name="nestjs",
        triggers=("@nestjs/core", "@nestjs/common"),
        version_from="@nestjs/core",
        companions=(
            (("@nestjs/typeorm", "@nestjs/mongoose"), "orm"),
            (("@nestjs/passport",), "authentication"),
            (("@nestjs/jwt",), "jwt"),
            (("@nestjs/swagger",), "swagger"),
            (("@nestjs/graphql",), "graphql"),
            (("@nestjs/websockets",), "websockets"),
            (("@nestjs/microservices",), "microservices"),
            (("@nestjs/testing",), "testing"),
        ),
        builtin_features=("decorators", "dependency-injection", "modules"),
    ),
    FrameworkRule(
        name="fastify",
        triggers=("fastify",),
        version_from="fastify",
        companions=(
            (("@fastify/cors",), "cors"),
            (("@fastify/helmet",), "security"),
            (("@fastify/rate-limit",), "rate-limiting"),
            (("@fastify/multipart",), "file-upload"),
            (("@fastify/static",), "static-files"),
            (("@fastify/jwt",), "jwt"),
            (("@fastify/session",), "sessions"),
        ),
    ),
    FrameworkRule(
        name="express",
        triggers=("express",),
        version_from="express",
        companions=(
            (("express-session",), "sessions"),
            (("passport",), "authentication"),
            (("express-rate-limit",), "rate-limiting"),
            (("helmet",), "security"),
            (("cors",), "cors"),
            (("body-parser",), "body-parsing"),
            (("express-validator",), "validation"),
            (("multer",), "file-upload"),
            (("express-static",), "static-files"),
        ),
    ),
    FrameworkRule(
        name="next.js",
        triggers=("next",),
        version_from="next",
        companions=(
            (("next-auth",), "authentication"),
            (("@vercel/analytics",), "analytics"),
        ),
        builtin_features=("ssr", "routing", "api-routes", "file-based-routing"),
    ),
    FrameworkRule(
        name="nuxt.js",
        triggers=("nuxt",),
        version_from="nuxt",
        companions=(
            (("@nuxt/content",), "content-management"),
            (("@nuxtjs/auth", "@nuxtjs/auth-next"), "authentication"),
            (("@pinia/nuxt",), "state-management-pinia"),
            (("@nuxt/image",), "image-optimization"),
            (("@nuxtjs/tailwindcss",), "tailwind"),
        ),
        builtin_features=("ssr", "routing", "api-routes", "file-based-routing", "auto-imports"),
    ),
    FrameworkRule(
        name="react",
        triggers=("react", "react-dom"),
        version_from="react",
        companions=(
            (("react-router", "react-router-dom"), "routing"),
            (("redux", "@reduxjs/toolkit"), "state-management-redux"),
            (("zustand",), "state-management-zustand"),
            (("react-query", "@tanstack/react-query"), "data-fetching"),
            (("@testing-library/react",), "testing"),
        ),
    ),
    FrameworkRule(
        name="vue",
        triggers=("vue",),
        version_from="vue",
        companions=(
            (("vue-router",), "routing"),
            (("pinia",), "state-management-pinia"),
            (("vuex",), "state-management-vuex"),
            (("@vue/test-utils",), "testing"),
        ),
    ),
    FrameworkRule(
        name="angular",
        triggers=("@angular/core",),
        version_from="@angular/core",
        companions=(
            (("@angular/router",), "routing"),
            (("@angular/forms",), "forms"),
            (("@angular/common/http", "@angular/common"), "http-client"),
            (("@ngrx/store",), "state-management-ngrx"),
            (("@angular/material",), "material-design"),
            (("@angular/animations",), "animations"),
        ),
        builtin_features=("decorators", "dependency-injection", "typescript"),
    ),
    FrameworkRule(
        name="svelte",
        triggers=("svelte",),
        version_from="svelte",
        companions=(
            (("@sveltejs/kit", "@sveltejs/adapter-auto"), "sveltekit"),
            (("svelte-routing",), "routing"),
            (("@testing-library/svelte",), "testing"),
        ),
    ),
)


class FrameworkInferer:
    """Matches manifest dependencies against known frameworks."""

    def __init__(self, rules: Sequence[FrameworkRule] = FRAMEWORK_RULES) -> None:
        self.rules = tuple(rules)

    def infer(
        self, manifest: ProjectManifestInfo, endpoints: Iterable[Endpoint] = ()
    ) -> List[FrameworkSignal]:
        dependencies = manifest.all_dependencies()
        signals = [rule.signal(dependencies) for rule in self.rules if rule.matches(dependencies)]
        if signals:
            return signals
        return self.from_endpoints(endpoints)

    @staticmethod
    def from_endpoints(endpoints: Iterable[Endpoint]) -> List[FrameworkSignal]:
        """Return the most frequent endpoint framework tags; ties are kept in name order."""
        counts = Counter(endpoint.framework for endpoint in endpoints if endpoint.framework)
        if not counts:
            return []
        top = max(counts.values())
        leaders = sorted(name for name, count in counts.items() if count == top)
        return [FrameworkSignal(name=name) for name in leaders]


__all__ = ["FRAMEWORK_RULES", "FrameworkInferer", "FrameworkRule"]
