"""FastAPI application exposing context generation as a service."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import ConfigError
from ..logging import configure_logging
from ..models import Diagnostic
from ..orchestrator import GenerationResult, Orchestrator
from ..repo_scanner import DiscoveryError


class GenerateRequest(BaseModel):
    path: str
    include_git_info: Optional[bool] = None
    write: bool = False


class DocumentPayload(BaseModel):
    name: str
    filename: str
    kind: str
    part: int
    total_parts: int
    content: str


class DiagnosticPayload(BaseModel):
    code: str
    message: str
    level: str
    path: Optional[str] = None
    details: Dict[str, Any] = {}


class GenerateResponse(BaseModel):
    primary: List[DocumentPayload]
    documents: Dict[str, List[DocumentPayload]]
    diagnostics: List[DiagnosticPayload]
    frameworks: List[str]
    written: List[str] = []


class HealthResponse(BaseModel):
    status: str


def _default_orchestrator() -> Orchestrator:
    return Orchestrator()


def _diagnostic_payload(diagnostic: Diagnostic) -> DiagnosticPayload:
    return DiagnosticPayload(
        code=diagnostic.code,
        message=diagnostic.message,
        level=diagnostic.level,
        path=diagnostic.path,
        details=dict(diagnostic.details),
    )


def _to_response(result: GenerationResult) -> GenerateResponse:
    def _documents(parts) -> List[DocumentPayload]:  # type: ignore[no-untyped-def]
        return [
            DocumentPayload(
                name=document.name,
                filename=document.filename,
                kind=document.kind.value,
                part=document.part,
                total_parts=document.total_parts,
                content=document.content,
            )
            for document in parts
        ]

    return GenerateResponse(
        primary=_documents(result.bundle.primary),
        documents={name: _documents(parts) for name, parts in result.bundle.secondary},
        diagnostics=[_diagnostic_payload(item) for item in result.diagnostics],
        frameworks=[framework.name for framework in result.frameworks],
        written=[str(path) for path in result.written],
    )


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] = _default_orchestrator,
) -> FastAPI:
    """Create the FastAPI application exposing context generation."""

    app = FastAPI(title="parseme", version="0.1.0")

    async def get_orchestrator() -> Orchestrator:
        return orchestrator_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(
        payload: GenerateRequest,
        orchestrator: Orchestrator = Depends(get_orchestrator),
    ) -> GenerateResponse:
        def _run() -> GenerationResult:
            overrides = {"include_git_info": payload.include_git_info}
            if payload.write:
                return orchestrator.generate_to_disk(payload.path, **overrides)
            return orchestrator.generate(payload.path, **overrides)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, _run)
        return _to_response(result)

    @app.exception_handler(DiscoveryError)
    async def discovery_error_handler(_: Any, exc: DiscoveryError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000, *, verbose: bool = False
) -> None:  # pragma: no cover - integration path
    configure_logging(verbose=verbose)
    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["create_app", "run_service"]
