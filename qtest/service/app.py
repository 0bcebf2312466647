"""FastAPI application exposing agent-backed test generation."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Any, Callable, Optional

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .. import __version__
from ..agent import AgentGenerationService, AgentRequest, AgentResult
from ..config import QTestConfig, load_settings
from ..logging import get_logger
from ..models import GenerationOptions

logger = get_logger("service")


class FilePayload(BaseModel):
    name: str
    content: str
    path: Optional[str] = None


class OptionsPayload(BaseModel):
    generateEdgeCases: bool = True
    includeSetup: bool = True


class AnalyzeRequest(BaseModel):
    file: FilePayload
    framework: str = "jest"
    options: OptionsPayload = Field(default_factory=OptionsPayload)


class AnalyzeMetadata(BaseModel):
    method: str
    sourceFile: str
    timestamp: str


class AnalyzeResponse(BaseModel):
    success: bool
    generatedTest: str
    metadata: AnalyzeMetadata


class InfoResponse(BaseModel):
    status: str
    version: str
    agent: str
    timestamp: str


class AgentHealthResponse(BaseModel):
    status: str
    available: bool
    agent: str
    version: Optional[str] = None
    error: Optional[str] = None


def _timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def create_app(
    config: QTestConfig | None = None,
    service_factory: Callable[[], AgentGenerationService] | None = None,
) -> FastAPI:
    """Create the FastAPI application serving ``POST /analyze``."""
    settings = config or load_settings()

    def _default_service() -> AgentGenerationService:
        return AgentGenerationService(settings.agent)

    factory = service_factory or _default_service

    app = FastAPI(title="qtest API", version=__version__)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    async def get_service() -> AgentGenerationService:
        # Per request, so each call owns its runner and workspace.
        return factory()

    @app.get("/", response_model=InfoResponse)
    async def info() -> InfoResponse:
        return InfoResponse(
            status="qtest API running",
            version=__version__,
            agent=settings.agent.name,
            timestamp=_timestamp(),
        )

    @app.get(f"/{settings.agent.name}/health", response_model=AgentHealthResponse)
    async def agent_health(
        service: AgentGenerationService = Depends(get_service),
    ) -> AgentHealthResponse:
        loop = asyncio.get_running_loop()
        report = await loop.run_in_executor(None, service.health)
        return AgentHealthResponse(
            status=str(report.get("status")),
            available=bool(report.get("available")),
            agent=str(report.get("agent") or settings.agent.name),
            version=_optional_str(report.get("version")),
            error=_optional_str(report.get("error")),
        )

    @app.post("/analyze", response_model=AnalyzeResponse)
    async def analyze(
        payload: AnalyzeRequest,
        service: AgentGenerationService = Depends(get_service),
    ) -> Any:
        size = len(payload.file.content.encode("utf-8"))
        limit = settings.service.max_content_bytes
        if size > limit:
            return JSONResponse(
                status_code=413,
                content={"error": f"File content is {size} bytes; the limit is {limit} bytes"},
            )

        request = AgentRequest(
            file_name=payload.file.name,
            content=payload.file.content,
            path=payload.file.path,
            framework=payload.framework,
            options=GenerationOptions(
                generate_edge_cases=payload.options.generateEdgeCases,
                include_setup=payload.options.includeSetup,
            ),
        )
        logger.info("Generating %s test for %s", payload.framework, payload.file.name)

        def _run_generate() -> AgentResult:
            return service.generate(request)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, _run_generate)
        return AnalyzeResponse(
            success=True,
            generatedTest=result.content,
            metadata=AnalyzeMetadata(
                method=result.method,
                sourceFile=result.source_file,
                timestamp=_timestamp(),
            ),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_: Any, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": _describe_validation(exc)})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(_: Any, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error while serving request")
        return JSONResponse(status_code=500, content={"error": str(exc) or exc.__class__.__name__})

    return app


def run_service(
    host: str | None = None, port: int | None = None, *, config: QTestConfig | None = None
) -> None:  # pragma: no cover - integration path
    import uvicorn

    settings = config or load_settings()
    app = create_app(settings)
    uvicorn.run(
        app,
        host=host or settings.service.host,
        port=port or settings.service.port,
    )


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else str(message))
    return "; ".join(parts) or "Invalid request body"


def _optional_str(value: object) -> Optional[str]:
    return str(value) if value is not None else None


__all__ = ["create_app", "run_service"]
