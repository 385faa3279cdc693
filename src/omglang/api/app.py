"""FastAPI application factory for the OMG language service."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from omglang import __version__
from omglang.api.deps import init_document_store, reset_document_store
from omglang.api.middleware import RequestBodyLimitMiddleware, RequestTimingMiddleware
from omglang.api.routers import analysis, documents, reference
from omglang.api.schemas import HealthResponse
from omglang.service.document_store import DocumentStore
from omglang.settings import Settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Create the DocumentStore for the lifetime of the application."""
    settings: Settings = app.state.settings
    init_document_store(
        DocumentStore(
            check_file_references=settings.check_file_references,
            confine_file_references=settings.confine_file_references,
        )
    )
    try:
        yield
    finally:
        reset_document_store()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="OMG Language Service",
        description="Parses and statically analyses OMG pattern files.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Middleware
    app.add_middleware(RequestBodyLimitMiddleware)
    app.add_middleware(RequestTimingMiddleware)

    app.include_router(analysis.router, tags=["analysis"])
    app.include_router(documents.router, prefix="/documents", tags=["documents"])
    app.include_router(reference.router, prefix="/reference", tags=["reference"])

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=__version__)

    return app


def main() -> None:
    """Run the REST API server using settings from environment / .env file."""
    settings = Settings()

    logging.basicConfig(level=settings.log_level.upper())
    logger = logging.getLogger("omglang.api")
    logger.info(
        "OMG API Server v%s starting (host=%s, port=%d)",
        __version__, settings.api_server_host, settings.effective_port,
    )

    uvicorn.run(
        "omglang.api.app:create_app",
        factory=True,
        host=settings.api_server_host,
        port=settings.effective_port,
        log_level=settings.log_level.lower(),
    )
