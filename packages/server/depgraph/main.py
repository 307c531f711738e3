"""
Dependency Graph API Server

Entry point for the FastAPI application.
"""

import asyncio

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from depgraph.core.config import get_settings
from depgraph.core.database import init_db
from depgraph.core.logging import configure_logging
from depgraph.api.v1 import router as api_v1_router
from depgraph.services.errors import DependencyError

settings = get_settings()
log = structlog.get_logger()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Task Dependency Graph",
        description="Cycle-safe task dependency management.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # One lock per process: serializes validate-then-insert across requests.
    app.state.dependency_insert_lock = asyncio.Lock()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(api_v1_router, prefix="/api/v1")

    @app.exception_handler(DependencyError)
    async def dependency_error_handler(request: Request, exc: DependencyError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.get("/ready", tags=["System"])
    async def readiness_check():
        """Readiness check endpoint for startup probes."""
        return {"status": "ready"}

    @app.on_event("startup")
    async def on_startup():
        log.info("depgraph.starting", max_chain_depth=settings.max_chain_depth)
        if settings.create_tables:
            await init_db()

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("depgraph.stopping")

    return app


app = create_app()


def run() -> None:
    """CLI entry point for the API server."""
    import uvicorn

    uvicorn.run("depgraph.main:app", host=settings.host, port=settings.port)
