"""FastAPI server for the digital kanban system.

Main entry point for the API server.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import (
    health,
    kanbans,
    workflows,
    containers,
    jobs,
    metrics,
)
from connectors.erp_base import ERPError, ERPNotFoundError
from core import __version__
from core.config import get_settings
from core.errors import (
    InsufficientInventory,
    InvalidRequest,
    KanbanError,
    NotFoundError,
    UnknownOperation,
)
from core.observability.logging import configure_logging, get_logger
from kanban_engine import KanbanSystem, build_kanban_system

logger = get_logger(__name__)

# First match wins; subclasses before bases
ERROR_STATUS_CODES = (
    (NotFoundError, 404),
    (InsufficientInventory, 409),
    (InvalidRequest, 422),
    (UnknownOperation, 400),
)


def status_code_for(exc: KanbanError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    if app.state.system is None:
        settings = get_settings()
        configure_logging(settings.logging_level, settings.log_json, force=True)
        app.state.system = build_kanban_system(settings)
    system: KanbanSystem = app.state.system
    await system.start()
    logger.info("Kanban API starting up...")

    yield

    # Shutdown
    logger.info("Kanban API shutting down...")
    await system.stop()


async def kanban_error_handler(request: Request, exc: KanbanError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.exception(f"Unhandled kanban error on {request.url.path}: {exc}")
    return JSONResponse(status_code=status_code, content=jsonable_encoder(exc.to_dict()))


async def erp_error_handler(request: Request, exc: ERPError) -> JSONResponse:
    status_code = 404 if isinstance(exc, ERPNotFoundError) else 502
    logger.error(f"ERP error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={
            "error": type(exc).__name__,
            "message": str(exc),
            "details": {"status_code": exc.status_code},
        },
    )


def create_app(system: Optional[KanbanSystem] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        system: Kanban system to serve; built from settings at startup when
            omitted
    """
    app = FastAPI(
        title="Digital Kanban API",
        description="Kanban workflow engine and container allocation over the PLEX ERP",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.system = system

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(KanbanError, kanban_error_handler)
    app.add_exception_handler(ERPError, erp_error_handler)

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(metrics.router, tags=["Metrics"])
    app.include_router(kanbans.router, prefix="/kanbans", tags=["Kanbans"])
    app.include_router(workflows.router, prefix="/workflows", tags=["Workflows"])
    app.include_router(containers.router, prefix="/containers", tags=["Containers"])
    app.include_router(jobs.router, prefix="/jobs", tags=["Jobs"])

    return app


# Default app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.server:app", host="0.0.0.0", port=8000, reload=True)
