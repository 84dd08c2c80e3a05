"""FastAPI application factory.

Serves the generation proxy and the data API used by the SPA.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bizu.config.app_config import load_app_config
from bizu.db.store import StorageConfigError, StorageError, select_backend
from bizu.web.routes import (
    chat_router,
    generation_router,
    health_router,
    materials_router,
    radar_router,
    routine_router,
    stats_router,
)
from bizu.web.schemas import API_VERSION

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    config = load_app_config()
    try:
        backend = select_backend(config.storage)
    except StorageConfigError as e:
        logger.error("api_startup_storage_misconfigured", error=str(e))
        backend = "unavailable"
    logger.info(
        "api_startup",
        storage_backend=backend,
        llm_provider=config.llm.provider,
        llm_model=config.llm.model,
    )
    yield


async def _storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("storage_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "Erro de armazenamento", "details": str(exc)},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    config = load_app_config()

    app = FastAPI(
        title="Bizu API",
        description="Generation proxy and study data API",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StorageError, _storage_error_handler)

    app.include_router(health_router)
    app.include_router(generation_router)
    app.include_router(stats_router)
    app.include_router(chat_router)
    app.include_router(materials_router)
    app.include_router(routine_router)
    app.include_router(radar_router)

    return app


# Default app instance for uvicorn
app = create_app()
