from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from procurement.api.v1.router import router as api_v1_router
from procurement.config.settings import settings
from procurement.core.logging import get_logger
from procurement.core.middleware import register_exception_handlers, register_middlewares
from procurement.db.init_db import init_db, seed_reference_data
from procurement.db.session import SessionLocal, engine

logger = get_logger(__name__)


def prepare_database() -> None:
    """Create missing tables and, when enabled, seed reference data."""
    # Schema creation here is for development; production uses migrations.
    if settings.is_production():
        return
    init_db()
    if settings.SEED_ON_STARTUP:
        db = SessionLocal()
        try:
            seed_reference_data(db)
        finally:
            db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Starting procurement service",
        extra={"environment": settings.ENVIRONMENT, "version": settings.API_VERSION},
    )
    try:
        prepare_database()
    except Exception as e:
        logger.error(f"Failed to prepare database: {e}")
        raise

    yield

    engine.dispose()
    logger.info("Procurement service stopped")


def create_app() -> FastAPI:
    """
    Application factory for the FastAPI app.

    - Configures title, version, debug mode from Settings.
    - Registers CORS, core middleware, and exception handlers.
    - Includes the versioned API router under /api/v1.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        version=settings.API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    origins = settings.get_cors_origins() or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middlewares(app)
    register_exception_handlers(app)

    app.include_router(api_v1_router, prefix=settings.API_V1_STR)

    return app


app = create_app()
