import logging
import traceback
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Depends
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from crm import models  # noqa: F401  registers tables on Base.metadata
from crm.config.config import settings
from crm.core.utils import configure_logging
from crm.db.base import Base
from crm.db.session import engine
from crm.api.dependencies import get_db
from crm.api.v1 import router as api_router

logger = logging.getLogger("crm.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging, verify the database and dispose the engine on exit."""
    configure_logging(settings.LOG_LEVEL)
    logger.info(f"Starting {settings.PROJECT_NAME} {settings.VERSION} ({settings.ENVIRONMENT})")

    try:
        async with engine.begin() as conn:
            if settings.AUTO_CREATE_TABLES:
                await conn.run_sync(Base.metadata.create_all)
            else:
                await conn.execute(text("SELECT 1"))
        logger.info(
            f"Database ready (auto_create_tables={settings.AUTO_CREATE_TABLES})"
        )
    except Exception as e:
        logger.error(f"Database unavailable at startup: {e}")
        logger.error(traceback.format_exc())

    logger.info(f"Media files served from {settings.MEDIA_ROOT} at {settings.MEDIA_URL}")

    yield

    await engine.dispose()
    logger.info("Database engine disposed, shutdown complete")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
    )

    # ---------------------- EXCEPTION HANDLERS ----------------------
    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException):
        # Unmatched routes get a generic body; everything else keeps its detail
        if exc.status_code == 404 and exc.detail == "Not Found":
            return JSONResponse(status_code=404, content={"detail": "Resource not found"})
        return await http_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        logger.error(f"Unhandled Error: {trace}")

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "error": (
                    str(exc) if settings.ENVIRONMENT != "production" else "Server error"
                ),
            },
        )

    # ---------------------- CORS ----------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000, compresslevel=6)

    # ---------------------- ROUTES ----------------------
    app.include_router(api_router, prefix=settings.API_PREFIX)

    # ---------------------- MEDIA ----------------------
    app.mount(
        settings.MEDIA_URL,
        StaticFiles(directory=settings.MEDIA_ROOT, check_dir=False),
        name="media",
    )

    # ---------------------- HEALTH CHECK ----------------------
    @app.get("/health")
    async def health_check(db: AsyncSession = Depends(get_db)):
        try:
            await db.execute(text("SELECT 1"))
            return {
                "status": "healthy",
                "environment": settings.ENVIRONMENT,
                "version": settings.VERSION,
                "database": "connected",
            }
        except Exception as e:
            logger.error(f"Health check failed: {e}", exc_info=True)
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "database": "disconnected",
                    "error": str(e),
                },
            )

    @app.get("/")
    async def root():
        return {
            "name": settings.PROJECT_NAME,
            "environment": settings.ENVIRONMENT,
            "version": settings.VERSION,
            "docs": "/docs",
        }

    return app


app = create_app()
