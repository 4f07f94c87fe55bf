"""
LR Desk - FastAPI Main Application Entry Point

Serves the booking, article, OGPL and analytics APIs under ``/api``.
Domain errors raised by the tools become JSON error bodies here.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import logging
import structlog

from lrdesk.config import settings
from lrdesk.api.routes import api_router
from lrdesk.db.database import engine, init_db, close_db
from lrdesk.errors import LRDeskError, ExternalServiceFailure


def configure_logging() -> None:
    """Route structlog through stdlib logging at the configured level."""
    logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()
logger = structlog.get_logger()

API_SECTIONS = {
    "bookings": "/api/bookings",
    "articles": "/api/articles",
    "ogpl": "/api/ogpl",
    "analytics": "/api/analytics",
    "customers": "/api/customers",
    "branches": "/api/branches",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting LR Desk", version=settings.app_version, env=settings.app_env)
    await init_db()
    logger.info("Database ready", sqlite=settings.is_sqlite)

    yield

    await close_db()
    logger.info("LR Desk stopped")


async def domain_error_handler(request: Request, exc: LRDeskError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "Request rejected",
        path=request.url.path,
        error=exc.kind,
        message=exc.message,
        field=exc.field,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error", path=request.url.path, error=str(exc))
    failure = ExternalServiceFailure("The database rejected the request", cause=type(exc).__name__)
    return JSONResponse(status_code=failure.status_code, content=failure.to_dict())


async def database_reachable() -> bool:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning("Health check could not reach the database", error=str(e))
        return False


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title=settings.app_name,
        description="Lorry receipt booking, loading and unloading for transport branches",
        version=settings.app_version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url, "http://localhost:3000", "http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LRDeskError, domain_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Liveness plus a database round trip."""
        database_ok = await database_reachable()
        return {
            "status": "healthy" if database_ok else "degraded",
            "database": "ok" if database_ok else "unreachable",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.app_env,
        }

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs" if settings.is_development else None,
            "health": "/health",
            "endpoints": API_SECTIONS,
        }

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "lrdesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
    )
