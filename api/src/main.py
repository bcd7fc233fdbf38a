"""
FastAPI application entry point for the Shop API.

This module provides the application factory with:
- Registration, login, product and order endpoints
- Health, readiness and Prometheus metrics endpoints
- Static serving of uploaded product images
- Request logging with correlation IDs
- Uniform ``{"error": ...}`` error responses
- MongoDB client management with graceful startup and shutdown
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.src import __version__
from api.src.config import Settings, get_settings
from api.src.dependencies import close_mongo_client, create_mongo_client, ping_database
from api.src.errors import UNEXPECTED_ERROR_MESSAGE, ApiError, format_error_details
from api.src.middleware.request_logging import RequestLoggingMiddleware
from api.src.repositories.user_repo import UserRepository
from api.src.routers import auth, orders, products
from shared.logging import configure_logging
from shared.metrics import HTTPMetrics, get_metrics_handler
from shared.models import HealthStatus, ReadinessInfo, ServiceInfo

logger = structlog.get_logger(__name__)


# ============================================================================
# Lifespan Management
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Handles:
    - MongoDB client creation and connectivity check
    - Unique index creation for users
    - Upload directory creation
    - Graceful shutdown and client cleanup
    """
    settings: Settings = app.state.settings

    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment
    )

    try:
        app.state.mongo_client = create_mongo_client(settings)
        app.state.database = app.state.mongo_client[settings.mongodb_database]

        await ping_database(app.state.database)
        logger.info("database_connected", database=settings.mongodb_database)

        await UserRepository(app.state.database).ensure_indexes()

        settings.upload_dir.mkdir(parents=True, exist_ok=True)
        logger.info("upload_dir_ready", path=str(settings.upload_dir))

        logger.info(
            "application_started",
            app_name=settings.app_name,
            host=settings.host,
            port=settings.port
        )

        yield

    except Exception as e:
        logger.error("application_startup_failed", error=str(e), exc_info=True)
        raise

    finally:
        logger.info("application_shutting_down")
        await close_mongo_client(getattr(app.state, "mongo_client", None))
        app.state.mongo_client = None
        app.state.database = None
        logger.info("application_shutdown_complete")


# ============================================================================
# Exception Handlers
# ============================================================================

async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Render taxonomy errors as ``{"error": ...}``."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "api_error",
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.message
    )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_content(), headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle malformed request bodies and parameters as 400s."""
    messages = format_error_details(exc.errors())
    logger.warning("validation_error", path=request.url.path, errors=messages)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": messages}
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions (404, 405, malformed multipart, ...)."""
    logger.warning(
        "http_exception",
        path=request.url.path,
        status_code=exc.status_code,
        detail=exc.detail
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without leaking details."""
    logger.error(
        "unexpected_exception",
        path=request.url.path,
        error=str(exc),
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": UNEXPECTED_ERROR_MESSAGE}
    )


# ============================================================================
# Application Factory
# ============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (defaults to the cached environment settings)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.log_format == "json",
        service_name=settings.app_name,
        environment=settings.environment,
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "E-commerce backend: user registration and login, product catalog "
            "with image upload, and order placement."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.state.settings = settings
    app.state.mongo_client = None
    app.state.database = None
    app.state.metrics = HTTPMetrics() if settings.metrics_enabled else None

    # ------------------------------------------------------------------------
    # Middleware
    # ------------------------------------------------------------------------

    if settings.cors_enabled:
        logger.info("configuring_cors", origins=settings.cors_origins)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=settings.cors_allow_methods,
            allow_headers=settings.cors_allow_headers,
        )

    app.add_middleware(RequestLoggingMiddleware, metrics=app.state.metrics)

    # ------------------------------------------------------------------------
    # Exception handlers
    # ------------------------------------------------------------------------

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # ------------------------------------------------------------------------
    # Routers and static files
    # ------------------------------------------------------------------------

    app.include_router(auth.router, prefix=settings.api_prefix)
    app.include_router(products.router, prefix=settings.api_prefix)
    app.include_router(orders.router, prefix=settings.api_prefix)

    app.mount(
        settings.upload_url_prefix,
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="uploads",
    )

    # ------------------------------------------------------------------------
    # Health, readiness and metrics
    # ------------------------------------------------------------------------

    @app.get("/health", tags=["Health"], response_model=ServiceInfo)
    async def health_check() -> ServiceInfo:
        """
        Health check endpoint.

        Returns basic health status without checking dependencies.
        """
        return ServiceInfo(
            status=HealthStatus.HEALTHY,
            service=settings.app_name,
            version=settings.app_version,
            environment=settings.environment
        )

    @app.get("/ready", tags=["Health"], response_class=JSONResponse)
    async def readiness_check(request: Request) -> JSONResponse:
        """
        Readiness check endpoint.

        Pings MongoDB and reports 503 when it is unreachable.
        """
        checks = {"database": HealthStatus.UNHEALTHY}

        database = request.app.state.database
        if database is not None:
            try:
                await ping_database(database)
                checks["database"] = HealthStatus.HEALTHY
            except Exception as e:
                logger.error("database_health_check_failed", error=str(e))

        info = ReadinessInfo(
            status="not_ready",
            service=settings.app_name,
            version=settings.app_version,
            checks=checks
        )
        if info.is_ready:
            info.status = "ready"

        return JSONResponse(
            status_code=status.HTTP_200_OK if info.is_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
            content=info.model_dump()
        )

    if app.state.metrics is not None:
        render_metrics = get_metrics_handler(app.state.metrics)

        @app.get("/metrics", tags=["Monitoring"], response_class=PlainTextResponse)
        async def metrics() -> Response:
            """Prometheus metrics endpoint."""
            return Response(content=render_metrics(), media_type=CONTENT_TYPE_LATEST)

    logger.info("application_configured", api_prefix=settings.api_prefix, version=__version__)
    return app


# ============================================================================
# Application Entry Point
# ============================================================================

def run() -> None:
    """Run the application with Uvicorn."""
    settings = get_settings()

    logger.info(
        "starting_uvicorn_server",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

    uvicorn.run(
        "api.src.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run()
