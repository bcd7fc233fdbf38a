"""
FastAPI dependency injection for database, services, pagination, and authentication.

Provides injectable dependencies for:
- MongoDB client lifecycle and database handle
- Repository instances
- Service instances
- Pagination parameters
- Optional write authorization (JWT bearer tokens)

Everything is resolved from ``request.app.state`` so each application
instance carries its own settings and connections.
"""

from typing import Optional

import structlog
from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from api.src.config import Settings
from api.src.errors import AuthError
from api.src.models.user import CurrentUser
from api.src.repositories.order_repo import OrderRepository
from api.src.repositories.product_repo import ProductRepository
from api.src.repositories.user_repo import UserRepository
from api.src.services.auth_service import AuthService
from api.src.services.upload_service import ImageUploadService
from shared.metrics import HTTPMetrics

logger = structlog.get_logger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)

AUTH_REQUIRED_MESSAGE = "Authentication required."
INVALID_TOKEN_MESSAGE = "Invalid or expired token."

# Largest skip MongoDB accepts (BSON int64)
MAX_SKIP = 2 ** 63 - 1


# ============================================================================
# DATABASE CLIENT
# ============================================================================


def create_mongo_client(settings: Settings) -> AsyncMongoClient:
    """
    Create the MongoDB client.

    The client connects lazily; call ``ping_database`` to verify
    connectivity.

    Args:
        settings: Application settings

    Returns:
        Async MongoDB client
    """
    client = AsyncMongoClient(
        settings.mongodb_url,
        serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
        tz_aware=True,
        appname=settings.app_name,
    )
    logger.info(
        "mongo_client_created",
        database=settings.mongodb_database,
        host=settings.mongodb_url.split("@")[-1]
    )
    return client


async def ping_database(database: AsyncDatabase) -> None:
    """Round-trip to the server; raises if it is unreachable."""
    await database.command("ping")


async def close_mongo_client(client: Optional[AsyncMongoClient]) -> None:
    """Close the MongoDB client if one was created."""
    if client is not None:
        await client.close()
        logger.info("mongo_client_closed")


# ============================================================================
# CORE DEPENDENCIES
# ============================================================================


def get_settings_dependency(request: Request) -> Settings:
    """
    Get the settings the application was built with.

    Returns:
        Settings instance
    """
    return request.app.state.settings


def get_database(request: Request) -> AsyncDatabase:
    """
    Get the MongoDB database handle.

    Raises:
        RuntimeError: If the database was not initialized during startup
    """
    database = getattr(request.app.state, "database", None)
    if database is None:
        logger.error("database_not_initialized")
        raise RuntimeError("Database not initialized. Start the application lifespan first.")
    return database


# ============================================================================
# REPOSITORY DEPENDENCIES
# ============================================================================


def get_user_repository(database: AsyncDatabase = Depends(get_database)) -> UserRepository:
    """Get user repository instance."""
    return UserRepository(database)


def get_product_repository(database: AsyncDatabase = Depends(get_database)) -> ProductRepository:
    """Get product repository instance."""
    return ProductRepository(database)


def get_order_repository(database: AsyncDatabase = Depends(get_database)) -> OrderRepository:
    """Get order repository instance."""
    return OrderRepository(database)


# ============================================================================
# SERVICE DEPENDENCIES
# ============================================================================


def get_auth_service(
    user_repo: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_settings_dependency)
) -> AuthService:
    """
    Get authentication service bound to the request's user repository.

    Returns:
        Authentication service
    """
    return AuthService(user_repo, settings)


def get_upload_service(
    settings: Settings = Depends(get_settings_dependency)
) -> ImageUploadService:
    """Get image upload service."""
    return ImageUploadService(settings)


# ============================================================================
# PAGINATION DEPENDENCIES
# ============================================================================


def _parse_int(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    try:
        return int(value.strip())
    except (TypeError, ValueError):
        return default


class PaginationParams:
    """Pagination parameters for list endpoints."""

    def __init__(self, page: int, limit: int, max_limit: int):
        """
        Initialize pagination parameters.

        Limit is clamped to 1..max_limit. Page is clamped to at least 1 and
        to at most the last page whose offset still fits in MAX_SKIP.

        Args:
            page: 1-based page number
            limit: Items per page
            max_limit: Largest allowed page size
        """
        self.limit = min(max(limit, 1), max_limit)
        self.page = min(max(page, 1), MAX_SKIP // self.limit + 1)

    @property
    def skip(self) -> int:
        """Number of items before this page."""
        return (self.page - 1) * self.limit


def get_pagination_params(
    page: Optional[str] = Query(None, description="1-based page number"),
    limit: Optional[str] = Query(None, description="Items per page"),
    settings: Settings = Depends(get_settings_dependency)
) -> PaginationParams:
    """
    Get pagination parameters from the query string.

    Non-integer values fall back to the configured defaults.

    Returns:
        Pagination parameters
    """
    return PaginationParams(
        page=_parse_int(page, settings.pagination_default_page),
        limit=_parse_int(limit, settings.pagination_default_limit),
        max_limit=settings.pagination_max_limit,
    )


# ============================================================================
# AUTHENTICATION DEPENDENCIES
# ============================================================================


async def get_write_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings_dependency),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[CurrentUser]:
    """
    Resolve the caller of a write endpoint.

    Returns None when write authorization is disabled. When it is enabled
    a valid bearer token for an existing user is required.

    Raises:
        AuthError: If the token is missing or invalid
    """
    if not settings.require_auth_for_writes:
        return None

    if not credentials:
        logger.warning("auth_missing_credentials")
        raise AuthError(AUTH_REQUIRED_MESSAGE)

    current_user = await auth_service.get_current_user(credentials.credentials)
    if not current_user:
        logger.warning("auth_invalid_token")
        raise AuthError(INVALID_TOKEN_MESSAGE)

    logger.debug("write_caller_authenticated", user_id=current_user.id, role=current_user.role)
    return current_user


# ============================================================================
# UTILITY DEPENDENCIES
# ============================================================================


def get_metrics(request: Request) -> Optional[HTTPMetrics]:
    """Get the application's metrics bundle, if metrics are enabled."""
    return getattr(request.app.state, "metrics", None)
