"""
Shared pytest fixtures.

Provides:
- Test settings (fast bcrypt, temporary upload directory)
- In-memory repository doubles with the same interface as the MongoDB ones
- A FastAPI TestClient wired to those doubles
"""

from typing import Any, Dict, List, Optional

import bson
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from api.src.config import Settings
from api.src.dependencies import (
    get_order_repository,
    get_product_repository,
    get_user_repository,
)
from api.src.main import create_app
from api.src.models.order import NewOrder, OrderRecord
from api.src.models.product import NewProduct, ProductRecord
from api.src.models.user import NewUser, UserRecord
from api.src.repositories.base import UniquenessViolation

TEST_JWT_SECRET = "test-secret-key-for-shop-api-tests-0123456789"


# ============================================================================
# REPOSITORY DOUBLES
# ============================================================================


def _encode_paging(skip: int, limit: int) -> None:
    """Encode paging values as the driver would; overflows raise like a real query."""
    bson.encode({"skip": skip, "limit": limit})


class InMemoryUserRepository:
    """User repository double enforcing username/email uniqueness."""

    def __init__(self):
        self.documents: List[Dict[str, Any]] = []

    async def ensure_indexes(self) -> None:
        return None

    async def create_user(self, user: NewUser) -> str:
        document = user.to_document()
        for existing in self.documents:
            clashes = [
                field for field in ("username", "email")
                if existing[field] == document[field]
            ]
            if clashes:
                raise UniquenessViolation("users", clashes)
        document["_id"] = ObjectId()
        self.documents.append(document)
        return str(document["_id"])

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        for document in self.documents:
            if document["username"] == username:
                return UserRecord.from_document(document)
        return None

    async def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        for document in self.documents:
            if str(document["_id"]) == user_id:
                return UserRecord.from_document(document)
        return None


class InMemoryProductRepository:
    """Product repository double keeping insertion order."""

    def __init__(self):
        self.documents: List[Dict[str, Any]] = []

    async def create_product(self, product: NewProduct) -> str:
        document = product.to_document()
        document["_id"] = ObjectId()
        self.documents.append(document)
        return str(document["_id"])

    async def list_products(self, skip: int, limit: int) -> List[ProductRecord]:
        _encode_paging(skip, limit)
        return [ProductRecord.from_document(d) for d in self.documents[skip:skip + limit]]

    async def count_products(self) -> int:
        return len(self.documents)


class InMemoryOrderRepository:
    """Order repository double filtering by user id."""

    def __init__(self):
        self.documents: List[Dict[str, Any]] = []

    async def create_order(self, order: NewOrder) -> str:
        document = order.to_document()
        document["_id"] = ObjectId()
        self.documents.append(document)
        return str(document["_id"])

    def _for_user(self, user_id: str) -> List[Dict[str, Any]]:
        return [d for d in self.documents if d["userId"] == user_id]

    async def list_orders(self, user_id: str, skip: int, limit: int) -> List[OrderRecord]:
        _encode_paging(skip, limit)
        return [OrderRecord.from_document(d) for d in self._for_user(user_id)[skip:skip + limit]]

    async def count_orders(self, user_id: str) -> int:
        return len(self._for_user(user_id))


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings for tests: fast hashing and a throwaway upload directory."""
    return Settings(
        jwt_secret_key=TEST_JWT_SECRET,
        password_bcrypt_rounds=4,
        upload_dir=tmp_path / "uploads",
        log_level="WARNING",
        log_format="text",
        environment="development",
    )


@pytest.fixture
def user_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def product_repo() -> InMemoryProductRepository:
    return InMemoryProductRepository()


@pytest.fixture
def order_repo() -> InMemoryOrderRepository:
    return InMemoryOrderRepository()


@pytest.fixture
def app(settings, user_repo, product_repo, order_repo):
    """Application wired to in-memory repositories (lifespan not started)."""
    application = create_app(settings)
    application.dependency_overrides[get_user_repository] = lambda: user_repo
    application.dependency_overrides[get_product_repository] = lambda: product_repo
    application.dependency_overrides[get_order_repository] = lambda: order_repo
    return application


@pytest.fixture
def client(app) -> TestClient:
    """HTTP client for the test application."""
    return TestClient(app)


@pytest.fixture
def registration() -> Dict[str, str]:
    """A registration payload that passes every rule."""
    return {
        "username": "alice_01",
        "password": "Str0ng!Pass",
        "email": "a@b.com",
    }
