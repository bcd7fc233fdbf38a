"""
Unit tests for the MongoDB repositories.

The driver collection is replaced by mocks, so these tests check the
queries sent and how driver results and errors are translated.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from api.src.models.order import LineItem, NewOrder, ShippingAddress
from api.src.models.product import NewProduct
from api.src.models.user import NewUser
from api.src.repositories import (
    OrderRepository,
    ProductRepository,
    UniquenessViolation,
    UserRepository,
)
from api.src.repositories.base import to_object_id


@pytest.fixture
def collection():
    """Mocked async collection with a chainable find cursor."""
    mock = MagicMock()
    mock.insert_one = AsyncMock()
    mock.find_one = AsyncMock()
    mock.count_documents = AsyncMock()
    mock.create_indexes = AsyncMock()

    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=[])
    mock.find.return_value = cursor
    mock.cursor = cursor
    return mock


@pytest.fixture
def database(collection):
    db = MagicMock()
    db.__getitem__.return_value = collection
    return db


def _new_user(**overrides) -> NewUser:
    data = {"username": "alice_01", "password": "$2b$04$hash", "email": "a@b.com", "role": "customer"}
    data.update(overrides)
    return NewUser(**data)


# ============================================================================
# USER REPOSITORY
# ============================================================================


class TestUserRepository:
    """Tests for user persistence."""

    @pytest.mark.asyncio
    async def test_create_user_inserts_camel_case_document(self, database, collection):
        """Test the inserted document uses API field names and drops absent ones."""
        oid = ObjectId()
        collection.insert_one.return_value = MagicMock(inserted_id=oid)
        repo = UserRepository(database)

        user_id = await repo.create_user(_new_user(phone_number="555-123-4567"))

        assert user_id == str(oid)
        document = collection.insert_one.call_args.args[0]
        assert document["username"] == "alice_01"
        assert document["phoneNumber"] == "555-123-4567"
        assert "firstName" not in document
        assert "createdAt" in document

    @pytest.mark.asyncio
    async def test_duplicate_key_becomes_uniqueness_violation(self, database, collection):
        """Test a unique index rejection names the clashing field."""
        collection.insert_one.side_effect = DuplicateKeyError(
            "E11000 duplicate key error",
            code=11000,
            details={"keyPattern": {"email": 1}, "keyValue": {"email": "a@b.com"}},
        )
        repo = UserRepository(database)

        with pytest.raises(UniquenessViolation) as exc_info:
            await repo.create_user(_new_user())

        assert exc_info.value.fields == ["email"]
        assert exc_info.value.collection == "users"

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self, database, collection):
        """Test driver failures other than duplicates are not translated."""
        collection.insert_one.side_effect = RuntimeError("connection lost")
        repo = UserRepository(database)

        with pytest.raises(RuntimeError):
            await repo.create_user(_new_user())

    @pytest.mark.asyncio
    async def test_get_user_by_username(self, database, collection):
        """Test a found document becomes a record with a string id."""
        oid = ObjectId()
        collection.find_one.return_value = {
            "_id": oid,
            "username": "alice_01",
            "password": "$2b$04$hash",
            "email": "a@b.com",
            "role": "admin",
        }
        repo = UserRepository(database)

        user = await repo.get_user_by_username("alice_01")

        collection.find_one.assert_awaited_once_with({"username": "alice_01"})
        assert user.id == str(oid)
        assert user.role == "admin"

    @pytest.mark.asyncio
    async def test_record_without_role_defaults_to_customer(self, database, collection):
        """Test documents written before roles existed read as customers."""
        collection.find_one.return_value = {
            "_id": ObjectId(),
            "username": "alice_01",
            "password": "$2b$04$hash",
            "email": "a@b.com",
        }
        repo = UserRepository(database)

        user = await repo.get_user_by_username("alice_01")

        assert user.role == "customer"

    @pytest.mark.asyncio
    async def test_get_user_by_malformed_id(self, database, collection):
        """Test a malformed id returns None without querying."""
        repo = UserRepository(database)

        assert await repo.get_user_by_id("not-an-object-id") is None
        collection.find_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_ensure_indexes(self, database, collection):
        """Test unique indexes are requested on username and email."""
        repo = UserRepository(database)

        await repo.ensure_indexes()

        indexes = collection.create_indexes.call_args.args[0]
        specs = [index.document for index in indexes]
        assert {tuple(spec["key"].keys()) for spec in specs} == {("username",), ("email",)}
        assert all(spec["unique"] for spec in specs)


# ============================================================================
# PRODUCT AND ORDER REPOSITORIES
# ============================================================================


class TestProductRepository:
    """Tests for product persistence."""

    @pytest.mark.asyncio
    async def test_list_products_pages_in_insertion_order(self, database, collection):
        """Test the cursor is sorted by _id and sliced by skip and limit."""
        collection.cursor.to_list.return_value = [
            {"_id": ObjectId(), "name": "Shoe", "category": "footwear", "price": 9.5, "stock": 3},
        ]
        repo = ProductRepository(database)

        products = await repo.list_products(skip=5, limit=5)

        collection.find.assert_called_once_with({})
        collection.cursor.sort.assert_called_once_with("_id", 1)
        collection.cursor.skip.assert_called_once_with(5)
        collection.cursor.limit.assert_called_once_with(5)
        assert products[0].name == "Shoe"
        assert products[0].product_image is None

    @pytest.mark.asyncio
    async def test_create_product(self, database, collection):
        """Test product fields are stored under their API names."""
        collection.insert_one.return_value = MagicMock(inserted_id=ObjectId())
        repo = ProductRepository(database)

        await repo.create_product(NewProduct(
            name="Shoe", category="footwear", price=9.5, stock=3, product_image="uploads/x.png"
        ))

        document = collection.insert_one.call_args.args[0]
        assert document["productImage"] == "uploads/x.png"
        assert "description" not in document

    @pytest.mark.asyncio
    async def test_count_products(self, database, collection):
        collection.count_documents.return_value = 12
        repo = ProductRepository(database)

        assert await repo.count_products() == 12
        collection.count_documents.assert_awaited_once_with({})


class TestOrderRepository:
    """Tests for order persistence."""

    @pytest.mark.asyncio
    async def test_create_order_defaults(self, database, collection):
        """Test new orders are stored pending with an order date."""
        collection.insert_one.return_value = MagicMock(inserted_id=ObjectId())
        repo = OrderRepository(database)

        await repo.create_order(NewOrder(
            user_id="u1",
            products=[LineItem(product_id="p1", quantity=2)],
            shipping_address=ShippingAddress(postal_code="62701"),
            payment_method="card",
            total_amount=49.99,
        ))

        document = collection.insert_one.call_args.args[0]
        assert document["status"] == "pending"
        assert document["paymentStatus"] == "pending"
        assert document["totalAmount"] == 49.99
        assert document["products"] == [{"productId": "p1", "quantity": 2}]
        assert document["shippingAddress"] == {"postalCode": "62701"}
        assert "orderDate" in document

    @pytest.mark.asyncio
    async def test_list_and_count_filter_by_user(self, database, collection):
        """Test both queries are scoped to the requested user."""
        collection.count_documents.return_value = 0
        repo = OrderRepository(database)

        await repo.list_orders("u1", skip=0, limit=10)
        await repo.count_orders("u1")

        collection.find.assert_called_once_with({"userId": "u1"})
        collection.count_documents.assert_awaited_once_with({"userId": "u1"})


def test_to_object_id():
    """Test hex strings parse and anything else gives None."""
    oid = ObjectId()

    assert to_object_id(str(oid)) == oid
    assert to_object_id("xyz") is None
    assert to_object_id(None) is None
