"""Pydantic models for users, products, and orders."""

from api.src.models.common import ErrorResponse, ShopModel
from api.src.models.order import NewOrder, OrderCreateRequest, OrderRecord
from api.src.models.product import NewProduct, ProductRecord
from api.src.models.user import CurrentUser, NewUser, UserRecord

__all__ = [
    "CurrentUser",
    "ErrorResponse",
    "NewOrder",
    "NewProduct",
    "NewUser",
    "OrderCreateRequest",
    "OrderRecord",
    "ProductRecord",
    "ShopModel",
    "UserRecord",
]
