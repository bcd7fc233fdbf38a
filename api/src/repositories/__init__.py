"""MongoDB repositories for users, products, and orders."""

from api.src.repositories.base import UniquenessViolation
from api.src.repositories.order_repo import OrderRepository
from api.src.repositories.product_repo import ProductRepository
from api.src.repositories.user_repo import UserRepository

__all__ = [
    "OrderRepository",
    "ProductRepository",
    "UniquenessViolation",
    "UserRepository",
]
