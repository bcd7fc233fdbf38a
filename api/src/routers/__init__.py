"""API routers for authentication, products, and orders."""

from api.src.routers import auth, orders, products

__all__ = ["auth", "orders", "products"]
