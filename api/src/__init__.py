"""FastAPI service for the shop backend.

This package provides REST API endpoints for user registration and login,
the product catalog with image upload, and order placement.
"""

__version__ = "1.0.0"
