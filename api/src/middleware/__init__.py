"""FastAPI middleware components.

This package contains custom middleware for request/response logging
and metrics.
"""

from api.src.middleware.request_logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
