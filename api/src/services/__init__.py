"""Business logic services.

This package contains service classes that implement business logic,
orchestrate operations across repositories, and provide high-level
functionality to API endpoints.
"""

from api.src.services.auth_service import AuthService
from api.src.services.upload_service import ImageUploadService, StoredImage

__all__ = ["AuthService", "ImageUploadService", "StoredImage"]
