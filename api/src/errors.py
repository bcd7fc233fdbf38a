"""
API error taxonomy.

Every failure a route can report maps to one of these classes. The
exception handlers in ``api.src.main`` render them as
``{"error": <message>}`` with the class status code.
"""

from typing import Any, List, Mapping, Optional, Sequence, Union

from fastapi import status

ErrorDetail = Union[str, List[str]]

INVALID_INPUT_MESSAGE = "Invalid input. Please check the provided data."
INVALID_PARAMETERS_MESSAGE = "Invalid input. Please check the provided parameters."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


class ApiError(Exception):
    """Base class for errors that become an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = UNEXPECTED_ERROR_MESSAGE

    def __init__(self, message: Optional[ErrorDetail] = None):
        self.message: ErrorDetail = message if message is not None else self.default_message
        super().__init__(self.message)

    def to_content(self) -> dict:
        """Response body for this error."""
        return {"error": self.message}


class ValidationError(ApiError):
    """Missing or malformed client input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = INVALID_INPUT_MESSAGE


class UploadError(ValidationError):
    """Rejected product image."""


class AuthError(ApiError):
    """Unknown user, wrong password, or missing/invalid token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid username or password."


class ForbiddenError(ApiError):
    """Authenticated caller lacks the role or ownership required."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to perform this action."


class ConflictError(ApiError):
    """Unique field already taken."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Username or email already exists."


class UnexpectedError(ApiError):
    """Anything else; details are logged, never returned."""


def format_error_details(errors: Sequence[Mapping[str, Any]]) -> List[str]:
    """
    Flatten pydantic/FastAPI error entries into readable messages.

    ``{"loc": ("body", "shippingAddress", "postalCode"), "msg": "Field required"}``
    becomes ``"shippingAddress.postalCode: Field required"``.
    """
    messages: List[str] = []
    for error in errors:
        location = [
            str(part) for part in error.get("loc", ())
            if part not in ("body", "query", "path", "header")
        ]
        message = error.get("msg", "Invalid value")
        messages.append(f"{'.'.join(location)}: {message}" if location else message)
    return messages
