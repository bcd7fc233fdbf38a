"""
User and authentication models.

Provides Pydantic schemas for:
- Registration and login requests
- Stored user documents
- JWT token payloads and responses
- The authenticated caller
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import Field

from api.src.models.common import DocumentRecord, ShopModel


# ============================================================================
# Request Models
# ============================================================================


class RegisterRequest(ShopModel):
    """
    Registration request schema.

    Every field is optional at the schema level; required fields and
    format rules are checked by ``validate_registration_input`` so that
    all problems are reported together.
    """
    username: Optional[str] = None
    password: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    date_of_birth: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "username": "alice_01",
                "password": "Str0ng!Pass",
                "email": "alice@example.com",
                "firstName": "Alice",
                "phoneNumber": "555-123-4567",
                "dateOfBirth": "1990-04-12"
            }
        }
    }


class LoginRequest(ShopModel):
    """Login request schema."""
    username: Optional[str] = None
    password: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "username": "alice_01",
                "password": "Str0ng!Pass"
            }
        }
    }


# ============================================================================
# Stored Documents
# ============================================================================


class NewUser(ShopModel):
    """User document as inserted; ``password`` always holds a bcrypt hash."""
    username: str
    password: str
    email: str
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    date_of_birth: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UserRecord(DocumentRecord, NewUser):
    """User document as read back from MongoDB."""
    role: str = "customer"


# ============================================================================
# Responses and Tokens
# ============================================================================


class RegisterResponse(ShopModel):
    """Registration result."""
    user_id: str
    message: str = "Registered successfully."


class TokenResponse(ShopModel):
    """JWT token response schema."""
    token: str = Field(..., description="Signed JWT access token")
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user_id: str
    role: str


class TokenPayload(ShopModel):
    """Decoded JWT claims."""
    sub: str
    user_id: str
    role: str
    exp: int
    iat: int


class CurrentUser(ShopModel):
    """Caller identity taken from a verified token."""
    id: str
    role: str

    def has_role(self, role: str) -> bool:
        """Check whether the caller holds ``role``."""
        return self.role == role
