"""
Unit tests for the authentication service.

Tests cover:
- Password hashing with bcrypt (hashes never equal the plain text)
- JWT creation, decoding, expiry and signature checks
- Registration conflicts
- Login with unknown users and wrong passwords
- Resolving the current user from a token
"""

from datetime import timedelta

import pytest
from jose import jwt

from api.src.errors import ConflictError
from api.src.models.user import LoginRequest, RegisterRequest
from api.src.services.auth_service import AuthService


@pytest.fixture
def auth_service(user_repo, settings) -> AuthService:
    return AuthService(user_repo, settings)


def _register_request(**overrides) -> RegisterRequest:
    data = {"username": "alice_01", "password": "Str0ng!Pass", "email": "a@b.com"}
    data.update(overrides)
    return RegisterRequest(**data)


# ============================================================================
# PASSWORD HASHING
# ============================================================================


class TestPasswordHashing:
    """Tests for bcrypt hashing."""

    def test_hash_differs_from_plain_text(self, auth_service):
        """Test the stored value is a bcrypt hash, not the password."""
        hashed = auth_service.hash_password("Str0ng!Pass")

        assert hashed != "Str0ng!Pass"
        assert hashed.startswith("$2")

    def test_hashes_are_salted(self, auth_service):
        """Test hashing the same password twice gives different hashes."""
        assert auth_service.hash_password("Str0ng!Pass") != auth_service.hash_password("Str0ng!Pass")

    def test_verify_password(self, auth_service):
        """Test verification accepts the right password and rejects others."""
        hashed = auth_service.hash_password("Str0ng!Pass")

        assert auth_service.verify_password("Str0ng!Pass", hashed) is True
        assert auth_service.verify_password("Wr0ng!Pass", hashed) is False

    def test_verify_against_unreadable_hash(self, auth_service):
        """Test a value that is not a bcrypt hash never verifies."""
        assert auth_service.verify_password("Str0ng!Pass", "Str0ng!Pass") is False


# ============================================================================
# JWT TOKENS
# ============================================================================


class TestAccessTokens:
    """Tests for JWT creation and validation."""

    def test_token_claims(self, auth_service, settings):
        """Test the token carries user id, role and a one hour expiry."""
        token = auth_service.create_access_token(user_id="u1", role="customer")

        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])

        assert claims["userId"] == "u1"
        assert claims["sub"] == "u1"
        assert claims["role"] == "customer"
        assert abs(claims["exp"] - claims["iat"] - 3600) <= 1

    def test_decode_round_trip(self, auth_service):
        """Test a freshly issued token decodes to its payload."""
        token = auth_service.create_access_token(user_id="u1", role="admin")

        payload = auth_service.decode_token(token)

        assert payload is not None
        assert payload.user_id == "u1"
        assert payload.role == "admin"

    def test_expired_token_rejected(self, auth_service):
        """Test a token past its expiry does not decode."""
        token = auth_service.create_access_token(
            user_id="u1", role="customer", expires_delta=timedelta(seconds=-10)
        )

        assert auth_service.decode_token(token) is None

    def test_foreign_signature_rejected(self, auth_service):
        """Test a token signed with another secret does not decode."""
        forged = jwt.encode(
            {"sub": "u1", "userId": "u1", "role": "admin", "exp": 4102444800, "iat": 0},
            "another-secret-key-that-is-long-enough-000",
            algorithm="HS256",
        )

        assert auth_service.decode_token(forged) is None

    def test_missing_claims_rejected(self, auth_service, settings):
        """Test a correctly signed token without the user claims is refused."""
        token = jwt.encode({"sub": "u1", "exp": 4102444800}, settings.jwt_secret_key, algorithm="HS256")

        assert auth_service.decode_token(token) is None

    def test_garbage_token_rejected(self, auth_service):
        """Test a non-JWT string does not decode."""
        assert auth_service.decode_token("not-a-token") is None


# ============================================================================
# REGISTRATION AND LOGIN
# ============================================================================


class TestRegistration:
    """Tests for user creation."""

    @pytest.mark.asyncio
    async def test_register_stores_hash_and_default_role(self, auth_service, user_repo):
        """Test the user is stored with a hashed password and the customer role."""
        user_id = await auth_service.register(_register_request(firstName="Alice"))

        stored = await user_repo.get_user_by_id(user_id)
        assert stored.username == "alice_01"
        assert stored.password != "Str0ng!Pass"
        assert stored.role == "customer"
        assert stored.first_name == "Alice"

    @pytest.mark.asyncio
    async def test_duplicate_username_conflicts(self, auth_service):
        """Test a second registration with the same username raises ConflictError."""
        await auth_service.register(_register_request())

        with pytest.raises(ConflictError):
            await auth_service.register(_register_request(email="other@b.com"))

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, auth_service):
        """Test a second registration with the same email raises ConflictError."""
        await auth_service.register(_register_request())

        with pytest.raises(ConflictError):
            await auth_service.register(_register_request(username="bob_02"))


class TestLogin:
    """Tests for credential checks and token issuance."""

    @pytest.mark.asyncio
    async def test_login_success(self, auth_service, settings):
        """Test correct credentials return a token for the user."""
        user_id = await auth_service.register(_register_request())

        response = await auth_service.login(LoginRequest(username="alice_01", password="Str0ng!Pass"))

        assert response is not None
        assert response.user_id == user_id
        assert response.role == "customer"
        assert response.expires_in == settings.jwt_access_token_expire_seconds
        assert auth_service.decode_token(response.token).user_id == user_id

    @pytest.mark.asyncio
    async def test_wrong_password(self, auth_service):
        """Test a wrong password yields no token."""
        await auth_service.register(_register_request())

        assert await auth_service.login(LoginRequest(username="alice_01", password="Wr0ng!Pass")) is None

    @pytest.mark.asyncio
    async def test_unknown_user(self, auth_service):
        """Test an unknown username yields no token."""
        assert await auth_service.login(LoginRequest(username="ghost", password="Str0ng!Pass")) is None


class TestCurrentUser:
    """Tests for resolving callers from tokens."""

    @pytest.mark.asyncio
    async def test_current_user_from_token(self, auth_service):
        """Test a valid token for an existing user resolves to that user."""
        user_id = await auth_service.register(_register_request())
        token = auth_service.create_access_token(user_id=user_id, role="customer")

        current = await auth_service.get_current_user(token)

        assert current.id == user_id
        assert current.has_role("customer")
        assert not current.has_role("admin")

    @pytest.mark.asyncio
    async def test_token_for_deleted_user(self, auth_service):
        """Test a valid token whose user does not exist resolves to None."""
        token = auth_service.create_access_token(user_id="665f1b2c9d3e4a0012345678", role="admin")

        assert await auth_service.get_current_user(token) is None
