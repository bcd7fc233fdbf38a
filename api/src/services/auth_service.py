"""
Authentication service for registration, login, and JWT token management.

Provides:
- Password hashing and verification (passlib + bcrypt)
- JWT token creation and validation
- User registration and authentication
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from jose import JWTError, jwt
from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from api.src.config import Settings
from api.src.errors import ConflictError
from api.src.models.user import (
    CurrentUser,
    LoginRequest,
    NewUser,
    RegisterRequest,
    TokenPayload,
    TokenResponse,
    UserRecord,
)
from api.src.repositories.base import UniquenessViolation
from api.src.repositories.user_repo import UserRepository

logger = structlog.get_logger(__name__)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, user_repo: UserRepository, settings: Settings):
        """
        Initialize auth service.

        Args:
            user_repo: User repository
            settings: Application settings
        """
        self.user_repo = user_repo
        self.settings = settings

        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=settings.password_bcrypt_rounds
        )

    def hash_password(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password
        """
        try:
            hashed = self.pwd_context.hash(password)
            logger.debug("password_hashed")
            return hashed
        except Exception as e:
            logger.error("password_hash_failed", error=str(e))
            raise

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Args:
            plain_password: Plain text password
            hashed_password: Hashed password

        Returns:
            True if password matches, False otherwise (including unreadable hashes)
        """
        try:
            verified = self.pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError) as e:
            logger.warning("password_verify_failed", error=str(e))
            return False
        logger.debug("password_verified", verified=verified)
        return verified

    def create_access_token(
        self,
        user_id: str,
        role: str,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create JWT access token.

        Args:
            user_id: User ID
            role: User role
            expires_delta: Custom expiration time (optional)

        Returns:
            JWT token string
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=self.settings.jwt_access_token_expire_minutes)

        now = datetime.now(timezone.utc)
        expire = now + expires_delta

        payload = {
            "sub": user_id,
            "userId": user_id,
            "role": role,
            "exp": int(expire.timestamp()),
            "iat": int(now.timestamp())
        }

        token = jwt.encode(
            payload,
            self.settings.jwt_secret_key,
            algorithm=self.settings.jwt_algorithm
        )

        logger.info(
            "access_token_created",
            user_id=user_id,
            role=role,
            expires_in=expires_delta.total_seconds()
        )

        return token

    def decode_token(self, token: str) -> Optional[TokenPayload]:
        """
        Decode and validate JWT token.

        Args:
            token: JWT token string

        Returns:
            Token payload or None if invalid or expired
        """
        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret_key,
                algorithms=[self.settings.jwt_algorithm]
            )
        except JWTError as e:
            logger.warning("token_decode_failed", error=str(e))
            return None

        try:
            token_payload = TokenPayload.model_validate(payload)
        except ValueError as e:
            logger.warning("token_claims_invalid", error=str(e))
            return None

        logger.debug("token_decoded", user_id=token_payload.user_id)
        return token_payload

    async def register(self, request: RegisterRequest) -> str:
        """
        Create a user from an already validated registration request.

        Args:
            request: Registration fields

        Returns:
            Identifier of the new user

        Raises:
            ConflictError: If username or email is already taken
        """
        password_hash = await run_in_threadpool(self.hash_password, request.password)

        user = NewUser(
            username=request.username,
            password=password_hash,
            email=request.email,
            role=self.settings.default_user_role,
            first_name=request.first_name,
            last_name=request.last_name,
            phone_number=request.phone_number,
            date_of_birth=request.date_of_birth,
        )

        try:
            return await self.user_repo.create_user(user)
        except UniquenessViolation as e:
            logger.warning("registration_conflict", username=request.username, fields=e.fields)
            raise ConflictError() from e

    async def authenticate_user(self, login_request: LoginRequest) -> Optional[UserRecord]:
        """
        Authenticate user with username and password.

        Args:
            login_request: Login credentials

        Returns:
            User if authenticated, None otherwise
        """
        user = await self.user_repo.get_user_by_username(login_request.username)

        if not user:
            logger.warning("authentication_failed_user_not_found", username=login_request.username)
            return None

        verified = await run_in_threadpool(
            self.verify_password, login_request.password, user.password
        )
        if not verified:
            logger.warning("authentication_failed_invalid_password", username=login_request.username)
            return None

        logger.info("user_authenticated", user_id=user.id, username=user.username)
        return user

    async def login(self, login_request: LoginRequest) -> Optional[TokenResponse]:
        """
        Login user and create access token.

        Args:
            login_request: Login credentials

        Returns:
            Token response or None if authentication failed
        """
        user = await self.authenticate_user(login_request)

        if not user:
            return None

        token = self.create_access_token(user_id=user.id, role=user.role)

        logger.info("login_success", user_id=user.id, username=user.username)

        return TokenResponse(
            token=token,
            expires_in=self.settings.jwt_access_token_expire_seconds,
            user_id=user.id,
            role=user.role
        )

    async def get_current_user(self, token: str) -> Optional[CurrentUser]:
        """
        Get current user from JWT token.

        Args:
            token: JWT token string

        Returns:
            Current user or None if the token is invalid or the user is gone
        """
        payload = self.decode_token(token)

        if not payload:
            logger.warning("get_current_user_failed_invalid_token")
            return None

        user = await self.user_repo.get_user_by_id(payload.user_id)

        if not user:
            logger.warning("get_current_user_failed_user_not_found", user_id=payload.user_id)
            return None

        logger.debug("current_user_retrieved", user_id=user.id, role=user.role)
        return CurrentUser(id=user.id, role=user.role)
