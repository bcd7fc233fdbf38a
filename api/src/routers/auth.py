"""
Authentication router for registration and login.

Provides REST API endpoints for:
- User registration with field validation
- User login returning a signed JWT

Both endpoints are public.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, status

from api.src.dependencies import get_auth_service, get_metrics
from api.src.errors import (
    ApiError,
    AuthError,
    UnexpectedError,
    ValidationError,
)
from api.src.models.common import ErrorResponse, is_missing
from api.src.models.user import (
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from api.src.services.auth_service import AuthService
from api.src.validation import validate_registration_input
from shared.metrics import HTTPMetrics

logger = structlog.get_logger(__name__)

LOGIN_FIELDS_REQUIRED_MESSAGE = "Username and password are required."

router = APIRouter(
    tags=["Authentication"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        500: {"model": ErrorResponse, "description": "Unexpected error"}
    }
)


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register User",
    description="""
    Create a customer account.

    **Request Body:**
    - username: 4-20 letters, digits or underscores (required)
    - password: 8+ characters with an uppercase letter, a digit and one of !@#$%^&* (required)
    - email: Email address (required)
    - firstName, lastName: Optional
    - phoneNumber: Optional, format 123-456-7890
    - dateOfBirth: Optional, format YYYY-MM-DD; user must be at least 13

    **Error Responses:**
    - 400: Missing field (string) or validation errors (array)
    - 409: Username or email already exists
    """,
    responses={
        409: {"model": ErrorResponse, "description": "Username or email already exists"}
    }
)
async def register(
    payload: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
    metrics: Optional[HTTPMetrics] = Depends(get_metrics)
) -> RegisterResponse:
    """
    Register a new user.

    Raises:
        ValidationError: Missing required fields or invalid values
        ConflictError: Username or email already taken
        UnexpectedError: Any other failure
    """
    if any(is_missing(value) for value in (payload.username, payload.password, payload.email)):
        logger.warning("registration_missing_fields")
        raise ValidationError()

    errors = validate_registration_input(payload.model_dump(by_alias=True))
    if errors:
        logger.warning("registration_invalid", username=payload.username, errors=errors)
        raise ValidationError(errors)

    try:
        user_id = await auth_service.register(payload)
    except ApiError:
        raise
    except Exception as e:
        logger.error("registration_error", error=str(e), username=payload.username, exc_info=True)
        raise UnexpectedError() from e

    if metrics:
        metrics.users_registered.inc()

    logger.info("user_registered", user_id=user_id, username=payload.username)
    return RegisterResponse(user_id=user_id)


@router.post(
    "/login",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    summary="User Login",
    description="""
    Authenticate user with username and password.

    Returns a JWT access token (1 hour by default) with the user id and role.

    **Error Responses:**
    - 400: Username or password missing
    - 401: Invalid credentials (same response for unknown users and wrong passwords)
    """,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"}
    }
)
async def login(
    payload: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    metrics: Optional[HTTPMetrics] = Depends(get_metrics)
) -> TokenResponse:
    """
    Authenticate user and return JWT token.

    Raises:
        ValidationError: Username or password missing
        AuthError: Unknown user or wrong password
        UnexpectedError: Any other failure
    """
    if is_missing(payload.username) or is_missing(payload.password):
        logger.warning("login_missing_fields")
        raise ValidationError(LOGIN_FIELDS_REQUIRED_MESSAGE)

    try:
        token_response = await auth_service.login(payload)
    except ApiError:
        raise
    except Exception as e:
        logger.error("login_error", error=str(e), username=payload.username, exc_info=True)
        raise UnexpectedError() from e

    if not token_response:
        if metrics:
            metrics.login_failures.inc()
        logger.warning("login_failed", username=payload.username)
        raise AuthError()

    return token_response
