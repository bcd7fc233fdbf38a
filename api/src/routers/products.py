"""
Product catalog router.

Provides REST API endpoints for:
- Creating a product with an optional image (multipart form)
- Listing products page by page
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.src.config import Settings
from api.src.dependencies import (
    PaginationParams,
    get_metrics,
    get_pagination_params,
    get_product_repository,
    get_settings_dependency,
    get_upload_service,
    get_write_caller,
)
from api.src.errors import (
    ApiError,
    ForbiddenError,
    UnexpectedError,
    ValidationError,
    format_error_details,
)
from api.src.models.common import ErrorResponse, is_missing
from api.src.models.product import (
    NO_IMAGE_MESSAGE,
    NewProduct,
    ProductCreatedResponse,
    ProductPage,
)
from api.src.models.user import CurrentUser
from api.src.repositories.product_repo import ProductRepository
from api.src.services.upload_service import ImageUploadService, StoredImage
from shared.metrics import HTTPMetrics

logger = structlog.get_logger(__name__)

PRODUCT_FIELDS = ("name", "category", "price", "description", "stock")
REQUIRED_PRODUCT_FIELDS = ("name", "category", "price", "stock")

router = APIRouter(
    prefix="/products",
    tags=["Products"],
    responses={
        500: {"model": ErrorResponse, "description": "Unexpected error"}
    }
)


def _text_fields(form) -> Dict[str, Optional[str]]:
    """Text values of the product fields; file parts count as absent."""
    fields: Dict[str, Optional[str]] = {}
    for name in PRODUCT_FIELDS:
        value: Any = form.get(name)
        fields[name] = value if isinstance(value, str) else None
    return fields


@router.post(
    "",
    response_model=ProductCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Product",
    description="""
    Create a product from a multipart form.

    **Form Fields:**
    - name, category, price, stock: Required
    - description: Optional
    - productImage: Optional image file (.jpg, .jpeg, .png, .gif; max 2 MB)

    **Error Responses:**
    - 400: Missing or invalid field, or rejected image
    - 401/403: Only when write authorization is enabled
    """,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or image"},
        401: {"model": ErrorResponse, "description": "Authentication required"},
        403: {"model": ErrorResponse, "description": "Admin role required"}
    }
)
async def create_product(
    request: Request,
    caller: Optional[CurrentUser] = Depends(get_write_caller),
    settings: Settings = Depends(get_settings_dependency),
    product_repo: ProductRepository = Depends(get_product_repository),
    upload_service: ImageUploadService = Depends(get_upload_service),
    metrics: Optional[HTTPMetrics] = Depends(get_metrics)
) -> ProductCreatedResponse:
    """
    Create a product, storing its image first when one is attached.

    Raises:
        ForbiddenError: Write authorization enabled and caller is not an admin
        ValidationError: Missing/invalid fields or rejected image
        UnexpectedError: Any other failure
    """
    if caller is not None and not caller.has_role(settings.admin_role):
        logger.warning("product_create_forbidden", user_id=caller.id, role=caller.role)
        raise ForbiddenError("Admin role required.")

    stored: Optional[StoredImage] = None

    try:
        async with request.form() as form:
            fields = _text_fields(form)

            if any(is_missing(fields[name]) for name in REQUIRED_PRODUCT_FIELDS):
                logger.warning("product_missing_fields")
                raise ValidationError()

            try:
                product = NewProduct(
                    name=fields["name"],
                    category=fields["category"],
                    price=fields["price"],
                    description=fields["description"] or None,
                    stock=fields["stock"],
                )
            except PydanticValidationError as e:
                messages = format_error_details(e.errors())
                logger.warning("product_invalid_fields", errors=messages)
                raise ValidationError(messages) from e

            image = upload_service.extract_image(form)
            if image is not None:
                stored = await upload_service.save(image)
                product.product_image = stored.relative_path

            product_id = await product_repo.create_product(product)

    except (ApiError, StarletteHTTPException):
        raise
    except Exception as e:
        if stored is not None:
            await upload_service.discard(stored)
        logger.error("product_create_error", error=str(e), exc_info=True)
        raise UnexpectedError() from e

    if metrics and stored is not None:
        metrics.images_uploaded.inc()

    return ProductCreatedResponse(
        product_id=product_id,
        product_image=product.product_image or NO_IMAGE_MESSAGE
    )


@router.get(
    "",
    response_model=ProductPage,
    status_code=status.HTTP_200_OK,
    summary="List Products",
    description="""
    Get one page of products in insertion order.

    **Query Parameters:**
    - page: 1-based page number (default 1)
    - limit: Items per page (default 10, capped at the configured maximum)
    """
)
async def list_products(
    pagination: PaginationParams = Depends(get_pagination_params),
    product_repo: ProductRepository = Depends(get_product_repository)
) -> ProductPage:
    """
    List products with pagination.

    Raises:
        UnexpectedError: Any failure
    """
    try:
        products = await product_repo.list_products(pagination.skip, pagination.limit)
        total = await product_repo.count_products()
    except Exception as e:
        logger.error("product_list_error", error=str(e), exc_info=True)
        raise UnexpectedError() from e

    return ProductPage(
        products=products,
        total=total,
        page=pagination.page,
        limit=pagination.limit
    )
