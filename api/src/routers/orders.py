"""
Order router.

Provides REST API endpoints for:
- Placing an order
- Listing a user's orders page by page

``totalAmount`` is stored as supplied by the client; prices are not
looked up and the total is not recomputed.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, status

from api.src.dependencies import (
    PaginationParams,
    get_metrics,
    get_order_repository,
    get_pagination_params,
    get_write_caller,
)
from api.src.errors import (
    INVALID_PARAMETERS_MESSAGE,
    ForbiddenError,
    UnexpectedError,
    ValidationError,
)
from api.src.models.common import ErrorResponse, is_missing
from api.src.models.order import (
    NewOrder,
    OrderCreatedResponse,
    OrderCreateRequest,
    OrderPage,
)
from api.src.models.user import CurrentUser
from api.src.repositories.order_repo import OrderRepository
from shared.metrics import HTTPMetrics

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/orders",
    tags=["Orders"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        500: {"model": ErrorResponse, "description": "Unexpected error"}
    }
)


@router.post(
    "",
    response_model=OrderCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place Order",
    description="""
    Place an order.

    **Request Body:**
    - userId: Ordering user (required, not checked for existence)
    - products: Non-empty list of {productId, quantity >= 1} (required)
    - shippingAddress: {street, city, state, postalCode (required), country} (required)
    - paymentMethod: Required
    - totalAmount: Positive number, stored as supplied (required)

    New orders start with status and paymentStatus "pending".
    """,
    responses={
        401: {"model": ErrorResponse, "description": "Authentication required"},
        403: {"model": ErrorResponse, "description": "Order belongs to another user"}
    }
)
async def create_order(
    payload: OrderCreateRequest,
    caller: Optional[CurrentUser] = Depends(get_write_caller),
    order_repo: OrderRepository = Depends(get_order_repository),
    metrics: Optional[HTTPMetrics] = Depends(get_metrics)
) -> OrderCreatedResponse:
    """
    Place a new order.

    Raises:
        ValidationError: Missing required fields
        ForbiddenError: Write authorization enabled and the order is for another user
        UnexpectedError: Any other failure
    """
    required = (
        payload.user_id,
        payload.products,
        payload.shipping_address,
        payload.payment_method,
        payload.total_amount,
    )
    if any(is_missing(value) for value in required):
        logger.warning("order_missing_fields", user_id=payload.user_id)
        raise ValidationError()

    if caller is not None and caller.id != payload.user_id:
        logger.warning("order_create_forbidden", caller_id=caller.id, user_id=payload.user_id)
        raise ForbiddenError("Orders can only be placed for your own account.")

    order = NewOrder(
        user_id=payload.user_id,
        products=payload.products,
        shipping_address=payload.shipping_address,
        payment_method=payload.payment_method,
        total_amount=payload.total_amount,
    )

    try:
        order_id = await order_repo.create_order(order)
    except Exception as e:
        logger.error("order_create_error", error=str(e), user_id=payload.user_id, exc_info=True)
        raise UnexpectedError() from e

    if metrics:
        metrics.orders_placed.inc()

    return OrderCreatedResponse(order_id=order_id, status=order.status)


@router.get(
    "",
    response_model=OrderPage,
    status_code=status.HTTP_200_OK,
    summary="List Orders",
    description="""
    Get one page of a user's orders in insertion order.

    **Query Parameters:**
    - userId: Owner of the orders (required)
    - page: 1-based page number (default 1)
    - limit: Items per page (default 10, capped at the configured maximum)
    """
)
async def list_orders(
    user_id: Optional[str] = Query(None, alias="userId", description="Owner of the orders"),
    pagination: PaginationParams = Depends(get_pagination_params),
    order_repo: OrderRepository = Depends(get_order_repository)
) -> OrderPage:
    """
    List a user's orders with pagination.

    Raises:
        ValidationError: userId missing
        UnexpectedError: Any other failure
    """
    if is_missing(user_id):
        logger.warning("order_list_missing_user_id")
        raise ValidationError(INVALID_PARAMETERS_MESSAGE)

    try:
        orders = await order_repo.list_orders(user_id, pagination.skip, pagination.limit)
        total = await order_repo.count_orders(user_id)
    except Exception as e:
        logger.error("order_list_error", error=str(e), user_id=user_id, exc_info=True)
        raise UnexpectedError() from e

    return OrderPage(
        orders=orders,
        total=total,
        page=pagination.page,
        limit=pagination.limit
    )
