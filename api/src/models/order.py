"""Order models."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import Field

from api.src.models.common import DocumentRecord, ShopModel


class OrderStatus(str, Enum):
    """Fulfilment status. Set once on creation."""
    PENDING = "pending"


class PaymentStatus(str, Enum):
    """Payment status. Set once on creation."""
    PENDING = "pending"


class LineItem(ShopModel):
    """A product identifier and the quantity ordered."""
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class ShippingAddress(ShopModel):
    """Shipping address; only the postal code is mandatory."""
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: str = Field(..., min_length=1)
    country: Optional[str] = None


class OrderCreateRequest(ShopModel):
    """
    Order placement request.

    Top-level fields are optional here so that a missing field yields the
    generic invalid-input message rather than a schema error.
    ``total_amount`` is taken from the client as-is.
    """
    user_id: Optional[str] = None
    products: Optional[List[LineItem]] = None
    shipping_address: Optional[ShippingAddress] = None
    payment_method: Optional[str] = None
    total_amount: Optional[float] = Field(None, gt=0, allow_inf_nan=False)

    model_config = {
        "json_schema_extra": {
            "example": {
                "userId": "665f1b2c9d3e4a0012345678",
                "products": [{"productId": "665f1b2c9d3e4a0087654321", "quantity": 1}],
                "shippingAddress": {
                    "street": "1 Main St",
                    "city": "Springfield",
                    "state": "IL",
                    "postalCode": "62701",
                    "country": "US"
                },
                "paymentMethod": "card",
                "totalAmount": 49.99
            }
        }
    }


class NewOrder(ShopModel):
    """Order document as inserted."""
    user_id: str
    products: List[LineItem]
    shipping_address: ShippingAddress
    payment_method: str
    total_amount: float = Field(..., allow_inf_nan=False)
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    order_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"use_enum_values": True, "validate_default": True}


class OrderRecord(DocumentRecord, NewOrder):
    """Order document as read back from MongoDB."""


class OrderCreatedResponse(ShopModel):
    """Order placement result."""
    order_id: str
    status: str
    message: str = "Order placed successfully."


class OrderPage(ShopModel):
    """One page of a user's orders."""
    orders: List[OrderRecord]
    total: int
    page: int
    limit: int
