"""Product catalog models."""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import Field

from api.src.models.common import DocumentRecord, ShopModel

NO_IMAGE_MESSAGE = "No image uploaded"


class NewProduct(ShopModel):
    """Product fields accepted on creation."""
    name: str = Field(..., min_length=1, description="Product name")
    category: str = Field(..., min_length=1, description="Product category")
    price: float = Field(..., ge=0, allow_inf_nan=False, description="Unit price")
    description: Optional[str] = Field(None, description="Product description")
    stock: int = Field(..., ge=0, description="Units in stock")
    product_image: Optional[str] = Field(
        None,
        description="Relative path of the uploaded image"
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ProductRecord(DocumentRecord, NewProduct):
    """Product document as read back from MongoDB."""


class ProductCreatedResponse(ShopModel):
    """Product creation result."""
    product_id: str
    message: str = "Product added successfully"
    product_image: str = NO_IMAGE_MESSAGE


class ProductPage(ShopModel):
    """One page of the product catalog."""
    products: List[ProductRecord]
    total: int
    page: int
    limit: int
