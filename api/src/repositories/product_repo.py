"""Product repository for the ``products`` collection."""

from typing import List

import structlog

from api.src.models.product import NewProduct, ProductRecord
from api.src.repositories.base import MongoRepository

logger = structlog.get_logger(__name__)


class ProductRepository(MongoRepository):
    """Repository for product database operations."""

    collection_name = "products"

    async def create_product(self, product: NewProduct) -> str:
        """
        Insert a new product.

        Args:
            product: Product fields, including the stored image path if any

        Returns:
            Identifier of the created product
        """
        try:
            product_id = await self._insert(product.to_document())
        except Exception as e:
            logger.error("product_create_failed", error=str(e), name=product.name)
            raise

        logger.info("product_created", product_id=product_id, name=product.name)
        return product_id

    async def list_products(self, skip: int, limit: int) -> List[ProductRecord]:
        """
        Get one page of products in insertion order.

        Args:
            skip: Number of products to skip
            limit: Maximum number of products to return

        Returns:
            Products on the page
        """
        try:
            documents = await self._find_page({}, skip, limit)
        except Exception as e:
            logger.error("product_list_failed", error=str(e), skip=skip, limit=limit)
            raise

        return [ProductRecord.from_document(doc) for doc in documents]

    async def count_products(self) -> int:
        """Count all products."""
        try:
            return await self._count({})
        except Exception as e:
            logger.error("product_count_failed", error=str(e))
            raise
