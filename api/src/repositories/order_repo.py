"""
Order repository for the ``orders`` collection.

Orders reference users and products by identifier only; neither is
checked for existence.
"""

from typing import List

import structlog

from api.src.models.order import NewOrder, OrderRecord
from api.src.repositories.base import MongoRepository

logger = structlog.get_logger(__name__)


class OrderRepository(MongoRepository):
    """Repository for order database operations."""

    collection_name = "orders"

    async def create_order(self, order: NewOrder) -> str:
        """
        Insert a new order.

        Args:
            order: Order document with default statuses and order date

        Returns:
            Identifier of the created order
        """
        try:
            order_id = await self._insert(order.to_document())
        except Exception as e:
            logger.error("order_create_failed", error=str(e), user_id=order.user_id)
            raise

        logger.info(
            "order_created",
            order_id=order_id,
            user_id=order.user_id,
            items=len(order.products),
            total_amount=order.total_amount
        )
        return order_id

    async def list_orders(self, user_id: str, skip: int, limit: int) -> List[OrderRecord]:
        """
        Get one page of a user's orders in insertion order.

        Args:
            user_id: Owner of the orders
            skip: Number of orders to skip
            limit: Maximum number of orders to return

        Returns:
            Orders on the page
        """
        try:
            documents = await self._find_page({"userId": user_id}, skip, limit)
        except Exception as e:
            logger.error("order_list_failed", error=str(e), user_id=user_id)
            raise

        return [OrderRecord.from_document(doc) for doc in documents]

    async def count_orders(self, user_id: str) -> int:
        """Count all orders placed by ``user_id``."""
        try:
            return await self._count({"userId": user_id})
        except Exception as e:
            logger.error("order_count_failed", error=str(e), user_id=user_id)
            raise
