"""
Shared repository plumbing for MongoDB collections.

Repositories own the translation from driver errors to domain outcomes:
a unique-index rejection surfaces as ``UniquenessViolation`` no matter how
the driver reports it.
"""

from typing import Any, Dict, List, Mapping, Optional

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

logger = structlog.get_logger(__name__)


class UniquenessViolation(Exception):
    """Insert rejected because a unique field value already exists."""

    def __init__(self, collection: str, fields: Optional[List[str]] = None):
        self.collection = collection
        self.fields = fields or []
        detail = ", ".join(self.fields) if self.fields else "unique field"
        super().__init__(f"Duplicate value for {detail} in '{collection}'")


def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse a hex ObjectId string, returning None when it is malformed."""
    # ObjectId(None) would mint a fresh id
    if not isinstance(value, str):
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class MongoRepository:
    """Base class for repositories bound to a single collection."""

    collection_name: str = ""

    def __init__(self, database: AsyncDatabase):
        """
        Initialize repository.

        Args:
            database: Async MongoDB database handle
        """
        self.database = database
        self.collection: AsyncCollection = database[self.collection_name]

    async def _insert(self, document: Dict[str, Any]) -> str:
        result = await self.collection.insert_one(document)
        return str(result.inserted_id)

    async def _find_page(
        self,
        query: Mapping[str, Any],
        skip: int,
        limit: int
    ) -> List[Dict[str, Any]]:
        cursor = (
            self.collection.find(query)
            .sort("_id", ASCENDING)
            .skip(skip)
            .limit(limit)
        )
        return await cursor.to_list(length=None)

    async def _count(self, query: Mapping[str, Any]) -> int:
        return await self.collection.count_documents(query)
