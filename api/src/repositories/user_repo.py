"""
User repository for database operations.

Provides async create and lookup operations for users on the ``users``
collection. Username and email uniqueness is enforced by unique indexes.
"""

from typing import Optional

import structlog
from pymongo import ASCENDING, IndexModel
from pymongo.errors import DuplicateKeyError

from api.src.models.user import NewUser, UserRecord
from api.src.repositories.base import MongoRepository, UniquenessViolation, to_object_id

logger = structlog.get_logger(__name__)


class UserRepository(MongoRepository):
    """Repository for user database operations."""

    collection_name = "users"

    async def ensure_indexes(self) -> None:
        """Create the unique indexes backing username and email uniqueness."""
        await self.collection.create_indexes([
            IndexModel([("username", ASCENDING)], unique=True, name="uniq_username"),
            IndexModel([("email", ASCENDING)], unique=True, name="uniq_email"),
        ])
        logger.info("user_indexes_ensured", collection=self.collection_name)

    async def create_user(self, user: NewUser) -> str:
        """
        Insert a new user.

        Args:
            user: User document with an already hashed password

        Returns:
            Identifier of the created user

        Raises:
            UniquenessViolation: If username or email already exists
        """
        try:
            user_id = await self._insert(user.to_document())
        except DuplicateKeyError as e:
            fields = sorted((e.details or {}).get("keyPattern", {}).keys())
            logger.warning(
                "user_already_exists",
                username=user.username,
                fields=fields
            )
            raise UniquenessViolation(self.collection_name, fields) from e
        except Exception as e:
            logger.error("user_create_failed", error=str(e), username=user.username)
            raise

        logger.info("user_created", user_id=user_id, username=user.username)
        return user_id

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        """
        Get user by username.

        Args:
            username: Username

        Returns:
            User or None if not found
        """
        try:
            document = await self.collection.find_one({"username": username})
        except Exception as e:
            logger.error("user_get_by_username_failed", error=str(e), username=username)
            raise

        if not document:
            logger.debug("user_not_found", username=username)
            return None

        return UserRecord.from_document(document)

    async def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        """
        Get user by ID.

        Args:
            user_id: Hex ObjectId string

        Returns:
            User or None if not found or the id is malformed
        """
        object_id = to_object_id(user_id)
        if object_id is None:
            logger.debug("user_id_malformed", user_id=user_id)
            return None

        try:
            document = await self.collection.find_one({"_id": object_id})
        except Exception as e:
            logger.error("user_get_by_id_failed", error=str(e), user_id=user_id)
            raise

        if not document:
            logger.debug("user_not_found", user_id=user_id)
            return None

        return UserRecord.from_document(document)
