# users_api/db/user_store.py
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import BulkWriteError
from bson import ObjectId
from pydantic import ValidationError
from typing import List, Optional, Dict, Any, Mapping, Sequence
from datetime import datetime, timezone
import logging

from users_api.models.enums import SortOrder
from users_api.models.user import User, UserDocument

logger = logging.getLogger(__name__)


class UserStore:
    """Record store for user documents in a single MongoDB collection.

    Timestamps (``createdAt``/``updatedAt``) are owned here. Driver errors are
    not retried and propagate to the caller, except for the per-document
    failures of ``insert_many`` which are folded into its return count.
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def ensure_indexes(self) -> None:
        """Unique indexes on email and phone."""
        await self.collection.create_index("email", name="idx_user_email", unique=True)
        await self.collection.create_index("phone", name="idx_user_phone", unique=True)
        logger.info("Indexes 'idx_user_email' and 'idx_user_phone' ensured (unique).")

    async def find(
        self,
        query: Dict[str, Any],
        sort_by: str,
        sort: SortOrder,
        skip: int,
        limit: int,
    ) -> List[User]:
        users: List[User] = []
        logger.debug(f"Finding users query={query} sort={sort_by}:{sort.value} skip={skip} limit={limit}")
        cursor = self.collection.find(query, sort=[(sort_by, sort.direction)], skip=skip, limit=limit)
        async for doc in cursor:
            try:
                users.append(User(**doc))
            except ValidationError as validation_err:
                logger.error(f"Pydantic validation failed for user doc {doc.get('_id', 'UNKNOWN')}: {validation_err}")
        return users

    async def find_one_by(self, field: str, value: Any) -> Optional[User]:
        doc = await self.collection.find_one({field: value})
        return User(**doc) if doc else None

    async def insert_one(self, document: Mapping[str, Any]) -> User:
        now = datetime.now(timezone.utc)
        user_doc = UserDocument.model_validate(document).model_dump(by_alias=True)
        user_doc["createdAt"] = now
        user_doc["updatedAt"] = now

        result = await self.collection.insert_one(user_doc)
        created_doc = await self.collection.find_one({"_id": result.inserted_id})
        if created_doc is None:
            raise RuntimeError(f"User {result.inserted_id} not found after insert")
        logger.info(f"Inserted user {result.inserted_id}")
        return User(**created_doc)

    async def insert_many(self, documents: Sequence[Mapping[str, Any]]) -> int:
        """Unordered insert. Returns how many documents were actually stored.

        Rows that do not match the storage schema are skipped, and rows the
        server rejects (e.g. duplicate keys) do not stop the others.
        """
        now = datetime.now(timezone.utc)
        valid_docs: List[Dict[str, Any]] = []
        for index, row in enumerate(documents):
            try:
                user_doc = UserDocument.model_validate(row).model_dump(by_alias=True)
            except ValidationError as e:
                logger.warning(f"Skipping row {index}: {e.error_count()} validation error(s)")
                continue
            user_doc["createdAt"] = now
            user_doc["updatedAt"] = now
            valid_docs.append(user_doc)

        if not valid_docs:
            return 0

        try:
            result = await self.collection.insert_many(valid_docs, ordered=False)
            inserted = len(result.inserted_ids)
        except BulkWriteError as e:
            inserted = e.details.get("nInserted", 0)
            logger.warning(f"Bulk insert rejected {len(e.details.get('writeErrors', []))} document(s)")
        logger.info(f"Bulk inserted {inserted}/{len(documents)} user(s)")
        return inserted

    async def update_by_id(self, user_id: ObjectId, changes: Mapping[str, Any]) -> Optional[User]:
        """Sets ``changes`` on the user and returns it after the update, or None if absent."""
        update_data = dict(changes)
        update_data.pop("_id", None)
        update_data.pop("createdAt", None)
        update_data["updatedAt"] = datetime.now(timezone.utc)

        updated_doc = await self.collection.find_one_and_update(
            {"_id": user_id},
            {"$set": update_data},
            return_document=ReturnDocument.AFTER,
        )
        if updated_doc is None:
            logger.warning(f"User {user_id} not found for update.")
            return None
        return User(**updated_doc)
