# users_api/services/user_service.py
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from bson import ObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

from users_api.core.errors import (
    EmailConflictError,
    PhoneConflictError,
    UserConflictError,
    UserImportError,
    UserNotFoundError,
)
from users_api.db.user_store import UserStore
from users_api.models.enums import SortOrder
from users_api.models.user import User, UserCreate, UserUpdate
from users_api.services.csv_ingestion import USER_CSV_HEADER_MAP, parse_csv

logger = logging.getLogger(__name__)

# Matches documents written before isDeleted existed as well as live ones
NOT_DELETED_FILTER: Dict[str, Any] = {
    "$or": [{"isDeleted": False}, {"isDeleted": {"$exists": False}}]
}


def _conflict_from_duplicate_key(error: DuplicateKeyError, user_in: UserCreate) -> UserConflictError:
    key_pattern = (error.details or {}).get("keyPattern") or {}
    if "phone" in key_pattern or "idx_user_phone" in str(error):
        return PhoneConflictError(user_in.phone)
    return EmailConflictError(user_in.email)


@dataclass(frozen=True)
class BulkInsertResult:
    success_count: int
    failed_count: int


class UserService:
    """Business rules for user records on top of a ``UserStore``."""

    def __init__(self, store: UserStore):
        self.store = store

    async def create_user(self, user_in: UserCreate) -> User:
        """
        Creates a user after checking that the email is not taken.

        The check and the insert are separate round-trips; the unique index on
        email catches a concurrent create that slips between them.
        """
        existing = await self.store.find_one_by("email", user_in.email)
        if existing is not None:
            logger.warning(f"Attempted to create a user with an existing email: {user_in.email}")
            raise EmailConflictError(user_in.email)

        user_doc = user_in.model_dump(by_alias=True)
        user_doc["isDeleted"] = False
        try:
            created = await self.store.insert_one(user_doc)
        except DuplicateKeyError as e:
            logger.warning(f"Duplicate key on insert for email {user_in.email}: {e.details}")
            raise _conflict_from_duplicate_key(e, user_in) from e
        logger.info(f"User created: {created.id}")
        return created

    async def get_users(
        self,
        limit: int,
        page: int,
        sort: SortOrder,
        sort_by: str,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[User]:
        """Returns one page of users that are not soft-deleted. ``page`` is 1-based.

        Filter keys starting with ``$`` are query operators, not fields, and are
        dropped so they cannot replace the soft-delete condition.
        """
        field_filters = {}
        for key, value in (filters or {}).items():
            if key.startswith("$"):
                logger.warning(f"Ignoring operator filter key '{key}'")
                continue
            field_filters[key] = value
        query: Dict[str, Any] = {**NOT_DELETED_FILTER, **field_filters}
        return await self.store.find(
            query,
            sort_by=sort_by,
            sort=sort,
            skip=(page - 1) * limit,
            limit=limit,
        )

    async def update_user(self, user_id: ObjectId, user_in: UserUpdate) -> User:
        changes = user_in.model_dump(by_alias=True, exclude_unset=True)
        user = await self.store.update_by_id(user_id, changes)
        if user is None:
            raise UserNotFoundError(str(user_id))
        logger.info(f"User {user_id} updated fields: {sorted(changes)}")
        return user

    async def delete_user(self, user_id: ObjectId) -> User:
        """Soft delete: the record stays in storage with isDeleted=true."""
        user = await self.store.update_by_id(user_id, {"isDeleted": True})
        if user is None:
            raise UserNotFoundError(str(user_id))
        logger.info(f"User {user_id} soft-deleted")
        return user

    async def bulk_insert_users(self, records: Sequence[Mapping[str, Any]]) -> BulkInsertResult:
        if not records:
            return BulkInsertResult(success_count=0, failed_count=0)
        try:
            success_count = await self.store.insert_many(records)
        except PyMongoError as e:
            logger.error(f"Bulk insert of {len(records)} user(s) failed: {e}", exc_info=True)
            raise UserImportError(e) from e
        return BulkInsertResult(
            success_count=success_count,
            failed_count=len(records) - success_count,
        )

    async def import_users_from_csv(self, path: Union[str, Path]) -> BulkInsertResult:
        records = await asyncio.to_thread(lambda: list(parse_csv(path, USER_CSV_HEADER_MAP)))
        logger.info(f"Importing {len(records)} user row(s) from {Path(path).name}")
        return await self.bulk_insert_users(records)
