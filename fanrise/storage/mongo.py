"""
MongoDB metadata storage.

Uses pymongo's asyncio client. Document ids are stored as `_id` and
mirrored in the `id` field so filters and sorts on `id` behave the same
as in the in-memory store.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any

from pymongo import AsyncMongoClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from fanrise.core.errors import ConflictError, StorageError
from fanrise.storage.base import IndexSpec, MetadataStorage, SortSpec

logger = logging.getLogger(__name__)


def _translate_errors(func):
    """Turn driver exceptions into the API error taxonomy."""

    @wraps(func)
    async def wrapper(self, collection: str, *args, **kwargs):
        try:
            return await func(self, collection, *args, **kwargs)
        except DuplicateKeyError as e:
            logger.info(f"Duplicate key in {collection}: {e.details}")
            raise ConflictError("Resource already exists") from e
        except PyMongoError as e:
            logger.exception(f"MongoDB operation on {collection} failed")
            raise StorageError() from e

    return wrapper


class MongoMetadataStorage(MetadataStorage):
    """Document storage backed by MongoDB."""

    def __init__(self, uri: str, database: str):
        self._client = AsyncMongoClient(uri, tz_aware=True)
        self._db = self._client[database]

    @_translate_errors
    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        await self._db[collection].replace_one(
            {"_id": id},
            {**data, "_id": id},
            upsert=True,
        )

    @_translate_errors
    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        return await self._db[collection].find_one({"_id": id})

    @_translate_errors
    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        return await self._db[collection].find_one(filters)

    @_translate_errors
    async def delete(self, collection: str, id: str) -> bool:
        result = await self._db[collection].delete_one({"_id": id})
        return result.deleted_count > 0

    @_translate_errors
    async def query(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
        sort: SortSpec | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        cursor = self._db[collection].find(filters or {})
        if sort:
            cursor = cursor.sort(sort)
        cursor = cursor.skip(offset).limit(limit)
        return await cursor.to_list(length=None)

    @_translate_errors
    async def count(self, collection: str, filters: dict[str, Any] | None = None) -> int:
        return await self._db[collection].count_documents(filters or {})

    @_translate_errors
    async def update(
        self,
        collection: str,
        id: str,
        updates: dict[str, Any],
        match: dict[str, Any] | None = None,
    ) -> bool:
        result = await self._db[collection].update_one(
            {**(match or {}), "_id": id},
            {"$set": updates},
        )
        return result.matched_count > 0

    @_translate_errors
    async def ensure_indexes(self, collection: str, indexes: list[IndexSpec]) -> None:
        for index in indexes:
            kwargs: dict[str, Any] = {"unique": index.unique}
            if index.name:
                kwargs["name"] = index.name
            await self._db[collection].create_index(index.keys, **kwargs)
        logger.info(f"Indexes ensured for {collection}")

    async def close(self) -> None:
        await self._client.close()
