"""
Thin repository layer over motor collections.

Engines never touch a collection directly; they go through these classes so the
status compare-and-set lives in exactly one place.
"""

import functools
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from exceptions import PersistenceError
from logging_config import get_logger

logger = get_logger("repository")


def translate_driver_errors(func):
    """Re-raise driver failures as PersistenceError, keeping the cause."""
    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except PyMongoError as e:
            logger.error(
                f"{self.entity_name} store operation '{func.__name__}' failed: {e}",
                exc_info=True,
                extra={"data": {"collection": self.entity_name, "operation": func.__name__}}
            )
            raise PersistenceError(f"Failed to access {self.entity_name.lower()} store") from e
    return wrapper


class MongoRepository:
    entity_name = "Entity"
    # Fields callers may never change through update()
    immutable_fields = ("id",)

    def __init__(self, collection):
        self._collection = collection

    @translate_driver_errors
    async def find_by_id(self, entity_id: str) -> Optional[Dict[str, Any]]:
        return await self._collection.find_one({"id": entity_id}, {"_id": 0})

    @translate_driver_errors
    async def find_many(
        self,
        query: Dict[str, Any],
        page: int = 1,
        limit: int = 20,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[Dict[str, Any]], int]:
        skip = (page - 1) * limit
        direction = ASCENDING if sort_order == "asc" else DESCENDING
        cursor = self._collection.find(
            query,
            {"_id": 0},
            sort=[(sort_by, direction)],
            skip=skip,
            limit=limit,
        )
        items = await cursor.to_list(length=limit)
        total = await self._collection.count_documents(query)
        return items, total

    @translate_driver_errors
    async def create(self, document: Dict[str, Any]) -> Dict[str, Any]:
        # insert_one adds _id to the dict it is given
        await self._collection.insert_one(dict(document))
        return document

    @translate_driver_errors
    async def update(
        self,
        entity_id: str,
        fields: Dict[str, Any],
        expected_status: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Apply ``fields`` in one atomic write and return the updated document.

        When ``expected_status`` is given the write only happens if the stored
        status still equals it; ``None`` is returned if it did not match (or
        the id is unknown).
        """
        blocked = [f for f in self.immutable_fields if f in fields]
        if blocked:
            raise ValueError(f"Cannot update immutable fields: {blocked}")

        query: Dict[str, Any] = {"id": entity_id}
        if expected_status is not None:
            query["status"] = expected_status

        doc = await self._collection.find_one_and_update(
            query,
            {"$set": {**fields, "updated_at": datetime.now()}},
            return_document=ReturnDocument.AFTER,
        )
        # _id is stripped after the write, not via projection
        if doc is not None:
            doc.pop("_id", None)
        return doc

    @translate_driver_errors
    async def status_breakdown(self, query: Dict[str, Any]) -> Dict[str, Dict[str, float]]:
        """Count and amount total per status for documents matching ``query``."""
        pipeline = [
            {"$match": query},
            {"$group": {"_id": "$status", "count": {"$sum": 1}, "amount": {"$sum": "$amount"}}},
        ]
        cursor = self._collection.aggregate(pipeline)
        rows = await cursor.to_list(length=None)
        return {row["_id"]: {"count": row["count"], "amount": row["amount"]} for row in rows}
