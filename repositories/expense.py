import re
from typing import Any, Dict, List

from models.expense import ExpenseFilter
from repositories.base import MongoRepository, translate_driver_errors


class ExpenseRepository(MongoRepository):
    entity_name = "Expense"

    @staticmethod
    def build_query(filters: ExpenseFilter) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if filters.project_id:
            query["project_id"] = filters.project_id
        if filters.category_id:
            query["category_id"] = filters.category_id
        if filters.source_type:
            query["source_type"] = filters.source_type
        if filters.search:
            query["description"] = {"$regex": re.escape(filters.search), "$options": "i"}
        if filters.start_date or filters.end_date:
            query["expense_date"] = {}
            if filters.start_date:
                query["expense_date"]["$gte"] = filters.start_date
            if filters.end_date:
                query["expense_date"]["$lte"] = filters.end_date
        return query

    @translate_driver_errors
    async def upsert_for_source(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert the ledger entry for a source once; later calls are no-ops."""
        key = {"source_type": document["source_type"], "source_id": document["source_id"]}
        on_insert = {k: v for k, v in document.items() if k not in key}
        await self._collection.update_one(key, {"$setOnInsert": on_insert}, upsert=True)
        return await self._collection.find_one(key, {"_id": 0})

    @translate_driver_errors
    async def summary_by(self, field: str, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        pipeline = [
            {"$match": query},
            {"$group": {"_id": f"${field}", "total_expense": {"$sum": "$amount"}, "total_count": {"$sum": 1}}},
            {"$sort": {"total_expense": -1}},
        ]
        cursor = self._collection.aggregate(pipeline)
        rows = await cursor.to_list(length=None)
        return [
            {"key": row["_id"], "total_expense": row["total_expense"], "total_count": row["total_count"]}
            for row in rows
        ]
