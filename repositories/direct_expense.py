from typing import Any, Dict

from models.direct_expense import DirectExpenseFilter
from repositories.base import MongoRepository


class DirectExpenseRepository(MongoRepository):
    entity_name = "Direct expense"
    immutable_fields = ("id", "amount", "created_by")

    @staticmethod
    def build_query(filters: DirectExpenseFilter) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if filters.status:
            query["status"] = filters.status
        if filters.project_id:
            query["project_id"] = filters.project_id
        if filters.category_id:
            query["category_id"] = filters.category_id
        if filters.created_by:
            query["created_by"] = filters.created_by
        if filters.start_date or filters.end_date:
            query["expense_date"] = {}
            if filters.start_date:
                query["expense_date"]["$gte"] = filters.start_date
            if filters.end_date:
                query["expense_date"]["$lte"] = filters.end_date
        return query
