import re
from typing import Any, Dict

from models.reimbursement import ReimbursementFilter
from repositories.base import MongoRepository


class ReimbursementRepository(MongoRepository):
    entity_name = "Reimbursement"
    immutable_fields = ("id", "amount", "submitted_by", "submitted_at")

    @staticmethod
    def build_query(filters: ReimbursementFilter) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if filters.status:
            query["status"] = filters.status
        if filters.submitted_by:
            query["submitted_by"] = filters.submitted_by
        if filters.reviewed_by:
            query["reviewed_by"] = filters.reviewed_by
        if filters.project_id:
            query["project_id"] = filters.project_id
        if filters.search:
            query["description"] = {"$regex": re.escape(filters.search), "$options": "i"}
        if filters.from_date or filters.to_date:
            query["submitted_at"] = {}
            if filters.from_date:
                query["submitted_at"]["$gte"] = filters.from_date
            if filters.to_date:
                query["submitted_at"]["$lte"] = filters.to_date
        return query
