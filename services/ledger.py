"""
Expense ledger projection.

A ledger entry is written once a reimbursement or direct expense reaches PAID.
Entries are keyed by (source_type, source_id) so posting is idempotent and
``rebuild`` can safely replay every paid entity.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from constants import ExpenseSourceType, FinanceCategories, ReimbursementStatus, DirectExpenseStatus
from exceptions import PersistenceError, ValidationError
from logging_config import get_logger
from models.common import PaginatedResponse, PaginationModel
from models.expense import ExpenseFilter, ExpenseModel, ExpenseSummaryItem
from services.transitions import check_pagination

logger = get_logger("ledger")

REBUILD_BATCH_SIZE = 100


class ExpenseLedger:
    def __init__(self, expenses, reimbursements=None, direct_expenses=None):
        self.expenses = expenses
        self.reimbursements = reimbursements
        self.direct_expenses = direct_expenses

    @staticmethod
    def _entry_for(source_type: str, entity: Dict[str, Any], recorded_by: str) -> ExpenseModel:
        if source_type == ExpenseSourceType.REIMBURSEMENT:
            return ExpenseModel(
                source_type=source_type,
                source_id=entity["id"],
                description=entity["description"],
                amount=entity["amount"],
                project_id=entity.get("project_id"),
                category=FinanceCategories.REIMBURSEMENT,
                expense_date=entity.get("expense_date") or entity["submitted_at"],
                receipt_url=entity.get("receipt_url"),
                payment_proof_url=entity.get("payment_proof_url"),
                recorded_by=recorded_by,
            )
        return ExpenseModel(
            source_type=source_type,
            source_id=entity["id"],
            description=entity["description"],
            amount=entity["amount"],
            project_id=entity.get("project_id"),
            category_id=entity.get("category_id"),
            expense_date=entity.get("expense_date") or entity["created_at"],
            receipt_url=entity.get("invoice_url"),
            payment_proof_url=entity.get("payment_proof_url"),
            recorded_by=recorded_by,
        )

    async def record_paid(self, source_type: str, entity: Dict[str, Any], recorded_by: Optional[str] = None) -> Dict[str, Any]:
        if entity.get("status") != ReimbursementStatus.PAID:
            raise ValidationError(
                "Only paid entities can be posted to the ledger",
                field="status",
                details={"status": entity.get("status")},
            )
        entry = self._entry_for(source_type, entity, recorded_by or entity.get("paid_by"))
        stored = await self.expenses.upsert_for_source(entry.model_dump())
        logger.info(
            f"Ledger entry recorded for {source_type}",
            extra={"data": {"source_id": entity["id"], "expense_id": stored["id"], "amount": stored["amount"]}}
        )
        return stored

    async def post_payment(self, source_type: str, entity: Dict[str, Any], recorded_by: str) -> Optional[Dict[str, Any]]:
        """
        Post a just-paid entity. The PAID write has already committed, so a
        store failure here is logged and left for ``rebuild`` to repair.
        """
        try:
            return await self.record_paid(source_type, entity, recorded_by)
        except PersistenceError:
            logger.error(
                f"Ledger post failed for paid {source_type}; run a ledger rebuild",
                exc_info=True,
                extra={"data": {"source_id": entity["id"], "amount": entity.get("amount")}}
            )
            return None

    async def list_expenses(self, filters: ExpenseFilter) -> PaginatedResponse[ExpenseModel]:
        check_pagination(filters.page, filters.limit)
        query = self.expenses.build_query(filters)
        items, total = await self.expenses.find_many(
            query, filters.page, filters.limit, filters.sort_by, filters.sort_order
        )
        return PaginatedResponse[ExpenseModel](
            data=[ExpenseModel(**item) for item in items],
            pagination=PaginationModel.build(filters.page, filters.limit, total),
        )

    async def _summary(self, field: str, start_date: Optional[datetime], end_date: Optional[datetime]) -> List[ExpenseSummaryItem]:
        query = self.expenses.build_query(ExpenseFilter(start_date=start_date, end_date=end_date))
        rows = await self.expenses.summary_by(field, query)
        return [ExpenseSummaryItem(**row) for row in rows]

    async def summary_by_project(self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None):
        return await self._summary("project_id", start_date, end_date)

    async def summary_by_category(self, start_date: Optional[datetime] = None, end_date: Optional[datetime] = None):
        # Reimbursements carry a category label instead of an id
        rows = await self._summary("category_id", start_date, end_date)
        for row in rows:
            if row.key is None:
                row.key = FinanceCategories.REIMBURSEMENT
        return rows

    async def rebuild(self) -> int:
        """Re-post every paid reimbursement and direct expense. Returns the number of entities visited."""
        visited = 0
        sources = [
            (ExpenseSourceType.REIMBURSEMENT, self.reimbursements, ReimbursementStatus.PAID),
            (ExpenseSourceType.DIRECT_EXPENSE, self.direct_expenses, DirectExpenseStatus.PAID),
        ]
        for source_type, repository, paid_status in sources:
            if repository is None:
                continue
            page = 1
            while True:
                items, total = await repository.find_many(
                    {"status": paid_status}, page, REBUILD_BATCH_SIZE, "paid_at", "asc"
                )
                for entity in items:
                    await self.record_paid(source_type, entity)
                    visited += 1
                if page * REBUILD_BATCH_SIZE >= total:
                    break
                page += 1
        logger.info("Ledger rebuild complete", extra={"data": {"entities": visited}})
        return visited
