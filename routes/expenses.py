from fastapi import APIRouter, Depends, Query
from typing import List, Literal, Optional
from datetime import datetime

from constants import Roles
from models.common import PaginatedResponse, SortOrder
from models.expense import ExpenseModel, ExpenseFilter, ExpenseSummaryItem
from models.user import Actor
from routes.deps import require_role, get_ledger
from services.ledger import ExpenseLedger
from logging_config import get_logger

router = APIRouter(prefix="/api/expenses", tags=["Expense Ledger"])
logger = get_logger("expenses")

@router.get("", response_model=PaginatedResponse[ExpenseModel])
async def list_expenses(
    project_id: Optional[str] = None,
    category_id: Optional[str] = None,
    source_type: Optional[Literal['REIMBURSEMENT', 'DIRECT_EXPENSE']] = None,
    search: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    limit: int = 20,
    sort_by: Literal['expense_date', 'created_at', 'amount'] = "expense_date",
    sort_order: SortOrder = "desc",
    actor: Actor = Depends(require_role(Roles.ADMIN, Roles.FINANCE)),
    ledger: ExpenseLedger = Depends(get_ledger),
):
    filters = ExpenseFilter(
        project_id=project_id, category_id=category_id, source_type=source_type, search=search,
        start_date=start_date, end_date=end_date,
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
    )
    return await ledger.list_expenses(filters)

@router.get("/summary", response_model=List[ExpenseSummaryItem])
async def expense_summary(
    group_by: Literal['project', 'category'] = Query("project"),
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    actor: Actor = Depends(require_role(Roles.ADMIN, Roles.FINANCE)),
    ledger: ExpenseLedger = Depends(get_ledger),
):
    if group_by == "category":
        return await ledger.summary_by_category(start_date, end_date)
    return await ledger.summary_by_project(start_date, end_date)

@router.post("/rebuild")
async def rebuild_ledger(
    actor: Actor = Depends(require_role(Roles.ADMIN)),
    ledger: ExpenseLedger = Depends(get_ledger),
):
    """Re-post every paid reimbursement and direct expense (idempotent)."""
    count = await ledger.rebuild()
    logger.info("Ledger rebuild requested", extra={"data": {"entities": count, "actor_id": actor.id}})
    return {"status": "success", "entities": count}
