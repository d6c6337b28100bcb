from fastapi import APIRouter, Depends, Query
from typing import Optional
from datetime import datetime

from constants import Roles
from models.common import PaginatedResponse, SortOrder
from models.direct_expense import (
    DirectExpenseModel,
    DirectExpenseCreate,
    DirectExpenseFilter,
    DirectExpenseStatistics,
    DirectExpenseStatusLiteral,
    DirectExpenseSortField,
    ApproveDirectExpenseRequest,
    RejectDirectExpenseRequest,
    PayDirectExpenseRequest,
)
from models.user import Actor
from routes.deps import get_actor, require_role, get_direct_expense_service
from services.direct_expense import DirectExpenseService

finance_router = APIRouter(prefix="/api/finance/direct-expenses", tags=["Direct Expenses (Finance)"])
admin_router = APIRouter(prefix="/api/admin/direct-expenses", tags=["Direct Expenses (Admin)"])


# -----------------------------------------------------------------------------
# FINANCE
# -----------------------------------------------------------------------------
@finance_router.get("", response_model=PaginatedResponse[DirectExpenseModel])
async def list_finance_direct_expenses(
    type: Optional[str] = Query(None, description="'to_pay' for every approved request"),
    status: Optional[DirectExpenseStatusLiteral] = None,
    project_id: Optional[str] = None,
    category_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    limit: int = 20,
    sort_by: DirectExpenseSortField = "created_at",
    sort_order: SortOrder = "desc",
    actor: Actor = Depends(require_role(Roles.FINANCE)),
    service: DirectExpenseService = Depends(get_direct_expense_service),
):
    if type == "to_pay":
        return await service.get_approved_to_pay(page, limit)

    filters = DirectExpenseFilter(
        status=status, project_id=project_id, category_id=category_id,
        start_date=start_date, end_date=end_date,
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
    )
    return await service.get_my_direct_expenses(actor, filters)

@finance_router.post("", response_model=DirectExpenseModel, status_code=201)
async def create_direct_expense(
    payload: DirectExpenseCreate,
    actor: Actor = Depends(get_actor),
    service: DirectExpenseService = Depends(get_direct_expense_service),
):
    return await service.create_direct_expense(actor, payload)

@finance_router.get("/statistics", response_model=DirectExpenseStatistics)
async def finance_statistics(
    actor: Actor = Depends(require_role(Roles.FINANCE)),
    service: DirectExpenseService = Depends(get_direct_expense_service),
):
    return await service.get_statistics(actor)

@finance_router.get("/{expense_id}", response_model=DirectExpenseModel)
async def get_direct_expense_for_finance(
    expense_id: str,
    actor: Actor = Depends(require_role(Roles.FINANCE)),
    service: DirectExpenseService = Depends(get_direct_expense_service),
):
    return await service.get(actor, expense_id)

@finance_router.post("/{expense_id}/pay", response_model=DirectExpenseModel)
async def pay_direct_expense(
    expense_id: str,
    payload: PayDirectExpenseRequest,
    actor: Actor = Depends(get_actor),
    service: DirectExpenseService = Depends(get_direct_expense_service),
):
    return await service.mark_as_paid(
        actor, expense_id, payload.payment_proof_url, payload.payment_date, payload.notes
    )


# -----------------------------------------------------------------------------
# ADMIN
# -----------------------------------------------------------------------------
@admin_router.get("", response_model=PaginatedResponse[DirectExpenseModel])
async def list_admin_direct_expenses(
    type: Optional[str] = Query(None, description="'pending' for the approval queue"),
    status: Optional[DirectExpenseStatusLiteral] = None,
    project_id: Optional[str] = None,
    category_id: Optional[str] = None,
    created_by: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: int = 1,
    limit: int = 20,
    sort_by: DirectExpenseSortField = "created_at",
    sort_order: SortOrder = "desc",
    actor: Actor = Depends(require_role(Roles.ADMIN)),
    service: DirectExpenseService = Depends(get_direct_expense_service),
):
    if type == "pending":
        return await service.get_pending(page, limit)

    filters = DirectExpenseFilter(
        status=status, project_id=project_id, category_id=category_id, created_by=created_by,
        start_date=start_date, end_date=end_date,
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
    )
    return await service.get_direct_expenses(filters)

@admin_router.get("/statistics", response_model=DirectExpenseStatistics)
async def admin_statistics(
    actor: Actor = Depends(require_role(Roles.ADMIN)),
    service: DirectExpenseService = Depends(get_direct_expense_service),
):
    return await service.get_statistics(actor)

@admin_router.get("/{expense_id}", response_model=DirectExpenseModel)
async def get_direct_expense_for_admin(
    expense_id: str,
    actor: Actor = Depends(require_role(Roles.ADMIN)),
    service: DirectExpenseService = Depends(get_direct_expense_service),
):
    return await service.get(actor, expense_id)

@admin_router.post("/{expense_id}/approve", response_model=DirectExpenseModel)
async def approve_direct_expense(
    expense_id: str,
    payload: Optional[ApproveDirectExpenseRequest] = None,
    actor: Actor = Depends(get_actor),
    service: DirectExpenseService = Depends(get_direct_expense_service),
):
    return await service.approve_direct_expense(actor, expense_id, payload.notes if payload else None)

@admin_router.post("/{expense_id}/reject", response_model=DirectExpenseModel)
async def reject_direct_expense(
    expense_id: str,
    payload: RejectDirectExpenseRequest,
    actor: Actor = Depends(get_actor),
    service: DirectExpenseService = Depends(get_direct_expense_service),
):
    return await service.reject_direct_expense(actor, expense_id, payload.reason)
