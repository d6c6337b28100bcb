from fastapi import APIRouter, Depends, Query
from typing import Optional
from datetime import datetime

from constants import Roles
from models.common import PaginatedResponse, SortOrder
from models.reimbursement import (
    ReimbursementModel,
    ReimbursementCreate,
    ReimbursementFilter,
    ReimbursementStatistics,
    ReimbursementStatusLiteral,
    ReimbursementSortField,
    ReviewReimbursementRequest,
    ApproveReimbursementRequest,
    RejectReimbursementRequest,
    PayReimbursementRequest,
)
from models.user import Actor
from routes.deps import get_actor, require_role, get_reimbursement_service
from services.reimbursement import ReimbursementService
from logging_config import get_logger

logger = get_logger("reimbursements.api")

# Role checks for transitions live in the engine; routes only gate read access.
staff_router = APIRouter(prefix="/api/staff/reimbursements", tags=["Reimbursements (Staff)"])
finance_router = APIRouter(prefix="/api/finance/reimbursements", tags=["Reimbursements (Finance)"])
admin_router = APIRouter(prefix="/api/admin/reimbursements", tags=["Reimbursements (Admin)"])


# -----------------------------------------------------------------------------
# STAFF
# -----------------------------------------------------------------------------
@staff_router.get("", response_model=PaginatedResponse[ReimbursementModel])
async def list_my_reimbursements(
    status: Optional[ReimbursementStatusLiteral] = None,
    search: Optional[str] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
    page: int = 1,
    limit: int = 10,
    sort_by: ReimbursementSortField = "submitted_at",
    sort_order: SortOrder = "desc",
    actor: Actor = Depends(require_role(Roles.STAFF)),
    service: ReimbursementService = Depends(get_reimbursement_service),
):
    filters = ReimbursementFilter(
        status=status, search=search, from_date=from_date, to_date=to_date,
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
    )
    return await service.get_my_reimbursements(actor, filters)

@staff_router.post("", response_model=ReimbursementModel, status_code=201)
async def submit_reimbursement(
    payload: ReimbursementCreate,
    actor: Actor = Depends(get_actor),
    service: ReimbursementService = Depends(get_reimbursement_service),
):
    return await service.submit(actor, payload)

@staff_router.get("/statistics", response_model=ReimbursementStatistics)
async def my_statistics(
    actor: Actor = Depends(require_role(Roles.STAFF)),
    service: ReimbursementService = Depends(get_reimbursement_service),
):
    return await service.get_statistics(actor)

@staff_router.get("/{reimbursement_id}", response_model=ReimbursementModel)
async def get_my_reimbursement(
    reimbursement_id: str,
    actor: Actor = Depends(require_role(Roles.STAFF)),
    service: ReimbursementService = Depends(get_reimbursement_service),
):
    return await service.get(actor, reimbursement_id)


# -----------------------------------------------------------------------------
# FINANCE
# -----------------------------------------------------------------------------
@finance_router.get("", response_model=PaginatedResponse[ReimbursementModel])
async def list_finance_reimbursements(
    type: Optional[str] = Query(None, description="'pending' (to review) or 'to_pay'"),
    status: Optional[ReimbursementStatusLiteral] = None,
    submitted_by: Optional[str] = None,
    reviewed_by: Optional[str] = None,
    search: Optional[str] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
    page: int = 1,
    limit: int = 20,
    sort_by: ReimbursementSortField = "submitted_at",
    sort_order: SortOrder = "desc",
    actor: Actor = Depends(require_role(Roles.FINANCE)),
    service: ReimbursementService = Depends(get_reimbursement_service),
):
    if type == "pending":
        return await service.get_pending_to_review(page, limit)
    if type == "to_pay":
        return await service.get_approved_to_pay(actor, page, limit)

    filters = ReimbursementFilter(
        status=status, submitted_by=submitted_by, reviewed_by=reviewed_by, search=search,
        from_date=from_date, to_date=to_date,
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
    )
    return await service.get_reimbursements(filters)

@finance_router.get("/statistics", response_model=ReimbursementStatistics)
async def finance_statistics(
    actor: Actor = Depends(require_role(Roles.FINANCE)),
    service: ReimbursementService = Depends(get_reimbursement_service),
):
    return await service.get_statistics(actor)

@finance_router.get("/{reimbursement_id}", response_model=ReimbursementModel)
async def get_reimbursement_for_finance(
    reimbursement_id: str,
    actor: Actor = Depends(require_role(Roles.FINANCE)),
    service: ReimbursementService = Depends(get_reimbursement_service),
):
    return await service.get(actor, reimbursement_id)

@finance_router.post("/{reimbursement_id}/review", response_model=ReimbursementModel)
async def review_reimbursement(
    reimbursement_id: str,
    payload: Optional[ReviewReimbursementRequest] = None,
    actor: Actor = Depends(get_actor),
    service: ReimbursementService = Depends(get_reimbursement_service),
):
    return await service.review(actor, reimbursement_id, payload.note if payload else None)

@finance_router.post("/{reimbursement_id}/reject", response_model=ReimbursementModel)
async def reject_reimbursement_by_finance(
    reimbursement_id: str,
    payload: RejectReimbursementRequest,
    actor: Actor = Depends(get_actor),
    service: ReimbursementService = Depends(get_reimbursement_service),
):
    return await service.reject_by_finance(actor, reimbursement_id, payload.reason)

@finance_router.post("/{reimbursement_id}/pay", response_model=ReimbursementModel)
async def pay_reimbursement(
    reimbursement_id: str,
    payload: PayReimbursementRequest,
    actor: Actor = Depends(get_actor),
    service: ReimbursementService = Depends(get_reimbursement_service),
):
    return await service.mark_as_paid(actor, reimbursement_id, payload.payment_proof_url, payload.notes)


# -----------------------------------------------------------------------------
# ADMIN
# -----------------------------------------------------------------------------
@admin_router.get("", response_model=PaginatedResponse[ReimbursementModel])
async def list_admin_reimbursements(
    type: Optional[str] = Query(None, description="'to_approve' for the reviewed queue"),
    status: Optional[ReimbursementStatusLiteral] = None,
    submitted_by: Optional[str] = None,
    project_id: Optional[str] = None,
    search: Optional[str] = None,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
    page: int = 1,
    limit: int = 20,
    sort_by: ReimbursementSortField = "submitted_at",
    sort_order: SortOrder = "desc",
    actor: Actor = Depends(require_role(Roles.ADMIN)),
    service: ReimbursementService = Depends(get_reimbursement_service),
):
    if type == "to_approve":
        return await service.get_reviewed_to_approve(page, limit)

    filters = ReimbursementFilter(
        status=status, submitted_by=submitted_by, project_id=project_id, search=search,
        from_date=from_date, to_date=to_date,
        page=page, limit=limit, sort_by=sort_by, sort_order=sort_order,
    )
    return await service.get_reimbursements(filters)

@admin_router.get("/statistics", response_model=ReimbursementStatistics)
async def admin_statistics(
    actor: Actor = Depends(require_role(Roles.ADMIN)),
    service: ReimbursementService = Depends(get_reimbursement_service),
):
    return await service.get_statistics(actor)

@admin_router.get("/{reimbursement_id}", response_model=ReimbursementModel)
async def get_reimbursement_for_admin(
    reimbursement_id: str,
    actor: Actor = Depends(require_role(Roles.ADMIN)),
    service: ReimbursementService = Depends(get_reimbursement_service),
):
    return await service.get(actor, reimbursement_id)

@admin_router.post("/{reimbursement_id}/approve", response_model=ReimbursementModel)
async def approve_reimbursement(
    reimbursement_id: str,
    payload: Optional[ApproveReimbursementRequest] = None,
    actor: Actor = Depends(get_actor),
    service: ReimbursementService = Depends(get_reimbursement_service),
):
    return await service.approve(actor, reimbursement_id, payload.notes if payload else None)

@admin_router.post("/{reimbursement_id}/reject", response_model=ReimbursementModel)
async def reject_reimbursement_by_admin(
    reimbursement_id: str,
    payload: RejectReimbursementRequest,
    actor: Actor = Depends(get_actor),
    service: ReimbursementService = Depends(get_reimbursement_service),
):
    return await service.reject_by_admin(actor, reimbursement_id, payload.reason)
