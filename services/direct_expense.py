"""
Direct expense workflow engine.

    PENDING  --approve (ADMIN)--> APPROVED
    PENDING  --reject (ADMIN)---> REJECTED
    APPROVED --pay (FINANCE)----> PAID

Created by FINANCE; there is no review stage.
"""

from datetime import datetime
from typing import Optional

from constants import DirectExpenseStatus, ExpenseSourceType, Roles
from exceptions import NotFoundError, ValidationError
from logging_config import get_logger
from models.common import PaginatedResponse, PaginationModel
from models.direct_expense import (
    DirectExpenseCreate,
    DirectExpenseFilter,
    DirectExpenseModel,
    DirectExpenseStatistics,
)
from models.user import Actor
from services.transitions import (
    apply_transition,
    assert_role,
    check_pagination,
    require_payment_proof,
    require_positive_amount,
    require_rejection_reason,
    require_text,
)

logger = get_logger("direct_expenses")


class DirectExpenseService:
    def __init__(self, repository, ledger):
        self.repository = repository
        self.ledger = ledger

    async def create_direct_expense(self, actor: Actor, data: DirectExpenseCreate) -> DirectExpenseModel:
        assert_role(actor, Roles.FINANCE, action="create direct expenses")
        description = require_text(data.description, "description", "Description is required")
        amount = require_positive_amount(data.amount)
        category_id = require_text(data.category_id, "category_id", "Category is required")
        invoice_url = require_text(data.invoice_url, "invoice_url", "Invoice is required")

        expense = DirectExpenseModel(
            description=description,
            amount=amount,
            category_id=category_id,
            project_id=data.project_id,
            invoice_url=invoice_url,
            expense_date=data.expense_date or datetime.now(),
            created_by=actor.id,
        )
        await self.repository.create(expense.model_dump())
        logger.info(
            "Direct expense created",
            extra={"data": {"id": expense.id, "amount": amount, "created_by": actor.id}}
        )
        return expense

    async def approve_direct_expense(self, actor: Actor, expense_id: str, notes: Optional[str] = None) -> DirectExpenseModel:
        doc = await apply_transition(
            self.repository, expense_id, actor,
            required_status=DirectExpenseStatus.PENDING,
            target_status=DirectExpenseStatus.APPROVED,
            required_role=Roles.ADMIN,
            action="approve",
            fields={"approved_by": actor.id, "approved_at": datetime.now(), "approval_notes": notes},
        )
        return DirectExpenseModel(**doc)

    async def reject_direct_expense(self, actor: Actor, expense_id: str, reason: Optional[str]) -> DirectExpenseModel:
        reason = require_rejection_reason(reason, min_length=1)
        doc = await apply_transition(
            self.repository, expense_id, actor,
            required_status=DirectExpenseStatus.PENDING,
            target_status=DirectExpenseStatus.REJECTED,
            required_role=Roles.ADMIN,
            action="reject",
            fields={"rejected_by": actor.id, "rejected_at": datetime.now(), "rejection_reason": reason},
        )
        return DirectExpenseModel(**doc)

    async def mark_as_paid(self, actor: Actor, expense_id: str, payment_proof_url: Optional[str],
                           payment_date: Optional[datetime] = None, notes: Optional[str] = None) -> DirectExpenseModel:
        proof = require_payment_proof(payment_proof_url)
        now = datetime.now()
        doc = await apply_transition(
            self.repository, expense_id, actor,
            required_status=DirectExpenseStatus.APPROVED,
            target_status=DirectExpenseStatus.PAID,
            required_role=Roles.FINANCE,
            action="pay",
            fields={
                "paid_by": actor.id,
                "paid_at": now,
                "payment_date": payment_date or now,
                "payment_proof_url": proof,
                "payment_notes": notes,
            },
        )
        await self.ledger.post_payment(ExpenseSourceType.DIRECT_EXPENSE, doc, actor.id)
        return DirectExpenseModel(**doc)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    async def get(self, actor: Actor, expense_id: str) -> DirectExpenseModel:
        assert_role(actor, Roles.ADMIN, Roles.FINANCE, action="view direct expenses")
        doc = await self.repository.find_by_id(expense_id)
        if doc is None:
            raise NotFoundError(self.repository.entity_name, expense_id)
        return DirectExpenseModel(**doc)

    async def get_direct_expenses(self, filters: DirectExpenseFilter) -> PaginatedResponse[DirectExpenseModel]:
        check_pagination(filters.page, filters.limit)
        if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
            raise ValidationError("start_date must not be after end_date", field="start_date")
        query = self.repository.build_query(filters)
        items, total = await self.repository.find_many(
            query, filters.page, filters.limit, filters.sort_by, filters.sort_order
        )
        return PaginatedResponse[DirectExpenseModel](
            data=[DirectExpenseModel(**item) for item in items],
            pagination=PaginationModel.build(filters.page, filters.limit, total),
        )

    async def get_my_direct_expenses(self, actor: Actor, filters: DirectExpenseFilter) -> PaginatedResponse[DirectExpenseModel]:
        return await self.get_direct_expenses(filters.model_copy(update={"created_by": actor.id}))

    async def get_pending(self, page: int = 1, limit: int = 20):
        return await self.get_direct_expenses(DirectExpenseFilter(
            status=DirectExpenseStatus.PENDING, page=page, limit=limit, sort_order="asc",
        ))

    async def get_approved_to_pay(self, page: int = 1, limit: int = 20):
        return await self.get_direct_expenses(DirectExpenseFilter(
            status=DirectExpenseStatus.APPROVED, page=page, limit=limit,
            sort_by="approved_at", sort_order="asc",
        ))

    async def get_statistics(self, actor: Actor) -> DirectExpenseStatistics:
        query = {"created_by": actor.id} if actor.role == Roles.FINANCE else {}
        breakdown = await self.repository.status_breakdown(query)
        counts = {status: int(row["count"]) for status, row in breakdown.items()}
        return DirectExpenseStatistics(
            total=sum(counts.values()),
            pending=counts.get(DirectExpenseStatus.PENDING, 0),
            approved=counts.get(DirectExpenseStatus.APPROVED, 0),
            paid=counts.get(DirectExpenseStatus.PAID, 0),
            rejected=counts.get(DirectExpenseStatus.REJECTED, 0),
            total_amount=float(sum(row["amount"] for row in breakdown.values())),
        )
