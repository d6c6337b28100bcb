"""
Reimbursement workflow engine.

    PENDING  --review (FINANCE)-------------> REVIEWED
    PENDING  --reject_by_finance (FINANCE)--> REJECTED
    REVIEWED --approve (ADMIN)--------------> APPROVED
    REVIEWED --reject_by_admin (ADMIN)------> REJECTED
    APPROVED --mark_as_paid (FINANCE)-------> PAID

PAID and REJECTED are terminal. Every transition is a single conditional
write on the current status, so concurrent reviewers cannot both win.
"""

from datetime import datetime
from typing import Optional

from config import config
from constants import ExpenseSourceType, ReimbursementStatus, Roles
from exceptions import ForbiddenError, NotFoundError, ValidationError
from logging_config import get_logger
from models.common import PaginatedResponse, PaginationModel
from models.reimbursement import (
    ReimbursementCreate,
    ReimbursementFilter,
    ReimbursementModel,
    ReimbursementStatistics,
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

logger = get_logger("reimbursements")


class ReimbursementService:
    def __init__(self, repository, ledger):
        self.repository = repository
        self.ledger = ledger

    # -------------------------------------------------------------------------
    # Submission (STAFF)
    # -------------------------------------------------------------------------
    async def submit(self, actor: Actor, data: ReimbursementCreate) -> ReimbursementModel:
        assert_role(actor, Roles.STAFF, action="submit reimbursements")
        description = require_text(data.description, "description", "Description is required")
        amount = require_positive_amount(data.amount)
        receipt_url = require_text(data.receipt_url, "receipt_url", "Receipt is required")

        now = datetime.now()
        reimbursement = ReimbursementModel(
            description=description,
            amount=amount,
            receipt_url=receipt_url,
            project_id=data.project_id or None,
            expense_date=data.expense_date or now,
            submitted_by=actor.id,
            submitted_at=now,
        )
        await self.repository.create(reimbursement.model_dump())
        logger.info(
            "Reimbursement submitted",
            extra={"data": {"id": reimbursement.id, "amount": amount, "submitted_by": actor.id}}
        )
        return reimbursement

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------
    async def review(self, actor: Actor, reimbursement_id: str, note: Optional[str] = None) -> ReimbursementModel:
        doc = await apply_transition(
            self.repository, reimbursement_id, actor,
            required_status=ReimbursementStatus.PENDING,
            target_status=ReimbursementStatus.REVIEWED,
            required_role=Roles.FINANCE,
            action="review",
            fields={"reviewed_by": actor.id, "reviewed_at": datetime.now(), "review_note": note},
        )
        return ReimbursementModel(**doc)

    async def approve(self, actor: Actor, reimbursement_id: str, notes: Optional[str] = None) -> ReimbursementModel:
        doc = await apply_transition(
            self.repository, reimbursement_id, actor,
            required_status=ReimbursementStatus.REVIEWED,
            target_status=ReimbursementStatus.APPROVED,
            required_role=Roles.ADMIN,
            action="approve",
            fields={"approved_by": actor.id, "approved_at": datetime.now(), "approval_notes": notes},
        )
        return ReimbursementModel(**doc)

    async def _reject(self, actor: Actor, reimbursement_id: str, reason: Optional[str],
                      required_status: str, required_role: str) -> ReimbursementModel:
        reason = require_rejection_reason(reason)
        doc = await apply_transition(
            self.repository, reimbursement_id, actor,
            required_status=required_status,
            target_status=ReimbursementStatus.REJECTED,
            required_role=required_role,
            action="reject",
            fields={"rejected_by": actor.id, "rejected_at": datetime.now(), "rejection_reason": reason},
        )
        return ReimbursementModel(**doc)

    async def reject_by_finance(self, actor: Actor, reimbursement_id: str, reason: Optional[str]) -> ReimbursementModel:
        return await self._reject(actor, reimbursement_id, reason, ReimbursementStatus.PENDING, Roles.FINANCE)

    async def reject_by_admin(self, actor: Actor, reimbursement_id: str, reason: Optional[str]) -> ReimbursementModel:
        return await self._reject(actor, reimbursement_id, reason, ReimbursementStatus.REVIEWED, Roles.ADMIN)

    async def mark_as_paid(self, actor: Actor, reimbursement_id: str, payment_proof_url: Optional[str],
                           notes: Optional[str] = None) -> ReimbursementModel:
        proof = require_payment_proof(payment_proof_url)

        def reviewer_only(current):
            if config.REVIEWER_MUST_PAY and current.get("reviewed_by") != actor.id:
                raise ForbiddenError(
                    "Only the FINANCE who reviewed this reimbursement can mark it as paid",
                    {"reviewed_by": current.get("reviewed_by")},
                )

        doc = await apply_transition(
            self.repository, reimbursement_id, actor,
            required_status=ReimbursementStatus.APPROVED,
            target_status=ReimbursementStatus.PAID,
            required_role=Roles.FINANCE,
            action="pay",
            fields={
                "paid_by": actor.id,
                "paid_at": datetime.now(),
                "payment_proof_url": proof,
                "payment_notes": notes,
            },
            guard=reviewer_only,
        )
        await self.ledger.post_payment(ExpenseSourceType.REIMBURSEMENT, doc, actor.id)
        return ReimbursementModel(**doc)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    async def get(self, actor: Actor, reimbursement_id: str) -> ReimbursementModel:
        doc = await self.repository.find_by_id(reimbursement_id)
        if doc is None:
            raise NotFoundError(self.repository.entity_name, reimbursement_id)
        if actor.role == Roles.STAFF and doc["submitted_by"] != actor.id:
            raise ForbiddenError("Forbidden: You can only view your own reimbursements")
        return ReimbursementModel(**doc)

    async def get_reimbursements(self, filters: ReimbursementFilter) -> PaginatedResponse[ReimbursementModel]:
        check_pagination(filters.page, filters.limit)
        if filters.from_date and filters.to_date and filters.from_date > filters.to_date:
            raise ValidationError("from_date must not be after to_date", field="from_date")
        query = self.repository.build_query(filters)
        items, total = await self.repository.find_many(
            query, filters.page, filters.limit, filters.sort_by, filters.sort_order
        )
        return PaginatedResponse[ReimbursementModel](
            data=[ReimbursementModel(**item) for item in items],
            pagination=PaginationModel.build(filters.page, filters.limit, total),
        )

    async def get_my_reimbursements(self, actor: Actor, filters: ReimbursementFilter) -> PaginatedResponse[ReimbursementModel]:
        return await self.get_reimbursements(filters.model_copy(update={"submitted_by": actor.id}))

    async def get_pending_to_review(self, page: int = 1, limit: int = 20):
        return await self.get_reimbursements(ReimbursementFilter(
            status=ReimbursementStatus.PENDING, page=page, limit=limit,
            sort_by="submitted_at", sort_order="asc",
        ))

    async def get_reviewed_to_approve(self, page: int = 1, limit: int = 20):
        return await self.get_reimbursements(ReimbursementFilter(
            status=ReimbursementStatus.REVIEWED, page=page, limit=limit,
            sort_by="reviewed_at", sort_order="asc",
        ))

    async def get_approved_to_pay(self, actor: Actor, page: int = 1, limit: int = 20):
        # Scoped to the reviewer only when reviewers must pay their own reimbursements
        reviewed_by = actor.id if config.REVIEWER_MUST_PAY else None
        return await self.get_reimbursements(ReimbursementFilter(
            status=ReimbursementStatus.APPROVED, reviewed_by=reviewed_by, page=page, limit=limit,
            sort_by="approved_at", sort_order="asc",
        ))

    async def get_statistics(self, actor: Actor) -> ReimbursementStatistics:
        query = {"submitted_by": actor.id} if actor.role == Roles.STAFF else {}
        breakdown = await self.repository.status_breakdown(query)

        def count(status: str) -> int:
            return int(breakdown.get(status, {}).get("count", 0))

        return ReimbursementStatistics(
            total=sum(int(row["count"]) for row in breakdown.values()),
            pending=count(ReimbursementStatus.PENDING),
            reviewed=count(ReimbursementStatus.REVIEWED),
            approved=count(ReimbursementStatus.APPROVED),
            paid=count(ReimbursementStatus.PAID),
            rejected=count(ReimbursementStatus.REJECTED),
            total_amount=float(sum(row["amount"] for row in breakdown.values())),
        )
