from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Literal
from datetime import datetime
import uuid

from models.common import SortOrder

ReimbursementStatusLiteral = Literal['PENDING', 'REVIEWED', 'APPROVED', 'REJECTED', 'PAID']
ReimbursementSortField = Literal['submitted_at', 'reviewed_at', 'approved_at', 'paid_at', 'created_at', 'amount']

# -----------------------------------------------------------------------------
# 1. Stored Entity
# -----------------------------------------------------------------------------
class ReimbursementModel(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    description: str
    amount: float
    project_id: Optional[str] = None
    expense_date: datetime = Field(default_factory=datetime.now)
    receipt_url: str

    status: ReimbursementStatusLiteral = 'PENDING'

    submitted_by: str
    submitted_at: datetime = Field(default_factory=datetime.now)

    # FINANCE review
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_note: Optional[str] = None

    # ADMIN approval
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    approval_notes: Optional[str] = None

    # Rejection (FINANCE before review, ADMIN after)
    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    # FINANCE payment
    paid_by: Optional[str] = None
    paid_at: Optional[datetime] = None
    payment_proof_url: Optional[str] = None
    payment_notes: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore"
    )

# -----------------------------------------------------------------------------
# 2. Request Payloads
# -----------------------------------------------------------------------------
class ReimbursementCreate(BaseModel):
    description: str = ""
    amount: float = Field(allow_inf_nan=False)
    receipt_url: Optional[str] = None
    project_id: Optional[str] = None
    expense_date: Optional[datetime] = None

class ReviewReimbursementRequest(BaseModel):
    note: Optional[str] = None

class ApproveReimbursementRequest(BaseModel):
    notes: Optional[str] = None

class RejectReimbursementRequest(BaseModel):
    reason: str = ""

class PayReimbursementRequest(BaseModel):
    payment_proof_url: Optional[str] = None
    notes: Optional[str] = None

# -----------------------------------------------------------------------------
# 3. Queries
# -----------------------------------------------------------------------------
class ReimbursementFilter(BaseModel):
    status: Optional[ReimbursementStatusLiteral] = None
    submitted_by: Optional[str] = None
    reviewed_by: Optional[str] = None
    project_id: Optional[str] = None
    search: Optional[str] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    page: int = 1
    limit: int = 10
    sort_by: ReimbursementSortField = 'submitted_at'
    sort_order: SortOrder = 'desc'

class ReimbursementStatistics(BaseModel):
    total: int = 0
    pending: int = 0
    reviewed: int = 0
    approved: int = 0
    paid: int = 0
    rejected: int = 0
    total_amount: float = 0.0
