from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, Literal
from datetime import datetime
import uuid

from models.common import SortOrder

DirectExpenseStatusLiteral = Literal['PENDING', 'APPROVED', 'REJECTED', 'PAID']
DirectExpenseSortField = Literal['created_at', 'expense_date', 'approved_at', 'paid_at', 'amount']

# -----------------------------------------------------------------------------
# 1. Stored Entity
# -----------------------------------------------------------------------------
class DirectExpenseModel(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    description: str
    amount: float
    project_id: Optional[str] = None
    category_id: Optional[str] = None
    expense_date: datetime = Field(default_factory=datetime.now)
    invoice_url: str

    status: DirectExpenseStatusLiteral = 'PENDING'

    created_by: str

    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    approval_notes: Optional[str] = None

    rejected_by: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    paid_by: Optional[str] = None
    paid_at: Optional[datetime] = None
    payment_date: Optional[datetime] = None
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
class DirectExpenseCreate(BaseModel):
    description: str = ""
    amount: float = Field(allow_inf_nan=False)
    category_id: Optional[str] = None
    project_id: Optional[str] = None
    invoice_url: Optional[str] = None
    expense_date: Optional[datetime] = None

    @field_validator("project_id")
    @classmethod
    def blank_project_is_none(cls, v):
        # The create form posts "" when no project is picked
        return v or None

class ApproveDirectExpenseRequest(BaseModel):
    notes: Optional[str] = None

class RejectDirectExpenseRequest(BaseModel):
    reason: str = ""

class PayDirectExpenseRequest(BaseModel):
    payment_proof_url: Optional[str] = None
    payment_date: Optional[datetime] = None
    notes: Optional[str] = None

# -----------------------------------------------------------------------------
# 3. Queries
# -----------------------------------------------------------------------------
class DirectExpenseFilter(BaseModel):
    status: Optional[DirectExpenseStatusLiteral] = None
    project_id: Optional[str] = None
    category_id: Optional[str] = None
    created_by: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    page: int = 1
    limit: int = 20
    sort_by: DirectExpenseSortField = 'created_at'
    sort_order: SortOrder = 'desc'

class DirectExpenseStatistics(BaseModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    paid: int = 0
    rejected: int = 0
    total_amount: float = 0.0
