from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Literal
from datetime import datetime
import uuid

from models.common import SortOrder

# -----------------------------------------------------------------------------
# Ledger entry: one per paid reimbursement / direct expense
# -----------------------------------------------------------------------------
class ExpenseModel(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    source_type: Literal['REIMBURSEMENT', 'DIRECT_EXPENSE']
    source_id: str
    description: str
    amount: float
    project_id: Optional[str] = None
    category_id: Optional[str] = None
    category: Optional[str] = None  # Label used when the source has no category
    expense_date: datetime
    receipt_url: Optional[str] = None  # Receipt (reimbursement) or invoice (direct expense)
    payment_proof_url: Optional[str] = None
    recorded_by: str
    created_at: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore"
    )


class ExpenseFilter(BaseModel):
    project_id: Optional[str] = None
    category_id: Optional[str] = None
    source_type: Optional[Literal['REIMBURSEMENT', 'DIRECT_EXPENSE']] = None
    search: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    page: int = 1
    limit: int = 20
    sort_by: Literal['expense_date', 'created_at', 'amount'] = 'expense_date'
    sort_order: SortOrder = 'desc'


class ExpenseSummaryItem(BaseModel):
    key: Optional[str] = None
    total_expense: float = 0.0
    total_count: int = 0
