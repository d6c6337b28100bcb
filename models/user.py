from pydantic import BaseModel, Field, EmailStr, ConfigDict
from typing import Optional, Literal
from datetime import datetime
import uuid

class UserModel(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    email: EmailStr
    name: str
    role: Literal['ADMIN', 'FINANCE', 'STAFF'] = "STAFF"
    status: Literal['active', 'inactive'] = "active"
    # Shown to finance when paying out a reimbursement
    bank_name: Optional[str] = None
    bank_account_no: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        extra="ignore"
    )


class Actor(BaseModel):
    """The authenticated identity performing a workflow operation."""
    id: str
    role: Literal['ADMIN', 'FINANCE', 'STAFF']

    @classmethod
    def from_user(cls, user: UserModel) -> "Actor":
        return cls(id=user.id, role=user.role)
