"""Milestone schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from backend.app.schemas.invoice import InvoiceRead

MilestoneDueType = Literal["event", "date"]


class MilestoneCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    due_type: MilestoneDueType = "event"
    due_date: Optional[date] = None

    @model_validator(mode="after")
    def require_due_date_for_dated(self):
        if self.due_type == "date" and self.due_date is None:
            raise ValueError("Date-based milestones need a due date")
        return self


class MilestoneRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    project_id: int
    name: str
    description: Optional[str] = None
    amount: Decimal
    due_type: str
    due_date: Optional[date] = None
    is_completed: bool
    status: str
    completed_at: Optional[datetime] = None
    invoice_id: Optional[int] = None
    created_at: datetime


class MilestoneCompletionRead(BaseModel):
    milestone: MilestoneRead
    invoice: InvoiceRead
