"""Invoice schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

InvoiceStatus = Literal["draft", "sent", "partially_paid", "paid", "overdue"]
PaymentOption = Literal["regular", "accelerated"]


class InvoiceBase(BaseModel):
    client_name: str = Field(min_length=1, max_length=255)
    client_email: EmailStr
    amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    due_date: Optional[date] = None
    description: Optional[str] = None
    payment_option: PaymentOption = "regular"
    project_id: Optional[int] = None
    project_manager_id: Optional[int] = None


class InvoiceCreate(InvoiceBase):
    invoice_number: Optional[str] = Field(default=None, min_length=1, max_length=50)


class InvoiceUpdate(BaseModel):
    status: Optional[InvoiceStatus] = None
    due_date: Optional[date] = None
    amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    client_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    client_email: Optional[EmailStr] = None
    description: Optional[str] = None


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    project_id: Optional[int]
    project_manager_id: Optional[int]
    source_milestone_id: Optional[int] = None

    invoice_number: str
    client_name: str
    client_email: str
    description: Optional[str]
    amount: Decimal
    due_date: Optional[date]
    status: str
    payment_option: str

    created_at: datetime
    updated_at: datetime


class OverdueSweepRead(BaseModel):
    marked_overdue: int
