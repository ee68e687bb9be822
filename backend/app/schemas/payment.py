"""Payment schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from backend.app.models.payment import OFFLINE_PAYMENT_METHODS

PaymentMethod = Literal["credit_card", "ach", "check", "cash", "wire_transfer", "bank_transfer"]
PaymentProvider = Literal["rainforestpay", "finix", "checkbook", "stripe", "manual", "offline"]


class PaymentCreate(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    payment_method: PaymentMethod
    payment_provider: Optional[PaymentProvider] = None
    provider_transaction_id: Optional[str] = None
    payment_date: Optional[datetime] = None
    payor_name: Optional[str] = None
    payor_company: Optional[str] = None
    payment_details: Optional[str] = None
    notes: Optional[str] = None

    @property
    def is_offline(self) -> bool:
        return self.payment_method in OFFLINE_PAYMENT_METHODS

    @model_validator(mode="after")
    def require_payor_for_offline(self):
        if self.is_offline and not (self.payor_name or "").strip():
            raise ValueError("Payor name is required for offline payments")
        return self


class PaymentRead(BaseModel):
    id: int
    company_id: int
    entity_type: str
    entity_id: int
    amount: Decimal
    payment_method: str
    payment_provider: Optional[str] = None
    provider_transaction_id: Optional[str] = None
    status: str
    payment_date: datetime
    is_offline: bool
    payor_name: Optional[str] = None
    payor_company: Optional[str] = None
    payment_details: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InvoicePaymentSummaryRead(BaseModel):
    total_paid: Decimal
    remaining_balance: Decimal
    is_fully_paid: bool
    is_partially_paid: bool
    payment_state: Literal["unpaid", "partially_paid", "fully_paid"]
    payments: List[PaymentRead] = []

    model_config = ConfigDict(from_attributes=True)


class StatusWriteWarningRead(BaseModel):
    invoice_id: int
    attempted_status: str
    message: str

    model_config = ConfigDict(from_attributes=True)


class ReconciliationRead(BaseModel):
    """Payment summary plus the outcome of persisting the derived status."""

    invoice_id: int
    invoice_status: str
    summary: InvoicePaymentSummaryRead
    fetch_error: Optional[str] = None
    status_warning: Optional[StatusWriteWarningRead] = None

    model_config = ConfigDict(from_attributes=True)


class RecordedPaymentRead(BaseModel):
    payment: PaymentRead
    reconciliation: Optional[ReconciliationRead] = None

    model_config = ConfigDict(from_attributes=True)
