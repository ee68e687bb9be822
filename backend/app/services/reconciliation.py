"""Invoice payment reconciliation.

Completed payments for an invoice are summed into a ``PaymentSummary`` and the
invoice status derived from that summary is written back. Read failures fall
back to an unpaid summary carrying ``fetch_error``; write failures leave the
computed summary intact and are reported as a ``StatusWriteWarning``.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.models.invoice import Invoice
from backend.app.models.payment import Payment
from backend.app.services.payment_ledger import get_completed_payments

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

# Statuses that only ever come from payment state; anything else was set by a person or a sweep
PAYMENT_DERIVED_STATUSES = ("paid", "partially_paid")

FETCH_ERROR_MESSAGE = "Failed to load payments. Please try again."
STATUS_WRITE_ERROR_MESSAGE = "Failed to update invoice status"


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT)


@dataclass(frozen=True)
class PaymentSummary:
    total_paid: Decimal
    remaining_balance: Decimal
    is_fully_paid: bool
    is_partially_paid: bool
    payments: List[Payment] = field(default_factory=list)

    @property
    def payment_state(self) -> str:
        if self.is_fully_paid:
            return "fully_paid"
        if self.is_partially_paid:
            return "partially_paid"
        return "unpaid"

    @classmethod
    def unpaid(cls, invoice_amount) -> "PaymentSummary":
        return cls(
            total_paid=ZERO,
            remaining_balance=_money(invoice_amount),
            is_fully_paid=False,
            is_partially_paid=False,
        )


@dataclass(frozen=True)
class StatusWriteWarning:
    invoice_id: int
    attempted_status: str
    message: str


@dataclass(frozen=True)
class ReconciliationResult:
    invoice_id: int
    invoice_status: str
    summary: PaymentSummary
    fetch_error: Optional[str] = None
    status_warning: Optional[StatusWriteWarning] = None


def summarize_payments(invoice_amount, payments: Iterable[Payment]) -> PaymentSummary:
    """Aggregate completed payments against an invoice amount.

    Payments in any other status are ignored. The remaining balance never goes
    below zero, so an overpayment still reads as fully paid.
    """
    amount = _money(invoice_amount)
    if amount < ZERO:
        raise ValueError("Invoice amount must be non-negative")

    completed = [p for p in payments if p.status == "completed"]
    total_paid = sum((_money(p.amount) for p in completed), ZERO)
    remaining_balance = max(ZERO, amount - total_paid)
    return PaymentSummary(
        total_paid=total_paid,
        remaining_balance=remaining_balance,
        is_fully_paid=remaining_balance == ZERO and total_paid > ZERO,
        is_partially_paid=total_paid > ZERO and remaining_balance > ZERO,
        payments=completed,
    )


def derive_invoice_status(summary: PaymentSummary, current_status: str) -> str:
    if summary.is_fully_paid:
        return "paid"
    if summary.is_partially_paid:
        # A partial payment does not cure an overdue invoice
        if current_status == "overdue":
            return current_status
        return "partially_paid"
    if current_status in PAYMENT_DERIVED_STATUSES:
        return "sent"
    # draft, sent and overdue are not derivable from payments
    return current_status


def write_invoice_status(db: Session, *, invoice: Invoice, status: str) -> Optional[StatusWriteWarning]:
    """Persist ``status`` on the invoice; return a warning instead of raising on failure."""
    invoice_id = invoice.id
    previous_status = invoice.status
    if previous_status == status:
        return None
    try:
        invoice.status = status
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error updating invoice %s status to %s: %s", invoice_id, status, exc)
        return StatusWriteWarning(invoice_id=invoice_id, attempted_status=status, message=STATUS_WRITE_ERROR_MESSAGE)
    logger.info("Invoice %s status changed from %s to %s", invoice_id, previous_status, status)
    return None


def reconcile_invoice(db: Session, *, company_id: int, invoice: Invoice) -> ReconciliationResult:
    invoice_id = invoice.id
    invoice_amount = invoice.amount
    current_status = invoice.status

    try:
        payments = get_completed_payments(db, company_id=company_id, invoice_id=invoice_id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error fetching payments for invoice %s: %s", invoice_id, exc)
        return ReconciliationResult(
            invoice_id=invoice_id,
            invoice_status=current_status,
            summary=PaymentSummary.unpaid(invoice_amount),
            fetch_error=FETCH_ERROR_MESSAGE,
        )

    summary = summarize_payments(invoice_amount, payments)
    target_status = derive_invoice_status(summary, current_status)
    warning = write_invoice_status(db, invoice=invoice, status=target_status)
    return ReconciliationResult(
        invoice_id=invoice_id,
        invoice_status=current_status if warning else target_status,
        summary=summary,
        status_warning=warning,
    )
