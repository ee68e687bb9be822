"""Recording payments against invoices and bills."""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.time import ensure_utc, utc_now
from backend.app.models.invoice import Invoice
from backend.app.models.payment import ENTITY_TYPES, Payment
from backend.app.schemas.payment import PaymentCreate
from backend.app.services.reconciliation import ReconciliationResult, reconcile_invoice

logger = logging.getLogger(__name__)


class PaymentRecordError(Exception):
    """A payment row could not be persisted; nothing was committed."""


@dataclass(frozen=True)
class RecordedPayment:
    payment: Payment
    reconciliation: Optional[ReconciliationResult] = None


def _default_provider(data: PaymentCreate) -> str:
    return "offline" if data.is_offline else "manual"


def record_payment(
    db: Session,
    *,
    company_id: int,
    entity_type: str,
    entity_id: int,
    data: PaymentCreate,
    user_id: int | None = None,
) -> Payment:
    """Insert a completed payment row.

    Amount positivity is checked by ``PaymentCreate``, not here.
    """
    if entity_type not in ENTITY_TYPES:
        raise ValueError(f"Unsupported payment entity type: {entity_type}")
    payment = Payment(
        company_id=company_id,
        user_id=user_id,
        entity_type=entity_type,
        entity_id=entity_id,
        amount=data.amount,
        payment_method=data.payment_method,
        payment_provider=data.payment_provider or _default_provider(data),
        provider_transaction_id=data.provider_transaction_id,
        status="completed",
        payment_date=ensure_utc(data.payment_date) or utc_now(),
        is_offline=data.is_offline,
        payor_name=data.payor_name,
        payor_company=data.payor_company,
        payment_details=data.payment_details,
        notes=data.notes,
    )
    try:
        db.add(payment)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error recording %s payment for %s %s: %s", data.payment_method, entity_type, entity_id, exc)
        raise PaymentRecordError("Failed to record payment") from exc
    db.refresh(payment)
    logger.info("Recorded payment %s of %s against %s %s", payment.id, payment.amount, entity_type, entity_id)
    return payment


def record_invoice_payment(
    db: Session, *, invoice: Invoice, data: PaymentCreate, user_id: int | None = None
) -> RecordedPayment:
    """Insert the payment, then re-derive the invoice's summary and status."""
    payment = record_payment(
        db,
        company_id=invoice.company_id,
        entity_type="invoice",
        entity_id=invoice.id,
        data=data,
        user_id=user_id,
    )
    reconciliation = reconcile_invoice(db, company_id=invoice.company_id, invoice=invoice)
    return RecordedPayment(payment=payment, reconciliation=reconciliation)
