"""Read access to recorded payments."""

from decimal import Decimal
from typing import Dict, Iterable, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.app.models.payment import Payment


def get_completed_payments(db: Session, *, company_id: int, invoice_id: int) -> List[Payment]:
    """Completed payments for one invoice, newest payment_date first.

    Payments sharing a payment_date keep insertion order.
    """
    return (
        db.query(Payment)
        .filter(
            Payment.company_id == company_id,
            Payment.entity_type == "invoice",
            Payment.entity_id == invoice_id,
            Payment.status == "completed",
        )
        .order_by(Payment.payment_date.desc(), Payment.id.asc())
        .all()
    )


def get_completed_totals(db: Session, *, company_id: int, invoice_ids: Iterable[int]) -> Dict[int, Decimal]:
    """Sum of completed payment amounts keyed by invoice id (missing ids have no payments)."""
    ids = list(invoice_ids)
    if not ids:
        return {}
    rows = (
        db.query(Payment.entity_id, func.sum(Payment.amount))
        .filter(
            Payment.company_id == company_id,
            Payment.entity_type == "invoice",
            Payment.entity_id.in_(ids),
            Payment.status == "completed",
        )
        .group_by(Payment.entity_id)
        .all()
    )
    return {entity_id: Decimal(str(total or 0)).quantize(Decimal("0.01")) for entity_id, total in rows}
