"""Invoice-related service helpers."""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.core.time import utc_now, utc_today
from backend.app.dependencies.company import is_company_member
from backend.app.models.invoice import INVOICE_STATUSES, Invoice
from backend.app.models.project import Project
from backend.app.schemas.invoice import InvoiceCreate, InvoiceUpdate
from backend.app.services.payment_ledger import get_completed_totals
from backend.app.services.reconciliation import ReconciliationResult, reconcile_invoice

logger = logging.getLogger(__name__)

OPEN_STATUSES = ("sent", "partially_paid", "overdue")
OVERDUE_ELIGIBLE_STATUSES = ("sent", "partially_paid")


def get_invoice(db: Session, *, company_id: int, invoice_id: int) -> Optional[Invoice]:
    return db.query(Invoice).filter(Invoice.id == invoice_id, Invoice.company_id == company_id).first()


def get_invoice_or_404(db: Session, *, company_id: int, invoice_id: int) -> Invoice:
    invoice = get_invoice(db, company_id=company_id, invoice_id=invoice_id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


def _get_company_project(db: Session, company_id: int, project_id: int) -> Project:
    project = db.query(Project).filter(Project.id == project_id, Project.company_id == company_id).first()
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


def _invoice_number_taken(db: Session, company_id: int, invoice_number: str) -> bool:
    return (
        db.query(Invoice.id)
        .filter(Invoice.company_id == company_id, Invoice.invoice_number == invoice_number)
        .first()
        is not None
    )


def generate_invoice_number(db: Session, company_id: int) -> str:
    sequence = db.query(Invoice).filter(Invoice.company_id == company_id).count() + 1
    while True:
        candidate = f"INV-{sequence:04d}"
        if not _invoice_number_taken(db, company_id, candidate):
            return candidate
        sequence += 1


def ensure_project_manager_is_member(db: Session, company_id: int, project_manager_id: int | None) -> None:
    if project_manager_id is not None and not is_company_member(db, company_id, project_manager_id):
        raise HTTPException(status_code=400, detail="Project manager must be a member of the company")


def create_invoice(db: Session, *, company_id: int, data: InvoiceCreate) -> Invoice:
    project_manager_id = data.project_manager_id
    ensure_project_manager_is_member(db, company_id, project_manager_id)
    if data.project_id is not None:
        project = _get_company_project(db, company_id, data.project_id)
        if project_manager_id is None:
            project_manager_id = project.project_manager_id

    invoice_number = data.invoice_number or generate_invoice_number(db, company_id)
    if _invoice_number_taken(db, company_id, invoice_number):
        raise HTTPException(status_code=400, detail="Invoice number already exists")

    invoice = Invoice(
        company_id=company_id,
        project_id=data.project_id,
        project_manager_id=project_manager_id,
        invoice_number=invoice_number,
        client_name=data.client_name,
        client_email=str(data.client_email),
        description=data.description,
        amount=data.amount,
        due_date=data.due_date,
        status="draft",
        payment_option=data.payment_option,
    )
    db.add(invoice)
    try:
        db.commit()
    except IntegrityError:
        # Another request took the same number between the check and the insert
        db.rollback()
        logger.warning("Invoice number %s already taken for company %s", invoice_number, company_id)
        raise HTTPException(status_code=400, detail="Invoice number already exists")
    db.refresh(invoice)
    logger.info("Created invoice %s (%s) for company %s", invoice.id, invoice.invoice_number, company_id)
    return invoice


def list_invoices(
    db: Session,
    *,
    company_id: int,
    status: str | None = None,
    project_id: str | None = None,
    project_manager_id: int | None = None,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    skip: int = 0,
    limit: int = 50,
) -> List[Invoice]:
    """Company-scoped receivables list.

    ``project_id`` is either a project id or ``"unassigned"`` for invoices
    without a project.
    """
    query = db.query(Invoice).filter(Invoice.company_id == company_id)
    if status:
        if status not in INVOICE_STATUSES:
            raise HTTPException(status_code=400, detail="Invalid status value")
        query = query.filter(Invoice.status == status)
    if project_id == "unassigned":
        query = query.filter(Invoice.project_id.is_(None))
    elif project_id:
        try:
            project_id_int = int(project_id)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid project_id value")
        query = query.filter(Invoice.project_id == project_id_int)
    if project_manager_id is not None:
        query = query.filter(Invoice.project_manager_id == project_manager_id)
    if created_from is not None:
        query = query.filter(Invoice.created_at >= created_from)
    if created_to is not None:
        query = query.filter(Invoice.created_at <= created_to)

    supported_sort_fields = {
        "created_at": Invoice.created_at,
        "due_date": Invoice.due_date,
        "amount": Invoice.amount,
        "status": Invoice.status,
    }
    if sort_by not in supported_sort_fields:
        raise HTTPException(status_code=400, detail="Invalid sort_by value")
    sort_order_normalized = (sort_order or "desc").lower()
    if sort_order_normalized not in {"asc", "desc"}:
        raise HTTPException(status_code=400, detail="Invalid sort_order value")
    sort_column = supported_sort_fields[sort_by]
    if sort_order_normalized == "asc":
        order_by_clause = [sort_column.asc(), Invoice.id.asc()]
    else:
        order_by_clause = [sort_column.desc(), Invoice.id.desc()]

    return query.order_by(*order_by_clause).offset(skip).limit(limit).all()


def update_invoice(
    db: Session, *, invoice: Invoice, data: InvoiceUpdate
) -> Tuple[Invoice, Optional[ReconciliationResult]]:
    """Apply a manual edit. A changed amount re-derives the payment status."""
    update_data = data.model_dump(exclude_unset=True)
    amount_changed = "amount" in update_data and update_data["amount"] is not None and (
        Decimal(str(update_data["amount"])) != Decimal(str(invoice.amount))
    )
    for field, value in update_data.items():
        if value is None:
            continue
        if field == "client_email":
            value = str(value)
        setattr(invoice, field, value)
    db.commit()
    db.refresh(invoice)

    reconciliation = None
    if amount_changed:
        reconciliation = reconcile_invoice(db, company_id=invoice.company_id, invoice=invoice)
        db.refresh(invoice)
    return invoice, reconciliation


def send_invoice(db: Session, *, invoice: Invoice) -> Invoice:
    if invoice.status != "draft":
        raise HTTPException(status_code=400, detail="Only draft invoices can be sent")
    invoice.status = "sent"
    db.commit()
    db.refresh(invoice)
    logger.info("Invoice %s marked as sent", invoice.id)
    return invoice


def mark_overdue_invoices(db: Session, *, company_id: int, today: date | None = None) -> int:
    """Flag unpaid invoices whose due date has passed; return how many changed."""
    as_of = today or utc_today()
    invoices = (
        db.query(Invoice)
        .filter(
            Invoice.company_id == company_id,
            Invoice.status.in_(OVERDUE_ELIGIBLE_STATUSES),
            Invoice.due_date.is_not(None),
            Invoice.due_date < as_of,
        )
        .all()
    )
    for invoice in invoices:
        invoice.status = "overdue"
    if invoices:
        db.commit()
        logger.info("Marked %d invoices overdue for company %s", len(invoices), company_id)
    return len(invoices)


def _init_bucket():
    return {"count": 0, "total_balance": Decimal("0.00")}


def get_invoice_aging_summary(db: Session, *, company_id: int, today: date | None = None) -> dict:
    """Compute aging buckets for a company's open invoices."""
    now = utc_now()
    as_of = today or now.date()

    buckets = {
        "current": _init_bucket(),
        "days_1_30": _init_bucket(),
        "days_31_60": _init_bucket(),
        "days_61_90": _init_bucket(),
        "days_90_plus": _init_bucket(),
    }

    invoices = (
        db.query(Invoice)
        .filter(Invoice.company_id == company_id, Invoice.status.in_(OPEN_STATUSES))
        .all()
    )
    paid_totals = get_completed_totals(db, company_id=company_id, invoice_ids=[inv.id for inv in invoices])

    for invoice in invoices:
        amount = Decimal(str(invoice.amount or 0)).quantize(Decimal("0.01"))
        balance = max(Decimal("0.00"), amount - paid_totals.get(invoice.id, Decimal("0.00")))
        if balance <= Decimal("0.00"):
            continue
        due_date = invoice.due_date
        if due_date is None or due_date >= as_of:
            bucket_key = "current"
        else:
            days_past_due = (as_of - due_date).days
            if 1 <= days_past_due <= 30:
                bucket_key = "days_1_30"
            elif 31 <= days_past_due <= 60:
                bucket_key = "days_31_60"
            elif 61 <= days_past_due <= 90:
                bucket_key = "days_61_90"
            else:
                bucket_key = "days_90_plus"

        bucket = buckets[bucket_key]
        bucket["count"] += 1
        bucket["total_balance"] += balance

    # Format totals to strings for response consistency
    formatted_buckets = {}
    for key, data in buckets.items():
        formatted_buckets[key] = {
            "count": data["count"],
            "total_balance": str(data["total_balance"].quantize(Decimal("0.01"))),
        }

    return {"as_of": as_of.isoformat(), "buckets": formatted_buckets}
