"""Invoice routes for company receivables."""

from datetime import date, datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.company import get_company_membership
from backend.app.models.company import CompanyMember
from backend.app.schemas.invoice import InvoiceCreate, InvoiceRead, InvoiceUpdate, OverdueSweepRead
from backend.app.schemas.payment import PaymentCreate, ReconciliationRead, RecordedPaymentRead
from backend.app.services.invoices import (
    create_invoice,
    get_invoice_aging_summary,
    get_invoice_or_404,
    list_invoices,
    mark_overdue_invoices,
    send_invoice,
    update_invoice,
)
from backend.app.services.payments import PaymentRecordError, record_invoice_payment
from backend.app.services.reconciliation import reconcile_invoice

router = APIRouter(prefix="/companies/{company_id}/invoices", tags=["invoices"])


@router.get("/aging-summary")
async def get_invoice_aging(
    as_of: date | None = None,
    db: Session = Depends(get_db),
    membership: CompanyMember = Depends(get_company_membership),
):
    return get_invoice_aging_summary(db, company_id=membership.company_id, today=as_of)


@router.post("/mark-overdue", response_model=OverdueSweepRead)
async def mark_overdue(
    as_of: date | None = None,
    db: Session = Depends(get_db),
    membership: CompanyMember = Depends(get_company_membership),
):
    count = mark_overdue_invoices(db, company_id=membership.company_id, today=as_of)
    return {"marked_overdue": count}


@router.get("/", response_model=List[InvoiceRead])
async def list_company_invoices(
    status: str | None = None,
    project_id: str | None = None,
    project_manager_id: int | None = None,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
    skip: int = 0,
    limit: int = 50,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    db: Session = Depends(get_db),
    membership: CompanyMember = Depends(get_company_membership),
):
    return list_invoices(
        db,
        company_id=membership.company_id,
        status=status,
        project_id=project_id,
        project_manager_id=project_manager_id,
        created_from=created_from,
        created_to=created_to,
        sort_by=sort_by,
        sort_order=sort_order,
        skip=skip,
        limit=limit,
    )


@router.post("/", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
async def create_company_invoice(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    membership: CompanyMember = Depends(get_company_membership),
):
    return create_invoice(db, company_id=membership.company_id, data=payload)


@router.get("/{invoice_id}", response_model=InvoiceRead)
async def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    membership: CompanyMember = Depends(get_company_membership),
):
    return get_invoice_or_404(db, company_id=membership.company_id, invoice_id=invoice_id)


@router.patch("/{invoice_id}", response_model=InvoiceRead)
async def patch_invoice(
    invoice_id: int,
    payload: InvoiceUpdate,
    db: Session = Depends(get_db),
    membership: CompanyMember = Depends(get_company_membership),
):
    invoice = get_invoice_or_404(db, company_id=membership.company_id, invoice_id=invoice_id)
    invoice, _ = update_invoice(db, invoice=invoice, data=payload)
    return invoice


@router.post("/{invoice_id}/send", response_model=InvoiceRead)
async def send_company_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    membership: CompanyMember = Depends(get_company_membership),
):
    invoice = get_invoice_or_404(db, company_id=membership.company_id, invoice_id=invoice_id)
    return send_invoice(db, invoice=invoice)


@router.get("/{invoice_id}/payment-summary", response_model=ReconciliationRead)
async def get_invoice_payment_summary(
    invoice_id: int,
    db: Session = Depends(get_db),
    membership: CompanyMember = Depends(get_company_membership),
):
    invoice = get_invoice_or_404(db, company_id=membership.company_id, invoice_id=invoice_id)
    result = reconcile_invoice(db, company_id=membership.company_id, invoice=invoice)
    return ReconciliationRead.model_validate(result)


@router.post("/{invoice_id}/payments", response_model=RecordedPaymentRead, status_code=status.HTTP_201_CREATED)
async def create_payment_for_invoice(
    invoice_id: int,
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    membership: CompanyMember = Depends(get_company_membership),
):
    invoice = get_invoice_or_404(db, company_id=membership.company_id, invoice_id=invoice_id)
    try:
        recorded = record_invoice_payment(db, invoice=invoice, data=payload, user_id=membership.user_id)
    except PaymentRecordError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    return RecordedPaymentRead.model_validate(recorded)
