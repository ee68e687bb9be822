"""Payment listing endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.company import get_company_membership
from backend.app.models.company import CompanyMember
from backend.app.models.payment import ENTITY_TYPES, PAYMENT_METHODS, PAYMENT_STATUSES, Payment
from backend.app.schemas.payment import PaymentRead

router = APIRouter(prefix="/companies/{company_id}/payments", tags=["payments"])


@router.get("/", response_model=List[PaymentRead])
async def list_payments(
    entity_type: str | None = None,
    entity_id: int | None = None,
    status: str | None = None,
    payment_method: str | None = None,
    min_amount: Decimal | None = None,
    max_amount: Decimal | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
    skip: int = 0,
    limit: int = 50,
    sort_by: str = "payment_date",
    sort_order: str = "desc",
    db: Session = Depends(get_db),
    membership: CompanyMember = Depends(get_company_membership),
):
    query = db.query(Payment).filter(Payment.company_id == membership.company_id)

    if entity_type:
        if entity_type not in ENTITY_TYPES:
            raise HTTPException(status_code=400, detail="Invalid entity_type value")
        query = query.filter(Payment.entity_type == entity_type)
    if entity_id is not None:
        query = query.filter(Payment.entity_id == entity_id)
    if status:
        if status not in PAYMENT_STATUSES:
            raise HTTPException(status_code=400, detail="Invalid status value")
        query = query.filter(Payment.status == status)
    if payment_method:
        if payment_method not in PAYMENT_METHODS:
            raise HTTPException(status_code=400, detail="Invalid payment_method value")
        query = query.filter(Payment.payment_method == payment_method)
    if min_amount is not None:
        query = query.filter(Payment.amount >= min_amount)
    if max_amount is not None:
        query = query.filter(Payment.amount <= max_amount)
    if from_date is not None:
        query = query.filter(Payment.payment_date >= from_date)
    if to_date is not None:
        query = query.filter(Payment.payment_date <= to_date)

    supported_sort_fields = {
        "payment_date": Payment.payment_date,
        "amount": Payment.amount,
        "id": Payment.id,
    }
    if sort_by not in supported_sort_fields:
        raise HTTPException(status_code=400, detail="Invalid sort_by field")
    sort_order_normalized = (sort_order or "desc").lower()
    if sort_order_normalized not in {"asc", "desc"}:
        raise HTTPException(status_code=400, detail="Invalid sort_order value")

    sort_column = supported_sort_fields[sort_by]
    if sort_order_normalized == "asc":
        query = query.order_by(sort_column.asc(), Payment.id.asc())
    else:
        query = query.order_by(sort_column.desc(), Payment.id.desc())

    query = query.offset(skip).limit(limit)
    return query.all()
