"""Project milestones and the invoice raised when one is completed."""

import logging
from datetime import date, timedelta
from typing import List, Tuple

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.time import utc_now, utc_today
from backend.app.models.invoice import Invoice
from backend.app.models.milestone import Milestone
from backend.app.models.project import Project
from backend.app.schemas.milestone import MilestoneCreate
from backend.app.services.invoices import generate_invoice_number

logger = logging.getLogger(__name__)

MILESTONE_INVOICE_DUE_DAYS = 30


class MilestoneCompletionError(Exception):
    pass


def create_milestone(db: Session, *, project: Project, data: MilestoneCreate) -> Milestone:
    milestone = Milestone(company_id=project.company_id, project_id=project.id, **data.model_dump())
    db.add(milestone)
    db.commit()
    db.refresh(milestone)
    return milestone


def list_milestones(db: Session, *, company_id: int, project_id: int) -> List[Milestone]:
    return (
        db.query(Milestone)
        .filter(Milestone.company_id == company_id, Milestone.project_id == project_id)
        .order_by(Milestone.due_date.asc(), Milestone.id.asc())
        .all()
    )


def get_milestone_or_404(db: Session, *, company_id: int, project_id: int, milestone_id: int) -> Milestone:
    milestone = (
        db.query(Milestone)
        .filter(
            Milestone.id == milestone_id,
            Milestone.project_id == project_id,
            Milestone.company_id == company_id,
        )
        .first()
    )
    if not milestone:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Milestone not found")
    return milestone


def complete_milestone(db: Session, *, milestone: Milestone, today: date | None = None) -> Tuple[Milestone, Invoice]:
    """Mark an event milestone complete and raise a draft invoice for its amount.

    The invoice bills the project's client and is due thirty days out. The
    milestone update and the invoice insert are committed together.
    """
    if milestone.is_completed:
        raise HTTPException(status_code=400, detail="Milestone is already completed")
    if milestone.due_type != "event":
        raise HTTPException(status_code=400, detail="Only event-based milestones can be manually completed")
    project = milestone.project
    if not project.client_name:
        raise HTTPException(status_code=400, detail="Project has no client to invoice")

    milestone_id = milestone.id
    as_of = today or utc_today()
    invoice = Invoice(
        company_id=milestone.company_id,
        project_id=project.id,
        project_manager_id=project.project_manager_id,
        source_milestone_id=milestone_id,
        invoice_number=generate_invoice_number(db, milestone.company_id),
        client_name=project.client_name,
        client_email=project.client_email or "",
        description=milestone.name,
        amount=milestone.amount,
        due_date=as_of + timedelta(days=MILESTONE_INVOICE_DUE_DAYS),
        status="draft",
    )
    try:
        db.add(invoice)
        db.flush()
        milestone.is_completed = True
        milestone.status = "completed"
        milestone.completed_at = utc_now()
        milestone.invoice_id = invoice.id
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Error completing milestone %s: %s", milestone_id, exc)
        raise MilestoneCompletionError("Failed to complete milestone") from exc

    db.refresh(milestone)
    db.refresh(invoice)
    logger.info("Milestone %s completed; created invoice %s", milestone_id, invoice.invoice_number)
    return milestone, invoice
