"""Project endpoints scoped to a company."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.crud.crud_project import project_crud
from backend.app.db.session import get_db
from backend.app.dependencies.company import get_company_membership
from backend.app.models.company import CompanyMember
from backend.app.schemas.company import ProjectCreate, ProjectRead
from backend.app.schemas.invoice import InvoiceRead
from backend.app.schemas.milestone import MilestoneCompletionRead, MilestoneCreate, MilestoneRead
from backend.app.services.invoices import ensure_project_manager_is_member
from backend.app.services.milestones import (
    MilestoneCompletionError,
    complete_milestone,
    create_milestone,
    get_milestone_or_404,
    list_milestones,
)

router = APIRouter(prefix="/companies/{company_id}/projects", tags=["projects"])


def _get_project_or_404(db: Session, company_id: int, project_id: int):
    project = project_crud.get(db, project_id=project_id, company_id=company_id)
    if not project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return project


@router.post("/", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    membership: CompanyMember = Depends(get_company_membership),
):
    ensure_project_manager_is_member(db, membership.company_id, payload.project_manager_id)
    return project_crud.create(db, obj_in=payload, company_id=membership.company_id)


@router.get("/", response_model=List[ProjectRead])
async def list_projects(
    project_manager_id: int | None = None,
    db: Session = Depends(get_db),
    membership: CompanyMember = Depends(get_company_membership),
):
    return project_crud.get_multi(db, company_id=membership.company_id, project_manager_id=project_manager_id)


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    membership: CompanyMember = Depends(get_company_membership),
):
    return _get_project_or_404(db, membership.company_id, project_id)


@router.post("/{project_id}/milestones", response_model=MilestoneRead, status_code=status.HTTP_201_CREATED)
async def create_project_milestone(
    project_id: int,
    payload: MilestoneCreate,
    db: Session = Depends(get_db),
    membership: CompanyMember = Depends(get_company_membership),
):
    project = _get_project_or_404(db, membership.company_id, project_id)
    return create_milestone(db, project=project, data=payload)


@router.get("/{project_id}/milestones", response_model=List[MilestoneRead])
async def list_project_milestones(
    project_id: int,
    db: Session = Depends(get_db),
    membership: CompanyMember = Depends(get_company_membership),
):
    _get_project_or_404(db, membership.company_id, project_id)
    return list_milestones(db, company_id=membership.company_id, project_id=project_id)


@router.post("/{project_id}/milestones/{milestone_id}/complete", response_model=MilestoneCompletionRead)
async def complete_project_milestone(
    project_id: int,
    milestone_id: int,
    db: Session = Depends(get_db),
    membership: CompanyMember = Depends(get_company_membership),
):
    milestone = get_milestone_or_404(
        db, company_id=membership.company_id, project_id=project_id, milestone_id=milestone_id
    )
    try:
        milestone, invoice = complete_milestone(db, milestone=milestone)
    except MilestoneCompletionError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    return MilestoneCompletionRead(
        milestone=MilestoneRead.model_validate(milestone), invoice=InvoiceRead.model_validate(invoice)
    )
