"""Company and membership endpoints."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_user
from backend.app.dependencies.company import get_company_owner
from backend.app.models.company import Company, CompanyMember
from backend.app.models.user import User
from backend.app.schemas.company import CompanyCreate, CompanyMemberCreate, CompanyMemberRead, CompanyRead

router = APIRouter(prefix="/companies", tags=["companies"])


@router.post("/", response_model=CompanyRead, status_code=status.HTTP_201_CREATED)
async def create_company(
    payload: CompanyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    company = Company(name=payload.name)
    db.add(company)
    db.flush()  # obtain company id for the owner membership
    db.add(CompanyMember(company_id=company.id, user_id=current_user.id, role="owner"))
    db.commit()
    db.refresh(company)
    return company


@router.get("/", response_model=List[CompanyRead])
async def list_my_companies(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return (
        db.query(Company)
        .join(CompanyMember, CompanyMember.company_id == Company.id)
        .filter(CompanyMember.user_id == current_user.id)
        .order_by(Company.name.asc(), Company.id.asc())
        .all()
    )


@router.post("/{company_id}/members", response_model=CompanyMemberRead, status_code=status.HTTP_201_CREATED)
async def add_company_member(
    company_id: int,
    payload: CompanyMemberCreate,
    db: Session = Depends(get_db),
    owner: CompanyMember = Depends(get_company_owner),
):
    user = db.query(User).filter(User.email == payload.email).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    existing = (
        db.query(CompanyMember)
        .filter(CompanyMember.company_id == company_id, CompanyMember.user_id == user.id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=400, detail="User is already a member of this company")
    member = CompanyMember(company_id=company_id, user_id=user.id, role=payload.role)
    db.add(member)
    db.commit()
    db.refresh(member)
    return member
