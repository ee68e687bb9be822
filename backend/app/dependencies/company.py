"""Company scoping for routes under /companies/{company_id}."""

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_user
from backend.app.models.company import CompanyMember
from backend.app.models.user import User


def get_company_membership(
    company_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CompanyMember:
    """
    Resolve the caller's membership in the company named by the path.
    Non-members get 404 so company ids are not disclosed.
    """
    membership = (
        db.query(CompanyMember)
        .filter(CompanyMember.company_id == company_id, CompanyMember.user_id == current_user.id)
        .first()
    )
    if not membership:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Company not found")
    return membership


def get_company_owner(membership: CompanyMember = Depends(get_company_membership)) -> CompanyMember:
    if membership.role != "owner":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Company owner access required")
    return membership


def is_company_member(db: Session, company_id: int, user_id: int) -> bool:
    return (
        db.query(CompanyMember.id)
        .filter(CompanyMember.company_id == company_id, CompanyMember.user_id == user_id)
        .first()
        is not None
    )
