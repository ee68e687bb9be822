"""CRUD operations for projects."""

from typing import List, Optional

from sqlalchemy.orm import Session

from backend.app.models.project import Project
from backend.app.schemas.company import ProjectCreate


class CRUDProject:
    def create(self, db: Session, *, obj_in: ProjectCreate, company_id: int) -> Project:
        obj = Project(company_id=company_id, **obj_in.model_dump())
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    def get(self, db: Session, *, project_id: int, company_id: int) -> Optional[Project]:
        return (
            db.query(Project)
            .filter(Project.id == project_id, Project.company_id == company_id)
            .first()
        )

    def get_multi(self, db: Session, *, company_id: int, project_manager_id: int | None = None) -> List[Project]:
        query = db.query(Project).filter(Project.company_id == company_id)
        if project_manager_id is not None:
            query = query.filter(Project.project_manager_id == project_manager_id)
        return query.order_by(Project.created_at.desc(), Project.id.desc()).all()


project_crud = CRUDProject()
