"""Construction project that invoices can be billed against."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    project_manager_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    client_name = Column(String(255), nullable=True)
    client_email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    company = relationship("Company", back_populates="projects")
    invoices = relationship("Invoice", back_populates="project")
    milestones = relationship("Milestone", back_populates="project")
