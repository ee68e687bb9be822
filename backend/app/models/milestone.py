"""Billable project milestone; completing one raises a draft invoice."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base

MILESTONE_DUE_TYPES = ("event", "date")


class Milestone(Base):
    __tablename__ = "milestones"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    # "event" milestones are completed by hand; "date" milestones fall due on due_date
    due_type = Column(String(20), nullable=False, default="event")
    due_date = Column(Date, nullable=True)

    is_completed = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="pending")
    completed_at = Column(DateTime(timezone=True), nullable=True)
    # Set once the milestone has been invoiced; the invoice points back via source_milestone_id
    invoice_id = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    project = relationship("Project", back_populates="milestones")
