"""Invoice model for accounts receivable."""

from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base

INVOICE_STATUSES = ("draft", "sent", "partially_paid", "paid", "overdue")


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (UniqueConstraint("company_id", "invoice_number", name="uq_invoice_number_per_company"),)

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True, index=True)
    project_manager_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    source_milestone_id = Column(Integer, ForeignKey("milestones.id"), nullable=True, index=True)

    invoice_number = Column(String(50), nullable=False)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    amount = Column(Numeric(12, 2), default=0.00, nullable=False)
    due_date = Column(Date, nullable=True)
    status = Column(String(20), default="draft", nullable=False)
    payment_option = Column(String(20), default="regular", nullable=False)

    version_id = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

    company = relationship("Company", back_populates="invoices")
    project = relationship("Project", back_populates="invoices")

    # Concurrent status writes fail with StaleDataError instead of last-write-wins
    __mapper_args__ = {"version_id_col": version_id}
