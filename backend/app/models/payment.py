"""Payment model for receipts against invoices and bills."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text

from backend.app.db.base_class import Base

ENTITY_TYPES = ("invoice", "bill")
PAYMENT_METHODS = ("credit_card", "ach", "check", "cash", "wire_transfer", "bank_transfer")
OFFLINE_PAYMENT_METHODS = ("check", "cash", "wire_transfer")
PAYMENT_STATUSES = ("pending", "processing", "completed", "failed", "cancelled")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    # Polymorphic reference: invoices.id or a bill id, depending on entity_type
    entity_type = Column(String(20), nullable=False, index=True)
    entity_id = Column(Integer, nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(30), nullable=False)
    payment_provider = Column(String(30), nullable=True)
    provider_transaction_id = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    payment_date = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    is_offline = Column(Boolean, nullable=False, default=False)
    payor_name = Column(String(255), nullable=True)
    payor_company = Column(String(255), nullable=True)
    payment_details = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
