"""Fee payment: append-only record of one payment against a student fee record."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from feedesk.db.session import Base


class FeePayment(Base):
    """Payment against a student fee record. Never updated or deleted."""

    __tablename__ = "fee_payments"
    __table_args__ = (
        UniqueConstraint("tenant_id", "receipt_number", name="uq_fee_payment_tenant_receipt"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    student_fee_id = Column(Uuid, ForeignKey("student_fees.id", ondelete="RESTRICT"), nullable=False)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(30), nullable=False)  # cash, mobile_money, bank_transfer, cheque, card
    reference_number = Column(String(100), nullable=True)
    receipt_number = Column(String(50), nullable=False)
    payment_date = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    received_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant")
    student_fee = relationship("StudentFee", backref="payments")
    student = relationship("Student")
    received_by_user = relationship("User", foreign_keys=[received_by])
