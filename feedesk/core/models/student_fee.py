"""Student fee record: amount owed and paid by one student for one term."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from feedesk.core.enums import StudentFeeStatus
from feedesk.db.session import Base


class StudentFee(Base):
    """
    Fee ledger of a student for a term.
    balance is always total_amount - amount_paid; only payments change amount_paid.
    """

    __tablename__ = "student_fees"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending','partial','paid')",
            name="chk_student_fee_status",
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    term_id = Column(Uuid, ForeignKey("academic_terms.id", ondelete="SET NULL"), nullable=True)

    total_amount = Column(Numeric(12, 2), nullable=False)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)
    balance = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default=StudentFeeStatus.pending.value)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant")
    student = relationship("Student", backref="fees")
    term = relationship("AcademicTerm")
