"""Student: created by admission workflows elsewhere; read-only for fee collection."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from feedesk.db.session import Base


class Student(Base):
    __tablename__ = "students"
    __table_args__ = (
        # Admission number must be unique per tenant
        UniqueConstraint("tenant_id", "admission_number", name="uq_student_tenant_admission_number"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    admission_number = Column(String(50), nullable=False)  # e.g. ADM/25/0001
    full_name = Column(String(255), nullable=False)
    boarding_status = Column(String(20), nullable=False, default="day")  # day | boarding
    is_active = Column(Boolean, nullable=False, default=True)
    class_id = Column(Uuid, ForeignKey("school_classes.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant")
    school_class = relationship("SchoolClass", lazy="joined")
