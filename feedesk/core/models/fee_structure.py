"""Fee structure line (Tuition, Boarding, Transport...). Tenant-scoped template used when assigning fees."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from feedesk.core.enums import FeeType
from feedesk.db.session import Base


class FeeStructure(Base):
    """Tenant-scoped fee line. Soft delete via is_active; never mutated by payment collection."""

    __tablename__ = "fee_structures"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    level = Column(String(50), nullable=False)  # e.g. "P.5", "S.1", "All"
    fee_type = Column(String(30), nullable=False, default=FeeType.tuition.value)
    amount = Column(Numeric(12, 2), nullable=False)
    is_mandatory = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant", backref="fee_structures")
