"""Per-tenant receipt layout settings. A missing row means every default applies."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import relationship

from feedesk.db.session import Base


class ReceiptSetting(Base):
    __tablename__ = "receipt_settings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id = Column(Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, unique=True)
    receipt_title = Column(String(100), nullable=True)
    school_motto = Column(String(255), nullable=True)
    footer_message = Column(String(255), nullable=True)
    seasonal_remark = Column(String(255), nullable=True)
    stamp_title = Column(String(100), nullable=True)
    signature_title = Column(String(100), nullable=True)
    show_logo = Column(Boolean, nullable=False, default=True)
    show_phone = Column(Boolean, nullable=False, default=True)
    show_email = Column(Boolean, nullable=False, default=True)
    show_address = Column(Boolean, nullable=False, default=True)
    show_school_motto = Column(Boolean, nullable=False, default=True)
    show_term_info = Column(Boolean, nullable=False, default=True)
    show_class_info = Column(Boolean, nullable=False, default=True)
    show_balance_info = Column(Boolean, nullable=False, default=True)
    show_verification_qr = Column(Boolean, nullable=False, default=True)
    show_stamp_area = Column(Boolean, nullable=False, default=True)
    show_signature_line = Column(Boolean, nullable=False, default=True)
    show_footer_message = Column(Boolean, nullable=False, default=True)
    show_seasonal_remark = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    tenant = relationship("Tenant")
