import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text, Uuid

from feedesk.db.session import Base


class Tenant(Base):
    """
    Tenant (organization) in the multi-tenant platform.

    Contact fields are display data only; they are printed on receipts.
    """

    __tablename__ = "tenants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    logo_url = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="ACTIVE")
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
