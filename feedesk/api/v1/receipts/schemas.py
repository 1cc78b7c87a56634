"""Receipt schemas: the printable view of a payment and the tenant's layout settings."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ReceiptSettingsPayload(BaseModel):
    receipt_title: Optional[str] = Field(None, max_length=100)
    school_motto: Optional[str] = Field(None, max_length=255)
    footer_message: Optional[str] = Field(None, max_length=255)
    seasonal_remark: Optional[str] = Field(None, max_length=255)
    stamp_title: Optional[str] = Field(None, max_length=100)
    signature_title: Optional[str] = Field(None, max_length=100)
    show_logo: bool = True
    show_phone: bool = True
    show_email: bool = True
    show_address: bool = True
    show_school_motto: bool = True
    show_term_info: bool = True
    show_class_info: bool = True
    show_balance_info: bool = True
    show_verification_qr: bool = True
    show_stamp_area: bool = True
    show_signature_line: bool = True
    show_footer_message: bool = True
    show_seasonal_remark: bool = False


class ReceiptSettingsResponse(ReceiptSettingsPayload):
    tenant_id: UUID

    class Config:
        from_attributes = True


class ReceiptSchool(BaseModel):
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    logo_url: Optional[str] = None


class ReceiptView(BaseModel):
    """Everything printed on a payment receipt."""

    receipt_number: str
    payment_date: datetime
    amount: Decimal
    payment_method: str
    reference_number: Optional[str] = None
    previous_balance: Decimal
    new_balance: Decimal
    currency: str
    student_name: str
    admission_number: str
    class_name: Optional[str] = None
    term_name: Optional[str] = None
    term_year: Optional[int] = None
    cashier_name: Optional[str] = None
    school: ReceiptSchool
    settings: ReceiptSettingsPayload
    verification_code: str
