"""Fees schemas: fee records, assignment, payments."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from feedesk.core.enums import PaymentMethod, StudentFeeStatus


# --- Student Fee ---
class StudentFeeResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    student_id: UUID
    term_id: Optional[UUID] = None
    total_amount: Decimal
    amount_paid: Decimal
    balance: Decimal
    status: StudentFeeStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AssignFeesRequest(BaseModel):
    fee_structure_ids: List[UUID] = Field(..., min_length=1, description="Selected fee structure lines")


# --- Payment ---
class PaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, allow_inf_nan=False)
    payment_method: PaymentMethod = PaymentMethod.cash
    reference_number: Optional[str] = Field(None, max_length=100)


class PaymentResult(BaseModel):
    """Outcome of a recorded payment, enough to render the receipt and refresh the fee snapshot."""

    payment_id: UUID
    receipt_number: str
    student_fee_id: UUID
    student_id: UUID
    amount: Decimal
    payment_method: str
    reference_number: Optional[str] = None
    payment_date: datetime
    previous_balance: Decimal
    new_balance: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    status: StudentFeeStatus


class PaymentHistoryItem(BaseModel):
    id: UUID
    receipt_number: str
    student_fee_id: UUID
    student_id: UUID
    student_name: Optional[str] = None
    admission_number: Optional[str] = None
    amount: Decimal
    payment_method: str
    reference_number: Optional[str] = None
    payment_date: datetime
    received_by: Optional[UUID] = None
