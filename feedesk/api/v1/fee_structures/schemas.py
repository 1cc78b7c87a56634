"""Fee structure schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from feedesk.core.enums import FeeType


class FeeStructureCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    level: str = Field(..., min_length=1, max_length=50)
    fee_type: FeeType = FeeType.tuition
    amount: Decimal = Field(..., ge=0, allow_inf_nan=False)
    is_mandatory: bool = True


class FeeStructureUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    level: Optional[str] = Field(None, min_length=1, max_length=50)
    fee_type: Optional[FeeType] = None
    amount: Optional[Decimal] = Field(None, ge=0, allow_inf_nan=False)
    is_mandatory: Optional[bool] = None


class FeeStructureResponse(BaseModel):
    id: UUID
    tenant_id: UUID
    name: str
    level: str
    fee_type: str
    amount: Decimal
    is_mandatory: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
