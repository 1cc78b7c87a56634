"""Scanner schemas: resolved students, queue entries, operator session state."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from feedesk.api.v1.fees.schemas import PaymentResult, StudentFeeResponse
from feedesk.core.enums import QueueEntryStatus


class StudentSummary(BaseModel):
    id: UUID
    full_name: str
    admission_number: str
    boarding_status: Optional[str] = None
    class_name: Optional[str] = None
    class_level: Optional[str] = None


class ResolvedStudent(BaseModel):
    """A student and their latest fee record (None when no fee has been assigned yet)."""

    student: StudentSummary
    fee: Optional[StudentFeeResponse] = None


class ScanRequest(BaseModel):
    code: str = Field(..., max_length=255, description="Barcode payload or typed admission number")


class QueueModeRequest(BaseModel):
    queue_mode: bool


class QueueEntry(BaseModel):
    """A scanned student in the operator's payment queue. Lives in memory only."""

    student_id: UUID
    full_name: str
    admission_number: str
    class_name: Optional[str] = None
    balance: Decimal
    scanned_at: datetime
    status: QueueEntryStatus = QueueEntryStatus.waiting


class ScannerState(BaseModel):
    queue_mode: bool
    current: Optional[ResolvedStudent] = None
    queue: List[QueueEntry] = Field(default_factory=list)
    waiting_count: int = 0
    completed_count: int = 0
    last_payment: Optional[PaymentResult] = None
    notice: Optional[str] = Field(
        None, description="queued, already_queued, no_fee_record, queue_empty, skipped_unavailable"
    )
