"""
Student resolver: map a scanned or typed code to a student and their latest fee record.

Strategies, first match wins:
1. Indexed barcode PREFIX-DIGITS (e.g. STU-0003): the digits are a 1-based position in the
   tenant's active students sorted by full name, the order ID cards are printed in.
   Ordinals shift when students are added, removed or renamed after printing.
2. Exact admission number.
3. Exact student id.
"""

import logging
import re
from typing import Optional, Sequence
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.api.v1.fees.service import get_latest_fee_response
from feedesk.core.exceptions import ServiceError
from feedesk.core.models import Student

from .schemas import ResolvedStudent, StudentSummary

logger = logging.getLogger(__name__)

BARCODE_PATTERN = re.compile(r"^([A-Z]+)-(\d+)$")


def normalize_code(code: Optional[str]) -> str:
    cleaned = (code or "").strip()
    if not cleaned:
        raise ServiceError("Enter or scan a student code", status.HTTP_400_BAD_REQUEST)
    return cleaned


def match_student(code: str, students: Sequence[Student]) -> Optional[Student]:
    """Pick a student from the name-sorted active list; no database access."""
    barcode = BARCODE_PATTERN.match(code)
    if barcode:
        position = int(barcode.group(2))
        if 0 < position <= len(students):
            return students[position - 1]

    for student in students:
        if student.admission_number == code:
            return student

    lowered = code.lower()
    for student in students:
        if str(student.id) == lowered:
            return student
    return None


def to_summary(student: Student) -> StudentSummary:
    school_class = student.school_class
    return StudentSummary(
        id=student.id,
        full_name=student.full_name,
        admission_number=student.admission_number,
        boarding_status=student.boarding_status,
        class_name=school_class.name if school_class else None,
        class_level=school_class.level if school_class else None,
    )


async def list_active_students(db: AsyncSession, tenant_id: UUID) -> Sequence[Student]:
    stmt = (
        select(Student)
        .where(Student.tenant_id == tenant_id, Student.is_active.is_(True))
        .order_by(Student.full_name.asc(), Student.id.asc())
    )
    return (await db.execute(stmt)).unique().scalars().all()


async def with_latest_fee(db: AsyncSession, tenant_id: UUID, student: Student) -> ResolvedStudent:
    fee = await get_latest_fee_response(db, tenant_id, student.id)
    return ResolvedStudent(student=to_summary(student), fee=fee)


async def resolve_student(db: AsyncSession, tenant_id: UUID, code: str) -> Optional[ResolvedStudent]:
    """Resolve a code to a student plus latest fee record, or None when nothing matches."""
    code = normalize_code(code)
    students = await list_active_students(db, tenant_id)
    student = match_student(code, students)
    if student is None:
        logger.info("No student matched code %r for tenant %s", code, tenant_id)
        return None
    return await with_latest_fee(db, tenant_id, student)


async def load_student(db: AsyncSession, tenant_id: UUID, student_id: UUID) -> Optional[ResolvedStudent]:
    """Fresh student + fee snapshot by id, used when a queued student is picked up."""
    student = await db.get(Student, student_id)
    if not student or student.tenant_id != tenant_id or not student.is_active:
        return None
    return await with_latest_fee(db, tenant_id, student)
