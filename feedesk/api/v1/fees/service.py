"""Fees service: fee assignment, payments, fee records and history. Financial logic with audit."""

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Sequence
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.enums import StudentFeeStatus
from feedesk.core.exceptions import ServiceError
from feedesk.core.models import (
    AcademicTerm,
    FeeAuditLog,
    FeePayment,
    FeeStructure,
    Student,
    StudentFee,
)

from .receipt_numbers import generate_receipt_number
from .schemas import (
    PaymentCreate,
    PaymentHistoryItem,
    PaymentResult,
    StudentFeeResponse,
)

logger = logging.getLogger(__name__)


CENT = Decimal("0.01")
# Numeric(12, 2): ten integer digits.
MAX_AMOUNT = Decimal("9999999999.99")


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def parse_payment_amount(val) -> Decimal:
    """Return the amount as a Decimal in whole cents, or raise if it is not a positive amount the columns can store."""
    try:
        amount = _to_decimal(val)
    except (InvalidOperation, ValueError, TypeError):
        raise ServiceError("Invalid payment amount", status.HTTP_400_BAD_REQUEST)
    if not amount.is_finite() or amount <= 0 or amount > MAX_AMOUNT:
        raise ServiceError("Invalid payment amount", status.HTTP_400_BAD_REQUEST)
    if amount != amount.quantize(CENT):
        raise ServiceError("Payment amount cannot have more than two decimal places", status.HTTP_400_BAD_REQUEST)
    return amount.quantize(CENT)


def fee_status_for(total_amount: Decimal, balance: Decimal) -> StudentFeeStatus:
    """paid when nothing is owed, partial once anything is paid, pending otherwise."""
    if balance <= 0:
        return StudentFeeStatus.paid
    if balance < total_amount:
        return StudentFeeStatus.partial
    return StudentFeeStatus.pending


# --- Audit helper ---
async def _log_fee_audit(
    db: AsyncSession,
    tenant_id: UUID,
    reference_table: str,
    reference_id: UUID,
    action_type: str,
    old_value: Optional[dict],
    new_value: Optional[dict],
    changed_by: Optional[UUID],
) -> None:
    log = FeeAuditLog(
        tenant_id=tenant_id,
        reference_table=reference_table,
        reference_id=reference_id,
        action_type=action_type,
        old_value=old_value,
        new_value=new_value,
        changed_by=changed_by,
    )
    db.add(log)


# --- Student Fee ---
def _fee_to_response(fee: StudentFee) -> StudentFeeResponse:
    return StudentFeeResponse(
        id=fee.id,
        tenant_id=fee.tenant_id,
        student_id=fee.student_id,
        term_id=fee.term_id,
        total_amount=_to_decimal(fee.total_amount),
        amount_paid=_to_decimal(fee.amount_paid),
        balance=_to_decimal(fee.balance),
        status=fee.status,
        created_at=fee.created_at,
        updated_at=fee.updated_at,
    )


async def get_latest_student_fee(
    db: AsyncSession,
    tenant_id: UUID,
    student_id: UUID,
) -> Optional[StudentFee]:
    """Most recently created fee record of the student; older records are not used by collection."""
    stmt = (
        select(StudentFee)
        .where(StudentFee.tenant_id == tenant_id, StudentFee.student_id == student_id)
        .order_by(StudentFee.created_at.desc())
        .limit(1)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_latest_fee_response(
    db: AsyncSession,
    tenant_id: UUID,
    student_id: UUID,
) -> Optional[StudentFeeResponse]:
    fee = await get_latest_student_fee(db, tenant_id, student_id)
    return _fee_to_response(fee) if fee else None


async def list_student_fees(
    db: AsyncSession,
    tenant_id: UUID,
    student_id: UUID,
) -> List[StudentFeeResponse]:
    stmt = (
        select(StudentFee)
        .where(StudentFee.tenant_id == tenant_id, StudentFee.student_id == student_id)
        .order_by(StudentFee.created_at.desc())
    )
    result = await db.execute(stmt)
    return [_fee_to_response(f) for f in result.scalars().all()]


async def get_current_term(db: AsyncSession, tenant_id: UUID) -> Optional[AcademicTerm]:
    stmt = (
        select(AcademicTerm)
        .where(AcademicTerm.tenant_id == tenant_id, AcademicTerm.is_current.is_(True))
        .order_by(AcademicTerm.created_at.desc())
        .limit(1)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def assign_fees(
    db: AsyncSession,
    tenant_id: UUID,
    student_id: UUID,
    fee_structure_ids: Sequence[UUID],
    changed_by: Optional[UUID] = None,
) -> StudentFeeResponse:
    """Create the student's fee record from selected fee lines, attached to the current term."""
    selected_ids = list(dict.fromkeys(fee_structure_ids or []))
    if not selected_ids:
        raise ServiceError("Please select at least one fee", status.HTTP_400_BAD_REQUEST)

    student = await db.get(Student, student_id)
    if not student or student.tenant_id != tenant_id:
        raise ServiceError("Student not found", status.HTTP_404_NOT_FOUND)

    if await get_latest_student_fee(db, tenant_id, student_id) is not None:
        raise ServiceError("Student already has a fee record", status.HTTP_409_CONFLICT)

    lines = (
        await db.execute(
            select(FeeStructure).where(
                FeeStructure.tenant_id == tenant_id,
                FeeStructure.id.in_(selected_ids),
                FeeStructure.is_active.is_(True),
            )
        )
    ).scalars().all()
    if len(lines) != len(selected_ids):
        raise ServiceError(
            "Invalid fee selection (unknown or inactive fee structure)",
            status.HTTP_400_BAD_REQUEST,
        )

    total = sum((_to_decimal(line.amount) for line in lines), Decimal("0"))
    term = await get_current_term(db, tenant_id)

    fee = StudentFee(
        tenant_id=tenant_id,
        student_id=student_id,
        term_id=term.id if term else None,
        total_amount=total,
        amount_paid=Decimal("0"),
        balance=total,
        status=StudentFeeStatus.pending.value,
    )
    try:
        db.add(fee)
        await db.flush()
        await _log_fee_audit(
            db,
            tenant_id,
            "student_fees",
            fee.id,
            "CREATE",
            None,
            {
                "student_id": str(student_id),
                "term_id": str(fee.term_id) if fee.term_id else None,
                "fee_structure_ids": [str(line.id) for line in lines],
                "total_amount": str(total),
            },
            changed_by,
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to assign fees to student %s", student_id)
        raise ServiceError("Failed to assign fees", status.HTTP_500_INTERNAL_SERVER_ERROR) from e
    await db.refresh(fee)
    logger.info(
        "Assigned fees to student %s: %d line(s), total %s, term %s",
        student_id, len(lines), total, fee.term_id,
    )
    return _fee_to_response(fee)


# --- Payment ---
async def record_payment(
    db: AsyncSession,
    tenant_id: UUID,
    student_fee_id: UUID,
    payload: PaymentCreate,
    received_by: Optional[UUID] = None,
) -> PaymentResult:
    """
    Append a payment and apply it to the fee record in one commit.

    Overpayment is accepted: the balance goes negative and the record is paid.
    """
    amount = parse_payment_amount(payload.amount)

    fee = (
        await db.execute(
            select(StudentFee).where(
                StudentFee.id == student_fee_id,
                StudentFee.tenant_id == tenant_id,
            )
        )
    ).scalar_one_or_none()
    if not fee:
        raise ServiceError("Student fee record not found", status.HTTP_404_NOT_FOUND)

    total = _to_decimal(fee.total_amount)
    old_paid = _to_decimal(fee.amount_paid)
    previous_balance = total - old_paid
    new_paid = old_paid + amount
    new_balance = total - new_paid
    new_status = fee_status_for(total, new_balance)
    old_status = fee.status

    method = payload.payment_method.value if hasattr(payload.payment_method, "value") else str(payload.payment_method)
    reference = (payload.reference_number or "").strip() or None
    receipt_number = generate_receipt_number()
    payment_date = datetime.now(timezone.utc)

    payment = FeePayment(
        tenant_id=tenant_id,
        student_fee_id=fee.id,
        student_id=fee.student_id,
        amount=amount,
        payment_method=method,
        reference_number=reference,
        receipt_number=receipt_number,
        payment_date=payment_date,
        received_by=received_by,
    )
    try:
        db.add(payment)
        await db.flush()
        fee.amount_paid = new_paid
        fee.balance = new_balance
        fee.status = new_status.value
        await _log_fee_audit(
            db, tenant_id, "fee_payments", payment.id,
            "CREATE",
            None,
            {"amount": str(amount), "payment_method": method, "receipt_number": receipt_number, "student_fee_id": str(fee.id)},
            received_by,
        )
        await _log_fee_audit(
            db, tenant_id, "student_fees", fee.id,
            "UPDATE",
            {"amount_paid": str(old_paid), "balance": str(previous_balance), "status": old_status},
            {"amount_paid": str(new_paid), "balance": str(new_balance), "status": new_status.value},
            received_by,
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.exception("Failed to record payment of %s against fee record %s", amount, student_fee_id)
        raise ServiceError("Failed to record payment", status.HTTP_500_INTERNAL_SERVER_ERROR) from e

    logger.info(
        "Recorded payment %s of %s (%s) against fee record %s: balance %s -> %s",
        receipt_number, amount, method, fee.id, previous_balance, new_balance,
    )
    return PaymentResult(
        payment_id=payment.id,
        receipt_number=receipt_number,
        student_fee_id=fee.id,
        student_id=fee.student_id,
        amount=amount,
        payment_method=method,
        reference_number=reference,
        payment_date=payment_date,
        previous_balance=previous_balance,
        new_balance=new_balance,
        total_amount=total,
        amount_paid=new_paid,
        status=new_status,
    )


async def get_payment_history(
    db: AsyncSession,
    tenant_id: UUID,
    student_id: Optional[UUID] = None,
    payment_method: Optional[str] = None,
    since: Optional[datetime] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[PaymentHistoryItem]:
    stmt = (
        select(FeePayment, Student.full_name, Student.admission_number)
        .outerjoin(Student, FeePayment.student_id == Student.id)
        .where(FeePayment.tenant_id == tenant_id)
    )
    if student_id is not None:
        stmt = stmt.where(FeePayment.student_id == student_id)
    if payment_method:
        stmt = stmt.where(FeePayment.payment_method == payment_method)
    if since is not None:
        stmt = stmt.where(FeePayment.payment_date >= since)
    stmt = stmt.order_by(FeePayment.payment_date.desc()).limit(limit).offset(offset)
    rows = (await db.execute(stmt)).all()
    return [
        PaymentHistoryItem(
            id=p.id,
            receipt_number=p.receipt_number,
            student_fee_id=p.student_fee_id,
            student_id=p.student_id,
            student_name=full_name,
            admission_number=admission_number,
            amount=_to_decimal(p.amount),
            payment_method=p.payment_method,
            reference_number=p.reference_number,
            payment_date=p.payment_date,
            received_by=p.received_by,
        )
        for p, full_name, admission_number in rows
    ]
