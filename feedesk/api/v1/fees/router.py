"""Fees router: assign, student fee records, payment, payment history."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.auth.dependencies import get_current_user
from feedesk.auth.rbac import check_permission
from feedesk.auth.schemas import CurrentUser
from feedesk.core.enums import PaymentMethod
from feedesk.core.exceptions import ServiceError
from feedesk.db.session import get_db

from .schemas import (
    AssignFeesRequest,
    PaymentCreate,
    PaymentHistoryItem,
    PaymentResult,
    StudentFeeResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/fees", tags=["fees"])


# --- Fee Assignment ---
@router.post(
    "/assign/{student_id}",
    response_model=StudentFeeResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("fees", "create"))],
)
async def assign_fees(
    student_id: UUID,
    payload: AssignFeesRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentFeeResponse:
    try:
        return await service.assign_fees(
            db,
            current_user.tenant_id,
            student_id,
            payload.fee_structure_ids,
            changed_by=current_user.id,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# --- Student Fee Records ---
@router.get(
    "/student/{student_id}",
    response_model=List[StudentFeeResponse],
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def list_student_fees(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[StudentFeeResponse]:
    return await service.list_student_fees(db, current_user.tenant_id, student_id)


@router.get(
    "/student/{student_id}/latest",
    response_model=StudentFeeResponse,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def get_latest_student_fee(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentFeeResponse:
    result = await service.get_latest_fee_response(db, current_user.tenant_id, student_id)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No fee record for this student",
        )
    return result


# --- Payment ---
@router.post(
    "/pay/{student_fee_id}",
    response_model=PaymentResult,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_permission("fees", "create"))],
)
async def record_payment(
    student_fee_id: UUID,
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> PaymentResult:
    try:
        return await service.record_payment(
            db,
            current_user.tenant_id,
            student_fee_id,
            payload,
            received_by=current_user.id,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/payments",
    response_model=List[PaymentHistoryItem],
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def get_payment_history(
    student_id: Optional[UUID] = Query(None),
    payment_method: Optional[PaymentMethod] = Query(None),
    since: Optional[datetime] = Query(None, description="Only payments on or after this time"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[PaymentHistoryItem]:
    return await service.get_payment_history(
        db,
        current_user.tenant_id,
        student_id=student_id,
        payment_method=payment_method.value if payment_method else None,
        since=since,
        limit=limit,
        offset=offset,
    )
