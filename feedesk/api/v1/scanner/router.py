"""Scanner router: student lookup and the operator's collection desk session."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.api.v1.fees.schemas import AssignFeesRequest, PaymentCreate
from feedesk.auth.dependencies import get_current_user
from feedesk.auth.rbac import check_permission
from feedesk.auth.schemas import CurrentUser
from feedesk.core.exceptions import ServiceError
from feedesk.db.session import get_db

from .resolver import resolve_student
from .schemas import (
    QueueModeRequest,
    ResolvedStudent,
    ScannerState,
    ScanRequest,
)
from .service import STUDENT_NOT_FOUND, ScannerSession, get_scanner_session

router = APIRouter(prefix="/api/v1/scanner", tags=["scanner"])


# --- Lookup ---
@router.get(
    "/lookup",
    response_model=ResolvedStudent,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def lookup_student(
    code: str = Query(..., max_length=255),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ResolvedStudent:
    try:
        resolved = await resolve_student(db, current_user.tenant_id, code)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if resolved is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=STUDENT_NOT_FOUND)
    return resolved


# --- Session ---
@router.get(
    "",
    response_model=ScannerState,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def get_state(session: ScannerSession = Depends(get_scanner_session)) -> ScannerState:
    return session.state()


@router.put(
    "/mode",
    response_model=ScannerState,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def set_queue_mode(
    payload: QueueModeRequest,
    session: ScannerSession = Depends(get_scanner_session),
) -> ScannerState:
    return session.set_mode(payload.queue_mode)


@router.post(
    "/scan",
    response_model=ScannerState,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def scan(
    payload: ScanRequest,
    db: AsyncSession = Depends(get_db),
    session: ScannerSession = Depends(get_scanner_session),
) -> ScannerState:
    try:
        return await session.scan(db, payload.code)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/reset",
    response_model=ScannerState,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def reset(session: ScannerSession = Depends(get_scanner_session)) -> ScannerState:
    return session.reset()


# --- Queue ---
@router.post(
    "/queue/clear-completed",
    response_model=ScannerState,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def clear_completed(session: ScannerSession = Depends(get_scanner_session)) -> ScannerState:
    return session.clear_completed()


@router.post(
    "/queue/{student_id}/select",
    response_model=ScannerState,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def select_queued_student(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
    session: ScannerSession = Depends(get_scanner_session),
) -> ScannerState:
    try:
        return await session.select(db, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/queue/{student_id}",
    response_model=ScannerState,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def remove_queued_student(
    student_id: UUID,
    session: ScannerSession = Depends(get_scanner_session),
) -> ScannerState:
    try:
        return session.remove(student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/queue",
    response_model=ScannerState,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def clear_queue(session: ScannerSession = Depends(get_scanner_session)) -> ScannerState:
    return session.clear_queue()


@router.post(
    "/advance",
    response_model=ScannerState,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def advance(
    db: AsyncSession = Depends(get_db),
    session: ScannerSession = Depends(get_scanner_session),
) -> ScannerState:
    try:
        return await session.advance(db)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


# --- Fees for the current student ---
@router.post(
    "/assign-fees",
    response_model=ScannerState,
    dependencies=[Depends(check_permission("fees", "create"))],
)
async def assign_fees(
    payload: AssignFeesRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    session: ScannerSession = Depends(get_scanner_session),
) -> ScannerState:
    try:
        return await session.assign_fees(db, payload.fee_structure_ids, changed_by=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/pay",
    response_model=ScannerState,
    dependencies=[Depends(check_permission("fees", "create"))],
)
async def pay(
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
    session: ScannerSession = Depends(get_scanner_session),
) -> ScannerState:
    try:
        return await session.pay(db, payload, received_by=current_user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
