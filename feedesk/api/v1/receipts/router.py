"""Receipts router: receipt view, printable receipt, receipt settings."""

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.auth.dependencies import get_current_user
from feedesk.auth.rbac import check_permission
from feedesk.auth.schemas import CurrentUser
from feedesk.core.exceptions import ServiceError
from feedesk.db.session import get_db

from .schemas import ReceiptSettingsPayload, ReceiptSettingsResponse, ReceiptView
from . import service

router = APIRouter(prefix="/api/v1/receipts", tags=["receipts"])


# --- Settings ---
@router.get(
    "/settings",
    response_model=ReceiptSettingsResponse,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def get_receipt_settings(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ReceiptSettingsResponse:
    return await service.get_receipt_settings(db, current_user.tenant_id)


@router.put(
    "/settings",
    response_model=ReceiptSettingsResponse,
    dependencies=[Depends(check_permission("fees", "update"))],
)
async def update_receipt_settings(
    payload: ReceiptSettingsPayload,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ReceiptSettingsResponse:
    return await service.save_receipt_settings(db, current_user.tenant_id, payload)


# --- Receipt ---
@router.get(
    "/{receipt_number}",
    response_model=ReceiptView,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def get_receipt(
    receipt_number: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ReceiptView:
    try:
        return await service.build_receipt(db, current_user.tenant_id, receipt_number)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/{receipt_number}/print",
    response_class=HTMLResponse,
    dependencies=[Depends(check_permission("fees", "read"))],
)
async def print_receipt(
    receipt_number: str,
    autoprint: bool = Query(True, description="Open the print dialog once when the page loads"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> HTMLResponse:
    try:
        view = await service.build_receipt(db, current_user.tenant_id, receipt_number)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return HTMLResponse(service.render_receipt_html(view, autoprint=autoprint))
