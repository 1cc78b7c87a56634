"""Fee structure service layer: the fee lines operators pick from when assigning fees."""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.core.exceptions import ServiceError
from feedesk.core.models import FeeStructure

from .schemas import FeeStructureCreate, FeeStructureResponse, FeeStructureUpdate

logger = logging.getLogger(__name__)


def _to_response(fs: FeeStructure) -> FeeStructureResponse:
    return FeeStructureResponse.model_validate(fs)


async def _get_owned(db: AsyncSession, tenant_id: UUID, fee_structure_id: UUID) -> FeeStructure:
    fs = await db.get(FeeStructure, fee_structure_id)
    if not fs or fs.tenant_id != tenant_id:
        raise ServiceError("Fee structure not found", status.HTTP_404_NOT_FOUND)
    return fs


async def create_fee_structure(
    db: AsyncSession,
    tenant_id: UUID,
    payload: FeeStructureCreate,
) -> FeeStructureResponse:
    fs = FeeStructure(
        tenant_id=tenant_id,
        name=payload.name.strip(),
        level=payload.level.strip(),
        fee_type=payload.fee_type.value,
        amount=payload.amount,
        is_mandatory=payload.is_mandatory,
        is_active=True,
    )
    db.add(fs)
    await db.commit()
    await db.refresh(fs)
    logger.info("Created fee structure %s (%s %s) for tenant %s", fs.id, fs.name, fs.amount, tenant_id)
    return _to_response(fs)


async def list_fee_structures(
    db: AsyncSession,
    tenant_id: UUID,
    active_only: bool = True,
    level: Optional[str] = None,
) -> List[FeeStructureResponse]:
    stmt = select(FeeStructure).where(FeeStructure.tenant_id == tenant_id)
    if active_only:
        stmt = stmt.where(FeeStructure.is_active.is_(True))
    if level:
        stmt = stmt.where(FeeStructure.level == level.strip())
    stmt = stmt.order_by(FeeStructure.level, FeeStructure.name)
    result = await db.execute(stmt)
    return [_to_response(fs) for fs in result.scalars().all()]


async def update_fee_structure(
    db: AsyncSession,
    tenant_id: UUID,
    fee_structure_id: UUID,
    payload: FeeStructureUpdate,
) -> FeeStructureResponse:
    fs = await _get_owned(db, tenant_id, fee_structure_id)
    data = payload.model_dump(exclude_unset=True)
    if "name" in data and data["name"] is not None:
        fs.name = data["name"].strip()
    if "level" in data and data["level"] is not None:
        fs.level = data["level"].strip()
    if "fee_type" in data and data["fee_type"] is not None:
        fs.fee_type = data["fee_type"].value
    if "amount" in data and data["amount"] is not None:
        fs.amount = data["amount"]
    if "is_mandatory" in data and data["is_mandatory"] is not None:
        fs.is_mandatory = data["is_mandatory"]
    await db.commit()
    await db.refresh(fs)
    return _to_response(fs)


async def deactivate_fee_structure(
    db: AsyncSession,
    tenant_id: UUID,
    fee_structure_id: UUID,
) -> FeeStructureResponse:
    fs = await _get_owned(db, tenant_id, fee_structure_id)
    fs.is_active = False
    await db.commit()
    await db.refresh(fs)
    logger.info("Deactivated fee structure %s for tenant %s", fs.id, tenant_id)
    return _to_response(fs)
