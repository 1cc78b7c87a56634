"""Receipts service: assemble, format and render payment receipts; tenant receipt settings."""

import logging
from decimal import Decimal
from pathlib import Path
from typing import Optional
from uuid import UUID

import qrcode
from fastapi import status
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup
from qrcode.image.svg import SvgPathImage
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.auth.models import User
from feedesk.core.config import settings
from feedesk.core.exceptions import ServiceError
from feedesk.core.models import AcademicTerm, FeePayment, ReceiptSetting, Student, StudentFee, Tenant

from .schemas import (
    ReceiptSchool,
    ReceiptSettingsPayload,
    ReceiptSettingsResponse,
    ReceiptView,
)

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def format_currency(value, currency: Optional[str] = None) -> str:
    """UGX 1,234 for whole amounts, UGX 1,234.50 otherwise."""
    amount = _to_decimal(value)
    code = currency or settings.currency_code
    if amount == amount.to_integral_value():
        return f"{code} {int(amount):,}"
    return f"{code} {amount:,.2f}"


def verification_code(receipt_number: str, admission_number: str) -> str:
    return f"{receipt_number}-{admission_number}"


def verification_qr_svg(data: str) -> str:
    """Inline SVG QR code for the given payload."""
    img = qrcode.make(data, image_factory=SvgPathImage, box_size=6, border=1)
    return img.to_string(encoding="unicode")


_env.filters["currency"] = format_currency


# --- Settings ---
def _settings_payload(row: Optional[ReceiptSetting]) -> ReceiptSettingsPayload:
    if row is None:
        return ReceiptSettingsPayload()
    return ReceiptSettingsPayload.model_validate(row, from_attributes=True)


async def _get_settings_row(db: AsyncSession, tenant_id: UUID) -> Optional[ReceiptSetting]:
    stmt = select(ReceiptSetting).where(ReceiptSetting.tenant_id == tenant_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_receipt_settings(db: AsyncSession, tenant_id: UUID) -> ReceiptSettingsResponse:
    row = await _get_settings_row(db, tenant_id)
    return ReceiptSettingsResponse(tenant_id=tenant_id, **_settings_payload(row).model_dump())


async def save_receipt_settings(
    db: AsyncSession,
    tenant_id: UUID,
    payload: ReceiptSettingsPayload,
) -> ReceiptSettingsResponse:
    row = await _get_settings_row(db, tenant_id)
    if row is None:
        row = ReceiptSetting(tenant_id=tenant_id)
        db.add(row)
    for key, value in payload.model_dump().items():
        setattr(row, key, value)
    await db.commit()
    await db.refresh(row)
    logger.info("Updated receipt settings for tenant %s", tenant_id)
    return ReceiptSettingsResponse(tenant_id=tenant_id, **_settings_payload(row).model_dump())


# --- Receipt ---
async def build_receipt(db: AsyncSession, tenant_id: UUID, receipt_number: str) -> ReceiptView:
    payment = (
        await db.execute(
            select(FeePayment).where(
                FeePayment.tenant_id == tenant_id,
                FeePayment.receipt_number == receipt_number,
            )
        )
    ).scalar_one_or_none()
    if not payment:
        raise ServiceError("Receipt not found", status.HTTP_404_NOT_FOUND)

    student = await db.get(Student, payment.student_id)
    fee = await db.get(StudentFee, payment.student_fee_id)
    tenant = await db.get(Tenant, tenant_id)
    if student is None or fee is None or tenant is None:
        raise ServiceError("Receipt not found", status.HTTP_404_NOT_FOUND)

    # Balance as it stood right after this payment, so reprints stay stable.
    paid_through = (
        await db.execute(
            select(func.coalesce(func.sum(FeePayment.amount), 0)).where(
                FeePayment.student_fee_id == fee.id,
                FeePayment.payment_date <= payment.payment_date,
            )
        )
    ).scalar_one()
    amount = _to_decimal(payment.amount)
    new_balance = _to_decimal(fee.total_amount) - _to_decimal(paid_through)

    term = await db.get(AcademicTerm, fee.term_id) if fee.term_id else None
    cashier = await db.get(User, payment.received_by) if payment.received_by else None
    school_class = student.school_class

    return ReceiptView(
        receipt_number=payment.receipt_number,
        payment_date=payment.payment_date,
        amount=amount,
        payment_method=payment.payment_method,
        reference_number=payment.reference_number,
        previous_balance=new_balance + amount,
        new_balance=new_balance,
        currency=settings.currency_code,
        student_name=student.full_name,
        admission_number=student.admission_number,
        class_name=school_class.name if school_class else None,
        term_name=term.name if term else None,
        term_year=term.year if term else None,
        cashier_name=cashier.full_name if cashier else None,
        school=ReceiptSchool(
            name=tenant.name,
            phone=tenant.phone,
            email=tenant.email,
            address=tenant.address,
            logo_url=tenant.logo_url,
        ),
        settings=_settings_payload(await _get_settings_row(db, tenant_id)),
        verification_code=verification_code(payment.receipt_number, student.admission_number),
    )


def render_receipt_html(view: ReceiptView, autoprint: bool = False) -> str:
    """
    Render the 80mm thermal receipt.

    With autoprint the page calls window.print() once on load; reprinting is just
    another GET of the same receipt.
    """
    qr_svg = None
    if view.settings.show_verification_qr:
        qr_svg = Markup(verification_qr_svg(view.verification_code))
    template = _env.get_template("receipt.html")
    return template.render(
        r=view,
        s=view.settings,
        qr_svg=qr_svg,
        autoprint=autoprint,
        method_label=view.payment_method.replace("_", " ").title(),
    )
