import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from feedesk.api.v1.fees import service
from feedesk.api.v1.fees.schemas import PaymentCreate
from feedesk.core.enums import PaymentMethod, StudentFeeStatus
from feedesk.core.exceptions import ServiceError
from feedesk.core.models import FeeAuditLog, FeePayment, StudentFee


class _NoDatabase:
    """Stands in for a session that must never be touched."""

    def __getattr__(self, name):
        raise AssertionError(f"database was accessed ({name})")


# --- Assignment ---
@pytest.mark.asyncio
async def test_assign_fees_sums_selected_lines(
    db_session: AsyncSession, tenant, operator, current_term, fee_lines, make_student
) -> None:
    student = await make_student("Alice Akello", "ADM/25/0001")
    tuition, transport, _ = fee_lines

    fee = await service.assign_fees(
        db_session, tenant.id, student.id, [tuition.id, transport.id, tuition.id], changed_by=operator.id
    )
    assert fee.total_amount == Decimal("70000")
    assert fee.amount_paid == Decimal("0")
    assert fee.balance == Decimal("70000")
    assert fee.status == StudentFeeStatus.pending
    assert fee.term_id == current_term.id

    audit = (await db_session.execute(select(FeeAuditLog))).scalars().all()
    assert [a.action_type for a in audit] == ["CREATE"]
    assert audit[0].reference_table == "student_fees"


@pytest.mark.asyncio
async def test_assign_fees_without_current_term(db_session: AsyncSession, tenant, fee_lines, make_student) -> None:
    student = await make_student("Alice Akello", "ADM/25/0001")
    fee = await service.assign_fees(db_session, tenant.id, student.id, [fee_lines[0].id])
    assert fee.term_id is None
    assert fee.total_amount == Decimal("50000")


@pytest.mark.asyncio
async def test_assign_fees_rejects_empty_selection_before_db() -> None:
    with pytest.raises(ServiceError) as exc:
        await service.assign_fees(_NoDatabase(), uuid.uuid4(), uuid.uuid4(), [])
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_assign_fees_rejects_inactive_or_unknown_lines(
    db_session: AsyncSession, tenant, fee_lines, make_student
) -> None:
    student = await make_student("Alice Akello", "ADM/25/0001")
    inactive = fee_lines[2]

    for ids in ([inactive.id], [fee_lines[0].id, uuid.uuid4()]):
        with pytest.raises(ServiceError) as exc:
            await service.assign_fees(db_session, tenant.id, student.id, ids)
        assert exc.value.status_code == 400

    rows = (await db_session.execute(select(StudentFee))).scalars().all()
    assert rows == []


@pytest.mark.asyncio
async def test_assign_fees_conflicts_with_existing_record(
    db_session: AsyncSession, tenant, fee_lines, make_student, make_fee
) -> None:
    student = await make_student("Alice Akello", "ADM/25/0001")
    await make_fee(student, "10000")

    with pytest.raises(ServiceError) as exc:
        await service.assign_fees(db_session, tenant.id, student.id, [fee_lines[0].id])
    assert exc.value.status_code == 409


@pytest.mark.asyncio
async def test_assign_fees_unknown_student(db_session: AsyncSession, tenant, fee_lines) -> None:
    with pytest.raises(ServiceError) as exc:
        await service.assign_fees(db_session, tenant.id, uuid.uuid4(), [fee_lines[0].id])
    assert exc.value.status_code == 404


# --- Payment ---
@pytest.mark.asyncio
async def test_partial_payment(db_session: AsyncSession, tenant, operator, make_student, make_fee) -> None:
    student = await make_student("Alice Akello", "ADM/25/0001")
    fee = await make_fee(student, "100000")

    result = await service.record_payment(
        db_session, tenant.id, fee.id, PaymentCreate(amount=Decimal("40000")), received_by=operator.id
    )
    assert result.previous_balance == Decimal("100000")
    assert result.amount_paid == Decimal("40000")
    assert result.new_balance == Decimal("60000")
    assert result.status == StudentFeeStatus.partial
    assert result.payment_method == "cash"
    assert result.receipt_number.startswith("RCP-")

    stored = await db_session.get(StudentFee, fee.id)
    assert stored.amount_paid == Decimal("40000")
    assert stored.balance == Decimal("60000")
    assert stored.status == "partial"

    payments = (await db_session.execute(select(FeePayment))).scalars().all()
    assert len(payments) == 1
    assert payments[0].receipt_number == result.receipt_number
    assert payments[0].received_by == operator.id

    actions = (await db_session.execute(select(FeeAuditLog.reference_table))).scalars().all()
    assert sorted(actions) == ["fee_payments", "student_fees"]


@pytest.mark.asyncio
async def test_overpayment_goes_negative_and_is_paid(db_session: AsyncSession, tenant, make_student, make_fee) -> None:
    student = await make_student("Alice Akello", "ADM/25/0001")
    fee = await make_fee(student, "50000")

    result = await service.record_payment(db_session, tenant.id, fee.id, PaymentCreate(amount=Decimal("60000")))
    assert result.new_balance == Decimal("-10000")
    assert result.status == StudentFeeStatus.paid


@pytest.mark.asyncio
async def test_balance_invariant_holds_after_each_payment(
    db_session: AsyncSession, tenant, make_student, make_fee
) -> None:
    student = await make_student("Alice Akello", "ADM/25/0001")
    fee = await make_fee(student, "75000")

    for amount in ("25000", "0.50", "49999.50", "1000"):
        result = await service.record_payment(
            db_session,
            tenant.id,
            fee.id,
            PaymentCreate(amount=Decimal(amount), payment_method=PaymentMethod.mobile_money, reference_number="MM123"),
        )
        stored = await db_session.get(StudentFee, fee.id)
        assert stored.balance == stored.total_amount - stored.amount_paid
        assert result.previous_balance - Decimal(amount) == result.new_balance
        expected = service.fee_status_for(Decimal("75000"), result.new_balance)
        assert stored.status == expected.value

    assert result.status == StudentFeeStatus.paid
    assert result.new_balance == Decimal("-1000")


@pytest.mark.parametrize(
    "amount",
    [0, -5, Decimal("NaN"), Decimal("Infinity"), "abc", None, Decimal("0.001"), Decimal("10000000000")],
)
@pytest.mark.asyncio
async def test_invalid_amounts_rejected_before_db(amount) -> None:
    payload = PaymentCreate.model_construct(amount=amount, payment_method=PaymentMethod.cash, reference_number=None)
    with pytest.raises(ServiceError) as exc:
        await service.record_payment(_NoDatabase(), uuid.uuid4(), uuid.uuid4(), payload)
    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_amounts_the_ledger_cannot_store_are_rejected(
    client: AsyncClient, auth_headers, db_session: AsyncSession, make_student, make_fee
) -> None:
    student = await make_student("Alice Akello", "ADM/25/0001")
    fee = await make_fee(student, "100000")

    for amount in ("0.001", "10000000000", "150.255"):
        response = await client.post(f"/api/v1/fees/pay/{fee.id}", json={"amount": amount}, headers=auth_headers)
        assert response.status_code == 422

    payments = (await db_session.execute(select(FeePayment))).scalars().all()
    assert payments == []
    stored = await db_session.get(StudentFee, fee.id)
    assert stored.amount_paid == Decimal("0")
    assert stored.status == StudentFeeStatus.pending.value

    # Trailing zeros are fine, they still fit in whole cents.
    payload = PaymentCreate.model_construct(amount=Decimal("150.250"), payment_method=PaymentMethod.cash, reference_number=None)
    result = await service.record_payment(db_session, fee.tenant_id, fee.id, payload)
    assert result.amount == Decimal("150.25")
    assert result.new_balance == Decimal("99849.75")


def test_fee_status_rule() -> None:
    assert service.fee_status_for(Decimal("100"), Decimal("100")) == StudentFeeStatus.pending
    assert service.fee_status_for(Decimal("100"), Decimal("1")) == StudentFeeStatus.partial
    assert service.fee_status_for(Decimal("100"), Decimal("0")) == StudentFeeStatus.paid
    assert service.fee_status_for(Decimal("0"), Decimal("0")) == StudentFeeStatus.paid


# --- API ---
@pytest.mark.asyncio
async def test_assign_and_pay_over_http(
    client: AsyncClient, auth_headers, current_term, fee_lines, make_student
) -> None:
    student = await make_student("Alice Akello", "ADM/25/0001")

    response = await client.post(
        f"/api/v1/fees/assign/{student.id}",
        json={"fee_structure_ids": [str(fee_lines[0].id), str(fee_lines[1].id)]},
        headers=auth_headers,
    )
    assert response.status_code == 201
    fee = response.json()
    assert Decimal(fee["total_amount"]) == Decimal("70000")
    assert fee["status"] == "pending"

    response = await client.post(
        f"/api/v1/fees/pay/{fee['id']}",
        json={"amount": 30000, "payment_method": "bank_transfer", "reference_number": " BK-77 "},
        headers=auth_headers,
    )
    assert response.status_code == 201
    paid = response.json()
    assert Decimal(paid["new_balance"]) == Decimal("40000")
    assert paid["reference_number"] == "BK-77"

    response = await client.get(f"/api/v1/fees/student/{student.id}/latest", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "partial"

    response = await client.get(f"/api/v1/fees/student/{student.id}", headers=auth_headers)
    assert len(response.json()) == 1

    response = await client.get(
        "/api/v1/fees/payments", params={"student_id": str(student.id)}, headers=auth_headers
    )
    history = response.json()
    assert len(history) == 1
    assert history[0]["student_name"] == "Alice Akello"
    assert history[0]["receipt_number"] == paid["receipt_number"]

    response = await client.get(
        "/api/v1/fees/payments", params={"payment_method": "cash"}, headers=auth_headers
    )
    assert response.json() == []


@pytest.mark.asyncio
async def test_payment_validation_errors(client: AsyncClient, auth_headers, make_student, make_fee) -> None:
    student = await make_student("Alice Akello", "ADM/25/0001")
    fee = await make_fee(student, "100000")

    for amount in (0, -100, "NaN", "lots"):
        response = await client.post(f"/api/v1/fees/pay/{fee.id}", json={"amount": amount}, headers=auth_headers)
        assert response.status_code == 422

    response = await client.post(f"/api/v1/fees/pay/{uuid.uuid4()}", json={"amount": 10}, headers=auth_headers)
    assert response.status_code == 404

    response = await client.post(f"/api/v1/fees/assign/{student.id}", json={"fee_structure_ids": []}, headers=auth_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_latest_fee_missing(client: AsyncClient, auth_headers, make_student) -> None:
    student = await make_student("Alice Akello", "ADM/25/0001")
    response = await client.get(f"/api/v1/fees/student/{student.id}/latest", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_read_only_role_cannot_pay(client: AsyncClient, read_only_headers, make_student, make_fee) -> None:
    student = await make_student("Alice Akello", "ADM/25/0001")
    fee = await make_fee(student, "100000")

    response = await client.get(f"/api/v1/fees/student/{student.id}", headers=read_only_headers)
    assert response.status_code == 200

    response = await client.post(f"/api/v1/fees/pay/{fee.id}", json={"amount": 10}, headers=read_only_headers)
    assert response.status_code == 403
