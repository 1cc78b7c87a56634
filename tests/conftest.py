import os
from datetime import datetime, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Dict, List, Optional

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from feedesk.api.v1.scanner.service import sessions  # noqa: E402
from feedesk.auth.models import Role, User  # noqa: E402
from feedesk.auth.security import create_access_token, hash_password  # noqa: E402
from feedesk.core.models import (  # noqa: E402
    AcademicTerm,
    FeeStructure,
    SchoolClass,
    Student,
    StudentFee,
    Tenant,
)
from feedesk.db.session import Base, get_db  # noqa: E402
from feedesk.main import app  # noqa: E402


TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_PASSWORD = "StrongPass123"


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database per test; the app shares the test's session."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.clear()
    sessions.clear()
    await engine.dispose()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
async def tenant(db_session: AsyncSession) -> Tenant:
    t = Tenant(
        name="Greenhill Primary School",
        phone="+256 700 000000",
        email="office@greenhill.ac.ug",
        address="Plot 12, Kampala Road",
        status="ACTIVE",
    )
    db_session.add(t)
    await db_session.commit()
    return t


async def _add_user(db: AsyncSession, tenant: Tenant, email: str, role: str) -> User:
    user = User(
        tenant_id=tenant.id,
        full_name="Grace Bursar",
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
        status="ACTIVE",
    )
    db.add(user)
    await db.commit()
    return user


def _token_for(user: User) -> str:
    return create_access_token(user.id, user.tenant_id, user.role)


@pytest.fixture()
async def operator(db_session: AsyncSession, tenant: Tenant) -> User:
    return await _add_user(db_session, tenant, "bursar@greenhill.ac.ug", "SUPER_ADMIN")


@pytest.fixture()
def auth_headers(operator: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {_token_for(operator)}"}


@pytest.fixture()
async def read_only_headers(db_session: AsyncSession, tenant: Tenant) -> Dict[str, str]:
    """A cashier whose role may look fees up but not record anything."""
    db_session.add(Role(tenant_id=tenant.id, name="CASHIER", permissions={"fees": {"read": True}}))
    await db_session.commit()
    user = await _add_user(db_session, tenant, "cashier@greenhill.ac.ug", "CASHIER")
    return {"Authorization": f"Bearer {_token_for(user)}"}


@pytest.fixture()
async def school_class(db_session: AsyncSession, tenant: Tenant) -> SchoolClass:
    cls = SchoolClass(tenant_id=tenant.id, name="P.5 Blue", level="P.5")
    db_session.add(cls)
    await db_session.commit()
    return cls


@pytest.fixture()
async def current_term(db_session: AsyncSession, tenant: Tenant) -> AcademicTerm:
    term = AcademicTerm(tenant_id=tenant.id, name="Term 1", year=2025, is_current=True)
    db_session.add(term)
    await db_session.commit()
    return term


@pytest.fixture()
def make_student(db_session: AsyncSession, tenant: Tenant, school_class: SchoolClass):
    async def _make(full_name: str, admission_number: str, is_active: bool = True) -> Student:
        student = Student(
            tenant_id=tenant.id,
            admission_number=admission_number,
            full_name=full_name,
            boarding_status="day",
            is_active=is_active,
            school_class=school_class,
        )
        db_session.add(student)
        await db_session.commit()
        return student

    return _make


@pytest.fixture()
def make_fee(db_session: AsyncSession, tenant: Tenant):
    async def _make(
        student: Student,
        total: str,
        paid: str = "0",
        created_at: Optional[datetime] = None,
        status: str = "pending",
    ) -> StudentFee:
        total_d = Decimal(total)
        paid_d = Decimal(paid)
        fee = StudentFee(
            tenant_id=tenant.id,
            student_id=student.id,
            total_amount=total_d,
            amount_paid=paid_d,
            balance=total_d - paid_d,
            status=status,
            created_at=created_at or datetime.utcnow(),
        )
        db_session.add(fee)
        await db_session.commit()
        return fee

    return _make


@pytest.fixture()
async def fee_lines(db_session: AsyncSession, tenant: Tenant) -> List[FeeStructure]:
    lines = [
        FeeStructure(tenant_id=tenant.id, name="Tuition", level="P.5", fee_type="tuition", amount=Decimal("50000")),
        FeeStructure(tenant_id=tenant.id, name="Transport", level="P.5", fee_type="transport", amount=Decimal("20000")),
        FeeStructure(
            tenant_id=tenant.id,
            name="Old Uniform",
            level="P.5",
            fee_type="uniform",
            amount=Decimal("15000"),
            is_active=False,
        ),
    ]
    db_session.add_all(lines)
    await db_session.commit()
    return lines


@pytest.fixture()
def an_hour_ago() -> datetime:
    return datetime.utcnow() - timedelta(hours=1)
