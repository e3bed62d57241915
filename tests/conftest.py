import os
from typing import AsyncGenerator, Dict
from uuid import UUID, uuid4

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from feeledger.main import app
from feeledger.auth.schemas import CurrentUser
from feeledger.auth.security import create_access_token
from feeledger.core.enums import UserRole
from feeledger.core.models import SchoolClass, Student
from feeledger.db.session import Base, get_db
from feeledger.api.v1.fee_structures import service as fee_structure_service
from feeledger.api.v1.fee_structures.schemas import FeeStructureCreate


TEST_DATABASE_URL = "sqlite+aiosqlite://"

GUARDIAN_EMAIL = "wanjiku.parent@example.com"


@pytest.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory SQLite DB per test; StaticPool keeps the single connection alive."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a test and override FastAPI dependency."""
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

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# --- Actors ---
@pytest.fixture()
def admin() -> CurrentUser:
    return CurrentUser(id=uuid4(), role=UserRole.ADMIN, email="admin@school.example.com")


@pytest.fixture()
def staff() -> CurrentUser:
    return CurrentUser(id=uuid4(), role=UserRole.STAFF, email="bursar@school.example.com")


@pytest.fixture()
def guardian() -> CurrentUser:
    return CurrentUser(id=uuid4(), role=UserRole.PARENT, email=GUARDIAN_EMAIL)


def auth_headers(user: CurrentUser) -> Dict[str, str]:
    token = create_access_token(
        subject={"sub": str(user.id), "role": user.role.value, "email": user.email}
    )
    return {"Authorization": f"Bearer {token}"}


# --- School data ---
@pytest.fixture()
async def school(db_session: AsyncSession) -> Dict[str, UUID]:
    """Grade 4 CBC 2025/2026 with a 50,000 fee, two students of one guardian, one other student."""
    grade4 = SchoolClass(name="Grade 4 East", level="Grade 4", curriculum="CBC", academic_year="2025/2026")
    grade5 = SchoolClass(name="Grade 5 West", level="Grade 5", curriculum="CBC", academic_year="2025/2026")
    db_session.add_all([grade4, grade5])
    await db_session.flush()

    amani = Student(
        admission_number="ADM-001",
        first_name="Amani",
        last_name="Otieno",
        class_id=grade4.id,
        curriculum="CBC",
        parent_name="Wanjiku Otieno",
        parent_email="Wanjiku.Parent@example.com",
    )
    baraka = Student(
        admission_number="ADM-002",
        first_name="Baraka",
        last_name="Otieno",
        class_id=grade5.id,
        curriculum="CBC",
        parent_name="Wanjiku Otieno",
        parent_email=GUARDIAN_EMAIL,
    )
    chebet = Student(
        admission_number="ADM-003",
        first_name="Chebet",
        last_name="Kiprop",
        class_id=grade4.id,
        curriculum="CBC",
        parent_name="Kiprop Kiprono",
        parent_email="kiprop@example.com",
    )
    unassigned = Student(
        admission_number="ADM-004",
        first_name="Dalia",
        last_name="Mwangi",
        class_id=None,
        curriculum="CBC",
        parent_email="mwangi@example.com",
    )
    db_session.add_all([amani, baraka, chebet, unassigned])
    await db_session.commit()

    fee = await fee_structure_service.create_fee_structure(
        db_session,
        FeeStructureCreate(
            level="Grade 4",
            curriculum="CBC",
            academic_year="2025/2026",
            tuition_fee="40000",
            activity_fee="5000",
            transport_fee="3000",
            lunch_fee="2000",
        ),
    )
    return {
        "grade4": grade4.id,
        "grade5": grade5.id,
        "amani": amani.id,
        "baraka": baraka.id,
        "chebet": chebet.id,
        "unassigned": unassigned.id,
        "grade4_fee": fee.id,
    }
