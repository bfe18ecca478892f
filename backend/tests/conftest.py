"""Test fixtures for the RepairDesk backend."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("APP_ENV", "test")

from repairdesk.core.config import get_settings
from repairdesk.core.security import create_access_token
from repairdesk.db.base import Base
from repairdesk.db.session import dispose_engine, get_sessionmaker
from repairdesk.main import app
from repairdesk.models import (
    Account,
    CustomerProfile,
    CustomerRole,
    StaffProfile,
    StaffRole,
)


def bearer(account_id) -> dict[str, str]:
    token, _ = create_access_token(str(account_id))
    return {"Authorization": f"Bearer {token}"}


def make_staff(email: str, name: str, role: StaffRole, *, superuser: bool = False) -> Account:
    account = Account(
        email=email, name=name, is_staff=True, is_superuser=superuser
    )
    account.profile = StaffProfile(role=role, specializations=[], availability={})
    return account


def make_customer(email: str, name: str) -> Account:
    account = Account(email=email, name=name, is_staff=False, is_superuser=False)
    account.profile = CustomerProfile(role=CustomerRole.INDIVIDUAL)
    return account


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest_asyncio.fixture()
async def app_context(
    reset_database: AsyncIterator[None], db_url: str
) -> AsyncIterator[dict[str, object]]:
    """Yield an async client, seeded accounts and a bearer header per role."""
    sessionmaker = get_sessionmaker(db_url)

    async with sessionmaker() as session:
        admin = make_staff(
            "admin@example.com", "Ada Admin", StaffRole.ADMINISTRATOR, superuser=True
        )
        technician = make_staff("tech@example.com", "Tom Tech", StaffRole.TECHNICIAN)
        receptionist = make_staff(
            "desk@example.com", "Rita Reception", StaffRole.RECEPTIONIST
        )
        customer = make_customer("customer@example.com", "Carl Customer")
        session.add_all([admin, technician, receptionist, customer])
        await session.commit()

        context: dict[str, object] = {
            "sessionmaker": sessionmaker,
            "admin_id": admin.id,
            "technician_id": technician.id,
            "technician_profile_id": technician.profile.id,
            "receptionist_id": receptionist.id,
            "customer_id": customer.id,
            "admin_headers": bearer(admin.id),
            "technician_headers": bearer(technician.id),
            "receptionist_headers": bearer(receptionist.id),
            "customer_headers": bearer(customer.id),
        }

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        context["client"] = client
        yield context
