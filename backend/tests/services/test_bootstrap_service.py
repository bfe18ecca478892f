"""Default administrator bootstrap."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import func, select

from repairdesk.core.config import get_settings
from repairdesk.models import Account, StaffProfile, StaffRole
from repairdesk.security.roles import PermissionLevel, resolve_role
from repairdesk.services.bootstrap_service import ensure_default_admin

pytestmark = pytest.mark.asyncio


@pytest.fixture()
def bootstrap_email(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("BOOTSTRAP_ADMIN_EMAIL", " Owner@Example.com ")
    monkeypatch.setenv("BOOTSTRAP_ADMIN_NAME", "Shop Owner")
    get_settings.cache_clear()
    yield "owner@example.com"
    monkeypatch.delenv("BOOTSTRAP_ADMIN_EMAIL")
    get_settings.cache_clear()


async def test_noop_without_configured_email(app_context: dict[str, Any]) -> None:
    assert get_settings().bootstrap_admin_email is None
    assert await ensure_default_admin() is None


async def test_creates_superuser_once(
    app_context: dict[str, Any], bootstrap_email: str
) -> None:
    created = await ensure_default_admin()
    assert created is not None
    assert await ensure_default_admin() is None

    async with app_context["sessionmaker"]() as session:
        count = await session.scalar(
            select(func.count(Account.id)).where(Account.email == bootstrap_email)
        )
        assert count == 1
        account = (
            await session.execute(select(Account).where(Account.email == bootstrap_email))
        ).scalar_one()
        assert account.name == "Shop Owner"
        assert isinstance(account.profile, StaffProfile)
        assert account.profile.role is StaffRole.ADMINISTRATOR
        assert resolve_role(account) is PermissionLevel.SUPERUSER
