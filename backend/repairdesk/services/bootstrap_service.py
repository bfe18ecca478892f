"""Bootstrap helpers for default data."""

from __future__ import annotations

import logging

from sqlalchemy import select

from repairdesk.core.config import get_settings
from repairdesk.db.session import get_sessionmaker
from repairdesk.models import Account, StaffProfile, StaffRole

logger = logging.getLogger(__name__)


async def ensure_default_admin() -> Account | None:
    """Create the configured administrator superuser if it does not exist yet."""

    settings = get_settings()
    if not settings.bootstrap_admin_email:
        return None
    email = settings.bootstrap_admin_email.strip().lower()
    sessionmaker = get_sessionmaker(settings.database_url)
    async with sessionmaker() as session:
        existing = await session.execute(select(Account).where(Account.email == email))
        if existing.scalar_one_or_none() is not None:
            return None

        account = Account(
            email=email,
            name=settings.bootstrap_admin_name,
            is_staff=True,
            is_superuser=True,
            is_active=True,
            blocked=False,
        )
        account.profile = StaffProfile(
            role=StaffRole.ADMINISTRATOR, specializations=[], availability={}
        )
        session.add(account)
        await session.commit()
        logger.info("Bootstrapped administrator account %s", email)
        return account
