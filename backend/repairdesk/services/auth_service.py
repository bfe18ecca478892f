"""Sign-in flows: magic links, provider identities and session payloads."""
from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.core.config import get_settings
from repairdesk.core.errors import AuthorizationError, ConflictError, ValidationError
from repairdesk.core.security import (
    create_access_token,
    generate_one_time_token,
    hash_token,
)
from repairdesk.models.account import Account, CustomerProfile, CustomerRole
from repairdesk.models.auth_identity import AuthIdentity, MagicLinkToken
from repairdesk.schemas.auth import SessionPayload, SessionUser, Token
from repairdesk.services import audit_service

logger = logging.getLogger(__name__)

EMAIL_PROVIDER = "email"


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


async def issue_magic_link(
    session: AsyncSession, *, email: str
) -> tuple[str, datetime]:
    """Store a hashed one-time token for ``email`` and return the raw token.

    Earlier unused tokens for the address are discarded.
    """
    settings = get_settings()
    email = email.strip().lower()
    await session.execute(
        delete(MagicLinkToken).where(
            MagicLinkToken.email == email, MagicLinkToken.consumed_at.is_(None)
        )
    )
    raw_token = generate_one_time_token()
    expires_at = datetime.now(UTC) + timedelta(minutes=settings.magic_link_ttl_minutes)
    session.add(
        MagicLinkToken(email=email, token_hash=hash_token(raw_token), expires_at=expires_at)
    )
    await session.commit()
    return raw_token, expires_at


async def consume_magic_link(session: AsyncSession, *, token: str) -> str:
    """Mark the token used and return the email address it was issued for."""
    result = await session.execute(
        select(MagicLinkToken).where(MagicLinkToken.token_hash == hash_token(token))
    )
    record = result.scalar_one_or_none()
    if record is None:
        raise ValidationError("Invalid sign-in link")
    if record.consumed_at is not None:
        raise ValidationError("Sign-in link already used")
    if _aware(record.expires_at) < datetime.now(UTC):
        raise ValidationError("Sign-in link has expired")
    record.consumed_at = datetime.now(UTC)
    await session.commit()
    return record.email


async def sign_in_with_provider(
    session: AsyncSession,
    *,
    provider: str,
    provider_account_id: str,
    email: str,
    name: str | None = None,
    image: str | None = None,
    email_verified: bool = True,
    ip_address: str | None = None,
) -> Account:
    """Resolve (or register) the account behind a provider identity.

    First-time sign-ins become individual customers; the account and its
    profile are written in one commit.
    """
    email = email.strip().lower()
    result = await session.execute(
        select(AuthIdentity).where(
            AuthIdentity.provider == provider,
            AuthIdentity.provider_account_id == provider_account_id,
        )
    )
    identity = result.scalar_one_or_none()

    account: Account | None = None
    if identity is not None:
        account = await session.get(Account, identity.account_id)
    if account is None:
        account = (
            await session.execute(select(Account).where(Account.email == email))
        ).scalar_one_or_none()

    created = account is None
    if account is None:
        account = Account(
            email=email,
            name=name,
            image=image,
            is_staff=False,
            is_superuser=False,
            is_active=True,
            blocked=False,
        )
        account.profile = CustomerProfile(role=CustomerRole.INDIVIDUAL)
        session.add(account)
    elif not account.is_active or account.blocked:
        raise AuthorizationError("Account is disabled")
    else:
        if not account.name and name:
            account.name = name
        if not account.image and image:
            account.image = image

    if email_verified and account.email_verified_at is None:
        account.email_verified_at = datetime.now(UTC)
    if identity is None:
        link = AuthIdentity(provider=provider, provider_account_id=provider_account_id)
        if created:
            account.identities.append(link)
        else:
            link.account_id = account.id
            session.add(link)

    try:
        await session.flush()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Unable to link sign-in identity") from exc
    await audit_service.record_event(
        session,
        operation=audit_service.SIGN_IN,
        actor_id=account.id,
        target_type=audit_service.ACCOUNT_TARGET,
        target_id=account.id,
        details={"provider": provider, "email": email, "registered": created},
        ip_address=ip_address,
    )
    if created:
        logger.info("Registered customer account %s via %s", account.id, provider)
    result = await session.execute(
        select(Account)
        .where(Account.id == account.id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


def create_session_token(account: Account) -> Token:
    token, expires_at = create_access_token(str(account.id))
    return Token(access_token=token, expires_at=expires_at)


def build_session_payload(account: Account, *, expires: datetime) -> SessionPayload:
    """Session shape consumed by clients and :class:`SessionState`."""
    return SessionPayload(
        user=SessionUser(
            id=account.id,
            name=account.name,
            email=account.email,
            image=account.image,
            is_staff=account.is_staff,
            is_superuser=account.is_superuser,
            is_active=account.is_active,
            staff_role=account.staff_role,
            customer_role=account.customer_role,
        ),
        expires=expires,
    )
