"""Common API dependencies."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, AsyncIterator
from typing import Annotated, Any

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.actions.base import ActionResult
from repairdesk.core.config import get_settings
from repairdesk.core.errors import http_status_for
from repairdesk.core.security import decode_access_token
from repairdesk.db.session import get_session
from repairdesk.models.account import Account

settings = get_settings()

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.api_v1_prefix}/auth/magic-link/verify"
)
optional_oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.api_v1_prefix}/auth/magic-link/verify", auto_error=False
)

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session."""
    async for session in get_session():
        yield session


def _claims_for(token: str) -> dict[str, Any]:
    try:
        claims = decode_access_token(token)
    except JWTError as exc:
        raise _CREDENTIALS_EXCEPTION from exc
    if claims.get("sub") is None or "purpose" in claims:
        raise _CREDENTIALS_EXCEPTION
    return claims


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """Outbound client for sign-in providers, closed after the request."""
    timeout = httpx.Timeout(settings.oauth_timeout_seconds, connect=10.0)
    async with httpx.AsyncClient(timeout=timeout) as client:
        yield client


async def get_token_claims(
    token: Annotated[str, Depends(oauth2_scheme)],
) -> dict[str, Any]:
    return _claims_for(token)


async def _load_session_account(
    session: AsyncSession, claims: dict[str, Any]
) -> Account:
    try:
        account_id = uuid.UUID(str(claims["sub"]))
    except (ValueError, TypeError) as exc:
        raise _CREDENTIALS_EXCEPTION from exc
    result = await session.execute(select(Account).where(Account.id == account_id))
    account = result.scalar_one_or_none()
    if account is None or not account.is_active or account.blocked:
        raise _CREDENTIALS_EXCEPTION
    return account


async def get_current_account(
    claims: Annotated[dict[str, Any], Depends(get_token_claims)],
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> Account:
    """Authenticate the request via its bearer session token."""
    return await _load_session_account(session, claims)


async def get_optional_account(
    token: Annotated[str | None, Depends(optional_oauth2_scheme)],
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> Account | None:
    """Like :func:`get_current_account` but anonymous callers get ``None``."""
    if not token:
        return None
    return await _load_session_account(session, _claims_for(token))


async def get_requester_id(
    account: Annotated[Account, Depends(get_current_account)],
) -> uuid.UUID:
    """Identity every guarded action receives; never taken from client input."""
    return account.id


DbSession = Annotated[AsyncSession, Depends(get_db_session)]
RequesterId = Annotated[uuid.UUID, Depends(get_requester_id)]
CurrentAccount = Annotated[Account, Depends(get_current_account)]
HttpClient = Annotated[httpx.AsyncClient, Depends(get_http_client)]


def action_response(
    result: ActionResult[Any], *, success_status: int = status.HTTP_200_OK
) -> JSONResponse:
    """Serialize an ActionResult with the HTTP status matching its error code."""
    status_code = success_status if result.success else http_status_for(result.code)
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))
