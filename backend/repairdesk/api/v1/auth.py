"""Authentication endpoints: magic-link and Google sign-in, session introspection."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    HTTPException,
    Request,
    Response,
    status,
)
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter

from repairdesk.api.deps import (
    CurrentAccount,
    DbSession,
    HttpClient,
    get_optional_account,
    get_token_claims,
)
from repairdesk.core.config import get_settings
from repairdesk.core.errors import ServiceError, ValidationError
from repairdesk.models.account import Account
from repairdesk.schemas.auth import (
    MagicLinkRequest,
    MagicLinkResponse,
    MagicLinkVerify,
    OAuthStart,
    SessionAccess,
    SessionPayload,
    Token,
)
from repairdesk.security.session_state import SessionState, SessionStatus
from repairdesk.services import auth_service, notification_service, oauth_service

router = APIRouter()

_settings = get_settings()

_SECONDS_PER_WINDOW = {
    "second": 1,
    "seconds": 1,
    "minute": 60,
    "minutes": 60,
    "hour": 3600,
    "hours": 3600,
    "day": 86400,
    "days": 86400,
}


def _parse_rate(value: str, *, fallback: tuple[int, int]) -> tuple[int, int]:
    try:
        count_str, window_str = value.split("/", 1)
        count = int(count_str.strip())
    except ValueError:
        return fallback
    return count, _SECONDS_PER_WINDOW.get(window_str.strip().lower(), fallback[1])


def _rate_dependency(limit: tuple[int, int]):
    async def _dependency(request: Request, response: Response) -> None:
        if FastAPILimiter.redis is None:
            return None
        limiter = RateLimiter(times=limit[0], seconds=limit[1])
        await limiter(request, response)

    return Depends(_dependency)


_MAGIC_LINK_RATE_DEP = _rate_dependency(
    _parse_rate(_settings.rate_limit_magic_link, fallback=(5, 60))
)
_DEFAULT_RATE_DEP = _rate_dependency(
    _parse_rate(_settings.rate_limit_default, fallback=(100, 60))
)


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


def _sign_in_failed(exc: ServiceError) -> HTTPException:
    # Bad or stale links and codes map to 400.
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    return HTTPException(status_code=exc.http_status, detail=exc.message)


@router.post(
    "/magic-link",
    response_model=MagicLinkResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Email a one-time sign-in link",
    dependencies=[_MAGIC_LINK_RATE_DEP],
)
async def request_magic_link(
    payload: MagicLinkRequest,
    session: DbSession,
    background_tasks: BackgroundTasks,
) -> MagicLinkResponse:
    """Always accepted so the response never reveals whether an address exists."""
    raw_token, _ = await auth_service.issue_magic_link(session, email=payload.email)
    url = notification_service.build_magic_link_url(raw_token, payload.callback_url)
    subject, body, html = notification_service.build_magic_link_email(url=url)
    notification_service.schedule_email(
        background_tasks,
        recipients=[payload.email],
        subject=subject,
        body=body,
        html=html,
    )
    if _settings.exposes_debug_tokens:
        return MagicLinkResponse(debug_token=raw_token)
    return MagicLinkResponse()


@router.post(
    "/magic-link/verify",
    response_model=Token,
    summary="Exchange a sign-in link token for a session token",
    dependencies=[_DEFAULT_RATE_DEP],
)
async def verify_magic_link(
    payload: MagicLinkVerify,
    session: DbSession,
    request: Request,
) -> Token:
    try:
        email = await auth_service.consume_magic_link(session, token=payload.token)
        account = await auth_service.sign_in_with_provider(
            session,
            provider=auth_service.EMAIL_PROVIDER,
            provider_account_id=email,
            email=email,
            ip_address=_client_ip(request),
        )
    except ServiceError as exc:
        raise _sign_in_failed(exc) from exc
    return auth_service.create_session_token(account)


@router.get(
    "/oauth/google/authorize",
    response_model=OAuthStart,
    summary="Start a Google sign-in",
    dependencies=[_DEFAULT_RATE_DEP],
)
async def start_google_sign_in() -> OAuthStart:
    try:
        return oauth_service.build_google_authorization()
    except ServiceError as exc:
        raise _sign_in_failed(exc) from exc


@router.get(
    "/oauth/google/callback",
    response_model=Token,
    summary="Exchange a Google authorization code for a session token",
    dependencies=[_DEFAULT_RATE_DEP],
)
async def google_callback(
    code: str,
    state: str,
    session: DbSession,
    client: HttpClient,
    request: Request,
) -> Token:
    try:
        account = await oauth_service.sign_in_with_google(
            session, client, code=code, state=state, ip_address=_client_ip(request)
        )
    except ServiceError as exc:
        raise _sign_in_failed(exc) from exc
    return auth_service.create_session_token(account)


@router.get("/session", response_model=SessionPayload, summary="Current session")
async def read_session(
    account: CurrentAccount,
    claims: Annotated[dict[str, Any], Depends(get_token_claims)],
) -> SessionPayload:
    expires = datetime.fromtimestamp(int(claims["exp"]), tz=UTC)
    return auth_service.build_session_payload(account, expires=expires)


@router.get(
    "/session/access",
    response_model=SessionAccess,
    summary="Role, permissions and resource access for UI gating",
)
async def read_session_access(
    account: Annotated[Account | None, Depends(get_optional_account)],
) -> SessionAccess:
    state = SessionState()
    try:
        if account is None:
            state.clear_session()
        else:
            payload = auth_service.build_session_payload(
                account, expires=datetime.now(UTC)
            )
            state.set_session(
                payload.model_dump(mode="json", by_alias=True),
                SessionStatus.AUTHENTICATED,
            )
        return SessionAccess(**state.snapshot())
    finally:
        state.dispose()
