"""Google sign-in: authorization URL, code exchange and account resolution.

The ``state`` round-tripped through Google is a short-lived signed token, so
no server-side storage is needed between the two legs of the flow.
"""
from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from urllib.parse import urlencode

import httpx
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.core.config import Settings, get_settings
from repairdesk.core.errors import (
    AuthorizationError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from repairdesk.core.security import create_access_token, decode_access_token
from repairdesk.models.account import Account
from repairdesk.schemas.auth import OAuthProfile, OAuthStart
from repairdesk.services import auth_service

logger = logging.getLogger(__name__)

GOOGLE_PROVIDER = "google"
GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
GOOGLE_SCOPES = ("openid", "email", "profile")

STATE_PURPOSE = "oauth_state"


def _require_google(settings: Settings) -> None:
    if not settings.google_oauth_enabled:
        raise NotFoundError("Google sign-in is not enabled")


def google_callback_url(settings: Settings) -> str:
    base = settings.oauth_callback_base_url.rstrip("/")
    return f"{base}{settings.api_v1_prefix}/auth/oauth/{GOOGLE_PROVIDER}/callback"


def create_state(provider: str) -> str:
    settings = get_settings()
    token, _ = create_access_token(
        secrets.token_urlsafe(16),
        expires_delta=timedelta(minutes=settings.oauth_state_ttl_minutes),
        purpose=STATE_PURPOSE,
        provider=provider,
    )
    return token


def verify_state(state: str, provider: str) -> None:
    try:
        claims = decode_access_token(state)
    except JWTError as exc:
        raise ValidationError("Invalid or expired sign-in state") from exc
    if claims.get("purpose") != STATE_PURPOSE or claims.get("provider") != provider:
        raise ValidationError("Invalid or expired sign-in state")


def build_google_authorization() -> OAuthStart:
    """Return the consent-screen URL and the state it carries."""
    settings = get_settings()
    _require_google(settings)
    state = create_state(GOOGLE_PROVIDER)
    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": google_callback_url(settings),
        "response_type": "code",
        "scope": " ".join(GOOGLE_SCOPES),
        "state": state,
        "prompt": "select_account",
    }
    return OAuthStart(
        authorization_url=f"{GOOGLE_AUTH_URL}?{urlencode(params)}",
        state=state,
        provider=GOOGLE_PROVIDER,
    )


async def fetch_google_profile(client: httpx.AsyncClient, *, code: str) -> OAuthProfile:
    """Exchange an authorization code and read the caller's Google profile."""
    settings = get_settings()
    _require_google(settings)
    try:
        token_response = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "client_id": settings.google_client_id,
                "client_secret": settings.google_client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": google_callback_url(settings),
            },
        )
        if token_response.status_code != httpx.codes.OK:
            logger.warning(
                "Google token exchange failed with %s", token_response.status_code
            )
            raise ValidationError("Failed to exchange authorization code")
        access_token = token_response.json().get("access_token")
        if not access_token:
            raise UpstreamError("Invalid token response from Google")

        userinfo_response = await client.get(
            GOOGLE_USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"}
        )
        if userinfo_response.status_code != httpx.codes.OK:
            logger.warning(
                "Google userinfo request failed with %s", userinfo_response.status_code
            )
            raise UpstreamError("Failed to fetch Google profile")
        userinfo = userinfo_response.json()
    except httpx.HTTPError as exc:
        logger.warning("Google sign-in request failed: %s", exc)
        raise UpstreamError("Google sign-in is unavailable, please try again") from exc

    if not userinfo.get("id") or not userinfo.get("email"):
        raise UpstreamError("Google profile is missing an id or email")
    return OAuthProfile(
        provider=GOOGLE_PROVIDER,
        provider_account_id=str(userinfo["id"]),
        email=userinfo["email"],
        email_verified=bool(userinfo.get("verified_email", False)),
        name=userinfo.get("name"),
        picture=userinfo.get("picture"),
    )


async def sign_in_with_google(
    session: AsyncSession,
    client: httpx.AsyncClient,
    *,
    code: str,
    state: str,
    ip_address: str | None = None,
) -> Account:
    """Complete the callback leg and return the signed-in account.

    Only verified Google addresses may sign in, since the address is used to
    link the identity to an existing account.
    """
    verify_state(state, GOOGLE_PROVIDER)
    profile = await fetch_google_profile(client, code=code)
    if not profile.email_verified:
        raise AuthorizationError("Google account email is not verified")
    return await auth_service.sign_in_with_provider(
        session,
        provider=GOOGLE_PROVIDER,
        provider_account_id=profile.provider_account_id,
        email=profile.email,
        name=profile.name,
        image=profile.picture,
        email_verified=True,
        ip_address=ip_address,
    )
