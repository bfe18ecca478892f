"""Google sign-in endpoints against a stubbed Google."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from repairdesk.api.deps import get_http_client
from repairdesk.core.config import get_settings
from repairdesk.main import app
from repairdesk.models import Account, AuthIdentity
from repairdesk.services import oauth_service

pytestmark = pytest.mark.asyncio

GOOD_CODE = "good-code"


def _google(userinfo: dict[str, Any], calls: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if str(request.url) == oauth_service.GOOGLE_TOKEN_URL:
            form = parse_qs(request.content.decode())
            if form.get("code") != [GOOD_CODE]:
                return httpx.Response(400, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": "google-access"})
        if str(request.url) == oauth_service.GOOGLE_USERINFO_URL:
            assert request.headers["Authorization"] == "Bearer google-access"
            return httpx.Response(200, json=userinfo)
        return httpx.Response(404)

    return httpx.MockTransport(handler)


@pytest.fixture()
def google_enabled(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "client-id")
    monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "client-secret")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def google_profile() -> Iterator[tuple[dict[str, Any], list[httpx.Request]]]:
    userinfo: dict[str, Any] = {
        "id": "10001",
        "email": "Gina.Google@Example.com",
        "verified_email": True,
        "name": "Gina Google",
        "picture": "https://example.com/gina.png",
    }
    calls: list[httpx.Request] = []

    async def client_override():
        async with httpx.AsyncClient(transport=_google(userinfo, calls)) as client:
            yield client

    app.dependency_overrides[get_http_client] = client_override
    yield userinfo, calls
    app.dependency_overrides.pop(get_http_client, None)


async def _state(client: AsyncClient) -> str:
    response = await client.get("/api/v1/auth/oauth/google/authorize")
    assert response.status_code == 200
    return response.json()["state"]


async def test_authorize_is_404_when_google_is_not_configured(
    app_context: dict[str, Any],
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    response = await client.get("/api/v1/auth/oauth/google/authorize")
    assert response.status_code == 404


async def test_authorize_builds_consent_url(
    app_context: dict[str, Any], google_enabled: None
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    response = await client.get("/api/v1/auth/oauth/google/authorize")
    assert response.status_code == 200
    body = response.json()
    url = urlparse(body["authorization_url"])
    params = parse_qs(url.query)
    assert f"{url.scheme}://{url.netloc}{url.path}" == oauth_service.GOOGLE_AUTH_URL
    assert params["client_id"] == ["client-id"]
    assert params["state"] == [body["state"]]
    assert params["redirect_uri"][0].endswith("/api/v1/auth/oauth/google/callback")
    assert params["scope"] == ["openid email profile"]


async def test_callback_registers_then_reuses_the_identity(
    app_context: dict[str, Any], google_enabled: None, google_profile
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    _, calls = google_profile

    first = await client.get(
        "/api/v1/auth/oauth/google/callback",
        params={"code": GOOD_CODE, "state": await _state(client)},
    )
    assert first.status_code == 200, first.text
    token = first.json()["access_token"]
    assert [request.method for request in calls] == ["POST", "GET"]

    me = await client.get(
        "/api/v1/auth/session", headers={"Authorization": f"Bearer {token}"}
    )
    assert me.json()["user"]["email"] == "gina.google@example.com"
    assert me.json()["user"]["customerRole"] == "INDIVIDUAL"

    again = await client.get(
        "/api/v1/auth/oauth/google/callback",
        params={"code": GOOD_CODE, "state": await _state(client)},
    )
    assert again.status_code == 200

    async with app_context["sessionmaker"]() as session:
        accounts = (
            await session.execute(
                select(Account).where(Account.email == "gina.google@example.com")
            )
        ).scalars().all()
        assert len(accounts) == 1
        assert accounts[0].name == "Gina Google"
        identities = (await session.execute(select(AuthIdentity))).scalars().all()
        assert [(item.provider, item.provider_account_id) for item in identities] == [
            ("google", "10001")
        ]


async def test_callback_links_existing_staff_account(
    app_context: dict[str, Any], google_enabled: None, google_profile
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    userinfo, _ = google_profile
    userinfo["email"] = "tech@example.com"

    response = await client.get(
        "/api/v1/auth/oauth/google/callback",
        params={"code": GOOD_CODE, "state": await _state(client)},
    )
    assert response.status_code == 200
    me = await client.get(
        "/api/v1/auth/session",
        headers={"Authorization": f"Bearer {response.json()['access_token']}"},
    )
    assert me.json()["user"]["id"] == str(app_context["technician_id"])
    assert me.json()["user"]["staffRole"] == "TECHNICIAN"


async def test_callback_rejects_bad_state_code_and_unverified_email(
    app_context: dict[str, Any], google_enabled: None, google_profile
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    userinfo, calls = google_profile
    path = "/api/v1/auth/oauth/google/callback"

    forged = await client.get(path, params={"code": GOOD_CODE, "state": "not-a-state"})
    assert forged.status_code == 400
    assert calls == []

    bad_code = await client.get(path, params={"code": "stale", "state": await _state(client)})
    assert bad_code.status_code == 400
    assert bad_code.json()["detail"] == "Failed to exchange authorization code"

    userinfo["verified_email"] = False
    unverified = await client.get(
        path, params={"code": GOOD_CODE, "state": await _state(client)}
    )
    assert unverified.status_code == 403


async def test_state_token_is_not_a_session_token(
    app_context: dict[str, Any], google_enabled: None
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    state = await _state(client)
    response = await client.get(
        "/api/v1/auth/session", headers={"Authorization": f"Bearer {state}"}
    )
    assert response.status_code == 401


async def test_unreachable_google_is_a_bad_gateway(
    app_context: dict[str, Any], google_enabled: None
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def client_override():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as down:
            yield down

    app.dependency_overrides[get_http_client] = client_override
    try:
        response = await client.get(
            "/api/v1/auth/oauth/google/callback",
            params={"code": GOOD_CODE, "state": await _state(client)},
        )
    finally:
        app.dependency_overrides.pop(get_http_client, None)
    assert response.status_code == 502
