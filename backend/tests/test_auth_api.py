"""Magic-link sign-in and session endpoints."""

from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from repairdesk.core.errors import ConflictError
from repairdesk.models import Account, AuditEvent, AuthIdentity, CustomerProfile
from repairdesk.services import auth_service

pytestmark = pytest.mark.asyncio


async def _request_link(client: AsyncClient, email: str) -> str:
    response = await client.post("/api/v1/auth/magic-link", json={"email": email})
    assert response.status_code == 202
    token = response.json()["debug_token"]
    assert token
    return token


async def test_first_sign_in_creates_customer(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    token = await _request_link(client, "New.Person@Example.com")

    verify = await client.post("/api/v1/auth/magic-link/verify", json={"token": token})
    assert verify.status_code == 200
    access_token = verify.json()["access_token"]

    session_resp = await client.get(
        "/api/v1/auth/session", headers={"Authorization": f"Bearer {access_token}"}
    )
    assert session_resp.status_code == 200
    user = session_resp.json()["user"]
    assert user["email"] == "new.person@example.com"
    assert user["isStaff"] is False
    assert user["customerRole"] == "INDIVIDUAL"
    assert "expires" in session_resp.json()

    async with app_context["sessionmaker"]() as session:
        account = (
            await session.execute(select(Account).where(Account.email == user["email"]))
        ).scalar_one()
        assert isinstance(account.profile, CustomerProfile)
        assert account.email_verified_at is not None
        identities = (await session.execute(select(AuthIdentity))).scalars().all()
        assert [(item.provider, item.account_id) for item in identities] == [
            ("email", account.id)
        ]
        [event] = (await session.execute(select(AuditEvent))).scalars().all()
        assert event.operation == "auth.sign_in"
        assert event.actor_id == event.target_id == account.id
        assert event.details["registered"] is True


async def test_link_is_single_use(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    token = await _request_link(client, "tech@example.com")

    first = await client.post("/api/v1/auth/magic-link/verify", json={"token": token})
    assert first.status_code == 200
    second = await client.post("/api/v1/auth/magic-link/verify", json={"token": token})
    assert second.status_code == 400

    bogus = await client.post(
        "/api/v1/auth/magic-link/verify", json={"token": "x" * 40}
    )
    assert bogus.status_code == 400


async def test_newer_link_replaces_older(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    old = await _request_link(client, "customer@example.com")
    new = await _request_link(client, "customer@example.com")

    assert (
        await client.post("/api/v1/auth/magic-link/verify", json={"token": old})
    ).status_code == 400
    assert (
        await client.post("/api/v1/auth/magic-link/verify", json={"token": new})
    ).status_code == 200


async def test_disabled_account_cannot_sign_in(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    async with app_context["sessionmaker"]() as session:
        account = await session.get(Account, app_context["customer_id"])
        account.blocked = True
        await session.commit()

    token = await _request_link(client, "customer@example.com")
    response = await client.post("/api/v1/auth/magic-link/verify", json={"token": token})
    assert response.status_code == 403

    me = await client.get("/api/v1/auth/session", headers=app_context["customer_headers"])
    assert me.status_code == 401


async def test_identity_conflict_is_reported_as_409(
    app_context: dict[str, Any], monkeypatch: pytest.MonkeyPatch
) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    token = await _request_link(client, "racer@example.com")

    async def concurrent_link(*args: Any, **kwargs: Any) -> Account:
        raise ConflictError("Unable to link sign-in identity")

    monkeypatch.setattr(auth_service, "sign_in_with_provider", concurrent_link)
    response = await client.post("/api/v1/auth/magic-link/verify", json={"token": token})
    assert response.status_code == 409
    assert response.json()["detail"] == "Unable to link sign-in identity"


async def test_session_requires_token(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    assert (await client.get("/api/v1/auth/session")).status_code == 401
    bad = await client.get(
        "/api/v1/auth/session", headers={"Authorization": "Bearer nonsense"}
    )
    assert bad.status_code == 401


async def test_session_access_snapshot(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    guest = (await client.get("/api/v1/auth/session/access")).json()
    assert guest["role"] == "guest"
    assert guest["is_authenticated"] is False
    assert guest["status"] == "unauthenticated"

    admin = (
        await client.get(
            "/api/v1/auth/session/access", headers=app_context["admin_headers"]
        )
    ).json()
    assert admin["role"] == "superuser"
    assert admin["permissions"] == ["*"]
    assert admin["can_access"]["admin_panel"] is True

    technician = (
        await client.get(
            "/api/v1/auth/session/access", headers=app_context["technician_headers"]
        )
    ).json()
    assert technician["role"] == "staff"
    assert technician["can_access"]["staff_tools"] is True
    assert technician["can_access"]["user_management"] is False
