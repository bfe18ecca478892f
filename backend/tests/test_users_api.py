"""User management endpoints."""

from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


def _emails(response) -> set[str]:
    return {user["email"] for user in response.json()["data"]["users"]}


async def test_requires_authentication(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    response = await client.get("/api/v1/users")
    assert response.status_code == 401


async def test_customer_cannot_list_users(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    response = await client.get("/api/v1/users", headers=app_context["customer_headers"])
    assert response.status_code == 403
    body = response.json()
    assert body == {
        "success": False,
        "data": None,
        "error": "Only staff can list users",
        "code": "forbidden",
    }


async def test_staff_only_see_customers(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    staff_view = await client.get(
        "/api/v1/users", headers=app_context["technician_headers"]
    )
    assert staff_view.status_code == 200
    assert _emails(staff_view) == {"customer@example.com"}

    admin_view = await client.get(
        "/api/v1/users",
        params={"account_type": "staff"},
        headers=app_context["admin_headers"],
    )
    assert _emails(admin_view) == {
        "admin@example.com",
        "tech@example.com",
        "desk@example.com",
    }

    by_role = await client.get(
        "/api/v1/users",
        params={"role": "TECHNICIAN"},
        headers=app_context["admin_headers"],
    )
    assert _emails(by_role) == {"tech@example.com"}

    searched = await client.get(
        "/api/v1/users",
        params={"search": "rita"},
        headers=app_context["admin_headers"],
    )
    assert _emails(searched) == {"desk@example.com"}


async def test_limit_is_capped(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    response = await client.get(
        "/api/v1/users", params={"limit": 500}, headers=app_context["admin_headers"]
    )
    assert response.status_code == 422


async def test_staff_account_detail_is_admin_only(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    admin_id = app_context["admin_id"]

    denied = await client.get(
        f"/api/v1/users/{admin_id}", headers=app_context["receptionist_headers"]
    )
    assert denied.status_code == 403
    assert denied.json()["error"] == "Only administrators can view staff accounts"

    own = await client.get(
        f"/api/v1/users/{app_context['receptionist_id']}",
        headers=app_context["receptionist_headers"],
    )
    assert own.status_code == 200
    assert own.json()["data"]["staff_profile"]["role"] == "RECEPTIONIST"

    customer = await client.get(
        f"/api/v1/users/{app_context['customer_id']}",
        headers=app_context["receptionist_headers"],
    )
    assert customer.status_code == 200
    assert customer.json()["data"]["customer_profile"]["role"] == "INDIVIDUAL"


async def test_create_and_update_user(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    created = await client.post(
        "/api/v1/users",
        json={"email": "walkin@example.com", "name": "Walk In", "phone": "555-0100"},
        headers=app_context["receptionist_headers"],
    )
    assert created.status_code == 201
    user = created.json()["data"]
    assert user["is_staff"] is False
    assert user["customer_profile"]["role"] == "INDIVIDUAL"

    duplicate = await client.post(
        "/api/v1/users",
        json={"email": "WALKIN@example.com", "name": "Again"},
        headers=app_context["receptionist_headers"],
    )
    assert duplicate.status_code == 409

    staff_attempt = await client.post(
        "/api/v1/users",
        json={
            "email": "newtech@example.com",
            "name": "New Tech",
            "is_staff": True,
            "staff_role": "TECHNICIAN",
        },
        headers=app_context["receptionist_headers"],
    )
    assert staff_attempt.status_code == 403

    invalid = await client.post(
        "/api/v1/users",
        json={"email": "not-an-email", "name": "Broken"},
        headers=app_context["admin_headers"],
    )
    assert invalid.status_code == 422
    assert invalid.json()["code"] == "invalid"

    updated = await client.patch(
        f"/api/v1/users/{user['id']}",
        json={"company_name": "Walk In Ltd", "customer_role": "COMPANY"},
        headers=app_context["technician_headers"],
    )
    assert updated.status_code == 200
    profile = updated.json()["data"]["customer_profile"]
    assert profile == {
        "role": "COMPANY",
        "company_name": "Walk In Ltd",
        "address": None,
        "notes": None,
    }


async def test_deactivate_and_restore(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    customer_id = app_context["customer_id"]

    deleted = await client.delete(
        f"/api/v1/users/{customer_id}", headers=app_context["technician_headers"]
    )
    assert deleted.status_code == 200
    assert deleted.json()["data"]["is_active"] is False
    assert deleted.json()["data"]["blocked"] is True

    locked_out = await client.get(
        "/api/v1/auth/session", headers=app_context["customer_headers"]
    )
    assert locked_out.status_code == 401

    restored = await client.post(
        f"/api/v1/users/{customer_id}/restore",
        headers=app_context["technician_headers"],
    )
    assert restored.status_code == 200
    assert restored.json()["data"]["is_active"] is True

    toggled = await client.post(
        f"/api/v1/users/{customer_id}/toggle-status",
        headers=app_context["technician_headers"],
    )
    assert toggled.json()["data"]["is_active"] is False


async def test_self_protection(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    admin_id = app_context["admin_id"]
    headers = app_context["admin_headers"]

    for method, path in (
        ("DELETE", f"/api/v1/users/{admin_id}"),
        ("DELETE", f"/api/v1/users/{admin_id}/permanent"),
        ("POST", f"/api/v1/users/{admin_id}/toggle-status"),
    ):
        response = await client.request(method, path, headers=headers)
        assert response.status_code == 422, path


async def test_permanent_delete_is_admin_only(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    customer_id = app_context["customer_id"]

    denied = await client.delete(
        f"/api/v1/users/{customer_id}/permanent",
        headers=app_context["technician_headers"],
    )
    assert denied.status_code == 403

    removed = await client.delete(
        f"/api/v1/users/{customer_id}/permanent", headers=app_context["admin_headers"]
    )
    assert removed.status_code == 200
    assert removed.json()["data"] == str(customer_id)

    missing = await client.get(
        f"/api/v1/users/{customer_id}", headers=app_context["admin_headers"]
    )
    assert missing.status_code == 404


async def test_user_stats(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]

    denied = await client.get(
        "/api/v1/users/stats", headers=app_context["technician_headers"]
    )
    assert denied.status_code == 403

    stats = await client.get("/api/v1/users/stats", headers=app_context["admin_headers"])
    assert stats.status_code == 200
    assert stats.json()["data"] == {
        "total_users": 4,
        "active_users": 4,
        "staff_users": 3,
        "customer_users": 1,
        "blocked_users": 0,
    }


async def test_me_endpoints_serve_the_signed_in_account(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    customer = app_context["customer_headers"]

    assert (await client.get("/api/v1/users/me")).status_code == 401

    me = await client.get("/api/v1/users/me", headers=customer)
    assert me.status_code == 200
    assert me.json()["data"]["id"] == str(app_context["customer_id"])

    renamed = await client.patch(
        "/api/v1/users/me", json={"name": "  Carla Customer "}, headers=customer
    )
    assert renamed.status_code == 200
    assert renamed.json()["data"]["name"] == "Carla Customer"

    blank = await client.patch("/api/v1/users/me", json={"name": "  "}, headers=customer)
    assert blank.status_code == 422
    assert blank.json()["code"] == "invalid"
