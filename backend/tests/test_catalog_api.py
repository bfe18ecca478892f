"""Service catalog endpoints."""

from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def _category(client: AsyncClient, headers: dict[str, str], name: str) -> str:
    response = await client.post(
        "/api/v1/service-categories",
        json={"name": name, "description": f"{name} work"},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]["id"]


async def _service(
    client: AsyncClient, headers: dict[str, str], category_id: str, **overrides: Any
) -> dict[str, Any]:
    payload = {
        "category_id": category_id,
        "name": "Screen Replacement",
        "device": "LAPTOP",
        "price": 149.99,
        "estimated_time": "2 hours",
    }
    payload.update(overrides)
    response = await client.post("/api/v1/services", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_public_reads_need_no_session(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    admin = app_context["admin_headers"]
    hardware = await _category(client, admin, "Hardware")
    await _service(client, admin, hardware)
    await _service(client, admin, hardware, name="Toner Swap", device="PRINTER", price=20)

    listing = await client.get("/api/v1/services", params={"device_type": "LAPTOP"})
    assert listing.status_code == 200
    data = listing.json()["data"]
    assert data["total"] == 1
    assert data["services"][0]["category_name"] == "Hardware"
    assert data["services"][0]["price"] == 149.99

    priced = await client.get("/api/v1/services", params={"max_price": 50})
    assert [item["name"] for item in priced.json()["data"]["services"]] == ["Toner Swap"]

    by_device = await client.get("/api/v1/services/by-device/PRINTER")
    assert [item["name"] for item in by_device.json()["data"]] == ["Toner Swap"]

    categories = await client.get("/api/v1/service-categories")
    assert categories.status_code == 200
    [category] = categories.json()["data"]
    assert category["service_count"] == 2


async def test_writes_are_admin_only(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    hardware = await _category(client, app_context["admin_headers"], "Hardware")

    for headers in (app_context["technician_headers"], app_context["customer_headers"]):
        create = await client.post(
            "/api/v1/services",
            json={
                "category_id": hardware,
                "name": "Fan Clean",
                "device": "DESKTOP",
                "price": 30,
            },
            headers=headers,
        )
        assert create.status_code == 403
        assert create.json()["error"] == "Only administrators can manage services"

        category = await client.post(
            "/api/v1/service-categories", json={"name": "Software"}, headers=headers
        )
        assert category.status_code == 403

    anonymous = await client.post("/api/v1/service-categories", json={"name": "X"})
    assert anonymous.status_code == 401


async def test_duplicate_service_is_conflict(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    admin = app_context["admin_headers"]
    hardware = await _category(client, admin, "Hardware")
    await _service(client, admin, hardware)

    duplicate = await client.post(
        "/api/v1/services",
        json={
            "category_id": hardware,
            "name": "Screen Replacement",
            "device": "LAPTOP",
            "price": 99,
        },
        headers=admin,
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == (
        "Service with this name already exists for this category and device type"
    )

    # Same name on another device is a different service.
    await _service(client, admin, hardware, device="DESKTOP")

    dup_category = await client.post(
        "/api/v1/service-categories", json={"name": "Hardware"}, headers=admin
    )
    assert dup_category.status_code == 409


async def test_negative_price_is_rejected(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    admin = app_context["admin_headers"]
    hardware = await _category(client, admin, "Hardware")
    response = await client.post(
        "/api/v1/services",
        json={"category_id": hardware, "name": "Bad", "device": "LAPTOP", "price": -1},
        headers=admin,
    )
    assert response.status_code == 422
    assert response.json()["code"] == "invalid"


async def test_category_lifecycle(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    admin = app_context["admin_headers"]
    hardware = await _category(client, admin, "Hardware")
    service = await _service(client, admin, hardware)

    blocked = await client.delete(f"/api/v1/service-categories/{hardware}", headers=admin)
    assert blocked.status_code == 409

    deactivated = await client.delete(f"/api/v1/services/{service['id']}", headers=admin)
    assert deactivated.json()["data"]["is_active"] is False

    removed = await client.delete(f"/api/v1/service-categories/{hardware}", headers=admin)
    assert removed.status_code == 200
    assert removed.json()["data"]["is_active"] is False

    assert (await client.get("/api/v1/service-categories")).json()["data"] == []
    admin_view = await client.get(
        "/api/v1/service-categories/admin",
        params={"include_inactive": True},
        headers=admin,
    )
    [category] = admin_view.json()["data"]
    assert category["service_count"] == 1

    cannot_restore = await client.post(
        f"/api/v1/services/{service['id']}/restore", headers=admin
    )
    assert cannot_restore.status_code == 422

    restored = await client.post(
        f"/api/v1/service-categories/{hardware}/restore", headers=admin
    )
    assert restored.json()["data"]["is_active"] is True
    again = await client.post(f"/api/v1/services/{service['id']}/restore", headers=admin)
    assert again.json()["data"]["is_active"] is True


async def test_update_service(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    admin = app_context["admin_headers"]
    hardware = await _category(client, admin, "Hardware")
    software = await _category(client, admin, "Software")
    service = await _service(client, admin, hardware)

    moved = await client.patch(
        f"/api/v1/services/{service['id']}",
        json={"category_id": software, "price": 120},
        headers=admin,
    )
    assert moved.status_code == 200
    data = moved.json()["data"]
    assert data["category_name"] == "Software"
    assert data["price"] == 120.0
    assert data["name"] == "Screen Replacement"

    missing = await client.get(
        "/api/v1/services/00000000-0000-0000-0000-000000000000"
    )
    assert missing.status_code == 404


async def test_service_stats(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    admin = app_context["admin_headers"]
    hardware = await _category(client, admin, "Hardware")
    await _service(client, admin, hardware)
    await _service(client, admin, hardware, name="Fan Clean", device="DESKTOP")

    denied = await client.get(
        "/api/v1/services/stats", headers=app_context["technician_headers"]
    )
    assert denied.status_code == 403

    stats = (await client.get("/api/v1/services/stats", headers=admin)).json()["data"]
    assert stats["total_services"] == 2
    assert stats["active_services"] == 2
    assert stats["total_categories"] == 1
    assert {item["device"] for item in stats["services_by_device"]} == {
        "LAPTOP",
        "DESKTOP",
    }
    assert stats["services_by_category"] == [{"category_name": "Hardware", "count": 2}]


async def test_bulk_update_and_duplicate_endpoints(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    admin = app_context["admin_headers"]
    hardware = await _category(client, admin, "Hardware")
    first = await _service(client, admin, hardware)
    second = await _service(client, admin, hardware, name="Fan Cleaning", price=35)

    bulk = await client.post(
        "/api/v1/services/bulk-update",
        json={"service_ids": [first["id"], second["id"]], "is_active": False},
        headers=admin,
    )
    assert bulk.status_code == 200
    assert bulk.json()["data"] == {"updated": 2, "failed": []}

    denied = await client.post(
        "/api/v1/services/bulk-update",
        json={"service_ids": [first["id"]], "is_active": True},
        headers=app_context["technician_headers"],
    )
    assert denied.status_code == 403

    copy = await client.post(
        f"/api/v1/services/{first['id']}/duplicate",
        json={"name": "Screen Replacement", "device": "DESKTOP"},
        headers=admin,
    )
    assert copy.status_code == 201
    data = copy.json()["data"]
    assert (data["device"], data["price"], data["is_active"]) == ("DESKTOP", 149.99, True)

    missing_category = await client.post(
        "/api/v1/services",
        json={
            "category_id": "00000000-0000-0000-0000-000000000000",
            "name": "Nowhere",
            "device": "LAPTOP",
            "price": 1,
        },
        headers=admin,
    )
    assert missing_category.status_code == 404
