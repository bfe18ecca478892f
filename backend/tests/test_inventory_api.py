"""Device, part and stock movement endpoints."""

from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def _device(
    client: AsyncClient, headers: dict[str, str], **overrides: Any
) -> dict[str, Any]:
    payload = {
        "device_type": "LAPTOP",
        "brand": "Lenovo",
        "model": "T14",
        "serial_number": "LNV-001",
    }
    payload.update(overrides)
    response = await client.post("/api/v1/inventory/devices", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _part(
    client: AsyncClient, headers: dict[str, str], **overrides: Any
) -> dict[str, Any]:
    payload = {"name": "Battery", "serial_number": "BAT-001", "price": 59.5, "quantity": 3}
    payload.update(overrides)
    response = await client.post("/api/v1/inventory/parts", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_inventory_is_staff_only(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    customer = app_context["customer_headers"]

    listing = await client.get("/api/v1/inventory/devices", headers=customer)
    assert listing.status_code == 403
    assert listing.json()["error"] == "Only staff can view inventory"

    create = await client.post(
        "/api/v1/inventory/parts",
        json={"name": "Fan", "serial_number": "FAN-1", "price": 5},
        headers=customer,
    )
    assert create.status_code == 403

    assert (await client.get("/api/v1/inventory/parts")).status_code == 401


async def test_register_and_assign_device(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    tech = app_context["technician_headers"]
    device = await _device(client, tech, customer_id=str(app_context["customer_id"]))
    assert device["customer"]["email"] == "customer@example.com"
    assert device["repair_status"] == "PENDING_START"
    assert device["sale_status"] == "NOT_FOR_SALE"

    duplicate = await client.post(
        "/api/v1/inventory/devices",
        json={
            "device_type": "DESKTOP",
            "brand": "Dell",
            "model": "Optiplex",
            "serial_number": "LNV-001",
        },
        headers=tech,
    )
    assert duplicate.status_code == 409

    staff_owner = await client.put(
        f"/api/v1/inventory/devices/{device['id']}/customer",
        json={"customer_id": str(app_context["admin_id"])},
        headers=tech,
    )
    assert staff_owner.status_code == 422

    unassigned = await client.put(
        f"/api/v1/inventory/devices/{device['id']}/customer",
        json={"customer_id": None},
        headers=tech,
    )
    assert unassigned.status_code == 200
    assert unassigned.json()["data"]["customer"] is None

    status_change = await client.put(
        f"/api/v1/inventory/devices/{device['id']}/repair-status",
        json={"repair_status": "IN_PROGRESS"},
        headers=tech,
    )
    assert status_change.json()["data"]["repair_status"] == "IN_PROGRESS"

    sale = await client.put(
        f"/api/v1/inventory/devices/{device['id']}/sale-status",
        json={"sale_status": "AVAILABLE"},
        headers=tech,
    )
    assert sale.json()["data"]["sale_status"] == "AVAILABLE"

    filtered = await client.get(
        "/api/v1/inventory/devices",
        params={"repair_status": "IN_PROGRESS", "search": "lenovo"},
        headers=tech,
    )
    assert filtered.json()["data"]["total"] == 1


async def test_part_movements_are_attributed(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    tech = app_context["technician_headers"]
    part = await _part(client, tech)

    zero = await client.post(
        "/api/v1/inventory/movements",
        json={"part_id": part["id"], "quantity": 0, "movement_type": "ADJUSTMENT"},
        headers=tech,
    )
    assert zero.status_code == 422

    movement = await client.post(
        "/api/v1/inventory/movements",
        json={
            "part_id": part["id"],
            "quantity": 5,
            "movement_type": "STOCK_IN",
            "notes": "Supplier delivery",
        },
        headers=tech,
    )
    assert movement.status_code == 201
    data = movement.json()["data"]
    assert data["part_name"] == "Battery"
    assert data["created_by"]["email"] == "tech@example.com"

    listing = await client.get(
        "/api/v1/inventory/movements",
        params={"part_id": part["id"]},
        headers=tech,
    )
    assert listing.json()["data"]["total"] == 1

    detail = await client.get(f"/api/v1/inventory/parts/{part['id']}", headers=tech)
    assert [item["movement_type"] for item in detail.json()["data"]["movements"]] == [
        "STOCK_IN"
    ]

    blocked = await client.delete(
        f"/api/v1/inventory/parts/{part['id']}", headers=app_context["admin_headers"]
    )
    assert blocked.status_code == 409


async def test_part_status_and_device_link(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    tech = app_context["technician_headers"]
    device = await _device(client, tech)
    part = await _part(client, tech)

    status_change = await client.put(
        f"/api/v1/inventory/parts/{part['id']}/status",
        json={"status": "RESERVED"},
        headers=tech,
    )
    assert status_change.json()["data"]["status"] == "RESERVED"

    linked = await client.put(
        f"/api/v1/inventory/parts/{part['id']}/device",
        json={"device_id": device["id"]},
        headers=tech,
    )
    assert linked.json()["data"]["customer_device_id"] == device["id"]

    filtered = await client.get(
        "/api/v1/inventory/parts", params={"status": "RESERVED"}, headers=tech
    )
    assert [item["id"] for item in filtered.json()["data"]["parts"]] == [part["id"]]

    cannot_delete = await client.delete(
        f"/api/v1/inventory/devices/{device['id']}",
        headers=app_context["admin_headers"],
    )
    assert cannot_delete.status_code == 409


async def test_record_repair(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    tech = app_context["technician_headers"]
    device = await _device(client, tech)
    part = await _part(client, tech)

    wrong_tech = await client.post(
        "/api/v1/inventory/repairs",
        json={"device_id": device["id"], "technician_id": device["id"]},
        headers=tech,
    )
    assert wrong_tech.status_code == 422

    repair = await client.post(
        "/api/v1/inventory/repairs",
        json={
            "device_id": device["id"],
            "technician_id": str(app_context["technician_profile_id"]),
            "diagnosis": "Swollen battery",
            "parts_used": [part["id"], part["id"]],
        },
        headers=tech,
    )
    assert repair.status_code == 201
    data = repair.json()["data"]
    assert data["technician_name"] == "Tom Tech"
    assert [item["id"] for item in data["parts_used"]] == [part["id"]]

    detail = await client.get(f"/api/v1/inventory/devices/{device['id']}", headers=tech)
    assert detail.status_code == 200
    history = detail.json()["data"]["repair_history"]
    assert [item["diagnosis"] for item in history] == ["Swollen battery"]
    assert [item["id"] for item in history[0]["parts_used"]] == [part["id"]]


async def test_delete_and_stats_are_admin_only(app_context: dict[str, Any]) -> None:
    client: AsyncClient = app_context["client"]  # type: ignore[assignment]
    tech = app_context["technician_headers"]
    admin = app_context["admin_headers"]
    device = await _device(client, tech)
    await _part(client, tech, quantity=0, status="OUT_OF_STOCK")

    denied = await client.delete(f"/api/v1/inventory/devices/{device['id']}", headers=tech)
    assert denied.status_code == 403
    assert (await client.get("/api/v1/inventory/stats", headers=tech)).status_code == 403

    stats = (await client.get("/api/v1/inventory/stats", headers=admin)).json()["data"]
    assert stats["total_devices"] == 1
    assert stats["total_parts"] == 1
    assert stats["parts_out_of_stock"] == 1

    removed = await client.delete(f"/api/v1/inventory/devices/{device['id']}", headers=admin)
    assert removed.status_code == 200
    assert removed.json()["data"] == device["id"]
    missing = await client.get(f"/api/v1/inventory/devices/{device['id']}", headers=tech)
    assert missing.status_code == 404
