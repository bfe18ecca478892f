"""Inventory actions, including single-field convenience updates."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.actions.base import action, parse_payload
from repairdesk.models.inventory import DevicePartStatus, DeviceRepairStatus, SaleStatus
from repairdesk.schemas.inventory import (
    DeviceCreate,
    DeviceDetail,
    DeviceFilters,
    DevicePage,
    DeviceRead,
    DeviceUpdate,
    InventoryStats,
    MovementCreate,
    MovementFilters,
    MovementPage,
    MovementRead,
    PartCreate,
    PartDetail,
    PartFilters,
    PartPage,
    PartRead,
    PartUpdate,
    RepairHistoryCreate,
    RepairHistoryRead,
)
from repairdesk.services import inventory_service


@action("Failed to fetch devices")
async def get_device_list_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    filters: DeviceFilters | Mapping[str, Any] | None = None,
    page: int = 1,
    limit: int = 20,
) -> DevicePage:
    return await inventory_service.get_device_list(
        session,
        requester_id=requester_id,
        filters=parse_payload(DeviceFilters, filters or {}),
        page=page,
        limit=limit,
    )


@action("Failed to fetch device details")
async def get_device_with_relations_action(
    session: AsyncSession, *, requester_id: uuid.UUID, device_id: uuid.UUID
) -> DeviceDetail:
    return await inventory_service.get_device_with_relations(
        session, requester_id=requester_id, device_id=device_id
    )


@action("Failed to create device")
async def create_device_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    data: DeviceCreate | Mapping[str, Any],
) -> DeviceRead:
    return await inventory_service.create_device(
        session, requester_id=requester_id, payload=parse_payload(DeviceCreate, data)
    )


@action("Failed to update device")
async def update_device_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    device_id: uuid.UUID,
    data: DeviceUpdate | Mapping[str, Any],
) -> DeviceRead:
    return await inventory_service.update_device(
        session,
        requester_id=requester_id,
        device_id=device_id,
        payload=parse_payload(DeviceUpdate, data),
    )


@action("Failed to delete device")
async def delete_device_action(
    session: AsyncSession, *, requester_id: uuid.UUID, device_id: uuid.UUID
) -> uuid.UUID:
    return await inventory_service.delete_device(
        session, requester_id=requester_id, device_id=device_id
    )


@action("Failed to fetch device parts")
async def get_device_parts_list_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    filters: PartFilters | Mapping[str, Any] | None = None,
    page: int = 1,
    limit: int = 20,
) -> PartPage:
    return await inventory_service.get_device_parts_list(
        session,
        requester_id=requester_id,
        filters=parse_payload(PartFilters, filters or {}),
        page=page,
        limit=limit,
    )


@action("Failed to fetch part details")
async def get_device_part_with_relations_action(
    session: AsyncSession, *, requester_id: uuid.UUID, part_id: uuid.UUID
) -> PartDetail:
    return await inventory_service.get_device_part_with_relations(
        session, requester_id=requester_id, part_id=part_id
    )


@action("Failed to create part")
async def create_device_part_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    data: PartCreate | Mapping[str, Any],
) -> PartRead:
    return await inventory_service.create_device_part(
        session, requester_id=requester_id, payload=parse_payload(PartCreate, data)
    )


@action("Failed to update part")
async def update_device_part_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    part_id: uuid.UUID,
    data: PartUpdate | Mapping[str, Any],
) -> PartRead:
    return await inventory_service.update_device_part(
        session,
        requester_id=requester_id,
        part_id=part_id,
        payload=parse_payload(PartUpdate, data),
    )


@action("Failed to delete part")
async def delete_device_part_action(
    session: AsyncSession, *, requester_id: uuid.UUID, part_id: uuid.UUID
) -> uuid.UUID:
    return await inventory_service.delete_device_part(
        session, requester_id=requester_id, part_id=part_id
    )


@action("Failed to fetch part movements")
async def get_part_movements_list_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    filters: MovementFilters | Mapping[str, Any] | None = None,
    page: int = 1,
    limit: int = 20,
) -> MovementPage:
    return await inventory_service.get_part_movements_list(
        session,
        requester_id=requester_id,
        filters=parse_payload(MovementFilters, filters or {}),
        page=page,
        limit=limit,
    )


@action("Failed to create part movement")
async def create_part_movement_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    data: MovementCreate | Mapping[str, Any],
) -> MovementRead:
    return await inventory_service.create_part_movement(
        session, requester_id=requester_id, payload=parse_payload(MovementCreate, data)
    )


@action("Failed to create repair history")
async def create_repair_history_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    data: RepairHistoryCreate | Mapping[str, Any],
) -> RepairHistoryRead:
    return await inventory_service.create_repair_history(
        session,
        requester_id=requester_id,
        payload=parse_payload(RepairHistoryCreate, data),
    )


@action("Failed to fetch inventory statistics")
async def get_inventory_stats_action(
    session: AsyncSession, *, requester_id: uuid.UUID
) -> InventoryStats:
    return await inventory_service.get_inventory_stats(
        session, requester_id=requester_id
    )


@action("Failed to update repair status")
async def update_device_repair_status_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    device_id: uuid.UUID,
    repair_status: DeviceRepairStatus,
) -> DeviceRead:
    return await inventory_service.update_device(
        session,
        requester_id=requester_id,
        device_id=device_id,
        payload=DeviceUpdate(repair_status=repair_status),
    )


@action("Failed to update sale status")
async def update_device_sale_status_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    device_id: uuid.UUID,
    sale_status: SaleStatus,
) -> DeviceRead:
    return await inventory_service.update_device(
        session,
        requester_id=requester_id,
        device_id=device_id,
        payload=DeviceUpdate(sale_status=sale_status),
    )


@action("Failed to update part status")
async def update_part_status_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    part_id: uuid.UUID,
    status: DevicePartStatus,
) -> PartRead:
    return await inventory_service.update_device_part(
        session,
        requester_id=requester_id,
        part_id=part_id,
        payload=PartUpdate(status=status),
    )


@action("Failed to assign device to customer")
async def assign_device_to_customer_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    device_id: uuid.UUID,
    customer_id: uuid.UUID | None,
) -> DeviceRead:
    return await inventory_service.update_device(
        session,
        requester_id=requester_id,
        device_id=device_id,
        payload=DeviceUpdate(customer_id=customer_id),
    )


@action("Failed to assign part to device")
async def assign_part_to_device_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    part_id: uuid.UUID,
    device_id: uuid.UUID | None,
) -> PartRead:
    return await inventory_service.update_device_part(
        session,
        requester_id=requester_id,
        part_id=part_id,
        payload=PartUpdate(customer_device_id=device_id),
    )
