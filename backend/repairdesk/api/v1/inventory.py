"""Inventory endpoints for devices, parts, stock movements and repairs."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Body, Query, status
from fastapi.responses import JSONResponse

from repairdesk.actions import inventory as inventory_actions
from repairdesk.api.deps import DbSession, RequesterId, action_response
from repairdesk.models.catalog import DeviceType
from repairdesk.models.inventory import (
    DevicePartStatus,
    DeviceRepairStatus,
    MovementType,
    SaleStatus,
)

router = APIRouter()

Payload = Annotated[dict[str, Any], Body()]


def _present(**values: Any) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


@router.get("/stats", summary="Inventory statistics")
async def inventory_stats(session: DbSession, requester_id: RequesterId) -> JSONResponse:
    result = await inventory_actions.get_inventory_stats_action(
        session, requester_id=requester_id
    )
    return action_response(result)


# Devices


@router.get("/devices", summary="List devices")
async def list_devices(
    session: DbSession,
    requester_id: RequesterId,
    search: str | None = Query(default=None),
    device_type: DeviceType | None = Query(default=None),
    repair_status: DeviceRepairStatus | None = Query(default=None),
    sale_status: SaleStatus | None = Query(default=None),
    customer_id: uuid.UUID | None = Query(default=None),
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> JSONResponse:
    filters = _present(
        search=search,
        device_type=device_type,
        repair_status=repair_status,
        sale_status=sale_status,
        customer_id=customer_id,
        min_price=min_price,
        max_price=max_price,
    )
    result = await inventory_actions.get_device_list_action(
        session, requester_id=requester_id, filters=filters, page=page, limit=limit
    )
    return action_response(result)


@router.post("/devices", summary="Create device")
async def create_device(
    payload: Payload, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await inventory_actions.create_device_action(
        session, requester_id=requester_id, data=payload
    )
    return action_response(result, success_status=status.HTTP_201_CREATED)


@router.get("/devices/{device_id}", summary="Device with parts and repairs")
async def get_device(
    device_id: uuid.UUID, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await inventory_actions.get_device_with_relations_action(
        session, requester_id=requester_id, device_id=device_id
    )
    return action_response(result)


@router.patch("/devices/{device_id}", summary="Update device")
async def update_device(
    device_id: uuid.UUID,
    payload: Payload,
    session: DbSession,
    requester_id: RequesterId,
) -> JSONResponse:
    result = await inventory_actions.update_device_action(
        session, requester_id=requester_id, device_id=device_id, data=payload
    )
    return action_response(result)


@router.delete("/devices/{device_id}", summary="Delete device")
async def delete_device(
    device_id: uuid.UUID, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await inventory_actions.delete_device_action(
        session, requester_id=requester_id, device_id=device_id
    )
    return action_response(result)


@router.put("/devices/{device_id}/repair-status", summary="Set repair status")
async def set_repair_status(
    device_id: uuid.UUID,
    session: DbSession,
    requester_id: RequesterId,
    repair_status: Annotated[DeviceRepairStatus, Body(embed=True)],
) -> JSONResponse:
    result = await inventory_actions.update_device_repair_status_action(
        session,
        requester_id=requester_id,
        device_id=device_id,
        repair_status=repair_status,
    )
    return action_response(result)


@router.put("/devices/{device_id}/sale-status", summary="Set sale status")
async def set_sale_status(
    device_id: uuid.UUID,
    session: DbSession,
    requester_id: RequesterId,
    sale_status: Annotated[SaleStatus, Body(embed=True)],
) -> JSONResponse:
    result = await inventory_actions.update_device_sale_status_action(
        session,
        requester_id=requester_id,
        device_id=device_id,
        sale_status=sale_status,
    )
    return action_response(result)


@router.put("/devices/{device_id}/customer", summary="Assign device to a customer")
async def assign_device_customer(
    device_id: uuid.UUID,
    session: DbSession,
    requester_id: RequesterId,
    customer_id: Annotated[uuid.UUID | None, Body(embed=True)] = None,
) -> JSONResponse:
    result = await inventory_actions.assign_device_to_customer_action(
        session,
        requester_id=requester_id,
        device_id=device_id,
        customer_id=customer_id,
    )
    return action_response(result)


# Parts


@router.get("/parts", summary="List parts")
async def list_parts(
    session: DbSession,
    requester_id: RequesterId,
    search: str | None = Query(default=None),
    part_status: DevicePartStatus | None = Query(default=None, alias="status"),
    customer_device_id: uuid.UUID | None = Query(default=None),
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    min_quantity: int | None = Query(default=None, ge=0),
    max_quantity: int | None = Query(default=None, ge=0),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> JSONResponse:
    filters = _present(
        search=search,
        status=part_status,
        customer_device_id=customer_device_id,
        min_price=min_price,
        max_price=max_price,
        min_quantity=min_quantity,
        max_quantity=max_quantity,
    )
    result = await inventory_actions.get_device_parts_list_action(
        session, requester_id=requester_id, filters=filters, page=page, limit=limit
    )
    return action_response(result)


@router.post("/parts", summary="Create part")
async def create_part(
    payload: Payload, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await inventory_actions.create_device_part_action(
        session, requester_id=requester_id, data=payload
    )
    return action_response(result, success_status=status.HTTP_201_CREATED)


@router.get("/parts/{part_id}", summary="Part with movements")
async def get_part(
    part_id: uuid.UUID, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await inventory_actions.get_device_part_with_relations_action(
        session, requester_id=requester_id, part_id=part_id
    )
    return action_response(result)


@router.patch("/parts/{part_id}", summary="Update part")
async def update_part(
    part_id: uuid.UUID,
    payload: Payload,
    session: DbSession,
    requester_id: RequesterId,
) -> JSONResponse:
    result = await inventory_actions.update_device_part_action(
        session, requester_id=requester_id, part_id=part_id, data=payload
    )
    return action_response(result)


@router.delete("/parts/{part_id}", summary="Delete part")
async def delete_part(
    part_id: uuid.UUID, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await inventory_actions.delete_device_part_action(
        session, requester_id=requester_id, part_id=part_id
    )
    return action_response(result)


@router.put("/parts/{part_id}/status", summary="Set part status")
async def set_part_status(
    part_id: uuid.UUID,
    session: DbSession,
    requester_id: RequesterId,
    part_status: Annotated[DevicePartStatus, Body(embed=True, alias="status")],
) -> JSONResponse:
    result = await inventory_actions.update_part_status_action(
        session, requester_id=requester_id, part_id=part_id, status=part_status
    )
    return action_response(result)


@router.put("/parts/{part_id}/device", summary="Attach part to a device")
async def assign_part_device(
    part_id: uuid.UUID,
    session: DbSession,
    requester_id: RequesterId,
    device_id: Annotated[uuid.UUID | None, Body(embed=True)] = None,
) -> JSONResponse:
    result = await inventory_actions.assign_part_to_device_action(
        session, requester_id=requester_id, part_id=part_id, device_id=device_id
    )
    return action_response(result)


# Movements and repairs


@router.get("/movements", summary="List part movements")
async def list_movements(
    session: DbSession,
    requester_id: RequesterId,
    part_id: uuid.UUID | None = Query(default=None),
    movement_type: MovementType | None = Query(default=None),
    created_by_id: uuid.UUID | None = Query(default=None),
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> JSONResponse:
    filters = _present(
        part_id=part_id,
        movement_type=movement_type,
        created_by_id=created_by_id,
        date_from=date_from,
        date_to=date_to,
    )
    result = await inventory_actions.get_part_movements_list_action(
        session, requester_id=requester_id, filters=filters, page=page, limit=limit
    )
    return action_response(result)


@router.post("/movements", summary="Record a part movement")
async def create_movement(
    payload: Payload, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await inventory_actions.create_part_movement_action(
        session, requester_id=requester_id, data=payload
    )
    return action_response(result, success_status=status.HTTP_201_CREATED)


@router.post("/repairs", summary="Record a repair")
async def create_repair(
    payload: Payload, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await inventory_actions.create_repair_history_action(
        session, requester_id=requester_id, data=payload
    )
    return action_response(result, success_status=status.HTTP_201_CREATED)
