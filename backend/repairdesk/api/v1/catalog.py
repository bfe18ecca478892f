"""Service catalog endpoints: public reads plus administrator writes."""

from __future__ import annotations

import uuid
from typing import Annotated, Any

from fastapi import APIRouter, Body, Query, status
from fastapi.responses import JSONResponse

from repairdesk.actions import service as service_actions
from repairdesk.api.deps import DbSession, RequesterId, action_response
from repairdesk.models.catalog import DeviceType

services_router = APIRouter()
categories_router = APIRouter()

Payload = Annotated[dict[str, Any], Body()]


@services_router.get("", summary="List services")
async def list_services(
    session: DbSession,
    search: str | None = Query(default=None),
    category_id: uuid.UUID | None = Query(default=None),
    device_type: DeviceType | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> JSONResponse:
    filters = {
        "search": search,
        "category_id": category_id,
        "device_type": device_type,
        "is_active": is_active,
        "min_price": min_price,
        "max_price": max_price,
    }
    result = await service_actions.get_service_list_action(
        session, filters=filters, page=page, limit=limit
    )
    return action_response(result)


@services_router.get("/stats", summary="Service statistics")
async def service_stats(session: DbSession, requester_id: RequesterId) -> JSONResponse:
    result = await service_actions.get_service_stats_action(
        session, requester_id=requester_id
    )
    return action_response(result)


@services_router.get("/by-device/{device}", summary="Active services for a device")
async def services_by_device(
    device: DeviceType,
    session: DbSession,
    category_id: uuid.UUID | None = Query(default=None),
) -> JSONResponse:
    result = await service_actions.get_services_by_device_action(
        session, device=device, category_id=category_id
    )
    return action_response(result)


@services_router.post("", summary="Create service")
async def create_service(
    payload: Payload, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await service_actions.create_service_action(
        session, requester_id=requester_id, data=payload
    )
    return action_response(result, success_status=status.HTTP_201_CREATED)


@services_router.post("/bulk-update", summary="Update several services at once")
async def bulk_update_services(
    payload: Payload, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await service_actions.bulk_update_services_action(
        session, requester_id=requester_id, data=payload
    )
    return action_response(result)


@services_router.get("/{service_id}", summary="Get service")
async def get_service(service_id: uuid.UUID, session: DbSession) -> JSONResponse:
    result = await service_actions.get_service_with_category_action(
        session, service_id=service_id
    )
    return action_response(result)


@services_router.patch("/{service_id}", summary="Update service")
async def update_service(
    service_id: uuid.UUID,
    payload: Payload,
    session: DbSession,
    requester_id: RequesterId,
) -> JSONResponse:
    result = await service_actions.update_service_action(
        session, requester_id=requester_id, service_id=service_id, data=payload
    )
    return action_response(result)


@services_router.delete("/{service_id}", summary="Deactivate service")
async def delete_service(
    service_id: uuid.UUID, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await service_actions.delete_service_action(
        session, requester_id=requester_id, service_id=service_id
    )
    return action_response(result)


@services_router.post("/{service_id}/restore", summary="Reactivate service")
async def restore_service(
    service_id: uuid.UUID, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await service_actions.restore_service_action(
        session, requester_id=requester_id, service_id=service_id
    )
    return action_response(result)


@services_router.post("/{service_id}/duplicate", summary="Duplicate service")
async def duplicate_service(
    service_id: uuid.UUID,
    payload: Payload,
    session: DbSession,
    requester_id: RequesterId,
) -> JSONResponse:
    result = await service_actions.duplicate_service_action(
        session, requester_id=requester_id, service_id=service_id, data=payload
    )
    return action_response(result, success_status=status.HTTP_201_CREATED)


@categories_router.get("", summary="List service categories")
async def list_categories(
    session: DbSession, include_inactive: bool = Query(default=False)
) -> JSONResponse:
    result = await service_actions.get_service_categories_action(
        session, include_inactive=include_inactive
    )
    return action_response(result)


@categories_router.get("/admin", summary="List categories for management")
async def list_categories_for_admin(
    session: DbSession,
    requester_id: RequesterId,
    include_inactive: bool = Query(default=False),
) -> JSONResponse:
    result = await service_actions.get_service_categories_for_admin_action(
        session, requester_id=requester_id, include_inactive=include_inactive
    )
    return action_response(result)


@categories_router.post("", summary="Create service category")
async def create_category(
    payload: Payload, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await service_actions.create_service_category_action(
        session, requester_id=requester_id, data=payload
    )
    return action_response(result, success_status=status.HTTP_201_CREATED)


@categories_router.patch("/{category_id}", summary="Update service category")
async def update_category(
    category_id: uuid.UUID,
    payload: Payload,
    session: DbSession,
    requester_id: RequesterId,
) -> JSONResponse:
    result = await service_actions.update_service_category_action(
        session, requester_id=requester_id, category_id=category_id, data=payload
    )
    return action_response(result)


@categories_router.delete("/{category_id}", summary="Deactivate service category")
async def delete_category(
    category_id: uuid.UUID, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await service_actions.delete_service_category_action(
        session, requester_id=requester_id, category_id=category_id
    )
    return action_response(result)


@categories_router.post("/{category_id}/restore", summary="Reactivate category")
async def restore_category(
    category_id: uuid.UUID, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await service_actions.restore_service_category_action(
        session, requester_id=requester_id, category_id=category_id
    )
    return action_response(result)
