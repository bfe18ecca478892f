"""Service catalog actions."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.actions.base import action, parse_payload
from repairdesk.models.catalog import DeviceType
from repairdesk.schemas.catalog import (
    BulkUpdateResult,
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    CategoryWithServices,
    ServiceBulkUpdate,
    ServiceCreate,
    ServiceDuplicate,
    ServiceListFilters,
    ServicePage,
    ServiceRead,
    ServiceStats,
    ServiceUpdate,
)
from repairdesk.services import service_catalog_service


@action("Failed to fetch services")
async def get_service_list_action(
    session: AsyncSession,
    *,
    filters: ServiceListFilters | Mapping[str, Any] | None = None,
    page: int = 1,
    limit: int = 20,
) -> ServicePage:
    return await service_catalog_service.get_service_list(
        session,
        filters=parse_payload(ServiceListFilters, filters or {}),
        page=page,
        limit=limit,
    )


@action("Failed to fetch service")
async def get_service_with_category_action(
    session: AsyncSession, *, service_id: uuid.UUID
) -> ServiceRead:
    return await service_catalog_service.get_service_with_category(
        session, service_id=service_id
    )


@action("Failed to create service")
async def create_service_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    data: ServiceCreate | Mapping[str, Any],
) -> ServiceRead:
    return await service_catalog_service.create_service(
        session, requester_id=requester_id, payload=parse_payload(ServiceCreate, data)
    )


@action("Failed to update service")
async def update_service_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    service_id: uuid.UUID,
    data: ServiceUpdate | Mapping[str, Any],
) -> ServiceRead:
    return await service_catalog_service.update_service(
        session,
        requester_id=requester_id,
        service_id=service_id,
        payload=parse_payload(ServiceUpdate, data),
    )


@action("Failed to delete service")
async def delete_service_action(
    session: AsyncSession, *, requester_id: uuid.UUID, service_id: uuid.UUID
) -> ServiceRead:
    return await service_catalog_service.delete_service(
        session, requester_id=requester_id, service_id=service_id
    )


@action("Failed to restore service")
async def restore_service_action(
    session: AsyncSession, *, requester_id: uuid.UUID, service_id: uuid.UUID
) -> ServiceRead:
    return await service_catalog_service.restore_service(
        session, requester_id=requester_id, service_id=service_id
    )


@action("Failed to bulk update services")
async def bulk_update_services_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    data: ServiceBulkUpdate | Mapping[str, Any],
) -> BulkUpdateResult:
    return await service_catalog_service.bulk_update_services(
        session, requester_id=requester_id, payload=parse_payload(ServiceBulkUpdate, data)
    )


@action("Failed to duplicate service")
async def duplicate_service_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    service_id: uuid.UUID,
    data: ServiceDuplicate | Mapping[str, Any],
) -> ServiceRead:
    return await service_catalog_service.duplicate_service(
        session,
        requester_id=requester_id,
        service_id=service_id,
        payload=parse_payload(ServiceDuplicate, data),
    )


@action("Failed to fetch service categories")
async def get_service_categories_action(
    session: AsyncSession, *, include_inactive: bool = False
) -> list[CategoryWithServices]:
    return await service_catalog_service.get_service_categories(
        session, include_inactive=include_inactive
    )


@action("Failed to fetch service categories")
async def get_service_categories_for_admin_action(
    session: AsyncSession, *, requester_id: uuid.UUID, include_inactive: bool = False
) -> list[CategoryWithServices]:
    return await service_catalog_service.get_service_categories_for_admin(
        session, requester_id=requester_id, include_inactive=include_inactive
    )


@action("Failed to create service category")
async def create_service_category_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    data: CategoryCreate | Mapping[str, Any],
) -> CategoryRead:
    return await service_catalog_service.create_service_category(
        session, requester_id=requester_id, payload=parse_payload(CategoryCreate, data)
    )


@action("Failed to update service category")
async def update_service_category_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    category_id: uuid.UUID,
    data: CategoryUpdate | Mapping[str, Any],
) -> CategoryRead:
    return await service_catalog_service.update_service_category(
        session,
        requester_id=requester_id,
        category_id=category_id,
        payload=parse_payload(CategoryUpdate, data),
    )


@action("Failed to delete service category")
async def delete_service_category_action(
    session: AsyncSession, *, requester_id: uuid.UUID, category_id: uuid.UUID
) -> CategoryRead:
    return await service_catalog_service.delete_service_category(
        session, requester_id=requester_id, category_id=category_id
    )


@action("Failed to restore service category")
async def restore_service_category_action(
    session: AsyncSession, *, requester_id: uuid.UUID, category_id: uuid.UUID
) -> CategoryRead:
    return await service_catalog_service.restore_service_category(
        session, requester_id=requester_id, category_id=category_id
    )


@action("Failed to fetch services for device")
async def get_services_by_device_action(
    session: AsyncSession,
    *,
    device: DeviceType,
    category_id: uuid.UUID | None = None,
) -> list[ServiceRead]:
    return await service_catalog_service.get_services_by_device(
        session, device=device, category_id=category_id
    )


@action("Failed to fetch service statistics")
async def get_service_stats_action(
    session: AsyncSession, *, requester_id: uuid.UUID
) -> ServiceStats:
    return await service_catalog_service.get_service_stats(
        session, requester_id=requester_id
    )
