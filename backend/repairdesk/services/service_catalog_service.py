"""Service and category data access.

Catalog reads are public; every write goes through the admin guard. Prices
are stored as ``Numeric`` and leave this module as ``float``.
"""
from __future__ import annotations

import logging
import uuid

from sqlalchemy import Select, case, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from repairdesk.core.errors import (
    ConflictError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from repairdesk.models.catalog import DeviceType, Service, ServiceCategory
from repairdesk.schemas.catalog import (
    BulkUpdateResult,
    CategoryCount,
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    CategoryWithServices,
    DeviceCount,
    ServiceBulkUpdate,
    ServiceCreate,
    ServiceDuplicate,
    ServiceListFilters,
    ServicePage,
    ServiceRead,
    ServiceStats,
    ServiceUpdate,
)
from repairdesk.schemas.common import MAX_PAGE_SIZE, money, to_decimal
from repairdesk.security.permissions import Operation, authorize, load_requester

logger = logging.getLogger(__name__)

DUPLICATE_SERVICE = (
    "Service with this name already exists for this category and device type"
)
DUPLICATE_CATEGORY = "Service category with this name already exists"
INVALID_CATEGORY = "Invalid or inactive service category"


def to_service_read(service: Service) -> ServiceRead:
    return ServiceRead(
        id=service.id,
        category_id=service.category_id,
        category_name=service.category.name,
        name=service.name,
        description=service.description,
        device=service.device,
        price=money(service.price) or 0.0,
        notes=service.notes,
        estimated_time=service.estimated_time,
        is_active=service.is_active,
        created_at=service.created_at,
        updated_at=service.updated_at,
    )


def to_category_read(category: ServiceCategory) -> CategoryRead:
    return CategoryRead(
        id=category.id,
        name=category.name,
        description=category.description,
        is_active=category.is_active,
        created_at=category.created_at,
        updated_at=category.updated_at,
    )


def to_category_with_services(
    category: ServiceCategory, *, active_only: bool
) -> CategoryWithServices:
    services = [
        service
        for service in category.services
        if service.is_active or not active_only
    ]
    return CategoryWithServices(
        **to_category_read(category).model_dump(),
        services=[to_service_read(service) for service in services],
        service_count=len(services),
    )


async def _get_service(session: AsyncSession, service_id: uuid.UUID) -> Service:
    result = await session.execute(
        select(Service)
        .where(Service.id == service_id)
        .execution_options(populate_existing=True)
    )
    service = result.unique().scalar_one_or_none()
    if service is None:
        raise NotFoundError("Service not found")
    return service


async def _get_category(
    session: AsyncSession, category_id: uuid.UUID
) -> ServiceCategory:
    result = await session.execute(
        select(ServiceCategory)
        .where(ServiceCategory.id == category_id)
        .execution_options(populate_existing=True)
    )
    category = result.scalar_one_or_none()
    if category is None:
        raise NotFoundError("Service category not found")
    return category


async def _require_active_category(
    session: AsyncSession, category_id: uuid.UUID
) -> ServiceCategory:
    category = await session.get(ServiceCategory, category_id)
    if category is None:
        raise NotFoundError("Service category not found")
    if not category.is_active:
        raise ValidationError(INVALID_CATEGORY)
    return category


async def _commit_or_conflict(session: AsyncSession, message: str) -> None:
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError(message) from exc


def _service_conditions(filters: ServiceListFilters) -> list:
    conditions: list = []
    if filters.search:
        pattern = f"%{filters.search.strip().lower()}%"
        conditions.append(
            or_(
                func.lower(Service.name).like(pattern),
                func.lower(Service.description).like(pattern),
                func.lower(ServiceCategory.name).like(pattern),
            )
        )
    if filters.category_id is not None:
        conditions.append(Service.category_id == filters.category_id)
    if filters.device_type is not None:
        conditions.append(Service.device == filters.device_type)
    if filters.is_active is not None:
        conditions.append(Service.is_active.is_(filters.is_active))
    if filters.min_price is not None:
        conditions.append(Service.price >= to_decimal(filters.min_price))
    if filters.max_price is not None:
        conditions.append(Service.price <= to_decimal(filters.max_price))
    return conditions


# -- public reads -----------------------------------------------------------


async def get_service_list(
    session: AsyncSession,
    *,
    filters: ServiceListFilters | None = None,
    page: int = 1,
    limit: int = 20,
) -> ServicePage:
    """Return a page of services ordered by category name, then service name."""
    filters = filters or ServiceListFilters()
    page = max(page, 1)
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    conditions = _service_conditions(filters)

    total = await session.scalar(
        select(func.count(Service.id))
        .select_from(Service)
        .join(ServiceCategory, Service.category_id == ServiceCategory.id)
        .where(*conditions)
    )
    stmt: Select[tuple[Service]] = (
        select(Service)
        .join(ServiceCategory, Service.category_id == ServiceCategory.id)
        .where(*conditions)
        .order_by(ServiceCategory.name.asc(), Service.name.asc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await session.execute(stmt)
    services = [to_service_read(service) for service in result.unique().scalars()]
    return ServicePage(services=services, total=total or 0, page=page, limit=limit)


async def get_service_with_category(
    session: AsyncSession, *, service_id: uuid.UUID
) -> ServiceRead:
    return to_service_read(await _get_service(session, service_id))


async def get_service_categories(
    session: AsyncSession, *, include_inactive: bool = False
) -> list[CategoryWithServices]:
    """Public category listing; only active services are attached."""
    stmt = (
        select(ServiceCategory)
        .options(selectinload(ServiceCategory.services))
        .order_by(ServiceCategory.name.asc())
    )
    if not include_inactive:
        stmt = stmt.where(ServiceCategory.is_active.is_(True))
    result = await session.execute(stmt)
    return [
        to_category_with_services(category, active_only=True)
        for category in result.scalars().all()
    ]


async def get_services_by_device(
    session: AsyncSession,
    *,
    device: DeviceType,
    category_id: uuid.UUID | None = None,
) -> list[ServiceRead]:
    """Active services in active categories for one device type."""
    stmt = (
        select(Service)
        .join(ServiceCategory, Service.category_id == ServiceCategory.id)
        .where(
            Service.device == device,
            Service.is_active.is_(True),
            ServiceCategory.is_active.is_(True),
        )
        .order_by(ServiceCategory.name.asc(), Service.name.asc())
    )
    if category_id is not None:
        stmt = stmt.where(Service.category_id == category_id)
    result = await session.execute(stmt)
    return [to_service_read(service) for service in result.unique().scalars()]


# -- admin: services --------------------------------------------------------


async def create_service(
    session: AsyncSession, *, requester_id: uuid.UUID, payload: ServiceCreate
) -> ServiceRead:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.SERVICES_MANAGE)
    await _require_active_category(session, payload.category_id)

    service = Service(
        category_id=payload.category_id,
        name=payload.name.strip(),
        description=payload.description,
        device=payload.device,
        price=to_decimal(payload.price),
        notes=payload.notes,
        estimated_time=payload.estimated_time,
        is_active=payload.is_active,
    )
    session.add(service)
    await _commit_or_conflict(session, DUPLICATE_SERVICE)
    logger.info("Service %s created by %s", service.id, requester.id)
    return to_service_read(await _get_service(session, service.id))


async def update_service(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    service_id: uuid.UUID,
    payload: ServiceUpdate,
) -> ServiceRead:
    """Partially update a service.

    The (name, category, device) key is checked by the store, so a clash with
    any other row surfaces as ConflictError while the row itself never does.
    """
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.SERVICES_MANAGE)
    service = await _get_service(session, service_id)

    changes = payload.model_dump(exclude_unset=True)
    category_id = changes.get("category_id")
    if category_id is not None and category_id != service.category_id:
        await _require_active_category(session, category_id)
    if "price" in changes and changes["price"] is not None:
        changes["price"] = to_decimal(changes["price"])
    if changes.get("name") is not None:
        changes["name"] = changes["name"].strip()

    for field, value in changes.items():
        if value is None and field in {"category_id", "name", "device", "price", "is_active"}:
            continue
        setattr(service, field, value)
    await _commit_or_conflict(session, DUPLICATE_SERVICE)
    return to_service_read(await _get_service(session, service.id))


async def _set_service_active(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    service_id: uuid.UUID,
    is_active: bool,
) -> ServiceRead:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.SERVICES_MANAGE)
    service = await _get_service(session, service_id)
    if is_active and not service.category.is_active:
        raise ValidationError(INVALID_CATEGORY)
    service.is_active = is_active
    await session.commit()
    return to_service_read(await _get_service(session, service.id))


async def delete_service(
    session: AsyncSession, *, requester_id: uuid.UUID, service_id: uuid.UUID
) -> ServiceRead:
    """Deactivate a service; services are never physically removed."""
    return await _set_service_active(
        session, requester_id=requester_id, service_id=service_id, is_active=False
    )


async def restore_service(
    session: AsyncSession, *, requester_id: uuid.UUID, service_id: uuid.UUID
) -> ServiceRead:
    return await _set_service_active(
        session, requester_id=requester_id, service_id=service_id, is_active=True
    )


async def bulk_update_services(
    session: AsyncSession, *, requester_id: uuid.UUID, payload: ServiceBulkUpdate
) -> BulkUpdateResult:
    """Apply ``is_active``/``category_id`` to each listed service.

    Services are updated one by one; a failing id is logged and reported in
    ``failed`` without stopping the rest.
    """
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.SERVICES_MANAGE)
    changes = ServiceUpdate(**payload.model_dump(exclude={"service_ids"}, exclude_unset=True))

    updated = 0
    failed: list[uuid.UUID] = []
    for service_id in dict.fromkeys(payload.service_ids):
        try:
            await update_service(
                session, requester_id=requester_id, service_id=service_id, payload=changes
            )
        except ServiceError as exc:
            logger.warning("Bulk update skipped service %s: %s", service_id, exc.message)
            failed.append(service_id)
        else:
            updated += 1
    return BulkUpdateResult(updated=updated, failed=failed)


async def duplicate_service(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    service_id: uuid.UUID,
    payload: ServiceDuplicate,
) -> ServiceRead:
    """Create a new active service from an existing one under a new name.

    ``device`` and ``category_id`` default to the original's values.
    """
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.SERVICES_MANAGE)
    original = await _get_service(session, service_id)
    return await create_service(
        session,
        requester_id=requester_id,
        payload=ServiceCreate(
            category_id=payload.category_id or original.category_id,
            name=payload.name,
            description=original.description,
            device=payload.device or original.device,
            price=money(original.price) or 0.0,
            notes=original.notes,
            estimated_time=original.estimated_time,
        ),
    )


# -- admin: categories ------------------------------------------------------


async def get_service_categories_for_admin(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    include_inactive: bool = False,
) -> list[CategoryWithServices]:
    """Category listing for management screens; all services are attached."""
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.CATEGORIES_ADMIN_VIEW)
    stmt = (
        select(ServiceCategory)
        .options(selectinload(ServiceCategory.services))
        .order_by(ServiceCategory.name.asc())
    )
    if not include_inactive:
        stmt = stmt.where(ServiceCategory.is_active.is_(True))
    result = await session.execute(stmt)
    return [
        to_category_with_services(category, active_only=False)
        for category in result.scalars().all()
    ]


async def create_service_category(
    session: AsyncSession, *, requester_id: uuid.UUID, payload: CategoryCreate
) -> CategoryRead:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.CATEGORIES_MANAGE)
    category = ServiceCategory(
        name=payload.name.strip(),
        description=payload.description,
        is_active=payload.is_active,
    )
    session.add(category)
    await _commit_or_conflict(session, DUPLICATE_CATEGORY)
    return to_category_read(await _get_category(session, category.id))


async def update_service_category(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    category_id: uuid.UUID,
    payload: CategoryUpdate,
) -> CategoryRead:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.CATEGORIES_MANAGE)
    category = await _get_category(session, category_id)

    changes = payload.model_dump(exclude_unset=True)
    if changes.get("is_active") is False and category.is_active:
        await _ensure_no_active_services(session, category.id)
    for field, value in changes.items():
        if value is None and field in {"name", "is_active"}:
            continue
        setattr(category, field, value.strip() if field == "name" else value)
    await _commit_or_conflict(session, DUPLICATE_CATEGORY)
    return to_category_read(await _get_category(session, category.id))


async def _ensure_no_active_services(
    session: AsyncSession, category_id: uuid.UUID
) -> None:
    active = await session.scalar(
        select(func.count(Service.id)).where(
            Service.category_id == category_id, Service.is_active.is_(True)
        )
    )
    if active:
        raise ConflictError(
            "Cannot delete category with active services. "
            "Deactivate all services first."
        )


async def delete_service_category(
    session: AsyncSession, *, requester_id: uuid.UUID, category_id: uuid.UUID
) -> CategoryRead:
    """Deactivate a category once none of its services are active."""
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.CATEGORIES_MANAGE)
    category = await _get_category(session, category_id)
    await _ensure_no_active_services(session, category.id)
    category.is_active = False
    await session.commit()
    logger.info("Service category %s deactivated by %s", category.id, requester.id)
    return to_category_read(await _get_category(session, category.id))


async def restore_service_category(
    session: AsyncSession, *, requester_id: uuid.UUID, category_id: uuid.UUID
) -> CategoryRead:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.CATEGORIES_MANAGE)
    category = await _get_category(session, category_id)
    category.is_active = True
    await session.commit()
    return to_category_read(await _get_category(session, category.id))


async def get_service_stats(
    session: AsyncSession, *, requester_id: uuid.UUID
) -> ServiceStats:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.SERVICES_STATS)

    totals = (
        await session.execute(
            select(
                func.count(Service.id),
                func.coalesce(func.sum(case((Service.is_active.is_(True), 1), else_=0)), 0),
                func.coalesce(func.sum(case((Service.is_active.is_(False), 1), else_=0)), 0),
            )
        )
    ).one()
    active_categories = await session.scalar(
        select(func.count(ServiceCategory.id)).where(
            ServiceCategory.is_active.is_(True)
        )
    )
    by_device = await session.execute(
        select(Service.device, func.count(Service.id))
        .where(Service.is_active.is_(True))
        .group_by(Service.device)
        .order_by(Service.device)
    )
    by_category = await session.execute(
        select(ServiceCategory.name, func.count(Service.id))
        .join(ServiceCategory, Service.category_id == ServiceCategory.id)
        .where(Service.is_active.is_(True))
        .group_by(ServiceCategory.name)
        .order_by(ServiceCategory.name)
    )
    total, active, inactive = (int(value or 0) for value in totals)
    return ServiceStats(
        total_services=total,
        active_services=active,
        inactive_services=inactive,
        total_categories=int(active_categories or 0),
        services_by_device=[
            DeviceCount(device=device, count=count) for device, count in by_device
        ],
        services_by_category=[
            CategoryCount(category_name=name, count=count)
            for name, count in by_category
        ],
    )
