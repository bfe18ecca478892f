"""Inventory data access: devices, parts, stock movements and repair records."""
from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import case, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from repairdesk.core.errors import ConflictError, NotFoundError, ValidationError
from repairdesk.models.account import Account, Profile, StaffProfile, StaffRole
from repairdesk.models.inventory import (
    REPAIR_IN_PROGRESS_STATUSES,
    Device,
    DevicePart,
    DevicePartStatus,
    PartMovement,
    RepairHistory,
    SaleStatus,
)
from repairdesk.schemas.common import MAX_PAGE_SIZE, money, to_decimal
from repairdesk.schemas.inventory import (
    CustomerSummary,
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
from repairdesk.security.permissions import Operation, authorize, load_requester

logger = logging.getLogger(__name__)

DUPLICATE_DEVICE_SERIAL = "Device with this serial number already exists"
DUPLICATE_PART_SERIAL = "Part with this serial number already exists"
RECENT_MOVEMENT_WINDOW = timedelta(days=7)

_REQUIRED_DEVICE_FIELDS = frozenset(
    {"device_type", "brand", "model", "serial_number", "repair_status", "sale_status"}
)
_REQUIRED_PART_FIELDS = frozenset({"name", "serial_number", "price", "quantity", "status"})


def _page_bounds(page: int, limit: int) -> tuple[int, int]:
    return max(page, 1), max(1, min(limit, MAX_PAGE_SIZE))


def _summary(account: Account | None) -> CustomerSummary | None:
    if account is None:
        return None
    return CustomerSummary(id=account.id, name=account.name, email=account.email)


def to_device_read(device: Device) -> DeviceRead:
    return DeviceRead(
        id=device.id,
        customer=_summary(device.customer),
        device_type=device.device_type,
        brand=device.brand,
        model=device.model,
        serial_number=device.serial_number,
        warranty_months=device.warranty_months,
        price=money(device.price),
        repair_status=device.repair_status,
        sale_status=device.sale_status,
        created_at=device.created_at,
        updated_at=device.updated_at,
    )


def to_part_read(part: DevicePart) -> PartRead:
    device = part.device
    return PartRead(
        id=part.id,
        customer_device_id=part.customer_device_id,
        device_label=f"{device.brand} {device.model}" if device is not None else None,
        name=part.name,
        model=part.model,
        serial_number=part.serial_number,
        price=money(part.price) or 0.0,
        quantity=part.quantity,
        warranty_months=part.warranty_months,
        status=part.status,
        created_at=part.created_at,
        updated_at=part.updated_at,
    )


def to_movement_read(movement: PartMovement) -> MovementRead:
    return MovementRead(
        id=movement.id,
        part_id=movement.part_id,
        part_name=movement.part.name,
        quantity=movement.quantity,
        movement_type=movement.movement_type,
        notes=movement.notes,
        created_by=_summary(movement.created_by),
        created_at=movement.created_at,
    )


def to_repair_read(record: RepairHistory) -> RepairHistoryRead:
    technician = record.technician
    return RepairHistoryRead(
        id=record.id,
        device_id=record.device_id,
        booking_id=record.booking_id,
        technician_id=record.technician_id,
        technician_name=technician.account.name if technician is not None else None,
        diagnosis=record.diagnosis,
        repair_date=record.repair_date,
        parts_used=[to_part_read(part) for part in record.parts_used],
    )


async def _commit_or_conflict(session: AsyncSession, message: str) -> None:
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError(message) from exc


async def _require_customer(session: AsyncSession, customer_id: uuid.UUID) -> Account:
    customer = await session.get(Account, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")
    if customer.is_staff:
        raise ValidationError("Devices can only be assigned to customer accounts")
    return customer


async def _serial_taken(
    session: AsyncSession,
    model: type[Device] | type[DevicePart],
    serial_number: str,
    exclude_id: uuid.UUID | None = None,
) -> bool:
    stmt = select(model.id).where(model.serial_number == serial_number)
    if exclude_id is not None:
        stmt = stmt.where(model.id != exclude_id)
    return (await session.scalar(stmt.limit(1))) is not None


def _apply(
    instance: Any, changes: dict[str, Any], required: frozenset[str]
) -> None:
    for field, value in changes.items():
        if value is None and field in required:
            continue
        if field == "price" and value is not None:
            value = to_decimal(value)
        setattr(instance, field, value)


# -- devices ----------------------------------------------------------------


async def _load_device(session: AsyncSession, device_id: uuid.UUID) -> Device:
    result = await session.execute(
        select(Device)
        .where(Device.id == device_id)
        .execution_options(populate_existing=True)
    )
    device = result.unique().scalar_one_or_none()
    if device is None:
        raise NotFoundError("Device not found")
    return device


def _device_conditions(filters: DeviceFilters) -> list:
    conditions: list = []
    if filters.search:
        pattern = f"%{filters.search.strip().lower()}%"
        conditions.append(
            or_(
                func.lower(Device.brand).like(pattern),
                func.lower(Device.model).like(pattern),
                func.lower(Device.serial_number).like(pattern),
                Device.customer_id.in_(
                    select(Account.id).where(func.lower(Account.name).like(pattern))
                ),
            )
        )
    if filters.device_type is not None:
        conditions.append(Device.device_type == filters.device_type)
    if filters.repair_status is not None:
        conditions.append(Device.repair_status == filters.repair_status)
    if filters.sale_status is not None:
        conditions.append(Device.sale_status == filters.sale_status)
    if filters.customer_id is not None:
        conditions.append(Device.customer_id == filters.customer_id)
    if filters.min_price is not None:
        conditions.append(Device.price >= to_decimal(filters.min_price))
    if filters.max_price is not None:
        conditions.append(Device.price <= to_decimal(filters.max_price))
    return conditions


async def get_device_list(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    filters: DeviceFilters | None = None,
    page: int = 1,
    limit: int = 20,
) -> DevicePage:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.INVENTORY_VIEW)
    filters = filters or DeviceFilters()
    page, limit = _page_bounds(page, limit)
    conditions = _device_conditions(filters)

    total = await session.scalar(select(func.count(Device.id)).where(*conditions))
    result = await session.execute(
        select(Device)
        .where(*conditions)
        .order_by(Device.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    devices = [to_device_read(device) for device in result.unique().scalars()]
    return DevicePage(devices=devices, total=total or 0, page=page, limit=limit)


async def get_device_with_relations(
    session: AsyncSession, *, requester_id: uuid.UUID, device_id: uuid.UUID
) -> DeviceDetail:
    """Return a device with its parts and repair history.

    Parts and repair records are read with their own queries rather than
    through ``Device.parts``/``Device.repair_history``: their joined
    ``device`` back-references refresh the parent row and would reset those
    collections mid-load.
    """
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.INVENTORY_VIEW)
    device = to_device_read(await _load_device(session, device_id))

    parts = await session.execute(
        select(DevicePart)
        .where(DevicePart.customer_device_id == device_id)
        .order_by(DevicePart.created_at.desc())
        .execution_options(populate_existing=True)
    )
    history = await session.execute(
        select(RepairHistory)
        .where(RepairHistory.device_id == device_id)
        .options(
            joinedload(RepairHistory.technician).joinedload(StaffProfile.account),
            selectinload(RepairHistory.parts_used),
        )
        .order_by(RepairHistory.repair_date.desc())
        .execution_options(populate_existing=True)
    )
    return DeviceDetail(
        **device.model_dump(),
        parts=[to_part_read(part) for part in parts.unique().scalars()],
        repair_history=[to_repair_read(record) for record in history.unique().scalars()],
    )


async def create_device(
    session: AsyncSession, *, requester_id: uuid.UUID, payload: DeviceCreate
) -> DeviceRead:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.INVENTORY_WRITE)
    serial = payload.serial_number.strip()
    if await _serial_taken(session, Device, serial):
        raise ConflictError(DUPLICATE_DEVICE_SERIAL)
    if payload.customer_id is not None:
        await _require_customer(session, payload.customer_id)

    device = Device(
        customer_id=payload.customer_id,
        device_type=payload.device_type,
        brand=payload.brand.strip(),
        model=payload.model.strip(),
        serial_number=serial,
        warranty_months=payload.warranty_months,
        price=to_decimal(payload.price) if payload.price is not None else None,
        repair_status=payload.repair_status,
        sale_status=payload.sale_status,
    )
    session.add(device)
    await _commit_or_conflict(session, DUPLICATE_DEVICE_SERIAL)
    logger.info("Device %s registered by %s", device.id, requester.id)
    return to_device_read(await _load_device(session, device.id))


async def update_device(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    device_id: uuid.UUID,
    payload: DeviceUpdate,
) -> DeviceRead:
    """Partial update; an explicit ``customer_id=None`` unassigns the device."""
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.INVENTORY_WRITE)
    device = await _load_device(session, device_id)

    changes = payload.model_dump(exclude_unset=True)
    serial = changes.get("serial_number")
    if serial is not None:
        changes["serial_number"] = serial = serial.strip()
        if serial != device.serial_number and await _serial_taken(
            session, Device, serial, exclude_id=device.id
        ):
            raise ConflictError(DUPLICATE_DEVICE_SERIAL)
    customer_id = changes.get("customer_id")
    if customer_id is not None and customer_id != device.customer_id:
        await _require_customer(session, customer_id)

    _apply(device, changes, _REQUIRED_DEVICE_FIELDS)
    await _commit_or_conflict(session, DUPLICATE_DEVICE_SERIAL)
    return to_device_read(await _load_device(session, device.id))


async def delete_device(
    session: AsyncSession, *, requester_id: uuid.UUID, device_id: uuid.UUID
) -> uuid.UUID:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.INVENTORY_DELETE)
    device = await _load_device(session, device_id)

    parts = await session.scalar(
        select(func.count(DevicePart.id)).where(
            DevicePart.customer_device_id == device.id
        )
    )
    repairs = await session.scalar(
        select(func.count(RepairHistory.id)).where(RepairHistory.device_id == device.id)
    )
    if parts or repairs:
        raise ConflictError(
            "Cannot delete device with associated parts or repair history"
        )
    await session.delete(device)
    await session.commit()
    logger.info("Device %s deleted by %s", device_id, requester.id)
    return device_id


# -- parts ------------------------------------------------------------------


async def _load_part(session: AsyncSession, part_id: uuid.UUID) -> DevicePart:
    result = await session.execute(
        select(DevicePart)
        .where(DevicePart.id == part_id)
        .execution_options(populate_existing=True)
    )
    part = result.unique().scalar_one_or_none()
    if part is None:
        raise NotFoundError("Part not found")
    return part


async def _require_device(session: AsyncSession, device_id: uuid.UUID) -> Device:
    device = await session.get(Device, device_id)
    if device is None:
        raise NotFoundError("Customer device not found")
    return device


def _part_conditions(filters: PartFilters) -> list:
    conditions: list = []
    if filters.search:
        pattern = f"%{filters.search.strip().lower()}%"
        conditions.append(
            or_(
                func.lower(DevicePart.name).like(pattern),
                func.lower(DevicePart.model).like(pattern),
                func.lower(DevicePart.serial_number).like(pattern),
            )
        )
    if filters.status is not None:
        conditions.append(DevicePart.status == filters.status)
    if filters.customer_device_id is not None:
        conditions.append(DevicePart.customer_device_id == filters.customer_device_id)
    if filters.min_price is not None:
        conditions.append(DevicePart.price >= to_decimal(filters.min_price))
    if filters.max_price is not None:
        conditions.append(DevicePart.price <= to_decimal(filters.max_price))
    if filters.min_quantity is not None:
        conditions.append(DevicePart.quantity >= filters.min_quantity)
    if filters.max_quantity is not None:
        conditions.append(DevicePart.quantity <= filters.max_quantity)
    return conditions


async def get_device_parts_list(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    filters: PartFilters | None = None,
    page: int = 1,
    limit: int = 20,
) -> PartPage:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.INVENTORY_VIEW)
    filters = filters or PartFilters()
    page, limit = _page_bounds(page, limit)
    conditions = _part_conditions(filters)

    total = await session.scalar(select(func.count(DevicePart.id)).where(*conditions))
    result = await session.execute(
        select(DevicePart)
        .where(*conditions)
        .order_by(DevicePart.name.asc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    parts = [to_part_read(part) for part in result.unique().scalars()]
    return PartPage(parts=parts, total=total or 0, page=page, limit=limit)


async def get_device_part_with_relations(
    session: AsyncSession, *, requester_id: uuid.UUID, part_id: uuid.UUID
) -> PartDetail:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.INVENTORY_VIEW)
    part = to_part_read(await _load_part(session, part_id))
    movements = await session.execute(
        select(PartMovement)
        .where(PartMovement.part_id == part_id)
        .order_by(PartMovement.created_at.desc())
        .execution_options(populate_existing=True)
    )
    return PartDetail(
        **part.model_dump(),
        movements=[to_movement_read(movement) for movement in movements.unique().scalars()],
    )


async def create_device_part(
    session: AsyncSession, *, requester_id: uuid.UUID, payload: PartCreate
) -> PartRead:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.INVENTORY_WRITE)
    serial = payload.serial_number.strip()
    if await _serial_taken(session, DevicePart, serial):
        raise ConflictError(DUPLICATE_PART_SERIAL)
    if payload.customer_device_id is not None:
        await _require_device(session, payload.customer_device_id)

    part = DevicePart(
        customer_device_id=payload.customer_device_id,
        name=payload.name.strip(),
        model=payload.model,
        serial_number=serial,
        price=to_decimal(payload.price),
        quantity=payload.quantity,
        warranty_months=payload.warranty_months,
        status=payload.status,
    )
    session.add(part)
    await _commit_or_conflict(session, DUPLICATE_PART_SERIAL)
    return to_part_read(await _load_part(session, part.id))


async def update_device_part(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    part_id: uuid.UUID,
    payload: PartUpdate,
) -> PartRead:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.INVENTORY_WRITE)
    part = await _load_part(session, part_id)

    changes = payload.model_dump(exclude_unset=True)
    serial = changes.get("serial_number")
    if serial is not None:
        changes["serial_number"] = serial = serial.strip()
        if serial != part.serial_number and await _serial_taken(
            session, DevicePart, serial, exclude_id=part.id
        ):
            raise ConflictError(DUPLICATE_PART_SERIAL)
    device_id = changes.get("customer_device_id")
    if device_id is not None and device_id != part.customer_device_id:
        await _require_device(session, device_id)

    _apply(part, changes, _REQUIRED_PART_FIELDS)
    await _commit_or_conflict(session, DUPLICATE_PART_SERIAL)
    return to_part_read(await _load_part(session, part.id))


async def delete_device_part(
    session: AsyncSession, *, requester_id: uuid.UUID, part_id: uuid.UUID
) -> uuid.UUID:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.INVENTORY_DELETE)
    part = await _load_part(session, part_id)
    movements = await session.scalar(
        select(func.count(PartMovement.id)).where(PartMovement.part_id == part.id)
    )
    if movements:
        raise ConflictError("Cannot delete part with movement history")
    await session.delete(part)
    await session.commit()
    logger.info("Part %s deleted by %s", part_id, requester.id)
    return part_id


# -- movements --------------------------------------------------------------


async def get_part_movements_list(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    filters: MovementFilters | None = None,
    page: int = 1,
    limit: int = 20,
) -> MovementPage:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.INVENTORY_VIEW)
    filters = filters or MovementFilters()
    page, limit = _page_bounds(page, limit)

    conditions: list = []
    if filters.part_id is not None:
        conditions.append(PartMovement.part_id == filters.part_id)
    if filters.movement_type is not None:
        conditions.append(PartMovement.movement_type == filters.movement_type)
    if filters.created_by_id is not None:
        conditions.append(PartMovement.created_by_id == filters.created_by_id)
    if filters.date_from is not None:
        conditions.append(PartMovement.created_at >= filters.date_from)
    if filters.date_to is not None:
        conditions.append(PartMovement.created_at <= filters.date_to)

    total = await session.scalar(select(func.count(PartMovement.id)).where(*conditions))
    result = await session.execute(
        select(PartMovement)
        .where(*conditions)
        .order_by(PartMovement.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    movements = [to_movement_read(movement) for movement in result.unique().scalars()]
    return MovementPage(movements=movements, total=total or 0, page=page, limit=limit)


async def create_part_movement(
    session: AsyncSession, *, requester_id: uuid.UUID, payload: MovementCreate
) -> MovementRead:
    """Record a stock movement attributed to the requester."""
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.INVENTORY_WRITE)
    if await session.get(DevicePart, payload.part_id) is None:
        raise NotFoundError("Part not found")
    if payload.quantity == 0:
        raise ValidationError("Movement quantity must not be zero")

    movement = PartMovement(
        part_id=payload.part_id,
        quantity=payload.quantity,
        movement_type=payload.movement_type,
        notes=payload.notes,
        created_by_id=requester.id,
    )
    session.add(movement)
    await session.commit()
    result = await session.execute(
        select(PartMovement)
        .where(PartMovement.id == movement.id)
        .execution_options(populate_existing=True)
    )
    return to_movement_read(result.unique().scalar_one())


# -- repair history ---------------------------------------------------------


async def create_repair_history(
    session: AsyncSession, *, requester_id: uuid.UUID, payload: RepairHistoryCreate
) -> RepairHistoryRead:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.INVENTORY_WRITE)
    if await session.get(Device, payload.device_id) is None:
        raise NotFoundError("Device not found")
    if payload.technician_id is not None:
        technician = await session.get(Profile, payload.technician_id)
        if (
            not isinstance(technician, StaffProfile)
            or technician.role is not StaffRole.TECHNICIAN
        ):
            raise ValidationError("Invalid technician")

    parts: list[DevicePart] = []
    part_ids = list(dict.fromkeys(payload.parts_used))
    if part_ids:
        result = await session.execute(
            select(DevicePart).where(DevicePart.id.in_(part_ids))
        )
        parts = list(result.unique().scalars())
        if len(parts) != len(part_ids):
            raise NotFoundError("Part not found")

    record = RepairHistory(
        device_id=payload.device_id,
        booking_id=payload.booking_id,
        technician_id=payload.technician_id,
        diagnosis=payload.diagnosis,
        repair_date=payload.repair_date or datetime.now(UTC),
        parts_used=parts,
    )
    session.add(record)
    await session.commit()
    result = await session.execute(
        select(RepairHistory)
        .where(RepairHistory.id == record.id)
        .options(joinedload(RepairHistory.technician).joinedload(StaffProfile.account))
        .execution_options(populate_existing=True)
    )
    return to_repair_read(result.unique().scalar_one())


# -- statistics -------------------------------------------------------------


def _count_where(condition) -> Any:
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


async def get_inventory_stats(
    session: AsyncSession, *, requester_id: uuid.UUID
) -> InventoryStats:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.INVENTORY_STATS)

    devices = (
        await session.execute(
            select(
                func.count(Device.id),
                _count_where(Device.repair_status.in_(REPAIR_IN_PROGRESS_STATUSES)),
                _count_where(Device.sale_status == SaleStatus.AVAILABLE),
                _count_where(Device.sale_status == SaleStatus.SOLD),
            )
        )
    ).one()
    parts = (
        await session.execute(
            select(
                func.count(DevicePart.id),
                _count_where(DevicePart.status == DevicePartStatus.IN_STOCK),
                _count_where(DevicePart.status == DevicePartStatus.OUT_OF_STOCK),
            )
        )
    ).one()
    since = datetime.now(UTC) - RECENT_MOVEMENT_WINDOW
    recent = await session.scalar(
        select(func.count(PartMovement.id)).where(PartMovement.created_at >= since)
    )

    total_devices, in_repair, for_sale, sold = (int(value or 0) for value in devices)
    total_parts, in_stock, out_of_stock = (int(value or 0) for value in parts)
    return InventoryStats(
        total_devices=total_devices,
        devices_in_repair=in_repair,
        devices_for_sale=for_sale,
        sold_devices=sold,
        total_parts=total_parts,
        parts_in_stock=in_stock,
        parts_out_of_stock=out_of_stock,
        recent_movements=int(recent or 0),
    )
