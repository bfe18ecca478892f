"""Inventory schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from repairdesk.models.catalog import DeviceType
from repairdesk.models.inventory import (
    DevicePartStatus,
    DeviceRepairStatus,
    MovementType,
    SaleStatus,
)


class CustomerSummary(BaseModel):
    id: uuid.UUID
    name: str | None
    email: str


class DeviceFilters(BaseModel):
    search: str | None = None
    device_type: DeviceType | None = None
    repair_status: DeviceRepairStatus | None = None
    sale_status: SaleStatus | None = None
    customer_id: uuid.UUID | None = None
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)


class DeviceCreate(BaseModel):
    customer_id: uuid.UUID | None = None
    device_type: DeviceType
    brand: str = Field(min_length=1, max_length=120)
    model: str = Field(min_length=1, max_length=120)
    serial_number: str = Field(min_length=1, max_length=120)
    warranty_months: int | None = Field(default=None, ge=0)
    price: float | None = Field(default=None, ge=0)
    repair_status: DeviceRepairStatus = DeviceRepairStatus.PENDING_START
    sale_status: SaleStatus = SaleStatus.NOT_FOR_SALE


class DeviceUpdate(BaseModel):
    customer_id: uuid.UUID | None = None
    device_type: DeviceType | None = None
    brand: str | None = Field(default=None, min_length=1, max_length=120)
    model: str | None = Field(default=None, min_length=1, max_length=120)
    serial_number: str | None = Field(default=None, min_length=1, max_length=120)
    warranty_months: int | None = Field(default=None, ge=0)
    price: float | None = Field(default=None, ge=0)
    repair_status: DeviceRepairStatus | None = None
    sale_status: SaleStatus | None = None


class DeviceRead(BaseModel):
    id: uuid.UUID
    customer: CustomerSummary | None
    device_type: DeviceType
    brand: str
    model: str
    serial_number: str
    warranty_months: int | None
    price: float | None
    repair_status: DeviceRepairStatus
    sale_status: SaleStatus
    created_at: datetime
    updated_at: datetime


class DevicePage(BaseModel):
    devices: list[DeviceRead]
    total: int
    page: int
    limit: int


class PartFilters(BaseModel):
    search: str | None = None
    status: DevicePartStatus | None = None
    customer_device_id: uuid.UUID | None = None
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)
    min_quantity: int | None = Field(default=None, ge=0)
    max_quantity: int | None = Field(default=None, ge=0)


class PartCreate(BaseModel):
    customer_device_id: uuid.UUID | None = None
    name: str = Field(min_length=1, max_length=255)
    model: str | None = Field(default=None, max_length=120)
    serial_number: str = Field(min_length=1, max_length=120)
    price: float = Field(ge=0)
    quantity: int = Field(default=0, ge=0)
    warranty_months: int | None = Field(default=None, ge=0)
    status: DevicePartStatus = DevicePartStatus.IN_STOCK


class PartUpdate(BaseModel):
    customer_device_id: uuid.UUID | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    model: str | None = Field(default=None, max_length=120)
    serial_number: str | None = Field(default=None, min_length=1, max_length=120)
    price: float | None = Field(default=None, ge=0)
    quantity: int | None = Field(default=None, ge=0)
    warranty_months: int | None = Field(default=None, ge=0)
    status: DevicePartStatus | None = None


class PartRead(BaseModel):
    id: uuid.UUID
    customer_device_id: uuid.UUID | None
    device_label: str | None = None
    name: str
    model: str | None
    serial_number: str
    price: float
    quantity: int
    warranty_months: int | None
    status: DevicePartStatus
    created_at: datetime
    updated_at: datetime


class PartPage(BaseModel):
    parts: list[PartRead]
    total: int
    page: int
    limit: int


class MovementFilters(BaseModel):
    part_id: uuid.UUID | None = None
    movement_type: MovementType | None = None
    created_by_id: uuid.UUID | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


class MovementCreate(BaseModel):
    part_id: uuid.UUID
    quantity: int
    movement_type: MovementType
    notes: str | None = None


class MovementRead(BaseModel):
    id: uuid.UUID
    part_id: uuid.UUID
    part_name: str
    quantity: int
    movement_type: MovementType
    notes: str | None
    created_by: CustomerSummary | None
    created_at: datetime


class MovementPage(BaseModel):
    movements: list[MovementRead]
    total: int
    page: int
    limit: int


class RepairHistoryCreate(BaseModel):
    device_id: uuid.UUID
    booking_id: uuid.UUID | None = None
    technician_id: uuid.UUID | None = None
    diagnosis: str | None = None
    repair_date: datetime | None = None
    parts_used: list[uuid.UUID] = Field(default_factory=list)


class RepairHistoryRead(BaseModel):
    id: uuid.UUID
    device_id: uuid.UUID
    booking_id: uuid.UUID | None
    technician_id: uuid.UUID | None
    technician_name: str | None = None
    diagnosis: str | None
    repair_date: datetime
    parts_used: list[PartRead]


class DeviceDetail(DeviceRead):
    parts: list[PartRead]
    repair_history: list[RepairHistoryRead]


class PartDetail(PartRead):
    movements: list[MovementRead]


class InventoryStats(BaseModel):
    total_devices: int
    devices_in_repair: int
    devices_for_sale: int
    sold_devices: int
    total_parts: int
    parts_in_stock: int
    parts_out_of_stock: int
    recent_movements: int
