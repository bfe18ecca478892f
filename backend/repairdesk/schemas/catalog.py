"""Service catalog schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from repairdesk.models.catalog import DeviceType


class ServiceListFilters(BaseModel):
    """Filters for the service list; ``None`` means unfiltered."""

    search: str | None = None
    category_id: uuid.UUID | None = None
    device_type: DeviceType | None = None
    is_active: bool | None = None
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)


class ServiceCreate(BaseModel):
    category_id: uuid.UUID
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    device: DeviceType
    price: float = Field(ge=0)
    notes: str | None = None
    estimated_time: str | None = Field(default=None, max_length=120)
    is_active: bool = True


class ServiceUpdate(BaseModel):
    category_id: uuid.UUID | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    device: DeviceType | None = None
    price: float | None = Field(default=None, ge=0)
    notes: str | None = None
    estimated_time: str | None = Field(default=None, max_length=120)
    is_active: bool | None = None


class ServiceBulkUpdate(BaseModel):
    """Fields applied to every listed service; unset fields are left alone."""

    service_ids: list[uuid.UUID] = Field(min_length=1)
    is_active: bool | None = None
    category_id: uuid.UUID | None = None


class ServiceDuplicate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    device: DeviceType | None = None
    category_id: uuid.UUID | None = None


class BulkUpdateResult(BaseModel):
    updated: int
    failed: list[uuid.UUID] = Field(default_factory=list)


class ServiceRead(BaseModel):
    """Service as returned to clients, with a float price."""

    id: uuid.UUID
    category_id: uuid.UUID
    category_name: str
    name: str
    description: str | None
    device: DeviceType
    price: float
    notes: str | None
    estimated_time: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ServicePage(BaseModel):
    services: list[ServiceRead]
    total: int
    page: int
    limit: int


class CategoryBase(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CategoryRead(CategoryBase):
    pass


class CategoryWithServices(CategoryBase):
    """Category with its services and a service count.

    The public variant counts active services; the admin variant counts all.
    """

    services: list[ServiceRead]
    service_count: int


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    is_active: bool = True


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def _name_not_blank(self) -> "CategoryUpdate":
        if self.name is not None and not self.name.strip():
            raise ValueError("name must not be blank")
        return self


class DeviceCount(BaseModel):
    device: DeviceType
    count: int


class CategoryCount(BaseModel):
    category_name: str
    count: int


class ServiceStats(BaseModel):
    total_services: int
    active_services: int
    inactive_services: int
    total_categories: int
    services_by_device: list[DeviceCount]
    services_by_category: list[CategoryCount]
