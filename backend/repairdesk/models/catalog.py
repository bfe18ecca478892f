"""Repair service catalog models."""
from __future__ import annotations

import enum
import uuid
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Enum,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repairdesk.db.base import Base
from repairdesk.models.mixins import TimestampMixin


class DeviceType(str, enum.Enum):
    """Kinds of hardware the shop services."""

    LAPTOP = "LAPTOP"
    DESKTOP = "DESKTOP"
    PRINTER = "PRINTER"


class ServiceCategory(TimestampMixin, Base):
    """Grouping for services shown on the public catalog."""

    __tablename__ = "service_categories"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    services: Mapped[list["Service"]] = relationship(
        "Service", back_populates="category", order_by="Service.name"
    )


class Service(TimestampMixin, Base):
    """Priced repair offering for one device type."""

    __tablename__ = "services"
    __table_args__ = (
        UniqueConstraint(
            "name", "category_id", "device", name="uq_services_name_category_device"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    category_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("service_categories.id", ondelete="RESTRICT"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    device: Mapped[DeviceType] = mapped_column(Enum(DeviceType), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    estimated_time: Mapped[str | None] = mapped_column(String(120))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    category: Mapped[ServiceCategory] = relationship(
        "ServiceCategory", back_populates="services", lazy="joined"
    )
