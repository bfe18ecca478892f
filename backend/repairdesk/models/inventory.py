"""Inventory models: customer devices, parts, stock movements, repairs."""
from __future__ import annotations

import enum
import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from repairdesk.db.base import Base
from repairdesk.models.account import Account, StaffProfile
from repairdesk.models.catalog import DeviceType
from repairdesk.models.mixins import TimestampMixin


class DeviceRepairStatus(str, enum.Enum):
    PENDING_START = "PENDING_START"
    IN_PROGRESS = "IN_PROGRESS"
    AWAITING_PARTS = "AWAITING_PARTS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


REPAIR_IN_PROGRESS_STATUSES = (
    DeviceRepairStatus.PENDING_START,
    DeviceRepairStatus.IN_PROGRESS,
    DeviceRepairStatus.AWAITING_PARTS,
)


class SaleStatus(str, enum.Enum):
    NOT_FOR_SALE = "NOT_FOR_SALE"
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    SOLD = "SOLD"


class DevicePartStatus(str, enum.Enum):
    IN_STOCK = "IN_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    RESERVED = "RESERVED"
    INSTALLED = "INSTALLED"


class MovementType(str, enum.Enum):
    """Direction of a stock change for a part."""

    STOCK_IN = "STOCK_IN"
    STOCK_OUT = "STOCK_OUT"
    ADJUSTMENT = "ADJUSTMENT"
    RETURN = "RETURN"


repair_history_parts = Table(
    "repair_history_parts",
    Base.metadata,
    Column(
        "repair_history_id",
        Uuid(as_uuid=True),
        ForeignKey("repair_history.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "part_id",
        Uuid(as_uuid=True),
        ForeignKey("device_parts.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Device(TimestampMixin, Base):
    """A customer-owned or resale device tracked by the shop."""

    __tablename__ = "devices"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    customer_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="SET NULL")
    )
    device_type: Mapped[DeviceType] = mapped_column(Enum(DeviceType), nullable=False)
    brand: Mapped[str] = mapped_column(String(120), nullable=False)
    model: Mapped[str] = mapped_column(String(120), nullable=False)
    serial_number: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    warranty_months: Mapped[int | None] = mapped_column(Integer)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    repair_status: Mapped[DeviceRepairStatus] = mapped_column(
        Enum(DeviceRepairStatus),
        default=DeviceRepairStatus.PENDING_START,
        nullable=False,
    )
    sale_status: Mapped[SaleStatus] = mapped_column(
        Enum(SaleStatus), default=SaleStatus.NOT_FOR_SALE, nullable=False
    )

    customer: Mapped[Account | None] = relationship("Account", lazy="joined")
    parts: Mapped[list["DevicePart"]] = relationship(
        "DevicePart", back_populates="device", passive_deletes=True
    )
    repair_history: Mapped[list["RepairHistory"]] = relationship(
        "RepairHistory", back_populates="device", passive_deletes=True
    )


class DevicePart(TimestampMixin, Base):
    """Stock item, optionally installed in a customer device."""

    __tablename__ = "device_parts"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    customer_device_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("devices.id", ondelete="SET NULL")
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    model: Mapped[str | None] = mapped_column(String(120))
    serial_number: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    warranty_months: Mapped[int | None] = mapped_column(Integer)
    status: Mapped[DevicePartStatus] = mapped_column(
        Enum(DevicePartStatus), default=DevicePartStatus.IN_STOCK, nullable=False
    )

    device: Mapped[Device | None] = relationship(
        "Device", back_populates="parts", lazy="joined"
    )
    movements: Mapped[list["PartMovement"]] = relationship(
        "PartMovement",
        back_populates="part",
        passive_deletes=True,
        order_by="PartMovement.created_at.desc()",
    )


class PartMovement(Base):
    """Immutable stock movement entry for a part."""

    __tablename__ = "part_movements"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    part_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("device_parts.id", ondelete="CASCADE"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    movement_type: Mapped[MovementType] = mapped_column(
        Enum(MovementType), nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text)
    created_by_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="SET NULL")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    part: Mapped[DevicePart] = relationship(
        "DevicePart", back_populates="movements", lazy="joined"
    )
    created_by: Mapped[Account | None] = relationship("Account", lazy="joined")


class RepairHistory(TimestampMixin, Base):
    """Diagnosis and parts record for a repair performed on a device."""

    __tablename__ = "repair_history"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    device_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("devices.id", ondelete="CASCADE"), nullable=False
    )
    booking_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True))
    technician_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL")
    )
    diagnosis: Mapped[str | None] = mapped_column(Text)
    repair_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    device: Mapped[Device] = relationship(
        "Device", back_populates="repair_history", lazy="joined"
    )
    technician: Mapped[StaffProfile | None] = relationship(
        "StaffProfile", lazy="joined"
    )
    parts_used: Mapped[list[DevicePart]] = relationship(
        "DevicePart", secondary=repair_history_parts, lazy="selectin"
    )
