"""ORM models package export."""

from repairdesk.models.account import (
    Account,
    ContactMethod,
    CustomerProfile,
    CustomerRole,
    Profile,
    ProfileKind,
    StaffProfile,
    StaffRole,
)
from repairdesk.models.audit_event import AuditEvent
from repairdesk.models.auth_identity import AuthIdentity, MagicLinkToken
from repairdesk.models.catalog import DeviceType, Service, ServiceCategory
from repairdesk.models.inventory import (
    Device,
    DevicePart,
    DevicePartStatus,
    DeviceRepairStatus,
    MovementType,
    PartMovement,
    RepairHistory,
    SaleStatus,
    repair_history_parts,
)

__all__ = [
    "Account",
    "AuditEvent",
    "AuthIdentity",
    "ContactMethod",
    "CustomerProfile",
    "CustomerRole",
    "Device",
    "DevicePart",
    "DevicePartStatus",
    "DeviceRepairStatus",
    "DeviceType",
    "MagicLinkToken",
    "MovementType",
    "PartMovement",
    "Profile",
    "ProfileKind",
    "RepairHistory",
    "SaleStatus",
    "Service",
    "ServiceCategory",
    "StaffProfile",
    "StaffRole",
    "repair_history_parts",
]
