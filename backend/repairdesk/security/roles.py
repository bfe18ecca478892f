"""Permission levels, role resolution and the per-role capability table."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from repairdesk.models.account import StaffRole


class PermissionLevel(str, enum.Enum):
    """Effective privilege tier derived from account flags and staff role."""

    GUEST = "guest"
    CUSTOMER = "customer"
    STAFF = "staff"
    ADMIN = "admin"
    SUPERUSER = "superuser"


_LEVEL_PRIORITY: dict[PermissionLevel, int] = {
    PermissionLevel.GUEST: 0,
    PermissionLevel.CUSTOMER: 1,
    PermissionLevel.STAFF: 2,
    PermissionLevel.ADMIN: 3,
    PermissionLevel.SUPERUSER: 4,
}


class Resource(str, enum.Enum):
    """Coarse UI areas gated per role."""

    DASHBOARD = "dashboard"
    ADMIN_PANEL = "admin_panel"
    STAFF_TOOLS = "staff_tools"
    CUSTOMER_ORDERS = "customer_orders"
    USER_MANAGEMENT = "user_management"
    SERVICE_MANAGEMENT = "service_management"
    REPORTING = "reporting"


WILDCARD = "*"


class PERMISSIONS:
    """Named permission strings."""

    VIEW_PUBLIC = "view:public"
    VIEW_SERVICES = "view:services"
    CREATE_ORDER = "create:order"
    VIEW_OWN_ORDERS = "view:own_orders"
    UPDATE_OWN_PROFILE = "update:own_profile"
    VIEW_ORDERS = "view:orders"
    UPDATE_ORDERS = "update:orders"
    DELETE_ORDERS = "delete:orders"
    VIEW_CUSTOMERS = "view:customers"
    CREATE_CUSTOMERS = "create:customers"
    UPDATE_CUSTOMERS = "update:customers"
    VIEW_STAFF = "view:staff"
    CREATE_SERVICES = "create:services"
    UPDATE_SERVICES = "update:services"
    DELETE_SERVICES = "delete:services"
    VIEW_ADMIN_PANEL = "view:admin_panel"
    CREATE_SERVICE_NOTES = "create:service_notes"
    VIEW_STAFF_DASHBOARD = "view:staff_dashboard"
    VIEW_REPORTS = "view:reports"


@dataclass(frozen=True, slots=True)
class RoleConfig:
    level: PermissionLevel
    permissions: frozenset[str]
    can_access: Mapping[Resource, bool]

    def has_permission(self, permission: str) -> bool:
        return WILDCARD in self.permissions or permission in self.permissions


def _access(*allowed: Resource) -> Mapping[Resource, bool]:
    return MappingProxyType({resource: resource in allowed for resource in Resource})


_CUSTOMER_PERMISSIONS = frozenset(
    {
        PERMISSIONS.VIEW_PUBLIC,
        PERMISSIONS.VIEW_SERVICES,
        PERMISSIONS.CREATE_ORDER,
        PERMISSIONS.VIEW_OWN_ORDERS,
        PERMISSIONS.UPDATE_OWN_PROFILE,
    }
)
_STAFF_PERMISSIONS = frozenset(
    {
        PERMISSIONS.VIEW_PUBLIC,
        PERMISSIONS.VIEW_SERVICES,
        PERMISSIONS.VIEW_ORDERS,
        PERMISSIONS.UPDATE_ORDERS,
        PERMISSIONS.VIEW_CUSTOMERS,
        PERMISSIONS.CREATE_SERVICE_NOTES,
        PERMISSIONS.VIEW_STAFF_DASHBOARD,
    }
)
_ADMIN_PERMISSIONS = _STAFF_PERMISSIONS | frozenset(
    {
        PERMISSIONS.DELETE_ORDERS,
        PERMISSIONS.CREATE_CUSTOMERS,
        PERMISSIONS.UPDATE_CUSTOMERS,
        PERMISSIONS.VIEW_STAFF,
        PERMISSIONS.CREATE_SERVICES,
        PERMISSIONS.UPDATE_SERVICES,
        PERMISSIONS.DELETE_SERVICES,
        PERMISSIONS.VIEW_ADMIN_PANEL,
        PERMISSIONS.VIEW_REPORTS,
    }
)

ROLE_CONFIGS: Mapping[PermissionLevel, RoleConfig] = MappingProxyType(
    {
        PermissionLevel.GUEST: RoleConfig(
            level=PermissionLevel.GUEST,
            permissions=frozenset({PERMISSIONS.VIEW_PUBLIC}),
            can_access=_access(),
        ),
        PermissionLevel.CUSTOMER: RoleConfig(
            level=PermissionLevel.CUSTOMER,
            permissions=_CUSTOMER_PERMISSIONS,
            can_access=_access(Resource.DASHBOARD, Resource.CUSTOMER_ORDERS),
        ),
        PermissionLevel.STAFF: RoleConfig(
            level=PermissionLevel.STAFF,
            permissions=_STAFF_PERMISSIONS,
            can_access=_access(
                Resource.DASHBOARD,
                Resource.STAFF_TOOLS,
                Resource.CUSTOMER_ORDERS,
                Resource.SERVICE_MANAGEMENT,
            ),
        ),
        PermissionLevel.ADMIN: RoleConfig(
            level=PermissionLevel.ADMIN,
            permissions=_ADMIN_PERMISSIONS,
            can_access=_access(*Resource),
        ),
        PermissionLevel.SUPERUSER: RoleConfig(
            level=PermissionLevel.SUPERUSER,
            permissions=frozenset({WILDCARD}),
            can_access=_access(*Resource),
        ),
    }
)


def _read(subject: Any, snake: str, camel: str) -> Any:
    if isinstance(subject, Mapping):
        value = subject.get(snake)
        return subject.get(camel) if value is None else value
    return getattr(subject, snake, None)


def _staff_role(value: Any) -> StaffRole | None:
    if isinstance(value, StaffRole):
        return value
    try:
        return StaffRole(value)
    except ValueError:
        return None


def resolve_role(account: Any | None) -> PermissionLevel:
    """Derive the effective permission level for an account-like object.

    Accepts ORM accounts, session projections or plain mappings. Missing
    flags count as false and unknown roles as absent.
    """
    if account is None:
        return PermissionLevel.GUEST
    is_staff = bool(_read(account, "is_staff", "isStaff"))
    is_superuser = bool(_read(account, "is_superuser", "isSuperuser"))
    staff_role = _staff_role(_read(account, "staff_role", "staffRole"))
    is_administrator = staff_role is StaffRole.ADMINISTRATOR

    if is_superuser and is_administrator:
        return PermissionLevel.SUPERUSER
    if is_staff and is_administrator:
        return PermissionLevel.ADMIN
    if is_staff:
        return PermissionLevel.STAFF
    return PermissionLevel.CUSTOMER


def get_role_config(level: PermissionLevel) -> RoleConfig:
    return ROLE_CONFIGS[level]


def has_role(current: PermissionLevel, required: PermissionLevel) -> bool:
    """Return True when ``current`` ranks at or above ``required``."""
    return _LEVEL_PRIORITY[current] >= _LEVEL_PRIORITY[required]


def has_permission(level: PermissionLevel, permission: str) -> bool:
    return ROLE_CONFIGS[level].has_permission(permission)


def has_any_permission(level: PermissionLevel, permissions: Iterable[str]) -> bool:
    config = ROLE_CONFIGS[level]
    return any(config.has_permission(permission) for permission in permissions)


def is_elevated(account: Any | None) -> bool:
    """Administrators and superusers."""
    return has_role(resolve_role(account), PermissionLevel.ADMIN)


__all__ = [
    "PERMISSIONS",
    "PermissionLevel",
    "ROLE_CONFIGS",
    "Resource",
    "RoleConfig",
    "WILDCARD",
    "get_role_config",
    "has_any_permission",
    "has_permission",
    "has_role",
    "is_elevated",
    "resolve_role",
]
