"""Central authorization rules applied by every data-access service."""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.core.errors import AuthorizationError
from repairdesk.models.account import Account
from repairdesk.security.roles import PermissionLevel, has_role, resolve_role


class Operation(str, enum.Enum):
    """Guarded operations understood by :func:`authorize`."""

    USERS_LIST = "users.list"
    USERS_VIEW = "users.view"
    USERS_CREATE = "users.create"
    USERS_UPDATE = "users.update"
    USERS_SOFT_DELETE = "users.soft_delete"
    USERS_RESTORE = "users.restore"
    USERS_TOGGLE_STATUS = "users.toggle_status"
    USERS_HARD_DELETE = "users.hard_delete"
    USERS_STATS = "users.stats"
    PROFILE_UPDATE = "profile.update"
    CATEGORIES_MANAGE = "categories.manage"
    CATEGORIES_ADMIN_VIEW = "categories.admin_view"
    SERVICES_MANAGE = "services.manage"
    SERVICES_STATS = "services.stats"
    INVENTORY_VIEW = "inventory.view"
    INVENTORY_WRITE = "inventory.write"
    INVENTORY_DELETE = "inventory.delete"
    INVENTORY_STATS = "inventory.stats"


@dataclass(frozen=True, slots=True)
class _Rule:
    minimum: PermissionLevel
    message: str
    staff_target_requires_admin: bool = False
    staff_target_message: str | None = None


_ADMIN_ONLY = "Only administrators can {verb}"

_RULES: dict[Operation, _Rule] = {
    Operation.USERS_LIST: _Rule(PermissionLevel.STAFF, "Only staff can list users"),
    Operation.USERS_VIEW: _Rule(
        PermissionLevel.STAFF,
        "Only staff can view other users",
        staff_target_requires_admin=True,
        staff_target_message="Only administrators can view staff accounts",
    ),
    Operation.USERS_CREATE: _Rule(
        PermissionLevel.STAFF,
        "Only staff can create users",
        staff_target_requires_admin=True,
        staff_target_message="Only administrators can create staff accounts",
    ),
    Operation.USERS_UPDATE: _Rule(
        PermissionLevel.STAFF,
        "Only staff can update users",
        staff_target_requires_admin=True,
        staff_target_message="Only administrators can update staff accounts",
    ),
    Operation.USERS_SOFT_DELETE: _Rule(
        PermissionLevel.STAFF,
        "Only staff can deactivate users",
        staff_target_requires_admin=True,
        staff_target_message="Only administrators can deactivate staff accounts",
    ),
    Operation.USERS_RESTORE: _Rule(
        PermissionLevel.STAFF,
        "Only staff can restore users",
        staff_target_requires_admin=True,
        staff_target_message="Only administrators can restore staff accounts",
    ),
    Operation.USERS_TOGGLE_STATUS: _Rule(
        PermissionLevel.STAFF,
        "Only staff can change user status",
        staff_target_requires_admin=True,
        staff_target_message="Only administrators can change staff account status",
    ),
    Operation.USERS_HARD_DELETE: _Rule(
        PermissionLevel.ADMIN, _ADMIN_ONLY.format(verb="permanently delete users")
    ),
    Operation.USERS_STATS: _Rule(
        PermissionLevel.ADMIN, _ADMIN_ONLY.format(verb="view user statistics")
    ),
    Operation.CATEGORIES_MANAGE: _Rule(
        PermissionLevel.ADMIN, _ADMIN_ONLY.format(verb="manage service categories")
    ),
    Operation.PROFILE_UPDATE: _Rule(
        PermissionLevel.CUSTOMER, "Sign in to update your profile"
    ),
    Operation.CATEGORIES_ADMIN_VIEW: _Rule(
        PermissionLevel.ADMIN, _ADMIN_ONLY.format(verb="view all service categories")
    ),
    Operation.SERVICES_MANAGE: _Rule(
        PermissionLevel.ADMIN, _ADMIN_ONLY.format(verb="manage services")
    ),
    Operation.SERVICES_STATS: _Rule(
        PermissionLevel.ADMIN, _ADMIN_ONLY.format(verb="view service statistics")
    ),
    Operation.INVENTORY_VIEW: _Rule(
        PermissionLevel.STAFF, "Only staff can view inventory"
    ),
    Operation.INVENTORY_WRITE: _Rule(
        PermissionLevel.STAFF, "Only staff can modify inventory"
    ),
    Operation.INVENTORY_DELETE: _Rule(
        PermissionLevel.ADMIN, _ADMIN_ONLY.format(verb="delete inventory records")
    ),
    Operation.INVENTORY_STATS: _Rule(
        PermissionLevel.ADMIN, _ADMIN_ONLY.format(verb="view inventory statistics")
    ),
}


async def load_requester(session: AsyncSession, requester_id: uuid.UUID) -> Account:
    """Re-fetch the acting account so guards never trust stale client state."""
    result = await session.execute(
        select(Account)
        .where(Account.id == requester_id)
        .execution_options(populate_existing=True)
    )
    requester = result.scalar_one_or_none()
    if requester is None:
        raise AuthorizationError("Requester not found")
    if not requester.is_active or requester.blocked:
        raise AuthorizationError("Account is disabled")
    return requester


def authorize(
    requester: Account,
    operation: Operation,
    *,
    target: Account | None = None,
    target_is_staff: bool | None = None,
) -> PermissionLevel:
    """Raise AuthorizationError unless ``requester`` may perform ``operation``.

    ``target`` (or ``target_is_staff`` when no row exists yet) selects the
    stricter rule for operations on staff accounts. Returns the requester's
    resolved level.
    """
    rule = _RULES[operation]
    level = resolve_role(requester)

    if (
        operation is Operation.USERS_VIEW
        and target is not None
        and target.id == requester.id
    ):
        return level

    if not has_role(level, rule.minimum):
        raise AuthorizationError(rule.message)

    if rule.staff_target_requires_admin:
        staff_target = target.is_staff if target is not None else bool(target_is_staff)
        if staff_target and not has_role(level, PermissionLevel.ADMIN):
            raise AuthorizationError(rule.staff_target_message or rule.message)
    return level


__all__ = ["Operation", "authorize", "load_requester"]
