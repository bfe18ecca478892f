"""Client-side view of the signed-in session used for UI gating.

A :class:`SessionState` mirrors the session payload handed out by
``GET /auth/session`` and answers "may I show this?" questions. It never
performs I/O and is never consulted for server-side authorization; the
guards in :mod:`repairdesk.security.permissions` do that.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from repairdesk.models.account import CustomerRole, StaffRole
from repairdesk.security.roles import (
    PermissionLevel,
    Resource,
    RoleConfig,
    get_role_config,
    has_role,
    resolve_role,
)

logger = logging.getLogger(__name__)


class SessionStatus(str, enum.Enum):
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


@dataclass(frozen=True, slots=True)
class AuthUser:
    """Projection of the session user carrying the authorization fields."""

    id: str | None
    email: str | None
    name: str | None
    image: str | None
    is_staff: bool = False
    is_superuser: bool = False
    is_active: bool = False
    staff_role: StaffRole | None = None
    customer_role: CustomerRole | None = None


def _flag(user: Mapping[str, Any], camel: str, snake: str) -> bool:
    value = user.get(camel, user.get(snake))
    return value if isinstance(value, bool) else False


def _enum_or_none(enum_cls: type[enum.Enum], value: Any) -> Any:
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning("Ignoring unknown %s value in session", enum_cls.__name__)
        return None


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def parse_auth_user(session: Mapping[str, Any] | None) -> AuthUser | None:
    """Parse the provider session; malformed input fails closed."""
    if not isinstance(session, Mapping):
        return None
    user = session.get("user")
    if not isinstance(user, Mapping):
        return None
    return AuthUser(
        id=_text(user.get("id")),
        email=_text(user.get("email")),
        name=_text(user.get("name")),
        image=_text(user.get("image")),
        is_staff=_flag(user, "isStaff", "is_staff"),
        is_superuser=_flag(user, "isSuperuser", "is_superuser"),
        is_active=_flag(user, "isActive", "is_active"),
        staff_role=_enum_or_none(StaffRole, user.get("staffRole", user.get("staff_role"))),
        customer_role=_enum_or_none(
            CustomerRole, user.get("customerRole", user.get("customer_role"))
        ),
    )


Listener = Callable[["SessionState"], None]


class SessionState:
    """Observable holder for the current session and its derived role."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._disposed = False
        self._apply_defaults(SessionStatus.LOADING, initialized=False)

    def _apply_defaults(self, status: SessionStatus, *, initialized: bool) -> None:
        self.user: AuthUser | None = None
        self.session: Mapping[str, Any] | None = None
        self.status = status
        self.current_role = PermissionLevel.GUEST
        self.role_config: RoleConfig = get_role_config(PermissionLevel.GUEST)
        self.permissions: frozenset[str] = self.role_config.permissions
        self.is_initialized = initialized
        self.last_activity: datetime | None = None
        self.error: str | None = None

    # -- observers ---------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""
        if self._disposed:
            return lambda: None
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def dispose(self) -> None:
        self._listeners.clear()
        self._disposed = True

    def _notify(self) -> None:
        if self._disposed:
            return
        for listener in list(self._listeners):
            listener(self)

    # -- mutations ---------------------------------------------------------

    def set_session(
        self,
        session: Mapping[str, Any] | None,
        status: SessionStatus | str = SessionStatus.AUTHENTICATED,
    ) -> None:
        """Load a session payload and recompute role and permissions."""
        status = SessionStatus(status)
        user = parse_auth_user(session) if status is SessionStatus.AUTHENTICATED else None
        if status is SessionStatus.AUTHENTICATED and user is None:
            status = SessionStatus.UNAUTHENTICATED
        self.session = session if user is not None else None
        self.user = user
        self.status = status
        self.current_role = resolve_role(user)
        self.role_config = get_role_config(self.current_role)
        self.permissions = self.role_config.permissions
        self.is_initialized = True
        self.last_activity = datetime.now(UTC)
        self.error = None
        self._notify()

    def clear_session(self) -> None:
        self._apply_defaults(SessionStatus.UNAUTHENTICATED, initialized=True)
        self._notify()

    def update_last_activity(self) -> None:
        self.last_activity = datetime.now(UTC)

    def set_error(self, message: str) -> None:
        self.error = message
        self._notify()

    def clear_error(self) -> None:
        self.error = None
        self._notify()

    def initialize(self) -> None:
        self.is_initialized = True
        self._notify()

    def reset(self) -> None:
        """Return to the pristine loading state."""
        self._apply_defaults(SessionStatus.LOADING, initialized=False)
        self._notify()

    # -- queries -----------------------------------------------------------

    def has_permission(self, permission: str) -> bool:
        return self.role_config.has_permission(permission)

    def has_any_permission(self, permissions: Iterable[str]) -> bool:
        return any(self.has_permission(permission) for permission in permissions)

    def has_role(self, required: PermissionLevel | str) -> bool:
        return has_role(self.current_role, PermissionLevel(required))

    def can_access(self, resource: Resource | str) -> bool:
        return bool(self.role_config.can_access.get(Resource(resource), False))

    def is_authenticated(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED and self.user is not None

    def is_staff(self) -> bool:
        return self.has_role(PermissionLevel.STAFF)

    def is_admin(self) -> bool:
        return self.current_role in (PermissionLevel.ADMIN, PermissionLevel.SUPERUSER)

    def is_superuser(self) -> bool:
        return self.current_role is PermissionLevel.SUPERUSER

    def is_customer(self) -> bool:
        return self.current_role is PermissionLevel.CUSTOMER

    def snapshot(self) -> dict[str, Any]:
        """Serializable summary for clients."""
        return {
            "status": self.status.value,
            "role": self.current_role.value,
            "permissions": sorted(self.permissions),
            "can_access": {
                resource.value: allowed
                for resource, allowed in self.role_config.can_access.items()
            },
            "is_authenticated": self.is_authenticated(),
        }


__all__ = ["AuthUser", "SessionState", "SessionStatus", "parse_auth_user"]
