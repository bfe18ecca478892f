"""Role resolution and the capability table."""

from __future__ import annotations

import itertools

import pytest

from repairdesk.models.account import StaffRole
from repairdesk.security.roles import (
    PERMISSIONS,
    ROLE_CONFIGS,
    PermissionLevel,
    Resource,
    get_role_config,
    has_any_permission,
    has_permission,
    has_role,
    is_elevated,
    resolve_role,
)

_ORDER = [
    PermissionLevel.GUEST,
    PermissionLevel.CUSTOMER,
    PermissionLevel.STAFF,
    PermissionLevel.ADMIN,
    PermissionLevel.SUPERUSER,
]


@pytest.mark.parametrize(
    ("user", "expected"),
    [
        (None, PermissionLevel.GUEST),
        ({}, PermissionLevel.CUSTOMER),
        ({"isStaff": False}, PermissionLevel.CUSTOMER),
        ({"isStaff": True}, PermissionLevel.STAFF),
        ({"isStaff": True, "staffRole": "TECHNICIAN"}, PermissionLevel.STAFF),
        ({"isStaff": True, "staffRole": "ADMINISTRATOR"}, PermissionLevel.ADMIN),
        (
            {"isStaff": True, "isSuperuser": True, "staffRole": "ADMINISTRATOR"},
            PermissionLevel.SUPERUSER,
        ),
        # Superuser flag without the administrator role grants nothing extra.
        ({"isStaff": True, "isSuperuser": True, "staffRole": "TECHNICIAN"}, PermissionLevel.STAFF),
        ({"isStaff": True, "staffRole": "JANITOR"}, PermissionLevel.STAFF),
        ({"is_staff": True, "staff_role": StaffRole.ADMINISTRATOR}, PermissionLevel.ADMIN),
    ],
)
def test_resolve_role(user, expected) -> None:
    assert resolve_role(user) is expected


def test_resolve_role_is_total_over_flag_combinations() -> None:
    roles = [None, "ADMINISTRATOR", "TECHNICIAN", "RECEPTIONIST", "bogus"]
    for is_staff, is_superuser, role in itertools.product(
        [True, False, None], [True, False, None], roles
    ):
        user = {"isStaff": is_staff, "isSuperuser": is_superuser, "staffRole": role}
        first = resolve_role(user)
        assert first in _ORDER
        assert resolve_role(dict(user)) is first


def test_has_role_is_monotonic() -> None:
    for current, required in itertools.product(_ORDER, repeat=2):
        expected = _ORDER.index(current) >= _ORDER.index(required)
        assert has_role(current, required) is expected


def test_superuser_has_wildcard_permissions() -> None:
    assert has_permission(PermissionLevel.SUPERUSER, "anything:at_all")
    assert has_permission(PermissionLevel.ADMIN, PERMISSIONS.DELETE_SERVICES)
    assert not has_permission(PermissionLevel.STAFF, PERMISSIONS.DELETE_SERVICES)
    assert not has_permission(PermissionLevel.GUEST, PERMISSIONS.VIEW_SERVICES)
    assert has_any_permission(
        PermissionLevel.CUSTOMER, [PERMISSIONS.VIEW_STAFF, PERMISSIONS.CREATE_ORDER]
    )


def test_role_configs_cover_every_level_and_resource() -> None:
    assert set(ROLE_CONFIGS) == set(PermissionLevel)
    for level in PermissionLevel:
        config = get_role_config(level)
        assert config.level is level
        assert set(config.can_access) == set(Resource)
    assert not any(get_role_config(PermissionLevel.GUEST).can_access.values())
    assert get_role_config(PermissionLevel.STAFF).can_access[Resource.STAFF_TOOLS]
    assert not get_role_config(PermissionLevel.STAFF).can_access[Resource.ADMIN_PANEL]


def test_role_configs_are_read_only() -> None:
    with pytest.raises(TypeError):
        ROLE_CONFIGS[PermissionLevel.GUEST] = ROLE_CONFIGS[PermissionLevel.ADMIN]  # type: ignore[index]


def test_is_elevated() -> None:
    assert is_elevated({"isStaff": True, "staffRole": "ADMINISTRATOR"})
    assert not is_elevated({"isStaff": True, "staffRole": "RECEPTIONIST"})
    assert not is_elevated(None)
