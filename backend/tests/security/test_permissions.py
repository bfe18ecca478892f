"""Authorization guards."""

from __future__ import annotations

import uuid

import pytest

from repairdesk.core.errors import AuthorizationError
from repairdesk.models import Account, CustomerProfile, CustomerRole, StaffProfile, StaffRole
from repairdesk.security.permissions import Operation, authorize, load_requester
from repairdesk.security.roles import PermissionLevel


def _staff(role: StaffRole, *, superuser: bool = False) -> Account:
    account = Account(
        id=uuid.uuid4(),
        email=f"{role.value.lower()}@example.com",
        is_staff=True,
        is_superuser=superuser,
        is_active=True,
        blocked=False,
    )
    account.profile = StaffProfile(role=role)
    return account


def _customer() -> Account:
    account = Account(
        id=uuid.uuid4(),
        email="c@example.com",
        is_staff=False,
        is_superuser=False,
        is_active=True,
        blocked=False,
    )
    account.profile = CustomerProfile(role=CustomerRole.INDIVIDUAL)
    return account


def test_staff_may_list_but_not_view_stats() -> None:
    technician = _staff(StaffRole.TECHNICIAN)
    assert authorize(technician, Operation.USERS_LIST) is PermissionLevel.STAFF
    with pytest.raises(AuthorizationError, match="Only administrators"):
        authorize(technician, Operation.USERS_STATS)


def test_customers_cannot_list_users() -> None:
    with pytest.raises(AuthorizationError):
        authorize(_customer(), Operation.USERS_LIST)


def test_staff_targets_require_admin() -> None:
    receptionist = _staff(StaffRole.RECEPTIONIST)
    other_staff = _staff(StaffRole.TECHNICIAN)
    customer = _customer()

    authorize(receptionist, Operation.USERS_UPDATE, target=customer)
    with pytest.raises(AuthorizationError, match="staff accounts"):
        authorize(receptionist, Operation.USERS_UPDATE, target=other_staff)
    with pytest.raises(AuthorizationError, match="staff accounts"):
        authorize(receptionist, Operation.USERS_CREATE, target_is_staff=True)

    admin = _staff(StaffRole.ADMINISTRATOR)
    assert authorize(admin, Operation.USERS_UPDATE, target=other_staff) is PermissionLevel.ADMIN


def test_self_view_is_always_allowed() -> None:
    customer = _customer()
    assert authorize(customer, Operation.USERS_VIEW, target=customer) is PermissionLevel.CUSTOMER
    with pytest.raises(AuthorizationError):
        authorize(customer, Operation.USERS_VIEW, target=_customer())


def test_admin_only_operations() -> None:
    admin = _staff(StaffRole.ADMINISTRATOR)
    superuser = _staff(StaffRole.ADMINISTRATOR, superuser=True)
    technician = _staff(StaffRole.TECHNICIAN, superuser=True)
    for operation in (
        Operation.USERS_HARD_DELETE,
        Operation.SERVICES_MANAGE,
        Operation.CATEGORIES_MANAGE,
        Operation.INVENTORY_DELETE,
    ):
        authorize(admin, operation)
        authorize(superuser, operation)
        with pytest.raises(AuthorizationError):
            authorize(technician, operation)


def test_every_operation_has_a_rule() -> None:
    admin = _staff(StaffRole.ADMINISTRATOR, superuser=True)
    for operation in Operation:
        authorize(admin, operation)


@pytest.mark.asyncio
async def test_load_requester_rejects_unknown_and_disabled(app_context) -> None:
    sessionmaker = app_context["sessionmaker"]
    async with sessionmaker() as session:
        with pytest.raises(AuthorizationError, match="Requester not found"):
            await load_requester(session, uuid.uuid4())

        requester = await load_requester(session, app_context["technician_id"])
        requester.blocked = True
        await session.commit()

        with pytest.raises(AuthorizationError, match="disabled"):
            await load_requester(session, app_context["technician_id"])
