"""User data access with role-aware guards."""
from __future__ import annotations

import logging
import uuid

from sqlalchemy import Select, case, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.core.errors import ConflictError, NotFoundError, ValidationError
from repairdesk.models.account import (
    Account,
    CustomerProfile,
    CustomerRole,
    StaffProfile,
    StaffRole,
)
from repairdesk.schemas.common import MAX_PAGE_SIZE
from repairdesk.schemas.user import (
    CustomerProfileRead,
    ProfileUpdate,
    StaffProfileRead,
    UserCreate,
    UserDetail,
    UserListFilters,
    UserListItem,
    UserListPage,
    UserStats,
    UserUpdate,
)
from repairdesk.security.permissions import Operation, authorize, load_requester
from repairdesk.security.roles import PermissionLevel, has_role
from repairdesk.services import audit_service

logger = logging.getLogger(__name__)

_DUPLICATE_EMAIL = "A user with this email already exists"
_REQUIRED_ACCOUNT_FIELDS = frozenset({"name", "preferred_contact", "is_active"})


def _clamp_page(page: int, limit: int) -> tuple[int, int]:
    return max(page, 1), max(1, min(limit, MAX_PAGE_SIZE))


def to_list_item(account: Account) -> UserListItem:
    return UserListItem(
        id=account.id,
        name=account.name,
        email=account.email,
        phone=account.phone,
        preferred_contact=account.preferred_contact,
        account_type="staff" if account.is_staff else "customer",
        staff_role=account.staff_role,
        customer_role=account.customer_role,
        is_active=account.is_active,
        blocked=account.blocked,
        created_at=account.created_at,
    )


def to_user_detail(account: Account) -> UserDetail:
    staff = account.staff_profile
    customer = account.customer_profile
    return UserDetail(
        id=account.id,
        name=account.name,
        email=account.email,
        phone=account.phone,
        image=account.image,
        preferred_contact=account.preferred_contact,
        is_staff=account.is_staff,
        is_superuser=account.is_superuser,
        is_active=account.is_active,
        blocked=account.blocked,
        email_verified_at=account.email_verified_at,
        created_at=account.created_at,
        updated_at=account.updated_at,
        staff_profile=(
            StaffProfileRead(
                role=staff.role,
                specializations=staff.specializations or [],
                availability=staff.availability or {},
            )
            if staff is not None
            else None
        ),
        customer_profile=(
            CustomerProfileRead.model_validate(customer)
            if customer is not None
            else None
        ),
    )


async def get_user_by_email(session: AsyncSession, email: str) -> Account | None:
    """Return an account by email address."""
    result = await session.execute(
        select(Account).where(Account.email == email.strip().lower())
    )
    return result.scalar_one_or_none()


async def get_account(session: AsyncSession, user_id: uuid.UUID) -> Account:
    """Return a fresh copy of the account or raise NotFoundError."""
    result = await session.execute(
        select(Account)
        .where(Account.id == user_id)
        .execution_options(populate_existing=True)
    )
    account = result.scalar_one_or_none()
    if account is None:
        raise NotFoundError("User not found")
    return account


async def _audit(
    session: AsyncSession,
    requester: Account,
    operation: Operation,
    target: Account,
    *,
    details: dict | None = None,
    commit: bool = True,
) -> None:
    await audit_service.record_event(
        session,
        operation=operation,
        actor_id=requester.id,
        target_type=audit_service.ACCOUNT_TARGET,
        target_id=target.id,
        details=details,
        commit=commit,
    )


async def _guarded_target(
    session: AsyncSession,
    requester: Account,
    operation: Operation,
    user_id: uuid.UUID,
) -> Account:
    # Gate on level before lookup so unknown ids do not leak to customers.
    if not (operation is Operation.USERS_VIEW and user_id == requester.id):
        authorize(requester, operation)
    target = await get_account(session, user_id)
    authorize(requester, operation, target=target)
    return target


def _list_conditions(filters: UserListFilters, level: PermissionLevel) -> list:
    conditions: list = []
    if not has_role(level, PermissionLevel.ADMIN):
        conditions.append(Account.is_staff.is_(False))
    if filters.account_type == "staff":
        conditions.append(Account.is_staff.is_(True))
    elif filters.account_type == "customer":
        conditions.append(Account.is_staff.is_(False))
    if filters.is_active is not None:
        conditions.append(Account.is_active.is_(filters.is_active))
    if filters.search:
        pattern = f"%{filters.search.lower()}%"
        conditions.append(
            or_(
                func.lower(Account.name).like(pattern),
                func.lower(Account.email).like(pattern),
                func.lower(Account.phone).like(pattern),
            )
        )
    if isinstance(filters.role, StaffRole):
        conditions.append(
            Account.id.in_(
                select(StaffProfile.account_id).where(StaffProfile.role == filters.role)
            )
        )
    elif isinstance(filters.role, CustomerRole):
        conditions.append(
            Account.id.in_(
                select(CustomerProfile.account_id).where(
                    CustomerProfile.role == filters.role
                )
            )
        )
    return conditions


async def get_user_list(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    filters: UserListFilters | None = None,
    page: int = 1,
    limit: int = 20,
) -> UserListPage:
    """Return a page of accounts; staff requesters only ever see customers."""
    requester = await load_requester(session, requester_id)
    level = authorize(requester, Operation.USERS_LIST)
    filters = filters or UserListFilters()
    page, limit = _clamp_page(page, limit)

    conditions = _list_conditions(filters, level)
    total = await session.scalar(
        select(func.count()).select_from(Account).where(*conditions)
    )
    stmt: Select[tuple[Account]] = (
        select(Account)
        .where(*conditions)
        .order_by(Account.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await session.execute(stmt)
    users = [to_list_item(account) for account in result.scalars().all()]
    return UserListPage(users=users, total=total or 0, page=page, limit=limit)


async def get_user_with_profile(
    session: AsyncSession, *, requester_id: uuid.UUID, user_id: uuid.UUID
) -> UserDetail:
    requester = await load_requester(session, requester_id)
    target = await _guarded_target(session, requester, Operation.USERS_VIEW, user_id)
    return to_user_detail(target)


async def create_user(
    session: AsyncSession, *, requester_id: uuid.UUID, payload: UserCreate
) -> UserDetail:
    """Create an account together with its staff or customer profile."""
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.USERS_CREATE, target_is_staff=payload.is_staff)
    if payload.is_staff and payload.staff_role is None:
        raise ValidationError("Staff accounts require a staff role")

    email = payload.email.lower()
    if await get_user_by_email(session, email) is not None:
        raise ConflictError(_DUPLICATE_EMAIL)

    account = Account(
        email=email,
        name=payload.name,
        phone=payload.phone,
        preferred_contact=payload.preferred_contact,
        is_staff=payload.is_staff,
        is_superuser=payload.is_staff
        and payload.staff_role is StaffRole.ADMINISTRATOR,
        is_active=True,
        blocked=False,
    )
    if payload.is_staff:
        account.profile = StaffProfile(
            role=payload.staff_role,
            specializations=payload.specializations,
            availability=payload.availability,
        )
    else:
        account.profile = CustomerProfile(
            role=payload.customer_role,
            company_name=payload.company_name,
            address=payload.address,
            notes=payload.notes,
        )
    session.add(account)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError(_DUPLICATE_EMAIL) from exc
    logger.info("Account %s created by %s", account.id, requester.id)
    return to_user_detail(await get_account(session, account.id))


async def _apply_update(
    session: AsyncSession, requester: Account, target: Account, payload: UserUpdate
) -> UserDetail:
    account_changes = payload.account_changes()
    staff_changes = payload.staff_changes()
    customer_changes = payload.customer_changes()

    if target.is_staff and customer_changes:
        raise ValidationError("Customer fields cannot be set on a staff account")
    if not target.is_staff and staff_changes:
        raise ValidationError("Staff fields cannot be set on a customer account")
    if "staff_role" in staff_changes:
        if target.id == requester.id:
            raise ValidationError("You cannot change your own role")
        if staff_changes["staff_role"] is None:
            raise ValidationError("Staff accounts require a staff role")
    if account_changes.get("is_active") is False and target.id == requester.id:
        raise ValidationError("You cannot deactivate your own account")

    for field, value in account_changes.items():
        if value is None and field in _REQUIRED_ACCOUNT_FIELDS:
            continue
        setattr(target, field, value)
    if account_changes.get("is_active") is not None:
        target.blocked = not target.is_active

    if staff_changes:
        profile = target.staff_profile
        if profile is None:
            profile = StaffProfile()
            target.profile = profile
        for field, value in staff_changes.items():
            setattr(profile, "role" if field == "staff_role" else field, value)
        if "staff_role" in staff_changes:
            target.is_superuser = staff_changes["staff_role"] is StaffRole.ADMINISTRATOR
    if customer_changes:
        profile = target.customer_profile
        if profile is None:
            profile = CustomerProfile(role=CustomerRole.INDIVIDUAL)
            target.profile = profile
        for field, value in customer_changes.items():
            if field == "customer_role" and value is None:
                continue
            setattr(profile, "role" if field == "customer_role" else field, value)

    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Unable to update user") from exc
    return to_user_detail(await get_account(session, target.id))


async def update_user(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    user_id: uuid.UUID,
    payload: UserUpdate,
) -> UserDetail:
    """Apply a partial update to account and profile fields atomically.

    A staff role change recomputes ``is_superuser`` in the same commit.
    """
    requester = await load_requester(session, requester_id)
    target = await _guarded_target(session, requester, Operation.USERS_UPDATE, user_id)
    return await _apply_update(session, requester, target, payload)


async def get_current_user(
    session: AsyncSession, *, requester_id: uuid.UUID
) -> UserDetail:
    """Return the signed-in account with its profile."""
    requester = await load_requester(session, requester_id)
    return to_user_detail(requester)


async def update_current_user_profile(
    session: AsyncSession, *, requester_id: uuid.UUID, payload: ProfileUpdate
) -> UserDetail:
    """Let any signed-in account edit its own contact and profile details.

    Role, status and staff fields are not part of ``ProfileUpdate``; those
    stay behind :func:`update_user`.
    """
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.PROFILE_UPDATE, target=requester)
    changes = UserUpdate.model_validate(payload.model_dump(exclude_unset=True))
    return await _apply_update(session, requester, requester, changes)


async def soft_delete_user(
    session: AsyncSession, *, requester_id: uuid.UUID, user_id: uuid.UUID
) -> UserDetail:
    """Deactivate and block an account; reversible with restore_user."""
    requester = await load_requester(session, requester_id)
    target = await _guarded_target(
        session, requester, Operation.USERS_SOFT_DELETE, user_id
    )
    if target.id == requester.id:
        raise ValidationError("You cannot delete your own account")
    target.is_active = False
    target.blocked = True
    await _audit(session, requester, Operation.USERS_SOFT_DELETE, target)
    return to_user_detail(await get_account(session, target.id))


async def restore_user(
    session: AsyncSession, *, requester_id: uuid.UUID, user_id: uuid.UUID
) -> UserDetail:
    """Reactivate an account. Restoring an active account changes nothing."""
    requester = await load_requester(session, requester_id)
    target = await _guarded_target(session, requester, Operation.USERS_RESTORE, user_id)
    if target.is_active and not target.blocked:
        return to_user_detail(target)
    target.is_active = True
    target.blocked = False
    await _audit(session, requester, Operation.USERS_RESTORE, target)
    return to_user_detail(await get_account(session, target.id))


async def toggle_user_status(
    session: AsyncSession, *, requester_id: uuid.UUID, user_id: uuid.UUID
) -> UserDetail:
    requester = await load_requester(session, requester_id)
    target = await _guarded_target(
        session, requester, Operation.USERS_TOGGLE_STATUS, user_id
    )
    if target.id == requester.id:
        raise ValidationError("You cannot deactivate your own account")
    was_active = target.is_active
    target.is_active = not was_active
    target.blocked = was_active
    await _audit(
        session,
        requester,
        Operation.USERS_TOGGLE_STATUS,
        target,
        details={"is_active": target.is_active},
    )
    return to_user_detail(await get_account(session, target.id))


async def hard_delete_user(
    session: AsyncSession, *, requester_id: uuid.UUID, user_id: uuid.UUID
) -> uuid.UUID:
    """Permanently remove an account, its profile and linked identities.

    Devices, stock movements, repair records and audit events that referenced
    the account keep existing with the reference cleared.
    """
    requester = await load_requester(session, requester_id)
    target = await _guarded_target(
        session, requester, Operation.USERS_HARD_DELETE, user_id
    )
    if target.id == requester.id:
        raise ValidationError("You cannot delete your own account")

    await _audit(
        session,
        requester,
        Operation.USERS_HARD_DELETE,
        target,
        details={"email": target.email},
        commit=False,
    )
    await session.delete(target)
    await session.commit()
    logger.info("Account %s permanently deleted by %s", user_id, requester.id)
    return user_id


async def get_user_stats(
    session: AsyncSession, *, requester_id: uuid.UUID
) -> UserStats:
    requester = await load_requester(session, requester_id)
    authorize(requester, Operation.USERS_STATS)

    def _count_where(condition) -> object:
        return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

    row = (
        await session.execute(
            select(
                func.count(Account.id),
                _count_where(Account.is_active.is_(True)),
                _count_where(Account.is_staff.is_(True)),
                _count_where(Account.is_staff.is_(False)),
                _count_where(Account.blocked.is_(True)),
            )
        )
    ).one()
    total, active, staff, customers, blocked = (int(value or 0) for value in row)
    return UserStats(
        total_users=total,
        active_users=active,
        staff_users=staff,
        customer_users=customers,
        blocked_users=blocked,
    )
