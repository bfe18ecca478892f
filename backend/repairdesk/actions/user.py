"""User management actions.

``requester_id`` always comes from the authenticated session, never from the
payload.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from repairdesk.actions.base import action, parse_payload
from repairdesk.schemas.user import (
    ProfileUpdate,
    UserCreate,
    UserDetail,
    UserListFilters,
    UserListPage,
    UserStats,
    UserUpdate,
)
from repairdesk.services import user_service


@action("Failed to fetch users")
async def get_user_list_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    filters: UserListFilters | Mapping[str, Any] | None = None,
    page: int = 1,
    limit: int = 20,
) -> UserListPage:
    return await user_service.get_user_list(
        session,
        requester_id=requester_id,
        filters=parse_payload(UserListFilters, filters or {}),
        page=page,
        limit=limit,
    )


@action("Failed to fetch user")
async def get_user_with_profile_action(
    session: AsyncSession, *, requester_id: uuid.UUID, user_id: uuid.UUID
) -> UserDetail:
    return await user_service.get_user_with_profile(
        session, requester_id=requester_id, user_id=user_id
    )


@action("Failed to create user")
async def create_user_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    data: UserCreate | Mapping[str, Any],
) -> UserDetail:
    return await user_service.create_user(
        session, requester_id=requester_id, payload=parse_payload(UserCreate, data)
    )


@action("Failed to update user")
async def update_user_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    user_id: uuid.UUID,
    data: UserUpdate | Mapping[str, Any],
) -> UserDetail:
    return await user_service.update_user(
        session,
        requester_id=requester_id,
        user_id=user_id,
        payload=parse_payload(UserUpdate, data),
    )


@action("Failed to delete user")
async def soft_delete_user_action(
    session: AsyncSession, *, requester_id: uuid.UUID, user_id: uuid.UUID
) -> UserDetail:
    return await user_service.soft_delete_user(
        session, requester_id=requester_id, user_id=user_id
    )


@action("Failed to permanently delete user")
async def hard_delete_user_action(
    session: AsyncSession, *, requester_id: uuid.UUID, user_id: uuid.UUID
) -> uuid.UUID:
    return await user_service.hard_delete_user(
        session, requester_id=requester_id, user_id=user_id
    )


@action("Failed to restore user")
async def restore_user_action(
    session: AsyncSession, *, requester_id: uuid.UUID, user_id: uuid.UUID
) -> UserDetail:
    return await user_service.restore_user(
        session, requester_id=requester_id, user_id=user_id
    )


@action("Failed to update user status")
async def toggle_user_status_action(
    session: AsyncSession, *, requester_id: uuid.UUID, user_id: uuid.UUID
) -> UserDetail:
    return await user_service.toggle_user_status(
        session, requester_id=requester_id, user_id=user_id
    )


@action("Failed to fetch user statistics")
async def get_user_stats_action(
    session: AsyncSession, *, requester_id: uuid.UUID
) -> UserStats:
    return await user_service.get_user_stats(session, requester_id=requester_id)


@action("Failed to fetch current user")
async def get_current_user_action(
    session: AsyncSession, *, requester_id: uuid.UUID
) -> UserDetail:
    return await user_service.get_current_user(session, requester_id=requester_id)


@action("Failed to update profile")
async def update_current_user_profile_action(
    session: AsyncSession,
    *,
    requester_id: uuid.UUID,
    data: ProfileUpdate | Mapping[str, Any],
) -> UserDetail:
    return await user_service.update_current_user_profile(
        session, requester_id=requester_id, payload=parse_payload(ProfileUpdate, data)
    )
