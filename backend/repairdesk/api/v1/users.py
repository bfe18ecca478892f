"""User management endpoints."""

from __future__ import annotations

import uuid
from typing import Annotated, Any, Literal

from fastapi import APIRouter, Body, Query, status
from fastapi.responses import JSONResponse

from repairdesk.actions import user as user_actions
from repairdesk.api.deps import DbSession, RequesterId, action_response

router = APIRouter()

Payload = Annotated[dict[str, Any], Body()]


@router.get("", summary="List users")
async def list_users(
    session: DbSession,
    requester_id: RequesterId,
    search: str | None = Query(default=None),
    account_type: Literal["staff", "customer", "all"] = Query(default="all"),
    role: str | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> JSONResponse:
    filters: dict[str, Any] = {"search": search, "account_type": account_type}
    if role:
        filters["role"] = role
    if is_active is not None:
        filters["is_active"] = is_active
    result = await user_actions.get_user_list_action(
        session, requester_id=requester_id, filters=filters, page=page, limit=limit
    )
    return action_response(result)


@router.get("/stats", summary="User statistics")
async def user_stats(session: DbSession, requester_id: RequesterId) -> JSONResponse:
    result = await user_actions.get_user_stats_action(
        session, requester_id=requester_id
    )
    return action_response(result)


@router.get("/me", summary="Get the signed-in user")
async def get_current_user(session: DbSession, requester_id: RequesterId) -> JSONResponse:
    result = await user_actions.get_current_user_action(
        session, requester_id=requester_id
    )
    return action_response(result)


@router.patch("/me", summary="Update the signed-in user's profile")
async def update_current_user_profile(
    payload: Payload, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await user_actions.update_current_user_profile_action(
        session, requester_id=requester_id, data=payload
    )
    return action_response(result)


@router.post("", summary="Create user")
async def create_user(
    payload: Payload, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await user_actions.create_user_action(
        session, requester_id=requester_id, data=payload
    )
    return action_response(result, success_status=status.HTTP_201_CREATED)


@router.get("/{user_id}", summary="Get user with profile")
async def get_user(
    user_id: uuid.UUID, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await user_actions.get_user_with_profile_action(
        session, requester_id=requester_id, user_id=user_id
    )
    return action_response(result)


@router.patch("/{user_id}", summary="Update user")
async def update_user(
    user_id: uuid.UUID,
    payload: Payload,
    session: DbSession,
    requester_id: RequesterId,
) -> JSONResponse:
    result = await user_actions.update_user_action(
        session, requester_id=requester_id, user_id=user_id, data=payload
    )
    return action_response(result)


@router.delete("/{user_id}", summary="Deactivate user")
async def soft_delete_user(
    user_id: uuid.UUID, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await user_actions.soft_delete_user_action(
        session, requester_id=requester_id, user_id=user_id
    )
    return action_response(result)


@router.delete("/{user_id}/permanent", summary="Permanently delete user")
async def hard_delete_user(
    user_id: uuid.UUID, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await user_actions.hard_delete_user_action(
        session, requester_id=requester_id, user_id=user_id
    )
    return action_response(result)


@router.post("/{user_id}/restore", summary="Restore user")
async def restore_user(
    user_id: uuid.UUID, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await user_actions.restore_user_action(
        session, requester_id=requester_id, user_id=user_id
    )
    return action_response(result)


@router.post("/{user_id}/toggle-status", summary="Toggle user active status")
async def toggle_user_status(
    user_id: uuid.UUID, session: DbSession, requester_id: RequesterId
) -> JSONResponse:
    result = await user_actions.toggle_user_status_action(
        session, requester_id=requester_id, user_id=user_id
    )
    return action_response(result)
