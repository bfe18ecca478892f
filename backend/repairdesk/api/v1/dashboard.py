"""Staff dashboard tables rendered with the in-memory data table engine.

Rows come from the guarded actions, so a requester only ever sees what the
underlying list operation allows. Row actions are gated on the requester's
resolved role.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from repairdesk.actions import service as service_actions
from repairdesk.actions import user as user_actions
from repairdesk.actions.base import ActionResult
from repairdesk.api.deps import CurrentAccount, DbSession, action_response
from repairdesk.core.errors import AuthorizationError
from repairdesk.models.catalog import DeviceType
from repairdesk.schemas.catalog import CategoryWithServices, ServiceRead
from repairdesk.schemas.common import MAX_PAGE_SIZE
from repairdesk.schemas.dashboard import DashboardTable
from repairdesk.schemas.user import UserListItem
from repairdesk.security.roles import PermissionLevel, has_role, resolve_role
from repairdesk.ui.data_table import (
    ALL,
    DataTable,
    DataTableAction,
    DataTableColumn,
    DataTableFilter,
    FilterOption,
)

logger = logging.getLogger(__name__)

router = APIRouter()

R = TypeVar("R")

_STATUS_OPTIONS = (
    FilterOption(label="Active", value="true"),
    FilterOption(label="Inactive", value="false"),
)


def _forbidden(message: str) -> JSONResponse:
    error = AuthorizationError(message)
    return action_response(
        ActionResult[Any](success=False, error=error.message, code=error.code)
    )


async def _collect(
    fetch: Callable[[int], Awaitable[ActionResult[Any]]], key: str
) -> tuple[list[Any], ActionResult[Any] | None]:
    """Drain a paginated action; returns the rows or the failed result."""
    rows: list[Any] = []
    page = 1
    while True:
        result = await fetch(page)
        if not result.success or result.data is None:
            return [], result
        batch = getattr(result.data, key)
        rows.extend(batch)
        if len(rows) >= result.data.total or not batch:
            return rows, None
        page += 1


def _render(
    table: DataTable[R],
    rows: list[R],
    *,
    search: str,
    filter_values: dict[str, str],
    sort_by: str | None,
    descending: bool,
    page: int,
    page_size: int | None,
) -> JSONResponse:
    rendered = table.render(
        rows,
        search=search,
        filter_values=filter_values,
        sort_by=sort_by,
        descending=descending,
        page=page,
        page_size=page_size,
    )
    payload = DashboardTable[Any].from_page(
        table, rendered, filter_values=filter_values
    )
    return action_response(ActionResult[DashboardTable[Any]](success=True, data=payload))


def users_table(requester: CurrentAccount) -> DataTable[UserListItem]:
    is_admin = has_role(resolve_role(requester), PermissionLevel.ADMIN)

    def own_row(row: UserListItem) -> bool:
        return row.id == requester.id

    def role_of(row: UserListItem) -> str | None:
        role = row.staff_role or row.customer_role
        return role.value if role is not None else None

    return DataTable(
        columns=[
            DataTableColumn("name", "Name"),
            DataTableColumn("email", "Email"),
            DataTableColumn("account_type", "Type"),
            DataTableColumn("role", "Role", accessor=role_of),
            DataTableColumn("is_active", "Active"),
            DataTableColumn("created_at", "Created"),
            DataTableColumn("phone", "Phone", sortable=False),
        ],
        filters=[
            DataTableFilter(
                "account_type",
                "Type",
                options=(
                    FilterOption(label="Staff", value="staff"),
                    FilterOption(label="Customer", value="customer"),
                ),
                placeholder="All users",
            ),
            DataTableFilter("is_active", "Status", options=_STATUS_OPTIONS),
        ],
        actions=[
            DataTableAction("View"),
            DataTableAction(
                lambda row: "Deactivate" if row.is_active else "Activate",
                disabled=own_row,
            ),
            DataTableAction(
                "Delete permanently",
                hidden=lambda row: not is_admin,
                disabled=own_row,
                variant="destructive",
            ),
        ],
        search_columns=["name", "email", "phone"],
    )


@router.get("/users", summary="User management table")
async def dashboard_users(
    session: DbSession,
    requester: CurrentAccount,
    search: str = Query(default=""),
    account_type: str = Query(default=ALL),
    is_active: str = Query(default=ALL),
    sort_by: str | None = Query(default=None),
    descending: bool = Query(default=False),
    page: int = Query(default=1),
    page_size: int | None = Query(default=None),
) -> JSONResponse:
    rows, failure = await _collect(
        lambda number: user_actions.get_user_list_action(
            session, requester_id=requester.id, page=number, limit=MAX_PAGE_SIZE
        ),
        "users",
    )
    if failure is not None:
        return action_response(failure)
    return _render(
        users_table(requester),
        rows,
        search=search,
        filter_values={"account_type": account_type, "is_active": is_active},
        sort_by=sort_by,
        descending=descending,
        page=page,
        page_size=page_size,
    )


def services_table(
    requester: CurrentAccount, categories: list[CategoryWithServices]
) -> DataTable[ServiceRead]:
    not_admin = not has_role(resolve_role(requester), PermissionLevel.ADMIN)
    return DataTable(
        columns=[
            DataTableColumn("name", "Service"),
            DataTableColumn("category_name", "Category"),
            DataTableColumn("device", "Device"),
            DataTableColumn("price", "Price"),
            DataTableColumn("estimated_time", "Estimated time", sortable=False),
            DataTableColumn("is_active", "Active"),
        ],
        filters=[
            DataTableFilter(
                "category_id",
                "Category",
                options=tuple(
                    FilterOption(label=category.name, value=str(category.id))
                    for category in categories
                ),
                placeholder="All categories",
            ),
            DataTableFilter(
                "device",
                "Device",
                options=tuple(
                    FilterOption(label=device.value.title(), value=device.value)
                    for device in DeviceType
                ),
                placeholder="All devices",
            ),
            DataTableFilter("is_active", "Status", options=_STATUS_OPTIONS),
        ],
        actions=[
            DataTableAction("View"),
            DataTableAction("Edit", hidden=lambda row: not_admin),
            DataTableAction(
                lambda row: "Deactivate" if row.is_active else "Restore",
                hidden=lambda row: not_admin,
            ),
        ],
        search_columns=["name", "category_name", "description"],
    )


@router.get("/services", summary="Service management table")
async def dashboard_services(
    session: DbSession,
    requester: CurrentAccount,
    search: str = Query(default=""),
    category_id: str = Query(default=ALL),
    device: str = Query(default=ALL),
    is_active: str = Query(default=ALL),
    sort_by: str | None = Query(default=None),
    descending: bool = Query(default=False),
    page: int = Query(default=1),
    page_size: int | None = Query(default=None),
) -> JSONResponse:
    if not has_role(resolve_role(requester), PermissionLevel.STAFF):
        return _forbidden("Only staff can view the dashboard")
    categories = await service_actions.get_service_categories_action(
        session, include_inactive=True
    )
    if not categories.success:
        return action_response(categories)
    rows, failure = await _collect(
        lambda number: service_actions.get_service_list_action(
            session, page=number, limit=MAX_PAGE_SIZE
        ),
        "services",
    )
    if failure is not None:
        return action_response(failure)
    return _render(
        services_table(requester, categories.data or []),
        rows,
        search=search,
        filter_values={
            "category_id": category_id,
            "device": device,
            "is_active": is_active,
        },
        sort_by=sort_by,
        descending=descending,
        page=page,
        page_size=page_size,
    )


def categories_table() -> DataTable[CategoryWithServices]:
    return DataTable(
        columns=[
            DataTableColumn("name", "Category"),
            DataTableColumn("description", "Description", sortable=False),
            DataTableColumn("service_count", "Services"),
            DataTableColumn("is_active", "Active"),
            DataTableColumn("updated_at", "Updated"),
        ],
        filters=[DataTableFilter("is_active", "Status", options=_STATUS_OPTIONS)],
        actions=[
            DataTableAction("Edit"),
            DataTableAction(
                lambda row: "Deactivate" if row.is_active else "Restore",
                disabled=lambda row: row.is_active
                and any(service.is_active for service in row.services),
            ),
        ],
        search_columns=["name", "description"],
    )


@router.get("/categories", summary="Service category management table")
async def dashboard_categories(
    session: DbSession,
    requester: CurrentAccount,
    search: str = Query(default=""),
    is_active: str = Query(default=ALL),
    sort_by: str | None = Query(default=None),
    descending: bool = Query(default=False),
    page: int = Query(default=1),
    page_size: int | None = Query(default=None),
) -> JSONResponse:
    result = await service_actions.get_service_categories_for_admin_action(
        session, requester_id=requester.id, include_inactive=True
    )
    if not result.success:
        return action_response(result)
    logger.debug("Rendering %d categories for %s", len(result.data or []), requester.id)
    return _render(
        categories_table(),
        result.data or [],
        search=search,
        filter_values={"is_active": is_active},
        sort_by=sort_by,
        descending=descending,
        page=page,
        page_size=page_size,
    )
