"""Rendered dashboard tables."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from repairdesk.ui.data_table import DataTable, DataTablePage

T = TypeVar("T")


class ColumnMeta(BaseModel):
    id: str
    header: str
    sortable: bool


class FilterOptionMeta(BaseModel):
    label: str
    value: str


class FilterMeta(BaseModel):
    id: str
    label: str
    placeholder: str | None = None
    value: str
    options: list[FilterOptionMeta] = Field(default_factory=list)


class RowAction(BaseModel):
    label: str
    disabled: bool


class TableRow(BaseModel, Generic[T]):
    item: T
    actions: list[RowAction]


class DashboardTable(BaseModel, Generic[T]):
    """One rendered page of a dashboard table plus the metadata to draw it."""

    columns: list[ColumnMeta]
    filters: list[FilterMeta]
    rows: list[TableRow[T]]
    total: int
    page: int
    page_size: int
    page_size_options: list[int]
    page_count: int
    start_index: int
    end_index: int
    has_active_filters: bool

    @classmethod
    def from_page(
        cls,
        table: DataTable[T],
        page: DataTablePage[T],
        *,
        filter_values: dict[str, str],
    ) -> DashboardTable[T]:
        current = table.default_filter_values()
        current.update({key: value for key, value in filter_values.items() if value})
        return cls(
            columns=[
                ColumnMeta(id=column.id, header=column.header, sortable=column.sortable)
                for column in table.columns
            ],
            filters=[
                FilterMeta(
                    id=flt.id,
                    label=flt.label,
                    placeholder=flt.placeholder,
                    value=current.get(flt.id, flt.default_value),
                    options=[
                        FilterOptionMeta(label=option.label, value=option.value)
                        for option in flt.options
                    ],
                )
                for flt in table.filters
            ],
            rows=[
                {
                    "item": row.item,
                    "actions": [
                        {"label": label, "disabled": disabled}
                        for label, disabled in row.actions
                    ],
                }
                for row in page.rows
            ],
            total=page.total,
            page=page.page,
            page_size=page.page_size,
            page_size_options=list(table.page_size_options),
            page_count=page.page_count,
            start_index=page.start_index,
            end_index=page.end_index,
            has_active_filters=page.has_active_filters,
        )
