"""In-memory search, filter, sort and pagination for dashboard tables.

The engine works on rows that a guarded service already returned and makes
no authorization decisions of its own.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")

ALL = "all"
DEFAULT_PAGE_SIZE = 10
DEFAULT_PAGE_SIZE_OPTIONS = (10, 20, 30, 40, 50)

RowPredicate = Callable[[Any], bool]


def field_value(row: Any, key: str) -> Any:
    """Read ``key`` from a mapping or an object attribute."""
    if isinstance(row, Mapping):
        return row.get(key)
    return getattr(row, key, None)


def cell_text(value: Any) -> str:
    """Text form used by search and equality filters."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, enum.Enum):
        return str(value.value)
    return str(value)


@dataclass(frozen=True)
class DataTableColumn(Generic[T]):
    id: str
    header: str
    accessor: Callable[[T], Any] | None = None
    sortable: bool = True

    def value(self, row: T) -> Any:
        if self.accessor is not None:
            return self.accessor(row)
        return field_value(row, self.id)


@dataclass(frozen=True)
class FilterOption:
    label: str
    value: str


@dataclass(frozen=True)
class DataTableFilter:
    """Equality filter on a row field; ``"all"`` disables it."""

    id: str
    label: str
    options: tuple[FilterOption, ...] = ()
    placeholder: str | None = None
    default_value: str = ALL


@dataclass(frozen=True)
class DataTableAction(Generic[T]):
    label: str | Callable[[T], str]
    hidden: Callable[[T], bool] | None = None
    disabled: Callable[[T], bool] | None = None
    variant: str = "default"

    def label_for(self, row: T) -> str:
        return self.label(row) if callable(self.label) else self.label

    def is_hidden(self, row: T) -> bool:
        return bool(self.hidden and self.hidden(row))

    def is_disabled(self, row: T) -> bool:
        return bool(self.disabled and self.disabled(row))


@dataclass(frozen=True)
class DataTableRow(Generic[T]):
    item: T
    actions: tuple[tuple[str, bool], ...] = ()


@dataclass(frozen=True)
class DataTablePage(Generic[T]):
    rows: list[DataTableRow[T]]
    total: int
    page: int
    page_size: int
    page_count: int
    start_index: int
    end_index: int
    has_active_filters: bool

    @property
    def items(self) -> list[T]:
        return [row.item for row in self.rows]


@dataclass
class DataTable(Generic[T]):
    columns: Sequence[DataTableColumn[T]]
    filters: Sequence[DataTableFilter] = ()
    actions: Sequence[DataTableAction[T]] = ()
    search_columns: Sequence[str] = ()
    page_size: int = DEFAULT_PAGE_SIZE
    page_size_options: Sequence[int] = field(
        default_factory=lambda: DEFAULT_PAGE_SIZE_OPTIONS
    )

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError("page_size must be positive")
        self._columns = {column.id: column for column in self.columns}
        self._filters = {flt.id: flt for flt in self.filters}

    # -- helpers -----------------------------------------------------------

    def _value(self, row: T, key: str) -> Any:
        column = self._columns.get(key)
        return column.value(row) if column is not None else field_value(row, key)

    def default_filter_values(self) -> dict[str, str]:
        return {flt.id: flt.default_value for flt in self.filters}

    def _active_filters(self, values: Mapping[str, str] | None) -> dict[str, str]:
        merged = self.default_filter_values()
        merged.update(values or {})
        return {
            key: value
            for key, value in merged.items()
            if key in self._filters and value not in (None, "", ALL)
        }

    def _matches_search(self, row: T, term: str) -> bool:
        keys = self.search_columns or [column.id for column in self.columns]
        return any(term in cell_text(self._value(row, key)).lower() for key in keys)

    def _sorted(self, rows: list[T], sort_by: str | None, descending: bool) -> list[T]:
        column = self._columns.get(sort_by) if sort_by else None
        if column is None or not column.sortable:
            return rows
        present = [row for row in rows if column.value(row) is not None]
        missing = [row for row in rows if column.value(row) is None]

        def _key(row: T) -> Any:
            value = column.value(row)
            return value.value if isinstance(value, enum.Enum) else value

        return sorted(present, key=_key, reverse=descending) + missing

    # -- rendering ---------------------------------------------------------

    def apply(
        self,
        rows: Iterable[T],
        *,
        search: str = "",
        filter_values: Mapping[str, str] | None = None,
    ) -> list[T]:
        """Return the rows that pass the global search and column filters."""
        result = list(rows)
        term = search.strip().lower()
        if term:
            result = [row for row in result if self._matches_search(row, term)]
        for key, expected in self._active_filters(filter_values).items():
            result = [
                row for row in result if cell_text(self._value(row, key)) == expected
            ]
        return result

    def row_actions(self, row: T) -> tuple[tuple[str, bool], ...]:
        return tuple(
            (action.label_for(row), action.is_disabled(row))
            for action in self.actions
            if not action.is_hidden(row)
        )

    def render(
        self,
        rows: Iterable[T],
        *,
        search: str = "",
        filter_values: Mapping[str, str] | None = None,
        sort_by: str | None = None,
        descending: bool = False,
        page: int = 1,
        page_size: int | None = None,
    ) -> DataTablePage[T]:
        size = page_size if page_size and page_size > 0 else self.page_size
        filtered = self._sorted(
            self.apply(rows, search=search, filter_values=filter_values),
            sort_by,
            descending,
        )
        total = len(filtered)
        page_count = max(1, math.ceil(total / size))
        page = min(max(page, 1), page_count)
        start = (page - 1) * size
        visible = filtered[start : start + size]
        return DataTablePage(
            rows=[DataTableRow(item=row, actions=self.row_actions(row)) for row in visible],
            total=total,
            page=page,
            page_size=size,
            page_count=page_count,
            start_index=start + 1 if total else 0,
            end_index=min(start + size, total),
            has_active_filters=bool(search.strip())
            or bool(self._active_filters(filter_values)),
        )


__all__ = [
    "ALL",
    "DataTable",
    "DataTableAction",
    "DataTableColumn",
    "DataTableFilter",
    "DataTablePage",
    "DataTableRow",
    "FilterOption",
    "cell_text",
    "field_value",
]
