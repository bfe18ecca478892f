"""In-memory data table engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import pytest

from repairdesk.ui.data_table import (
    DataTable,
    DataTableAction,
    DataTableColumn,
    DataTableFilter,
    FilterOption,
    cell_text,
)


class Kind(str, Enum):
    STAFF = "staff"
    CUSTOMER = "customer"


@dataclass
class Row:
    id: int
    name: str
    kind: Kind
    active: bool
    score: int | None = None


ROWS = [
    Row(1, "Alice", Kind.STAFF, True, 30),
    Row(2, "bob", Kind.CUSTOMER, False, None),
    Row(3, "Carol", Kind.CUSTOMER, True, 10),
    Row(4, "Dave", Kind.STAFF, True, 10),
    Row(5, "Eve", Kind.CUSTOMER, True, 20),
]


def _table(**kwargs) -> DataTable[Row]:
    return DataTable(
        columns=[
            DataTableColumn("name", "Name"),
            DataTableColumn("kind", "Kind"),
            DataTableColumn("score", "Score"),
            DataTableColumn("active", "Active", sortable=False),
        ],
        filters=[
            DataTableFilter(
                "kind",
                "Kind",
                options=(FilterOption("Staff", "staff"), FilterOption("Customer", "customer")),
            ),
            DataTableFilter("active", "Active"),
        ],
        actions=[
            DataTableAction("View"),
            DataTableAction(
                lambda row: "Deactivate" if row.active else "Activate",
                disabled=lambda row: row.id == 1,
            ),
            DataTableAction("Delete", hidden=lambda row: row.kind is Kind.STAFF),
        ],
        **kwargs,
    )


def test_cell_text() -> None:
    assert cell_text(None) == ""
    assert cell_text(True) == "true"
    assert cell_text(Kind.STAFF) == "staff"
    assert cell_text(12) == "12"


def test_search_is_case_insensitive_over_search_columns() -> None:
    table = _table(search_columns=["name"])
    assert [row.id for row in table.apply(ROWS, search="BOB")] == [2]
    # "staff" matches the kind column only when every column is searched.
    assert table.apply(ROWS, search="staff") == []
    assert [row.id for row in _table().apply(ROWS, search="staff")] == [1, 4]


def test_filters_ignore_all_empty_and_unknown_ids() -> None:
    table = _table()
    assert len(table.apply(ROWS, filter_values={"kind": "all"})) == 5
    assert len(table.apply(ROWS, filter_values={"kind": ""})) == 5
    assert len(table.apply(ROWS, filter_values={"nope": "x"})) == 5
    assert [row.id for row in table.apply(ROWS, filter_values={"kind": "staff"})] == [1, 4]
    assert [
        row.id
        for row in table.apply(ROWS, filter_values={"kind": "customer", "active": "true"})
    ] == [3, 5]


def test_sort_is_stable_with_none_last() -> None:
    table = _table()
    page = table.render(ROWS, sort_by="score")
    assert [row.id for row in page.items] == [3, 4, 5, 1, 2]
    page = table.render(ROWS, sort_by="score", descending=True)
    assert [row.id for row in page.items] == [1, 5, 3, 4, 2]
    # Unsortable column leaves input order untouched.
    assert [row.id for row in table.render(ROWS, sort_by="active").items] == [1, 2, 3, 4, 5]


def test_pagination_is_clamped() -> None:
    table = _table(page_size=2)
    page = table.render(ROWS, page=2)
    assert [row.id for row in page.items] == [3, 4]
    assert (page.total, page.page_count, page.start_index, page.end_index) == (5, 3, 3, 4)

    last = table.render(ROWS, page=99)
    assert last.page == 3
    assert [row.id for row in last.items] == [5]

    first = table.render(ROWS, page=0)
    assert first.page == 1

    empty = table.render([], page=4)
    assert (empty.page, empty.page_count, empty.start_index, empty.end_index) == (1, 1, 0, 0)


def test_row_actions_and_active_filters() -> None:
    table = _table()
    page = table.render(ROWS, search=" ", filter_values={"kind": "all"})
    assert not page.has_active_filters
    actions = {row.item.id: row.actions for row in page.rows}
    assert actions[1] == (("View", False), ("Deactivate", True))
    assert actions[2] == (("View", False), ("Activate", False), ("Delete", False))

    assert table.render(ROWS, search="a").has_active_filters
    assert table.render(ROWS, filter_values={"active": "false"}).has_active_filters


def test_page_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        _table(page_size=0)
