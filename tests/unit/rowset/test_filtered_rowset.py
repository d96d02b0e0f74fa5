"""Unit tests for filtered row sets."""

from __future__ import annotations

import pytest

from core.errors import OutOfRangeError, PredicateViolationError, UnknownColumnError
from rowset.filtered_rowset import FilteredRowSet
from rowset.predicates import ColumnEquals
from rowset.snapshot import populate_snapshot
from tests.fixture_rows import order_items_source

_ROWS = ((1, 1, 1), (2, 2, 2), (3, 3, 3), (3, 4, 4))


def _visible_order_ids(filtered: FilteredRowSet) -> list[int | None]:
    filtered.before_first()
    order_ids = []
    while filtered.next():
        order_ids.append(filtered.get_int("ORDER_ID"))
    return order_ids


def _filtered(predicate=None) -> FilteredRowSet:
    filtered = FilteredRowSet(predicate)
    filtered.populate(order_items_source(_ROWS))
    return filtered


def test_filter_skips_rows_for_other_clients() -> None:
    """Only CLIENT_ID 3 rows should be visited, in original order."""
    filtered = _filtered(ColumnEquals("CLIENT_ID", 3))

    assert _visible_order_ids(filtered) == [3, 4]


def test_filter_keeps_underlying_row_count() -> None:
    """Filtering should not remove rows from the row set."""
    filtered = _filtered(ColumnEquals("CLIENT_ID", 3))

    filtered.set_filter(None)

    assert filtered.size() == 4 and _visible_order_ids(filtered) == [1, 2, 3, 4]


def test_wrap_filters_a_copy_of_an_existing_snapshot() -> None:
    """Wrapping should leave the source snapshot fully traversable."""
    snapshot = populate_snapshot(order_items_source(_ROWS), label="ORDER_ITEMS")

    filtered = FilteredRowSet.wrap(snapshot, ColumnEquals("CLIENT_ID", 3))

    assert _visible_order_ids(filtered) == [3, 4] and len(snapshot.to_dicts()) == 4


def test_visibility_is_reevaluated_after_updates() -> None:
    """A row edited to match should appear on the next traversal."""
    filtered = _filtered()
    filtered.absolute(1)
    filtered.update_int("CLIENT_ID", 3)
    filtered.update_row()

    filtered.set_filter(ColumnEquals("CLIENT_ID", 3))

    assert _visible_order_ids(filtered) == [1, 3, 4]


def test_absolute_counts_visible_rows() -> None:
    """absolute() should address the n-th visible row."""
    filtered = _filtered(ColumnEquals("CLIENT_ID", 3))

    filtered.absolute(2)

    assert filtered.get_int("ORDER_ID") == 4


def test_absolute_past_visible_rows_raises() -> None:
    """absolute() beyond the visible rows should fail."""
    filtered = _filtered(ColumnEquals("CLIENT_ID", 3))

    with pytest.raises(OutOfRangeError):
        filtered.absolute(3)

    assert filtered.visible_count() == 2


def test_update_rejects_value_outside_filter() -> None:
    """Setters should refuse values the predicate would hide."""
    filtered = _filtered(ColumnEquals("CLIENT_ID", 3))
    filtered.next()

    with pytest.raises(PredicateViolationError):
        filtered.update_int("CLIENT_ID", 1)

    assert filtered.get_int("CLIENT_ID") == 3


def test_update_accepts_values_in_unfiltered_columns() -> None:
    """Columns the predicate does not watch should stay writable."""
    filtered = _filtered(ColumnEquals("CLIENT_ID", 3))
    filtered.next()

    filtered.update_int("ITEM_ID", 30)
    filtered.update_row()

    assert filtered.get_int("ITEM_ID") == 30


def test_insert_row_must_satisfy_filter() -> None:
    """Inserting a row the filter would hide should fail."""
    filtered = _filtered(ColumnEquals("CLIENT_ID", 3))
    filtered.move_to_insert_row()
    filtered.update_int("ORDER_ID", 9)

    with pytest.raises(PredicateViolationError):
        filtered.insert_row()

    assert filtered.size() == 4


def test_inserted_matching_row_is_visible() -> None:
    """A matching inserted row should be traversed last."""
    filtered = _filtered(ColumnEquals("CLIENT_ID", 3))
    filtered.move_to_insert_row()
    filtered.update_int("CLIENT_ID", 3)
    filtered.update_int("ORDER_ID", 9)
    filtered.update_int("ITEM_ID", 9)

    filtered.insert_row()

    assert _visible_order_ids(filtered) == [3, 4, 9]


def test_absolute_rejects_boolean_row_numbers() -> None:
    """Booleans should not address visible rows."""
    filtered = _filtered(ColumnEquals("CLIENT_ID", 3))

    with pytest.raises(OutOfRangeError):
        filtered.absolute(True)

    assert filtered.is_before_first()


def test_set_filter_rejects_unknown_column() -> None:
    """A filter on a missing column should fail and keep the old filter."""
    previous = ColumnEquals("CLIENT_ID", 3)
    filtered = _filtered(previous)

    with pytest.raises(UnknownColumnError):
        filtered.set_filter(ColumnEquals("CUSTOMER_ID", 3))

    assert filtered.get_filter() is previous and _visible_order_ids(filtered) == [3, 4]


def test_populate_rejects_filter_on_unknown_column() -> None:
    """Populating under a filter that reads a missing column should fail."""
    filtered = FilteredRowSet(ColumnEquals("CUSTOMER_ID", 3))

    with pytest.raises(UnknownColumnError):
        filtered.populate(order_items_source(_ROWS))


def test_filter_compares_values_converted_to_column_type() -> None:
    """Numeric text written to a filtered integer column should pass the filter."""
    filtered = _filtered(ColumnEquals("CLIENT_ID", 3))
    filtered.next()

    filtered.update_string("CLIENT_ID", "3")
    filtered.update_row()

    assert filtered.get_object("CLIENT_ID") == 3
