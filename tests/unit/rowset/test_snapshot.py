"""Unit tests for disconnected row-set snapshots."""

from __future__ import annotations

import io

import pytest

from core.errors import (
    CursorStateError,
    ExportError,
    NoCurrentRowError,
    OutOfRangeError,
    SourceReadError,
    TypeMismatchError,
    UnknownColumnError,
)
from rowset.snapshot import RowSetSnapshot, populate_snapshot
from tests.fixture_rows import ListSource, order_items_source

_ROWS = ((1, 1, 1), (1, 1, 2), (2, 2, 3), (3, 3, 4), (1, 4, 5))


def _snapshot(rows=_ROWS) -> RowSetSnapshot:
    return populate_snapshot(order_items_source(rows), label="ORDER_ITEMS")


def _client_ids(snapshot: RowSetSnapshot) -> list[int | None]:
    snapshot.before_first()
    client_ids = []
    while snapshot.next():
        client_ids.append(snapshot.get_int("CLIENT_ID"))
    return client_ids


def test_populate_copies_every_value() -> None:
    """Absolute reads should return exactly what the source held."""
    snapshot = _snapshot()

    read_back = []
    for row_number in range(1, snapshot.size() + 1):
        snapshot.absolute(row_number)
        read_back.append(
            tuple(snapshot.get_int(name) for name in ("CLIENT_ID", "ORDER_ID", "ITEM_ID"))
        )

    assert read_back == list(_ROWS)


def test_populate_replaces_previous_contents() -> None:
    """A second populate should discard the first source's rows."""
    snapshot = _snapshot()

    snapshot.populate(order_items_source(((9, 9, 9),)))

    assert _client_ids(snapshot) == [9]


def test_populate_failure_leaves_snapshot_empty() -> None:
    """A source failing mid-stream should roll the snapshot back to empty."""
    snapshot = _snapshot()
    failing = ListSource(("CLIENT_ID", "ORDER_ID", "ITEM_ID"), _ROWS, fail_after=2)

    with pytest.raises(SourceReadError):
        snapshot.populate(failing)

    assert snapshot.size() == 0 and snapshot.column_names == ()


def test_next_stays_false_after_last_row() -> None:
    """next() should keep returning False once past the last row."""
    snapshot = _snapshot(((1, 1, 1),))

    results = [snapshot.next(), snapshot.next(), snapshot.next()]

    assert results == [True, False, False] and snapshot.is_after_last()


def test_before_first_restarts_traversal() -> None:
    """before_first() followed by next() should land on the first row."""
    snapshot = _snapshot()
    snapshot.last()

    snapshot.before_first()
    snapshot.next()

    assert snapshot.row_number() == 1


def test_previous_walks_backwards_from_after_last() -> None:
    """previous() from after-last should visit rows in reverse."""
    snapshot = _snapshot()
    snapshot.after_last()

    item_ids = []
    while snapshot.previous():
        item_ids.append(snapshot.get_int("ITEM_ID"))

    assert item_ids == [5, 4, 3, 2, 1] and snapshot.is_before_first()


@pytest.mark.parametrize("row_number", [0, 6, -1])
def test_absolute_rejects_rows_outside_range(row_number: int) -> None:
    """absolute() should only accept 1..size()."""
    snapshot = _snapshot()

    with pytest.raises(OutOfRangeError):
        snapshot.absolute(row_number)

    assert snapshot.size() == 5


def test_getter_before_first_row_raises() -> None:
    """Reading before next() should report no current row."""
    snapshot = _snapshot()

    with pytest.raises(NoCurrentRowError):
        snapshot.get_int("CLIENT_ID")

    assert snapshot.is_before_first()


def test_getter_rejects_unknown_column() -> None:
    """Reading a column outside the schema should fail."""
    snapshot = _snapshot()
    snapshot.next()

    with pytest.raises(UnknownColumnError):
        snapshot.get_int("PRICE")

    assert snapshot.row_number() == 1


def test_columns_resolve_case_insensitively_and_by_index() -> None:
    """Lower-case names and 1-based indexes should reach the same column."""
    snapshot = _snapshot()
    snapshot.absolute(3)

    assert snapshot.get_int("client_id") == snapshot.get_int(1) == 2


def test_getter_raises_for_unconvertible_value() -> None:
    """get_int on non-numeric text should report a type mismatch."""
    snapshot = populate_snapshot(ListSource(("NAME",), (("alice",),)))
    snapshot.next()

    with pytest.raises(TypeMismatchError):
        snapshot.get_int("NAME")

    assert snapshot.get_string("NAME") == "alice"


def test_null_values_read_as_none() -> None:
    """SQL NULL should come back as None from typed getters."""
    snapshot = populate_snapshot(order_items_source(((None, 1, 1),)))
    snapshot.next()

    assert snapshot.get_int("CLIENT_ID") is None and snapshot.get_string("CLIENT_ID") is None


def test_staged_update_is_hidden_until_update_row() -> None:
    """Setters should stage values that update_row commits."""
    snapshot = _snapshot()
    snapshot.absolute(5)
    snapshot.update_int("CLIENT_ID", 2)
    staged_read = snapshot.get_int("CLIENT_ID")

    snapshot.update_row()

    assert staged_read == 1 and snapshot.get_int("CLIENT_ID") == 2 and snapshot.row_updated()


def test_moving_cursor_discards_staged_values() -> None:
    """Navigating away should drop values that were never committed."""
    snapshot = _snapshot()
    snapshot.absolute(1)
    snapshot.update_int("CLIENT_ID", 7)

    snapshot.next()
    snapshot.previous()
    snapshot.update_row()

    assert snapshot.get_int("CLIENT_ID") == 1 and not snapshot.row_updated()


def test_cancel_row_updates_drops_staged_values() -> None:
    """cancel_row_updates should leave the row untouched."""
    snapshot = _snapshot()
    snapshot.absolute(2)
    snapshot.update_int("ITEM_ID", 99)

    snapshot.cancel_row_updates()
    snapshot.update_row()

    assert snapshot.get_int("ITEM_ID") == 2


def test_update_row_without_current_row_raises() -> None:
    """update_row before the first row should fail."""
    snapshot = _snapshot()

    with pytest.raises(NoCurrentRowError):
        snapshot.update_row()

    assert snapshot.is_before_first()


def test_setter_rejects_unconvertible_value() -> None:
    """update_int should refuse text that is not an integer."""
    snapshot = _snapshot()
    snapshot.next()

    with pytest.raises(TypeMismatchError):
        snapshot.update_int("CLIENT_ID", "three")

    assert snapshot.get_int("CLIENT_ID") == 1


def test_insert_row_appends_after_existing_rows() -> None:
    """Traversal should yield the original rows followed by the new one."""
    snapshot = _snapshot()
    snapshot.move_to_insert_row()
    snapshot.update_int("CLIENT_ID", 1)
    snapshot.update_int("ORDER_ID", 1)
    snapshot.update_int("ITEM_ID", 10)

    snapshot.insert_row()

    assert _client_ids(snapshot) == [1, 1, 2, 3, 1, 1] and snapshot.size() == 6


def test_inserted_row_is_flagged() -> None:
    """The appended row should report itself as inserted."""
    snapshot = _snapshot()
    snapshot.move_to_insert_row()
    snapshot.update_int("CLIENT_ID", 4)
    snapshot.insert_row()

    snapshot.last()

    assert snapshot.row_inserted() and snapshot.get_int("ORDER_ID") is None


def test_insert_row_leaves_insert_mode() -> None:
    """A second insert_row without move_to_insert_row should fail."""
    snapshot = _snapshot()
    snapshot.move_to_insert_row()
    snapshot.insert_row()

    with pytest.raises(CursorStateError):
        snapshot.insert_row()

    assert snapshot.size() == 6


def test_insert_mode_keeps_main_cursor_position() -> None:
    """Leaving insert mode should return to the row the cursor was on."""
    snapshot = _snapshot()
    snapshot.absolute(3)
    snapshot.move_to_insert_row()
    buffer_value = snapshot.get_object("CLIENT_ID")

    snapshot.move_to_current_row()

    assert buffer_value is None and snapshot.get_int("ITEM_ID") == 3


def test_update_row_on_insert_row_raises() -> None:
    """update_row is reserved for committed rows."""
    snapshot = _snapshot()
    snapshot.move_to_insert_row()

    with pytest.raises(CursorStateError):
        snapshot.update_row()

    assert snapshot.size() == 5


def test_after_last_is_stable_when_rows_are_appended() -> None:
    """An after-last cursor should stay after-last across an insert."""
    snapshot = _snapshot()
    snapshot.after_last()
    snapshot.move_to_insert_row()
    snapshot.update_int("ITEM_ID", 42)
    snapshot.insert_row()

    moved = snapshot.next()
    snapshot.previous()

    assert moved is False and snapshot.get_int("ITEM_ID") == 42


def test_updates_do_not_leak_between_snapshots() -> None:
    """Two snapshots of the same data should not share rows."""
    earlier = _snapshot()
    later = _snapshot()
    later.absolute(1)
    later.update_int("CLIENT_ID", 8)
    later.update_row()

    earlier.absolute(1)

    assert earlier.get_int("CLIENT_ID") == 1 and later.get_int("CLIENT_ID") == 8


def test_copy_is_independent() -> None:
    """Edits to a copy should not reach the original snapshot."""
    original = _snapshot()
    duplicate = original.copy()
    duplicate.absolute(2)
    duplicate.update_int("ITEM_ID", 50)
    duplicate.update_row()

    original.absolute(2)

    assert original.get_int("ITEM_ID") == 2 and duplicate.label == "ORDER_ITEMS"


def test_snapshot_can_populate_another_snapshot() -> None:
    """as_source should feed rows without moving the source cursor."""
    source_snapshot = _snapshot()
    source_snapshot.absolute(4)

    target = populate_snapshot(source_snapshot.as_source())

    assert target.to_dicts() == source_snapshot.to_dicts() and source_snapshot.row_number() == 4


class _BrokenSink:
    def write(self, payload: bytes) -> int:
        raise OSError("disk full")


def test_write_xml_to_broken_sink_raises_export_error() -> None:
    """Sink failures should surface as export errors."""
    snapshot = _snapshot()

    with pytest.raises(ExportError):
        snapshot.write_xml(_BrokenSink())

    assert snapshot.size() == 5


def test_write_xml_to_text_stream_raises_export_error() -> None:
    """A sink that rejects bytes should surface as an export error."""
    snapshot = _snapshot()

    with pytest.raises(ExportError):
        snapshot.write_xml(io.StringIO())

    assert snapshot.size() == 5


def test_absolute_rejects_boolean_row_numbers() -> None:
    """Booleans should not be taken as row numbers."""
    snapshot = _snapshot()

    with pytest.raises(OutOfRangeError):
        snapshot.absolute(True)

    assert snapshot.is_before_first()


def test_setters_convert_to_the_column_type() -> None:
    """Numeric text written into an integer column should be stored as int."""
    snapshot = _snapshot()
    snapshot.absolute(1)

    snapshot.update_string("ITEM_ID", "12")
    snapshot.update_row()

    assert snapshot.get_object("ITEM_ID") == 12


def test_setters_reject_values_foreign_to_the_column_type() -> None:
    """Text that is not an integer should not land in an integer column."""
    snapshot = _snapshot()
    snapshot.absolute(1)

    with pytest.raises(TypeMismatchError):
        snapshot.update_string("ITEM_ID", "abc")

    with pytest.raises(TypeMismatchError):
        snapshot.update_object("ITEM_ID", b"\x01")

    assert snapshot.get_object("ITEM_ID") == 1


def test_insert_row_values_follow_column_types() -> None:
    """The insert row should enforce column types like committed rows."""
    snapshot = _snapshot()
    snapshot.move_to_insert_row()

    with pytest.raises(TypeMismatchError):
        snapshot.update_object("CLIENT_ID", "three")

    snapshot.update_float("CLIENT_ID", 3.0)

    assert snapshot.get_object("CLIENT_ID") == 3 and isinstance(snapshot.get_object(1), int)


def test_mixed_type_column_is_untyped() -> None:
    """A column mixing value types should accept any value and export cleanly."""
    snapshot = populate_snapshot(ListSource(("A",), ((1,), ("abc",))))
    snapshot.absolute(1)

    snapshot.update_string("A", "xyz")
    snapshot.update_row()

    assert snapshot.schema.column(0).type_label == "object" and snapshot.get_object("A") == "xyz"
