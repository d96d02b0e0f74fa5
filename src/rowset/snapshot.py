"""Disconnected row-set snapshot.

This module holds a materialized copy of tabular data with a
scrollable cursor, staged updates, and an insert row. Nothing in a
snapshot refers back to the connection or source that filled it.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator, Sequence

from sqlalchemy.engine import Connection

from core.errors import (
    CursorStateError,
    NoCurrentRowError,
    OutOfRangeError,
    RowkitDatabaseError,
    SourceReadError,
)
from core.logging_config import get_logger
from core.types import ColumnRef, CursorPosition, RowState
from rowset.row import RowView, StoredRow
from rowset.schema import RowSetSchema
from rowset.snapshot_source import SnapshotSource
from rowset.values import coerce_to_label, to_bool, to_float, to_int, to_string
from rowset.write_back import write_row_changes
from rowset.xml_export import write_row_set_xml
from sources.tabular_source import TabularSource, read_tabular_source

_LOGGER = get_logger(__name__)


class RowSetSnapshot:
    """In-memory row set navigable through a cursor.

    The cursor is before the first row, on a row, or after the last
    row. After-last is a state rather than an index, so it stays
    valid when rows are appended. The insert row is a side branch
    that leaves the main position untouched.

    Updates are staged per column and only reach the row on
    ``update_row``. Moving the cursor discards staged values.
    """

    def __init__(self, label: str | None = None) -> None:
        """Create an empty snapshot.

        Args:
            label: Optional table label used in exports and joins.
        """
        self.label = label
        self._schema = RowSetSchema()
        self._rows: list[StoredRow] = []
        self._position = CursorPosition.BEFORE_FIRST
        self._index = -1
        self._staged: dict[int, Any] = {}
        self._insert_buffer: list[Any] | None = None

    def populate(self, source: TabularSource) -> None:
        """Replace the snapshot contents with a copy of a source.

        Args:
            source: Tabular source positioned before its first row.

        Raises:
            SourceReadError: If the source fails before it is fully read.
                The snapshot is left empty in that case.
        """
        try:
            schema, rows = read_tabular_source(source)
        except SourceReadError:
            self._replace_contents(RowSetSchema(), [])
            raise
        except Exception as error:
            self._replace_contents(RowSetSchema(), [])
            raise SourceReadError(
                f"Failed to populate row set '{self.label or '-'}': {error}. "
                "Re-run the query and populate again."
            ) from error
        self._replace_contents(schema, rows)
        _LOGGER.info(
            "snapshot_populated",
            label=self.label,
            column_count=len(schema),
            row_count=len(rows),
        )

    @property
    def schema(self) -> RowSetSchema:
        return self._schema

    @property
    def column_names(self) -> tuple[str, ...]:
        return self._schema.names

    def size(self) -> int:
        """Return the number of committed rows."""
        return len(self._rows)

    def next(self) -> bool:
        """Advance the cursor by one row.

        Returns:
            Whether the cursor is on a row afterwards. Stays ``False``
            once the cursor is after the last row.
        """
        self._leave_transient_state()
        if self._position is CursorPosition.AFTER_LAST:
            return False
        start = self._index + 1 if self._position is CursorPosition.ON_ROW else 0
        for index in range(start, len(self._rows)):
            if self._is_visible(index):
                return self._land(index)
        self._position = CursorPosition.AFTER_LAST
        self._index = -1
        return False

    def previous(self) -> bool:
        """Move the cursor back by one row.

        Returns:
            Whether the cursor is on a row afterwards.
        """
        self._leave_transient_state()
        if self._position is CursorPosition.BEFORE_FIRST:
            return False
        start = self._index - 1 if self._position is CursorPosition.ON_ROW else len(self._rows) - 1
        for index in range(start, -1, -1):
            if self._is_visible(index):
                return self._land(index)
        self.before_first()
        return False

    def first(self) -> bool:
        """Move to the first row; return whether one exists."""
        self.before_first()
        return self.next()

    def last(self) -> bool:
        """Move to the last row; return whether one exists."""
        self.after_last()
        return self.previous()

    def absolute(self, row: int) -> None:
        """Move the cursor to a 1-based row number.

        Args:
            row: Row number in ``[1, size()]``.

        Raises:
            OutOfRangeError: If ``row`` is outside the row set.
        """
        self._leave_transient_state()
        if isinstance(row, bool) or not 1 <= row <= len(self._rows):
            raise OutOfRangeError(
                f"Row {row} is outside 1..{len(self._rows)}. "
                "Use size() to find valid row numbers."
            )
        self._land(row - 1)

    def before_first(self) -> None:
        """Move the cursor before the first row."""
        self._leave_transient_state()
        self._position = CursorPosition.BEFORE_FIRST
        self._index = -1

    def after_last(self) -> None:
        """Move the cursor after the last row."""
        self._leave_transient_state()
        self._position = CursorPosition.AFTER_LAST
        self._index = -1

    def is_before_first(self) -> bool:
        return self._position is CursorPosition.BEFORE_FIRST

    def is_after_last(self) -> bool:
        return self._position is CursorPosition.AFTER_LAST

    def row_number(self) -> int:
        """Return the 1-based current row number, or 0 off the rows."""
        if self._position is CursorPosition.ON_ROW:
            return self._index + 1
        return 0

    def get_object(self, column: ColumnRef) -> Any:
        """Return the raw value of a column at the cursor.

        Args:
            column: Column name, alias, or 1-based index.

        Returns:
            Column value, ``None`` for SQL NULL.

        Raises:
            NoCurrentRowError: If the cursor is not on a row.
            UnknownColumnError: If the column is not in the schema.
        """
        values = self._current_values()
        return values[self._schema.position(column)]

    def get_int(self, column: ColumnRef) -> int | None:
        return self._get_converted(column, to_int)

    def get_float(self, column: ColumnRef) -> float | None:
        return self._get_converted(column, to_float)

    def get_string(self, column: ColumnRef) -> str | None:
        return self._get_converted(column, to_string)

    def get_bool(self, column: ColumnRef) -> bool | None:
        return self._get_converted(column, to_bool)

    def update_object(self, column: ColumnRef, value: Any) -> None:
        """Stage a raw value for a column.

        The value lands on the insert row in insert mode, otherwise it
        waits for ``update_row`` on the current row. Values are
        converted to the column type recorded at populate time.

        Raises:
            NoCurrentRowError: If the cursor is not on a row.
            UnknownColumnError: If the column is not in the schema.
            TypeMismatchError: If the value does not fit the column type.
        """
        self._stage(column, value)

    def update_int(self, column: ColumnRef, value: int) -> None:
        self._stage(column, self._convert_update(column, value, to_int))

    def update_float(self, column: ColumnRef, value: float) -> None:
        self._stage(column, self._convert_update(column, value, to_float))

    def update_string(self, column: ColumnRef, value: str) -> None:
        self._stage(column, self._convert_update(column, value, to_string))

    def update_bool(self, column: ColumnRef, value: bool) -> None:
        self._stage(column, self._convert_update(column, value, to_bool))

    def update_null(self, column: ColumnRef) -> None:
        self._stage(column, None)

    def update_row(self) -> None:
        """Commit staged values into the current row.

        Raises:
            CursorStateError: If the cursor is on the insert row.
            NoCurrentRowError: If the cursor is not on a row.
        """
        if self._insert_buffer is not None:
            raise CursorStateError(
                "update_row is not allowed on the insert row. Use insert_row instead."
            )
        row = self._current_row()
        if not self._staged:
            return
        if row.state is RowState.UNMODIFIED:
            row.original = list(row.values)
        for position, value in self._staged.items():
            row.values[position] = value
        if row.state is RowState.UNMODIFIED:
            row.state = RowState.UPDATED
        _LOGGER.debug(
            "row_updated",
            label=self.label,
            row_number=self._index + 1,
            columns=[self._schema.column(position).name for position in self._staged],
        )
        self._staged = {}

    def cancel_row_updates(self) -> None:
        """Drop values staged on the current row.

        Raises:
            CursorStateError: If the cursor is on the insert row.
        """
        if self._insert_buffer is not None:
            raise CursorStateError(
                "cancel_row_updates is not allowed on the insert row. "
                "Call move_to_current_row to abandon the insert."
            )
        self._staged = {}

    def row_updated(self) -> bool:
        return self._current_row().state is RowState.UPDATED

    def row_inserted(self) -> bool:
        return self._current_row().state is RowState.INSERTED

    def move_to_insert_row(self) -> None:
        """Open a fresh insert row filled with ``None`` values.

        Raises:
            CursorStateError: If the snapshot has no schema yet.
        """
        if not len(self._schema):
            raise CursorStateError(
                "Cannot open an insert row before the row set has a schema. Populate it first."
            )
        self._staged = {}
        self._insert_buffer = [None] * len(self._schema)

    def move_to_current_row(self) -> None:
        """Leave insert mode and return to the main cursor position."""
        self._insert_buffer = None

    def insert_row(self) -> None:
        """Append the insert row and leave insert mode.

        The new row goes to the end of the row sequence. The cursor
        returns to where it was before ``move_to_insert_row``; call
        ``move_to_insert_row`` again for each further row.

        Raises:
            CursorStateError: If the cursor is not on the insert row.
        """
        if self._insert_buffer is None:
            raise CursorStateError(
                "insert_row requires the insert row. Call move_to_insert_row first."
            )
        for position, value in enumerate(self._insert_buffer):
            self._check_value(self._schema.column(position).name, value)
        self._rows.append(StoredRow(values=self._insert_buffer, state=RowState.INSERTED))
        self._insert_buffer = None
        _LOGGER.debug("row_inserted", label=self.label, row_count=len(self._rows))

    def copy(self) -> "RowSetSnapshot":
        """Return an independent snapshot holding copies of all rows."""
        duplicate = RowSetSnapshot(self.label)
        duplicate._replace_contents(self._schema, [row.clone() for row in self._rows])
        return duplicate

    def as_source(self) -> SnapshotSource:
        """Expose the visible rows as a tabular source."""
        rows = [list(row.values) for row in self.iter_rows()]
        return SnapshotSource(self._schema, rows)

    def iter_rows(self) -> Iterator[StoredRow]:
        """Yield visible committed rows without moving the cursor."""
        for index in range(len(self._rows)):
            if self._is_visible(index):
                yield self._rows[index]

    def to_dicts(self) -> list[dict[str, Any]]:
        """Return visible rows as name to value dictionaries."""
        names = self._schema.names
        return [dict(zip(names, row.values)) for row in self.iter_rows()]

    def write_xml(self, sink: Any, indent: bool = True) -> int:
        """Serialize the schema and visible rows to a byte sink.

        Args:
            sink: Object exposing ``write(bytes)``.
            indent: Whether to pretty-print the document.

        Returns:
            Number of bytes written.

        Raises:
            ExportError: If the sink cannot be written.
        """
        written = write_row_set_xml(
            sink,
            self._schema,
            self.iter_rows(),
            label=self.label,
            indent=indent,
        )
        _LOGGER.info("snapshot_exported", label=self.label, byte_count=written)
        return written

    def accept_changes(
        self,
        connection: Connection,
        table: str | None = None,
        key_columns: Sequence[ColumnRef] = (),
    ) -> int:
        """Write updated and inserted rows back to a database table.

        Updated rows are matched on the values they were populated
        with, so key columns may themselves have been edited. Written
        rows return to the unmodified state. Statements run on the
        caller's connection; commit it to persist them.

        Args:
            connection: Open SQLAlchemy connection.
            table: Target table, defaulting to the row-set label.
            key_columns: Columns identifying a table row. Every column
                is used when empty.

        Returns:
            Number of rows written.

        Raises:
            RowkitDatabaseError: If no table is known or a write fails.
            UnknownColumnError: If a key column is not in the schema.
        """
        target = table or self.label
        if not target:
            raise RowkitDatabaseError(
                "Row set has no table to write to. Pass table= or populate it with a label."
            )
        if key_columns:
            key_positions = [self._schema.position(reference) for reference in key_columns]
        else:
            key_positions = list(range(len(self._schema)))
        self._leave_transient_state()
        written = write_row_changes(connection, target, self._schema, self._rows, key_positions)
        for row in self._rows:
            row.mark_clean()
        _LOGGER.info("changes_accepted", label=self.label, table=target, row_count=written)
        return written

    def _is_visible(self, index: int) -> bool:
        return True

    def _check_value(self, column_name: str, value: Any) -> None:
        """Validate a value before it is staged or inserted."""

    def _replace_contents(self, schema: RowSetSchema, rows: list[StoredRow]) -> None:
        self._schema = schema
        self._rows = rows
        self._staged = {}
        self._insert_buffer = None
        self._position = CursorPosition.BEFORE_FIRST
        self._index = -1

    def _row_view(self, index: int) -> RowView:
        return RowView(self._schema, self._rows[index].values)

    def _land(self, index: int) -> bool:
        self._position = CursorPosition.ON_ROW
        self._index = index
        return True

    def _leave_transient_state(self) -> None:
        self._staged = {}
        self._insert_buffer = None

    def _current_row(self) -> StoredRow:
        if self._position is not CursorPosition.ON_ROW:
            raise NoCurrentRowError(
                f"Cursor is {self._position.value.replace('_', ' ')}, not on a row. "
                "Call next() or absolute() before reading or updating."
            )
        return self._rows[self._index]

    def _current_values(self) -> list[Any]:
        if self._insert_buffer is not None:
            return self._insert_buffer
        return self._current_row().values

    def _get_converted(self, column: ColumnRef, converter: Callable[[Any, str], Any]) -> Any:
        values = self._current_values()
        position = self._schema.position(column)
        return converter(values[position], self._schema.column(position).name)

    def _convert_update(
        self,
        column: ColumnRef,
        value: Any,
        converter: Callable[[Any, str], Any],
    ) -> Any:
        name = self._schema.canonical_name(column)
        if value is None:
            return None
        return converter(value, name)

    def _stage(self, column: ColumnRef, value: Any) -> None:
        position = self._schema.position(column)
        if self._insert_buffer is None:
            self._current_row()
        spec = self._schema.column(position)
        value = coerce_to_label(value, spec.type_label, spec.name)
        self._check_value(spec.name, value)
        if self._insert_buffer is not None:
            self._insert_buffer[position] = value
            return
        self._staged[position] = value


def populate_snapshot(source: TabularSource, label: str | None = None) -> RowSetSnapshot:
    """Create and populate a snapshot in one step.

    Args:
        source: Tabular source to copy.
        label: Optional table label.

    Returns:
        Populated snapshot.

    Raises:
        SourceReadError: If the source cannot be fully read.
    """
    snapshot = RowSetSnapshot(label)
    snapshot.populate(source)
    return snapshot

