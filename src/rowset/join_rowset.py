"""Inner equi-join of independently populated row sets.

This module combines row sets bound on key columns into one
navigable snapshot. The first binding seeds the result and every
further binding is joined against it on the first binding's key.
"""

from __future__ import annotations

from core.constants import JOIN_LABEL_PREFIX
from core.logging_config import get_logger
from core.types import ColumnRef, ColumnSpec, JoinBinding
from rowset.row import StoredRow
from rowset.schema import RowSetSchema
from rowset.snapshot import RowSetSnapshot
from sources.tabular_source import read_tabular_source

_LOGGER = get_logger(__name__)


class JoinRowSet(RowSetSnapshot):
    """Snapshot holding the inner join of its bound row sets.

    Rows come out in nested-loop order: for each left row, every
    matching right row in the right row set's order. ``None`` keys
    never match.

    The unified key column keeps the first row set's key name and the
    right key name stays addressable as an alias. Any other right
    column whose name is already taken is renamed ``<label>_<name>``,
    using the right row set's label or ``ROWSET<k>`` when it has none.
    A name that still collides gets a numeric suffix.
    """

    def __init__(self, label: str | None = None) -> None:
        super().__init__(label)
        self._bindings: list[JoinBinding] = []
        self._key_position = -1

    def add_row_set(self, row_set: RowSetSnapshot, key_column: ColumnRef) -> None:
        """Bind a row set on a key column and rebuild the join.

        Args:
            row_set: Populated row set. It is read, never modified.
            key_column: Join column name or 1-based index in ``row_set``.

        Raises:
            UnknownColumnError: If the key column is not in the row set.
        """
        right_key = row_set.schema.position(key_column)
        right_schema, right_rows = read_tabular_source(row_set.as_source())
        label = row_set.label or f"{JOIN_LABEL_PREFIX}{len(self._bindings) + 1}"
        binding = JoinBinding(
            label=label,
            key_column=right_schema.column(right_key).name,
            row_count=len(right_rows),
        )
        if not self._bindings:
            self._key_position = right_key
            self._replace_contents(right_schema, right_rows)
        else:
            schema = _joined_schema(
                self._schema, self._key_position, right_schema, right_key, label
            )
            rows = _joined_rows(self._rows, self._key_position, right_rows, right_key)
            self._replace_contents(schema, rows)
        self._bindings.append(binding)
        _LOGGER.info(
            "row_sets_joined",
            label=self.label,
            bound_label=label,
            key_column=binding.key_column,
            row_set_count=len(self._bindings),
            row_count=self.size(),
        )

    def row_set_count(self) -> int:
        return len(self._bindings)

    def match_columns(self) -> tuple[str, ...]:
        """Return the key column name of each binding in bind order."""
        return tuple(binding.key_column for binding in self._bindings)

    def bindings(self) -> tuple[JoinBinding, ...]:
        return tuple(self._bindings)


def _joined_rows(
    left_rows: list[StoredRow],
    left_key: int,
    right_rows: list[StoredRow],
    right_key: int,
) -> list[StoredRow]:
    """Pair every left row with each right row sharing its key.

    Args:
        left_rows: Accumulated join rows.
        left_key: Key position in the left rows.
        right_rows: Rows of the newly bound row set.
        right_key: Key position in the right rows.

    Returns:
        Joined rows without the duplicate right key value.
    """
    joined: list[StoredRow] = []
    for left in left_rows:
        key = left.values[left_key]
        if key is None:
            continue
        for right in right_rows:
            if right.values[right_key] is None or right.values[right_key] != key:
                continue
            extra = [value for position, value in enumerate(right.values) if position != right_key]
            joined.append(StoredRow(values=list(left.values) + extra))
    return joined


def _joined_schema(
    left: RowSetSchema,
    left_key: int,
    right: RowSetSchema,
    right_key: int,
    right_label: str,
) -> RowSetSchema:
    """Merge two schemas using the collision naming policy.

    Args:
        left: Accumulated join schema.
        left_key: Key position in the left schema.
        right: Schema of the newly bound row set.
        right_key: Key position in the right schema.
        right_label: Label used to prefix colliding right names.

    Returns:
        Combined schema with the right key registered as an alias.
    """
    columns = list(left)
    taken = {column.name.upper() for column in columns} | set(left.aliases)
    for position, column in enumerate(right):
        if position == right_key:
            continue
        name = _unique_name(column.name, right_label, taken)
        taken.add(name.upper())
        columns.append(ColumnSpec(name=name, type_label=column.type_label))
    aliases: dict[str, int] = dict(left.aliases)
    right_key_name = right.column(right_key).name.upper()
    if right_key_name not in taken:
        aliases[right_key_name] = left_key
    return RowSetSchema(columns, aliases)


def _unique_name(name: str, label: str, taken: set[str]) -> str:
    if name.upper() not in taken:
        return name
    candidate = f"{label}_{name}"
    suffix = 2
    while candidate.upper() in taken:
        candidate = f"{label}_{name}_{suffix}"
        suffix += 1
    return candidate
