"""Tabular source protocol and shared read loop.

This module defines the interface snapshots populate from and
the routine that copies a source into owned schema and rows.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable

from core.errors import SourceReadError
from core.types import ColumnSpec
from rowset.row import StoredRow
from rowset.schema import RowSetSchema
from rowset.values import infer_type_label, own_value


@runtime_checkable
class TabularSource(Protocol):
    """Forward-only row iterator with name and index access.

    Column indexes are 1-based. ``advance`` moves onto the next row
    and must only be called after ``has_next`` returned ``True``.
    Sources may also provide ``column_types()`` returning one type
    label per column; otherwise labels are inferred from values.
    """

    def has_next(self) -> bool:
        ...

    def advance(self) -> None:
        ...

    def get_by_name(self, name: str) -> Any:
        ...

    def get_by_index(self, index: int) -> Any:
        ...

    def schema(self) -> Sequence[str]:
        ...


def read_tabular_source(source: TabularSource) -> tuple[RowSetSchema, list[StoredRow]]:
    """Copy all rows and the schema out of a tabular source.

    Args:
        source: Source positioned before its first row.

    Returns:
        Pair of schema and owned rows in source order.

    Raises:
        SourceReadError: If the source reports an inconsistent schema.
    """
    names = [str(name) for name in source.schema()]
    rows: list[StoredRow] = []
    while source.has_next():
        source.advance()
        values = [own_value(source.get_by_index(index)) for index in range(1, len(names) + 1)]
        rows.append(StoredRow(values=values))
    type_labels = _column_type_labels(source, names, rows)
    columns = [ColumnSpec(name=name, type_label=label) for name, label in zip(names, type_labels)]
    return RowSetSchema(columns), rows


def _column_type_labels(
    source: TabularSource,
    names: list[str],
    rows: list[StoredRow],
) -> list[str]:
    """Resolve type labels from the source or from the copied values.

    Args:
        source: Source that may declare column types.
        names: Column names in order.
        rows: Copied rows.

    Returns:
        One type label per column.

    Raises:
        SourceReadError: If declared types do not match the column count.
    """
    declared = getattr(source, "column_types", None)
    if callable(declared):
        labels = [str(label) for label in declared()]
        if len(labels) != len(names):
            raise SourceReadError(
                f"Source declared {len(labels)} column types for {len(names)} columns. "
                "Fix the source metadata and populate again."
            )
        return labels
    labels = []
    for position in range(len(names)):
        seen = {
            infer_type_label(row.values[position])
            for row in rows
            if row.values[position] is not None
        }
        # Empty and mixed-type columns stay untyped.
        labels.append(seen.pop() if len(seen) == 1 else "object")
    return labels
