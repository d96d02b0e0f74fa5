"""Filter predicates for filtered row sets.

A predicate answers two questions: whether a committed row is
visible, and whether a value may be written into a named column.
Columns are always identified by their schema name. A predicate
may list the columns it reads in a ``columns`` attribute so row sets
can reject it up front when a column is missing.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from rowset.row import RowView


@runtime_checkable
class RowPredicate(Protocol):
    """Visibility rules applied by a filtered row set."""

    def row_visible(self, row: RowView) -> bool:
        ...

    def value_visible(self, value: Any, column_name: str) -> bool:
        ...


class ColumnEquals:
    """Show rows whose column equals an expected value.

    Values written to other columns are always accepted.
    """

    def __init__(self, column: str, expected: Any) -> None:
        self.column = column
        self.columns = (column,)
        self.expected = expected

    def row_visible(self, row: RowView) -> bool:
        return row[self.column] == self.expected

    def value_visible(self, value: Any, column_name: str) -> bool:
        if column_name.upper() != self.column.upper():
            return True
        return value == self.expected

    def __repr__(self) -> str:
        return f"ColumnEquals({self.column!r}, {self.expected!r})"


class ColumnRange:
    """Show rows whose column lies within inclusive bounds.

    Either bound may be ``None`` to leave that side open. NULL values
    are never in range.
    """

    def __init__(self, column: str, low: Any = None, high: Any = None) -> None:
        self.column = column
        self.columns = (column,)
        self.low = low
        self.high = high

    def row_visible(self, row: RowView) -> bool:
        return self._in_range(row[self.column])

    def value_visible(self, value: Any, column_name: str) -> bool:
        if column_name.upper() != self.column.upper():
            return True
        return self._in_range(value)

    def _in_range(self, value: Any) -> bool:
        if value is None:
            return False
        if self.low is not None and value < self.low:
            return False
        if self.high is not None and value > self.high:
            return False
        return True

    def __repr__(self) -> str:
        return f"ColumnRange({self.column!r}, low={self.low!r}, high={self.high!r})"
