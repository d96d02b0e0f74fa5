"""Filtered row set.

This module applies a predicate at traversal time. Rows that fail
the predicate are skipped by the cursor but never removed, and
visibility is re-evaluated on every move.
"""

from __future__ import annotations

from typing import Any

from core.errors import OutOfRangeError, PredicateViolationError
from core.logging_config import get_logger
from rowset.predicates import RowPredicate
from rowset.snapshot import RowSetSnapshot
from sources.tabular_source import TabularSource

_LOGGER = get_logger(__name__)


class FilteredRowSet(RowSetSnapshot):
    """Snapshot whose cursor only stops on rows a predicate accepts.

    ``size()`` keeps reporting every committed row. Values staged
    through setters or the insert row must pass the predicate's
    ``value_visible`` check.
    """

    def __init__(self, predicate: RowPredicate | None = None, label: str | None = None) -> None:
        """Create an empty filtered row set.

        Args:
            predicate: Optional filter; ``None`` shows every row.
            label: Optional table label.
        """
        super().__init__(label)
        self._predicate = predicate

    @classmethod
    def wrap(cls, row_set: RowSetSnapshot, predicate: RowPredicate | None) -> "FilteredRowSet":
        """Build a filtered view over a copy of an existing row set.

        Args:
            row_set: Populated row set to copy from. It is not modified.
            predicate: Filter to apply.

        Returns:
            Populated filtered row set.
        """
        filtered = cls(predicate, label=row_set.label)
        filtered.populate(row_set.as_source())
        return filtered

    def populate(self, source: TabularSource) -> None:
        """Populate from a source, then check the filter against the schema.

        Raises:
            SourceReadError: If the source fails before it is fully read.
            UnknownColumnError: If the filter reads a column the source lacks.
        """
        super().populate(source)
        self._check_predicate_columns(self._predicate)

    def set_filter(self, predicate: RowPredicate | None) -> None:
        """Replace the active predicate and reset the cursor.

        Args:
            predicate: New filter, or ``None`` to show every row.

        Raises:
            UnknownColumnError: If the filter reads a column the row set
                lacks. The previous filter stays active.
        """
        self._check_predicate_columns(predicate)
        self._predicate = predicate
        self.before_first()
        _LOGGER.debug("filter_changed", label=self.label, predicate=repr(predicate))

    def get_filter(self) -> RowPredicate | None:
        return self._predicate

    def visible_count(self) -> int:
        """Return how many rows the current predicate accepts."""
        return sum(1 for _ in self.iter_rows())

    def absolute(self, row: int) -> None:
        """Move to the n-th visible row.

        Args:
            row: 1-based position among visible rows.

        Raises:
            OutOfRangeError: If fewer than ``row`` rows are visible.
        """
        self._leave_transient_state()
        if not isinstance(row, bool) and row >= 1:
            seen = 0
            for index in range(self.size()):
                if not self._is_visible(index):
                    continue
                seen += 1
                if seen == row:
                    self._land(index)
                    return
        raise OutOfRangeError(
            f"Row {row} is outside the visible rows of '{self.label or '-'}'. "
            "Use visible_count() to find valid row numbers."
        )

    def _is_visible(self, index: int) -> bool:
        if self._predicate is None:
            return True
        return bool(self._predicate.row_visible(self._row_view(index)))

    def _check_predicate_columns(self, predicate: RowPredicate | None) -> None:
        if predicate is None or not len(self._schema):
            return
        for name in getattr(predicate, "columns", ()):
            self._schema.position(name)

    def _check_value(self, column_name: str, value: Any) -> None:
        if self._predicate is None:
            return
        if not self._predicate.value_visible(value, column_name):
            raise PredicateViolationError(
                f"Value {value!r} for column '{column_name}' does not satisfy filter "
                f"{self._predicate!r}. Change the value or clear the filter."
            )
