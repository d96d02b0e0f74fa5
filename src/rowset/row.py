"""Row storage and read-only row views."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from core.types import ColumnRef, RowState
from rowset.schema import RowSetSchema


@dataclass
class StoredRow:
    """A committed row owned by exactly one row set.

    Attributes:
        values: Column values in schema order.
        state: Lifecycle state of the row.
        original: Values as populated, kept from the first update until
            the change is written back.
    """

    values: list[Any]
    state: RowState = field(default=RowState.UNMODIFIED)
    original: list[Any] | None = None

    def clone(self) -> "StoredRow":
        """Return an independent copy of the row."""
        original = None if self.original is None else list(self.original)
        return StoredRow(values=list(self.values), state=self.state, original=original)

    def mark_clean(self) -> None:
        """Forget pending changes once they are written back."""
        self.state = RowState.UNMODIFIED
        self.original = None


class RowView:
    """Read-only view over one row, handed to filter predicates."""

    def __init__(self, schema: RowSetSchema, values: list[Any]) -> None:
        self._schema = schema
        self._values = values

    def __getitem__(self, reference: ColumnRef) -> Any:
        return self._values[self._schema.position(reference)]

    def get(self, reference: ColumnRef, default: Any = None) -> Any:
        """Return a column value, or ``default`` for unknown columns."""
        if not self._schema.has_column(reference):
            return default
        return self[reference]

    @property
    def names(self) -> tuple[str, ...]:
        return self._schema.names

    def as_dict(self) -> dict[str, Any]:
        """Return the row as a name to value mapping."""
        return dict(zip(self._schema.names, self._values))

    def __repr__(self) -> str:
        return f"RowView({self.as_dict()!r})"
