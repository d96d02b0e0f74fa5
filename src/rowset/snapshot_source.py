"""Tabular source over rows already held by a snapshot."""

from __future__ import annotations

from typing import Any

from core.errors import NoCurrentRowError, SourceReadError
from rowset.schema import RowSetSchema


class SnapshotSource:
    """Forward-only source over copied snapshot rows.

    The cursor here is independent of the owning snapshot's cursor,
    so reading a snapshot as a source never moves it.
    """

    def __init__(self, schema: RowSetSchema, rows: list[list[Any]]) -> None:
        self._schema = schema
        self._rows = rows
        self._index = -1

    def has_next(self) -> bool:
        return self._index + 1 < len(self._rows)

    def advance(self) -> None:
        if not self.has_next():
            raise SourceReadError(
                f"Snapshot source exhausted after {len(self._rows)} rows. "
                "Check has_next before calling advance."
            )
        self._index += 1

    def get_by_name(self, name: str) -> Any:
        return self._current()[self._schema.position(name)]

    def get_by_index(self, index: int) -> Any:
        return self._current()[self._schema.position(index)]

    def schema(self) -> tuple[str, ...]:
        return self._schema.names

    def column_types(self) -> list[str]:
        return [column.type_label for column in self._schema]

    def _current(self) -> list[Any]:
        if self._index < 0:
            raise NoCurrentRowError("Snapshot source is before its first row. Call advance first.")
        return self._rows[self._index]
