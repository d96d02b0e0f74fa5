"""Shared typed models.

This module defines the small value types shared by snapshots,
sources, and exporters to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

ColumnRef = str | int


class RowState(Enum):
    """Lifecycle state of a committed row."""

    UNMODIFIED = "unmodified"
    UPDATED = "updated"
    INSERTED = "inserted"


class CursorPosition(Enum):
    """Main cursor position relative to the row sequence."""

    BEFORE_FIRST = "before_first"
    ON_ROW = "on_row"
    AFTER_LAST = "after_last"


@dataclass(frozen=True)
class ColumnSpec:
    """Schema entry for one column.

    Attributes:
        name: Column name as reported by the source.
        type_label: Value type label (int, float, str, bool, bytes, object).
    """

    name: str
    type_label: str = "object"


@dataclass(frozen=True)
class JoinBinding:
    """A row set bound into a join on one key column.

    Attributes:
        label: Label used to disambiguate colliding column names.
        key_column: Canonical name of the bound key column.
        row_count: Rows in the bound row set at bind time.
    """

    label: str
    key_column: str
    row_count: int
