"""Row-set schema with case-insensitive column lookup.

This module resolves column references by name, alias, or
1-based index into positions within a row.
"""

from __future__ import annotations

from typing import Iterator, Mapping, Sequence

from core.errors import UnknownColumnError
from core.types import ColumnRef, ColumnSpec


class RowSetSchema:
    """Ordered column list shared by every row of a row set.

    Names are matched case-insensitively. When a source reports the
    same name twice, lookups resolve to the first occurrence. Aliases
    are extra names that point at an existing column.
    """

    def __init__(
        self,
        columns: Sequence[ColumnSpec] = (),
        aliases: Mapping[str, int] | None = None,
    ) -> None:
        """Create a schema.

        Args:
            columns: Ordered column specs.
            aliases: Optional extra names mapped to 0-based positions.
        """
        self._columns = tuple(columns)
        self._lookup: dict[str, int] = {}
        for position, column in enumerate(self._columns):
            self._lookup.setdefault(column.name.upper(), position)
        self._aliases: dict[str, int] = {}
        for alias, position in (aliases or {}).items():
            if not 0 <= position < len(self._columns):
                raise UnknownColumnError(
                    f"Alias '{alias}' points at column position {position + 1}, "
                    f"but the schema has {len(self._columns)} columns."
                )
            self._aliases.setdefault(alias.upper(), position)

    def __len__(self) -> int:
        return len(self._columns)

    def __iter__(self) -> Iterator[ColumnSpec]:
        return iter(self._columns)

    @property
    def names(self) -> tuple[str, ...]:
        """Column names in schema order."""
        return tuple(column.name for column in self._columns)

    @property
    def aliases(self) -> dict[str, int]:
        """Alias names (upper-cased) mapped to 0-based positions."""
        return dict(self._aliases)

    def column(self, position: int) -> ColumnSpec:
        """Return the column spec at a 0-based position."""
        return self._columns[position]

    def has_column(self, reference: ColumnRef) -> bool:
        """Return whether a reference resolves in this schema."""
        try:
            self.position(reference)
        except UnknownColumnError:
            return False
        return True

    def position(self, reference: ColumnRef) -> int:
        """Resolve a column reference into a 0-based position.

        Args:
            reference: Column name, alias, or 1-based column index.

        Returns:
            Position of the column within each row.

        Raises:
            UnknownColumnError: If the reference does not resolve.
        """
        if isinstance(reference, bool):
            raise UnknownColumnError(f"Invalid column reference {reference!r}.")
        if isinstance(reference, int):
            if 1 <= reference <= len(self._columns):
                return reference - 1
            raise UnknownColumnError(
                f"Column index {reference} is outside 1..{len(self._columns)}. "
                "Column indexes are 1-based."
            )
        key = str(reference).upper()
        if key in self._lookup:
            return self._lookup[key]
        if key in self._aliases:
            return self._aliases[key]
        raise UnknownColumnError(
            f"Unknown column '{reference}'. Available columns: {', '.join(self.names) or '-'}."
        )

    def canonical_name(self, reference: ColumnRef) -> str:
        """Return the schema name of the referenced column."""
        return self._columns[self.position(reference)].name
