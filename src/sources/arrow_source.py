"""Apache Arrow tables as tabular sources.

This module lets snapshots populate from in-memory Arrow tables
and from Parquet or CSV files read through pyarrow.
"""

from __future__ import annotations

from collections import deque
from pathlib import Path
from typing import Any

from core.errors import NoCurrentRowError, RowkitDependencyError, SourceReadError
from core.types import ColumnSpec
from rowset.schema import RowSetSchema


class ArrowTableSource:
    """Forward-only source over the record batches of an Arrow table."""

    def __init__(self, table: Any) -> None:
        """Wrap an Arrow table.

        Args:
            table: ``pyarrow.Table`` to read.
        """
        self._table = table
        self._schema = RowSetSchema([ColumnSpec(name=str(name)) for name in table.column_names])
        self._batches = iter(table.to_batches())
        self._buffer: deque[tuple[Any, ...]] = deque()
        self._current: tuple[Any, ...] | None = None

    def has_next(self) -> bool:
        while not self._buffer:
            batch = next(self._batches, None)
            if batch is None:
                return False
            columns = [column.to_pylist() for column in batch.columns]
            self._buffer.extend(zip(*columns))
        return True

    def advance(self) -> None:
        if not self.has_next():
            raise SourceReadError("Arrow table is exhausted. Check has_next before advance.")
        self._current = self._buffer.popleft()

    def get_by_name(self, name: str) -> Any:
        return self._current_row()[self._schema.position(name)]

    def get_by_index(self, index: int) -> Any:
        return self._current_row()[self._schema.position(index)]

    def schema(self) -> tuple[str, ...]:
        return self._schema.names

    def column_types(self) -> list[str]:
        """Map Arrow field types onto row-set type labels."""
        pa = _import_pyarrow()
        labels: list[str] = []
        for field in self._table.schema:
            if pa.types.is_boolean(field.type):
                labels.append("bool")
            elif pa.types.is_integer(field.type):
                labels.append("int")
            elif pa.types.is_floating(field.type) or pa.types.is_decimal(field.type):
                labels.append("float")
            elif pa.types.is_string(field.type) or pa.types.is_large_string(field.type):
                labels.append("str")
            elif pa.types.is_binary(field.type) or pa.types.is_large_binary(field.type):
                labels.append("bytes")
            else:
                labels.append("object")
        return labels

    def _current_row(self) -> tuple[Any, ...]:
        if self._current is None:
            raise NoCurrentRowError("Arrow source is before its first row. Call advance first.")
        return self._current


def read_table_file(path: Path) -> ArrowTableSource:
    """Read a Parquet or CSV file into an Arrow source.

    Args:
        path: File path with a ``.parquet`` or ``.csv`` suffix.

    Returns:
        Source over the file's rows.

    Raises:
        RowkitDependencyError: If pyarrow is not installed.
        SourceReadError: If the file is missing, unsupported, or invalid.
    """
    pa = _import_pyarrow()
    suffix = path.suffix.lower()
    try:
        if suffix == ".parquet":
            import pyarrow.parquet as parquet

            table = parquet.read_table(path)
        elif suffix == ".csv":
            import pyarrow.csv as csv

            table = csv.read_csv(path)
        else:
            raise SourceReadError(
                f"Unsupported table file {path}: expected .parquet or .csv. "
                "Convert the file or load it into a pyarrow.Table first."
            )
    except (OSError, pa.ArrowInvalid) as error:
        raise SourceReadError(
            f"Failed to read table file {path}: {error}. Check the path and file format."
        ) from error
    return ArrowTableSource(table)


def _import_pyarrow() -> Any:
    """Import pyarrow on demand.

    Raises:
        RowkitDependencyError: If pyarrow is missing.
    """
    try:
        import pyarrow
    except ImportError as error:
        raise RowkitDependencyError(
            "Arrow sources require pyarrow, but it is not installed. "
            "Install pyarrow to populate row sets from Arrow tables or files."
        ) from error
    return pyarrow
