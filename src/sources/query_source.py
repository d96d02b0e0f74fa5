"""Live query results as tabular sources.

This module runs SQL through SQLAlchemy and exposes the result as
a forward-only source that snapshots can populate from.
"""

from __future__ import annotations

from collections import deque
from typing import Any, Mapping

from sqlalchemy import text
from sqlalchemy.engine import Connection, CursorResult
from sqlalchemy.exc import SQLAlchemyError

from core.constants import DEFAULT_FETCH_SIZE
from core.errors import NoCurrentRowError, SourceReadError
from core.logging_config import get_logger
from core.types import ColumnSpec
from rowset.schema import RowSetSchema

_LOGGER = get_logger(__name__)


class QueryResultSource:
    """Forward-only view over a SQLAlchemy result.

    Rows are pulled from the driver in batches of ``fetch_size``.
    Driver failures surface as ``SourceReadError``.
    """

    def __init__(self, result: CursorResult[Any], fetch_size: int = DEFAULT_FETCH_SIZE) -> None:
        """Wrap a row-returning result.

        Args:
            result: SQLAlchemy result of a SELECT-like statement.
            fetch_size: Rows fetched from the driver per batch.

        Raises:
            SourceReadError: If the result does not return rows.
        """
        if not result.returns_rows:
            raise SourceReadError(
                "Statement returned no rows to read. Populate from a SELECT statement."
            )
        self._result = result
        self._fetch_size = fetch_size
        self._schema = RowSetSchema([ColumnSpec(name=str(name)) for name in result.keys()])
        self._buffer: deque[tuple[Any, ...]] = deque()
        self._current: tuple[Any, ...] | None = None
        self._exhausted = False

    def has_next(self) -> bool:
        if not self._buffer and not self._exhausted:
            self._fetch_batch()
        return bool(self._buffer)

    def advance(self) -> None:
        if not self.has_next():
            raise SourceReadError("Query result is exhausted. Check has_next before advance.")
        self._current = self._buffer.popleft()

    def get_by_name(self, name: str) -> Any:
        return self._current_row()[self._schema.position(name)]

    def get_by_index(self, index: int) -> Any:
        return self._current_row()[self._schema.position(index)]

    def schema(self) -> tuple[str, ...]:
        return self._schema.names

    def close(self) -> None:
        """Release the underlying driver cursor."""
        self._exhausted = True
        self._result.close()

    def _fetch_batch(self) -> None:
        """Pull the next batch of rows from the driver.

        Raises:
            SourceReadError: If the driver fails mid-stream.
        """
        try:
            batch = self._result.fetchmany(self._fetch_size)
        except SQLAlchemyError as error:
            raise SourceReadError(
                f"Failed to fetch query rows: {error}. "
                "Check the connection is still open and re-run the query."
            ) from error
        if not batch:
            self.close()
            return
        self._buffer.extend(tuple(row) for row in batch)

    def _current_row(self) -> tuple[Any, ...]:
        if self._current is None:
            raise NoCurrentRowError("Query source is before its first row. Call advance first.")
        return self._current


def run_query(
    connection: Connection,
    sql: str,
    params: Mapping[str, Any] | None = None,
    fetch_size: int = DEFAULT_FETCH_SIZE,
) -> QueryResultSource:
    """Execute SQL and wrap the result as a tabular source.

    Args:
        connection: Open SQLAlchemy connection.
        sql: SELECT statement text with ``:name`` parameters.
        params: Optional bound parameters.
        fetch_size: Rows fetched from the driver per batch.

    Returns:
        Source positioned before the first row.

    Raises:
        SourceReadError: If the statement fails or returns no rows.
    """
    try:
        result = connection.execute(text(sql), dict(params or {}))
    except SQLAlchemyError as error:
        raise SourceReadError(
            f"Failed to execute query '{sql}': {error}. Fix the statement and retry."
        ) from error
    _LOGGER.debug("query_executed", sql=sql)
    return QueryResultSource(result, fetch_size=fetch_size)

