"""Write-back of row-set changes through SQLAlchemy.

This module turns updated rows into UPDATE statements keyed on
their populated values and inserted rows into INSERT statements.
"""

from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import column, insert, table, update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.expression import TableClause

from core.errors import RowkitDatabaseError
from core.types import RowState
from rowset.row import StoredRow
from rowset.schema import RowSetSchema


def write_row_changes(
    connection: Connection,
    table_name: str,
    schema: RowSetSchema,
    rows: Sequence[StoredRow],
    key_positions: Sequence[int],
) -> int:
    """Execute one statement per changed row.

    Args:
        connection: Open connection. The caller owns the transaction.
        table_name: Table the row set was populated from.
        schema: Row-set schema; column names must match the table.
        rows: Rows to inspect, in row-set order.
        key_positions: 0-based positions identifying a row in the table.

    Returns:
        Number of rows written.

    Raises:
        RowkitDatabaseError: If a statement fails or an updated row no
            longer matches any table row.
    """
    target = table(table_name, *(column(spec.name) for spec in schema))
    written = 0
    for row_number, row in enumerate(rows, 1):
        if row.state is RowState.INSERTED:
            statement = insert(target).values(_row_mapping(schema, row.values))
            _execute(connection, statement, table_name)
        elif row.state is RowState.UPDATED:
            _update_row(connection, target, schema, row, key_positions, row_number)
        else:
            continue
        written += 1
    return written


def _update_row(
    connection: Connection,
    target: TableClause,
    schema: RowSetSchema,
    row: StoredRow,
    key_positions: Sequence[int],
    row_number: int,
) -> None:
    original = row.original if row.original is not None else row.values
    criteria = [
        target.c[schema.column(position).name] == original[position]
        for position in key_positions
    ]
    statement = update(target).where(*criteria).values(_row_mapping(schema, row.values))
    result = _execute(connection, statement, target.name)
    if result.rowcount == 0:
        raise RowkitDatabaseError(
            f"Row {row_number} no longer matches a row in {target.name}. "
            "Re-populate the row set and apply the change again."
        )


def _row_mapping(schema: RowSetSchema, values: list[Any]) -> dict[str, Any]:
    return {spec.name: value for spec, value in zip(schema, values)}


def _execute(connection: Connection, statement: Any, table_name: str) -> Any:
    try:
        return connection.execute(statement)
    except SQLAlchemyError as error:
        raise RowkitDatabaseError(
            f"Failed to write changes to {table_name}: {error}. "
            "Check the table exists and the row set columns match it."
        ) from error
