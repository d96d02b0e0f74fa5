"""Unit tests for SQLAlchemy query sources."""

from __future__ import annotations

from typing import Iterator

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection

from core.errors import NoCurrentRowError, SourceReadError
from rowset.snapshot import populate_snapshot
from sources.query_source import run_query


@pytest.fixture
def connection() -> Iterator[Connection]:
    engine = create_engine("sqlite://")
    with engine.connect() as open_connection:
        open_connection.execute(text("CREATE TABLE ITEMS (ID INTEGER, NAME VARCHAR(16))"))
        open_connection.execute(
            text("INSERT INTO ITEMS (ID, NAME) VALUES (:id, :name)"),
            [{"id": 1, "name": "bolt"}, {"id": 2, "name": "nut"}, {"id": 3, "name": None}],
        )
        yield open_connection
    engine.dispose()


def test_query_source_reads_rows_across_fetch_batches(connection: Connection) -> None:
    """Rows should stream in order even when fetched one at a time."""
    source = run_query(connection, "SELECT ID, NAME FROM ITEMS ORDER BY ID", fetch_size=1)

    snapshot = populate_snapshot(source)

    assert snapshot.to_dicts() == [
        {"ID": 1, "NAME": "bolt"},
        {"ID": 2, "NAME": "nut"},
        {"ID": 3, "NAME": None},
    ]


def test_query_source_binds_parameters(connection: Connection) -> None:
    """Named parameters should be passed to the statement."""
    source = run_query(connection, "SELECT NAME FROM ITEMS WHERE ID = :id", {"id": 2})

    source.advance()

    assert source.get_by_name("name") == "nut" and source.get_by_index(1) == "nut"


def test_query_source_requires_advance_before_reading(connection: Connection) -> None:
    """Reading before the first row should fail."""
    source = run_query(connection, "SELECT ID FROM ITEMS")

    with pytest.raises(NoCurrentRowError):
        source.get_by_name("ID")

    assert source.schema() == ("ID",)


def test_run_query_wraps_statement_errors(connection: Connection) -> None:
    """Invalid SQL should surface as a source read error."""
    with pytest.raises(SourceReadError):
        run_query(connection, "SELECT * FROM MISSING_TABLE")


def test_run_query_rejects_statements_without_rows(connection: Connection) -> None:
    """Statements that return no result set cannot be populated from."""
    with pytest.raises(SourceReadError):
        run_query(connection, "UPDATE ITEMS SET NAME = 'washer' WHERE ID = 3")
