"""Demonstration database bootstrap.

This module creates the SQLAlchemy engine and seeds the CLIENTS and
ORDER_ITEMS tables the walkthrough queries.
"""

from __future__ import annotations

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from core.config import RowkitConfig
from core.errors import RowkitDatabaseError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

SCHEMA_STATEMENTS = (
    "CREATE TABLE IF NOT EXISTS CLIENTS ("
    "ID INTEGER PRIMARY KEY, LOGIN VARCHAR(64) NOT NULL UNIQUE)",
    "CREATE TABLE IF NOT EXISTS ORDER_ITEMS ("
    "CLIENT_ID INTEGER NOT NULL REFERENCES CLIENTS(ID), "
    "ORDER_ID INTEGER NOT NULL, ITEM_ID INTEGER NOT NULL)",
)

DEMO_CLIENTS = (
    {"id": 1, "login": "alice"},
    {"id": 2, "login": "bob"},
    {"id": 3, "login": "carol"},
)

DEMO_ORDER_ITEMS = (
    {"client_id": 1, "order_id": 1, "item_id": 1},
    {"client_id": 1, "order_id": 1, "item_id": 2},
    {"client_id": 2, "order_id": 2, "item_id": 3},
    {"client_id": 3, "order_id": 3, "item_id": 4},
    {"client_id": 1, "order_id": 4, "item_id": 5},
    {"client_id": 3, "order_id": 5, "item_id": 6},
    {"client_id": 2, "order_id": 6, "item_id": 7},
)


def create_demo_engine(config: RowkitConfig) -> Engine:
    """Create the engine for the configured database URL.

    Args:
        config: Runtime configuration.

    Returns:
        SQLAlchemy engine.

    Raises:
        RowkitDatabaseError: If the URL cannot be used.
    """
    try:
        return create_engine(config.database_url)
    except (SQLAlchemyError, ValueError) as error:
        raise RowkitDatabaseError(
            f"Invalid database URL '{config.database_url}': {error}. "
            "Set ROWKIT_DATABASE_URL to a SQLAlchemy URL such as sqlite://."
        ) from error


def seed_demo_tables(engine: Engine) -> None:
    """Create the demonstration tables and load rows once.

    Args:
        engine: Target engine.

    Raises:
        RowkitDatabaseError: If a statement fails.
    """
    try:
        with engine.begin() as connection:
            for statement in SCHEMA_STATEMENTS:
                connection.execute(text(statement))
            if _table_has_rows(connection, "CLIENTS"):
                return
            connection.execute(
                text("INSERT INTO CLIENTS (ID, LOGIN) VALUES (:id, :login)"),
                list(DEMO_CLIENTS),
            )
            connection.execute(
                text(
                    "INSERT INTO ORDER_ITEMS (CLIENT_ID, ORDER_ID, ITEM_ID) "
                    "VALUES (:client_id, :order_id, :item_id)"
                ),
                list(DEMO_ORDER_ITEMS),
            )
    except SQLAlchemyError as error:
        raise RowkitDatabaseError(
            f"Failed to seed demonstration tables: {error}. "
            "Check the database URL points at a writable database."
        ) from error
    _LOGGER.info(
        "demo_tables_seeded",
        client_count=len(DEMO_CLIENTS),
        order_item_count=len(DEMO_ORDER_ITEMS),
    )


def _table_has_rows(connection: Connection, table: str) -> bool:
    count = connection.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar_one()
    return bool(count)
