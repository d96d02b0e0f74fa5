"""Row-set demonstration sequence.

This module runs each access pattern against the seeded tables:
a live query, snapshot edits saved back to the table, an insert
followed by a reload, a join, a filter, an XML export, and a cached
snapshot read after its connection closed.
"""

from __future__ import annotations

import io
from typing import Any, TextIO

from sqlalchemy.engine import Connection, Engine

from core.config import RowkitConfig
from core.constants import (
    ADDITIONAL_ITEM,
    CLIENTS_TABLE,
    FIFTH_ROW,
    MAX_CLIENTS,
    ORDER_ITEMS_TABLE,
)
from core.logging_config import get_logger
from rowset.filtered_rowset import FilteredRowSet
from rowset.join_rowset import JoinRowSet
from rowset.predicates import ColumnEquals
from rowset.snapshot import RowSetSnapshot
from sources.query_source import run_query

_LOGGER = get_logger(__name__)

SELECT_ORDER_ITEMS = f"SELECT * FROM {ORDER_ITEMS_TABLE}"
ORDER_ITEM_KEY = ("CLIENT_ID", "ORDER_ID", "ITEM_ID")


def read_order_items(connection: Connection, config: RowkitConfig) -> list[dict[str, Any]]:
    """Read ORDER_ITEMS straight from a live query result.

    Args:
        connection: Open connection.
        config: Runtime configuration.

    Returns:
        One dictionary per row in result order.
    """
    source = run_query(connection, SELECT_ORDER_ITEMS, fetch_size=config.fetch_size)
    rows: list[dict[str, Any]] = []
    while source.has_next():
        source.advance()
        rows.append(
            {
                "CLIENT_ID": source.get_by_name("CLIENT_ID"),
                "ORDER_ID": source.get_by_name("ORDER_ID"),
                "ITEM_ID": source.get_by_name("ITEM_ID"),
            }
        )
    return rows


def load_snapshot(
    connection: Connection,
    config: RowkitConfig,
    table: str,
) -> RowSetSnapshot:
    """Populate a snapshot with every row of a table.

    Args:
        connection: Open connection.
        config: Runtime configuration.
        table: Table name, also used as the snapshot label.

    Returns:
        Populated snapshot.
    """
    snapshot = RowSetSnapshot(label=table)
    snapshot.populate(run_query(connection, f"SELECT * FROM {table}", fetch_size=config.fetch_size))
    return snapshot


def update_order_items(connection: Connection, config: RowkitConfig) -> int:
    """Move the fifth order item to client 2, append one item, and save both.

    Args:
        connection: Open connection. The changes are committed on it.
        config: Runtime configuration.

    Returns:
        Number of rows written to ORDER_ITEMS.
    """
    snapshot = load_snapshot(connection, config, ORDER_ITEMS_TABLE)
    snapshot.absolute(FIFTH_ROW)
    snapshot.update_int("CLIENT_ID", 2)
    snapshot.update_row()

    snapshot.move_to_insert_row()
    snapshot.update_int("CLIENT_ID", 1)
    snapshot.update_int("ORDER_ID", 1)
    snapshot.update_int("ITEM_ID", ADDITIONAL_ITEM)
    snapshot.insert_row()
    written = snapshot.accept_changes(connection, key_columns=ORDER_ITEM_KEY)
    connection.commit()
    return written


def insert_and_reload(connection: Connection, config: RowkitConfig) -> RowSetSnapshot:
    """Insert one more item through a row set, then re-run its query.

    Args:
        connection: Open connection. The insert is committed on it.
        config: Runtime configuration.

    Returns:
        Row set refreshed from ORDER_ITEMS after the insert.
    """
    snapshot = load_snapshot(connection, config, ORDER_ITEMS_TABLE)
    snapshot.move_to_insert_row()
    snapshot.update_int("CLIENT_ID", 1)
    snapshot.update_int("ORDER_ID", 1)
    snapshot.update_int("ITEM_ID", ADDITIONAL_ITEM + 1)
    snapshot.insert_row()
    snapshot.accept_changes(connection, key_columns=ORDER_ITEM_KEY)
    connection.commit()

    snapshot.populate(run_query(connection, SELECT_ORDER_ITEMS, fetch_size=config.fetch_size))
    return snapshot


def cache_order_items(engine: Engine, config: RowkitConfig) -> RowSetSnapshot:
    """Populate a snapshot and close its connection before returning.

    Args:
        engine: Database engine.
        config: Runtime configuration.

    Returns:
        Snapshot that no longer depends on any connection.
    """
    with engine.connect() as connection:
        snapshot = load_snapshot(connection, config, ORDER_ITEMS_TABLE)
    _LOGGER.info("snapshot_disconnected", label=snapshot.label, row_count=snapshot.size())
    return snapshot


def join_orders_with_clients(connection: Connection, config: RowkitConfig) -> JoinRowSet:
    """Join ORDER_ITEMS with CLIENTS on CLIENT_ID = ID.

    Args:
        connection: Open connection.
        config: Runtime configuration.

    Returns:
        Joined row set.
    """
    orders = load_snapshot(connection, config, ORDER_ITEMS_TABLE)
    clients = load_snapshot(connection, config, CLIENTS_TABLE)
    joined = JoinRowSet(label="CLIENT_ORDERS")
    joined.add_row_set(orders, "CLIENT_ID")
    joined.add_row_set(clients, "ID")
    return joined


def filter_client_orders(
    connection: Connection,
    config: RowkitConfig,
    client_id: int = MAX_CLIENTS,
) -> FilteredRowSet:
    """Show only the order items of one client.

    Args:
        connection: Open connection.
        config: Runtime configuration.
        client_id: Client whose rows stay visible.

    Returns:
        Filtered row set over all order items.
    """
    filtered = FilteredRowSet(ColumnEquals("CLIENT_ID", client_id), label=ORDER_ITEMS_TABLE)
    filtered.populate(run_query(connection, SELECT_ORDER_ITEMS, fetch_size=config.fetch_size))
    return filtered


def export_table(connection: Connection, config: RowkitConfig, table: str, sink: Any) -> int:
    """Write a table snapshot as XML to a byte sink.

    Args:
        connection: Open connection.
        config: Runtime configuration.
        table: Table to export.
        sink: Object exposing ``write(bytes)``.

    Returns:
        Number of bytes written.
    """
    snapshot = load_snapshot(connection, config, table)
    return snapshot.write_xml(sink, indent=config.xml_indent)


def current_order_item(row_set: RowSetSnapshot) -> dict[str, Any]:
    """Read the order item under the cursor of a row set."""
    return {name: row_set.get_int(name) for name in ("CLIENT_ID", "ORDER_ID", "ITEM_ID")}


def format_order_item(row: dict[str, Any]) -> str:
    return f"client={row['CLIENT_ID']}, order={row['ORDER_ID']}, item={row['ITEM_ID']}"


def run_walkthrough(engine: Engine, config: RowkitConfig, out: TextIO) -> None:
    """Run every demonstration step and print the results.

    Args:
        engine: Seeded database engine.
        config: Runtime configuration.
        out: Text stream receiving the report.
    """
    with engine.connect() as connection:
        print(f"Dumping {ORDER_ITEMS_TABLE} table:", file=out)
        for row in read_order_items(connection, config):
            print(format_order_item(row), file=out)

        update_order_items(connection, config)
        print(f"Dumping {ORDER_ITEMS_TABLE} table:", file=out)
        for row in read_order_items(connection, config):
            print(format_order_item(row), file=out)

        reloaded = insert_and_reload(connection, config)
        print(f"Dumping {ORDER_ITEMS_TABLE} table using row set:", file=out)
        while reloaded.next():
            print(format_order_item(current_order_item(reloaded)), file=out)

        joined = join_orders_with_clients(connection, config)
        print("Dumping client logins and their items:", file=out)
        while joined.next():
            print(
                f"client={joined.get_string('LOGIN')}, order={joined.get_int('ORDER_ID')}",
                file=out,
            )

        filtered = filter_client_orders(connection, config)
        print(f"Dumping only client {MAX_CLIENTS} from {ORDER_ITEMS_TABLE}:", file=out)
        while filtered.next():
            print(format_order_item(current_order_item(filtered)), file=out)

        buffer = io.BytesIO()
        export_table(connection, config, ORDER_ITEMS_TABLE, buffer)
        print(buffer.getvalue().decode("utf-8"), file=out)

    cached = cache_order_items(engine, config)
    print(f"Dumping {ORDER_ITEMS_TABLE} without db connection:", file=out)
    while cached.next():
        print(format_order_item(current_order_item(cached)), file=out)
