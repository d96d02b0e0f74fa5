"""rowkit CLI entry points.
This module exposes the row-set demonstrations as commands.
It maps argparse commands onto snapshot, join, and filter calls.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from sqlalchemy.engine import Engine

from core.config import RowkitConfig
from core.constants import CLIENTS_TABLE, MAX_CLIENTS, ORDER_ITEMS_TABLE
from core.errors import ExportError, RowkitError
from demo.database import create_demo_engine, seed_demo_tables
from demo.walkthrough import (
    filter_client_orders,
    join_orders_with_clients,
    load_snapshot,
    run_walkthrough,
)

TABLE_CHOICES = (ORDER_ITEMS_TABLE, CLIENTS_TABLE)


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="rowkit", description="Disconnected row-set demos")
    parser.add_argument("--database-url", help="Override ROWKIT_DATABASE_URL for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_dump_command(subparsers)
    _add_join_command(subparsers)
    _add_filter_command(subparsers)
    _add_export_command(subparsers)
    subparsers.add_parser("demo", help="Run every demonstration in sequence")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the rowkit CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = _build_config(args.database_url)
        engine = create_demo_engine(config)
        seed_demo_tables(engine)
        return _dispatch(parser, args, engine, config)
    except RowkitError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1


def _dispatch(
    parser: argparse.ArgumentParser,
    args: argparse.Namespace,
    engine: Engine,
    config: RowkitConfig,
) -> int:
    """Route parsed args to a command handler.

    Returns:
        Exit code.
    """
    if args.command == "dump":
        return _run_dump_command(engine, config, args)
    if args.command == "join":
        return _run_join_command(engine, config)
    if args.command == "filter":
        return _run_filter_command(engine, config, args)
    if args.command == "export":
        return _run_export_command(engine, config, args)
    if args.command == "demo":
        run_walkthrough(engine, config, sys.stdout)
        return 0
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_config(database_url: str | None) -> RowkitConfig:
    """Build config with optional database URL override.

    Args:
        database_url: Optional override URL.

    Returns:
        Validated config.
    """
    config = RowkitConfig.from_env()
    if database_url:
        config = replace(config, database_url=database_url)
    return config


def _run_dump_command(engine: Engine, config: RowkitConfig, args: argparse.Namespace) -> int:
    """Handle dump command.

    Args:
        engine: Seeded engine.
        config: Runtime config.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    with engine.connect() as connection:
        snapshot = load_snapshot(connection, config, args.table)
    print("\t".join(snapshot.column_names))
    for row in snapshot.to_dicts():
        print("\t".join(_format_cell(value) for value in row.values()))
    return 0


def _run_join_command(engine: Engine, config: RowkitConfig) -> int:
    """Handle join command.

    Args:
        engine: Seeded engine.
        config: Runtime config.

    Returns:
        Exit code.
    """
    with engine.connect() as connection:
        joined = join_orders_with_clients(connection, config)
    while joined.next():
        print(f"client={joined.get_string('LOGIN')}, order={joined.get_int('ORDER_ID')}")
    return 0


def _run_filter_command(engine: Engine, config: RowkitConfig, args: argparse.Namespace) -> int:
    """Handle filter command.

    Args:
        engine: Seeded engine.
        config: Runtime config.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    with engine.connect() as connection:
        filtered = filter_client_orders(connection, config, client_id=args.client_id)
    while filtered.next():
        print(
            f"client={filtered.get_int('CLIENT_ID')}, "
            f"order={filtered.get_int('ORDER_ID')}, "
            f"item={filtered.get_int('ITEM_ID')}"
        )
    return 0


def _run_export_command(engine: Engine, config: RowkitConfig, args: argparse.Namespace) -> int:
    """Handle export command.

    Args:
        engine: Seeded engine.
        config: Runtime config.
        args: Parsed CLI args.

    Returns:
        Exit code.

    Raises:
        ExportError: If the output file cannot be opened.
    """
    with engine.connect() as connection:
        snapshot = load_snapshot(connection, config, args.table)
    if args.output is None:
        snapshot.write_xml(sys.stdout.buffer, indent=config.xml_indent)
        return 0
    output_path = Path(args.output).expanduser()
    try:
        with output_path.open("wb") as sink:
            snapshot.write_xml(sink, indent=config.xml_indent)
    except OSError as error:
        raise ExportError(
            f"Failed to open export file {output_path}: {error}. "
            "Check the directory exists and is writable."
        ) from error
    print(output_path)
    return 0


def _format_cell(value: Any) -> str:
    return "NULL" if value is None else str(value)


def _add_dump_command(subparsers: Any) -> None:
    """Register dump subcommand."""
    parser = subparsers.add_parser("dump", help="Print every row of a table snapshot")
    parser.add_argument("--table", default=ORDER_ITEMS_TABLE, choices=TABLE_CHOICES)


def _add_join_command(subparsers: Any) -> None:
    """Register join subcommand."""
    subparsers.add_parser("join", help="Join order items with client logins")


def _add_filter_command(subparsers: Any) -> None:
    """Register filter subcommand."""
    parser = subparsers.add_parser("filter", help="Show the order items of one client")
    parser.add_argument(
        "--client-id",
        type=int,
        default=MAX_CLIENTS,
        help="Client whose order items stay visible",
    )


def _add_export_command(subparsers: Any) -> None:
    """Register export subcommand."""
    parser = subparsers.add_parser("export", help="Write a table snapshot as XML")
    parser.add_argument("--table", default=ORDER_ITEMS_TABLE, choices=TABLE_CHOICES)
    parser.add_argument("--output", help="Output file path; stdout when omitted")
