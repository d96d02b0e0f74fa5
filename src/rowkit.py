"""Public SDK surface for rowkit.

This module provides a stable import path for library users.
It re-exports row sets, predicates, sources, and error types.
"""

from __future__ import annotations

from core.config import RowkitConfig
from core.errors import (
    CursorStateError,
    ExportError,
    NoCurrentRowError,
    OutOfRangeError,
    PredicateViolationError,
    RowkitConfigError,
    RowkitDatabaseError,
    RowkitDependencyError,
    RowkitError,
    SourceReadError,
    TypeMismatchError,
    UnknownColumnError,
)
from rowset.filtered_rowset import FilteredRowSet
from rowset.join_rowset import JoinRowSet
from rowset.predicates import ColumnEquals, ColumnRange, RowPredicate
from rowset.snapshot import RowSetSnapshot, populate_snapshot
from sources.arrow_source import ArrowTableSource, read_table_file
from sources.query_source import QueryResultSource, run_query
from sources.tabular_source import TabularSource
from sources.xml_source import XmlDocumentSource

__all__ = [
    "ArrowTableSource",
    "ColumnEquals",
    "ColumnRange",
    "CursorStateError",
    "ExportError",
    "FilteredRowSet",
    "JoinRowSet",
    "NoCurrentRowError",
    "OutOfRangeError",
    "PredicateViolationError",
    "QueryResultSource",
    "RowPredicate",
    "RowSetSnapshot",
    "RowkitConfig",
    "RowkitConfigError",
    "RowkitDatabaseError",
    "RowkitDependencyError",
    "RowkitError",
    "SourceReadError",
    "TabularSource",
    "TypeMismatchError",
    "UnknownColumnError",
    "XmlDocumentSource",
    "populate_snapshot",
    "read_table_file",
    "run_query",
]
