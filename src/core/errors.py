"""rowkit exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each row-set operation raises a specific error type for debuggability.
"""

from __future__ import annotations


class RowkitError(Exception):
    """Base exception for all rowkit failures."""


class RowkitConfigError(RowkitError):
    """Raised for invalid runtime configuration."""


class RowkitDependencyError(RowkitError):
    """Raised when an optional runtime dependency is missing."""


class SourceReadError(RowkitError):
    """Raised when a tabular source fails while populating a snapshot."""


class OutOfRangeError(RowkitError):
    """Raised when an absolute row position is outside the row set."""


class NoCurrentRowError(RowkitError):
    """Raised when the cursor is not positioned on a row."""


class UnknownColumnError(RowkitError):
    """Raised when a column name or index is not in the schema."""


class TypeMismatchError(RowkitError):
    """Raised when a value does not convert to the requested type."""


class ExportError(RowkitError):
    """Raised when a row set cannot be written to an export sink."""


class CursorStateError(RowkitError):
    """Raised when an operation is not allowed in the current cursor mode."""


class PredicateViolationError(RowkitError):
    """Raised when a staged value is rejected by a filter predicate."""


class RowkitDatabaseError(RowkitError):
    """Raised when demonstration tables cannot be created or seeded."""
