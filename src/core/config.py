"""Runtime configuration model for rowkit.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import DEFAULT_DATABASE_URL, DEFAULT_FETCH_SIZE, DEFAULT_XML_INDENT
from core.errors import RowkitConfigError

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass(frozen=True)
class RowkitConfig:
    """Validated runtime configuration.

    Attributes:
        database_url: SQLAlchemy URL of the database queries run against.
        fetch_size: Number of rows pulled from a live result per batch.
        xml_indent: Whether XML exports are pretty-printed.
    """

    database_url: str
    fetch_size: int
    xml_indent: bool

    @classmethod
    def from_env(cls) -> "RowkitConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            RowkitConfigError: If environment values are invalid.
        """
        database_url = os.getenv("ROWKIT_DATABASE_URL", DEFAULT_DATABASE_URL)
        fetch_size = _parse_fetch_size(os.getenv("ROWKIT_FETCH_SIZE", str(DEFAULT_FETCH_SIZE)))
        xml_indent = _parse_flag(
            "ROWKIT_XML_INDENT",
            os.getenv("ROWKIT_XML_INDENT", str(DEFAULT_XML_INDENT)),
        )
        return cls(
            database_url=database_url,
            fetch_size=fetch_size,
            xml_indent=xml_indent,
        )


def _parse_fetch_size(raw_value: str) -> int:
    """Parse the fetch size environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed positive batch size.

    Raises:
        RowkitConfigError: If value is not a positive integer.
    """
    try:
        fetch_size = int(raw_value)
    except ValueError as error:
        raise RowkitConfigError(
            "Invalid ROWKIT_FETCH_SIZE value: "
            f"expected integer, got '{raw_value}'. "
            "Set ROWKIT_FETCH_SIZE to a positive number."
        ) from error
    if fetch_size < 1:
        raise RowkitConfigError(
            f"Invalid ROWKIT_FETCH_SIZE value: {fetch_size} is not positive. "
            "Set ROWKIT_FETCH_SIZE to 1 or more."
        )
    return fetch_size


def _parse_flag(variable: str, raw_value: str) -> bool:
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise RowkitConfigError(
        f"Invalid {variable} value: expected true or false, got '{raw_value}'."
    )
