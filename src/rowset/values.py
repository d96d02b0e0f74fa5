"""Column value conversion helpers.

This module implements typed accessor conversions and the text
encoding used by XML export and import.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from core.errors import TypeMismatchError

_TRUE_TEXT = ("true", "t", "yes", "1")
_FALSE_TEXT = ("false", "f", "no", "0")


def infer_type_label(value: object) -> str:
    """Infer a schema type label from a sample value.

    Args:
        value: Non-null sample value.

    Returns:
        One of ``bool``, ``int``, ``float``, ``str``, ``bytes``, ``object``.
    """
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, (float, Decimal)):
        return "float"
    if isinstance(value, str):
        return "str"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "bytes"
    return "object"


def own_value(value: Any) -> Any:
    """Return a value safe to keep after the source is released."""
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    return value


def to_int(value: Any, column: str) -> int | None:
    """Convert a column value to ``int``.

    Raises:
        TypeMismatchError: If the value is not integral.
    """
    if value is None:
        return None
    if isinstance(value, (bool, int)):
        return int(value)
    if isinstance(value, (float, Decimal)):
        try:
            integral = int(value)
        except (OverflowError, ValueError) as error:
            raise _mismatch(value, column, "int") from error
        if integral != value:
            raise _mismatch(value, column, "int")
        return integral
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as error:
            raise _mismatch(value, column, "int") from error
    raise _mismatch(value, column, "int")


def to_float(value: Any, column: str) -> float | None:
    """Convert a column value to ``float``.

    Raises:
        TypeMismatchError: If the value is not numeric.
    """
    if value is None:
        return None
    if isinstance(value, (bool, int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as error:
            raise _mismatch(value, column, "float") from error
    raise _mismatch(value, column, "float")


def to_string(value: Any, column: str) -> str | None:
    """Convert a column value to ``str``.

    Raises:
        TypeMismatchError: If the value is binary data.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray, memoryview)):
        raise _mismatch(value, column, "str")
    return str(value)


def to_bool(value: Any, column: str) -> bool | None:
    """Convert a column value to ``bool``.

    Raises:
        TypeMismatchError: If the value is not a recognizable flag.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_TEXT:
            return True
        if normalized in _FALSE_TEXT:
            return False
    raise _mismatch(value, column, "bool")


def coerce_to_label(value: Any, type_label: str, column: str) -> Any:
    """Convert a value to the type a column declares.

    Args:
        value: Value about to be stored.
        type_label: Column type label from the schema.
        column: Column name used in error messages.

    Returns:
        Converted value. ``object`` columns keep the value unchanged.

    Raises:
        TypeMismatchError: If the value does not convert to the column type.
    """
    if value is None:
        return None
    if type_label == "int":
        return to_int(value, column)
    if type_label == "float":
        return to_float(value, column)
    if type_label == "str":
        return to_string(value, column)
    if type_label == "bool":
        return to_bool(value, column)
    if type_label == "bytes":
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value)
        raise _mismatch(value, column, "bytes")
    return own_value(value)


def format_value(value: Any) -> str:
    """Encode a non-null value as export text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    return str(value)


def parse_value(text: str, type_label: str) -> Any:
    """Decode export text using a column type label.

    Args:
        text: Encoded value text.
        type_label: Column type label from the export metadata.

    Returns:
        Decoded value.

    Raises:
        ValueError: If text does not match the type label.
    """
    if type_label == "int":
        return int(text)
    if type_label == "float":
        return float(text)
    if type_label == "bool":
        if text not in ("true", "false"):
            raise ValueError(f"expected true or false, got '{text}'")
        return text == "true"
    if type_label == "bytes":
        return bytes.fromhex(text)
    return text


def _mismatch(value: Any, column: str, target: str) -> TypeMismatchError:
    return TypeMismatchError(
        f"Value {value!r} in column '{column}' does not convert to {target}. "
        "Use a matching accessor or get_object."
    )
