"""Exported XML documents as tabular sources.

This module reads documents written by ``RowSetSnapshot.write_xml``
so an exported row set can be populated again.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from xml.etree import ElementTree

from core.constants import (
    XML_COLUMN_TAG,
    XML_CURRENT_ROW_TAG,
    XML_DATA_TAG,
    XML_INSERT_ROW_TAG,
    XML_METADATA_TAG,
    XML_MODIFY_ROW_TAG,
    XML_ROOT_TAG,
    XML_VALUE_TAG,
)
from core.errors import NoCurrentRowError, SourceReadError
from core.types import ColumnSpec
from rowset.schema import RowSetSchema
from rowset.values import parse_value

_ROW_TAGS = (XML_CURRENT_ROW_TAG, XML_MODIFY_ROW_TAG, XML_INSERT_ROW_TAG)


class XmlDocumentSource:
    """Forward-only source over the rows of an exported document."""

    def __init__(self, payload: bytes) -> None:
        """Parse an exported document.

        Args:
            payload: Encoded XML document.

        Raises:
            SourceReadError: If the document is malformed.
        """
        try:
            root = ElementTree.fromstring(payload)
        except ElementTree.ParseError as error:
            raise SourceReadError(
                f"Failed to parse row-set document: {error}. "
                "Provide a document produced by write_xml."
            ) from error
        if root.tag != XML_ROOT_TAG:
            raise SourceReadError(
                f"Unexpected root element <{root.tag}>: expected <{XML_ROOT_TAG}>."
            )
        self.label = root.get("label")
        self._schema = _parse_metadata(root)
        self._rows = _parse_rows(root, self._schema)
        self._index = -1

    @classmethod
    def from_path(cls, path: Path) -> "XmlDocumentSource":
        """Load a document from disk.

        Raises:
            SourceReadError: If the file cannot be read or parsed.
        """
        try:
            payload = path.read_bytes()
        except OSError as error:
            raise SourceReadError(
                f"Failed to read row-set document at {path}: {error}. Check the path."
            ) from error
        return cls(payload)

    def has_next(self) -> bool:
        return self._index + 1 < len(self._rows)

    def advance(self) -> None:
        if not self.has_next():
            raise SourceReadError("Document rows are exhausted. Check has_next before advance.")
        self._index += 1

    def get_by_name(self, name: str) -> Any:
        return self._current_row()[self._schema.position(name)]

    def get_by_index(self, index: int) -> Any:
        return self._current_row()[self._schema.position(index)]

    def schema(self) -> tuple[str, ...]:
        return self._schema.names

    def column_types(self) -> list[str]:
        return [column.type_label for column in self._schema]

    def _current_row(self) -> list[Any]:
        if self._index < 0:
            raise NoCurrentRowError("Document source is before its first row. Call advance first.")
        return self._rows[self._index]


def _parse_metadata(root: ElementTree.Element) -> RowSetSchema:
    """Read column specs from the metadata section.

    Args:
        root: Document root element.

    Returns:
        Schema ordered by the column ``index`` attribute.

    Raises:
        SourceReadError: If metadata is missing or inconsistent.
    """
    metadata = root.find(XML_METADATA_TAG)
    if metadata is None:
        raise SourceReadError(f"Row-set document has no <{XML_METADATA_TAG}> section.")
    indexed: list[tuple[int, ColumnSpec]] = []
    for element in metadata.findall(XML_COLUMN_TAG):
        name = element.get("name")
        try:
            index = int(element.get("index", ""))
        except ValueError as error:
            raise SourceReadError(
                f"Column '{name}' has an invalid index attribute in row-set metadata."
            ) from error
        if not name:
            raise SourceReadError(f"Column {index} has no name in row-set metadata.")
        indexed.append((index, ColumnSpec(name=name, type_label=element.get("type", "object"))))
    indexed.sort(key=lambda item: item[0])
    return RowSetSchema([column for _, column in indexed])


def _parse_rows(root: ElementTree.Element, schema: RowSetSchema) -> list[list[Any]]:
    """Decode every row element of the data section.

    Args:
        root: Document root element.
        schema: Parsed schema with type labels.

    Returns:
        Decoded rows in document order.

    Raises:
        SourceReadError: If a row has the wrong width or a bad value.
    """
    data = root.find(XML_DATA_TAG)
    if data is None:
        return []
    rows: list[list[Any]] = []
    for row_number, row_element in enumerate(data, 1):
        if row_element.tag not in _ROW_TAGS:
            raise SourceReadError(f"Unexpected <{row_element.tag}> element at row {row_number}.")
        value_elements = row_element.findall(XML_VALUE_TAG)
        if len(value_elements) != len(schema):
            raise SourceReadError(
                f"Row {row_number} has {len(value_elements)} values for {len(schema)} columns."
            )
        rows.append(
            [
                _parse_element_value(element, schema.column(position), row_number)
                for position, element in enumerate(value_elements)
            ]
        )
    return rows


def _parse_element_value(element: ElementTree.Element, column: ColumnSpec, row_number: int) -> Any:
    if element.get("null") == "true":
        return None
    try:
        return parse_value(element.text or "", column.type_label)
    except ValueError as error:
        raise SourceReadError(
            f"Invalid {column.type_label} value for column '{column.name}' at row {row_number}: "
            f"{error}."
        ) from error
