"""XML serialization for row sets.

This module renders a schema and rows into a self-describing
document: column metadata first, then one element per row whose
tag names the row's lifecycle state.
"""

from __future__ import annotations

import re
from typing import Any, Iterable
from xml.etree import ElementTree

from core.constants import (
    XML_COLUMN_COUNT_TAG,
    XML_COLUMN_TAG,
    XML_CURRENT_ROW_TAG,
    XML_DATA_TAG,
    XML_ENCODING,
    XML_INSERT_ROW_TAG,
    XML_METADATA_TAG,
    XML_MODIFY_ROW_TAG,
    XML_ROOT_TAG,
    XML_VALUE_TAG,
)
from core.errors import ExportError
from core.types import RowState
from rowset.row import StoredRow
from rowset.schema import RowSetSchema
from rowset.values import format_value

_ILLEGAL_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

ROW_TAGS = {
    RowState.UNMODIFIED: XML_CURRENT_ROW_TAG,
    RowState.UPDATED: XML_MODIFY_ROW_TAG,
    RowState.INSERTED: XML_INSERT_ROW_TAG,
}


def render_row_set_xml(
    schema: RowSetSchema,
    rows: Iterable[StoredRow],
    label: str | None = None,
    indent: bool = True,
) -> bytes:
    """Render a row set as an XML document.

    Args:
        schema: Row-set schema.
        rows: Rows to serialize, in order.
        label: Optional row-set label stored on the root element.
        indent: Whether to pretty-print the document.

    Returns:
        UTF-8 encoded document including the XML declaration.

    Raises:
        ExportError: If a label, name, or value holds characters XML cannot carry.
    """
    root = ElementTree.Element(XML_ROOT_TAG)
    if label:
        root.set("label", _checked_text(label, "row-set label"))
    metadata = ElementTree.SubElement(root, XML_METADATA_TAG)
    ElementTree.SubElement(metadata, XML_COLUMN_COUNT_TAG).text = str(len(schema))
    for index, column in enumerate(schema, 1):
        ElementTree.SubElement(
            metadata,
            XML_COLUMN_TAG,
            index=str(index),
            name=_checked_text(column.name, "column name"),
            type=column.type_label,
        )
    data = ElementTree.SubElement(root, XML_DATA_TAG)
    for row in rows:
        row_element = ElementTree.SubElement(data, ROW_TAGS[row.state])
        for value in row.values:
            _append_value(row_element, value)
    if indent:
        ElementTree.indent(root)
    payload = ElementTree.tostring(root, encoding=XML_ENCODING, xml_declaration=True)
    # Parsers fold raw carriage returns into newlines.
    return payload.replace(b"\r", b"&#13;")


def write_row_set_xml(
    sink: Any,
    schema: RowSetSchema,
    rows: Iterable[StoredRow],
    label: str | None = None,
    indent: bool = True,
) -> int:
    """Write a rendered row set to a byte sink.

    Args:
        sink: Object exposing ``write(bytes)``.
        schema: Row-set schema.
        rows: Rows to serialize.
        label: Optional row-set label.
        indent: Whether to pretty-print the document.

    Returns:
        Number of bytes written.

    Raises:
        ExportError: If the sink rejects the payload.
    """
    payload = render_row_set_xml(schema, rows, label=label, indent=indent)
    try:
        written = sink.write(payload)
        flush = getattr(sink, "flush", None)
        if callable(flush):
            flush()
    except Exception as error:
        raise ExportError(
            f"Failed to write row set '{label or '-'}' to export sink: {error}. "
            "Pass a writable binary sink and retry the export."
        ) from error
    if isinstance(written, int) and not isinstance(written, bool) and written < len(payload):
        raise ExportError(
            f"Export sink accepted {written} of {len(payload)} bytes for row set "
            f"'{label or '-'}'. Use a sink that writes the whole payload."
        )
    return len(payload)


def _append_value(row_element: ElementTree.Element, value: Any) -> None:
    value_element = ElementTree.SubElement(row_element, XML_VALUE_TAG)
    if value is None:
        value_element.set("null", "true")
        return
    value_element.text = _checked_text(format_value(value), "column value")


def _checked_text(text: str, what: str) -> str:
    match = _ILLEGAL_XML_CHARS.search(text)
    if match:
        raise ExportError(
            f"Cannot export {what} {text!r}: character {match.group()!r} is not allowed in XML. "
            "Remove control characters before exporting."
        )
    return text
