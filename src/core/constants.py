"""Core constants used across rowkit modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

DEFAULT_DATABASE_URL = "sqlite://"
DEFAULT_FETCH_SIZE = 100
DEFAULT_XML_INDENT = True
XML_ENCODING = "utf-8"
XML_ROOT_TAG = "rowSet"
XML_METADATA_TAG = "metadata"
XML_COLUMN_COUNT_TAG = "columnCount"
XML_COLUMN_TAG = "column"
XML_DATA_TAG = "data"
XML_VALUE_TAG = "columnValue"
XML_CURRENT_ROW_TAG = "currentRow"
XML_MODIFY_ROW_TAG = "modifyRow"
XML_INSERT_ROW_TAG = "insertRow"
JOIN_LABEL_PREFIX = "ROWSET"
ORDER_ITEMS_TABLE = "ORDER_ITEMS"
CLIENTS_TABLE = "CLIENTS"
MAX_CLIENTS = 3
ADDITIONAL_ITEM = 10
FIFTH_ROW = 5
