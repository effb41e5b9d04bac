"""Core constants used across Tabula modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

ID_FIELD = "_id"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0
DEFAULT_DELIMITER = ","
MIXED_TYPE = "mixed"
STRING_TYPE = "string"
BOOLEAN_TYPE = "boolean"
NUMBER_TYPE = "number"
TIME_TYPE = "time"
EVENT_ADD = "add"
EVENT_REMOVE = "remove"
EVENT_UPDATE = "update"
EVENT_CHANGE = "change"
SUPPORTED_EVENTS = (EVENT_ADD, EVENT_REMOVE, EVENT_UPDATE, EVENT_CHANGE)
SPREADSHEET_EXPORT_URL = "https://docs.google.com/spreadsheets/d/{key}/export?format=csv&gid={worksheet}"
DEFAULT_SPREADSHEET_WORKSHEET = "0"
SUPPORTED_FORMAT_HINTS = ("json", "strict", "delimited", "html")
