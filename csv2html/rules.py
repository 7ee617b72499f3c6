"""
Fixed rendering rules.

This file exists to keep the constants shared by the reader, the markup
builder and the HTTP surface in one place.
"""

DEFAULT_TITLE = "CSV to HTML"
DEFAULT_DELIMITER = ","
TAB = "\t"
TAB_TOKEN = "\\t"  # the two characters backslash + t, as typed on a shell
TAB_EXTENSIONS = (".tsv", ".tab")
FORBIDDEN_DELIMITERS = ("\r", "\n", '"')

LINK_PREFIXES = ("http://", "https://")
HEADER_CELL_CLASS = "header-cell-content"

WATCH_ROUTE = "/watch"
WATCH_ACK = "OK"
WATCH_LIVENESS_INTERVAL = 1.0  # seconds between observer thread checks
WATCH_JOIN_TIMEOUT = 2.0
WATCH_EVENT_TYPES = ("created", "modified", "moved", "deleted")
