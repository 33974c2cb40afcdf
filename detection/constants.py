import os

from typing import Literal

# Rows searched (from the top of the sheet) for a table's marker label.
MARKER_SCAN_ROWS = 100

# Hard ceiling on the 0-based row index reached while scanning a table body.
MAX_SCAN_ROWS = 10_000

# strftime pattern for cells whose number format is a date / time format.
DEFAULT_DATE_FORMAT: str = os.getenv("TABLE_DATE_FORMAT", "%Y-%m-%d")

NO_DATA_POLICY: Literal["absent", "empty_string"] = os.getenv(
    "TABLE_NO_DATA_POLICY", "absent"
).lower()

SUPPRESS_NUMBER_WARNINGS: bool = os.getenv(
    "TABLE_SUPPRESS_NUMBER_WARNINGS", "false"
).lower() in ("1", "true", "yes")
