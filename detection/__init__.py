"""
Table location and header checks.

    TableBoundsResolver - start row (configured or found by marker label)
                          and column count (configured or scanned)
    HeaderValidator     - header-row shape and label checks
"""

from detection.bounds import TableBounds, TableBoundsResolver
from detection.header import HeaderValidator

__all__ = [
    "TableBounds",
    "TableBoundsResolver",
    "HeaderValidator",
]
