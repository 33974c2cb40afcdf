"""
Table writers.

    TableWriter - writes rows into a template (or fresh) worksheet
    RowWriter   - row-by-row writer returned by ``TableWriter.open_rows``
    StyleCache  - one style per destination column for a write operation
"""

from writers.style_cache import StyleCache
from writers.table import RowWriter, TableWriter

__all__ = ["RowWriter", "StyleCache", "TableWriter"]
