"""
openpyxl-backed grid access used by the table readers and writers.

    GridHandle  - an open workbook with 0-based, non-mutating cell lookup
    GridCell    - one cell folded into a small set of raw types
    CellStyle   - a detached style snapshot, reusable across cells
"""

from grid.cell import GridCell, RawCellType
from grid.styles import CellStyle, apply_style, clone_style
from grid.workbook import GridHandle, GridSource, open_for_read, open_for_write, opened

__all__ = [
    "GridCell",
    "RawCellType",
    "CellStyle",
    "apply_style",
    "clone_style",
    "GridHandle",
    "GridSource",
    "open_for_read",
    "open_for_write",
    "opened",
]
