"""
Locates a table inside a worksheet.

The table's start column is always configured.  Its start row is either
configured or found by looking for the header's marker label in the start
column within the first ``MARKER_SCAN_ROWS`` rows.  Its width is either
configured or counted by scanning right from the first table cell until a
missing or empty cell.

Public geometry is 1-based; everything this module returns is 0-based.
For a transposed table, rows and columns here are the table's own, and
the handle swaps them when it touches the sheet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from openpyxl.worksheet.worksheet import Worksheet

from detection.constants import MARKER_SCAN_ROWS
from dto.geometry import TableGeometry
from dto.header import HeaderSpec
from errors import ColumnSizeZeroError, MarkerNotFoundError
from grid.cell import RawCellType
from grid.workbook import GridHandle

if TYPE_CHECKING:
    from extractors.cell_normalizer import ValueKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableBounds:
    """Resolved, 0-based position and extent of a table."""

    row0: int
    col0: int
    column_count: int
    row_count: Optional[int] = None
    transposed: bool = False


class TableBoundsResolver:

    def __init__(self, handle: GridHandle, values: ValueKind):
        self.handle = handle
        self.values = values

    def resolve(
        self,
        ws: Worksheet,
        geometry: TableGeometry,
        header: HeaderSpec,
        *,
        column_count: Optional[int] = None,
        ignore_configured_size: bool = False,
    ) -> TableBounds:
        row0 = self.resolve_start_row(ws, geometry, header)
        col0 = geometry.column0()
        configured = column_count if column_count is not None else geometry.column_count
        width = self.resolve_column_count(
            ws,
            row0,
            col0,
            configured,
            ignore_configured_size=ignore_configured_size,
            transposed=geometry.transposed,
        )
        bounds = TableBounds(
            row0=row0,
            col0=col0,
            column_count=width,
            row_count=geometry.row_count,
            transposed=geometry.transposed,
        )
        logger.debug("Sheet '%s': resolved table bounds %s", ws.title, bounds)
        return bounds

    def resolve_start_row(
        self, ws: Worksheet, geometry: TableGeometry, header: HeaderSpec
    ) -> int:
        if geometry.start_row is not None:
            return geometry.row0()

        label = header.marker_label()
        col0 = geometry.column0()
        for row0 in range(MARKER_SCAN_ROWS):
            cell = self.handle.get_cell(ws, row0, col0, transposed=geometry.transposed)
            if cell is None:
                continue
            if cell.raw_type is RawCellType.FORMULA:
                # Cells above the table are not read; an uncalculated one is no marker.
                if not cell.has_formula_result:
                    continue
                cell = cell.formula_result()
            if cell.as_string() == label:
                logger.info(
                    "Sheet '%s': found '%s' at row %d", ws.title, label, row0 + 1
                )
                return row0

        raise MarkerNotFoundError(ws.title, label, geometry.start_column, MARKER_SCAN_ROWS)

    def resolve_column_count(
        self,
        ws: Worksheet,
        row0: int,
        col0: int,
        configured: Optional[int] = None,
        *,
        ignore_configured_size: bool = False,
        transposed: bool = False,
    ) -> int:
        if configured is not None and not ignore_configured_size:
            return configured

        col = col0
        while True:
            cell = self.handle.get_cell(ws, row0, col, transposed=transposed)
            if cell is None or self.values.is_empty(self.values.extract(cell, col + 1)):
                break
            col += 1

        size = col - col0
        if size == 0:
            sheet_row, sheet_col = (col0, row0) if transposed else (row0, col0)
            raise ColumnSizeZeroError(ws.title, sheet_row + 1, sheet_col + 1)
        return size
