"""
Writes a table into a worksheet.

Pipeline:
  1. Open the template workbook (or create a fresh one with the sheet).
  2. Locate the table the same way the reader does and, for a labelled
     table, check the destination's header against the labels so a
     table of the wrong shape is never overwritten.
  3. Write body rows below the header: values only (never formulas),
     with styles drawn from a per-column ``StyleCache``.  Text that
     spells a number can be stored as one so the sheet's formulas use it.
  4. Optionally mark the workbook for recalculation and check that its
     formulas still evaluate.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple, Union

from openpyxl import Workbook
from openpyxl.cell.cell import Cell
from openpyxl.worksheet.worksheet import Worksheet

from detection.bounds import TableBoundsResolver
from detection.header import HeaderValidator
from dto.geometry import TableGeometry
from dto.header import FreeFormHeader, HeaderSpec
from errors import FormulaNotEvaluatedError, TableConfigurationError
from extractors.cell_normalizer import CellNormalizer, string_values
from grid.cell import GridCell, RawCellType
from grid.formula_values import FormulaInputs, compute_formula_values, prepare_formula_input
from grid.styles import CellStyle, apply_style, clone_style
from grid.workbook import GridHandle, open_for_write
from writers.style_cache import StyleCache, StyleCloner

logger = logging.getLogger(__name__)

WriteTarget = Union[Workbook, GridHandle]


def _source_value(source: Any) -> Tuple[Any, Optional[Cell]]:
    """Split a row item into (value to write, cell to take the style from)."""
    if isinstance(source, GridCell):
        if source.raw_type is RawCellType.FORMULA:
            return source.formula_result().value, source.native
        return source.value, source.native
    if isinstance(source, Cell):
        if source.data_type == "f":
            # A bare openpyxl cell knows its formula but not its result.
            title = source.parent.title if source.parent is not None else ""
            raise FormulaNotEvaluatedError(title, source.coordinate, str(source.value))
        return source.value, source
    return source, None


def _write_value(dest: Cell, value: Any) -> None:
    dest.value = value
    # "=..." text would otherwise be stored as a formula.
    if dest.data_type == "f":
        dest.data_type = "s"


# =====================================================================
# RowWriter
# =====================================================================


class RowWriter:
    """Writes rows one at a time, top to bottom, sharing one StyleCache."""

    def __init__(
        self,
        ws: Worksheet,
        row0: int,
        col0: int,
        styles: StyleCache,
        *,
        transposed: bool = False,
        formula_inputs: Optional[FormulaInputs] = None,
    ):
        self.ws = ws
        self.row0 = row0
        self.col0 = col0
        self.styles = styles
        self.transposed = transposed
        self.formula_inputs = formula_inputs
        self.rows_written = 0

    def write(self, row: Sequence[Any]) -> None:
        for offset, source in enumerate(row):
            value, style_source = _source_value(source)
            dest = GridHandle.ensure_cell(
                self.ws, self.row0, self.col0 + offset, transposed=self.transposed
            )
            _write_value(dest, value)

            style = self.styles.style_for(offset, style_source)
            if style is not None:
                apply_style(dest, style)
            # After the style: a text number format keeps the value as text.
            if self.formula_inputs is not None:
                prepare_formula_input(dest, self.formula_inputs)

        self.row0 += 1
        self.rows_written += 1

    def __enter__(self) -> "RowWriter":
        return self

    def __exit__(self, *exc_info) -> None:
        logger.info(
            "  -> %d row(s) written to sheet '%s'", self.rows_written, self.ws.title
        )


# =====================================================================
# TableWriter
# =====================================================================


class TableWriter:

    def __init__(
        self,
        geometry: TableGeometry,
        header: Optional[HeaderSpec] = None,
        *,
        column_styles: Optional[Dict[int, CellStyle]] = None,
        copies_data_format_only: bool = False,
        clone: StyleCloner = clone_style,
        formula_inputs: Optional[FormulaInputs] = None,
        recalculates_formulas: bool = False,
    ):
        self.geometry = geometry
        self.header: HeaderSpec = header if header is not None else FreeFormHeader()
        self.column_styles = dict(column_styles or {})
        self.copies_data_format_only = copies_data_format_only
        self.clone = clone
        self.formula_inputs = formula_inputs
        self.recalculates_formulas = recalculates_formulas

        if geometry.start_row is None and self.header.number_of_header_lines == 0:
            raise TableConfigurationError(
                f"Sheet '{geometry.sheet_name}': a free-form table needs an explicit start_row"
            )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def write(
        self,
        template: Optional[Union[str, Path]],
        destination: Union[str, Path],
        rows: Iterable[Sequence[Any]],
    ) -> int:
        """
        Write *rows* into a copy of *template* (or a fresh workbook when
        *template* is None) and save it as *destination*.  Returns the
        number of rows written.

        With ``recalculates_formulas`` the saved workbook asks Excel to
        recalculate on open, and is evaluated once here so a formula that
        no longer computes fails the write.
        """
        handle = open_for_write(template, self.geometry.sheet_name)
        try:
            if template is None:
                self._write_header_labels(handle.require_sheet(self.geometry.sheet_name))
            count = self.write_to(handle, rows)
            if self.recalculates_formulas:
                handle.workbook.calculation.fullCalcOnLoad = True
            handle.save(destination)
        finally:
            handle.close()

        if self.recalculates_formulas:
            compute_formula_values(str(destination))
        return count

    def write_to(self, target: WriteTarget, rows: Iterable[Sequence[Any]]) -> int:
        with self.open_rows(target) as writer:
            for row in rows:
                writer.write(row)
        return writer.rows_written

    def open_rows(self, target: WriteTarget) -> RowWriter:
        """Check the destination header and return a row-by-row writer."""
        handle = target if isinstance(target, GridHandle) else GridHandle(target, owned=False)
        ws = handle.require_sheet(self.geometry.sheet_name)

        resolver = TableBoundsResolver(handle, self._header_values())
        row0 = resolver.resolve_start_row(ws, self.geometry, self.header)
        self.check_header(handle, ws, row0)

        body_row0 = row0 + self.header.number_of_header_lines
        logger.info(
            "Writing table to sheet '%s' from row %d, column %d%s",
            ws.title,
            body_row0 + 1,
            self.geometry.start_column,
            " (transposed)" if self.geometry.transposed else "",
        )
        styles = StyleCache(
            self.column_styles,
            clone=self.clone,
            data_format_only=self.copies_data_format_only,
        )
        return RowWriter(
            ws,
            body_row0,
            self.geometry.column0(),
            styles,
            transposed=self.geometry.transposed,
            formula_inputs=self.formula_inputs,
        )

    def check_header(self, handle: GridHandle, ws: Worksheet, row0: int) -> None:
        """Re-read the destination header row and validate it against the labels."""
        if self.header.number_of_header_lines == 0:
            return

        values = self._header_values()
        resolver = TableBoundsResolver(handle, values)
        col0 = self.geometry.column0()
        transposed = self.geometry.transposed
        width = resolver.resolve_column_count(
            ws,
            row0,
            col0,
            self.geometry.column_count,
            ignore_configured_size=True,
            transposed=transposed,
        )
        header_row = [
            values.extract(handle.get_cell(ws, row0, col, transposed=transposed), col + 1)
            for col in range(col0, col0 + width)
        ]
        HeaderValidator(self.header, ws.title).validate([header_row])

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _header_values():
        return string_values(CellNormalizer(suppress_warnings=True))

    def _write_header_labels(self, ws: Worksheet) -> None:
        if self.header.number_of_header_lines == 0:
            return
        row0 = self.geometry.row0() or 0
        for offset, label in enumerate(self.header.labels):
            GridHandle.ensure_cell(
                ws, row0, self.geometry.column0() + offset, transposed=self.geometry.transposed
            ).value = label
