"""
Workbook handles for the table readers and writers.

A ``GridHandle`` wraps one openpyxl ``Workbook`` and gives 0-based,
side-effect-free cell lookup.  Formula cells are resolved against Excel's
cached results (a ``data_only`` copy of the workbook, loaded only when a
formula is first met) and, optionally, against values computed with the
``formulas`` library.

Handles opened from a path are owned and must be closed; ``opened()``
does that on every exit path.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple, Union

import openpyxl
from openpyxl import Workbook
from openpyxl.cell.cell import Cell
from openpyxl.worksheet.worksheet import Worksheet

from errors import SheetNotFoundError
from grid.cell import GridCell
from grid.formula_values import compute_formula_values

logger = logging.getLogger(__name__)

GridSource = Union[str, Path, Workbook, "GridHandle"]


def _existing_cell(ws: Worksheet, row: int, column: int) -> Optional[Cell]:
    """1-based lookup that, unlike ``ws.cell()``, never adds a cell to the sheet."""
    # openpyxl has no public non-creating accessor; the cell store is private.
    return ws._cells.get((row, column))


class GridHandle:

    def __init__(
        self,
        workbook: Workbook,
        path: Optional[str] = None,
        *,
        evaluate_formulas: bool = False,
        owned: bool = True,
    ):
        self.workbook = workbook
        self.path = path
        self.evaluate_formulas = evaluate_formulas
        self.owned = owned
        self._cached_workbook: Optional[Workbook] = None
        self._computed_values: Optional[Dict[Tuple[str, str], Any]] = None
        self._closed = False

    def __enter__(self) -> "GridHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Sheets
    # ------------------------------------------------------------------

    def get_sheet(self, name: str) -> Optional[Worksheet]:
        if name not in self.workbook.sheetnames:
            return None
        return self.workbook[name]

    def require_sheet(self, name: str) -> Worksheet:
        ws = self.get_sheet(name)
        if ws is None:
            logger.error(
                "Worksheet '%s' not found. Available sheets: %s",
                name,
                self.workbook.sheetnames,
            )
            raise SheetNotFoundError(name, self.path)
        return ws

    # ------------------------------------------------------------------
    # Cells
    # ------------------------------------------------------------------

    def get_cell(
        self, ws: Worksheet, row0: int, col0: int, *, transposed: bool = False
    ) -> Optional[GridCell]:
        """
        Return the cell at 0-based table position (row0, col0), or None if
        it was never written.  *transposed* swaps the sheet axes.
        """
        if transposed:
            row0, col0 = col0, row0
        cell = _existing_cell(ws, row0 + 1, col0 + 1)
        if cell is None:
            return None
        if cell.data_type == "f":
            return GridCell.wrap(cell, formula_result=self._formula_result(ws, cell))
        return GridCell.wrap(cell)

    @staticmethod
    def ensure_cell(ws: Worksheet, row0: int, col0: int, *, transposed: bool = False) -> Cell:
        if transposed:
            row0, col0 = col0, row0
        return ws.cell(row=row0 + 1, column=col0 + 1)

    def _formula_result(self, ws: Worksheet, cell: Cell) -> Optional[GridCell]:
        cached_wb = self._load_cached_workbook()
        if cached_wb is not None and ws.title in cached_wb.sheetnames:
            cached = _existing_cell(cached_wb[ws.title], cell.row, cell.column)
            if cached is not None and cached.value is not None:
                return GridCell.wrap(cached)

        if self.evaluate_formulas and self.path:
            if self._computed_values is None:
                logger.info("Computing formula values for %s", self.path)
                self._computed_values = compute_formula_values(self.path)
            value = self._computed_values.get((ws.title.upper(), cell.coordinate))
            if value is not None:
                return GridCell.from_value(
                    value, cell.number_format, cell.coordinate, ws.title
                )
        return None

    def _load_cached_workbook(self) -> Optional[Workbook]:
        if self._cached_workbook is None and self.path:
            logger.debug("Loading cached formula values (data_only) from %s", self.path)
            self._cached_workbook = openpyxl.load_workbook(self.path, data_only=True)
        return self._cached_workbook

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def save(self, path: Union[str, Path]) -> None:
        logger.info("Saving workbook to %s", path)
        self.workbook.save(str(path))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._cached_workbook is not None:
            self._cached_workbook.close()
            self._cached_workbook = None
        if self.owned:
            self.workbook.close()


# ----------------------------------------------------------------------
# Opening
# ----------------------------------------------------------------------


def open_for_read(path: Union[str, Path], *, evaluate_formulas: bool = False) -> GridHandle:
    logger.info("Loading workbook: %s", path)
    workbook = openpyxl.load_workbook(str(path), data_only=False, keep_links=True)
    return GridHandle(workbook, str(path), evaluate_formulas=evaluate_formulas)


def open_for_write(path: Optional[Union[str, Path]], sheet_name: str) -> GridHandle:
    """
    Load *path* as a template, or start a fresh workbook holding a single
    sheet called *sheet_name* when *path* is None.
    """
    if path is None:
        logger.info("Creating workbook with sheet '%s'", sheet_name)
        workbook = Workbook()
        workbook.active.title = sheet_name
        return GridHandle(workbook)

    logger.info("Loading template workbook: %s", path)
    workbook = openpyxl.load_workbook(str(path), keep_links=True)
    return GridHandle(workbook, str(path))


@contextmanager
def opened(source: GridSource, *, evaluate_formulas: bool = False) -> Iterator[GridHandle]:
    """
    Yield a handle for *source*.  Paths are opened here and closed on exit;
    workbooks and handles supplied by the caller are left open.
    """
    if isinstance(source, GridHandle):
        yield source
        return

    if isinstance(source, Workbook):
        yield GridHandle(source, owned=False, evaluate_formulas=evaluate_formulas)
        return

    handle = open_for_read(source, evaluate_formulas=evaluate_formulas)
    try:
        yield handle
    finally:
        handle.close()
