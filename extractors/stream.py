"""
Row-by-row table scanning.

``RowScanner.fetch`` reads one worksheet row of a resolved table and says
whether it is a data row, an empty row inside a fixed-size table, or the
end of the table.  ``RowStream`` drives the scanner with one row of
look-ahead so ``has_next()`` is known before the caller asks for the next
row:

    UNOPENED -> BOUNDS_RESOLVED -> HEADER_VALIDATED -> STREAMING -> EXHAUSTED

A stream is single-pass.  It holds its workbook open until it is
exhausted or closed; build a new one to read the table again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional

from openpyxl.worksheet.worksheet import Worksheet

from detection.bounds import TableBounds, TableBoundsResolver
from detection.constants import MAX_SCAN_ROWS
from detection.header import HeaderValidator
from dto.geometry import TableGeometry
from dto.header import HeaderSpec
from errors import ScanLimitExceededError
from extractors.cell_normalizer import ValueKind
from grid.workbook import GridHandle

logger = logging.getLogger(__name__)


class ReaderState(str, Enum):
    UNOPENED = "unopened"
    BOUNDS_RESOLVED = "bounds_resolved"
    HEADER_VALIDATED = "header_validated"
    STREAMING = "streaming"
    EXHAUSTED = "exhausted"


class FetchStatus(str, Enum):
    ROW = "row"
    EMPTY = "empty"  # all-empty row inside a table with a fixed row count
    END = "end"


@dataclass(frozen=True)
class RowFetch:
    status: FetchStatus
    row: List[Any] = field(default_factory=list)


# =====================================================================
# RowScanner
# =====================================================================


class RowScanner:

    def __init__(
        self,
        handle: GridHandle,
        ws: Worksheet,
        bounds: TableBounds,
        values: ValueKind,
        body_start: int,
    ):
        self.handle = handle
        self.ws = ws
        self.bounds = bounds
        self.values = values
        self.body_start = body_start
        self.row_limit: Optional[int] = (
            None if bounds.row_count is None else body_start + bounds.row_count
        )

    def read_row(self, row0: int) -> List[Any]:
        col0 = self.bounds.col0
        return [
            self.values.extract(
                self.handle.get_cell(self.ws, row0, col, transposed=self.bounds.transposed),
                col + 1,
            )
            for col in range(col0, col0 + self.bounds.column_count)
        ]

    def fetch(self, row0: int) -> RowFetch:
        if row0 >= MAX_SCAN_ROWS:
            raise ScanLimitExceededError(self.ws.title, MAX_SCAN_ROWS)

        if self.row_limit is not None and row0 >= self.row_limit:
            return RowFetch(FetchStatus.END)

        row = self.read_row(row0)
        if all(self.values.is_empty(value) for value in row):
            logger.debug("Sheet '%s' row %d: no data in the line", self.ws.title, row0 + 1)
            if self.row_limit is None:
                return RowFetch(FetchStatus.END)
            return RowFetch(FetchStatus.EMPTY)

        return RowFetch(FetchStatus.ROW, row)


# =====================================================================
# RowStream
# =====================================================================


class RowStream:
    """Forward-only sequence of table body rows with one-row look-ahead."""

    def __init__(
        self,
        handle: GridHandle,
        geometry: TableGeometry,
        header: HeaderSpec,
        values: ValueKind,
        *,
        column_count: Optional[int] = None,
        on_close: Optional[Callable[[], None]] = None,
    ):
        self.handle = handle
        self.geometry = geometry
        self.header = header
        self.values = values
        self.column_count = column_count
        self._on_close = on_close

        self.state = ReaderState.UNOPENED
        self.bounds: Optional[TableBounds] = None
        self.header_rows: List[List[Optional[str]]] = []
        self._scanner: Optional[RowScanner] = None
        self._next_row0 = 0
        # None means Done; [] is a legitimate buffered (empty) row.
        self._buffered: Optional[List[Any]] = None
        self._closed = False

    # ------------------------------------------------------------------
    # Opening
    # ------------------------------------------------------------------

    def open(self) -> "RowStream":
        """Resolve bounds, validate the header and buffer the first row."""
        try:
            ws = self.handle.require_sheet(self.geometry.sheet_name)

            resolver = TableBoundsResolver(self.handle, self.values)
            self.bounds = resolver.resolve(
                ws, self.geometry, self.header, column_count=self.column_count
            )
            self.state = ReaderState.BOUNDS_RESOLVED

            validator = HeaderValidator(self.header, ws.title)
            body_start = self.bounds.row0 + validator.number_of_header_lines
            self._scanner = RowScanner(self.handle, ws, self.bounds, self.values, body_start)

            header_slice = [
                self._scanner.read_row(row0) for row0 in range(self.bounds.row0, body_start)
            ]
            self.header_rows, _ = validator.strip_header(header_slice, self.values.as_string)
            validator.validate(self.header_rows)
            self.state = ReaderState.HEADER_VALIDATED

            logger.info(
                "Reading table on sheet '%s' at row %d, column %d (%d column(s))",
                ws.title,
                self.bounds.row0 + 1,
                self.bounds.col0 + 1,
                self.bounds.column_count,
            )
            self._next_row0 = body_start
            self.state = ReaderState.STREAMING
            self._advance()
        except BaseException:
            self.close()
            raise
        return self

    # ------------------------------------------------------------------
    # Iteration
    # ------------------------------------------------------------------

    def has_next(self) -> bool:
        return self._buffered is not None

    def next(self) -> List[Any]:
        if self._buffered is None:
            raise StopIteration
        row = self._buffered
        try:
            self._advance()
        except BaseException:
            self.close()
            raise
        return row

    def __iter__(self) -> "RowStream":
        return self

    def __next__(self) -> List[Any]:
        return self.next()

    def _advance(self) -> None:
        fetched = self._scanner.fetch(self._next_row0)
        self._next_row0 += 1

        if fetched.status is FetchStatus.END:
            self._buffered = None
            logger.debug(
                "Finished reading sheet '%s' at row %d",
                self.geometry.sheet_name,
                self._next_row0,
            )
            self.close()
        else:
            self._buffered = fetched.row

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._buffered = None
        self.state = ReaderState.EXHAUSTED
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            self._on_close()

    def __enter__(self) -> "RowStream":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
