"""
Reads a table from a worksheet.

Pipeline:
  1. Resolve the table's bounds (start row configured or found by the
     header's marker label, width configured or scanned).
  2. Read the header slice and check it against the expected labels.
  3. Read body rows until the configured row count is reached, or, when
     no row count is configured, until the first all-empty row (which is
     not returned).

``read`` returns everything at once as ``TableData``; ``iterate`` returns
a ``RowStream`` that reads one row ahead of the caller.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from typing import Dict, List, Literal, Optional

from dto.geometry import TableGeometry
from dto.header import FreeFormHeader, HeaderSpec, OneLineHeader
from dto.policy import NoDataPolicy
from dto.table_data import TableData
from detection.constants import DEFAULT_DATE_FORMAT, NO_DATA_POLICY, SUPPRESS_NUMBER_WARNINGS
from extractors.cell_normalizer import CellNormalizer, ValueKind, cell_values, string_values
from extractors.stream import RowStream
from grid.workbook import GridSource, opened

logger = logging.getLogger(__name__)


class TableReader:

    def __init__(
        self,
        geometry: TableGeometry,
        header: Optional[HeaderSpec] = None,
        *,
        values: Literal["string", "cell"] = "string",
        policy: NoDataPolicy = NoDataPolicy(NO_DATA_POLICY),
        date_format: str = DEFAULT_DATE_FORMAT,
        column_date_formats: Optional[Dict[int, str]] = None,
        suppress_warnings: bool = SUPPRESS_NUMBER_WARNINGS,
        evaluate_formulas: bool = False,
    ):
        self.geometry = geometry
        self.header: HeaderSpec = header if header is not None else FreeFormHeader()
        self.evaluate_formulas = evaluate_formulas

        self.normalizer = CellNormalizer(policy, date_format, suppress_warnings)
        if values == "string":
            self.values: ValueKind = string_values(self.normalizer, column_date_formats)
        elif values == "cell":
            self.values = cell_values(self.normalizer)
        else:
            raise ValueError(f"Unknown value kind: {values!r}")

        # Reading a labelled table: its width is the number of labels.
        self.column_count = geometry.column_count
        if self.column_count is None and isinstance(self.header, OneLineHeader):
            self.column_count = len(self.header.labels)

        if geometry.start_row is None:
            # Fails now for a free-form table rather than at read time.
            self.header.marker_label()

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def iterate(self, source: GridSource) -> RowStream:
        """
        Open *source* and return a stream over the body rows.

        Bounds and header problems are raised here, before any row is
        returned.  A workbook opened from a path stays open until the
        stream is exhausted or closed.
        """
        self.normalizer.forget_warnings()
        stack = ExitStack()
        handle = stack.enter_context(
            opened(source, evaluate_formulas=self.evaluate_formulas)
        )
        stream = RowStream(
            handle,
            self.geometry,
            self.header,
            self.values,
            column_count=self.column_count,
            on_close=stack.close,
        )
        return stream.open()

    def read(self, source: GridSource) -> TableData:
        with self.iterate(source) as stream:
            rows = list(stream)
            header_rows = stream.header_rows

        logger.info(
            "  -> %d row(s) read from sheet '%s'", len(rows), self.geometry.sheet_name
        )
        return TableData(
            sheet_name=self.geometry.sheet_name,
            header_rows=header_rows,
            rows=rows,
        )

    def read_header(self, source: GridSource) -> List[List[Optional[str]]]:
        """Validate and return the header rows only."""
        with self.iterate(source) as stream:
            return stream.header_rows
