"""
Exception hierarchy for table reading / writing.

Every fatal condition raised by the readers and writers derives from
``TableError`` and carries the sheet / column / label / value involved so
the message alone is enough to locate the problem in the workbook.

Numeric display mismatches are *not* errors; they are logged as warnings
by ``extractors.cell_normalizer``.
"""

from __future__ import annotations

from typing import Optional


class TableError(Exception):
    """Base class for every table-related failure."""


# -------------------------------------------------------------------
# Configuration
# -------------------------------------------------------------------


class TableConfigurationError(TableError, ValueError):
    """The reader / writer was set up with values that can never work."""


class SheetNotFoundError(TableError):
    def __init__(self, sheet_name: str, path: Optional[str] = None):
        self.sheet_name = sheet_name
        self.path = path
        where = f" in '{path}'" if path else ""
        super().__init__(f"Worksheet '{sheet_name}' not found{where}")


# -------------------------------------------------------------------
# Discovery
# -------------------------------------------------------------------


class MarkerNotFoundError(TableError):
    def __init__(self, sheet_name: str, label: str, column: int, scanned_rows: int):
        self.sheet_name = sheet_name
        self.label = label
        self.column = column
        self.scanned_rows = scanned_rows
        super().__init__(
            f"Sheet '{sheet_name}': label '{label}' not found in column {column} "
            f"within the first {scanned_rows} rows"
        )


class ColumnSizeZeroError(TableError):
    def __init__(self, sheet_name: str, row: int, column: int):
        self.sheet_name = sheet_name
        self.row = row
        self.column = column
        super().__init__(
            f"Sheet '{sheet_name}': table column size is zero "
            f"(no data to the right of row {row}, column {column})"
        )


class ScanLimitExceededError(TableError):
    def __init__(self, sheet_name: str, limit: int):
        self.sheet_name = sheet_name
        self.limit = limit
        super().__init__(
            f"Sheet '{sheet_name}': row scan reached the limit of {limit} rows"
        )


# -------------------------------------------------------------------
# Header shape
# -------------------------------------------------------------------


class HeaderMismatchError(TableError):
    def __init__(
        self,
        sheet_name: str,
        column_index: int,
        found: Optional[str],
        expected: str,
    ):
        self.sheet_name = sheet_name
        self.column_index = column_index
        self.found = found
        self.expected = expected
        super().__init__(
            f"Sheet '{sheet_name}': header column {column_index} is "
            f"{found!r}, expected {expected!r}"
        )


class HeaderSizeMismatchError(TableError):
    def __init__(self, sheet_name: str, found: int, expected: int):
        self.sheet_name = sheet_name
        self.found = found
        self.expected = expected
        super().__init__(
            f"Sheet '{sheet_name}': header has {found} column(s), "
            f"expected {expected}"
        )


# -------------------------------------------------------------------
# Cell types
# -------------------------------------------------------------------


class UnrecognizedCellTypeError(TableError):
    def __init__(self, sheet_name: str, coordinate: str, cell_type: str):
        self.sheet_name = sheet_name
        self.coordinate = coordinate
        self.cell_type = cell_type
        super().__init__(
            f"Sheet '{sheet_name}' cell {coordinate}: cell type not recognized "
            f"({cell_type})"
        )


class CellContainsError(TableError):
    def __init__(self, sheet_name: str, coordinate: str, value: str):
        self.sheet_name = sheet_name
        self.coordinate = coordinate
        self.value = value
        super().__init__(
            f"Sheet '{sheet_name}' cell {coordinate} contains an error value: {value}"
        )


# -------------------------------------------------------------------
# Formulas
# -------------------------------------------------------------------


class FormulaNotEvaluatedError(TableError):
    def __init__(self, sheet_name: str, coordinate: str, formula: str):
        self.sheet_name = sheet_name
        self.coordinate = coordinate
        self.formula = formula
        super().__init__(
            f"Sheet '{sheet_name}' cell {coordinate}: formula {formula} has no "
            f"cached or computed result (recalculate and save the workbook, "
            f"or read with evaluate_formulas=True)"
        )


class FormulaEvaluationError(TableError):
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Formulas in '{path}' could not be evaluated: {reason}")
