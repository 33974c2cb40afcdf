"""
Read-only view over a single worksheet cell.

openpyxl exposes ``data_type`` codes ('n', 's', 'f', 'd', 'b', 'e',
'inlineStr') and turns date-formatted numbers into ``datetime`` values on
load.  ``GridCell`` folds those into the small set of raw types the table
readers branch on, and carries the cached result of a formula cell so a
formula can be treated as the value it evaluated to.  A formula without a
result is an error, never a blank.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Optional

from openpyxl.cell.cell import Cell
from openpyxl.styles.numbers import is_date_format
from openpyxl.utils.datetime import WINDOWS_EPOCH, from_excel

from errors import FormulaNotEvaluatedError

_ERROR_CODES = ("#NULL!", "#DIV/0!", "#VALUE!", "#REF!", "#NAME?", "#NUM!", "#N/A")


class RawCellType(str, Enum):
    BLANK = "blank"
    STRING = "string"
    NUMERIC = "numeric"
    FORMULA = "formula"
    BOOLEAN = "boolean"
    ERROR = "error"
    OTHER = "other"


def infer_data_type(value: Any) -> str:
    """Return the openpyxl data_type code matching a plain Python value."""
    if value is None:
        return "n"
    if isinstance(value, bool):
        return "b"
    if isinstance(value, (int, float)):
        return "n"
    if isinstance(value, (dt.datetime, dt.date, dt.time, dt.timedelta)):
        return "d"
    if isinstance(value, str):
        return "e" if value in _ERROR_CODES else "s"
    return "other"


class GridCell:
    """A worksheet cell plus, for formulas, the result it evaluated to."""

    __slots__ = (
        "value",
        "data_type",
        "number_format",
        "coordinate",
        "sheet_name",
        "native",
        "_formula_result",
    )

    def __init__(
        self,
        value: Any,
        data_type: str,
        number_format: str = "General",
        coordinate: str = "",
        sheet_name: str = "",
        native: Optional[Cell] = None,
        formula_result: Optional["GridCell"] = None,
    ):
        self.value = value
        self.data_type = data_type
        self.number_format = number_format or "General"
        self.coordinate = coordinate
        self.sheet_name = sheet_name
        self.native = native
        self._formula_result = formula_result

    @classmethod
    def wrap(cls, cell: Cell, formula_result: Optional["GridCell"] = None) -> "GridCell":
        return cls(
            value=cell.value,
            data_type=cell.data_type,
            number_format=cell.number_format,
            coordinate=cell.coordinate,
            sheet_name=cell.parent.title if cell.parent is not None else "",
            native=cell,
            formula_result=formula_result,
        )

    @classmethod
    def from_value(
        cls,
        value: Any,
        number_format: str = "General",
        coordinate: str = "",
        sheet_name: str = "",
    ) -> "GridCell":
        return cls(
            value=value,
            data_type=infer_data_type(value),
            number_format=number_format,
            coordinate=coordinate,
            sheet_name=sheet_name,
        )

    def __repr__(self) -> str:
        return f"GridCell({self.sheet_name}!{self.coordinate}={self.value!r})"

    # ------------------------------------------------------------------
    # Type inspection
    # ------------------------------------------------------------------

    @property
    def raw_type(self) -> RawCellType:
        if self.data_type == "f":
            return RawCellType.FORMULA
        # An empty cell is blank whatever its number format says.
        if self.value is None:
            return RawCellType.BLANK
        if self.data_type in ("s", "inlineStr"):
            return RawCellType.STRING
        if self.data_type in ("n", "d"):
            return RawCellType.NUMERIC
        if self.data_type == "b":
            return RawCellType.BOOLEAN
        if self.data_type == "e":
            return RawCellType.ERROR
        return RawCellType.OTHER

    @property
    def has_formula_result(self) -> bool:
        return self._formula_result is not None

    def formula_result(self) -> "GridCell":
        """The cached (or computed) result of a formula cell."""
        if self._formula_result is None:
            raise FormulaNotEvaluatedError(self.sheet_name, self.coordinate, str(self.value))
        return self._formula_result

    @property
    def formula_cached_result_type(self) -> RawCellType:
        return self.formula_result().raw_type

    def display_format_is_date_time(self) -> bool:
        if isinstance(self.value, (dt.datetime, dt.date, dt.time, dt.timedelta)):
            return True
        return self.data_type == "n" and is_date_format(self.number_format)

    # ------------------------------------------------------------------
    # Value accessors
    # ------------------------------------------------------------------

    def as_string(self) -> Optional[str]:
        return None if self.value is None else str(self.value)

    def as_numeric(self) -> float:
        return float(self.value)

    def as_date_time(self) -> dt.datetime:
        value = self.value
        if isinstance(value, dt.datetime):
            return value
        if isinstance(value, dt.date):
            return dt.datetime.combine(value, dt.time())
        if isinstance(value, dt.time):
            return dt.datetime.combine(WINDOWS_EPOCH.date(), value)
        if isinstance(value, dt.timedelta):
            return WINDOWS_EPOCH + value

        converted = from_excel(value)
        if isinstance(converted, dt.time):
            return dt.datetime.combine(WINDOWS_EPOCH.date(), converted)
        return converted
