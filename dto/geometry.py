from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class TableGeometry(BaseModel):
    """
    Where a table lives on a sheet, in 1-based spreadsheet numbering.

    ``start_row=None``    -> discover the row by the header's marker label
    ``row_count=None``    -> read until an all-empty row
    ``column_count=None`` -> scan right from the first header cell
    ``transposed=True``   -> table rows run along sheet columns; every
                             field above is still given in table terms, so
                             ``start_row`` is a sheet column number and
                             ``start_column`` a sheet row number
    """

    sheet_name: str = Field(min_length=1)
    start_row: Optional[int] = Field(default=None, ge=1)
    start_column: int = Field(default=1, ge=1)
    row_count: Optional[int] = Field(default=None, ge=1)
    column_count: Optional[int] = Field(default=None, ge=1)
    transposed: bool = False

    model_config = {"frozen": True}

    def row0(self) -> Optional[int]:
        return None if self.start_row is None else self.start_row - 1

    def column0(self) -> int:
        return self.start_column - 1
