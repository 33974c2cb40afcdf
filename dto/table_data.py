from pydantic import BaseModel
from typing import Any, List, Optional


class TableData(BaseModel):
    """
    Body rows of a table read from a worksheet.

    Header rows are stripped from ``rows`` and kept apart in
    ``header_rows``.  A zero-length row means "empty line inside a table
    with an explicit row count".
    """
    sheet_name: str
    header_rows: List[List[Optional[str]]] = []
    rows: List[List[Any]] = []

    # Rows may hold grid.cell.GridCell handles when read in cell mode.
    model_config = {"arbitrary_types_allowed": True}

    @property
    def column_count(self) -> int:
        for row in self.header_rows + self.rows:
            if row:
                return len(row)
        return 0
