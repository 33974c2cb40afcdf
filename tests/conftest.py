from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence

import openpyxl
import pytest
from openpyxl.worksheet.worksheet import Worksheet


def _fill(ws: Worksheet, rows: Sequence[Sequence[Any]], start_row: int = 1, start_column: int = 1) -> Worksheet:
    """Write *rows* into *ws*; ``None`` leaves the cell missing."""
    for r, row in enumerate(rows):
        for c, value in enumerate(row):
            if value is not None:
                ws.cell(row=start_row + r, column=start_column + c, value=value)
    return ws


@pytest.fixture
def fill_sheet() -> Callable[..., Worksheet]:
    return _fill


@pytest.fixture
def make_workbook() -> Callable[..., openpyxl.Workbook]:
    def make(sheets: Dict[str, List[Sequence[Any]]]) -> openpyxl.Workbook:
        workbook = openpyxl.Workbook()
        workbook.remove(workbook.active)
        for title, rows in sheets.items():
            _fill(workbook.create_sheet(title), rows)
        return workbook

    return make


@pytest.fixture
def workbook_file(tmp_path: Path, make_workbook) -> Callable[..., Path]:
    def make(sheets: Dict[str, List[Sequence[Any]]], name: str = "book.xlsx") -> Path:
        workbook = make_workbook(sheets)
        path = tmp_path / name
        workbook.save(path)
        workbook.close()
        return path

    return make


@pytest.fixture
def people_file(workbook_file) -> Path:
    return workbook_file(
        {
            "People": [
                ["Name", "Age", "City"],
                ["Alice", 30, "Paris"],
                ["Bob", None, "Rome"],
                ["Carol", 41, None],
            ]
        }
    )
