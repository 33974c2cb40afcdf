import datetime as dt
import logging

import pytest

from dto.geometry import TableGeometry
from dto.header import FreeFormHeader, OneLineHeader
from dto.policy import NoDataPolicy
from dto.table_data import TableData
from errors import (
    CellContainsError,
    HeaderMismatchError,
    MarkerNotFoundError,
    ScanLimitExceededError,
    SheetNotFoundError,
    TableConfigurationError,
)
from extractors.table import TableReader
from grid.cell import GridCell

PEOPLE_LABELS = ["Name", "Age", "City"]


def test_read_labelled_table(people_file) -> None:
    reader = TableReader(TableGeometry(sheet_name="People"), OneLineHeader(labels=PEOPLE_LABELS))

    table = reader.read(people_file)

    assert table.sheet_name == "People"
    assert table.header_rows == [PEOPLE_LABELS]
    assert table.rows == [
        ["Alice", "30", "Paris"],
        ["Bob", None, "Rome"],
        ["Carol", "41", None],
    ]
    assert table.column_count == 3


def test_read_header_only(people_file) -> None:
    reader = TableReader(TableGeometry(sheet_name="People"), OneLineHeader(labels=PEOPLE_LABELS))
    assert reader.read_header(people_file) == [PEOPLE_LABELS]


def test_read_from_open_workbook(make_workbook) -> None:
    workbook = make_workbook({"S": [["x", "y"], ["1", "2"]]})
    reader = TableReader(TableGeometry(sheet_name="S", start_row=1))

    assert reader.read(workbook).rows == [["x", "y"], ["1", "2"]]
    # caller-supplied workbooks stay usable
    assert workbook["S"]["A1"].value == "x"


def test_header_mismatch_is_raised(workbook_file) -> None:
    path = workbook_file({"S": [["Id", "Nme", "Age"], [1, "Ann", 3]]})
    reader = TableReader(
        TableGeometry(sheet_name="S", start_row=1),
        OneLineHeader(labels=["Id", "Name", "Age"]),
    )

    with pytest.raises(HeaderMismatchError) as excinfo:
        reader.read(path)

    assert excinfo.value.column_index == 1
    assert excinfo.value.found == "Nme"
    assert excinfo.value.expected == "Name"


def test_read_stops_at_first_empty_row(workbook_file) -> None:
    path = workbook_file({"S": [["a", 1], ["b", 2], ["c", 3], [None, None], ["d", 4]]})
    reader = TableReader(TableGeometry(sheet_name="S", start_row=1, column_count=2))

    assert reader.read(path).rows == [["a", "1"], ["b", "2"], ["c", "3"]]


def test_fixed_row_count_keeps_empty_rows(make_workbook) -> None:
    workbook = make_workbook({"S": [["a"], [None], ["c"], ["d"]]})
    reader = TableReader(TableGeometry(sheet_name="S", start_row=1, row_count=3))

    assert reader.read(workbook).rows == [["a"], [], ["c"]]


def test_marker_row_is_discovered(workbook_file) -> None:
    rows = [["Report"]] + [[None]] * 46 + [["Name", "Age"], ["Alice", 30], ["Bob", 25]]
    path = workbook_file({"S": rows})
    reader = TableReader(TableGeometry(sheet_name="S"), OneLineHeader(labels=["Name", "Age"]))

    assert reader.read(path).rows == [["Alice", "30"], ["Bob", "25"]]


def test_missing_marker_raises(workbook_file) -> None:
    path = workbook_file({"S": [["Something"], ["else"]]})
    reader = TableReader(TableGeometry(sheet_name="S"), OneLineHeader(labels=["Name"]))

    with pytest.raises(MarkerNotFoundError):
        reader.read(path)


def test_free_form_table_needs_start_row() -> None:
    with pytest.raises(TableConfigurationError):
        TableReader(TableGeometry(sheet_name="S"), FreeFormHeader())


def test_unknown_value_kind() -> None:
    with pytest.raises(ValueError):
        TableReader(TableGeometry(sheet_name="S", start_row=1), values="bogus")


def test_missing_sheet_raises(people_file) -> None:
    reader = TableReader(TableGeometry(sheet_name="Nope", start_row=1))

    with pytest.raises(SheetNotFoundError) as excinfo:
        reader.read(people_file)

    assert excinfo.value.sheet_name == "Nope"
    assert excinfo.value.path == str(people_file)


def test_date_cells_are_formatted(workbook_file) -> None:
    path = workbook_file({"S": [["When", "Also"], [dt.date(2000, 1, 23), dt.date(2000, 1, 23)]]})
    reader = TableReader(
        TableGeometry(sheet_name="S"),
        OneLineHeader(labels=["When", "Also"]),
        column_date_formats={2: "%d/%m/%Y"},
    )

    assert reader.read(path).rows == [["2000-01-23", "23/01/2000"]]


def test_reader_date_format_override(make_workbook) -> None:
    workbook = make_workbook({"S": [[dt.datetime(2000, 1, 23, 8, 30)]]})
    reader = TableReader(TableGeometry(sheet_name="S", start_row=1), date_format="%Y%m%d %H:%M")

    assert reader.read(workbook).rows == [["20000123 08:30"]]


def test_no_data_policy(make_workbook) -> None:
    workbook = make_workbook({"S": [["a", None, ""]]})
    geometry = TableGeometry(sheet_name="S", start_row=1, column_count=3)

    absent = TableReader(geometry, policy=NoDataPolicy.AS_ABSENT).read(workbook)
    empty = TableReader(geometry, policy=NoDataPolicy.AS_EMPTY_STRING).read(workbook)

    assert absent.rows == [["a", None, None]]
    assert empty.rows == [["a", "", ""]]


def test_error_cell_aborts_read(make_workbook) -> None:
    workbook = make_workbook({"S": [["a"], ["#DIV/0!"]]})
    reader = TableReader(TableGeometry(sheet_name="S", start_row=1))

    with pytest.raises(CellContainsError) as excinfo:
        reader.read(workbook)

    assert excinfo.value.coordinate == "A2"


def test_scan_limit(make_workbook, fill_sheet) -> None:
    workbook = make_workbook({"S": []})
    fill_sheet(workbook["S"], [["a"], ["b"], ["c"]], start_row=9999)
    reader = TableReader(TableGeometry(sheet_name="S", start_row=9999, column_count=1))

    with pytest.raises(ScanLimitExceededError) as excinfo:
        reader.read(workbook)

    assert excinfo.value.limit == 10_000


def test_read_in_cell_mode(people_file) -> None:
    reader = TableReader(
        TableGeometry(sheet_name="People"),
        OneLineHeader(labels=PEOPLE_LABELS),
        values="cell",
    )

    table = reader.read(people_file)

    assert table.header_rows == [PEOPLE_LABELS]
    first = table.rows[0]
    assert all(isinstance(cell, GridCell) for cell in first)
    assert [cell.value for cell in first] == ["Alice", 30, "Paris"]
    # Bob's age was never written
    assert table.rows[1][1] is None


def test_read_transposed_table(make_workbook) -> None:
    workbook = make_workbook({"S": [["Name", "Alice", "Bob"], ["Age", 30, 41]]})
    reader = TableReader(
        TableGeometry(sheet_name="S", transposed=True), OneLineHeader(labels=["Name", "Age"])
    )

    table = reader.read(workbook)

    assert table.header_rows == [["Name", "Age"]]
    assert table.rows == [["Alice", "30"], ["Bob", "41"]]


def test_cell_mode_warns_once_per_cell_and_read(make_workbook, caplog) -> None:
    workbook = make_workbook({"S": [[1.2345]]})
    workbook["S"]["A1"].number_format = "0.00"
    reader = TableReader(
        TableGeometry(sheet_name="S", start_row=1), values="cell", suppress_warnings=False
    )

    with caplog.at_level(logging.WARNING, logger="extractors.cell_normalizer"):
        reader.read(workbook)
        assert len(caplog.records) == 1
        reader.read(workbook)

    assert len(caplog.records) == 2


def test_table_data_column_count() -> None:
    assert TableData(sheet_name="S").column_count == 0
    assert TableData(sheet_name="S", rows=[[], ["a", "b"]]).column_count == 2
