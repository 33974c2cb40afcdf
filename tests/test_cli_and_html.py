import importlib
import json

import pytest

import table_cli
from detection import constants
from dto.geometry import TableGeometry
from dto.header import OneLineHeader
from dto.table_data import TableData
from extractors.table import TableReader
from utils.html import render_table_html


# -------------------------------------------------------------------
# HTML
# -------------------------------------------------------------------


def test_render_table_html_escapes_and_keeps_empty_rows() -> None:
    table = TableData(sheet_name="S", header_rows=[["Name"]], rows=[["a<b"], [], [None]])

    html = render_table_html(table)

    assert html.startswith("<table")
    assert "<thead>" in html and "<th>Name</th>" in html
    assert "<td>a&lt;b</td>" in html
    assert "    <tr>\n    </tr>" in html
    assert "<td></td>" in html
    assert html.endswith("</table>")


def test_render_table_html_without_header() -> None:
    html = render_table_html(TableData(sheet_name="S", rows=[["x"]]))
    assert "<thead>" not in html
    assert "<td>x</td>" in html


# -------------------------------------------------------------------
# CLI
# -------------------------------------------------------------------


def test_cli_read_json(people_file, capsys) -> None:
    assert table_cli.main(["read", str(people_file), "--sheet", "People", "--labels", "Name,Age,City"]) == 0

    result = json.loads(capsys.readouterr().out)
    assert result["sheet_name"] == "People"
    assert result["rows"][1] == ["Bob", None, "Rome"]


def test_cli_read_html_to_file(people_file, tmp_path) -> None:
    output = tmp_path / "table.html"

    exit_code = table_cli.main(
        ["read", str(people_file), "-s", "People", "--labels", "Name,Age,City",
         "--empty-string", "--format", "html", "-o", str(output)]
    )

    assert exit_code == 0
    html = output.read_text(encoding="utf-8")
    assert "<td>Alice</td>" in html
    assert "<td></td>" in html


def test_cli_copy(people_file, tmp_path) -> None:
    destination = tmp_path / "copy.xlsx"

    exit_code = table_cli.main(
        ["copy", str(people_file), str(destination), "--sheet", "People",
         "--labels", "Name,Age,City", "--dest-sheet", "Copy"]
    )

    assert exit_code == 0
    reader = TableReader(TableGeometry(sheet_name="Copy"), OneLineHeader(labels=["Name", "Age", "City"]))
    assert reader.read(destination).rows == [
        ["Alice", "30", "Paris"],
        ["Bob", None, "Rome"],
        ["Carol", "41", None],
    ]


def test_cli_read_transposed(workbook_file, capsys) -> None:
    path = workbook_file({"S": [["Name", "Alice"], ["Age", 30]]})

    assert table_cli.main(["read", str(path), "--sheet", "S", "--labels", "Name,Age", "--transposed"]) == 0

    assert json.loads(capsys.readouterr().out)["rows"] == [["Alice", "30"]]


def test_cli_reports_table_errors(people_file) -> None:
    assert table_cli.main(["read", str(people_file), "--sheet", "Nope", "--start-row", "1"]) == 1


def test_cli_reports_uncalculated_formula(workbook_file, caplog) -> None:
    path = workbook_file({"S": [["=1+1"]]})

    assert table_cli.main(["read", str(path), "--sheet", "S", "--start-row", "1"]) == 1
    assert "has no cached or computed result" in caplog.text


def test_cli_missing_file(tmp_path) -> None:
    assert table_cli.main(["read", str(tmp_path / "missing.xlsx"), "--sheet", "S"]) == 1


# -------------------------------------------------------------------
# Environment configuration
# -------------------------------------------------------------------


@pytest.fixture
def reload_constants(monkeypatch):
    yield lambda: importlib.reload(constants)
    monkeypatch.undo()
    importlib.reload(constants)


def test_settings_come_from_environment(monkeypatch, reload_constants) -> None:
    monkeypatch.setenv("TABLE_DATE_FORMAT", "%d.%m.%Y")
    monkeypatch.setenv("TABLE_NO_DATA_POLICY", "EMPTY_STRING")
    monkeypatch.setenv("TABLE_SUPPRESS_NUMBER_WARNINGS", "yes")

    reloaded = reload_constants()

    assert reloaded.DEFAULT_DATE_FORMAT == "%d.%m.%Y"
    assert reloaded.NO_DATA_POLICY == "empty_string"
    assert reloaded.SUPPRESS_NUMBER_WARNINGS is True
