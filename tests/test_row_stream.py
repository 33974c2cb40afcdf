import pytest

from dto.geometry import TableGeometry
from dto.header import FreeFormHeader, OneLineHeader
from errors import HeaderMismatchError
from extractors.cell_normalizer import CellNormalizer, string_values
from extractors.stream import ReaderState, RowStream
from extractors.table import TableReader
from grid.workbook import GridHandle


@pytest.fixture
def three_rows_file(workbook_file):
    return workbook_file({"S": [["a", 1], ["b", 2], ["c", 3], [None, None], ["d", 4]]})


def test_stream_yields_same_rows_as_read(three_rows_file) -> None:
    reader = TableReader(TableGeometry(sheet_name="S", start_row=1, column_count=2))

    stream = reader.iterate(three_rows_file)
    rows = []
    while stream.has_next():
        rows.append(stream.next())

    assert rows == reader.read(three_rows_file).rows
    assert len(rows) == 3
    assert not stream.has_next()
    assert stream.state is ReaderState.EXHAUSTED


def test_next_after_exhaustion_stops(three_rows_file) -> None:
    stream = TableReader(TableGeometry(sheet_name="S", start_row=1)).iterate(three_rows_file)

    assert len(list(stream)) == 3
    with pytest.raises(StopIteration):
        stream.next()


def test_stream_is_streaming_after_open(three_rows_file) -> None:
    with TableReader(TableGeometry(sheet_name="S", start_row=1)).iterate(three_rows_file) as stream:
        assert stream.state is ReaderState.STREAMING
        assert stream.bounds.column_count == 2
        assert stream.has_next()
        assert stream.next() == ["a", "1"]

    assert stream.state is ReaderState.EXHAUSTED
    assert not stream.has_next()


def test_empty_table_has_nothing_to_stream(make_workbook) -> None:
    workbook = make_workbook({"S": [["Name"]]})
    stream = TableReader(TableGeometry(sheet_name="S"), OneLineHeader(labels=["Name"])).iterate(workbook)

    assert stream.header_rows == [["Name"]]
    assert not stream.has_next()


def test_header_problems_raise_before_first_row(make_workbook) -> None:
    workbook = make_workbook({"S": [["Nmae"], ["x"]]})
    reader = TableReader(TableGeometry(sheet_name="S", start_row=1), OneLineHeader(labels=["Name"]))

    with pytest.raises(HeaderMismatchError):
        reader.iterate(workbook)


def test_close_runs_cleanup_once(make_workbook) -> None:
    workbook = make_workbook({"S": [["a"], ["b"]]})
    calls = []
    stream = RowStream(
        GridHandle(workbook, owned=False),
        TableGeometry(sheet_name="S", start_row=1),
        FreeFormHeader(),
        string_values(CellNormalizer()),
        on_close=lambda: calls.append(1),
    ).open()

    assert stream.next() == ["a"]
    stream.close()
    stream.close()

    assert calls == [1]
    assert not stream.has_next()
