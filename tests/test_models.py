from typing import Optional

import pytest
from pydantic import BaseModel, ValidationError

from dto.geometry import TableGeometry
from dto.header import OneLineHeader
from extractors.models import model_factory, read_to_objects
from extractors.table import TableReader


class Person(BaseModel):
    name: str
    age: Optional[int] = None
    city: Optional[str] = None


@pytest.fixture
def reader() -> TableReader:
    return TableReader(
        TableGeometry(sheet_name="People"),
        OneLineHeader(labels=["Name", "Age", "City"]),
    )


def test_rows_become_models(reader, people_file) -> None:
    people = read_to_objects(reader, people_file, model_factory(Person))

    assert people == [
        Person(name="Alice", age=30, city="Paris"),
        Person(name="Bob", age=None, city="Rome"),
        Person(name="Carol", age=41, city=None),
    ]


def test_field_names_are_positional(reader, people_file) -> None:
    factory = model_factory(Person, ["city", "age", "name"])
    first = read_to_objects(reader, people_file, factory)[0]

    assert (first.name, first.city) == ("Paris", "Alice")


def test_plain_callable_factory(reader, people_file) -> None:
    names = read_to_objects(reader, people_file, lambda row: row[0])
    assert names == ["Alice", "Bob", "Carol"]


def test_empty_rows_are_skipped_unless_asked(make_workbook) -> None:
    workbook = make_workbook({"S": [["a"], [None], ["c"]]})
    reader = TableReader(TableGeometry(sheet_name="S", start_row=1, row_count=3))

    assert read_to_objects(reader, workbook, len) == [1, 1]
    assert read_to_objects(reader, workbook, len, skip_empty_rows=False) == [1, 0, 1]


def test_invalid_row_raises_validation_error(workbook_file) -> None:
    path = workbook_file({"People": [["Name", "Age", "City"], ["Dan", "old", "Lima"]]})
    reader = TableReader(TableGeometry(sheet_name="People"), OneLineHeader(labels=["Name", "Age", "City"]))

    with pytest.raises(ValidationError):
        read_to_objects(reader, path, model_factory(Person))
