"""
Maps table rows onto objects.

The caller supplies the factory; ``model_factory`` builds one for a
pydantic model so each row is validated as it is mapped.  Validation
runs only after the table itself was read successfully.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel

from extractors.table import TableReader
from grid.workbook import GridSource

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


def model_factory(
    model: Type[M], field_names: Optional[Sequence[str]] = None
) -> Callable[[List[Any]], M]:
    """
    Return a factory that builds *model* from a row, assigning values to
    *field_names* (default: the model's fields in declaration order)
    by position.
    """
    names = list(field_names) if field_names is not None else list(model.model_fields)

    def build(row: List[Any]) -> M:
        return model.model_validate(dict(zip(names, row)))

    return build


def read_to_objects(
    reader: TableReader,
    source: GridSource,
    factory: Callable[[List[Any]], T],
    *,
    skip_empty_rows: bool = True,
) -> List[T]:
    table = reader.read(source)
    return [factory(row) for row in table.rows if row or not skip_empty_rows]
