"""
Header shapes a table can have.

    FreeFormHeader  - no header line; the table starts with data
    OneLineHeader   - a single row of labels, the left-most label doubles
                      as the marker used to find the table when its start
                      row is not configured
"""

from __future__ import annotations

from typing import List, Literal, Union

from pydantic import BaseModel, Field

from errors import TableConfigurationError


class FreeFormHeader(BaseModel):
    kind: Literal["free"] = "free"
    ignores_additional_columns: bool = False

    model_config = {"frozen": True}

    @property
    def number_of_header_lines(self) -> int:
        return 0

    @property
    def labels(self) -> List[str]:
        return []

    def marker_label(self) -> str:
        raise TableConfigurationError(
            "A free-form table has no header label to search for; "
            "set start_row explicitly"
        )


class OneLineHeader(BaseModel):
    kind: Literal["one_line"] = "one_line"
    labels: List[str] = Field(min_length=1)
    # Allow the sheet's header to run wider than ``labels``
    # (writers copying into wider templates).
    ignores_additional_columns: bool = False

    model_config = {"frozen": True}

    @property
    def number_of_header_lines(self) -> int:
        return 1

    def marker_label(self) -> str:
        return self.labels[0]


HeaderSpec = Union[FreeFormHeader, OneLineHeader]
