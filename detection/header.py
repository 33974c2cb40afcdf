"""
Header-row checks.

A free-form table has no header and nothing to check.  A one-line-header
table must show its labels, in order, in the first table row; the sheet's
header may only be wider than the labels when the header spec allows
additional columns.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple

from dto.header import HeaderSpec
from errors import HeaderMismatchError, HeaderSizeMismatchError

logger = logging.getLogger(__name__)


class HeaderValidator:

    def __init__(self, header: HeaderSpec, sheet_name: str):
        self.header = header
        self.sheet_name = sheet_name

    @property
    def number_of_header_lines(self) -> int:
        return self.header.number_of_header_lines

    def strip_header(
        self,
        rows: List[List[Any]],
        as_string: Callable[[Any], Optional[str]],
    ) -> Tuple[List[List[Optional[str]]], List[List[Any]]]:
        """Split *rows* into (header rows as text, body rows)."""
        n = min(self.number_of_header_lines, len(rows))
        header_rows = [[as_string(value) for value in row] for row in rows[:n]]
        return header_rows, rows[n:]

    def validate(self, header_rows: Sequence[Sequence[Optional[str]]]) -> None:
        labels = self.header.labels
        if self.number_of_header_lines == 0 or not header_rows:
            return

        found = list(header_rows[0])
        if len(found) < len(labels) or (
            len(found) > len(labels) and not self.header.ignores_additional_columns
        ):
            raise HeaderSizeMismatchError(self.sheet_name, len(found), len(labels))

        for i, expected in enumerate(labels):
            if found[i] != expected:
                raise HeaderMismatchError(self.sheet_name, i, found[i], expected)

        logger.debug("Sheet '%s': header matches %s", self.sheet_name, labels)
