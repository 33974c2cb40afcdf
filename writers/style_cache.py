"""
Per-column style reuse for table writes.

xlsx files can only hold a limited number of distinct cell formats, so a
writer must not create a style per written cell.  ``StyleCache`` keeps at
most one ``CellStyle`` per destination column for the lifetime of one
write operation.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from openpyxl.cell.cell import Cell

from grid.styles import CellStyle, clone_style

logger = logging.getLogger(__name__)

StyleCloner = Callable[..., CellStyle]


class StyleCache:

    def __init__(
        self,
        overrides: Optional[Dict[int, CellStyle]] = None,
        *,
        clone: StyleCloner = clone_style,
        data_format_only: bool = False,
    ):
        self.overrides: Dict[int, CellStyle] = dict(overrides or {})
        self.clone = clone
        self.data_format_only = data_format_only
        self._styles: Dict[int, CellStyle] = {}

    def style_for(self, column: int, source: Optional[Cell]) -> Optional[CellStyle]:
        """
        Style for table column *column* (0-based): the override if one is
        configured, else the style cloned from the first source cell seen
        in that column.  ``None`` when neither exists.
        """
        if column in self.overrides:
            return self.overrides[column]

        style = self._styles.get(column)
        if style is None and source is not None:
            style = self.clone(source, data_format_only=self.data_format_only)
            self._styles[column] = style
            logger.debug("Created style for column %d from %s", column, source.coordinate)
        return style

    def __len__(self) -> int:
        return len(self._styles)
