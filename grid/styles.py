"""
Cell style snapshots.

A ``CellStyle`` is a detached copy of a cell's formatting that can be
applied to cells of another workbook.  The writer creates one per
destination column and re-applies it, so the number of style objects
stays bounded by the table width rather than growing with every cell.
"""

from __future__ import annotations

from copy import copy
from dataclasses import dataclass
from typing import Optional

from openpyxl.cell.cell import Cell
from openpyxl.styles import Alignment, Border, Font, Protection
from openpyxl.styles.fills import Fill


@dataclass(frozen=True)
class CellStyle:
    number_format: str = "General"
    font: Optional[Font] = None
    fill: Optional[Fill] = None
    border: Optional[Border] = None
    alignment: Optional[Alignment] = None
    protection: Optional[Protection] = None


def clone_style(cell: Cell, data_format_only: bool = False) -> CellStyle:
    """Snapshot the style of *cell* (only its number format if asked)."""
    if data_format_only or not cell.has_style:
        return CellStyle(number_format=cell.number_format)

    return CellStyle(
        number_format=cell.number_format,
        font=copy(cell.font),
        fill=copy(cell.fill),
        border=copy(cell.border),
        alignment=copy(cell.alignment),
        protection=copy(cell.protection),
    )


def apply_style(cell: Cell, style: CellStyle) -> None:
    cell.number_format = style.number_format
    if style.font is not None:
        cell.font = style.font
    if style.fill is not None:
        cell.fill = style.fill
    if style.border is not None:
        cell.border = style.border
    if style.alignment is not None:
        cell.alignment = style.alignment
    if style.protection is not None:
        cell.protection = style.protection
