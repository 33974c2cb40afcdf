"""
Utility to render a TableData into an HTML <table> string.
"""

from __future__ import annotations

from typing import Any, List

from dto.table_data import TableData
from grid.cell import GridCell


def _escape_html(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, GridCell):
        return value.as_string() or ""
    return str(value)


def _render_rows(rows: List[List[Any]], tag: str) -> List[str]:
    parts: List[str] = []
    for row in rows:
        parts.append("    <tr>")
        for value in row:
            parts.append(f"      <{tag}>{_escape_html(_cell_text(value))}</{tag}>")
        parts.append("    </tr>")
    return parts


def render_table_html(table: TableData) -> str:
    """
    Render a table's header rows into ``<thead>`` and its body rows into
    ``<tbody>``.  Empty body rows become empty ``<tr>`` elements.
    """
    parts: List[str] = ['<table border="1" cellpadding="5" cellspacing="0">']

    if table.header_rows:
        parts.append("  <thead>")
        parts.extend(_render_rows(table.header_rows, "th"))
        parts.append("  </thead>")

    if table.rows:
        parts.append("  <tbody>")
        parts.extend(_render_rows(table.rows, "td"))
        parts.append("  </tbody>")

    parts.append("</table>")
    return "\n".join(parts)
