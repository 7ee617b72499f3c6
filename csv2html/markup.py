"""Build the <table> fragment for a parsed Table."""

from __future__ import annotations

from markupsafe import escape as html_escape

from .models import Table
from .rules import HEADER_CELL_CLASS, LINK_PREFIXES


def is_link(cell: str) -> bool:
    return cell.startswith(LINK_PREFIXES)


def _text(cell: str, escape: bool) -> str:
    return str(html_escape(cell)) if escape else cell


def render_cell(cell: str, detect_links: bool = True, escape: bool = False) -> str:
    """
    Return the inner HTML of one data cell.

    The link test always runs on the raw text, so escaping never hides a URL.
    Without ``escape`` the cell text is emitted verbatim.
    """
    display = _text(cell, escape)
    if detect_links and is_link(cell):
        return f'<a href="{display}">{display}</a>'
    return display


def build_table_html(table: Table, detect_links: bool = True, escape: bool = False) -> str:
    """Render ``table`` in input order, one <td> per field present in each row."""
    parts: list[str] = ["<table>"]

    if table.header is not None:
        parts.append("<thead>")
        for cell in table.header:
            parts.append(f'<th><span class="{HEADER_CELL_CLASS}">{_text(cell, escape)}</span></th>')
        parts.append("</thead>")

    parts.append("<tbody>")
    for row in table.rows:
        parts.append("<tr>")
        for cell in row:
            parts.append(f"<td>{render_cell(cell, detect_links, escape)}</td>")
        parts.append("</tr>")
    parts.append("</tbody>")

    parts.append("</table>")
    return "".join(parts)
