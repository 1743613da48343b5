"""
Conversion of GFM pipe tables into HTML tables.

A table starts at a row containing ``|`` that is immediately followed by an
alignment row such as ``|---|:--:|---:|``, and ends at the first line without
a ``|``. Each table is emitted on a single line so later line-based stages of
the compiler see it as one block.
"""

import re
from typing import List, Optional

_ALIGNMENT_CELL = re.compile(r"^\s*(:?)-+(:?)\s*$")
_CELL_SEPARATOR = re.compile(r"(?<!\\)\|")


def split_row(line: str) -> List[str]:
    """Cells of a pipe table row. ``\\|`` is a literal pipe inside a cell."""
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]
    return [cell.strip().replace("\\|", "|") for cell in _CELL_SEPARATOR.split(row)]


def parse_alignment_row(line: str) -> Optional[List[Optional[str]]]:
    """
    Column alignments of an alignment row.

    Returns
    -------
    list or None
        One of ``"left"``, ``"center"``, ``"right"`` or None per column, or None
        when the line is not an alignment row.
    """
    if "|" not in line:
        return None
    alignments: List[Optional[str]] = []
    for cell in split_row(line):
        match = _ALIGNMENT_CELL.match(cell)
        if not match:
            return None
        left, right = match.group(1), match.group(2)
        if left and right:
            alignments.append("center")
        elif right:
            alignments.append("right")
        elif left:
            alignments.append("left")
        else:
            alignments.append(None)
    return alignments


def _cell(tag: str, content: str, align: Optional[str]) -> str:
    style = f' style="text-align: {align}"' if align else ""
    return f"<{tag}{style}>{content}</{tag}>"


def render_table(header: List[str], alignments: List[Optional[str]], rows: List[List[str]]) -> str:
    """
    Render a table as one line of HTML.

    Every row is padded or truncated to the number of header cells.
    """
    width = len(header)
    alignments = (alignments + [None] * width)[:width]

    parts = ["<table><tr>"]
    parts.extend(_cell("th", cell, align) for cell, align in zip(header, alignments))
    parts.append("</tr>")
    for row in rows:
        row = (row + [""] * width)[:width]
        parts.append("<tr>")
        parts.extend(_cell("td", cell, align) for cell, align in zip(row, alignments))
        parts.append("</tr>")
    parts.append("</table>")
    return "".join(parts)


def convert_tables(text: str) -> str:
    """
    Replace every pipe table in ``text`` with an HTML table.

    Parameters
    ----------
    text : str
        Markdown text, already entity-escaped.

    Returns
    -------
    str
        The text with each table collapsed to a single ``<table>`` line.
    """
    lines = text.split("\n")
    output: List[str] = []
    index = 0

    while index < len(lines):
        line = lines[index]
        alignments = None
        if "|" in line and index + 1 < len(lines):
            alignments = parse_alignment_row(lines[index + 1])
        if alignments is None:
            output.append(line)
            index += 1
            continue

        header = split_row(line)
        index += 2
        rows = []
        while index < len(lines) and "|" in lines[index]:
            rows.append(split_row(lines[index]))
            index += 1
        output.append(render_table(header, alignments, rows))

    return "\n".join(output)
