"""
Rendering of the canonical document tree as Markdown (CommonMark + GFM).

Marks without a Markdown form (``underline``, ``textStyle``) are dropped.
"""

from typing import List, Optional, Sequence

from document.schema import Node

_MARK_WRAPPERS = {
    "bold": ("**", "**"),
    "italic": ("*", "*"),
    "strike": ("~~", "~~"),
    "code": ("`", "`"),
    "highlight": ("==", "=="),
}


def _render_text(node: Node) -> str:
    rendered = node.text or ""
    for mark in node.marks:
        if mark.type == "link":
            rendered = f"[{rendered}]({mark.attrs.get('href', '')})"
        elif mark.type in _MARK_WRAPPERS:
            opening, closing = _MARK_WRAPPERS[mark.type]
            rendered = f"{opening}{rendered}{closing}"
    return rendered


def _inline(nodes: Sequence[Node]) -> str:
    parts = []
    for node in nodes:
        if node.type == "text":
            parts.append(_render_text(node))
        elif node.type == "hardBreak":
            parts.append("\n")
        else:
            parts.append(_inline(node.content))
    return "".join(parts)


def _indent(body: str, marker: str) -> str:
    """Put ``marker`` before the first line and align the other lines under it."""
    padding = " " * len(marker)
    lines = body.split("\n")
    rendered = [marker + lines[0]]
    rendered.extend(padding + line if line else line for line in lines[1:])
    return "\n".join(rendered)


def _list(node: Node) -> str:
    items = []
    start = node.attrs.get("start") or 1
    for index, item in enumerate(node.content):
        if node.type == "orderedList":
            marker = f"{start + index}. "
        elif item.type == "taskItem":
            marker = "- [x] " if item.attrs.get("checked") else "- [ ] "
        else:
            marker = "- "
        items.append(_indent(_blocks(item.content, tight=True), marker))
    return "\n".join(items)


def _cell_text(cell: Node) -> str:
    return " ".join(_inline(block.content) for block in cell.content).replace("|", "\\|").replace("\n", " ")


def _alignment(rows: Sequence[Node], column: int) -> Optional[str]:
    for row in rows:
        if column < len(row.content):
            align = row.content[column].attrs.get("align")
            if align:
                return align
    return None


def _table(node: Node) -> str:
    rows = list(node.content)
    if not rows:
        return ""
    width = max(len(row.content) for row in rows)

    def line(cells: List[str]) -> str:
        cells = cells + [""] * (width - len(cells))
        return "| " + " | ".join(cells) + " |"

    separators = []
    for column in range(width):
        align = _alignment(rows, column)
        if align == "center":
            separators.append(":---:")
        elif align == "right":
            separators.append("---:")
        elif align == "left":
            separators.append(":---")
        else:
            separators.append("---")

    lines = [line([_cell_text(cell) for cell in rows[0].content]), "|" + "|".join(separators) + "|"]
    lines.extend(line([_cell_text(cell) for cell in row.content]) for row in rows[1:])
    return "\n".join(lines)


def _block(node: Node) -> str:
    node_type = node.type
    if node_type == "paragraph":
        return _inline(node.content)
    if node_type == "heading":
        return f"{'#' * node.attrs.get('level', 1)} {_inline(node.content)}"
    if node_type in ("bulletList", "orderedList", "taskList"):
        return _list(node)
    if node_type == "blockquote":
        inner = _blocks(node.content)
        return "\n".join(f"> {line}" if line else ">" for line in inner.split("\n"))
    if node_type == "codeBlock":
        return f"```{node.attrs.get('language') or ''}\n{node.text_content()}\n```"
    if node_type == "horizontalRule":
        return "---"
    if node_type == "image":
        return f"![{node.attrs.get('alt') or 'image'}]({node.attrs.get('src', '')})"
    if node_type == "table":
        return _table(node)
    if node.is_inline:
        return _inline([node])
    return _blocks(node.content)


def _blocks(nodes: Sequence[Node], tight: bool = False) -> str:
    rendered = [_block(node) for node in nodes]
    return ("\n" if tight else "\n\n").join(part for part in rendered if part)


def document_to_markdown(doc: Node) -> str:
    """
    Render a document tree as Markdown.

    Parameters
    ----------
    doc : Node
        A ``doc`` node.

    Returns
    -------
    str
        Markdown text without surrounding blank lines.
    """
    if doc is None:
        return ""
    return _blocks(doc.content if doc.type == "doc" else [doc]).strip()
