"""
Rendering of the canonical document tree as HTML.

The output uses the same conventions the builder reads (``data-type`` task
lists, ``language-`` classes on code, ``text-align`` on table cells), so a tree
rendered here and parsed back keeps its node types and content.
"""

import html
from typing import Iterable

from document.schema import Mark, Node


def _escape(value: str) -> str:
    return html.escape(value, quote=False)


def _attr(value) -> str:
    return html.escape(str(value), quote=True)


def _render_mark(mark: Mark, inner: str) -> str:
    if mark.type == "bold":
        return f"<strong>{inner}</strong>"
    if mark.type == "italic":
        return f"<em>{inner}</em>"
    if mark.type == "underline":
        return f"<u>{inner}</u>"
    if mark.type == "strike":
        return f"<s>{inner}</s>"
    if mark.type == "code":
        return f"<code>{inner}</code>"
    if mark.type == "link":
        return f'<a href="{_attr(mark.attrs.get("href", ""))}">{inner}</a>'
    if mark.type == "highlight":
        color = mark.attrs.get("color")
        if color:
            return f'<mark data-color="{_attr(color)}">{inner}</mark>'
        return f"<mark>{inner}</mark>"
    if mark.type == "textStyle":
        color = mark.attrs.get("color")
        if color:
            return f'<span style="color: {_attr(color)}">{inner}</span>'
    return inner


def _render_text(node: Node) -> str:
    rendered = _escape(node.text or "")
    # The first mark wraps innermost, matching the order the builder produces
    for mark in node.marks:
        rendered = _render_mark(mark, rendered)
    return rendered


def _children(node: Node) -> str:
    return _render_all(node.content)


def _render_all(nodes: Iterable[Node]) -> str:
    return "".join(render_node(child) for child in nodes)


def _cell(node: Node) -> str:
    tag = "th" if node.type == "tableHeader" else "td"
    attrs = ""
    if node.attrs.get("align"):
        attrs += f' style="text-align: {_attr(node.attrs["align"])}"'
    for span in ("colspan", "rowspan"):
        if node.attrs.get(span):
            attrs += f' {span}="{_attr(node.attrs[span])}"'
    return f"<{tag}{attrs}>{_children(node)}</{tag}>"


def render_node(node: Node) -> str:
    """Render a single node and its descendants."""
    node_type = node.type

    if node_type == "text":
        return _render_text(node)
    if node_type == "hardBreak":
        return "<br>"
    if node_type == "doc":
        return _children(node)
    if node_type == "paragraph":
        return f"<p>{_children(node)}</p>"
    if node_type == "heading":
        level = node.attrs.get("level", 1)
        return f"<h{level}>{_children(node)}</h{level}>"
    if node_type == "bulletList":
        return f"<ul>{_children(node)}</ul>"
    if node_type == "orderedList":
        start = node.attrs.get("start")
        start_attr = f' start="{_attr(start)}"' if start and start != 1 else ""
        return f"<ol{start_attr}>{_children(node)}</ol>"
    if node_type == "listItem":
        return f"<li>{_children(node)}</li>"
    if node_type == "taskList":
        return f'<ul data-type="taskList" class="task-list">{_children(node)}</ul>'
    if node_type == "taskItem":
        checked = bool(node.attrs.get("checked"))
        checkbox = '<input type="checkbox" checked disabled>' if checked else '<input type="checkbox" disabled>'
        return (
            f'<li data-type="taskItem" data-checked="{"true" if checked else "false"}">'
            f"{checkbox}{_children(node)}</li>"
        )
    if node_type == "blockquote":
        return f"<blockquote>{_children(node)}</blockquote>"
    if node_type == "codeBlock":
        language = node.attrs.get("language")
        class_attr = f' class="language-{_attr(language)}"' if language else ""
        return f"<pre><code{class_attr}>{_escape(node.text_content())}</code></pre>"
    if node_type == "horizontalRule":
        return "<hr>"
    if node_type == "image":
        attrs = f'src="{_attr(node.attrs.get("src", ""))}" alt="{_attr(node.attrs.get("alt", ""))}"'
        for name in ("title", "width", "height"):
            if node.attrs.get(name) is not None:
                attrs += f' {name}="{_attr(node.attrs[name])}"'
        return f"<img {attrs}>"
    if node_type == "table":
        return f"<table><tbody>{_children(node)}</tbody></table>"
    if node_type == "tableRow":
        return f"<tr>{_children(node)}</tr>"
    if node_type in ("tableCell", "tableHeader"):
        return _cell(node)
    return _children(node)


def document_to_html(doc: Node) -> str:
    """
    Render a document tree as an HTML fragment.

    Parameters
    ----------
    doc : Node
        A ``doc`` node (any node is accepted and rendered as is).

    Returns
    -------
    str
        The HTML fragment, without an enclosing page.
    """
    if doc is None:
        return ""
    return render_node(doc)
