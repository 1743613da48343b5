"""
Conversion of HTML into the canonical document tree.

The walk is recursive and depth first, with one handler per block tag. Inline
formatting tags do not produce nodes: they add a mark to the tuple of marks
passed down to their children, so every text node below them carries the mark.
Marks are prepended on the way down, which leaves each text node with its
innermost mark first. Tags without a handler are flattened into the result of
their children.
"""

import re
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

from document.schema import Mark, Node, container, document, empty_paragraph, text

Marks = Tuple[Mark, ...]

IGNORED_TAGS = frozenset({
    "script", "style", "head", "title", "meta", "link", "noscript", "template",
    "input", "button", "select", "textarea", "iframe", "object", "embed",
})

LIST_TYPES = frozenset({"bulletList", "orderedList", "taskList"})

_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)
_NEWLINE_RUN = re.compile(r"\s*\n\s*")
_HEADING_TAGS = {f"h{level}": level for level in range(1, 7)}
_CODE_LANGUAGE = re.compile(r"(?:^|\s)(?:language|lang)-([\w+#.-]+)")
_BOLD_WEIGHTS = {"bold", "bolder", "600", "700", "800", "900"}


def html_to_document(html: str) -> Node:
    """
    Convert an HTML fragment or document into a ``doc`` node.

    Parameters
    ----------
    html : str
        HTML to convert. Evernote, Markdown and HTML importers all produce
        fragments of this kind.

    Returns
    -------
    Node
        A ``doc`` node, holding at least one (possibly empty) paragraph.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    return document(_blockify(_walk_children(soup, ())))


def _walk_children(element: Tag, marks: Marks) -> List[Node]:
    nodes: List[Node] = []
    for child in element.children:
        nodes.extend(_walk(child, marks))
    return nodes


def _walk(element, marks: Marks) -> List[Node]:
    if isinstance(element, NavigableString):
        if isinstance(element, _SKIPPED_STRINGS):
            return []
        value = _NEWLINE_RUN.sub(" ", str(element))
        return [text(value, marks)] if value else []

    if not isinstance(element, Tag):
        return []

    name = element.name.lower()
    if name in IGNORED_TAGS:
        return []

    handler = _BLOCK_HANDLERS.get(name)
    if handler is not None:
        return handler(element, marks)

    inner = marks
    for mark in _inline_marks(name, element):
        inner = (mark,) + inner
    return _walk_children(element, inner)


def _parse_style(style: Optional[str]) -> Dict[str, str]:
    declarations = {}
    for declaration in (style or "").split(";"):
        if ":" not in declaration:
            continue
        prop, _, value = declaration.partition(":")
        declarations[prop.strip().lower()] = value.strip()
    return declarations


def _inline_marks(name: str, element: Tag) -> List[Mark]:
    """Marks contributed by an inline tag, outermost first."""
    if name in ("strong", "b"):
        return [Mark("bold")]
    if name in ("em", "i"):
        return [Mark("italic")]
    if name in ("u", "ins"):
        return [Mark("underline")]
    if name in ("s", "strike", "del"):
        return [Mark("strike")]
    if name in ("code", "kbd", "tt", "samp"):
        return [Mark("code")]
    if name == "a":
        href = element.get("href")
        return [Mark("link", {"href": href})] if href else []
    if name == "mark":
        color = element.get("data-color") or _parse_style(element.get("style")).get("background-color")
        return [Mark("highlight", {"color": color} if color else {})]
    if name not in ("span", "font"):
        return []

    style = _parse_style(element.get("style"))
    marks = []
    if style.get("font-weight", "").lower() in _BOLD_WEIGHTS:
        marks.append(Mark("bold"))
    if style.get("font-style", "").lower() == "italic":
        marks.append(Mark("italic"))
    decoration = style.get("text-decoration", "").lower()
    if "underline" in decoration:
        marks.append(Mark("underline"))
    if "line-through" in decoration:
        marks.append(Mark("strike"))
    if style.get("background-color"):
        marks.append(Mark("highlight", {"color": style["background-color"]}))
    color = style.get("color") or (element.get("color") if name == "font" else None)
    if color:
        marks.append(Mark("textStyle", {"color": color}))
    return marks


def _trim_inline(nodes: List[Node]) -> List[Node]:
    """Strip leading and trailing whitespace and hard breaks from an inline run."""
    nodes = list(nodes)
    while nodes:
        first = nodes[0]
        if first.type == "hardBreak":
            nodes.pop(0)
            continue
        if first.type == "text":
            value = first.text.lstrip()
            if not value:
                nodes.pop(0)
                continue
            nodes[0] = replace(first, text=value)
        break
    while nodes:
        last = nodes[-1]
        if last.type == "hardBreak":
            nodes.pop()
            continue
        if last.type == "text":
            value = last.text.rstrip()
            if not value:
                nodes.pop()
                continue
            nodes[-1] = replace(last, text=value)
        break
    return nodes


def _blockify(nodes: List[Node]) -> List[Node]:
    """Group runs of inline nodes into paragraphs, keeping block nodes as they are."""
    blocks: List[Node] = []
    run: List[Node] = []

    def flush():
        inline = _trim_inline(run)
        if inline:
            blocks.append(Node("paragraph", content=tuple(inline)))
        run.clear()

    for node in nodes:
        if node.is_inline:
            run.append(node)
        else:
            flush()
            blocks.append(node)
    flush()
    return blocks


def _paragraph(element: Tag, marks: Marks) -> List[Node]:
    children = _walk_children(element, marks)
    if any(not node.is_inline for node in children):
        return _blockify(children)
    inline = _trim_inline(children)
    if not inline:
        return []
    return [Node("paragraph", content=tuple(inline))]


def _heading(element: Tag, marks: Marks) -> List[Node]:
    children = [node for node in _walk_children(element, marks) if node.is_inline]
    inline = _trim_inline(children)
    if not inline:
        return []
    level = _HEADING_TAGS[element.name.lower()]
    return [Node("heading", attrs={"level": level}, content=tuple(inline))]


def _hard_break(element: Tag, marks: Marks) -> List[Node]:
    return [Node("hardBreak")]


def _horizontal_rule(element: Tag, marks: Marks) -> List[Node]:
    return [Node("horizontalRule")]


def _int_attr(value) -> Optional[int]:
    if value is None:
        return None
    match = re.match(r"\s*(\d+)", str(value))
    return int(match.group(1)) if match else None


def _image(element: Tag, marks: Marks) -> List[Node]:
    src = element.get("src")
    if not src:
        return []
    attrs = {"src": src, "alt": element.get("alt") or ""}
    if element.get("title"):
        attrs["title"] = element["title"]
    for dimension in ("width", "height"):
        value = _int_attr(element.get(dimension))
        if value is not None:
            attrs[dimension] = value
    return [Node("image", attrs=attrs)]


def _blockquote(element: Tag, marks: Marks) -> List[Node]:
    return [container("blockquote", _blockify(_walk_children(element, marks)))]


def _code_block(element: Tag, marks: Marks) -> List[Node]:
    code = element.find("code")
    classes = " ".join((code.get("class") if code else None) or element.get("class") or [])
    match = _CODE_LANGUAGE.search(classes)
    language = match.group(1) if match else element.get("data-language")

    value = element.get_text()
    if value.endswith("\n"):
        value = value[:-1]
    content = (text(value),) if value else ()
    return [Node("codeBlock", attrs={"language": language or None}, content=content)]


def _is_checked(item: Tag) -> bool:
    if item.get("data-checked") is not None:
        return str(item.get("data-checked")).lower() == "true"
    for checkbox in item.find_all("input"):
        if checkbox.get("type", "").lower() == "checkbox" and checkbox.find_parent("li") is item:
            return checkbox.has_attr("checked")
    return False


def _list_item(item: Tag, marks: Marks, task: bool) -> Node:
    content = _blockify(_walk_children(item, marks))
    if content and content[0].type != "paragraph":
        content.insert(0, empty_paragraph())
    if task:
        return container("taskItem", content, {"checked": _is_checked(item)})
    return container("listItem", content)


def _is_task_list(element: Tag) -> bool:
    if element.get("data-type") == "taskList":
        return True
    if "task-list" in (element.get("class") or []):
        return True
    items = [child for child in element.children if isinstance(child, Tag) and child.name.lower() == "li"]
    return bool(items) and all(item.get("data-type") == "taskItem" for item in items)


def _list(element: Tag, marks: Marks) -> List[Node]:
    name = element.name.lower()
    task = name == "ul" and _is_task_list(element)
    items: List[Node] = []

    for child in element.children:
        if isinstance(child, Tag) and child.name.lower() == "li":
            items.append(_list_item(child, marks, task))
            continue
        for block in _blockify(_walk(child, marks)):
            if block.type in LIST_TYPES and items:
                # A list nested directly in a list belongs to the preceding item
                items[-1] = items[-1].with_content(items[-1].content + (block,))
            elif task:
                items.append(container("taskItem", [block], {"checked": False}))
            else:
                items.append(container("listItem", [block]))

    if not items:
        return []
    if task:
        return [Node("taskList", content=tuple(items))]
    if name == "ol":
        attrs = {}
        start = _int_attr(element.get("start"))
        if start is not None and start != 1:
            attrs["start"] = start
        return [Node("orderedList", attrs=attrs, content=tuple(items))]
    return [Node("bulletList", content=tuple(items))]


def _orphan_item(element: Tag, marks: Marks) -> List[Node]:
    task = element.get("data-type") == "taskItem"
    item = _list_item(element, marks, task)
    return [Node("taskList" if task else "bulletList", content=(item,))]


def _cell_align(cell: Tag) -> Optional[str]:
    align = _parse_style(cell.get("style")).get("text-align") or cell.get("align")
    if align and align.lower() in ("left", "center", "right"):
        return align.lower()
    return None


def _table(element: Tag, marks: Marks) -> List[Node]:
    rows = []
    for row in element.find_all("tr"):
        if row.find_parent("table") is not element:
            continue
        cells = []
        for cell in row.find_all(["td", "th"], recursive=False):
            attrs = {}
            align = _cell_align(cell)
            if align:
                attrs["align"] = align
            for span in ("colspan", "rowspan"):
                value = _int_attr(cell.get(span))
                if value and value > 1:
                    attrs[span] = value
            cell_type = "tableHeader" if cell.name.lower() == "th" else "tableCell"
            cells.append(container(cell_type, _blockify(_walk_children(cell, marks)), attrs))
        if cells:
            rows.append(Node("tableRow", content=tuple(cells)))
    if not rows:
        return []
    return [Node("table", content=tuple(rows))]


_BLOCK_HANDLERS: Dict[str, Callable[[Tag, Marks], List[Node]]] = {
    "p": _paragraph,
    "div": _paragraph,
    "br": _hard_break,
    "hr": _horizontal_rule,
    "img": _image,
    "blockquote": _blockquote,
    "pre": _code_block,
    "ul": _list,
    "ol": _list,
    "li": _orphan_item,
    "table": _table,
}
_BLOCK_HANDLERS.update({tag: _heading for tag in _HEADING_TAGS})
