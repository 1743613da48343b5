"""
List nesting normalizer.

Turns flat Markdown list lines into nested ``<ul>``/``<ol>`` markup using a
stack of open lists, each remembered with the indentation it was opened at.
A list opened inside another one is emitted directly after the item it
belongs to; the document builder attaches it to that item.
"""

import re
from typing import List, NamedTuple

LIST_ITEM = re.compile(r"^([ \t]*)([-*+]|(\d+)\.)[ \t]+(.*)$")
# A thematic break such as "* * *" or "- - -" is not a list item
HORIZONTAL_RULE = re.compile(r"^[ \t]*([-*_])(?:[ \t]*\1){2,}[ \t]*$", re.MULTILINE)

TAB_WIDTH = 4


class ListFrame(NamedTuple):
    tag: str
    indent: int


def indent_width(whitespace: str) -> int:
    return len(whitespace.replace("\t", " " * TAB_WIDTH))


def normalize_lists(text: str) -> str:
    """
    Convert list item lines into nested HTML lists.

    For each item line, open lists indented deeper than the line are closed,
    and a new list is opened when no list is open or the innermost open list is
    indented less than the line. Any other line, blank lines included, closes
    every open list. The kind of a list is fixed by the marker that opened it.

    Parameters
    ----------
    text : str
        Markdown text.

    Returns
    -------
    str
        The text with list markup, one tag per line.
    """
    output: List[str] = []
    stack: List[ListFrame] = []

    def close(frame: ListFrame) -> None:
        output.append(f"</{frame.tag}>")

    for line in text.split("\n"):
        match = None if HORIZONTAL_RULE.match(line) else LIST_ITEM.match(line)
        if not match:
            while stack:
                close(stack.pop())
            output.append(line)
            continue

        indent = indent_width(match.group(1))
        while stack and stack[-1].indent > indent:
            close(stack.pop())

        if not stack or stack[-1].indent < indent:
            number = match.group(3)
            if number is None:
                stack.append(ListFrame("ul", indent))
                output.append("<ul>")
            else:
                stack.append(ListFrame("ol", indent))
                output.append("<ol>" if int(number) == 1 else f'<ol start="{int(number)}">')

        output.append(f"<li>{match.group(4).strip()}</li>")

    while stack:
        close(stack.pop())

    return "\n".join(output)
