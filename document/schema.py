"""
Immutable node and mark types of the canonical document tree.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple

NODE_TYPES = frozenset({
    "doc", "paragraph", "heading", "bulletList", "orderedList", "taskList",
    "listItem", "taskItem", "blockquote", "codeBlock", "horizontalRule",
    "image", "table", "tableRow", "tableCell", "tableHeader", "text",
    "hardBreak",
})

MARK_TYPES = frozenset({
    "bold", "italic", "underline", "strike", "code", "link", "highlight",
    "textStyle",
})

# Nodes that hold inline content (text and hard breaks)
TEXTBLOCK_TYPES = frozenset({"paragraph", "heading", "codeBlock"})

INLINE_TYPES = frozenset({"text", "hardBreak"})

# Containers that must never be left without children
REQUIRES_CONTENT = frozenset({
    "doc", "blockquote", "listItem", "taskItem", "tableCell", "tableHeader",
})


@dataclass(frozen=True)
class Mark:
    """An inline formatting annotation carried by a text node."""

    type: str
    attrs: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type}
        if self.attrs:
            data["attrs"] = dict(self.attrs)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Mark":
        return cls(type=data["type"], attrs=dict(data.get("attrs") or {}))


@dataclass(frozen=True)
class Node:
    """
    A node of the canonical tree.

    Nodes are never mutated after construction; helpers such as
    :meth:`with_marks` return new nodes.

    Attributes
    ----------
    type : str
        One of ``NODE_TYPES``.
    attrs : Mapping
        Type-specific attributes (``heading.level``, ``taskItem.checked``...).
    content : tuple of Node
        Ordered children. Text and hard-break nodes have none.
    marks : tuple of Mark
        Marks of a text node, innermost first.
    text : str, optional
        Text of a ``text`` node.
    """

    type: str
    attrs: Mapping[str, Any] = field(default_factory=dict)
    content: Tuple["Node", ...] = ()
    marks: Tuple[Mark, ...] = ()
    text: Optional[str] = None

    @property
    def is_inline(self) -> bool:
        return self.type in INLINE_TYPES

    def with_marks(self, marks: Tuple[Mark, ...]) -> "Node":
        return replace(self, marks=tuple(marks))

    def with_content(self, content) -> "Node":
        return replace(self, content=tuple(content))

    def text_content(self) -> str:
        """Concatenated text of this node and its descendants."""
        if self.type == "text":
            return self.text or ""
        if self.type == "hardBreak":
            return "\n"
        return "".join(child.text_content() for child in self.content)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type}
        if self.attrs:
            data["attrs"] = dict(self.attrs)
        if self.type == "text":
            data["text"] = self.text or ""
        if self.content:
            data["content"] = [child.to_dict() for child in self.content]
        if self.marks:
            data["marks"] = [mark.to_dict() for mark in self.marks]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Node":
        node_type = data.get("type")
        if node_type not in NODE_TYPES:
            raise ValueError(f"Unknown node type: {node_type!r}")
        return cls(
            type=node_type,
            attrs=dict(data.get("attrs") or {}),
            content=tuple(cls.from_dict(child) for child in data.get("content") or ()),
            marks=tuple(Mark.from_dict(mark) for mark in data.get("marks") or ()),
            text=data.get("text") if node_type == "text" else None,
        )


def text(value: str, marks: Tuple[Mark, ...] = ()) -> Node:
    return Node("text", text=value, marks=tuple(marks))


def empty_paragraph() -> Node:
    return Node("paragraph")


def container(node_type: str, content, attrs: Optional[Mapping[str, Any]] = None) -> Node:
    """
    Build a container node, applying the empty-content default.

    Containers in ``REQUIRES_CONTENT`` receive a single empty paragraph when
    ``content`` is empty.
    """
    content = tuple(content)
    if not content and node_type in REQUIRES_CONTENT:
        content = (empty_paragraph(),)
    return Node(node_type, attrs=dict(attrs or {}), content=content)


def document(content) -> Node:
    return container("doc", content)
