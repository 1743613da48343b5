"""
Canonical rich-text document tree.

The tree is the interchange format shared by the importers, the notes service
and the exporters. It has the shape of the editor's JSON documents: typed nodes
with attributes, child content and, on text nodes, formatting marks.
"""

from document.schema import Mark, Node, empty_paragraph
from document.builder import html_to_document
from document.markdown import document_to_markdown
from document.html import document_to_html
from document.text import document_to_text

__all__ = [
    "Mark",
    "Node",
    "empty_paragraph",
    "html_to_document",
    "document_to_markdown",
    "document_to_html",
    "document_to_text",
]
