"""
Plain-text rendering of the canonical document tree.

The Markdown rendering is reused and its remaining markup punctuation removed.
"""

import re

from document.markdown import document_to_markdown
from document.schema import Node

_MARKDOWN_PUNCTUATION = re.compile(r"[#*`_~\[\]]")


def document_to_text(doc: Node) -> str:
    """Render a document tree as plain text."""
    return _MARKDOWN_PUNCTUATION.sub("", document_to_markdown(doc))
