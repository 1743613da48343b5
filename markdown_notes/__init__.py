"""
Markdown import plugin.

This module registers the format plugin for Markdown files, including the
GitHub flavoured extensions (tables, task lists, strikethrough).
"""

from typing import List, Tuple

from common.models import ImportedNote
from common.plugins import BaseFormatPlugin, register_plugin
from markdown_notes.parser import parse_markdown


@register_plugin
class MarkdownFormatPlugin(BaseFormatPlugin):
    """
    Plugin for reading Markdown files, one note per file.
    """

    @classmethod
    def get_name(cls) -> str:
        return "markdown"

    @classmethod
    def get_description(cls) -> str:
        return "Markdown files (.md, .markdown)"

    @classmethod
    def get_extensions(cls) -> Tuple[str, ...]:
        return (".md", ".markdown")

    @classmethod
    def parse(cls, content: str, filename: str) -> List[ImportedNote]:
        return [parse_markdown(content, filename)]
