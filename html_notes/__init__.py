"""
HTML import plugin.

This module registers the format plugin for standalone HTML documents.
"""

from typing import List, Tuple

from common.models import ImportedNote
from common.plugins import BaseFormatPlugin, register_plugin
from html_notes.parser import parse_html


@register_plugin
class HtmlFormatPlugin(BaseFormatPlugin):
    """
    Plugin for reading HTML files, one note per file.
    """

    @classmethod
    def get_name(cls) -> str:
        return "html"

    @classmethod
    def get_description(cls) -> str:
        return "HTML documents (.html, .htm)"

    @classmethod
    def get_extensions(cls) -> Tuple[str, ...]:
        return (".html", ".htm")

    @classmethod
    def parse(cls, content: str, filename: str) -> List[ImportedNote]:
        return [parse_html(content, filename)]
