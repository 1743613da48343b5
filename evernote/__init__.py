"""
Evernote import plugin.

This module registers the format plugin for Evernote export files (.enex).
"""

from typing import List, Tuple

from common.models import ImportedNote
from common.plugins import BaseFormatPlugin, register_plugin
from evernote.enex_parser import parse_enex


@register_plugin
class EvernoteFormatPlugin(BaseFormatPlugin):
    """
    Plugin for reading Evernote ENEX exports.
    """

    @classmethod
    def get_name(cls) -> str:
        return "evernote"

    @classmethod
    def get_description(cls) -> str:
        return "Evernote export files (.enex)"

    @classmethod
    def get_extensions(cls) -> Tuple[str, ...]:
        return (".enex",)

    @classmethod
    def parse(cls, content: str, filename: str) -> List[ImportedNote]:
        """
        Parse an ENEX export, which may hold any number of notes.

        Raises
        ------
        MalformedInputError
            If no note can be recovered from the file.
        """
        return parse_enex(content)
