"""
Parse Evernote export files (.enex) into imported notes.

Evernote exports are frequently not well-formed XML: stray BOMs, HTML named
entities and unescaped ampersands are common. Parsing therefore happens in two
tiers sharing one result contract:

- ``PrimaryEnexParser`` parses the document with lxml, retrying once on a
  repaired copy of the text.
- ``FallbackEnexParser`` scans the text for ``<note>``, ``<resource>`` and
  ``<content>`` blocks with regular expressions.

``parse_enex`` runs the primary parser and switches to the fallback when the
XML cannot be read or contains no notes. It raises only when neither tier
finds a note.
"""

import datetime
import html
import logging
import re
from html.entities import name2codepoint
from typing import List, Optional

from lxml import etree

from common.errors import MalformedInputError
from common.logging import get_or_setup_logger
from common.models import ImportedNote, ImportedResource
from evernote.normalizer import normalize_content
from evernote.resources import build_resource, index_resources

UNTITLED = "Untitled"
EMPTY_BODY = "<p></p>"

_BOM = "\ufeff"
_XML_ENTITIES = {"amp", "lt", "gt", "quot", "apos"}
_NAMED_ENTITY = re.compile(r"&([A-Za-z][A-Za-z0-9]*);")
_BARE_AMPERSAND = re.compile(r"&(?!(?:amp|lt|gt|quot|apos|#\d+|#x[0-9a-fA-F]+);)")
_CDATA_SECTION = re.compile(r"(<!\[CDATA\[.*?\]\]>)", re.DOTALL)
_ENEX_DATE = re.compile(r"(\d{4})(\d{2})(\d{2})T(\d{2})(\d{2})(\d{2})Z")
_EN_NOTE = re.compile(r"<en-note[^>]*>(.*?)</en-note\s*>", re.IGNORECASE | re.DOTALL)
_PROLOG = re.compile(r"<\?xml[^>]*\?>|<!DOCTYPE[^>]*>", re.IGNORECASE)


def _numeric_entity(match: "re.Match") -> str:
    name = match.group(1)
    if name in _XML_ENTITIES or name not in name2codepoint:
        return match.group(0)
    return f"&#{name2codepoint[name]};"


def repair_enex(content: str) -> str:
    """
    Fix the common defects of Evernote exports.

    Removes a leading byte order mark, writes HTML named entities such as
    ``&eacute;`` as numeric character references, and escapes ampersands that
    do not start an XML entity. CDATA sections are left untouched.
    """
    content = content.lstrip(_BOM)
    parts = _CDATA_SECTION.split(content)
    for index in range(0, len(parts), 2):
        part = _NAMED_ENTITY.sub(_numeric_entity, parts[index])
        parts[index] = _BARE_AMPERSAND.sub("&amp;", part)
    return "".join(parts).strip()


def parse_enex_date(value: Optional[str]) -> Optional[datetime.datetime]:
    """
    Parse an ENEX timestamp (``yyyyMMddTHHmmssZ``).

    Returns
    -------
    datetime.datetime or None
        A UTC datetime, or None when the value is missing or not a valid date.
    """
    if not value:
        return None
    match = _ENEX_DATE.search(value)
    if not match:
        return None
    try:
        return datetime.datetime(*(int(part) for part in match.groups()), tzinfo=datetime.timezone.utc)
    except ValueError:
        return None


def extract_note_body(content: str) -> str:
    """Inner HTML of the ``en-note`` element, or the content without its XML prolog."""
    match = _EN_NOTE.search(content or "")
    if match:
        return match.group(1)
    return _PROLOG.sub("", content or "")


def build_note(
    title: Optional[str],
    content: Optional[str],
    created: Optional[str],
    updated: Optional[str],
    tags: List[str],
    resources: List[ImportedResource],
) -> ImportedNote:
    """
    Assemble an ``ImportedNote`` from the raw fields of one ``<note>``.

    Both parser tiers go through this function so they produce identical
    records for identical input.
    """
    body = normalize_content(extract_note_body(content or ""), index_resources(resources)).strip()
    return ImportedNote(
        title=(title or "").strip() or UNTITLED,
        content=body or EMPTY_BODY,
        created_at=parse_enex_date(created),
        updated_at=parse_enex_date(updated),
        tags=[tag.strip() for tag in tags if tag and tag.strip()],
        resources=resources,
    )


class PrimaryEnexParser:
    """
    XML parser for ENEX files, backed by lxml.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_or_setup_logger()

    @staticmethod
    def xpath_first_or_default(node: etree._Element, query: str, default: Optional[str] = None) -> Optional[str]:
        """
        Text of the first result of an XPath query, or a default value.

        Parameters
        ----------
        node : etree._Element
            XML node.
        query : str
            XPath query relative to ``node``.
        default : str, optional
            Value returned when the query selects nothing.
        """
        query_result = node.xpath(query)
        if len(query_result) > 0:
            return query_result[0].text
        return default

    def parse_xml(self, content: str) -> etree._Element:
        """
        Parse ENEX content as XML, retrying once on a repaired copy.

        An export with a DOCTYPE may use entities that are declared nowhere,
        which lxml keeps as entity nodes that element text stops at; such a
        document is also parsed again after repair.

        Raises
        ------
        MalformedInputError
            If the repaired content is still not well-formed.
        """
        xml_parser = etree.XMLParser(huge_tree=True, resolve_entities=False)
        try:
            root = etree.fromstring(content.encode("utf-8"), xml_parser)
        except etree.XMLSyntaxError as e:
            self.logger.info(f"ENEX is not well-formed ({e}), retrying after repair")
        else:
            if next(root.iter(etree.Entity), None) is None:
                return root
            self.logger.info("ENEX uses undeclared entities, retrying after repair")

        try:
            return etree.fromstring(repair_enex(content).encode("utf-8"), xml_parser)
        except etree.XMLSyntaxError as e:
            raise MalformedInputError(f"Invalid ENEX XML: {e}") from e

    def extract_resources(self, note: etree._Element) -> List[ImportedResource]:
        resources = []
        for element in note.xpath("resource"):
            resource = build_resource(
                data=self.xpath_first_or_default(element, "data"),
                mime=self.xpath_first_or_default(element, "mime"),
                filename=self.xpath_first_or_default(element, "resource-attributes/file-name"),
                width=self.xpath_first_or_default(element, "width"),
                height=self.xpath_first_or_default(element, "height"),
                recognition=self.xpath_first_or_default(element, "recognition"),
            )
            if resource is not None:
                resources.append(resource)
        return resources

    def parse(self, content: str) -> List[ImportedNote]:
        """
        Parse ENEX content.

        Parameters
        ----------
        content : str
            ENEX file content.

        Returns
        -------
        List[ImportedNote]
            Notes in document order. Empty when the XML holds no ``<note>``.

        Raises
        ------
        MalformedInputError
            If the content is not XML, even after repair.
        """
        root = self.parse_xml(content)
        notes = []
        for note in root.iter("note"):
            notes.append(build_note(
                title=self.xpath_first_or_default(note, "title"),
                content=self.xpath_first_or_default(note, "content"),
                created=self.xpath_first_or_default(note, "created"),
                updated=self.xpath_first_or_default(note, "updated"),
                tags=[tag.text or "" for tag in note.xpath("tag")],
                resources=self.extract_resources(note),
            ))
        return notes


class FallbackEnexParser:
    """
    Regex scanner for ENEX files that are not readable as XML.
    """

    NOTE_PATTERN = re.compile(r"<note(?:\s[^>]*)?>(.*?)</note\s*>", re.IGNORECASE | re.DOTALL)
    RESOURCE_PATTERN = re.compile(r"<resource(?:\s[^>]*)?>(.*?)</resource\s*>", re.IGNORECASE | re.DOTALL)
    TAG_PATTERN = re.compile(r"<tag(?:\s[^>]*)?>(.*?)</tag\s*>", re.IGNORECASE | re.DOTALL)
    CDATA_PATTERN = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_or_setup_logger()

    @classmethod
    def element_text(cls, block: str, name: str) -> Optional[str]:
        """
        Text of the first ``<name>`` element in a block.

        CDATA sections are unwrapped; other text is entity-decoded.
        """
        match = re.search(
            rf"<{re.escape(name)}(?:\s[^>]*)?>(.*?)</{re.escape(name)}\s*>", block, re.IGNORECASE | re.DOTALL
        )
        if not match:
            return None
        return cls.decode_text(match.group(1))

    @classmethod
    def decode_text(cls, raw: str) -> str:
        cdata = cls.CDATA_PATTERN.search(raw)
        if cdata:
            return cdata.group(1)
        return html.unescape(raw)

    def extract_resources(self, block: str) -> List[ImportedResource]:
        resources = []
        for match in self.RESOURCE_PATTERN.finditer(block):
            resource_block = match.group(1)
            resource = build_resource(
                data=self.element_text(resource_block, "data"),
                mime=self.element_text(resource_block, "mime"),
                filename=self.element_text(resource_block, "file-name"),
                width=self.element_text(resource_block, "width"),
                height=self.element_text(resource_block, "height"),
                recognition=self.element_text(resource_block, "recognition"),
            )
            if resource is not None:
                resources.append(resource)
        return resources

    def parse(self, content: str) -> List[ImportedNote]:
        """
        Scan ENEX content for notes.

        Raises
        ------
        MalformedInputError
            If no ``<note>`` block is found.
        """
        content = repair_enex(content)
        notes = []
        for match in self.NOTE_PATTERN.finditer(content):
            block = match.group(1)
            # Resources are removed first so their fields cannot shadow note fields
            note_fields = self.RESOURCE_PATTERN.sub("", block)
            notes.append(build_note(
                title=self.element_text(note_fields, "title"),
                content=self.element_text(note_fields, "content"),
                created=self.element_text(note_fields, "created"),
                updated=self.element_text(note_fields, "updated"),
                tags=[self.decode_text(tag) for tag in self.TAG_PATTERN.findall(note_fields)],
                resources=self.extract_resources(block),
            ))

        if not notes:
            raise MalformedInputError("No notes found in ENEX file")
        self.logger.info(f"Recovered {len(notes)} note(s) with the fallback ENEX parser")
        return notes


def parse_enex(content: str, logger: Optional[logging.Logger] = None) -> List[ImportedNote]:
    """
    Parse an ENEX export.

    Parameters
    ----------
    content : str
        ENEX file content.
    logger : logging.Logger, optional
        Logger to use.

    Returns
    -------
    List[ImportedNote]
        At least one note, in document order.

    Raises
    ------
    MalformedInputError
        If neither the XML parser nor the fallback scanner finds a note.
    """
    logger = logger or get_or_setup_logger()
    try:
        notes = PrimaryEnexParser(logger).parse(content)
    except MalformedInputError as e:
        logger.warning(f"{e}; trying the fallback ENEX parser")
        return FallbackEnexParser(logger).parse(content)

    if not notes:
        logger.info("No notes found with the XML parser; trying the fallback ENEX parser")
        return FallbackEnexParser(logger).parse(content)
    return notes
