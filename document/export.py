"""
Export of stored notes to files.

A stored note is the record kept by the notes service: id, title, canonical
content tree, timestamps and tags. This module renders such a record as a
Markdown file with YAML frontmatter, a standalone HTML page, plain text, or a
JSON backup.
"""

import html
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dateutil.parser import isoparse

from document.html import document_to_html
from document.markdown import document_to_markdown
from document.schema import Node, document
from document.text import document_to_text

EXPORT_FORMATS = {
    "markdown": (".md", "text/markdown"),
    "html": (".html", "text/html"),
    "text": (".txt", "text/plain"),
    "json": (".json", "application/json"),
}

_UNSAFE_FILENAME = re.compile(r'[/\\?%*:|"<>]')

HTML_STYLESHEET = """\
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 800px; margin: 0 auto; padding: 2rem; line-height: 1.6; }
        h1, h2, h3 { margin-top: 1.5em; }
        pre { background: #f4f4f4; padding: 1rem; border-radius: 4px; overflow-x: auto; }
        code { background: #f4f4f4; padding: 0.2em 0.4em; border-radius: 3px; }
        blockquote { border-left: 4px solid #ddd; margin: 0; padding-left: 1rem; color: #666; }
        img { max-width: 100%; }
        table { border-collapse: collapse; }
        th, td { border: 1px solid #ddd; padding: 0.4rem 0.6rem; }
        .task-list { list-style: none; padding-left: 0; }
        .task-list li { display: flex; align-items: center; gap: 0.5rem; }"""


@dataclass
class ExportableNote:
    """A stored note as returned by the notes service."""

    title: str
    content: Node
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    plain_text: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ExportableNote":
        """
        Build a note from a service record or a bare canonical document.

        Tags may be plain names or ``{"name": ...}`` objects, optionally nested
        under a ``tag`` key as the service returns them.
        """
        if record.get("type") == "doc":
            return cls(title="", content=Node.from_dict(record))

        content = record.get("content")
        tree = Node.from_dict(content) if content else document([])

        tags = []
        for tag in record.get("tags") or []:
            if isinstance(tag, Mapping):
                tag = tag.get("tag", tag)
                tag = tag.get("name") if isinstance(tag, Mapping) else tag
            if tag:
                tags.append(str(tag))

        return cls(
            title=record.get("title") or "",
            content=tree,
            id=record.get("id"),
            created_at=record.get("createdAt"),
            updated_at=record.get("updatedAt"),
            tags=tags,
            plain_text=record.get("plainText"),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content.to_dict(),
            "plainText": self.plain_text,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "tags": [{"name": tag} for tag in self.tags],
        }


def safe_filename(title: str, extension: str) -> str:
    """File name for an exported note, with path-unsafe characters replaced."""
    return _UNSAFE_FILENAME.sub("-", f"{title or 'untitled'}{extension}")


def _format_date(value: Optional[str]) -> str:
    if not value:
        return ""
    try:
        return isoparse(value).strftime("%d/%m/%Y")
    except (TypeError, ValueError):
        return value


def export_markdown(note: ExportableNote) -> str:
    """Markdown body preceded by a YAML frontmatter block."""
    frontmatter: Dict[str, Any] = {
        "title": note.title,
        "created": note.created_at,
        "updated": note.updated_at,
    }
    if note.tags:
        frontmatter["tags"] = list(note.tags)
    header = yaml.safe_dump(frontmatter, allow_unicode=True, sort_keys=False, default_flow_style=None)
    return f"---\n{header}---\n\n{document_to_markdown(note.content)}\n"


def export_html(note: ExportableNote) -> str:
    """Standalone HTML page with an inline stylesheet."""
    title = html.escape(note.title or "")
    return f"""<!DOCTYPE html>
<html lang="pt-BR">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>
{HTML_STYLESHEET}
    </style>
</head>
<body>
    <h1>{title}</h1>
    <p><small>Criado: {_format_date(note.created_at)} | Atualizado: {_format_date(note.updated_at)}</small></p>
    {document_to_html(note.content)}
</body>
</html>
"""


def export_text(note: ExportableNote) -> str:
    """Title underlined with ``=`` followed by the plain text of the note."""
    body = note.plain_text or document_to_text(note.content)
    return f"{note.title}\n{'=' * len(note.title)}\n\n{body}"


def export_json(note: ExportableNote) -> str:
    """Full note record, the backup format."""
    return json.dumps(note.to_record(), indent=2, ensure_ascii=False)


_EXPORTERS = {
    "markdown": export_markdown,
    "html": export_html,
    "text": export_text,
    "json": export_json,
}


def export_note(note: ExportableNote, export_format: str) -> str:
    """
    Render a note in one of ``EXPORT_FORMATS``.

    Raises
    ------
    ValueError
        If the format is unknown.
    """
    try:
        exporter = _EXPORTERS[export_format]
    except KeyError:
        raise ValueError(f"Unknown export format: {export_format}")
    return exporter(note)


