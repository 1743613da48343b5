"""
Reading of Markdown files as notes.

A Markdown file may start with a ``---`` delimited YAML frontmatter block; only
its ``title`` key is used. The note title is taken from the frontmatter, else
from the first level-1 heading (which is then removed from the body), else
from the file name.
"""

import re
from typing import Optional, Tuple

import yaml

from common.logging import get_or_setup_logger
from common.models import ImportedNote
from markdown_notes.compiler import fenced_code_spans, markdown_to_html

EMPTY_BODY = "<p></p>"

_FRONTMATTER = re.compile(r"\A\ufeff?---[ \t]*\n(?:---[ \t]*(?:\n|\Z)|(.*?)\n---[ \t]*(?:\n|\Z))", re.DOTALL)
_TITLE_HEADING = re.compile(r"^#[ \t]+(.+?)[ \t]*$", re.MULTILINE)
_MARKDOWN_EXTENSION = re.compile(r"\.(md|markdown)$", re.IGNORECASE)


def split_frontmatter(content: str) -> Tuple[Optional[str], str]:
    """
    Separate a leading frontmatter block from the Markdown body.

    Returns
    -------
    tuple
        The frontmatter title (None when absent or unreadable) and the body.
    """
    match = _FRONTMATTER.match(content)
    if not match:
        return None, content

    body = content[match.end():]
    try:
        metadata = yaml.safe_load(match.group(1) or "")
    except yaml.YAMLError as e:
        get_or_setup_logger().debug(f"Ignoring unreadable frontmatter: {e}")
        return None, body

    if isinstance(metadata, dict) and metadata.get("title") is not None:
        title = str(metadata["title"]).strip()
        return title or None, body
    return None, body


def find_title_heading(body: str) -> Optional["re.Match"]:
    """The first level-1 heading of ``body`` that is not inside a fenced code block."""
    spans = fenced_code_spans(body)
    for heading in _TITLE_HEADING.finditer(body):
        if not any(start <= heading.start() < end for start, end in spans):
            return heading
    return None


def parse_markdown(content: str, filename: str) -> ImportedNote:
    """
    Read a Markdown file as a single note.

    Parameters
    ----------
    content : str
        Markdown source.
    filename : str
        Name of the file, used as the title of last resort.

    Returns
    -------
    ImportedNote
        The note, with the compiled HTML as content.
    """
    text = (content or "").replace("\r\n", "\n")
    title, body = split_frontmatter(text)

    if title is None:
        heading = find_title_heading(body)
        if heading:
            title = heading.group(1).strip()
            body = body[:heading.start()] + body[heading.end():]

    if not title:
        title = _MARKDOWN_EXTENSION.sub("", filename or "")

    html = markdown_to_html(body.strip())
    return ImportedNote(title=title, content=html or EMPTY_BODY)
