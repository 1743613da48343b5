"""
Preview functionality for parsed notes.

This module provides functions for previewing notes before they are imported
or written out.
"""

import re
import textwrap
from typing import List

from common.logging import get_or_setup_logger
from common.models import ImportedNote

_TAG_RE = re.compile(r"<[^>]+>")


def summarize_content(html: str, limit: int = 200) -> str:
    """
    Reduce an HTML body to a short single-line text summary.

    Parameters
    ----------
    html : str
        Note body.
    limit : int, optional
        Maximum summary length (default: 200).

    Returns
    -------
    str
        Text with tags removed and whitespace collapsed, truncated with "...".
    """
    text = " ".join(_TAG_RE.sub(" ", html).split())
    if len(text) > limit:
        text = text[:limit - 3] + "..."
    return text


def preview_notes(notes: List[ImportedNote], limit: int = 10) -> None:
    """
    Preview a list of notes that will be imported.

    Parameters
    ----------
    notes : List[ImportedNote]
        Notes to preview.
    limit : int, optional
        Maximum number of notes to preview (default: 10).

    Returns
    -------
    None
        The function logs the preview.
    """
    logger = get_or_setup_logger()

    if not notes:
        logger.info("No notes to preview")
        return

    total_notes = len(notes)
    preview_count = min(limit, total_notes)

    logger.info(f"Previewing {preview_count} of {total_notes} notes:")

    for i, note in enumerate(notes[:preview_count], 1):
        logger.info(f"\n--- Note {i} of {preview_count} ---")
        logger.info(f"Title: {note.title}")
        if note.source:
            logger.info(f"Source: {note.source}")
        if note.tags:
            logger.info(f"Tags: {', '.join(note.tags)}")
        if note.created_at:
            logger.info(f"Created: {note.created_at.isoformat()}")
        if note.resources:
            logger.info(f"Resources: {len(note.resources)}")

        summary = summarize_content(note.content)
        if summary:
            logger.info(f"Content: {textwrap.fill(summary, width=80)}")

    if total_notes > preview_count:
        logger.info(f"\n... and {total_notes - preview_count} more notes (use --preview-limit to show more)")
