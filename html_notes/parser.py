"""
Reading of standalone HTML documents as notes.
"""

import re

from bs4 import BeautifulSoup
from bs4.element import Comment

from common.models import ImportedNote

EMPTY_BODY = "<p></p>"

_HTML_EXTENSION = re.compile(r"\.(html?|htm)$", re.IGNORECASE)


def title_from_filename(filename: str) -> str:
    """The file name without its ``.html``/``.htm`` extension."""
    return _HTML_EXTENSION.sub("", filename or "")


def parse_html(content: str, filename: str) -> ImportedNote:
    """
    Read an HTML document as a single note.

    Parameters
    ----------
    content : str
        The HTML document.
    filename : str
        Name of the file, used as the title when the document has none.

    Returns
    -------
    ImportedNote
        The note, with the inner HTML of ``<body>`` as content. Scripts,
        styles and comments are removed.
    """
    soup = BeautifulSoup(content or "", "html.parser")

    title = soup.title.get_text().strip() if soup.title else ""
    if not title:
        title = title_from_filename(filename)

    for element in soup.find_all(["script", "style"]):
        element.decompose()
    for comment in soup.find_all(string=lambda value: isinstance(value, Comment)):
        comment.extract()

    if soup.body is not None:
        body = soup.body.decode_contents()
    else:
        if soup.head is not None:
            soup.head.decompose()
        body = soup.decode_contents()

    return ImportedNote(title=title, content=body.strip() or EMPTY_BODY)
