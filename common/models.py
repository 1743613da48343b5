"""
Records exchanged between the format parsers and the batch importer.
"""

import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ImportedResource:
    """
    A binary attachment embedded in an ENEX note.

    ``hash`` is derived from the resource content and is only meaningful
    inside the note the resource came from.
    """

    hash: str
    data: str
    mime: str
    filename: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def is_image(self) -> bool:
        return self.mime.lower().startswith("image/")

    def data_uri(self) -> str:
        return f"data:{self.mime};base64,{self.data}"


@dataclass
class ImportedNote:
    """
    A note read from an input file, before conversion to the canonical tree.

    Attributes
    ----------
    title : str
        Note title.
    content : str
        HTML body of the note.
    created_at, updated_at : datetime.datetime, optional
        Timestamps in UTC when the source provides them.
    tags : list of str
        Tag names.
    resources : list of ImportedResource
        Embedded resources, already resolved into ``content`` by the parser.
    source : str, optional
        Name of the file the note was read from.
    """

    title: str
    content: str
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None
    tags: List[str] = field(default_factory=list)
    resources: List[ImportedResource] = field(default_factory=list)
    source: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "content": self.content,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "tags": list(self.tags),
        }
