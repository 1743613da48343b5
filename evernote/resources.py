"""
Extraction and identification of resources embedded in ENEX notes.

A resource is referenced from the note body by ``<en-media hash="...">``. The
identifier used here is taken from the ``objID`` of the resource's recognition
data when present, and otherwise derived from the start of its base64 payload,
so both the XML and the regex parsing paths arrive at the same identifier for
the same resource.
"""

import html
import re
from typing import Dict, Iterable, Optional

from common.models import ImportedResource

HASH_PREFIX_LENGTH = 100

_FNV_OFFSET_BASIS = 0xCBF29CE484222325
_FNV_PRIME = 0x100000001B3
_FNV_MASK = 0xFFFFFFFFFFFFFFFF

_WHITESPACE = re.compile(r"\s+")
_OBJ_ID = re.compile(r"""objID\s*=\s*["']([^"']+)["']""", re.IGNORECASE)


def clean_base64(data: Optional[str]) -> str:
    """Remove the line breaks and indentation ENEX exports put inside base64 data."""
    return _WHITESPACE.sub("", data or "")


def prefix_hash(data: str) -> str:
    """
    Content-prefix hash of a base64 payload.

    FNV-1a (64 bit) over the first ``HASH_PREFIX_LENGTH`` characters of the
    whitespace-free payload. Not cryptographic: two payloads sharing their first
    characters share a hash.

    Parameters
    ----------
    data : str
        Base64 payload, whitespace allowed.

    Returns
    -------
    str
        16 lower-case hexadecimal digits.
    """
    value = _FNV_OFFSET_BASIS
    for byte in clean_base64(data)[:HASH_PREFIX_LENGTH].encode("utf-8"):
        value ^= byte
        value = (value * _FNV_PRIME) & _FNV_MASK
    return f"{value:016x}"


def recognition_object_id(recognition: Optional[str]) -> Optional[str]:
    """
    The ``objID`` attribute of a recognition document, if any.

    Works on the decoded recognition XML as well as on text where the XML is
    still entity-escaped.
    """
    if not recognition:
        return None
    match = _OBJ_ID.search(html.unescape(recognition))
    return match.group(1).strip() if match else None


def resource_hash(data: str, recognition: Optional[str] = None) -> str:
    """Identifier of a resource: the recognition ``objID``, else the prefix hash."""
    return recognition_object_id(recognition) or prefix_hash(data)


def _to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    match = re.match(r"\s*(\d+)", value)
    return int(match.group(1)) if match else None


def build_resource(
    data: Optional[str],
    mime: Optional[str],
    filename: Optional[str] = None,
    width: Optional[str] = None,
    height: Optional[str] = None,
    recognition: Optional[str] = None,
) -> Optional[ImportedResource]:
    """
    Build an ``ImportedResource`` from the raw fields of an ENEX ``<resource>``.

    Parameters
    ----------
    data : str
        Base64 payload as found in the export.
    mime : str
        MIME type; ``application/octet-stream`` when missing.
    filename : str, optional
        Original file name from the resource attributes.
    width, height : str, optional
        Image dimensions as text.
    recognition : str, optional
        Recognition XML, used for the ``objID`` identifier.

    Returns
    -------
    ImportedResource or None
        None when the resource carries no data.
    """
    payload = clean_base64(data)
    if not payload:
        return None
    return ImportedResource(
        hash=resource_hash(payload, recognition),
        data=payload,
        mime=(mime or "").strip() or "application/octet-stream",
        filename=(filename or "").strip() or None,
        width=_to_int(width),
        height=_to_int(height),
    )


def index_resources(resources: Iterable[ImportedResource]) -> Dict[str, ImportedResource]:
    """Map resources by hash. On a collision the first resource is kept."""
    index: Dict[str, ImportedResource] = {}
    for resource in resources:
        index.setdefault(resource.hash, resource)
    return index
