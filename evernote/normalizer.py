"""
Rewriting of Evernote markup into plain HTML.

The body of a note is parsed once with BeautifulSoup and three passes run in
order over the tree:

1. ``en-media`` references are resolved against the note's resources. Images
   become inline ``<img>`` elements with a data URI, other files become a link,
   and references without a matching resource become a visible marker.
2. ``en-crypt`` blocks are replaced by a placeholder. Encrypted content is not
   decrypted.
3. ``en-todo`` checkboxes become task list items, and contiguous items are
   grouped into a single task list.

Elements are found in the parsed tree, so an ``en-media`` or ``en-crypt`` tag
left unclosed by a broken export is rewritten like a well-formed one. The
passes never raise and running them again on their own output changes nothing.
"""

from typing import Iterable, List, Mapping, Optional

from bs4 import BeautifulSoup
from bs4.element import NavigableString, Tag

from common.logging import get_or_setup_logger
from common.models import ImportedResource

ENCRYPTED_PLACEHOLDER = "<em>[encrypted content]</em>"
TASK_LIST_TYPE = "taskList"
TASK_ITEM_TYPE = "taskItem"

# Tags that end the text of a checkbox that is not alone in its block
_TODO_STOP_TAGS = {"div", "p", "li", "ul", "ol", "en-todo"}


def _parse(content: str) -> BeautifulSoup:
    return BeautifulSoup(content or "", "html.parser")


def _is_blank(node) -> bool:
    return isinstance(node, NavigableString) and not node.strip()


def _image_tag(soup: BeautifulSoup, resource: ImportedResource, media: Tag) -> Tag:
    attrs = {"src": resource.data_uri(), "alt": resource.filename or ""}
    width = media.get("width") or resource.width
    height = media.get("height") or resource.height
    if width:
        attrs["width"] = str(width)
    if height:
        attrs["height"] = str(height)
    return soup.new_tag("img", attrs=attrs)


def _attachment_link(soup: BeautifulSoup, resource: ImportedResource) -> Tag:
    link = soup.new_tag("a", attrs={"href": resource.data_uri()})
    link.string = f"[attachment: {resource.filename or resource.mime}]"
    return link


def _media_replacement(soup: BeautifulSoup, media: Tag, resources: Mapping[str, ImportedResource]) -> Optional[Tag]:
    media_hash = (media.get("hash") or "").strip()
    if not media_hash:
        return None
    resource = resources.get(media_hash)
    if resource is None:
        get_or_setup_logger().debug(f"No resource found for media {media_hash}")
        marker = soup.new_tag("span")
        marker.string = f"[media missing: {media_hash}]"
        return marker
    if resource.is_image:
        return _image_tag(soup, resource, media)
    return _attachment_link(soup, resource)


def _resolve_media(soup: BeautifulSoup, resources: Mapping[str, ImportedResource]) -> None:
    for media in soup.find_all("en-media"):
        replacement = _media_replacement(soup, media, resources)
        if replacement is not None:
            media.insert_before(replacement)
        # An unclosed en-media swallows what follows it; keep that content
        media.unwrap()


def _replace_encrypted(soup: BeautifulSoup) -> None:
    for crypt in soup.find_all("en-crypt"):
        if crypt.parent is None:
            continue
        placeholder = soup.new_tag("em")
        placeholder.string = "[encrypted content]"
        crypt.replace_with(placeholder)


def _task_item(soup: BeautifulSoup, checked: bool, nodes: Iterable) -> Tag:
    item = soup.new_tag("li", attrs={"data-type": TASK_ITEM_TYPE, "data-checked": "true" if checked else "false"})
    checkbox = {"type": "checkbox"}
    if checked:
        checkbox["checked"] = ""
    checkbox["disabled"] = ""
    item.append(soup.new_tag("input", attrs=checkbox))

    body: List = [node.extract() for node in nodes]
    while body and _is_blank(body[0]):
        body.pop(0)
    while body and _is_blank(body[-1]):
        body.pop()
    if not body:
        return item

    if isinstance(body[0], NavigableString):
        body[0] = NavigableString(body[0].lstrip())
    if isinstance(body[-1], NavigableString):
        body[-1] = NavigableString(body[-1].rstrip())
    item.append(" ")
    for node in body:
        item.append(node)
    return item


def _alone_in_block(todo: Tag) -> bool:
    block = todo.parent
    if block is None or block.name not in ("div", "p"):
        return False
    if len(block.find_all("en-todo")) != 1:
        return False
    return all(_is_blank(node) for node in todo.previous_siblings)


def _convert_todo(soup: BeautifulSoup, todo: Tag) -> Tag:
    checked = (todo.get("checked") or "").lower() == "true"

    if _alone_in_block(todo):
        block = todo.parent
        todo.decompose()
        item = _task_item(soup, checked, list(block.contents))
        block.replace_with(item)
        return item

    nodes = []
    line_break = None
    sibling = todo.next_sibling
    while sibling is not None:
        if isinstance(sibling, Tag):
            if sibling.name == "br":
                line_break = sibling
                break
            if sibling.name in _TODO_STOP_TAGS:
                break
        nodes.append(sibling)
        sibling = sibling.next_sibling

    item = _task_item(soup, checked, nodes)
    todo.replace_with(item)
    if line_break is not None:
        line_break.decompose()
    return item


def _group_task_items(soup: BeautifulSoup, items: List[Tag]) -> None:
    created = {id(item) for item in items}
    grouped = set()
    for item in items:
        if id(item) in grouped:
            continue
        task_list = soup.new_tag("ul", attrs={"data-type": TASK_LIST_TYPE})
        item.insert_before(task_list)

        node = item
        while node is not None:
            following = node.next_sibling
            task_list.append(node)
            grouped.add(id(node))

            gap = []
            while _is_blank(following):
                gap.append(following)
                following = following.next_sibling
            if isinstance(following, Tag) and id(following) in created:
                for blank in gap:
                    blank.extract()
                node = following
            else:
                node = None


def _replace_todos(soup: BeautifulSoup) -> None:
    todos = soup.find_all("en-todo")
    # en-todo is empty in ENML; an unclosed one holds the text that follows it
    for todo in todos:
        for child in reversed(list(todo.contents)):
            todo.insert_after(child.extract())

    items = [_convert_todo(soup, todo) for todo in todos]
    _group_task_items(soup, items)


def replace_media(content: str, resources: Mapping[str, ImportedResource]) -> str:
    """
    Resolve ``en-media`` references.

    Parameters
    ----------
    content : str
        Note body.
    resources : Mapping[str, ImportedResource]
        Resources of the same note, keyed by hash.

    Returns
    -------
    str
        The body without ``en-media`` elements.
    """
    soup = _parse(content)
    _resolve_media(soup, resources)
    return str(soup)


def replace_encrypted(content: str) -> str:
    soup = _parse(content)
    _replace_encrypted(soup)
    return str(soup)


def replace_todos(content: str) -> str:
    """
    Turn ``en-todo`` checkboxes into task items grouped in task lists.

    A checkbox alone in a ``div`` or ``p`` takes the rest of that block as its
    text; any other checkbox takes the text up to the next line break or block.
    """
    soup = _parse(content)
    _replace_todos(soup)
    return str(soup)


def normalize_content(content: str, resources: Optional[Mapping[str, ImportedResource]] = None) -> str:
    """
    Rewrite the Evernote-specific markup of a note body into plain HTML.

    Parameters
    ----------
    content : str
        Body of the note (the inside of ``en-note``).
    resources : Mapping[str, ImportedResource], optional
        Resources of the note keyed by hash.

    Returns
    -------
    str
        HTML free of ``en-media``, ``en-crypt`` and ``en-todo`` elements.
    """
    soup = _parse(content)
    _resolve_media(soup, resources or {})
    _replace_encrypted(soup)
    _replace_todos(soup)
    return str(soup)
