"""
Markdown to HTML compiler.

The compiler is a fixed sequence of text-to-text stages. The order matters:
code is protected before anything else, and every stage after escaping works
on entity-escaped text (a blockquote marker is ``&gt;`` by the time the
blockquote stage runs).

Code spans and fenced blocks are restored right after escaping, with every
character a later stage could react to written as a numeric character
reference, and fenced blocks written on a single line.

The compiler is meant to run once over Markdown source; running it over its
own output is not supported.
"""

import re
from typing import Callable, List, Tuple

from markdown_notes.lists import HORIZONTAL_RULE, normalize_lists
from markdown_notes.tables import convert_tables

_CODE_SIGNIFICANT = "&<>*_~=#|[]()!-+.`\n"
_CODE_TRANSLATION = {ord(char): f"&#{ord(char)};" for char in _CODE_SIGNIFICANT}

_PLACEHOLDER = "\x00{}\x00"
_PLACEHOLDER_PATTERN = re.compile(r"\x00(\d+)\x00")

_FENCED_CODE = re.compile(r"^(`{3,}|~{3,})[ \t]*([\w+#.-]*)[^\n]*\n(.*?)^\1[ \t]*$", re.MULTILINE | re.DOTALL)
_INLINE_CODE = re.compile(r"(`+)(?!`)(.+?)(?<!`)\1(?!`)")

_HEADINGS = [(level, re.compile(rf"^{'#' * level}[ \t]+(.+?)[ \t]*$", re.MULTILINE)) for level in range(6, 0, -1)]

_EMPHASIS: List[Tuple["re.Pattern", str]] = [
    (re.compile(r"\*\*\*(?![\s*])(.+?)(?<!\s)\*\*\*"), r"<strong><em>\1</em></strong>"),
    (re.compile(r"\*\*(?![\s*])(.+?)(?<!\s)\*\*"), r"<strong>\1</strong>"),
    (re.compile(r"(?<!\*)\*(?![\s*])(.+?)(?<![\s*])\*(?!\*)"), r"<em>\1</em>"),
    (re.compile(r"(?<!\w)___(?![\s_])(.+?)(?<!\s)___(?!\w)"), r"<strong><em>\1</em></strong>"),
    (re.compile(r"(?<!\w)__(?![\s_])(.+?)(?<!\s)__(?!\w)"), r"<strong>\1</strong>"),
    (re.compile(r"(?<![\w_])_(?![\s_])(.+?)(?<![\s_])_(?![\w_])"), r"<em>\1</em>"),
]

_STRIKETHROUGH = re.compile(r"~~(?![\s~])(.+?)(?<![\s~])~~")
_HIGHLIGHT = re.compile(r"==(?![\s=])(.+?)(?<![\s=])==")

_BLOCKQUOTE_LINE = re.compile(r"^[ \t]*((?:&gt;[ \t]?)+)(.*)$")
_TASK_LINE = re.compile(r"^([ \t]*)[-*+][ \t]+\[([ xX])\][ \t]+(.*)$")

_IMAGE = re.compile(r'!\[([^\]]*)\]\(([^)\s]+)(?:\s+"([^"]*)")?\)')
_LINK = re.compile(r'\[([^\]]+)\]\(([^)\s]+)(?:\s+"[^"]*")?\)')

BLOCK_PREFIXES = (
    "<h", "<ul", "</ul", "<ol", "</ol", "<li", "</li", "<blockquote", "<pre", "<hr",
    "<table", "<tr", "<td", "<th", "<mark",
)


def encode_code(code: str) -> str:
    """Write every Markdown-significant character of ``code`` as a character reference."""
    return code.translate(_CODE_TRANSLATION)


def escape_html(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _quote_attribute(value: str) -> str:
    return value.replace('"', "&quot;")


def fenced_code_spans(text: str) -> List[Tuple[int, int]]:
    """Start and end offsets of the fenced code blocks in ``text``."""
    return [match.span() for match in _FENCED_CODE.finditer(text)]


def extract_code(text: str) -> Tuple[str, List[str]]:
    """
    Replace fenced and inline code with numbered placeholders.

    Returns
    -------
    tuple
        The text with placeholders, and the HTML each placeholder stands for.
    """
    fragments: List[str] = []

    def store(fragment: str) -> str:
        fragments.append(fragment)
        return _PLACEHOLDER.format(len(fragments) - 1)

    def fenced(match: "re.Match") -> str:
        language = match.group(2)
        code = match.group(3)
        if code.endswith("\n"):
            code = code[:-1]
        class_attr = f' class="language-{_quote_attribute(escape_html(language))}"' if language else ""
        return store(f"<pre><code{class_attr}>{encode_code(code)}</code></pre>")

    def inline(match: "re.Match") -> str:
        return store(f"<code>{encode_code(match.group(2))}</code>")

    text = _FENCED_CODE.sub(fenced, text)
    text = _INLINE_CODE.sub(inline, text)
    return text, fragments


def restore_code(text: str, fragments: List[str]) -> str:
    return _PLACEHOLDER_PATTERN.sub(lambda match: fragments[int(match.group(1))], text)


def convert_headings(text: str) -> str:
    for level, pattern in _HEADINGS:
        text = pattern.sub(rf"<h{level}>\1</h{level}>", text)
    return text


def convert_emphasis(text: str) -> str:
    for pattern, replacement in _EMPHASIS:
        text = pattern.sub(replacement, text)
    return text


def convert_strike_and_highlight(text: str) -> str:
    text = _STRIKETHROUGH.sub(r"<s>\1</s>", text)
    return _HIGHLIGHT.sub(r"<mark>\1</mark>", text)


def _render_blockquote(run: List[Tuple[int, str]]) -> str:
    parts: List[str] = []
    depth = 0
    paragraph: List[str] = []

    def flush() -> None:
        if paragraph:
            parts.append(f"<p>{' '.join(paragraph)}</p>")
            paragraph.clear()

    for line_depth, content in run:
        if line_depth != depth:
            flush()
        while depth < line_depth:
            parts.append("<blockquote>")
            depth += 1
        while depth > line_depth:
            parts.append("</blockquote>")
            depth -= 1
        if content:
            paragraph.append(content)
        else:
            flush()
    flush()
    parts.extend("</blockquote>" for _ in range(depth))
    return "".join(parts)


def convert_blockquotes(text: str) -> str:
    """
    Convert runs of ``&gt;`` lines into one line of nested blockquotes.

    The number of ``&gt;`` markers on a line is its nesting depth. Consecutive
    lines at the same depth form one paragraph; an empty quoted line starts a
    new one.
    """
    output: List[str] = []
    run: List[Tuple[int, str]] = []

    for line in text.split("\n"):
        match = _BLOCKQUOTE_LINE.match(line)
        if match:
            run.append((match.group(1).count("&gt;"), match.group(2).strip()))
            continue
        if run:
            output.append(_render_blockquote(run))
            run = []
        output.append(line)
    if run:
        output.append(_render_blockquote(run))

    return "\n".join(output)


def convert_task_lists(text: str) -> str:
    """Convert task lines into task items and wrap each contiguous run in a task list."""
    output: List[str] = []
    in_list = False

    for line in text.split("\n"):
        match = _TASK_LINE.match(line)
        if not match:
            if in_list:
                output.append("</ul>")
                in_list = False
            output.append(line)
            continue
        if not in_list:
            output.append('<ul data-type="taskList">')
            in_list = True
        checked = "true" if match.group(2) in "xX" else "false"
        output.append(f'<li data-type="taskItem" data-checked="{checked}">{match.group(3).strip()}</li>')

    if in_list:
        output.append("</ul>")
    return "\n".join(output)


def convert_links_and_images(text: str) -> str:
    def image(match: "re.Match") -> str:
        title = f' title="{_quote_attribute(match.group(3))}"' if match.group(3) else ""
        return f'<img src="{_quote_attribute(match.group(2))}" alt="{_quote_attribute(match.group(1))}"{title}>'

    def link(match: "re.Match") -> str:
        return f'<a href="{_quote_attribute(match.group(2))}">{match.group(1)}</a>'

    text = _IMAGE.sub(image, text)
    return _LINK.sub(link, text)


def convert_horizontal_rules(text: str) -> str:
    return HORIZONTAL_RULE.sub("<hr>", text)


def wrap_paragraphs(text: str) -> str:
    """
    Wrap runs of non-block lines in ``<p>`` elements.

    Lines that already start with a block-level tag pass through unchanged,
    and blank lines end the current paragraph.
    """
    output: List[str] = []
    paragraph: List[str] = []

    def flush() -> None:
        if paragraph:
            output.append("<p>" + "\n".join(paragraph) + "</p>")
            paragraph.clear()

    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped:
            flush()
            continue
        if stripped.startswith(BLOCK_PREFIXES):
            flush()
            output.append(stripped)
            continue
        paragraph.append(stripped)
    flush()

    return "\n".join(output)


STAGES: List[Callable[[str], str]] = [
    convert_tables,
    convert_headings,
    convert_emphasis,
    convert_strike_and_highlight,
    convert_blockquotes,
    convert_task_lists,
    normalize_lists,
    convert_links_and_images,
    convert_horizontal_rules,
    wrap_paragraphs,
]


def markdown_to_html(markdown: str) -> str:
    """
    Compile Markdown into HTML.

    Parameters
    ----------
    markdown : str
        Markdown source without frontmatter.

    Returns
    -------
    str
        HTML fragment.
    """
    text = (markdown or "").replace("\r\n", "\n").replace("\r", "\n")
    text, fragments = extract_code(text)
    text = restore_code(escape_html(text), fragments)
    for stage in STAGES:
        text = stage(text)
    return text
