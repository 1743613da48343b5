import pytest
from markdown_notes.compiler import (
    convert_blockquotes,
    convert_emphasis,
    encode_code,
    extract_code,
    markdown_to_html,
    restore_code,
    wrap_paragraphs,
)


class TestCode:
    """Tests for code protection."""

    def test_encode_code(self):
        """Test that Markdown-significant characters become character references."""
        assert encode_code("a*b") == "a&#42;b"
        assert encode_code("x\ny") == "x&#10;y"
        assert encode_code("plain") == "plain"

    def test_extract_and_restore(self):
        """Test that code is replaced by placeholders and restored afterwards."""
        text, fragments = extract_code("Run `ls -la` now")

        assert "`" not in text
        assert fragments == ["<code>ls &#45;la</code>"]
        assert restore_code(text, fragments) == "Run <code>ls &#45;la</code> now"

    def test_inline_code(self):
        """Test that emphasis markers inside inline code are not converted."""
        assert markdown_to_html("Use `a*b*c` here") == "<p>Use <code>a&#42;b&#42;c</code> here</p>"

    def test_fenced_code(self):
        """Test that a fenced block keeps its language and is written on one line."""
        markdown = "```python\nx = 1 < 2\n# not a heading\n```"

        assert markdown_to_html(markdown) == (
            '<pre><code class="language-python">x &#61; 1 &#60; 2&#10;&#35; not a heading</code></pre>'
        )

    def test_fenced_code_tildes(self):
        """Test that tilde fences are accepted and a missing language adds no class."""
        assert markdown_to_html("~~~\n- item\n~~~") == "<pre><code>&#45; item</code></pre>"


class TestBlocks:
    """Tests for block level conversion."""

    @pytest.mark.parametrize("level", [1, 2, 3, 4, 5, 6])
    def test_headings(self, level):
        """Test that every heading level is converted."""
        assert markdown_to_html(f"{'#' * level} Title") == f"<h{level}>Title</h{level}>"

    def test_paragraphs(self):
        """Test that blank lines separate paragraphs and single newlines are kept."""
        assert markdown_to_html("line one\nline two\n\nnext") == "<p>line one\nline two</p>\n<p>next</p>"

    def test_escaping(self):
        """Test that HTML in the source is escaped."""
        assert markdown_to_html("a < b & c") == "<p>a &lt; b &amp; c</p>"

    def test_blockquote(self):
        """Test that consecutive quoted lines form one paragraph."""
        assert markdown_to_html("> quoted\n> more") == "<blockquote><p>quoted more</p></blockquote>"

    def test_nested_blockquote(self):
        """Test that the number of markers sets the nesting depth."""
        assert convert_blockquotes("&gt; a\n&gt; &gt; b") == (
            "<blockquote><p>a</p><blockquote><p>b</p></blockquote></blockquote>"
        )

    def test_blockquote_paragraphs(self):
        """Test that an empty quoted line starts a new paragraph."""
        assert convert_blockquotes("&gt; a\n&gt;\n&gt; b") == "<blockquote><p>a</p><p>b</p></blockquote>"

    def test_task_list(self):
        """Test that task lines become task items in one task list."""
        assert markdown_to_html("- [ ] todo\n- [x] done") == "\n".join([
            '<ul data-type="taskList">',
            '<li data-type="taskItem" data-checked="false">todo</li>',
            '<li data-type="taskItem" data-checked="true">done</li>',
            "</ul>",
        ])

    def test_nested_list(self):
        """Test that indented items produce a nested list."""
        assert markdown_to_html("- a\n  - b\n  - c\n- d") == (
            "<ul>\n<li>a</li>\n<ul>\n<li>b</li>\n<li>c</li>\n</ul>\n<li>d</li>\n</ul>"
        )

    def test_table(self):
        """Test that a pipe table becomes an HTML table."""
        assert markdown_to_html("|H1|H2|\n|---|---:|\n|x|**y**|") == (
            '<table><tr><th>H1</th><th style="text-align: right">H2</th></tr>'
            '<tr><td>x</td><td style="text-align: right"><strong>y</strong></td></tr></table>'
        )

    def test_horizontal_rule(self):
        """Test that a rule line becomes <hr>."""
        assert markdown_to_html("a\n\n---\n\nb") == "<p>a</p>\n<hr>\n<p>b</p>"

    @pytest.mark.parametrize("rule", ["* * *", "- - -", "_ _ _", "***", "___"])
    def test_spaced_horizontal_rule(self, rule):
        """Test that spaced and starred rule lines become <hr> rather than list items."""
        assert markdown_to_html(f"a\n\n{rule}\n\nb") == "<p>a</p>\n<hr>\n<p>b</p>"


class TestInline:
    """Tests for inline conversion."""

    def test_emphasis(self):
        """Test that bold and italic are converted."""
        assert markdown_to_html("**bold** and *it* and ***both***") == (
            "<p><strong>bold</strong> and <em>it</em> and <strong><em>both</em></strong></p>"
        )

    def test_underscore_emphasis(self):
        """Test that underscores inside words are not emphasis."""
        assert convert_emphasis("__bold__ _it_ snake_case_name") == (
            "<strong>bold</strong> <em>it</em> snake_case_name"
        )

    def test_strike_and_highlight(self):
        """Test that strikethrough and highlight are converted."""
        assert markdown_to_html("Was ~~gone~~ now ==marked==") == "<p>Was <s>gone</s> now <mark>marked</mark></p>"

    def test_links_and_images(self):
        """Test that images are converted before links."""
        assert markdown_to_html('See [site](https://example.com) ![logo](/img.png "Logo")') == (
            '<p>See <a href="https://example.com">site</a> <img src="/img.png" alt="logo" title="Logo"></p>'
        )

    def test_wrap_paragraphs_keeps_blocks(self):
        """Test that lines starting with a block tag are not wrapped."""
        assert wrap_paragraphs("<h1>T</h1>\ntext\n<hr>") == "<h1>T</h1>\n<p>text</p>\n<hr>"

    def test_empty(self):
        """Test that empty input gives empty output."""
        assert markdown_to_html("") == ""
