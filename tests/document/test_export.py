import json
import pytest
import yaml
from document.export import (
    ExportableNote,
    export_html,
    export_json,
    export_markdown,
    export_note,
    export_text,
    safe_filename,
)

RECORD = {
    "id": "note-1",
    "title": "Trip <plan>",
    "content": {
        "type": "doc",
        "content": [
            {"type": "paragraph", "content": [
                {"type": "text", "text": "Pack "},
                {"type": "text", "text": "light", "marks": [{"type": "bold"}]},
            ]},
        ],
    },
    "plainText": None,
    "createdAt": "2024-01-02T10:00:00.000Z",
    "updatedAt": "2024-01-03T08:30:00.000Z",
    "tags": [{"tag": {"name": "travel"}}, {"name": "family"}, "summer"],
}


class TestExportableNote:
    """Tests for reading stored notes."""

    def test_from_record(self):
        """Test that a service record is read, tags included."""
        note = ExportableNote.from_record(RECORD)

        assert note.id == "note-1"
        assert note.title == "Trip <plan>"
        assert note.tags == ["travel", "family", "summer"]
        assert note.content.text_content() == "Pack light"
        assert note.created_at == "2024-01-02T10:00:00.000Z"

    def test_from_bare_document(self):
        """Test that a bare canonical document is accepted."""
        note = ExportableNote.from_record(RECORD["content"])

        assert note.title == ""
        assert note.content.type == "doc"

    def test_from_record_without_content(self):
        """Test that a record without content gets an empty document."""
        note = ExportableNote.from_record({"title": "Empty"})

        assert note.content.to_dict() == {"type": "doc", "content": [{"type": "paragraph"}]}


class TestExporters:
    """Tests for the export formats."""

    def setup_method(self):
        self.note = ExportableNote.from_record(RECORD)

    def test_export_markdown(self):
        """Test that the Markdown export starts with a YAML frontmatter block."""
        output = export_markdown(self.note)

        assert output.startswith("---\n")
        _, frontmatter, body = output.split("---\n", 2)
        assert yaml.safe_load(frontmatter) == {
            "title": "Trip <plan>",
            "created": "2024-01-02T10:00:00.000Z",
            "updated": "2024-01-03T08:30:00.000Z",
            "tags": ["travel", "family", "summer"],
        }
        assert body == "\nPack **light**\n"

    def test_export_html(self):
        """Test that the HTML export is a standalone page."""
        output = export_html(self.note)

        assert output.startswith("<!DOCTYPE html>")
        assert "<title>Trip &lt;plan&gt;</title>" in output
        assert "<h1>Trip &lt;plan&gt;</h1>" in output
        assert "Criado: 02/01/2024 | Atualizado: 03/01/2024" in output
        assert "<p>Pack <strong>light</strong></p>" in output
        assert "<style>" in output

    def test_export_text(self):
        """Test that the text export underlines the title."""
        assert export_text(self.note) == "Trip <plan>\n===========\n\nPack light"

    def test_export_text_prefers_stored_plain_text(self):
        """Test that stored plain text is used when present."""
        self.note.plain_text = "stored text"

        assert export_text(self.note).endswith("\n\nstored text")

    def test_export_json(self):
        """Test that the JSON export is the full record."""
        data = json.loads(export_json(self.note))

        assert data["id"] == "note-1"
        assert data["content"] == RECORD["content"]
        assert data["tags"] == [{"name": "travel"}, {"name": "family"}, {"name": "summer"}]

    @pytest.mark.parametrize("export_format, marker", [
        ("markdown", "**light**"),
        ("html", "<strong>light</strong>"),
        ("text", "Pack light"),
        ("json", '"note-1"'),
    ])
    def test_export_note(self, export_format, marker):
        """Test that export_note dispatches on the format name."""
        assert marker in export_note(self.note, export_format)

    def test_export_note_unknown_format(self):
        """Test that an unknown format raises ValueError."""
        with pytest.raises(ValueError) as excinfo:
            export_note(self.note, "pdf")
        assert "Unknown export format: pdf" in str(excinfo.value)

    def test_invalid_dates_kept(self):
        """Test that unparsable dates are shown as they are."""
        self.note.created_at = "someday"
        self.note.updated_at = None

        assert "Criado: someday | Atualizado: </small>" in export_html(self.note)


class TestSafeFilename:
    """Tests for safe_filename."""

    def test_unsafe_characters(self):
        """Test that path-unsafe characters are replaced."""
        assert safe_filename('a/b: c? "d"', ".md") == "a-b- c- -d-.md"

    def test_empty_title(self):
        """Test that an empty title gets a default name."""
        assert safe_filename("", ".txt") == "untitled.txt"
