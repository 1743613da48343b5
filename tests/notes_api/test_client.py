"""
Tests for the notes_api.client module.
"""

import asyncio
import pytest
import requests
from unittest.mock import MagicMock
from common.errors import BulkCollaboratorError, CollaboratorError
from notes_api.client import AsyncNotesApi, NotesApiClient, error_message


def make_response(status_code=200, json_data=None, content=b"{}"):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.content = content
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


class TestErrorMessage:
    """Tests for error_message."""

    def test_message_field(self):
        """Test that the message field of a JSON error body is used."""
        assert error_message(make_response(409, {"message": "Title taken"})) == "Title taken"

    def test_message_list(self):
        """Test that a list of validation messages is joined."""
        response = make_response(400, {"message": ["title is required", "content is invalid"]})

        assert error_message(response) == "title is required, content is invalid"

    def test_no_message(self):
        """Test that the status code is reported when there is no message."""
        assert error_message(make_response(500, {"error": "boom"})) == "HTTP error! status: 500"

    def test_not_json(self):
        """Test that a body that is not JSON gives a generic message."""
        assert error_message(make_response(502, ValueError("no json"))) == "An error occurred"


class TestNotesApiClient:
    """Tests for NotesApiClient."""

    def setup_method(self):
        self.session = MagicMock()
        self.client = NotesApiClient("http://notes.test/api/", token="abc", session=self.session, timeout=5)

    def test_create_note(self):
        """Test that a note is posted with the bearer token."""
        self.session.request.return_value = make_response(201, {"id": "n1", "title": "T"})

        result = self.client.create_note({"title": "T"})

        assert result == {"id": "n1", "title": "T"}
        self.session.request.assert_called_once_with(
            "POST",
            "http://notes.test/api/notes",
            json={"title": "T"},
            headers={"Content-Type": "application/json", "Authorization": "Bearer abc"},
            timeout=5,
        )

    def test_bulk_create_notes(self):
        """Test that several notes are sent in one call."""
        self.session.request.return_value = make_response(201, [{"id": "1"}, {"id": "2"}])

        result = self.client.bulk_create_notes([{"title": "a"}, {"title": "b"}])

        assert result == [{"id": "1"}, {"id": "2"}]
        args, kwargs = self.session.request.call_args
        assert args == ("POST", "http://notes.test/api/notes/bulk")
        assert kwargs["json"] == {"notes": [{"title": "a"}, {"title": "b"}]}

    def test_bulk_create_failure(self):
        """Test that a failed bulk call raises BulkCollaboratorError."""
        self.session.request.return_value = make_response(413, {"message": "Too many notes"})

        with pytest.raises(BulkCollaboratorError) as excinfo:
            self.client.bulk_create_notes([{"title": "a"}])
        assert str(excinfo.value) == "Too many notes"
        assert excinfo.value.status_code == 413

    def test_update_note(self):
        """Test that updates use PATCH on the note."""
        self.session.request.return_value = make_response(200, {"id": "n1"})

        self.client.update_note("n1", {"content": {}})

        args, _ = self.session.request.call_args
        assert args == ("PATCH", "http://notes.test/api/notes/n1")

    def test_create_notebook(self):
        """Test that a notebook is created with an optional color."""
        self.session.request.return_value = make_response(201, {"id": "nb1"})

        assert self.client.create_notebook("Imported", color="#fff") == {"id": "nb1"}
        _, kwargs = self.session.request.call_args
        assert kwargs["json"] == {"name": "Imported", "color": "#fff"}

    def test_list_notes_empty_response(self):
        """Test that an empty body gives an empty list."""
        self.session.request.return_value = make_response(204, None, content=b"")

        assert self.client.list_notes() == []

    def test_http_error(self):
        """Test that a rejected call raises CollaboratorError."""
        self.session.request.return_value = make_response(404, {"message": "Note not found"})

        with pytest.raises(CollaboratorError) as excinfo:
            self.client.get_note("missing")
        assert str(excinfo.value) == "Note not found"
        assert excinfo.value.status_code == 404

    def test_connection_error(self):
        """Test that transport errors become CollaboratorError."""
        self.session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(CollaboratorError) as excinfo:
            self.client.list_notes()
        assert "refused" in str(excinfo.value)

    def test_login(self):
        """Test that login stores the access token."""
        client = NotesApiClient("http://notes.test/api", session=self.session)
        self.session.request.return_value = make_response(200, {"accessToken": "tok"})

        assert client.login("me@example.com", "secret") == "tok"
        assert client.token == "tok"
        _, kwargs = self.session.request.call_args
        assert "Authorization" not in kwargs["headers"]
        assert kwargs["json"] == {"email": "me@example.com", "password": "secret"}


class TestAsyncNotesApi:
    """Tests for AsyncNotesApi."""

    def test_calls_client_in_thread(self):
        """Test that the coroutines return the results of the blocking client."""
        client = MagicMock()
        client.create_note.return_value = {"id": "1"}
        client.bulk_create_notes.return_value = [{"id": "2"}]
        client.update_note.return_value = {"id": "3"}
        client.create_notebook.return_value = {"id": "nb"}
        api = AsyncNotesApi(client)

        async def run():
            return await asyncio.gather(
                api.create_note({"title": "a"}),
                api.bulk_create_notes([{"title": "b"}]),
                api.update_note("3", {"content": {}}),
                api.create_notebook("Inbox"),
            )

        assert asyncio.run(run()) == [{"id": "1"}, [{"id": "2"}], {"id": "3"}, {"id": "nb"}]
        client.update_note.assert_called_once_with("3", {"content": {}})
        client.create_notebook.assert_called_once_with("Inbox", None)
