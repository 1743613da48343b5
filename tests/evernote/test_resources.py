import pytest
from evernote.resources import (
    HASH_PREFIX_LENGTH,
    build_resource,
    clean_base64,
    index_resources,
    prefix_hash,
    recognition_object_id,
    resource_hash,
)


class TestPrefixHash:
    """Tests for the content-prefix hash."""

    def test_known_values(self):
        """Test that the hash is FNV-1a 64 bit."""
        assert prefix_hash("") == "cbf29ce484222325"
        assert prefix_hash("a") == "af63dc4c8601ec8c"

    def test_whitespace_ignored(self):
        """Test that line breaks in the payload do not change the hash."""
        assert prefix_hash("iVBOR\n  w0KGgo=") == prefix_hash("iVBORw0KGgo=")

    def test_only_prefix_counts(self):
        """Test that payloads sharing their prefix share their hash."""
        prefix = "A" * HASH_PREFIX_LENGTH

        assert prefix_hash(prefix + "tail one") == prefix_hash(prefix + "tail two")
        assert prefix_hash("B" + prefix) != prefix_hash(prefix)

    def test_format(self):
        """Test that the hash is 16 lower-case hex digits."""
        value = prefix_hash("R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7")

        assert len(value) == 16
        assert value == value.lower()
        int(value, 16)


class TestRecognition:
    """Tests for recognition object ids."""

    def test_object_id(self):
        """Test that the objID attribute is read from recognition XML."""
        recognition = '<?xml version="1.0"?><recoIndex docType="unknown" objID="5d2f3a" objType="image"/>'

        assert recognition_object_id(recognition) == "5d2f3a"

    def test_object_id_escaped(self):
        """Test that entity-escaped recognition XML is understood."""
        recognition = "&lt;recoIndex objID=&quot;abc123&quot; objType=&quot;image&quot;/&gt;"

        assert recognition_object_id(recognition) == "abc123"

    @pytest.mark.parametrize("recognition", [None, "", "<recoIndex objType='image'/>"])
    def test_no_object_id(self, recognition):
        """Test that missing recognition data gives no id."""
        assert recognition_object_id(recognition) is None

    def test_resource_hash_prefers_object_id(self):
        """Test that the objID wins over the prefix hash."""
        assert resource_hash("AAAA", '<recoIndex objID="obj-1"/>') == "obj-1"
        assert resource_hash("AAAA") == prefix_hash("AAAA")


class TestBuildResource:
    """Tests for build_resource."""

    def test_build_resource(self):
        """Test that raw resource fields are converted."""
        resource = build_resource(
            data="iVBORw0K\nGgoAAAA=\n",
            mime=" image/png ",
            filename="photo.png",
            width="640",
            height="480px",
        )

        assert resource.data == "iVBORw0KGgoAAAA="
        assert resource.hash == prefix_hash("iVBORw0KGgoAAAA=")
        assert resource.mime == "image/png"
        assert resource.filename == "photo.png"
        assert resource.width == 640
        assert resource.height == 480

    def test_defaults(self):
        """Test that a missing MIME type and file name get defaults."""
        resource = build_resource(data="AAAA", mime=None, filename="  ", width="wide")

        assert resource.mime == "application/octet-stream"
        assert resource.filename is None
        assert resource.width is None

    @pytest.mark.parametrize("data", [None, "", " \n "])
    def test_empty_data(self, data):
        """Test that a resource without data is dropped."""
        assert build_resource(data=data, mime="image/png") is None

    def test_clean_base64(self):
        """Test that all whitespace is removed."""
        assert clean_base64(" AB\r\nCD\tEF ") == "ABCDEF"
        assert clean_base64(None) == ""


class TestIndexResources:
    """Tests for index_resources."""

    def test_first_resource_wins(self):
        """Test that the first of two colliding resources is kept."""
        first = build_resource(data="A" * 120 + "first", mime="image/png")
        second = build_resource(data="A" * 120 + "second", mime="image/jpeg")

        index = index_resources([first, second])

        assert list(index) == [first.hash]
        assert index[first.hash] is first
