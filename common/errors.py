"""
Error taxonomy for note conversion and import.

Parsing errors stay local to one file: ``parse_files`` catches them and records
a labelled message. Collaborator errors stay local to one note: the batch
importer catches them and records a labelled message.
"""


class ConversionError(Exception):
    """Base class for errors raised while reading an input file."""


class UnsupportedFormatError(ConversionError):
    """The file extension does not belong to any registered format plugin."""

    def __init__(self, filename: str):
        super().__init__(f"Unsupported file type: {filename}")
        self.filename = filename


class MalformedInputError(ConversionError):
    """The input could not be read as its format, even after recovery."""


class CollaboratorError(Exception):
    """A call into the notes service was rejected."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class BulkCollaboratorError(CollaboratorError):
    """The bulk create call failed as a whole."""
