import pytest
import logging
import tempfile
import common.logging as common_logging
from common.logging import setup_logging, get_logger, get_or_setup_logger, LOGGER_NAME


class TestLogging:
    """Tests for the logging module."""

    def setup_method(self):
        """Reset the module logger before each test."""
        common_logging.logger = None

    def test_setup_logging_console_only(self):
        """Test that setup_logging configures logging with console output only."""
        setup_logging()

        logger = get_logger()

        assert logger.name == LOGGER_NAME
        assert logger.level == logging.INFO
        assert logger.propagate is False

        console_handlers = [h for h in logger.handlers if isinstance(h, logging.StreamHandler)]
        assert len(console_handlers) == 1

        file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 0

    def test_setup_logging_with_file(self):
        """Test that setup_logging configures logging with both console and file output."""
        with tempfile.NamedTemporaryFile(suffix=".log") as temp_file:
            setup_logging(temp_file.name)

            logger = get_logger()

            file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
            assert len(file_handlers) == 1
            assert file_handlers[0].baseFilename == temp_file.name

            logger.info("Parsed 3 note(s)")
            file_handlers[0].flush()
            with open(temp_file.name, "r", encoding="utf-8") as f:
                assert "Parsed 3 note(s)" in f.read()

            for handler in logger.handlers[:]:
                handler.close()
                logger.removeHandler(handler)

    def test_setup_logging_replaces_handlers(self):
        """Test that calling setup_logging twice does not duplicate handlers."""
        setup_logging()
        setup_logging()

        assert len(get_logger().handlers) == 1

    def test_setup_logging_level(self):
        """Test that setup_logging applies the requested level."""
        setup_logging(level=logging.DEBUG)

        assert get_logger().level == logging.DEBUG

    def test_get_logger_without_setup(self):
        """Test that get_logger raises a RuntimeError if setup_logging hasn't been called."""
        with pytest.raises(RuntimeError) as excinfo:
            get_logger()
        assert "Logger not initialized" in str(excinfo.value)

    def test_get_or_setup_logger(self):
        """Test that get_or_setup_logger initializes the logger when needed."""
        logger = get_or_setup_logger()

        assert logger is get_logger()
        assert logger.name == LOGGER_NAME

    def test_setup_logging_invalid_file(self, monkeypatch, capsys):
        """Test that setup_logging handles invalid log files gracefully."""
        def mock_file_handler(*args, **kwargs):
            raise IOError("Mock file handler error")

        monkeypatch.setattr(logging, "FileHandler", mock_file_handler)

        setup_logging("/invalid/path/to/log/file.log")

        captured = capsys.readouterr()
        assert "Warning: Could not set up logging to file" in captured.out

        logger = get_logger()
        assert len(logger.handlers) == 1
