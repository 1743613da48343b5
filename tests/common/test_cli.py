import sys
import pytest
import argparse
import tempfile
from common.cli import create_base_parser, parse_args


class TestCLI:
    """Tests for the CLI module."""

    def test_create_base_parser(self):
        """Test that create_base_parser creates a parser with the expected arguments."""
        description = "Test description"
        parser = create_base_parser(description)

        assert parser.description == description

        arguments = {action.dest: action for action in parser._actions}
        assert "input_file" in arguments
        assert "output_file" in arguments
        assert "log_file" in arguments
        assert "dry_run" in arguments
        assert "preview" in arguments
        assert "preview_limit" in arguments

        assert arguments["input_file"].required
        assert arguments["output_file"].required
        assert not arguments["log_file"].required

    def test_create_base_parser_without_output(self):
        """Test that the output argument can be left out."""
        parser = create_base_parser("Import", with_output=False)

        arguments = {action.dest for action in parser._actions}
        assert "output_file" not in arguments

    def test_create_base_parser_without_help(self):
        """Test that a parser used as a parent can be created without -h."""
        parser = create_base_parser("Parent", add_help=False)

        assert "-h" not in parser._option_string_actions

    def test_multiple_inputs(self):
        """Test that several input files are accepted when requested."""
        parser = create_base_parser("Import", multiple_inputs=True, with_output=False)
        with tempfile.NamedTemporaryFile(suffix=".md") as first, tempfile.NamedTemporaryFile(suffix=".html") as second:
            args = parse_args(parser, ["--input-file", first.name, second.name])

        assert args.input_file == [first.name, second.name]
        assert args.preview_limit == 10
        assert args.dry_run is False

    def test_parse_args_with_args(self):
        """Test that parse_args correctly parses provided arguments."""
        parser = argparse.ArgumentParser()
        parser.add_argument("--test-arg", type=str)

        args = parse_args(parser, ["--test-arg", "test-value"])
        assert args.test_arg == "test-value"

    def test_parse_args_without_args(self, monkeypatch):
        """Test that parse_args correctly uses sys.argv when no arguments are provided."""
        parser = argparse.ArgumentParser()
        parser.add_argument("--test-arg", type=str)

        monkeypatch.setattr(sys, "argv", ["notes_porter.py", "--test-arg", "test-value"])

        args = parse_args(parser)
        assert args.test_arg == "test-value"

    def test_parse_args_with_validation(self):
        """Test that a missing input file is rejected while parsing."""
        parser = create_base_parser("Convert")

        with pytest.raises(SystemExit):
            parse_args(parser, ["--input-file", "/path/to/nonexistent/notes.enex", "--output-file", "out.json"])
