#!/usr/bin/env python
"""
Unified CLI for moving notes into and out of the notes service.

Commands:

- ``import`` reads Evernote (.enex), HTML and Markdown files and imports their
  notes into the notes service, handling duplicate titles.
- ``convert`` reads the same files and writes the notes, with their content as
  canonical document trees, to a JSON file.
- ``export`` renders a stored note (a JSON backup record or a bare document
  tree) as Markdown, HTML, plain text or JSON.

Configuration can be provided via command-line arguments, a YAML configuration file,
or environment variables in a .env file. The order of precedence is:
1. Command-line arguments
2. Configuration file (YAML)
3. Environment variables (.env file)

Usage:
    notes_porter.py [-h] [--log-file LOGFILE] [--config-file CONFIG] [--dry-run] {import,convert,export} ...

Examples:
    notes_porter.py import --input-file export.enex notes.md --duplicates rename --api-token TOKEN
    notes_porter.py convert --input-file page.html --output-file notes.json
    notes_porter.py export --input-file note.json --output-file note.md --format markdown
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Callable, Dict, List, Optional

from tqdm import tqdm

from common.cli import create_base_parser
from common.config import apply_config_to_args, load_config
from common.logging import get_logger, setup_logging
from common.plugins import PluginRegistry, parse_files, read_input_files
from common.preview import preview_notes
from common.validation import validate_positive_int
from document.builder import html_to_document
from document.export import EXPORT_FORMATS, ExportableNote, export_note, safe_filename
from notes_api.client import DEFAULT_API_URL, AsyncNotesApi, NotesApiClient
from notes_api.orchestrator import DEFAULT_BATCH_SIZE, BatchImporter, DuplicatePolicy

DEFAULT_DUPLICATE_POLICY = DuplicatePolicy.RENAME.value
DEFAULT_EXPORT_FORMAT = "markdown"

# Global options that subcommand parsers must not redefine
GLOBAL_OPTIONS = ("--log-file", "--config-file", "--dry-run")


def _drop_global_options(subparser: argparse.ArgumentParser) -> None:
    for arg in GLOBAL_OPTIONS:
        if arg in subparser._option_string_actions:
            subparser._option_string_actions.pop(arg)
            for action in subparser._actions[:]:
                if arg in action.option_strings:
                    subparser._actions.remove(action)
            for group in subparser._action_groups:
                for action in group._group_actions[:]:
                    if arg in action.option_strings:
                        group._group_actions.remove(action)


def _add_import_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--duplicates",
        choices=[policy.value for policy in DuplicatePolicy],
        help=f"How to handle notes whose title already exists (default: {DEFAULT_DUPLICATE_POLICY})",
    )
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--notebook-id", metavar="ID", help="Notebook to import the new notes into")
    target.add_argument("--new-notebook", metavar="NAME", help="Create a notebook with this name and import into it")

    service = parser.add_argument_group("Notes service options")
    service.add_argument("--api-url", metavar="URL", help=f"Base URL of the notes API (default: {DEFAULT_API_URL})")
    service.add_argument("--api-token", metavar="TOKEN", help="Bearer token for the notes API")
    service.add_argument("--email", metavar="EMAIL", help="Account email, used when no API token is given")
    service.add_argument("--password", metavar="PASSWORD", help="Account password, used with --email")
    service.add_argument(
        "--batch-size",
        metavar="SIZE",
        type=validate_positive_int,
        help=f"Number of notes per bulk create call (default: {DEFAULT_BATCH_SIZE})",
    )


def create_main_parser() -> argparse.ArgumentParser:
    """
    Create the main argument parser for the unified CLI.

    Returns
    -------
    argparse.ArgumentParser
        The main argument parser, with one subcommand per operation.
    """
    parser = argparse.ArgumentParser(
        description="Import, convert and export notes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--log-file",
        metavar="LOGFILE",
        help="Log file path (if not specified, logs will only be written to console)",
        type=str,
    )
    parser.add_argument(
        "--config-file",
        metavar="CONFIG",
        help="Configuration file path (if not specified, default locations will be searched)",
        type=str,
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and report without writing files or calling the notes service",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command", required=True)

    import_parser = subparsers.add_parser(
        "import",
        help="Import note files into the notes service",
        description="Import Evernote, HTML and Markdown files into the notes service",
        parents=[create_base_parser("", multiple_inputs=True, with_output=False, add_help=False)],
        conflict_handler="resolve",
    )
    _add_import_arguments(import_parser)

    subparsers.add_parser(
        "convert",
        help="Convert note files to canonical JSON",
        description="Parse Evernote, HTML and Markdown files and write the notes as canonical JSON",
        parents=[create_base_parser("", multiple_inputs=True, add_help=False)],
        conflict_handler="resolve",
    )

    export_parser = subparsers.add_parser(
        "export",
        help="Render a stored note as Markdown, HTML, text or JSON",
        description="Render a stored note (JSON backup or canonical document) in another format",
        parents=[create_base_parser("", add_help=False)],
        conflict_handler="resolve",
    )
    export_parser.add_argument(
        "--format",
        choices=sorted(EXPORT_FORMATS),
        help=f"Output format (default: {DEFAULT_EXPORT_FORMAT})",
    )

    for subparser in subparsers.choices.values():
        _drop_global_options(subparser)

    return parser


def _progress_reporter(progress_bar: tqdm) -> Callable[[int, int], None]:
    def report(completed: int, total: int) -> None:
        progress_bar.total = total
        progress_bar.n = completed
        progress_bar.refresh()

    return report


def _connect(args: argparse.Namespace, logger: logging.Logger) -> NotesApiClient:
    client = NotesApiClient(args.api_url or DEFAULT_API_URL, token=args.api_token)
    if not client.token:
        if not (args.email and args.password):
            raise ValueError("An API token, or an email and password, is required to import notes")
        logger.info(f"Logging in as {args.email}")
        client.login(args.email, args.password)
    return client


def run_import(args: argparse.Namespace, logger: logging.Logger) -> bool:
    """
    Import note files into the notes service.

    Returns
    -------
    bool
        True when at least one note could be read from the input files.
    """
    files = read_input_files(args.input_file)
    policy = DuplicatePolicy(args.duplicates or DEFAULT_DUPLICATE_POLICY)

    if args.preview:
        notes, _ = parse_files(files)
        preview_notes(notes, args.preview_limit)

    if args.dry_run:
        client = None
        existing_notes: List[Dict[str, Any]] = []
        logger.info("Dry run: duplicates are not checked against the notes service")
    else:
        client = _connect(args, logger)
        existing_notes = client.list_notes()
        logger.info(f"Found {len(existing_notes)} existing notes")

    with tqdm(desc="Importing notes", unit="note") as progress_bar:
        importer = BatchImporter(
            AsyncNotesApi(client) if client else None,
            batch_size=args.batch_size or DEFAULT_BATCH_SIZE,
            progress=_progress_reporter(progress_bar),
            dry_run=args.dry_run,
            logger=logger,
        )
        result = asyncio.run(importer.run(
            files,
            existing_notes,
            policy,
            notebook_id=args.notebook_id,
            new_notebook_name=args.new_notebook,
        ))

    logger.info(
        f"Import finished: {result.success_count} imported, {result.skipped_count} skipped, "
        f"{result.failed_count} failed"
    )
    for error in result.errors:
        logger.error(error)
    return result.ok


def run_convert(args: argparse.Namespace, logger: logging.Logger) -> bool:
    """
    Parse note files and write them as canonical JSON.

    Returns
    -------
    bool
        True when at least one note could be read.
    """
    notes, errors = parse_files(read_input_files(args.input_file))
    for error in errors:
        logger.error(error)

    if args.preview:
        preview_notes(notes, args.preview_limit)

    if not notes:
        logger.error("No notes could be read from the input files")
        return False

    records = []
    for note in notes:
        record = note.to_record()
        record["content"] = html_to_document(note.content).to_dict()
        record["source"] = note.source
        records.append(record)

    if args.dry_run:
        logger.info(f'Dry run: would write {len(records)} notes to "{args.output_file}"')
        return True

    logger.info(f'Writing {len(records)} notes to "{args.output_file}"')
    with open(args.output_file, "w", encoding="utf-8") as f:
        json.dump(records, f, indent=2, ensure_ascii=False)
    return True


def _write_text(path: str, text: str, dry_run: bool, logger: logging.Logger) -> None:
    if dry_run:
        logger.info(f'Dry run: would write "{path}"')
        return
    logger.info(f'Writing "{path}"')
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


def run_export(args: argparse.Namespace, logger: logging.Logger) -> bool:
    """
    Render stored notes in an export format.

    A single note is written to the output file. When the input holds a list of
    notes, each one is written next to the output file under its own title.

    Returns
    -------
    bool
        True when at least one note was rendered.
    """
    export_format = args.format or DEFAULT_EXPORT_FORMAT
    logger.info(f'Reading input file "{args.input_file}"')
    with open(args.input_file, "r", encoding="utf-8") as f:
        data = json.load(f)

    records = data if isinstance(data, list) else [data]
    if not records:
        logger.error("The input file holds no notes")
        return False

    notes = [ExportableNote.from_record(record) for record in records]
    if len(notes) == 1:
        _write_text(args.output_file, export_note(notes[0], export_format), args.dry_run, logger)
        return True

    extension = EXPORT_FORMATS[export_format][0]
    output_dir = os.path.dirname(args.output_file) or "."
    for note in notes:
        path = os.path.join(output_dir, safe_filename(note.title, extension))
        _write_text(path, export_note(note, export_format), args.dry_run, logger)
    return True


COMMANDS: Dict[str, Callable[[argparse.Namespace, logging.Logger], bool]] = {
    "import": run_import,
    "convert": run_convert,
    "export": run_export,
}


def main(args: Optional[List[str]] = None) -> None:
    """
    Main entry point for the unified CLI.

    Parameters
    ----------
    args : list[str], optional
        Raw command line arguments. If None, sys.argv[1:] will be used.

    Returns
    -------
    None
        Exits with status 1 when the command fails.
    """
    if args is None:
        args = sys.argv[1:]

    PluginRegistry.discover_plugins()

    parser = create_main_parser()
    parsed_args = parser.parse_args(args)

    setup_logging(parsed_args.log_file)
    logger = get_logger()

    config = load_config(parsed_args.config_file)
    parsed_args = apply_config_to_args(parsed_args, config)

    if parsed_args.config_file:
        logger.info(f"Using configuration file: {parsed_args.config_file}")
    elif config:
        logger.info("Using configuration from default location")

    if parsed_args.dry_run:
        logger.info("Running in dry-run mode (no files will be written and the notes service is not called)")

    command = parsed_args.command
    try:
        succeeded = COMMANDS[command](parsed_args, logger)
    except Exception as e:
        logger.exception(f"Failed to {command} notes: {e}")
        sys.exit(1)

    if not succeeded:
        sys.exit(1)
    logger.info(f"Successfully completed {command}")


if __name__ == "__main__":
    main()
