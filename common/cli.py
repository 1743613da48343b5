"""
Command line interface functionality for the note conversion tools.

This module provides functions for parsing command line arguments
with consistent patterns across the import, convert and export commands.
"""

import argparse
import sys
from typing import List, Optional

from common.validation import validate_input_file, validate_output_file


def create_base_parser(
    description: str,
    multiple_inputs: bool = False,
    with_output: bool = True,
    add_help: bool = True,
) -> argparse.ArgumentParser:
    """
    Create a base argument parser with common arguments.

    Parameters
    ----------
    description : str
        Description of the command for help text.
    multiple_inputs : bool, optional
        Accept several input files after ``--input-file``.
    with_output : bool, optional
        Add a required ``--output-file`` argument.
    add_help : bool, optional
        Add the ``-h`` option. Parsers used as subcommand parents disable it.

    Returns
    -------
    argparse.ArgumentParser
        Base argument parser with common arguments.
    """
    parser = argparse.ArgumentParser(description=description, add_help=add_help)
    parser.add_argument(
        "--input-file",
        metavar="INPUTFILE",
        help="Input file path" + (" (several files may be given)" if multiple_inputs else ""),
        type=validate_input_file,
        nargs="+" if multiple_inputs else None,
        required=True,
    )
    if with_output:
        parser.add_argument(
            "--output-file",
            metavar="OUTPUTFILE",
            help="Output file path",
            type=validate_output_file,
            required=True,
        )
    parser.add_argument(
        "--log-file",
        metavar="LOGFILE",
        help="Log file path (if not specified, logs will only be written to console)",
        type=str,
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and validate without writing files or calling the notes service",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Preview notes parsed from the input files",
    )
    parser.add_argument(
        "--preview-limit",
        type=int,
        default=10,
        help="Maximum number of notes to preview (default: 10)",
    )
    return parser


def parse_args(parser: argparse.ArgumentParser, args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments using the provided parser.

    Parameters
    ----------
    parser : argparse.ArgumentParser
        The argument parser to use.
    args : list[str], optional
        Raw command line arguments. If None, sys.argv[1:] will be used.

    Returns
    -------
    argparse.Namespace
        Parsed command line arguments.
    """
    if args is None:
        args = sys.argv[1:]
    return parser.parse_args(args)
