"""
Configuration handling for the note conversion tools.

This module provides functionality to load and apply configuration settings
from a configuration file or environment variables. The configuration can specify
default values for command-line arguments, such as the notes service URL or the
duplicate handling policy.

Configuration is loaded from the following sources, in order of precedence:
1. Command-line arguments
2. Configuration file (YAML)
3. Environment variables (.env file)
"""

import argparse
import logging
import os
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from common.logging import get_or_setup_logger

CONFIG_FILE_NAME = "notes_porter.yaml"
ENV_PREFIX = "NOTES_PORTER_"
CONFIG_SECTIONS = ("global", "import", "convert", "export")


def get_config_file_path() -> str:
    """
    Get the path to the configuration file.

    The configuration file is searched for in the following locations:
    1. The current directory (./notes_porter.yaml)
    2. The user's home directory (~/.notes_porter.yaml)

    Returns
    -------
    str
        The path to the configuration file, or an empty string if not found.
    """
    if os.path.exists(CONFIG_FILE_NAME):
        return CONFIG_FILE_NAME

    home_config = os.path.expanduser(f"~/.{CONFIG_FILE_NAME}")
    if os.path.exists(home_config):
        return home_config

    return ""


def get_env_file_path() -> str:
    """
    Get the path to the .env file.

    The .env file is searched for in the following locations:
    1. The current directory (./.env)
    2. The user's home directory (~/.notes_porter.env)

    Returns
    -------
    str
        The path to the .env file, or an empty string if not found.
    """
    if os.path.exists(".env"):
        return ".env"

    home_env = os.path.expanduser("~/.notes_porter.env")
    if os.path.exists(home_env):
        return home_env

    return ""


def _coerce_env_value(value: str) -> Any:
    """Convert an environment string to bool, int or float when it looks like one."""
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    if value.isdigit():
        return int(value)
    if value.replace(".", "", 1).isdigit() and value.count(".") == 1:
        return float(value)
    return value


def load_env_vars() -> Dict[str, Any]:
    """
    Load environment variables from a .env file.

    Only variables starting with ``NOTES_PORTER_`` are returned, keyed by the
    rest of the name in lower case with underscores turned into hyphens
    (``NOTES_PORTER_API_TOKEN`` becomes ``api-token``).

    Returns
    -------
    Dict[str, Any]
        A dictionary of environment variables loaded from the .env file.
    """
    logger = get_or_setup_logger()

    env_file = get_env_file_path()

    if not env_file:
        logger.debug("No .env file found")
        return {}

    try:
        load_dotenv(env_file)
        logger.info(f"Loaded environment variables from {env_file}")

        env_vars = {}
        for key, value in os.environ.items():
            if key.startswith(ENV_PREFIX):
                config_key = key[len(ENV_PREFIX):].lower().replace("_", "-")
                env_vars[config_key] = _coerce_env_value(value)

        return env_vars
    except Exception as e:
        logger.warning(f"Failed to load environment variables from {env_file}: {e}")
        return {}


def load_config(config_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from a YAML file and environment variables.

    Parameters
    ----------
    config_file : str, optional
        Path to the configuration file. If not provided, the default locations
        will be searched.

    Returns
    -------
    Dict[str, Any]
        The loaded configuration, or an empty dictionary if no configuration sources
        are available or can't be parsed.
    """
    logger = get_or_setup_logger()
    config = {}

    env_vars = load_env_vars()
    if env_vars:
        for key, value in env_vars.items():
            parts = key.split("-")
            if len(parts) > 1 and parts[0] in CONFIG_SECTIONS:
                # NOTES_PORTER_IMPORT_BATCH_SIZE -> import: {batch-size: ...}
                section = parts[0]
                config.setdefault(section, {})["-".join(parts[1:])] = value
            else:
                config.setdefault("global", {})[key] = value
        logger.debug(f"Loaded {len(env_vars)} environment variables")

    if not config_file:
        config_file = get_config_file_path()

    if config_file:
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                file_config = yaml.safe_load(f)

            if not isinstance(file_config, dict):
                logger.warning(f"Invalid configuration format in {config_file}")
            else:
                for section, values in file_config.items():
                    if not isinstance(values, dict):
                        logger.warning(f"Ignoring non-mapping section '{section}' in {config_file}")
                        continue
                    config.setdefault(section, {}).update(values)
                logger.info(f"Loaded configuration from {config_file}")
        except Exception as e:
            logger.warning(f"Failed to load configuration from {config_file}: {e}")

    return config


def apply_config_to_args(args: argparse.Namespace, config: Dict[str, Any]) -> argparse.Namespace:
    """
    Apply configuration settings to command-line arguments.

    Settings only fill arguments that weren't explicitly provided on the command
    line. The order of precedence is:
    1. Command-line arguments
    2. Command-specific configuration
    3. Global configuration

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command-line arguments.
    config : Dict[str, Any]
        Configuration settings.

    Returns
    -------
    argparse.Namespace
        Updated arguments with configuration settings applied.
    """
    logger = get_or_setup_logger()

    command_config = config.get(getattr(args, "command", None), {}) or {}
    global_config = config.get("global", {}) or {}

    for key, value in global_config.items():
        arg_key = key.replace("-", "_")

        if getattr(args, arg_key, None) is None:
            setattr(args, arg_key, value)
            logger.debug(f"Applied global configuration: {key}={value}")

    for key, value in command_config.items():
        arg_key = key.replace("-", "_")

        # Command configuration overrides a value that only came from the global section
        if key in global_config and getattr(args, arg_key, None) == global_config[key]:
            setattr(args, arg_key, value)
            logger.debug(f"Overrode global configuration with {args.command} configuration: {key}={value}")
        elif getattr(args, arg_key, None) is None:
            setattr(args, arg_key, value)
            logger.debug(f"Applied {args.command} configuration: {key}={value}")

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Final configuration:")
        for key in sorted(vars(args)):
            if key in ("password", "api_token"):
                logger.debug(f"  {key}=***")
            else:
                logger.debug(f"  {key}={getattr(args, key)}")

    return args
