"""
Plugin architecture for note input formats.

Each input format (Evernote ENEX, HTML, Markdown) is implemented by a plugin that
inherits from BaseFormatPlugin and registers itself with the plugin registry.
The registry doubles as the format detector: a file is classified by its
extension and handed to the plugin that owns that extension.
"""

import abc
import importlib
import os
from typing import Dict, Iterable, List, Optional, Tuple, Type

from common.errors import UnsupportedFormatError
from common.logging import get_or_setup_logger
from common.models import ImportedNote

SOURCE_PACKAGES = ("evernote", "html_notes", "markdown_notes")


class BaseFormatPlugin(abc.ABC):
    """
    Base class for input format plugins.

    All format plugins should inherit from this class and implement
    the required methods.
    """

    @classmethod
    @abc.abstractmethod
    def get_name(cls) -> str:
        """
        Get the name of the input format.

        Returns
        -------
        str
            The name of the format (e.g., 'evernote', 'markdown').
        """

    @classmethod
    @abc.abstractmethod
    def get_description(cls) -> str:
        """
        Get a description of the input format.

        Returns
        -------
        str
            A description of the input format.
        """

    @classmethod
    @abc.abstractmethod
    def get_extensions(cls) -> Tuple[str, ...]:
        """
        Get the file extensions handled by this plugin.

        Returns
        -------
        tuple of str
            Lower-case extensions including the leading dot.
        """

    @classmethod
    @abc.abstractmethod
    def parse(cls, content: str, filename: str) -> List[ImportedNote]:
        """
        Parse the text of one file.

        Parameters
        ----------
        content : str
            Decoded file content.
        filename : str
            Name of the file, used for titles and error messages.

        Returns
        -------
        List[ImportedNote]
            The notes found in the file.
        """


class PluginRegistry:
    """
    Registry for input format plugins.

    This class maintains a registry of all available format plugins
    and provides methods to discover and access them.
    """

    _plugins: Dict[str, Type[BaseFormatPlugin]] = {}

    @classmethod
    def register(cls, plugin_class: Type[BaseFormatPlugin]) -> None:
        """
        Register a plugin with the registry.

        Parameters
        ----------
        plugin_class : Type[BaseFormatPlugin]
            The plugin class to register.
        """
        cls._plugins[plugin_class.get_name()] = plugin_class

    @classmethod
    def get_plugin(cls, name: str) -> Optional[Type[BaseFormatPlugin]]:
        """
        Get a plugin by name.

        Parameters
        ----------
        name : str
            The name of the plugin to get.

        Returns
        -------
        Optional[Type[BaseFormatPlugin]]
            The plugin class if found, None otherwise.
        """
        return cls._plugins.get(name)

    @classmethod
    def get_all_plugins(cls) -> Dict[str, Type[BaseFormatPlugin]]:
        """
        Get all registered plugins.

        Returns
        -------
        Dict[str, Type[BaseFormatPlugin]]
            A dictionary mapping plugin names to plugin classes.
        """
        return cls._plugins.copy()

    @classmethod
    def get_plugin_for_file(cls, filename: str) -> Optional[Type[BaseFormatPlugin]]:
        """
        Get the plugin owning the extension of ``filename``.

        Parameters
        ----------
        filename : str
            File name or path.

        Returns
        -------
        Optional[Type[BaseFormatPlugin]]
            The plugin class if the extension is known, None otherwise.
        """
        lower = filename.lower()
        for plugin_class in cls._plugins.values():
            if any(lower.endswith(ext) for ext in plugin_class.get_extensions()):
                return plugin_class
        return None

    @classmethod
    def discover_plugins(cls) -> None:
        """
        Import the source packages so their plugins register themselves.
        """
        for package_name in SOURCE_PACKAGES:
            importlib.import_module(package_name)


def register_plugin(plugin_class: Type[BaseFormatPlugin]) -> Type[BaseFormatPlugin]:
    """
    Decorator to register a plugin with the registry.

    Parameters
    ----------
    plugin_class : Type[BaseFormatPlugin]
        The plugin class to register.

    Returns
    -------
    Type[BaseFormatPlugin]
        The plugin class (unchanged).
    """
    PluginRegistry.register(plugin_class)
    return plugin_class


def detect_format(filename: str) -> Optional[str]:
    """
    Classify a file by its extension.

    Returns
    -------
    str or None
        The name of the format plugin, or None when the extension is unknown.
    """
    PluginRegistry.discover_plugins()
    plugin_class = PluginRegistry.get_plugin_for_file(filename)
    return plugin_class.get_name() if plugin_class else None


def parse_file(filename: str, content: str) -> List[ImportedNote]:
    """
    Parse one file with the plugin owning its extension.

    Raises
    ------
    UnsupportedFormatError
        If no plugin handles the extension.
    """
    PluginRegistry.discover_plugins()
    plugin_class = PluginRegistry.get_plugin_for_file(filename)
    if plugin_class is None:
        raise UnsupportedFormatError(os.path.basename(filename))
    notes = plugin_class.parse(content, os.path.basename(filename))
    for note in notes:
        note.source = os.path.basename(filename)
    return notes


def parse_files(files: Iterable[Tuple[str, str]]) -> Tuple[List[ImportedNote], List[str]]:
    """
    Parse a set of files, collecting failures instead of stopping.

    Parameters
    ----------
    files : iterable of (filename, content)
        Files to parse.

    Returns
    -------
    tuple
        The notes of every file in order, and one ``"<file>: <message>"`` string
        per file that could not be parsed.
    """
    logger = get_or_setup_logger()
    notes: List[ImportedNote] = []
    errors: List[str] = []

    for filename, content in files:
        try:
            parsed = parse_file(filename, content)
            logger.info(f'Parsed {len(parsed)} note(s) from "{filename}"')
            notes.extend(parsed)
        except Exception as e:
            logger.error(f'Failed to parse "{filename}": {e}')
            errors.append(f"{os.path.basename(filename)}: {e}")

    return notes, errors


def read_input_files(paths: Iterable[str]) -> List[Tuple[str, str]]:
    """
    Read input files as UTF-8 text.

    Undecodable bytes are replaced so one bad byte does not discard a whole export.
    """
    logger = get_or_setup_logger()
    files = []
    for path in paths:
        logger.info(f'Reading input file "{path}"')
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            files.append((path, f.read()))
    return files
