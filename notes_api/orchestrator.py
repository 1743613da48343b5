"""
Batch import of parsed notes into the notes service.

Every parsed note is classified against the notes that already exist: a note
whose title matches an existing title (ignoring case) is a duplicate, handled
according to the duplicate policy. The import then runs three phases in a
fixed order, reporting ``(completed, total)`` progress after each step:

1. skipped duplicates are counted;
2. replaced duplicates are updated, a few at a time;
3. new notes are created in batches through the bulk endpoint, falling back to
   one call per note when a bulk call fails.

A failing note never stops the import; its error is recorded as
``"<title>: <message>"``.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from common.errors import CollaboratorError
from common.logging import get_or_setup_logger
from common.models import ImportedNote
from common.plugins import parse_files
from document.builder import html_to_document
from document.text import document_to_text

COPY_SUFFIX = " (cópia)"
DEFAULT_BATCH_SIZE = 50
DEFAULT_UPDATE_CONCURRENCY = 5

ProgressCallback = Callable[[int, int], None]


class DuplicatePolicy(str, enum.Enum):
    """What to do with a note whose title already exists."""

    REPLACE = "replace"
    RENAME = "rename"
    IGNORE = "ignore"


class Action(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"


@dataclass
class PlannedNote:
    note: ImportedNote
    action: Action
    existing_id: Optional[str] = None


@dataclass
class ImportResult:
    """
    Outcome of an import run.

    Attributes
    ----------
    state : str
        ``"done"`` once the run has finished.
    success_count, skipped_count, failed_count : int
        Notes created or updated, duplicates skipped, notes that failed.
    errors : list of str
        File parsing errors followed by per-note errors, in the order they
        occurred.
    created, updated : list of dict
        Records returned by the service.
    total : int
        Number of notes parsed from the input files.
    """

    state: str = "pending"
    success_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0
    errors: List[str] = field(default_factory=list)
    created: List[Dict[str, Any]] = field(default_factory=list)
    updated: List[Dict[str, Any]] = field(default_factory=list)
    total: int = 0

    @property
    def ok(self) -> bool:
        """False when no note could be read from any input file."""
        return self.total > 0


def _error_text(error: Exception, default: str) -> str:
    return str(error) or default


def find_duplicate(title: str, existing_notes: Iterable[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """The first existing note whose title equals ``title``, ignoring case."""
    wanted = title.lower()
    for existing in existing_notes:
        if (existing.get("title") or "").lower() == wanted:
            return existing
    return None


def plan_import(
    notes: Iterable[ImportedNote],
    existing_notes: List[Dict[str, Any]],
    policy: DuplicatePolicy,
) -> List[PlannedNote]:
    """
    Decide the action for every note.

    Duplicates are looked up among ``existing_notes`` only, not among the
    notes of the same import. With the rename policy the duplicate is created
    with ``COPY_SUFFIX`` appended to the title of a copy; the given notes are
    never modified.
    """
    policy = DuplicatePolicy(policy)
    planned = []
    for note in notes:
        duplicate = find_duplicate(note.title, existing_notes)
        if duplicate is None:
            planned.append(PlannedNote(note, Action.CREATE))
        elif policy is DuplicatePolicy.IGNORE:
            planned.append(PlannedNote(note, Action.SKIP))
        elif policy is DuplicatePolicy.REPLACE:
            planned.append(PlannedNote(note, Action.UPDATE, existing_id=duplicate.get("id")))
        else:
            renamed = replace(note, title=f"{note.title}{COPY_SUFFIX}")
            planned.append(PlannedNote(renamed, Action.CREATE))
    return planned


class BatchImporter:
    """
    Import parsed notes through an asynchronous notes API.

    Parameters
    ----------
    api : object
        Provides the coroutines ``create_note(payload)``,
        ``bulk_create_notes(payloads)``, ``update_note(id, payload)`` and
        ``create_notebook(name)``, for example ``AsyncNotesApi``.
    batch_size : int
        Number of notes per bulk create call.
    update_concurrency : int
        Number of updates in flight at once.
    progress : callable, optional
        Called with ``(completed, total)`` after each step.
    dry_run : bool
        Classify and report without calling the API.
    logger : logging.Logger, optional
        Logger to use.
    """

    def __init__(
        self,
        api: Any,
        batch_size: int = DEFAULT_BATCH_SIZE,
        update_concurrency: int = DEFAULT_UPDATE_CONCURRENCY,
        progress: Optional[ProgressCallback] = None,
        dry_run: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        if batch_size < 1 or update_concurrency < 1:
            raise ValueError("batch_size and update_concurrency must be positive")
        self.api = api
        self.batch_size = batch_size
        self.update_concurrency = update_concurrency
        self.progress = progress
        self.dry_run = dry_run
        self.logger = logger or get_or_setup_logger()

    def _report(self, completed: int, total: int) -> None:
        if self.progress is not None:
            self.progress(completed, total)

    @staticmethod
    def create_payload(note: ImportedNote, notebook_id: Optional[str]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "title": note.title,
            "content": html_to_document(note.content).to_dict(),
        }
        if notebook_id:
            payload["notebookId"] = notebook_id
        return payload

    @staticmethod
    def update_payload(note: ImportedNote) -> Dict[str, Any]:
        tree = html_to_document(note.content)
        return {"content": tree.to_dict(), "plainText": document_to_text(tree)}

    async def resolve_notebook(self, notebook_id: Optional[str], new_notebook_name: Optional[str]) -> Optional[str]:
        """
        Create the requested notebook, if any, and return the target notebook id.

        Raises
        ------
        CollaboratorError
            If the notebook cannot be created.
        """
        name = (new_notebook_name or "").strip()
        if not name:
            return notebook_id
        if self.dry_run:
            self.logger.info(f'Dry run: would create notebook "{name}"')
            return notebook_id

        try:
            notebook = await self.api.create_notebook(name)
        except CollaboratorError:
            raise
        except Exception as e:
            raise CollaboratorError(str(e)) from e
        self.logger.info(f'Created notebook "{name}"')
        return notebook["id"]

    async def _update_one(self, planned: PlannedNote) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
        try:
            record = await self.api.update_note(planned.existing_id, self.update_payload(planned.note))
            return record, None
        except Exception as e:
            return None, f"{planned.note.title}: {_error_text(e, 'Update failed')}"

    async def _run_updates(self, to_update: List[PlannedNote], result: ImportResult, offset: int) -> None:
        for start in range(0, len(to_update), self.update_concurrency):
            group = to_update[start:start + self.update_concurrency]
            outcomes = await asyncio.gather(*(self._update_one(planned) for planned in group))
            for planned, (record, error) in zip(group, outcomes):
                if error is None:
                    result.success_count += 1
                    result.updated.append(record if record is not None else {"id": planned.existing_id})
                else:
                    self.logger.error(f"Failed to update note: {error}")
                    result.failed_count += 1
                    result.errors.append(error)
            self._report(offset + start + len(group), result.total)

    async def _create_one_by_one(self, batch: List[PlannedNote], notebook_id: Optional[str], result: ImportResult) -> None:
        for planned in batch:
            try:
                record = await self.api.create_note(self.create_payload(planned.note, notebook_id))
            except Exception as e:
                error = f"{planned.note.title}: {_error_text(e, 'Import failed')}"
                self.logger.error(f"Failed to create note: {error}")
                result.failed_count += 1
                result.errors.append(error)
                continue
            result.success_count += 1
            result.created.append(record)

    async def _run_creates(
        self, to_create: List[PlannedNote], notebook_id: Optional[str], result: ImportResult, offset: int
    ) -> None:
        for start in range(0, len(to_create), self.batch_size):
            batch = to_create[start:start + self.batch_size]
            batch_number = start // self.batch_size + 1
            try:
                payloads = [self.create_payload(planned.note, notebook_id) for planned in batch]
                created = await self.api.bulk_create_notes(payloads)
            except Exception as e:
                self.logger.warning(f"Bulk create of batch {batch_number} failed ({e}); creating notes one by one")
                await self._create_one_by_one(batch, notebook_id, result)
            else:
                self.logger.info(f"Created {len(created)} notes (batch {batch_number})")
                result.success_count += len(created)
                result.created.extend(created)
            self._report(offset + start + len(batch), result.total)

    def _dry_run_report(self, planned: List[PlannedNote], result: ImportResult) -> ImportResult:
        for item in planned:
            if item.action is Action.SKIP:
                self.logger.info(f'Dry run: would skip "{item.note.title}"')
            elif item.action is Action.UPDATE:
                self.logger.info(f'Dry run: would update note {item.existing_id} with "{item.note.title}"')
                result.success_count += 1
            else:
                self.logger.info(f'Dry run: would create "{item.note.title}"')
                result.success_count += 1
        self._report(result.total, result.total)
        result.state = "done"
        return result

    async def import_notes(
        self,
        notes: List[ImportedNote],
        existing_notes: List[Dict[str, Any]],
        policy: DuplicatePolicy,
        notebook_id: Optional[str] = None,
        errors: Optional[List[str]] = None,
    ) -> ImportResult:
        """
        Import already parsed notes.

        Parameters
        ----------
        notes : list of ImportedNote
            Notes to import, in order.
        existing_notes : list of dict
            Notes already in the service, with ``id`` and ``title``.
        policy : DuplicatePolicy
            Handling of duplicate titles.
        notebook_id : str, optional
            Notebook the new notes are created in.
        errors : list of str, optional
            Earlier errors (such as file parsing errors) to carry into the result.

        Returns
        -------
        ImportResult
            Counts, errors and returned records.
        """
        result = ImportResult(errors=list(errors or []), total=len(notes))
        planned = plan_import(notes, existing_notes, policy)

        to_skip = [item for item in planned if item.action is Action.SKIP]
        to_update = [item for item in planned if item.action is Action.UPDATE]
        to_create = [item for item in planned if item.action is Action.CREATE]
        self.logger.info(f"Import plan: {len(to_create)} to create, {len(to_update)} to update, {len(to_skip)} to skip")

        result.skipped_count = len(to_skip)
        if self.dry_run:
            return self._dry_run_report(planned, result)

        self._report(len(to_skip), result.total)
        await self._run_updates(to_update, result, len(to_skip))
        await self._run_creates(to_create, notebook_id, result, len(to_skip) + len(to_update))

        result.state = "done"
        return result

    async def run(
        self,
        files: Iterable[Tuple[str, str]],
        existing_notes: List[Dict[str, Any]],
        policy: DuplicatePolicy,
        notebook_id: Optional[str] = None,
        new_notebook_name: Optional[str] = None,
    ) -> ImportResult:
        """
        Parse files and import their notes.

        A requested new notebook is created before anything else and becomes
        the target of the new notes.

        Parameters
        ----------
        files : iterable of (filename, content)
            Input files.
        existing_notes : list of dict
            Notes already in the service, with ``id`` and ``title``.
        policy : DuplicatePolicy
            Handling of duplicate titles.
        notebook_id : str, optional
            Existing notebook to import into.
        new_notebook_name : str, optional
            Name of a notebook to create and import into.

        Returns
        -------
        ImportResult
            Counts, errors and returned records. ``ok`` is False when no note
            could be parsed.

        Raises
        ------
        CollaboratorError
            If the new notebook cannot be created.
        """
        try:
            notebook_id = await self.resolve_notebook(notebook_id, new_notebook_name)
        except CollaboratorError:
            self.logger.error(f'Failed to create notebook "{new_notebook_name}"')
            raise

        notes, errors = parse_files(files)
        if not notes:
            self.logger.error("No notes could be read from the input files")
        return await self.import_notes(notes, existing_notes, policy, notebook_id, errors)
