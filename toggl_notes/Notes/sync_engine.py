# sync_engine.py
# Description: Engine for reconciling a note's owned time entries with Toggl
#
# Imports
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Tuple, Union
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from ..toggl_api.client import TogglApiClient
from ..toggl_api.schemas import BatchPatchFailure, PatchOperation
from .identity_matcher import acceptable_names, filter_matching
from .note_store import Note, NoteStore
from .project_resolver import ProjectResolver
from .workspace_context import WorkspaceContext
#
########################################################################################################################
#
# Classes and Functions:

class NoMappingError(Exception):
    """The note owns no time entries yet, so there is nothing to push to."""
    pass


@dataclass
class PushResult:
    """Outcome of a push. Per-id results come straight from the batch response."""
    addressed_ids: List[int]
    succeeded_ids: List[int] = field(default_factory=list)
    failed: List[BatchPatchFailure] = field(default_factory=list)

    @property
    def affected_count(self) -> int:
        """Number of entries the request addressed (not necessarily all succeeded)."""
        return len(self.addressed_ids)

    @property
    def failed_ids(self) -> List[int]:
        return [failure.id for failure in self.failed]


def _months_back(moment: datetime, months: int) -> datetime:
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    # Clamp the day, e.g. May 31 minus 3 months is Feb 28/29.
    for day in range(moment.day, 0, -1):
        try:
            return moment.replace(year=year, month=month, day=day)
        except ValueError:
            continue
    raise ValueError(f"Cannot shift {moment} back by {months} months")


def default_pull_window(now: Optional[datetime] = None, months_back: int = 3,
                        days_forward: int = 1) -> Tuple[datetime, datetime]:
    """The window the command layer pulls by default: N months back through M days forward."""
    now = now or datetime.now(timezone.utc)
    return _months_back(now, months_back), now + timedelta(days=days_forward)


class NotesTimeSyncEngine:
    """Engine for pushing note attributes to, and pulling entry ids from, Toggl."""

    def __init__(self,
                 client: TogglApiClient,
                 note_store: NoteStore,
                 project_resolver: ProjectResolver):
        """
        Initialize the sync engine.

        Args:
            client: Remote time-tracking client
            note_store: Front-matter access for notes
            project_resolver: Category to project mapping
        """
        self.client = client
        self.note_store = note_store
        self.project_resolver = project_resolver

    def _owned_ids_as_ints(self, note: Note) -> List[int]:
        ids = []
        for raw_id in self.note_store.get_owned_ids(note):
            try:
                ids.append(int(raw_id))
            except ValueError:
                logger.warning(f"Skipping non-numeric time entry id {raw_id!r} in {note.path}")
        return ids

    async def pull(self,
                   note: Note,
                   window_start: Union[date, datetime],
                   window_end: Union[date, datetime],
                   ctx: WorkspaceContext) -> List[int]:
        """
        Recompute the note's owned ids from the remote entries in a window.

        The owned-id list is replaced, not merged: ids recorded earlier that do
        not match inside this window are dropped.

        Args:
            note: Note whose owned ids are recomputed
            window_start: Earliest entry start to consider
            window_end: Latest entry start to consider
            ctx: Workspace scope of the operation

        Returns:
            The ids now stored on the note, in service order
        """
        start_time = time.time()
        entries = await self.client.list_time_entries(window_start, window_end)

        names = acceptable_names(
            self.note_store.get_primary_name(note),
            self.note_store.get_aliases_and_title(note)
        )
        matched_ids = [entry.id for entry in filter_matching(entries, names)]

        self.note_store.replace_owned_ids(note, matched_ids)

        duration = time.time() - start_time
        logger.info(
            f"Pulled {len(matched_ids)} of {len(entries)} entries into {note.path} "
            f"(workspace {ctx.workspace_id}, {duration:.2f}s)"
        )
        return matched_ids

    async def push(self, note: Note, ctx: WorkspaceContext) -> PushResult:
        """
        Overwrite description (and project, if the note has a category) on
        every owned entry with a single batch request.

        A failure while resolving the project aborts the push before any
        request is made, so entries never get a partial patch.

        Raises:
            NoMappingError: If the note owns no entries
        """
        entry_ids = self._owned_ids_as_ints(note)
        if not entry_ids:
            raise NoMappingError(f"{note.path} has no time entries to push to")

        operations = [PatchOperation.replace("description", self.note_store.get_primary_name(note))]

        category = self.note_store.get_category(note)
        if category:
            project = await self.project_resolver.resolve(category, ctx)
            operations.append(PatchOperation.replace("project_id", project.id))

        result = await self.client.batch_patch_time_entries(entry_ids, ctx.workspace_id, operations)

        push_result = PushResult(
            addressed_ids=entry_ids,
            succeeded_ids=list(result.success),
            failed=list(result.failure)
        )
        if push_result.failed:
            logger.warning(f"Push to {note.path}: entries {push_result.failed_ids} were rejected")
        logger.info(f"Pushed {note.path} to {push_result.affected_count} time entries")
        return push_result

#
# End of sync_engine.py
########################################################################################################################
