# timer_controller.py
# Description: Starts and stops the remote timer for a note
#
# The running entry is never tracked locally; every call asks the service.
# Starting does not stop an already running entry, so two starts without a stop
# leave two running entries behind.
#
# Imports
from datetime import datetime, timezone
from typing import Optional
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from ..toggl_api.client import TogglApiClient
from ..toggl_api.exceptions import TogglAPIError
from ..toggl_api.schemas import TimeEntry
from .note_store import Note, NoteStore
from .project_resolver import ProjectResolver
from .workspace_context import WorkspaceContext
#
########################################################################################################################
#
# Classes:

class TimerController:
    """Query-then-act operations on the user's running time entry."""

    def __init__(self, client: TogglApiClient, note_store: NoteStore, project_resolver: ProjectResolver):
        self.client = client
        self.note_store = note_store
        self.project_resolver = project_resolver

    async def _project_id_for(self, note: Note, ctx: WorkspaceContext) -> Optional[int]:
        category = self.note_store.get_category(note)
        if not category:
            return None
        try:
            project = await self.project_resolver.resolve(category, ctx)
        except TogglAPIError as e:
            logger.warning(f"Could not resolve project for category '{category}', starting without one: {e}")
            return None
        return project.id

    async def start(self, note: Note, ctx: WorkspaceContext) -> TimeEntry:
        """
        Start a new running entry described by the note's primary name.

        Args:
            note: The note being worked on
            ctx: Workspace the entry is created in

        Returns:
            The created, running entry
        """
        name = self.note_store.get_primary_name(note)
        project_id = await self._project_id_for(note, ctx)

        entry = await self.client.create_time_entry(
            description=name,
            workspace_id=ctx.workspace_id,
            project_id=project_id,
            start=datetime.now(timezone.utc),
            duration=-1
        )
        logger.info(f"Started time entry {entry.id} for '{name}' (project: {project_id})")
        return entry

    async def current(self) -> Optional[TimeEntry]:
        return await self.client.get_current_time_entry()

    async def stop(self) -> bool:
        """Stop the running entry in its own workspace. Returns False when nothing was running."""
        current_entry = await self.client.get_current_time_entry()
        if current_entry is None:
            logger.info("No running time entry to stop")
            return False

        await self.client.stop_time_entry(current_entry.id, current_entry.workspace_id)
        logger.info(f"Stopped time entry {current_entry.id}")
        return True

#
# End of timer_controller.py
########################################################################################################################
