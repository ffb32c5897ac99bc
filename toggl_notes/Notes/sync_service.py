# sync_service.py
# Description: Command layer for timer and note synchronization operations
#
# Imports
import asyncio
import dataclasses
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Union
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from ..config import (
    TogglSettings, get_cli_setting, get_vault_path, load_toggl_settings, mask_token,
    save_setting_to_cli_config
)
from ..toggl_api.client import TogglApiClient
from ..toggl_api.exceptions import TogglAPIError
from .note_store import DEFAULT_OWNED_IDS_FIELD, NoteNotFoundError, NoteStore
from .project_resolver import ProjectResolver
from .sync_engine import NoMappingError, NotesTimeSyncEngine, default_pull_window
from .timer_controller import TimerController
from .workspace_context import WorkspaceContext, WorkspaceNotConfiguredError
#
########################################################################################################################
#
# Classes:

NotifyCallback = Callable[[str, str], None]

# Failures a command reports to the user instead of raising.
COMMAND_ERRORS = (
    TogglAPIError,
    NoMappingError,
    NoteNotFoundError,
    WorkspaceNotConfiguredError,
    ValueError,
    OSError,
)

_SEVERITY_LEVELS = {
    "information": "INFO",
    "warning": "WARNING",
    "error": "ERROR",
}


def log_notification(message: str, severity: str = "information") -> None:
    """Default notifier: route user-facing messages through the logger."""
    logger.log(_SEVERITY_LEVELS.get(severity, "INFO"), message)


@dataclass
class CommandResult:
    """What a command reports back: one message, and the command's payload if it succeeded."""
    ok: bool
    message: str
    data: Any = None
    severity: str = "information"


class TimeTrackingService:
    """High-level commands for timers and note synchronization.

    Mutating commands run one at a time through a single lock, so a second
    start/stop/push/pull cannot begin until the previous one has finished.
    Each command produces exactly one notification.
    """

    def __init__(self, client: TogglApiClient, note_store: NoteStore, settings: TogglSettings,
                 notify: Optional[NotifyCallback] = None,
                 pull_months_back: int = 3, pull_days_forward: int = 1):
        """
        Initialize the service.

        Args:
            client: Remote client, already configured with the settings' token
            note_store: Front-matter access for the vault
            settings: Persisted token and cached workspace id
            notify: Callback receiving (message, severity) for every command
            pull_months_back: Default pull window, months before now
            pull_days_forward: Default pull window, days after now
        """
        self.note_store = note_store
        self.settings = settings
        self.notify = notify or log_notification
        self.pull_months_back = pull_months_back
        self.pull_days_forward = pull_days_forward
        self._command_lock = asyncio.Lock()
        self._build_engine(client)

    @classmethod
    def from_config(cls, vault_path: Optional[Union[str, Path]] = None,
                    notify: Optional[NotifyCallback] = None) -> "TimeTrackingService":
        """Build a service from the persisted configuration."""
        settings = load_toggl_settings()
        note_store = NoteStore(
            vault_path or get_vault_path(),
            owned_ids_field=get_cli_setting("notes", "owned_ids_field", DEFAULT_OWNED_IDS_FIELD)
        )
        return cls(
            TogglApiClient(settings.api_token),
            note_store,
            settings,
            notify=notify,
            pull_months_back=int(get_cli_setting("sync", "pull_months_back", 3)),
            pull_days_forward=int(get_cli_setting("sync", "pull_days_forward", 1)),
        )

    def _build_engine(self, client: TogglApiClient) -> None:
        self.client = client
        self.project_resolver = ProjectResolver(client)
        self.timer = TimerController(client, self.note_store, self.project_resolver)
        self.sync_engine = NotesTimeSyncEngine(client, self.note_store, self.project_resolver)

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "TimeTrackingService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _context(self) -> WorkspaceContext:
        return WorkspaceContext.from_settings(self.settings)

    async def _run(self, name: str, operation: Callable[[], Awaitable[CommandResult]],
                   serialize: bool = True) -> CommandResult:
        if serialize:
            async with self._command_lock:
                result = await self._execute(name, operation)
        else:
            result = await self._execute(name, operation)
        self.notify(result.message, result.severity)
        return result

    async def _execute(self, name: str, operation: Callable[[], Awaitable[CommandResult]]) -> CommandResult:
        logger.debug(f"Running command: {name}")
        try:
            return await operation()
        except COMMAND_ERRORS as e:
            logger.debug(f"Command {name} failed with {type(e).__name__}")
            return CommandResult(ok=False, message=f"{name} failed: {e}", severity="error")

    # --- Commands ---

    async def set_api_token(self, token: str) -> CommandResult:
        """Persist a new API token and rebuild the client around it."""
        async def operation() -> CommandResult:
            token_value = token.strip()
            if not save_setting_to_cli_config("toggl", "api_token", token_value):
                raise OSError("Could not save the API token to the config file")
            old_client = self.client
            self.settings = dataclasses.replace(self.settings, api_token=token_value)
            self._build_engine(TogglApiClient(token_value))
            await old_client.close()
            return CommandResult(ok=True, message=f"API token saved ({mask_token(token_value)})")

        return await self._run("Set API token", operation)

    async def connect(self) -> CommandResult:
        """Look up the user's default workspace and cache it in the settings."""
        async def operation() -> CommandResult:
            me = await self.client.get_user()
            if not save_setting_to_cli_config("toggl", "default_workspace_id", me.default_workspace_id):
                raise OSError("Could not save the default workspace to the config file")
            self.settings = dataclasses.replace(self.settings, default_workspace_id=me.default_workspace_id)
            who = me.email or me.fullname or f"user {me.id}"
            return CommandResult(
                ok=True,
                message=f"Connected as {who} (workspace {me.default_workspace_id})",
                data=me
            )

        return await self._run("Connect", operation)

    async def start_timer(self, note_path: Union[str, Path]) -> CommandResult:
        """Start a timer for the note and record the new entry on it."""
        async def operation() -> CommandResult:
            note = self.note_store.get_note(note_path)
            entry = await self.timer.start(note, self._context())
            self.note_store.append_owned_id(note, entry.id)
            return CommandResult(ok=True, message=f"▶ Timer started for '{entry.description}'", data=entry)

        return await self._run("Start timer", operation)

    async def stop_timer(self) -> CommandResult:
        async def operation() -> CommandResult:
            stopped = await self.timer.stop()
            if stopped:
                return CommandResult(ok=True, message="⏹ Timer stopped", data=True)
            return CommandResult(ok=True, message="No timer is running", data=False)

        return await self._run("Stop timer", operation)

    async def status(self) -> CommandResult:
        """Report the running entry, if any."""
        async def operation() -> CommandResult:
            entry = await self.timer.current()
            if entry is None:
                return CommandResult(ok=True, message="No timer is running")
            since = entry.running_since()
            since_text = since.isoformat() if since else "unknown"
            return CommandResult(
                ok=True,
                message=f"Running: '{entry.description or ''}' since {since_text}",
                data=entry
            )

        return await self._run("Status", operation, serialize=False)

    async def push_note(self, note_path: Union[str, Path]) -> CommandResult:
        async def operation() -> CommandResult:
            note = self.note_store.get_note(note_path)
            result = await self.sync_engine.push(note, self._context())
            if result.failed:
                return CommandResult(
                    ok=True,
                    message=(f"Pushed to {result.affected_count} time entries; "
                             f"rejected: {', '.join(str(i) for i in result.failed_ids)}"),
                    data=result,
                    severity="warning"
                )
            return CommandResult(ok=True, message=f"Pushed to {result.affected_count} time entries", data=result)

        return await self._run("Push", operation)

    async def pull_note(self, note_path: Union[str, Path],
                        start: Optional[Union[date, datetime]] = None,
                        end: Optional[Union[date, datetime]] = None) -> CommandResult:
        """Replace the note's owned ids with the matching entries of a window (default window if omitted)."""
        async def operation() -> CommandResult:
            note = self.note_store.get_note(note_path)
            default_start, default_end = default_pull_window(
                months_back=self.pull_months_back, days_forward=self.pull_days_forward
            )
            ids = await self.sync_engine.pull(
                note, start or default_start, end or default_end, self._context()
            )
            return CommandResult(ok=True, message=f"Pulled {len(ids)} time entries into {note.path}", data=ids)

        return await self._run("Pull", operation)

#
# End of sync_service.py
########################################################################################################################
