# toggl_notes/toggl_api/client.py
# Description: Toggl Track API v9 client
#
# This module handles all HTTP interactions with the time-tracking service.
# It is stateless apart from the underlying connection pool.

from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Optional, List, Dict, Any, Sequence, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, ValidationError
from loguru import logger

from ..config import get_cli_setting
from .exceptions import (
    TogglAPIError,
    TogglAuthError,
    TogglInvalidResponseError,
    TogglNotFoundError,
    TogglTransportError,
    TogglValidationError,
)
from .schemas import BatchPatchResult, Me, PatchOperation, Project, TimeEntry

logger = logger.bind(module="toggl_api_client")

DEFAULT_BASE_URL = "https://api.track.toggl.com/api/v9"
DEFAULT_CREATED_WITH = "Toggl Notes"

DateLike = Union[date, datetime, str]
ModelT = TypeVar("ModelT", bound=BaseModel)


def format_timestamp(value: DateLike) -> str:
    """Render a date or datetime the way the service expects it (RFC 3339)."""
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")
    return value.isoformat()


class TogglApiClient:
    """Client for interacting with the Toggl Track API."""

    def __init__(self, api_token: Optional[str], base_url: Optional[str] = None,
                 timeout: Optional[float] = None, created_with: Optional[str] = None):
        """Initialize the Toggl API client.

        Args:
            api_token: Personal API token. Requests fail with TogglAuthError without one.
            base_url: Override for the API root (defaults to config, then the public v9 URL)
            timeout: Transport timeout in seconds
            created_with: Client name recorded on created time entries
        """
        self.api_token = api_token or None
        self.base_url = (base_url or get_cli_setting("toggl", "base_url", DEFAULT_BASE_URL)).rstrip("/")
        self.timeout = timeout if timeout is not None else float(get_cli_setting("toggl", "request_timeout", 30.0))
        self.created_with = created_with or get_cli_setting("toggl", "created_with", DEFAULT_CREATED_WITH)
        self._client: Optional[httpx.AsyncClient] = None

        if self.api_token:
            logger.debug("Toggl API client initialized with authentication token")
        else:
            logger.warning("Toggl API client initialized without an API token")

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            headers = {
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
            auth = httpx.BasicAuth(self.api_token, "api_token") if self.api_token else None
            self._client = httpx.AsyncClient(
                headers=headers,
                auth=auth,
                timeout=self.timeout
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "TogglApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _error_from_status(self, e: httpx.HTTPStatusError) -> TogglAPIError:
        status = e.response.status_code
        text = e.response.text
        if status in (401, 403):
            return TogglAuthError(f"Toggl rejected the API token ({status}): {text}", status)
        if status == 404:
            return TogglNotFoundError(f"Not found: {e.request.url}", status)
        if status in (400, 422):
            return TogglValidationError(text, status)
        return TogglAPIError(f"Toggl API error {status}: {text}", status)

    async def _request(self, method: str, endpoint: str,
                       json_body: Optional[Any] = None,
                       params: Optional[Dict[str, Any]] = None) -> Any:
        """Send one request and return the decoded JSON body (None for an empty or null body)."""
        if not self.api_token:
            raise TogglAuthError("No Toggl API token configured")

        url = f"{self.base_url}/{endpoint}"
        logger.debug(f"{method} {url}")
        try:
            response = await self.client.request(method, url, json=json_body, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise self._error_from_status(e) from e
        except httpx.TransportError as e:
            raise TogglTransportError(f"Network error while contacting Toggl: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TogglInvalidResponseError(
                f"Response from {endpoint} is not valid JSON: {e}", response.status_code
            ) from e

    def _parse(self, model: Type[ModelT], data: Any, endpoint: str) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise TogglInvalidResponseError(f"Unexpected {model.__name__} payload from {endpoint}: {e}") from e

    def _parse_list(self, model: Type[ModelT], data: Any, endpoint: str) -> List[ModelT]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise TogglInvalidResponseError(f"Expected a list from {endpoint}, got {type(data).__name__}")
        return [self._parse(model, item, endpoint) for item in data]

    async def get_user(self) -> Me:
        """Get the authenticated user, including the default workspace id."""
        data = await self._request("GET", "me")
        return self._parse(Me, data, "me")

    async def list_projects(self) -> List[Project]:
        """List every project visible to the user."""
        data = await self._request("GET", "me/projects")
        return self._parse_list(Project, data, "me/projects")

    async def create_project(self, name: str, workspace_id: int) -> Project:
        body = {"name": name, "active": True}
        data = await self._request("POST", f"workspaces/{workspace_id}/projects", json_body=body)
        logger.info(f"Created Toggl project '{name}' in workspace {workspace_id}")
        return self._parse(Project, data, f"workspaces/{workspace_id}/projects")

    async def create_time_entry(
        self,
        description: str,
        workspace_id: int,
        project_id: Optional[int] = None,
        start: Optional[DateLike] = None,
        duration: int = -1,
        tag_ids: Optional[Sequence[int]] = None
    ) -> TimeEntry:
        """Create a time entry. The default duration of -1 starts a running timer.

        Args:
            description: Entry description
            workspace_id: Workspace the entry belongs to
            project_id: Optional project id
            start: Start timestamp (defaults to now)
            duration: Seconds, or -1 for a running entry
            tag_ids: Optional tag ids

        Returns:
            The created entry as returned by the service
        """
        body: Dict[str, Any] = {
            "description": description,
            "created_with": self.created_with,
            "start": format_timestamp(start or datetime.now(timezone.utc)),
            "workspace_id": workspace_id,
            "duration": duration,
        }
        if project_id is not None:
            body["project_id"] = project_id
        if tag_ids:
            body["tag_ids"] = list(tag_ids)

        data = await self._request("POST", f"workspaces/{workspace_id}/time_entries", json_body=body)
        return self._parse(TimeEntry, data, f"workspaces/{workspace_id}/time_entries")

    async def get_current_time_entry(self) -> Optional[TimeEntry]:
        """Get the running entry, or None when no timer is running."""
        data = await self._request("GET", "me/time_entries/current")
        if not data:
            return None
        return self._parse(TimeEntry, data, "me/time_entries/current")

    async def stop_time_entry(self, entry_id: int, workspace_id: int) -> TimeEntry:
        data = await self._request("PATCH", f"workspaces/{workspace_id}/time_entries/{entry_id}/stop")
        return self._parse(TimeEntry, data, f"workspaces/{workspace_id}/time_entries/{entry_id}/stop")

    async def list_time_entries(self, start_date: DateLike, end_date: DateLike) -> List[TimeEntry]:
        """List the user's entries whose start falls within [start_date, end_date]."""
        params = {
            "start_date": format_timestamp(start_date),
            "end_date": format_timestamp(end_date),
        }
        data = await self._request("GET", "me/time_entries", params=params)
        return self._parse_list(TimeEntry, data, "me/time_entries")

    async def batch_patch_time_entries(
        self,
        entry_ids: Sequence[int],
        workspace_id: int,
        operations: Sequence[PatchOperation]
    ) -> BatchPatchResult:
        """Apply the same field operations to several entries in one request.

        Returns:
            The per-id success and failure lists reported by the service
        """
        if not entry_ids:
            raise ValueError("batch_patch_time_entries needs at least one entry id")
        ids_segment = ",".join(str(entry_id) for entry_id in entry_ids)
        body = [operation.to_payload() for operation in operations]
        data = await self._request("PATCH", f"workspaces/{workspace_id}/time_entries/{ids_segment}",
                                   json_body=body)
        return self._parse(BatchPatchResult, data or {}, f"workspaces/{workspace_id}/time_entries/{ids_segment}")

#
# End of client.py
########################################################################################################################
