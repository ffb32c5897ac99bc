"""
Unit tests for the Toggl API client.

Tests the TogglApiClient in isolation with mocked HTTP responses.
"""

import json

import pytest
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
import httpx

from toggl_notes.toggl_api.client import TogglApiClient, format_timestamp
from toggl_notes.toggl_api.exceptions import (
    TogglAPIError,
    TogglAuthError,
    TogglInvalidResponseError,
    TogglNotFoundError,
    TogglTransportError,
    TogglValidationError,
)
from toggl_notes.toggl_api.schemas import PatchOperation

BASE = "https://api.track.toggl.com/api/v9"

ENTRY_JSON = {
    "id": 3001,
    "description": "draft-a",
    "start": "2024-02-01T09:00:00+00:00",
    "stop": None,
    "duration": -1,
    "workspace_id": 42,
    "project_id": None,
    "tag_ids": None,
    "at": "2024-02-01T09:00:01+00:00",
    "server_deleted_at": None,
}


def make_response(json_data=None, status_code=200, content=b"{}"):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = json_data
    response.content = content
    response.raise_for_status = MagicMock()
    return response


def make_error_response(status_code, text="error"):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.raise_for_status.side_effect = httpx.HTTPStatusError(
        text, request=MagicMock(), response=response
    )
    return response


class TestTogglApiClient:
    """Test suite for TogglApiClient."""

    @pytest.fixture
    def api_client(self):
        """Create a Toggl API client instance."""
        return TogglApiClient(api_token="test_token")

    @pytest.fixture
    def mock_http_client(self):
        """Create a mock HTTP client."""
        return AsyncMock()

    def test_client_initialization_with_token(self):
        client = TogglApiClient(api_token="test_token")

        assert client.api_token == "test_token"
        assert client.base_url == BASE
        assert client._client is None

    def test_client_initialization_without_token(self):
        client = TogglApiClient(api_token="")

        assert client.api_token is None
        assert client._client is None

    def test_client_property_creates_client(self, api_client):
        """Accessing the client property creates one authenticated HTTP client."""
        with patch('httpx.AsyncClient') as mock_client_class:
            mock_client_class.return_value = AsyncMock()

            client = api_client.client

            mock_client_class.assert_called_once()
            call_kwargs = mock_client_class.call_args.kwargs
            assert call_kwargs['headers']['Content-Type'] == "application/json"
            assert isinstance(call_kwargs['auth'], httpx.BasicAuth)
            assert call_kwargs['timeout'] == 30.0

            assert api_client.client is client

    @pytest.mark.asyncio
    async def test_request_without_token_raises_auth_error(self, mock_http_client):
        client = TogglApiClient(api_token=None)
        client._client = mock_http_client

        with pytest.raises(TogglAuthError):
            await client.get_user()

        mock_http_client.request.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_user_success(self, api_client, mock_http_client):
        mock_http_client.request.return_value = make_response({
            "id": 7,
            "email": "me@example.com",
            "fullname": "Me",
            "default_workspace_id": 42,
            "timezone": "Europe/Berlin",
            "beginning_of_week": 1,
        })
        api_client._client = mock_http_client

        me = await api_client.get_user()

        assert me.default_workspace_id == 42
        assert me.email == "me@example.com"
        mock_http_client.request.assert_called_once_with(
            "GET", f"{BASE}/me", json=None, params=None
        )

    @pytest.mark.asyncio
    async def test_list_projects(self, api_client, mock_http_client):
        mock_http_client.request.return_value = make_response([
            {"id": 1, "name": "Writing", "workspace_id": 42, "active": True},
            {"id": 2, "name": "Research", "workspace_id": 42, "active": False},
        ])
        api_client._client = mock_http_client

        projects = await api_client.list_projects()

        assert [p.name for p in projects] == ["Writing", "Research"]
        assert projects[1].active is False
        mock_http_client.request.assert_called_once_with(
            "GET", f"{BASE}/me/projects", json=None, params=None
        )

    @pytest.mark.asyncio
    async def test_list_projects_null_body(self, api_client, mock_http_client):
        mock_http_client.request.return_value = make_response(None, content=b"null")
        api_client._client = mock_http_client

        assert await api_client.list_projects() == []

    @pytest.mark.asyncio
    async def test_create_project(self, api_client, mock_http_client):
        mock_http_client.request.return_value = make_response(
            {"id": 9, "name": "Research", "workspace_id": 42, "active": True}
        )
        api_client._client = mock_http_client

        project = await api_client.create_project("Research", 42)

        assert project.id == 9
        mock_http_client.request.assert_called_once_with(
            "POST", f"{BASE}/workspaces/42/projects",
            json={"name": "Research", "active": True}, params=None
        )

    @pytest.mark.asyncio
    async def test_create_time_entry_body(self, api_client, mock_http_client):
        mock_http_client.request.return_value = make_response(ENTRY_JSON)
        api_client._client = mock_http_client

        entry = await api_client.create_time_entry(
            "draft-a", 42, project_id=5,
            start=datetime(2024, 2, 1, 9, 0, tzinfo=timezone.utc)
        )

        assert entry.id == 3001
        assert entry.is_running
        args, kwargs = mock_http_client.request.call_args
        assert args == ("POST", f"{BASE}/workspaces/42/time_entries")
        assert kwargs["json"] == {
            "description": "draft-a",
            "created_with": "Toggl Notes",
            "start": "2024-02-01T09:00:00Z",
            "workspace_id": 42,
            "duration": -1,
            "project_id": 5,
        }

    @pytest.mark.asyncio
    async def test_create_time_entry_without_project_omits_field(self, api_client, mock_http_client):
        mock_http_client.request.return_value = make_response(ENTRY_JSON)
        api_client._client = mock_http_client

        await api_client.create_time_entry("draft-a", 42)

        body = mock_http_client.request.call_args.kwargs["json"]
        assert "project_id" not in body
        assert body["duration"] == -1

    @pytest.mark.asyncio
    async def test_get_current_time_entry_none_running(self, api_client, mock_http_client):
        """The service answers `null` when no timer is running."""
        mock_http_client.request.return_value = make_response(None, content=b"null")
        api_client._client = mock_http_client

        assert await api_client.get_current_time_entry() is None

    @pytest.mark.asyncio
    async def test_get_current_time_entry_running(self, api_client, mock_http_client):
        mock_http_client.request.return_value = make_response(ENTRY_JSON)
        api_client._client = mock_http_client

        entry = await api_client.get_current_time_entry()

        assert entry.id == 3001
        mock_http_client.request.assert_called_once_with(
            "GET", f"{BASE}/me/time_entries/current", json=None, params=None
        )

    @pytest.mark.asyncio
    async def test_stop_time_entry(self, api_client, mock_http_client):
        stopped = dict(ENTRY_JSON, duration=120, stop="2024-02-01T09:02:00+00:00")
        mock_http_client.request.return_value = make_response(stopped)
        api_client._client = mock_http_client

        entry = await api_client.stop_time_entry(3001, 42)

        assert not entry.is_running
        mock_http_client.request.assert_called_once_with(
            "PATCH", f"{BASE}/workspaces/42/time_entries/3001/stop", json=None, params=None
        )

    @pytest.mark.asyncio
    async def test_list_time_entries_passes_window(self, api_client, mock_http_client):
        mock_http_client.request.return_value = make_response([ENTRY_JSON])
        api_client._client = mock_http_client

        entries = await api_client.list_time_entries(date(2024, 1, 1), date(2024, 4, 1))

        assert [e.id for e in entries] == [3001]
        mock_http_client.request.assert_called_once_with(
            "GET", f"{BASE}/me/time_entries", json=None,
            params={"start_date": "2024-01-01", "end_date": "2024-04-01"}
        )

    @pytest.mark.asyncio
    async def test_batch_patch_addresses_all_ids(self, api_client, mock_http_client):
        mock_http_client.request.return_value = make_response(
            {"success": [10], "failure": [{"id": 11, "message": "not found"}]}
        )
        api_client._client = mock_http_client

        result = await api_client.batch_patch_time_entries(
            [10, 11], 42,
            [PatchOperation.replace("description", "draft-a"), PatchOperation.replace("project_id", 7)]
        )

        assert result.success == [10]
        assert result.failure[0].id == 11
        assert result.failure[0].message == "not found"
        mock_http_client.request.assert_called_once_with(
            "PATCH", f"{BASE}/workspaces/42/time_entries/10,11",
            json=[
                {"op": "replace", "path": "/description", "value": "draft-a"},
                {"op": "replace", "path": "/project_id", "value": 7},
            ],
            params=None
        )

    @pytest.mark.asyncio
    async def test_batch_patch_requires_ids(self, api_client, mock_http_client):
        api_client._client = mock_http_client

        with pytest.raises(ValueError):
            await api_client.batch_patch_time_entries([], 42, [PatchOperation.replace("description", "x")])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code,expected_error", [
        (401, TogglAuthError),
        (403, TogglAuthError),
        (404, TogglNotFoundError),
        (400, TogglValidationError),
        (422, TogglValidationError),
        (500, TogglAPIError),
    ])
    async def test_status_errors_are_typed(self, api_client, mock_http_client, status_code, expected_error):
        mock_http_client.request.return_value = make_error_response(status_code)
        api_client._client = mock_http_client

        with pytest.raises(expected_error) as exc_info:
            await api_client.get_user()

        assert exc_info.value.status_code == status_code

    @pytest.mark.asyncio
    async def test_validation_error_keeps_response_text(self, api_client, mock_http_client):
        mock_http_client.request.return_value = make_error_response(400, 'Invalid project_id')
        api_client._client = mock_http_client

        with pytest.raises(TogglValidationError, match="^Invalid project_id$"):
            await api_client.create_time_entry("draft-a", 42, project_id=999)

    @pytest.mark.asyncio
    async def test_transport_error(self, api_client, mock_http_client):
        mock_http_client.request.side_effect = httpx.ConnectTimeout("timed out")
        api_client._client = mock_http_client

        with pytest.raises(TogglTransportError, match="Network error"):
            await api_client.get_current_time_entry()

    @pytest.mark.asyncio
    async def test_non_json_body_is_typed(self, api_client):
        """A proxy page served with 200 surfaces as an invalid response, not a decode error."""
        def handler(request):
            return httpx.Response(200, text="<html>proxy error</html>")

        api_client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

        with pytest.raises(TogglInvalidResponseError, match="not valid JSON"):
            await api_client.list_projects()

        await api_client.close()

    @pytest.mark.asyncio
    async def test_record_missing_fields_is_typed(self, api_client, mock_http_client):
        mock_http_client.request.return_value = make_response({"id": 1, "name": "Writing"})
        api_client._client = mock_http_client

        with pytest.raises(TogglInvalidResponseError, match="Project"):
            await api_client.create_project("Writing", 42)

    @pytest.mark.asyncio
    async def test_list_endpoint_returning_object_is_typed(self, api_client, mock_http_client):
        mock_http_client.request.return_value = make_response({"error": "unexpected"})
        api_client._client = mock_http_client

        with pytest.raises(TogglInvalidResponseError, match="Expected a list"):
            await api_client.list_time_entries(date(2024, 1, 1), date(2024, 4, 1))

    @pytest.mark.asyncio
    async def test_invalid_response_is_an_api_error(self, api_client, mock_http_client):
        response = make_response()
        response.json.side_effect = json.JSONDecodeError("Expecting value", "<html>", 0)
        mock_http_client.request.return_value = response
        api_client._client = mock_http_client

        with pytest.raises(TogglAPIError):
            await api_client.get_user()

    @pytest.mark.asyncio
    async def test_close_releases_client(self, api_client, mock_http_client):
        api_client._client = mock_http_client

        await api_client.close()

        mock_http_client.aclose.assert_awaited_once()
        assert api_client._client is None


class TestFormatTimestamp:

    def test_naive_datetime_is_treated_as_utc(self):
        assert format_timestamp(datetime(2024, 1, 1, 8, 30)) == "2024-01-01T08:30:00Z"

    def test_aware_datetime_is_converted_to_utc(self):
        from datetime import timedelta
        plus_two = timezone(timedelta(hours=2))
        assert format_timestamp(datetime(2024, 1, 1, 10, 0, tzinfo=plus_two)) == "2024-01-01T08:00:00Z"

    def test_date_and_string_pass_through(self):
        assert format_timestamp(date(2024, 4, 1)) == "2024-04-01"
        assert format_timestamp("2024-04-01") == "2024-04-01"
