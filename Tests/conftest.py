"""
Root conftest.py for shared test fixtures and configuration.
This file provides common fixtures used across the test suite.
"""

import shutil
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add project root to Python path for consistent imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from toggl_notes import config
from toggl_notes.Notes.note_store import NoteStore
from toggl_notes.Notes.workspace_context import WorkspaceContext
from toggl_notes.toggl_api.client import TogglApiClient
from toggl_notes.toggl_api.schemas import Project, TimeEntry


# ========== Config Isolation ==========

@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config module at a throwaway file for every test."""
    config_path = tmp_path / "config" / "config.toml"
    monkeypatch.setattr(config, "DEFAULT_CONFIG_PATH", config_path)
    monkeypatch.setattr(config, "_CONFIG_CACHE", None)
    monkeypatch.delenv("TOGGL_API_TOKEN", raising=False)
    monkeypatch.delenv("TOGGL_NOTES_LOG_LEVEL", raising=False)
    yield config_path


# ========== Path and File System Fixtures ==========

@pytest.fixture
def vault_dir():
    """Create an isolated vault directory that's always cleaned up."""
    temp_dir = tempfile.mkdtemp(prefix="toggl_notes_vault_")
    temp_path = Path(temp_dir)
    yield temp_path
    if temp_path.exists():
        shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def write_note(vault_dir):
    """Write a markdown note into the vault and return its relative path."""
    def _write_note(relative_path, frontmatter_text="", body="Some text.\n"):
        file_path = vault_dir / relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        if frontmatter_text:
            content = f"---\n{frontmatter_text}---\n{body}"
        else:
            content = body
        file_path.write_text(content, encoding="utf-8")
        return Path(relative_path)
    return _write_note


@pytest.fixture
def note_store(vault_dir):
    return NoteStore(vault_dir)


@pytest.fixture
def workspace():
    return WorkspaceContext(workspace_id=42)


# ========== Remote Record Factories ==========

def _make_entry(entry_id, description, duration=600, workspace_id=42, project_id=None,
                start="2024-02-01T09:00:00Z"):
    return TimeEntry(
        id=entry_id,
        description=description,
        start=start,
        duration=duration,
        workspace_id=workspace_id,
        project_id=project_id,
    )


def _make_project(project_id, name, workspace_id=42):
    return Project(id=project_id, name=name, workspace_id=workspace_id)


@pytest.fixture
def make_entry():
    return _make_entry


@pytest.fixture
def make_project():
    return _make_project


# ========== Mock Fixtures ==========

@pytest.fixture
def mock_toggl_client():
    """A TogglApiClient stand-in whose remote calls are AsyncMocks."""
    client = MagicMock(spec=TogglApiClient)
    client.get_user = AsyncMock()
    client.list_projects = AsyncMock(return_value=[])
    client.create_project = AsyncMock()
    client.create_time_entry = AsyncMock()
    client.get_current_time_entry = AsyncMock(return_value=None)
    client.stop_time_entry = AsyncMock()
    client.list_time_entries = AsyncMock(return_value=[])
    client.batch_patch_time_entries = AsyncMock()
    client.close = AsyncMock()
    return client


@pytest.fixture
def fixed_now():
    return datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
