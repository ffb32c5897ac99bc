"""Pydantic models for the records exchanged with the Toggl Track API."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class Me(BaseModel):
    """The authenticated user (``GET /me``)."""
    id: int
    email: Optional[str] = None
    fullname: Optional[str] = None
    default_workspace_id: int
    timezone: Optional[str] = None


class Project(BaseModel):
    """A named grouping of time entries inside a workspace."""
    id: int
    name: str
    workspace_id: int
    active: bool = True
    color: Optional[str] = None


class TimeEntry(BaseModel):
    """A tracked span of work, running or completed."""
    id: int
    description: Optional[str] = None
    start: datetime
    stop: Optional[datetime] = None
    # Negative while running. Values below -1 are "-(unix start time)".
    duration: int
    workspace_id: int
    project_id: Optional[int] = None
    tag_ids: Optional[List[int]] = None
    tags: Optional[List[str]] = None

    @property
    def is_running(self) -> bool:
        return self.duration < 0

    def running_since(self) -> Optional[datetime]:
        """Start time of a running entry, or None once it is stopped."""
        if not self.is_running:
            return None
        if self.duration < -1:
            return datetime.fromtimestamp(-self.duration, tz=timezone.utc)
        return self.start


class PatchOperation(BaseModel):
    """One field operation of a batch patch request."""
    op: Literal["add", "remove", "replace"]
    path: str
    value: Any = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"op": self.op, "path": self.path}
        if self.op != "remove":
            payload["value"] = self.value
        return payload

    @classmethod
    def replace(cls, field_name: str, value: Any) -> "PatchOperation":
        return cls(op="replace", path=f"/{field_name}", value=value)


class BatchPatchFailure(BaseModel):
    id: int
    message: str = ""


class BatchPatchResult(BaseModel):
    """Per-id outcome reported by the batch patch endpoint."""
    success: List[int] = Field(default_factory=list)
    failure: List[BatchPatchFailure] = Field(default_factory=list)
