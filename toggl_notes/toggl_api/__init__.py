from .client import TogglApiClient
from .exceptions import (
    TogglAPIError,
    TogglAuthError,
    TogglInvalidResponseError,
    TogglNotFoundError,
    TogglTransportError,
    TogglValidationError,
)
from .schemas import BatchPatchResult, Me, PatchOperation, Project, TimeEntry

__all__ = [
    "TogglApiClient",
    "TogglAPIError",
    "TogglAuthError",
    "TogglInvalidResponseError",
    "TogglNotFoundError",
    "TogglTransportError",
    "TogglValidationError",
    "BatchPatchResult",
    "Me",
    "PatchOperation",
    "Project",
    "TimeEntry",
]
