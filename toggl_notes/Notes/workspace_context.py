# workspace_context.py
# Description: Immutable workspace scope passed into every engine operation
#
# Imports
from dataclasses import dataclass
#
# Local Imports
from ..config import TogglSettings
#
########################################################################################################################
#
# Classes:

class WorkspaceNotConfiguredError(Exception):
    """Raised when an operation needs a workspace before `connect` has cached one."""
    pass


@dataclass(frozen=True)
class WorkspaceContext:
    """The single remote workspace all entry and project operations are scoped to."""
    workspace_id: int

    @classmethod
    def from_settings(cls, settings: TogglSettings) -> "WorkspaceContext":
        if not settings.default_workspace_id:
            raise WorkspaceNotConfiguredError(
                "No default workspace cached yet. Run the connect command first."
            )
        return cls(workspace_id=settings.default_workspace_id)

#
# End of workspace_context.py
########################################################################################################################
