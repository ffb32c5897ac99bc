# project_resolver.py
# Description: Maps a note category onto a remote project, creating it if absent
#
# Imports
from dataclasses import dataclass
from typing import Optional
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from ..toggl_api.client import TogglApiClient
from ..toggl_api.schemas import Project
from .workspace_context import WorkspaceContext
#
########################################################################################################################
#
# Classes:

@dataclass(frozen=True)
class ProjectResolution:
    """Outcome of create_if_missing: the project, and whether this call created it."""
    project: Project
    created: bool


class ProjectResolver:
    """
    Resolves category names to projects.

    Every call re-lists the remote projects; nothing is cached. Lookup and
    creation are two separate requests, so two concurrent resolutions of the
    same unseen category can each create a project. Callers that need one
    project per name must serialize resolutions.
    """

    def __init__(self, client: TogglApiClient):
        self.client = client

    async def lookup(self, category: str, ctx: WorkspaceContext) -> Optional[Project]:
        """First project of the workspace whose name equals the category exactly (case-sensitive).

        The listing covers every workspace the user can see; projects of other
        workspaces are skipped even when the name matches.
        """
        projects = await self.client.list_projects()
        for project in projects:
            if project.workspace_id == ctx.workspace_id and project.name == category:
                return project
        return None

    async def create_if_missing(self, category: str, ctx: WorkspaceContext) -> ProjectResolution:
        existing = await self.lookup(category, ctx)
        if existing is not None:
            logger.debug(f"Category '{category}' resolved to existing project {existing.id}")
            return ProjectResolution(project=existing, created=False)

        project = await self.client.create_project(category, ctx.workspace_id)
        logger.info(f"Category '{category}' had no project; created project {project.id}")
        return ProjectResolution(project=project, created=True)

    async def resolve(self, category: str, ctx: WorkspaceContext) -> Project:
        resolution = await self.create_if_missing(category, ctx)
        return resolution.project

#
# End of project_resolver.py
########################################################################################################################
