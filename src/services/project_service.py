"""Project lookups used to enrich activity entries."""

import logging
from typing import Protocol

from src.core import db_client
from src.core.db_client import RecordNotFoundError


logger = logging.getLogger(__name__)


class ProjectDirectory(Protocol):
    """Resolves a project id to its display name."""

    async def project_name(self, project_id: str) -> str: ...


class DbProjectDirectory:
    """Reads project names from the projects collection."""

    async def project_name(self, project_id: str) -> str:
        """Return the project's name, or its id when the project is unknown."""
        try:
            record = await db_client.get_record(collection="projects", record_id=project_id)
        except RecordNotFoundError:
            logger.debug("Project %s not found, using id as name", project_id)
            return project_id
        return record.get("name") or project_id
