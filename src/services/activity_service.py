"""Append-only activity trail backed by the activities collection."""

import logging
from typing import Any

from src.core import db_client
from src.core.clock import Clock, now_ms
from src.domain.events import ActivityEntry, ActivityType
from src.domain.task import TaskStatus
from src.domain.user import Actor
from src.services.project_service import ProjectDirectory


logger = logging.getLogger(__name__)


class DbActivityRecorder:
    """Writes ActivityEntry records, resolving the project name at write time."""

    def __init__(self, *, projects: ProjectDirectory, clock: Clock = now_ms) -> None:
        self._projects = projects
        self._clock = clock

    async def record(
        self,
        *,
        actor: Actor,
        event_type: ActivityType,
        project_id: str,
        task_id: str,
        task_name: str,
        new_status: TaskStatus | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        entry = ActivityEntry(
            actor=actor.id,
            actor_name=actor.name,
            type=event_type,
            project_id=project_id,
            project_name=await self._projects.project_name(project_id),
            task_id=task_id,
            task_name=task_name,
            new_status=new_status,
            extra=extra or {},
            timestamp=self._clock(),
        )
        await db_client.create_record(collection="activities", data=entry.model_dump(mode="json"))
        logger.debug("Recorded %s activity for task %s", event_type, task_id)
