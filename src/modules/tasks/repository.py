"""Persistence port for tasks and action templates.

All reads and writes of the ``tasks`` collection go through ``TaskRepository``.
Every write after creation is versioned: the caller supplies the version it
read and the store rejects the write with ConflictError if the record moved on.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from pydantic import BaseModel

from src.core import db_client
from src.core.db_client import RecordNotFoundError, sanitize_param
from src.core.errors import ConflictError, TaskNotFoundError, TemplateNotFoundError
from src.core.logging import span
from src.domain.task import Action, Task
from src.domain.template import ActionTemplate, TemplateElement


logger = logging.getLogger(__name__)

TASKS = "tasks"
TEMPLATES = "action_templates"

# Computes the fields to write from the task as read; may raise to abort without writing
Mutator = Callable[[Task], dict[str, Any]]


@dataclass
class TaskFilters:
    """Equality filters for task listings."""

    project_id: str | None = None
    assigned_to: str | None = None
    status: str | None = None
    priority: str | None = None

    def to_filter_query(self) -> str:
        conditions = [
            f'{field} = "{sanitize_param(value)}"'
            for field, value in (
                ("project_id", self.project_id),
                ("assigned_to", self.assigned_to),
                ("status", self.status),
                ("priority", self.priority),
            )
            if value is not None
        ]
        return " && ".join(conditions)


@dataclass
class MutationResult:
    """Task as read before the winning write and as stored after it."""

    before: Task
    after: Task


def dump_action(action: Action) -> dict[str, Any]:
    """Serialize an action; completion stamps are omitted entirely when unset."""
    dumped = action.model_dump(mode="json")
    for key in ("completed_at", "completed_by"):
        if dumped[key] is None:
            del dumped[key]
    return dumped


def _to_record(fields: dict[str, Any]) -> dict[str, Any]:
    record: dict[str, Any] = {}
    for key, value in fields.items():
        if key == "actions":
            record[key] = [dump_action(a) if isinstance(a, Action) else a for a in value]
        elif isinstance(value, list):
            record[key] = [v.model_dump(mode="json") if isinstance(v, BaseModel) else v for v in value]
        elif isinstance(value, BaseModel):
            record[key] = value.model_dump(mode="json")
        elif isinstance(value, Enum):
            record[key] = value.value
        else:
            record[key] = value
    return record


class TaskStore(Protocol):
    """What the engine needs from task persistence."""

    async def get(self, task_id: str) -> Task: ...

    async def create(self, fields: dict[str, Any]) -> Task: ...

    async def save(self, task_id: str, fields: dict[str, Any], *, expected_version: int) -> Task: ...

    async def delete(self, task_id: str) -> None: ...

    async def list_page(self, filters: TaskFilters, *, page: int, per_page: int) -> tuple[list[Task], int]: ...

    async def mutate(self, task_id: str, mutator: Mutator) -> MutationResult: ...


class TaskRepository:
    """Task persistence over src.core.db_client with optimistic concurrency."""

    def __init__(self, *, max_retries: int = 3) -> None:
        self._max_retries = max_retries

    async def get(self, task_id: str) -> Task:
        """Load a task.

        Raises:
            TaskNotFoundError: If no such task exists
        """
        try:
            record = await db_client.get_record(collection=TASKS, record_id=task_id)
        except RecordNotFoundError as e:
            raise TaskNotFoundError(task_id) from e
        return Task.model_validate(record)

    async def create(self, fields: dict[str, Any]) -> Task:
        """Insert a new task at version 1."""
        record = await db_client.create_record(collection=TASKS, data={**_to_record(fields), "version": 1})
        return Task.model_validate(record)

    async def save(self, task_id: str, fields: dict[str, Any], *, expected_version: int) -> Task:
        """Write fields if the stored version still equals expected_version.

        Raises:
            ConflictError: If the task was written by someone else since it was read
            TaskNotFoundError: If the task no longer exists
        """
        try:
            record = await db_client.update_record(
                collection=TASKS,
                record_id=task_id,
                data=_to_record(fields),
                expected_version=expected_version,
            )
        except RecordNotFoundError as e:
            raise TaskNotFoundError(task_id) from e
        return Task.model_validate(record)

    async def delete(self, task_id: str) -> None:
        """Remove a task unconditionally."""
        try:
            await db_client.delete_record(collection=TASKS, record_id=task_id)
        except RecordNotFoundError as e:
            raise TaskNotFoundError(task_id) from e

    async def list_page(self, filters: TaskFilters, *, page: int, per_page: int) -> tuple[list[Task], int]:
        """Return one page of tasks (newest first) and the total match count."""
        filter_query = filters.to_filter_query()
        records = await db_client.list_records(
            collection=TASKS,
            filter_query=filter_query,
            sort="-created_at",
            page=page,
            per_page=per_page,
        )
        total = await db_client.count_records(collection=TASKS, filter_query=filter_query)
        return [Task.model_validate(record) for record in records], total

    async def mutate(self, task_id: str, mutator: Mutator) -> MutationResult:
        """Run a read-modify-write cycle, retrying on version conflicts.

        The mutator is re-run against a fresh read on every attempt. Errors it
        raises abort the cycle without writing.

        Raises:
            ConflictError: If every attempt lost the race
        """
        attempts = self._max_retries + 1
        for attempt in range(1, attempts + 1):
            with span("task_repository.mutate", task_id=task_id, attempt=attempt):
                before = await self.get(task_id)
                fields = mutator(before)
                try:
                    after = await self.save(task_id, fields, expected_version=before.version)
                except ConflictError:
                    logger.warning(
                        "task_version_conflict",
                        extra={"task_id": task_id, "version": before.version, "attempt": attempt},
                    )
                    continue
                return MutationResult(before=before, after=after)

        msg = f"Task {task_id} kept changing concurrently; gave up after {attempts} attempts"
        raise ConflictError(msg)


class TemplateRepository:
    """Action template lookups."""

    async def get(self, template_id: str) -> ActionTemplate:
        """Load an action template.

        Raises:
            TemplateNotFoundError: If no such template exists
        """
        try:
            record = await db_client.get_record(collection=TEMPLATES, record_id=template_id)
        except RecordNotFoundError as e:
            raise TemplateNotFoundError(template_id) from e
        return ActionTemplate.model_validate(record)

    async def create(self, template: dict[str, Any]) -> ActionTemplate:
        """Store a new action template.

        Raises:
            ValidationError: If an element does not fit its action type
        """
        elements = [TemplateElement.model_validate(element) for element in template.get("elements", [])]
        record = await db_client.create_record(
            collection=TEMPLATES, data=_to_record({**template, "elements": elements})
        )
        return ActionTemplate.model_validate(record)
