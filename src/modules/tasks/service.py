"""Task service for CRUD operations, template-based creation and comments."""

import logging
import math
import uuid
from typing import Any

from pydantic import BaseModel, Field

from src.core.clock import Clock, now_ms
from src.core.config import Constants
from src.core.errors import PermissionDeniedError
from src.core.logging import span
from src.domain.action_data import validate_action_data
from src.domain.create_models import ActionCreate, CommentCreate, TaskCreate
from src.domain.events import ActivityType, NotificationType
from src.domain.task import Action, Comment, Task, TaskStatus
from src.domain.template import ActionTemplate
from src.domain.update_models import TaskUpdate
from src.domain.user import Actor
from src.modules.tasks.repository import TaskFilters, TaskStore, TemplateRepository
from src.modules.tasks.rewards import RewardSettingsProvider
from src.modules.tasks.side_effects import SideEffects


logger = logging.getLogger(__name__)


class TaskPage(BaseModel):
    """One page of a task listing."""

    items: list[Task] = Field(default_factory=list)
    total_count: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def actions_from_input(actions: list[ActionCreate]) -> list[Action]:
    """Build initial, incomplete actions from caller input."""
    return [
        Action(
            id=item.id or _new_id(f"action_{index}"),
            title=item.title,
            description=item.description,
            type=item.type,
            required=item.required,
            data=validate_action_data(item.type, item.data),
        )
        for index, item in enumerate(actions)
    ]


def actions_from_template(template: ActionTemplate) -> list[Action]:
    """Map template elements 1:1 to incomplete actions, seeding data with each element's default."""
    actions = []
    for index, element in enumerate(template.elements):
        actions.append(
            Action(
                id=_new_id(f"action_{index}"),
                title=element.label,
                description=element.description,
                type=element.type,
                required=element.required,
                data=element.action_data(),
            )
        )
    return actions


class TaskService:
    """Task CRUD on top of the task store. Status is never written here."""

    def __init__(
        self,
        *,
        repository: TaskStore,
        templates: TemplateRepository,
        rewards: RewardSettingsProvider,
        side_effects: SideEffects,
        default_page_limit: int = 20,
        clock: Clock = now_ms,
    ) -> None:
        self._repository = repository
        self._templates = templates
        self._rewards = rewards
        self._side_effects = side_effects
        self._default_page_limit = default_page_limit
        self._clock = clock

    async def create(self, *, data: TaskCreate, actor: Actor) -> Task:
        """Create a task with caller-supplied actions.

        The coin reward is computed once, here, with the reward settings in force now.
        """
        with span("task_service.create"):
            return await self._create(data=data, actions=actions_from_input(data.actions), actor=actor)

    async def create_from_template(self, *, data: TaskCreate, template_id: str, actor: Actor) -> Task:
        """Create a task whose actions come from an action template.

        Raises:
            TemplateNotFoundError: If the template does not exist
        """
        with span("task_service.create_from_template", template_id=template_id):
            template = await self._templates.get(template_id)
            return await self._create(data=data, actions=actions_from_template(template), actor=actor)

    async def _create(self, *, data: TaskCreate, actions: list[Action], actor: Actor) -> Task:
        coins_reward = await self._rewards.reward_for(data.difficulty_level)
        now = self._clock()

        task = await self._repository.create(
            {
                "title": data.title,
                "description": data.description,
                "project_id": data.project_id,
                "assigned_to": data.assigned_to,
                "created_by": actor.id,
                "status": TaskStatus.PENDING,
                "priority": data.priority,
                "difficulty_level": data.difficulty_level,
                "coins_reward": coins_reward,
                "due_date": data.due_date,
                "actions": actions,
                "comments": [],
                "attachments": data.attachments,
                "subtasks": data.subtasks,
                "created_at": now,
                "updated_at": now,
            }
        )
        logger.info("Created task %s (%s) worth %d coins", task.id, task.title, task.coins_reward)

        await self._side_effects.record_activity(actor=actor, event_type=ActivityType.TASK_CREATED, task=task)
        await self._side_effects.notify(
            recipient=task.assigned_to,
            event_type=NotificationType.TASK_ASSIGNED,
            title="New task assigned",
            message=f'You were assigned "{task.title}" worth {task.coins_reward} coins.',
            task=task,
        )
        return task

    async def get(self, *, task_id: str) -> Task:
        """Load a task.

        Raises:
            TaskNotFoundError: If no such task exists
        """
        return await self._repository.get(task_id)

    async def update(self, *, task_id: str, changes: TaskUpdate, actor: Actor) -> Task:
        """Apply a partial update of editable fields."""
        with span("task_service.update", task_id=task_id):
            fields = changes.model_dump(exclude_unset=True)
            if not fields:
                return await self._repository.get(task_id)

            def mutate(task: Task) -> dict[str, Any]:
                del task
                return {**fields, "updated_at": self._clock()}

            result = await self._repository.mutate(task_id, mutate)
            logger.info("Updated task %s fields %s", task_id, sorted(fields))

            await self._side_effects.record_activity(
                actor=actor,
                event_type=ActivityType.TASK_UPDATED,
                task=result.after,
                extra={"fields": sorted(fields)},
            )
            if "assigned_to" in fields and result.before.assigned_to != result.after.assigned_to:
                await self._side_effects.notify(
                    recipient=result.after.assigned_to,
                    event_type=NotificationType.TASK_ASSIGNED,
                    title="New task assigned",
                    message=f'You were assigned "{result.after.title}".',
                    task=result.after,
                )
            return result.after

    async def list_tasks(
        self,
        *,
        filters: TaskFilters | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> TaskPage:
        """List tasks newest first with equality filters and pagination."""
        with span("task_service.list"):
            page = max(page, 1)
            limit = min(max(limit or self._default_page_limit, 1), Constants.MAX_PAGE_LIMIT)

            items, total = await self._repository.list_page(filters or TaskFilters(), page=page, per_page=limit)
            logger.debug("Listed %d of %d tasks", len(items), total)

            return TaskPage(
                items=items,
                total_count=total,
                total_pages=math.ceil(total / limit),
                page=page,
                limit=limit,
            )

    async def delete(self, *, task_id: str, actor: Actor) -> None:
        """Remove a task regardless of its status.

        Raises:
            PermissionDeniedError: If the actor is not an admin
            TaskNotFoundError: If no such task exists
        """
        with span("task_service.delete", task_id=task_id):
            if not actor.is_admin:
                msg = f"Only an admin can delete task {task_id}"
                raise PermissionDeniedError(msg)

            task = await self._repository.get(task_id)
            await self._repository.delete(task_id)
            logger.info("Deleted task %s", task_id)

            await self._side_effects.record_activity(actor=actor, event_type=ActivityType.TASK_DELETED, task=task)

    async def append_comment(self, *, task_id: str, comment: CommentCreate, actor: Actor) -> Task:
        """Append a comment to the end of the task's comment list."""
        with span("task_service.append_comment", task_id=task_id):

            def mutate(task: Task) -> dict[str, Any]:
                now = self._clock()
                new_comment = Comment(id=_new_id("comment"), author_id=comment.author, text=comment.text, created_at=now)
                return {"comments": [*task.comments, new_comment], "updated_at": now}

            result = await self._repository.mutate(task_id, mutate)
            logger.info("Comment added to task %s by %s", task_id, comment.author)

            await self._side_effects.record_activity(
                actor=actor,
                event_type=ActivityType.COMMENT_ADDED,
                task=result.after,
                extra={"comment_id": result.after.comments[-1].id},
            )
            return result.after
