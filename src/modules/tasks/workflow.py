"""Workflow engine: validated status transitions and their post-commit side effects."""

import logging
from typing import Any

from src.core.clock import Clock, now_ms
from src.core.errors import InvalidTransitionError
from src.core.logging import span
from src.domain.events import ActivityType, ChatMessage, MessageType, NotificationType, QuotedMessage
from src.domain.task import Task, TaskStatus
from src.domain.user import Actor
from src.modules.tasks.repository import TaskStore
from src.modules.tasks.side_effects import SideEffects
from src.modules.tasks.state_machine import check_transition


logger = logging.getLogger(__name__)


def _task_link(task: Task) -> QuotedMessage:
    return QuotedMessage(content=f"Task: {task.title} - [View task](/tasks/{task.id})")


class WorkflowEngine:
    """Owns every write of Task.status."""

    def __init__(self, *, repository: TaskStore, side_effects: SideEffects, clock: Clock = now_ms) -> None:
        self._repository = repository
        self._side_effects = side_effects
        self._clock = clock

    async def transition(self, *, task_id: str, target: TaskStatus, actor: Actor) -> Task:
        """Move a task to target status.

        The transition is validated against the task as read inside the
        versioned read-modify-write, persisted together with updated_at, and
        only then announced.

        Args:
            task_id: Task to transition
            target: Requested status
            actor: Who asks for the change

        Returns:
            The task as stored after the transition

        Raises:
            TaskNotFoundError: If the task does not exist
            InvalidTransitionError: If target is not reachable from the current status
            PermissionDeniedError: If the actor may not request this transition
            GuardNotSatisfiedError: If required actions are incomplete on submission
            ConflictError: If concurrent writers kept winning the race
        """
        with span("workflow.transition", task_id=task_id, target=str(target)):

            def mutate(task: Task) -> dict[str, Any]:
                check_transition(task=task, target=target, actor=actor)
                fields: dict[str, Any] = {"status": target, "updated_at": self._clock()}
                if task.status == TaskStatus.WAITING_APPROVAL:
                    fields["pending_approval_announcement_id"] = None
                return fields

            result = await self._repository.mutate(task_id, mutate)
            logger.info(
                "Task %s moved %s -> %s by %s",
                task_id,
                result.before.status,
                result.after.status,
                actor.id,
            )

            return await self._after_transition(before=result.before, after=result.after, actor=actor)

    async def start(self, *, task_id: str, actor: Actor) -> Task:
        """Assignee starts working on a pending task."""
        return await self.transition(task_id=task_id, target=TaskStatus.IN_PROGRESS, actor=actor)

    async def submit_for_approval(self, *, task_id: str, actor: Actor) -> Task:
        """Assignee submits a task whose required actions are all complete."""
        return await self.transition(task_id=task_id, target=TaskStatus.WAITING_APPROVAL, actor=actor)

    async def approve(self, *, task_id: str, actor: Actor) -> Task:
        """Admin approves a submitted task; the assignee earns its reward."""
        return await self.transition(task_id=task_id, target=TaskStatus.COMPLETED, actor=actor)

    async def reject(self, *, task_id: str, actor: Actor) -> Task:
        """Admin sends a submitted task back to pending."""
        return await self.transition(task_id=task_id, target=TaskStatus.PENDING, actor=actor)

    async def block(self, *, task_id: str, actor: Actor) -> Task:
        """Admin blocks a task that is not completed."""
        return await self.transition(task_id=task_id, target=TaskStatus.BLOCKED, actor=actor)

    async def _after_transition(self, *, before: Task, after: Task, actor: Actor) -> Task:
        handlers = {
            TaskStatus.IN_PROGRESS: self._on_started,
            TaskStatus.WAITING_APPROVAL: self._on_submitted,
            TaskStatus.COMPLETED: self._on_approved,
            TaskStatus.PENDING: self._on_rejected,
            TaskStatus.BLOCKED: self._on_blocked,
        }
        updated = await handlers[after.status](before=before, after=after, actor=actor)

        extra = {"coins_reward": after.coins_reward} if after.status == TaskStatus.COMPLETED else None
        await self._side_effects.record_activity(
            actor=actor,
            event_type=ActivityType.TASK_STATUS_CHANGED,
            task=after,
            new_status=after.status,
            extra=extra,
        )
        return updated

    async def _on_started(self, *, before: Task, after: Task, actor: Actor) -> Task:
        del before
        await self._side_effects.announce(
            task=after,
            message=ChatMessage(
                content=f'Task "{after.title}" was started by {actor.name}.',
                timestamp=self._clock(),
                message_type=MessageType.TASK_STARTED,
                quoted_message=_task_link(after),
            ),
        )
        return after

    async def _on_submitted(self, *, before: Task, after: Task, actor: Actor) -> Task:
        del before
        message_id = await self._side_effects.announce(
            task=after,
            message=ChatMessage(
                content=f'Task "{after.title}" was submitted for approval by {actor.name}.',
                timestamp=self._clock(),
                message_type=MessageType.TASK_SUBMISSION,
                quoted_message=_task_link(after),
            ),
        )
        updated = after
        if message_id is not None:
            updated = await self._remember_submission(after, message_id)

        await self._side_effects.notify(
            recipient=after.created_by,
            event_type=NotificationType.TASK_SUBMITTED,
            title="Task awaiting approval",
            message=f'{actor.name} submitted "{after.title}" for approval.',
            task=after,
        )
        return updated

    async def _remember_submission(self, task: Task, message_id: str) -> Task:
        """Store the submission announcement id on the task for the later approval."""

        def mutate(current: Task) -> dict[str, Any]:
            if current.status != TaskStatus.WAITING_APPROVAL:
                msg = f"Task {current.id} left waiting_approval before its announcement was recorded"
                raise InvalidTransitionError(msg)
            return {"pending_approval_announcement_id": message_id}

        try:
            result = await self._repository.mutate(task.id, mutate)
        except Exception:
            logger.exception("Failed to record submission announcement %s on task %s", message_id, task.id)
            return task
        return result.after

    def _original_submission(self, before: Task) -> str | None:
        if before.pending_approval_announcement_id is None:
            logger.warning(
                "No submission announcement recorded for task %s; posting without back-reference",
                before.id,
            )
        return before.pending_approval_announcement_id

    async def _on_approved(self, *, before: Task, after: Task, actor: Actor) -> Task:
        await self._side_effects.announce(
            task=after,
            message=ChatMessage(
                content=(
                    f'Task "{after.title}" was approved by {actor.name}. '
                    f"{after.coins_reward} coins awarded to the assignee."
                ),
                timestamp=self._clock(),
                message_type=MessageType.TASK_APPROVAL,
                quoted_message=_task_link(after),
                original_message_id=self._original_submission(before),
            ),
        )
        await self._side_effects.notify(
            recipient=after.assigned_to,
            event_type=NotificationType.TASK_APPROVED,
            title="Task approved",
            message=f'"{after.title}" was approved. You earned {after.coins_reward} coins.',
            task=after,
        )
        return after

    async def _on_rejected(self, *, before: Task, after: Task, actor: Actor) -> Task:
        await self._side_effects.announce(
            task=after,
            message=ChatMessage(
                content=f'Task "{after.title}" was sent back to pending by {actor.name}.',
                timestamp=self._clock(),
                message_type=MessageType.TASK_REJECTION,
                quoted_message=_task_link(after),
                original_message_id=self._original_submission(before),
            ),
        )
        await self._side_effects.notify(
            recipient=after.assigned_to,
            event_type=NotificationType.TASK_REJECTED,
            title="Task returned",
            message=f'"{after.title}" needs more work before it can be approved.',
            task=after,
        )
        return after

    async def _on_blocked(self, *, before: Task, after: Task, actor: Actor) -> Task:
        del before
        await self._side_effects.announce(
            task=after,
            message=ChatMessage(
                content=f'Task "{after.title}" was blocked by {actor.name}.',
                timestamp=self._clock(),
                message_type=MessageType.TASK_BLOCKED,
                quoted_message=_task_link(after),
            ),
        )
        await self._side_effects.notify(
            recipient=after.assigned_to,
            event_type=NotificationType.TASK_BLOCKED,
            title="Task blocked",
            message=f'"{after.title}" was blocked by {actor.name}.',
            task=after,
        )
        return after
