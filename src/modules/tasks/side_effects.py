"""Best-effort side effects fired after a task mutation has committed.

Each collaborator call is isolated: a failure is logged and swallowed, never
rolls back the mutation, and never stops the remaining side effects.
"""

import logging
from typing import Any, Protocol

from src.domain.events import ActivityType, ChatMessage, NotificationType
from src.domain.task import Task, TaskStatus
from src.domain.user import Actor


logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    """Delivers a notification to one user."""

    async def notify(
        self,
        *,
        recipient: str,
        event_type: NotificationType,
        title: str,
        message: str,
        related_entity_id: str,
    ) -> None: ...


class ActivityRecorder(Protocol):
    """Appends an entry to the audit trail."""

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
    ) -> None: ...


class ChatAnnouncer(Protocol):
    """Posts a system message to a project channel and returns its id."""

    async def announce(self, project_id: str, message: ChatMessage) -> str: ...


class SideEffects:
    """Runs the three collaborators with failure isolation."""

    def __init__(
        self,
        *,
        notifier: NotificationDispatcher,
        activity: ActivityRecorder,
        chat: ChatAnnouncer,
    ) -> None:
        self._notifier = notifier
        self._activity = activity
        self._chat = chat

    async def notify(
        self,
        *,
        recipient: str,
        event_type: NotificationType,
        title: str,
        message: str,
        task: Task,
    ) -> None:
        try:
            await self._notifier.notify(
                recipient=recipient,
                event_type=event_type,
                title=title,
                message=message,
                related_entity_id=task.id,
            )
        except Exception:
            logger.exception("Failed to send %s notification for task %s", event_type, task.id)

    async def record_activity(
        self,
        *,
        actor: Actor,
        event_type: ActivityType,
        task: Task,
        new_status: TaskStatus | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        try:
            await self._activity.record(
                actor=actor,
                event_type=event_type,
                project_id=task.project_id,
                task_id=task.id,
                task_name=task.title,
                new_status=new_status,
                extra=extra,
            )
        except Exception:
            logger.exception("Failed to record %s activity for task %s", event_type, task.id)

    async def announce(self, *, task: Task, message: ChatMessage) -> str | None:
        """Post a chat message; returns its id, or None when posting failed."""
        try:
            return await self._chat.announce(task.project_id, message)
        except Exception:
            logger.exception("Failed to announce %s for task %s", message.message_type, task.id)
            return None
