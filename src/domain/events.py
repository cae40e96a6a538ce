"""Side-effect event shapes handed to notification, activity and chat collaborators."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from src.core.config import Constants
from src.domain.task import TaskStatus


class NotificationType(StrEnum):
    """What a notification is about."""

    TASK_SUBMITTED = "task_submitted"
    TASK_APPROVED = "task_approved"
    TASK_REJECTED = "task_rejected"
    TASK_BLOCKED = "task_blocked"
    TASK_ASSIGNED = "task_assigned"


class ActivityType(StrEnum):
    """Audit trail entry type."""

    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_DELETED = "task_deleted"
    TASK_STATUS_CHANGED = "task_status_changed"
    ACTION_COMPLETED = "action_completed"
    ACTION_UNCOMPLETED = "action_uncompleted"
    COMMENT_ADDED = "comment_added"


class MessageType(StrEnum):
    """Tag on system chat messages."""

    TASK_STARTED = "task_started"
    TASK_SUBMISSION = "task_submission"
    TASK_APPROVAL = "task_approval"
    TASK_REJECTION = "task_rejection"
    TASK_BLOCKED = "task_blocked"


class Notification(BaseModel):
    """Notification delivered to a single user."""

    recipient: str = Field(..., description="Recipient user ID")
    type: NotificationType = Field(..., description="Notification type")
    title: str = Field(..., description="Short headline")
    message: str = Field(..., description="Notification body")
    related_entity_id: str = Field(..., description="ID of the task the notification refers to")


class ActivityEntry(BaseModel):
    """Append-only audit trail entry."""

    actor: str = Field(..., description="User ID who caused the event")
    actor_name: str = Field(default="Unknown User", description="Display name of the actor")
    type: ActivityType = Field(..., description="Activity type")
    project_id: str = Field(..., description="Project ID")
    project_name: str = Field(..., description="Project name at the time of the event")
    task_id: str = Field(..., description="Task ID")
    task_name: str = Field(..., description="Task title at the time of the event")
    new_status: TaskStatus | None = Field(default=None, description="Status after a transition")
    extra: dict[str, Any] = Field(default_factory=dict, description="Event-specific details")
    timestamp: int = Field(..., description="Event time (ms since epoch)")


class QuotedMessage(BaseModel):
    """Quoted block shown under a chat message."""

    content: str
    author: str = Constants.SYSTEM_AUTHOR_NAME


class ChatMessage(BaseModel):
    """System-authored message posted to a project channel."""

    author: str = Field(default=Constants.SYSTEM_AUTHOR, description="Always the system author")
    content: str = Field(..., description="Message text")
    timestamp: int = Field(..., description="Post time (ms since epoch)")
    message_type: MessageType = Field(..., description="What the message announces")
    quoted_message: QuotedMessage | None = Field(default=None, description="Quoted reference to the task")
    original_message_id: str | None = Field(
        default=None,
        description="ID of the submission message an approval refers back to",
    )
