"""Domain models and DTOs."""

from src.domain.create_models import ActionCreate, CommentCreate, TaskCreate
from src.domain.events import (
    ActivityEntry,
    ActivityType,
    ChatMessage,
    MessageType,
    Notification,
    NotificationType,
    QuotedMessage,
)
from src.domain.task import Action, ActionType, Comment, Task, TaskPriority, TaskStatus
from src.domain.template import ActionTemplate, TemplateElement
from src.domain.update_models import StatusChange, TaskUpdate
from src.domain.user import Actor, UserRole


__all__ = [
    "Action",
    "ActionCreate",
    "ActionTemplate",
    "ActionType",
    "ActivityEntry",
    "ActivityType",
    "Actor",
    "ChatMessage",
    "Comment",
    "CommentCreate",
    "MessageType",
    "Notification",
    "NotificationType",
    "QuotedMessage",
    "StatusChange",
    "Task",
    "TaskCreate",
    "TaskPriority",
    "TaskStatus",
    "TaskUpdate",
    "TemplateElement",
    "UserRole",
]
