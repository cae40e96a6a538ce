"""Task domain models and enums."""

from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, Field, model_validator


class TaskStatus(StrEnum):
    """Task lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    WAITING_APPROVAL = "waiting_approval"
    COMPLETED = "completed"
    BLOCKED = "blocked"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition leaves this status."""
        return self in (TaskStatus.COMPLETED, TaskStatus.BLOCKED)


class TaskPriority(StrEnum):
    """Task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ActionType(StrEnum):
    """Kind of action; selects the schema of its data payload."""

    CHECKBOX = "checkbox"
    TEXT = "text"
    NUMBER = "number"
    FILE = "file"
    SELECT = "select"
    INFO = "info"


class Action(BaseModel):
    """A single ordered sub-unit of a task."""

    id: str = Field(..., description="Action ID, unique within its task")
    title: str = Field(..., description="Action title")
    description: str = Field(default="", description="What the assignee has to do")
    type: ActionType = Field(default=ActionType.CHECKBOX, description="Action type")
    completed: bool = Field(default=False, description="Whether the action is done")
    completed_at: int | None = Field(default=None, description="Completion time (ms since epoch)")
    completed_by: str | None = Field(default=None, description="User ID who completed the action")
    required: bool = Field(default=False, description="Whether completion gates submission for approval")
    data: dict[str, Any] = Field(default_factory=dict, description="Typed payload for the action type")

    @model_validator(mode="after")
    def check_completion_fields(self) -> Self:
        """completed is true exactly when completed_at and completed_by are both set."""
        has_stamp = self.completed_at is not None and self.completed_by is not None
        has_any_stamp = self.completed_at is not None or self.completed_by is not None
        if self.completed and not has_stamp:
            raise ValueError("Completed action must carry completed_at and completed_by")
        if not self.completed and has_any_stamp:
            raise ValueError("Incomplete action must not carry completed_at or completed_by")
        return self


class Comment(BaseModel):
    """Comment left on a task."""

    id: str = Field(..., description="Comment ID")
    author_id: str = Field(..., description="User ID of the author")
    text: str = Field(..., description="Comment body")
    created_at: int = Field(..., description="Creation time (ms since epoch)")


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID from database")
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Detailed task description")
    project_id: str = Field(..., description="Project the task belongs to")
    assigned_to: str = Field(..., description="Assignee user ID")
    created_by: str = Field(..., description="Creator user ID")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Current lifecycle status")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    difficulty_level: float = Field(..., gt=0, description="Difficulty used to compute the reward")
    coins_reward: int = Field(..., ge=0, description="Coins granted on approval, fixed at creation")
    due_date: int | None = Field(default=None, description="Due date (ms since epoch)")
    actions: list[Action] = Field(default_factory=list, description="Ordered actions")
    comments: list[Comment] = Field(default_factory=list, description="Comments in posting order")
    attachments: list[str] = Field(default_factory=list, description="Attachment references")
    subtasks: list[str] = Field(default_factory=list, description="Free-form subtask notes")
    pending_approval_announcement_id: str | None = Field(
        default=None,
        description="Chat message ID of the submission announcement while waiting for approval",
    )
    version: int = Field(default=1, ge=1, description="Optimistic concurrency version")
    created_at: int = Field(..., description="Creation time (ms since epoch)")
    updated_at: int = Field(..., description="Last update time (ms since epoch)")

    def find_action(self, action_id: str) -> Action | None:
        """Return the action with the given id, if any."""
        return next((action for action in self.actions if action.id == action_id), None)

    def incomplete_required_actions(self) -> list[Action]:
        """Required actions that are not completed yet."""
        return [action for action in self.actions if action.required and not action.completed]
