"""Pydantic models for creating records in database."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.domain.task import ActionType, TaskPriority


class ActionCreate(BaseModel):
    """Caller-supplied action definition for a new task."""

    id: str | None = Field(default=None, description="Optional action ID; generated when omitted")
    title: str = Field(..., min_length=1, description="Action title")
    description: str = Field(default="", description="Action description")
    type: ActionType = Field(default=ActionType.CHECKBOX, description="Action type")
    required: bool = Field(default=False, description="Whether the action gates submission")
    data: dict[str, Any] = Field(default_factory=dict, description="Initial action data")


class TaskCreate(BaseModel):
    """Pydantic model for creating a task record."""

    title: str = Field(..., min_length=1, description="Task title")
    description: str = Field(default="", description="Detailed task description")
    project_id: str = Field(..., min_length=1, description="Project ID")
    assigned_to: str = Field(..., min_length=1, description="Assignee user ID")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    difficulty_level: float = Field(..., gt=0, description="Difficulty used to compute the reward")
    due_date: int | None = Field(default=None, description="Due date (ms since epoch)")
    actions: list[ActionCreate] = Field(default_factory=list, description="Ordered actions")
    attachments: list[str] = Field(default_factory=list, description="Attachment references")
    subtasks: list[str] = Field(default_factory=list, description="Free-form subtask notes")

    @field_validator("actions")
    @classmethod
    def validate_unique_action_ids(cls, v: list[ActionCreate]) -> list[ActionCreate]:
        """Explicit action ids must be unique within the task."""
        ids = [action.id for action in v if action.id is not None]
        if len(ids) != len(set(ids)):
            raise ValueError("Action ids must be unique within a task")
        return v


class CommentCreate(BaseModel):
    """Pydantic model for appending a comment."""

    author: str = Field(..., min_length=1, description="Author user ID")
    text: str = Field(..., description="Comment body")

    @field_validator("text")
    @classmethod
    def validate_text_not_blank(cls, v: str) -> str:
        """Strip whitespace and reject empty comments."""
        v = v.strip()
        if not v:
            raise ValueError("Comment text cannot be empty")
        return v
