"""Update models for database operations."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.domain.task import TaskPriority, TaskStatus


class TaskUpdate(BaseModel):
    """Partial update of editable task fields.

    Status, reward, version and actions are not editable here; they change
    only through the workflow engine and the action ledger. Omitted fields
    are left alone; only ``due_date`` may be cleared with an explicit null.
    """

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    assigned_to: str | None = Field(default=None, min_length=1)
    priority: TaskPriority | None = None
    due_date: int | None = None
    attachments: list[str] | None = None
    subtasks: list[str] | None = None

    @field_validator("title", "description", "assigned_to", "priority", "attachments", "subtasks", mode="before")
    @classmethod
    def reject_null(cls, v: object) -> object:
        """Reject an explicit null for fields the task always carries."""
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class StatusChange(BaseModel):
    """Requested status transition."""

    status: TaskStatus
