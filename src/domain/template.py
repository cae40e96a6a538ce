"""Action template domain models."""

from typing import Any

from pydantic import BaseModel, Field, model_validator

from src.core.errors import InvalidActionDataError
from src.domain.action_data import validate_action_data
from src.domain.task import ActionType


class TemplateElement(BaseModel):
    """One element of an action template; becomes one action on a task."""

    label: str = Field(..., description="Action title")
    type: ActionType = Field(default=ActionType.CHECKBOX, description="Action type")
    description: str = Field(default="", description="Action description")
    required: bool = Field(default=False, description="Whether the action gates submission")
    default_value: Any = Field(default=None, description="Initial value for the action data")
    options: list[str] | None = Field(default=None, description="Choices for select actions")

    @model_validator(mode="after")
    def check_fits_action_type(self) -> "TemplateElement":
        """Options and default value must be valid data for the element's type."""
        try:
            self.action_data()
        except InvalidActionDataError as e:
            raise ValueError(str(e)) from e
        return self

    def action_data(self) -> dict[str, Any]:
        """Initial data for an action created from this element, seeded with the default value.

        Raises:
            InvalidActionDataError: If the element does not fit its action type
        """
        data = {
            "label": self.label,
            "description": self.description,
            "required": self.required,
            "default_value": self.default_value,
            "value": self.default_value,
            "options": self.options,
        }
        return validate_action_data(self.type, {key: value for key, value in data.items() if value is not None})


class ActionTemplate(BaseModel):
    """Reusable ordered list of action definitions."""

    id: str = Field(..., description="Template ID")
    name: str = Field(..., description="Template name")
    description: str = Field(default="", description="Template description")
    elements: list[TemplateElement] = Field(default_factory=list, description="Ordered elements")
