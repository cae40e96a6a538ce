"""Typed payload schemas for action data, one per action type.

A completion patch is validated against the schema of the action's type
before it is merged into ``Action.data``. Unknown keys are rejected, except
keys starting with ``x_`` which are carried through untouched as the
extension point for client-specific metadata.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from src.core.errors import InvalidActionDataError
from src.domain.task import ActionType


EXTENSION_PREFIX = "x_"


class _BaseActionData(BaseModel):
    """Descriptive keys every action type may carry (copied from template elements)."""

    model_config = ConfigDict(extra="forbid", strict=True)

    label: str | None = None
    description: str | None = None
    required: bool | None = None
    notes: str | None = None


class CheckboxData(_BaseActionData):
    value: bool | None = None
    default_value: bool | None = None


class TextData(_BaseActionData):
    value: str | None = None
    default_value: str | None = None


class NumberData(_BaseActionData):
    value: float | None = None
    default_value: float | None = None
    unit: str | None = None


class FileData(_BaseActionData):
    """``value`` is an attachment reference; storage itself is external."""

    value: str | None = None
    default_value: str | None = None
    file_name: str | None = None
    content_type: str | None = None


class SelectData(_BaseActionData):
    value: str | None = None
    default_value: str | None = None
    options: list[str] | None = None

    @model_validator(mode="after")
    def check_value_in_options(self) -> "SelectData":
        if self.value is not None and self.options is not None and self.value not in self.options:
            raise ValueError(f"value {self.value!r} is not one of {self.options}")
        return self


class InfoData(_BaseActionData):
    """Informational actions have nothing to fill in."""


ACTION_DATA_SCHEMAS: dict[ActionType, type[_BaseActionData]] = {
    ActionType.CHECKBOX: CheckboxData,
    ActionType.TEXT: TextData,
    ActionType.NUMBER: NumberData,
    ActionType.FILE: FileData,
    ActionType.SELECT: SelectData,
    ActionType.INFO: InfoData,
}


def _split_extensions(data: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    typed = {key: value for key, value in data.items() if not key.startswith(EXTENSION_PREFIX)}
    extensions = {key: value for key, value in data.items() if key.startswith(EXTENSION_PREFIX)}
    return typed, extensions


def validate_action_data(action_type: ActionType, data: dict[str, Any]) -> dict[str, Any]:
    """Validate a full data payload for an action type and return it normalized.

    Raises:
        InvalidActionDataError: If a key is unknown or a value has the wrong type
    """
    typed, extensions = _split_extensions(data)
    schema = ACTION_DATA_SCHEMAS[action_type]
    try:
        model = schema.model_validate(typed)
    except ValidationError as e:
        errors = "; ".join(f"{'.'.join(str(p) for p in err['loc']) or 'data'}: {err['msg']}" for err in e.errors())
        msg = f"Invalid data for {action_type} action: {errors}"
        raise InvalidActionDataError(msg) from e

    return {**model.model_dump(exclude_unset=True), **extensions}


def merge_action_data(action_type: ActionType, current: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    """Shallow-merge a patch into existing data and validate the result.

    Patch keys override existing keys; keys absent from the patch are kept.
    """
    validate_action_data(action_type, patch)
    merged = {**current, **patch}
    return validate_action_data(action_type, merged)
