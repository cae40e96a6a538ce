"""Error taxonomy for the task engine and its mapping to user-facing responses."""

from enum import Enum

from pydantic import BaseModel

from src.core.config import Constants


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Lookup errors
    ERR_TASK_NOT_FOUND = "ERR_TASK_NOT_FOUND"
    ERR_ACTION_NOT_FOUND = "ERR_ACTION_NOT_FOUND"
    ERR_TEMPLATE_NOT_FOUND = "ERR_TEMPLATE_NOT_FOUND"

    # Workflow errors
    ERR_INVALID_TRANSITION = "ERR_INVALID_TRANSITION"
    ERR_GUARD_NOT_SATISFIED = "ERR_GUARD_NOT_SATISFIED"
    ERR_PERMISSION_DENIED = "ERR_PERMISSION_DENIED"
    ERR_INVALID_ACTION_DATA = "ERR_INVALID_ACTION_DATA"

    # Storage errors
    ERR_CONFLICT = "ERR_CONFLICT"
    ERR_PERSISTENCE = "ERR_PERSISTENCE"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class TaskflowError(Exception):
    """Base class for every error the task engine raises to its callers."""

    code: str = ErrorCode.ERR_UNKNOWN


class NotFoundError(TaskflowError):
    """A task, action or template does not exist."""


class TaskNotFoundError(NotFoundError):
    """No task with the given id."""

    code = ErrorCode.ERR_TASK_NOT_FOUND

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class ActionNotFoundError(NotFoundError):
    """No action with the given id inside the task."""

    code = ErrorCode.ERR_ACTION_NOT_FOUND

    def __init__(self, task_id: str, action_id: str) -> None:
        self.task_id = task_id
        self.action_id = action_id
        super().__init__(f"Action {action_id} not found in task {task_id}")


class TemplateNotFoundError(NotFoundError):
    """No action template with the given id."""

    code = ErrorCode.ERR_TEMPLATE_NOT_FOUND

    def __init__(self, template_id: str) -> None:
        self.template_id = template_id
        super().__init__(f"Action template not found: {template_id}")


class InvalidTransitionError(TaskflowError):
    """The requested status change is not in the transition table."""

    code = ErrorCode.ERR_INVALID_TRANSITION


class GuardNotSatisfiedError(TaskflowError):
    """A transition precondition does not hold (required actions incomplete)."""

    code = ErrorCode.ERR_GUARD_NOT_SATISFIED

    def __init__(self, message: str, *, missing_action_ids: list[str] | None = None) -> None:
        self.missing_action_ids = missing_action_ids or []
        super().__init__(message)


class PermissionDeniedError(TaskflowError):
    """The actor is not allowed to perform this transition."""

    code = ErrorCode.ERR_PERMISSION_DENIED


class InvalidActionDataError(TaskflowError):
    """A completion payload does not match the schema of the action type."""

    code = ErrorCode.ERR_INVALID_ACTION_DATA


class ConflictError(TaskflowError):
    """A versioned write was rejected because the record changed since it was read."""

    code = ErrorCode.ERR_CONFLICT

    def __init__(self, message: str, *, expected_version: int | None = None) -> None:
        self.expected_version = expected_version
        super().__init__(message)


class PersistenceError(TaskflowError):
    """The underlying store failed. The outcome of an interrupted write is unknown."""

    code = ErrorCode.ERR_PERSISTENCE


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


_ERROR_RESPONSES: dict[str, tuple[int, str, ErrorSeverity]] = {
    ErrorCode.ERR_TASK_NOT_FOUND: (
        Constants.HTTP_NOT_FOUND,
        "Check the task id or list tasks for the project.",
        ErrorSeverity.LOW,
    ),
    ErrorCode.ERR_ACTION_NOT_FOUND: (
        Constants.HTTP_NOT_FOUND,
        "Reload the task to get the current action ids.",
        ErrorSeverity.LOW,
    ),
    ErrorCode.ERR_TEMPLATE_NOT_FOUND: (
        Constants.HTTP_NOT_FOUND,
        "Pick an existing action template.",
        ErrorSeverity.LOW,
    ),
    ErrorCode.ERR_INVALID_TRANSITION: (
        Constants.HTTP_CONFLICT,
        "Reload the task and check its current status.",
        ErrorSeverity.LOW,
    ),
    ErrorCode.ERR_GUARD_NOT_SATISFIED: (
        Constants.HTTP_CONFLICT,
        "Complete every required action before submitting for approval.",
        ErrorSeverity.LOW,
    ),
    ErrorCode.ERR_PERMISSION_DENIED: (
        Constants.HTTP_FORBIDDEN,
        "Ask the task assignee or a project admin to perform this step.",
        ErrorSeverity.MEDIUM,
    ),
    ErrorCode.ERR_INVALID_ACTION_DATA: (
        Constants.HTTP_UNPROCESSABLE,
        "Send only the fields this action type accepts.",
        ErrorSeverity.LOW,
    ),
    ErrorCode.ERR_CONFLICT: (
        Constants.HTTP_CONFLICT,
        "Someone else changed this task at the same time. Please try again.",
        ErrorSeverity.MEDIUM,
    ),
    ErrorCode.ERR_PERSISTENCE: (
        Constants.HTTP_SERVICE_UNAVAILABLE,
        "Reload the task before retrying; the last change may or may not have been saved.",
        ErrorSeverity.HIGH,
    ),
}


def to_error_response(exception: Exception) -> tuple[int, ErrorResponse]:
    """Map an exception to an HTTP status and a structured response.

    Args:
        exception: The exception raised while handling a request

    Returns:
        Tuple of (http_status, ErrorResponse)
    """
    code = exception.code if isinstance(exception, TaskflowError) else ErrorCode.ERR_UNKNOWN
    if code not in _ERROR_RESPONSES:
        return 500, ErrorResponse(
            code=ErrorCode.ERR_UNKNOWN,
            message="An unexpected error occurred.",
            suggestion="Please try again later. If the problem persists, contact support.",
            severity=ErrorSeverity.MEDIUM,
        )

    http_status, suggestion, severity = _ERROR_RESPONSES[code]
    return http_status, ErrorResponse(
        code=code,
        message=str(exception),
        suggestion=suggestion,
        severity=severity,
    )
