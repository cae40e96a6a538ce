"""Unit tests for error responses."""

import pytest

from src.core.errors import (
    ActionNotFoundError,
    ConflictError,
    ErrorCode,
    ErrorSeverity,
    GuardNotSatisfiedError,
    InvalidActionDataError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    TaskNotFoundError,
    TemplateNotFoundError,
    to_error_response,
)


@pytest.mark.unit
class TestToErrorResponse:
    """Tests for to_error_response function."""

    @pytest.mark.parametrize(
        ("exception", "status", "code"),
        [
            (TaskNotFoundError("t1"), 404, ErrorCode.ERR_TASK_NOT_FOUND),
            (ActionNotFoundError("t1", "a1"), 404, ErrorCode.ERR_ACTION_NOT_FOUND),
            (TemplateNotFoundError("tpl"), 404, ErrorCode.ERR_TEMPLATE_NOT_FOUND),
            (InvalidTransitionError("no"), 409, ErrorCode.ERR_INVALID_TRANSITION),
            (GuardNotSatisfiedError("no", missing_action_ids=["a1"]), 409, ErrorCode.ERR_GUARD_NOT_SATISFIED),
            (ConflictError("busy"), 409, ErrorCode.ERR_CONFLICT),
            (PermissionDeniedError("no"), 403, ErrorCode.ERR_PERMISSION_DENIED),
            (InvalidActionDataError("bad"), 422, ErrorCode.ERR_INVALID_ACTION_DATA),
            (PersistenceError("disk"), 503, ErrorCode.ERR_PERSISTENCE),
        ],
    )
    def test_maps_engine_errors(self, exception, status, code):
        http_status, response = to_error_response(exception)

        assert http_status == status
        assert response.code == code
        assert response.message == str(exception)
        assert response.suggestion

    def test_unknown_exception_is_hidden(self):
        http_status, response = to_error_response(RuntimeError("secret detail"))

        assert http_status == 500
        assert response.code == ErrorCode.ERR_UNKNOWN
        assert "secret detail" not in response.message
        assert response.severity == ErrorSeverity.MEDIUM

    def test_not_found_errors_share_a_base(self):
        assert isinstance(ActionNotFoundError("t1", "a1"), NotFoundError)
        assert str(TaskNotFoundError("t9")) == "Task not found: t9"
