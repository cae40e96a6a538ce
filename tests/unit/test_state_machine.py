"""Unit tests for the task transition table."""

import pytest

from src.core.errors import GuardNotSatisfiedError, InvalidTransitionError, PermissionDeniedError
from src.domain.task import Action, Task, TaskStatus
from src.domain.user import Actor, UserRole
from src.modules.tasks.state_machine import allowed_targets, check_transition


ASSIGNEE = Actor(id="u1", name="Alice")
ADMIN = Actor(id="u2", name="Bob", role=UserRole.ADMIN)


def _task(status: TaskStatus, *, required_done: bool = False) -> Task:
    required = Action(id="a1", title="Required", required=True)
    if required_done:
        required = Action(id="a1", title="Required", required=True, completed=True, completed_at=1, completed_by="u1")
    return Task(
        id="t1",
        title="Task",
        project_id="p1",
        assigned_to=ASSIGNEE.id,
        created_by=ADMIN.id,
        status=status,
        difficulty_level=1,
        coins_reward=10,
        actions=[required, Action(id="a2", title="Optional")],
        created_at=0,
        updated_at=0,
    )


@pytest.mark.unit
class TestAllowedTargets:
    """Tests for allowed_targets function."""

    def test_pending(self):
        assert allowed_targets(TaskStatus.PENDING) == {
            TaskStatus.IN_PROGRESS,
            TaskStatus.WAITING_APPROVAL,
            TaskStatus.BLOCKED,
        }

    def test_waiting_approval(self):
        assert allowed_targets(TaskStatus.WAITING_APPROVAL) == {
            TaskStatus.COMPLETED,
            TaskStatus.PENDING,
            TaskStatus.BLOCKED,
        }

    @pytest.mark.parametrize("status", [TaskStatus.COMPLETED, TaskStatus.BLOCKED])
    def test_terminal_statuses_have_no_exit(self, status):
        assert allowed_targets(status) == set()


@pytest.mark.unit
class TestCheckTransition:
    """Tests for check_transition function."""

    def test_submission_with_required_done_is_allowed(self):
        rule = check_transition(
            task=_task(TaskStatus.IN_PROGRESS, required_done=True),
            target=TaskStatus.WAITING_APPROVAL,
            actor=ASSIGNEE,
        )

        assert rule.requires_required_actions

    def test_submission_with_required_missing_fails_guard(self):
        with pytest.raises(GuardNotSatisfiedError) as exc_info:
            check_transition(task=_task(TaskStatus.PENDING), target=TaskStatus.WAITING_APPROVAL, actor=ASSIGNEE)

        assert exc_info.value.missing_action_ids == ["a1"]

    def test_completed_to_pending_is_invalid(self):
        with pytest.raises(InvalidTransitionError):
            check_transition(task=_task(TaskStatus.COMPLETED), target=TaskStatus.PENDING, actor=ADMIN)

    def test_source_checked_before_actor(self):
        with pytest.raises(InvalidTransitionError):
            check_transition(task=_task(TaskStatus.PENDING), target=TaskStatus.COMPLETED, actor=ASSIGNEE)

    def test_approval_requires_admin(self):
        with pytest.raises(PermissionDeniedError):
            check_transition(task=_task(TaskStatus.WAITING_APPROVAL), target=TaskStatus.COMPLETED, actor=ASSIGNEE)

    def test_submission_requires_assignee(self):
        with pytest.raises(PermissionDeniedError):
            check_transition(
                task=_task(TaskStatus.PENDING, required_done=True),
                target=TaskStatus.WAITING_APPROVAL,
                actor=ADMIN,
            )

    def test_actor_checked_before_guard(self):
        with pytest.raises(PermissionDeniedError):
            check_transition(task=_task(TaskStatus.PENDING), target=TaskStatus.WAITING_APPROVAL, actor=ADMIN)

    def test_admin_blocks_any_open_task(self):
        for status in (TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.WAITING_APPROVAL):
            check_transition(task=_task(status), target=TaskStatus.BLOCKED, actor=ADMIN)
