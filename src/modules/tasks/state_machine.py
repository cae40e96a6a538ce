"""Pure transition rules for the task lifecycle."""

import logging
from dataclasses import dataclass
from enum import StrEnum

from src.core.errors import GuardNotSatisfiedError, InvalidTransitionError, PermissionDeniedError
from src.domain.task import Task, TaskStatus
from src.domain.user import Actor


logger = logging.getLogger(__name__)


class ActorConstraint(StrEnum):
    """Who may request a transition."""

    ASSIGNEE = "assignee"
    ADMIN = "admin"


@dataclass(frozen=True)
class TransitionRule:
    """One row of the transition table."""

    sources: frozenset[TaskStatus]
    actor: ActorConstraint
    requires_required_actions: bool = False


_NON_TERMINAL = frozenset(status for status in TaskStatus if not status.is_terminal)

# Keyed by target status
TRANSITIONS: dict[TaskStatus, TransitionRule] = {
    TaskStatus.IN_PROGRESS: TransitionRule(
        sources=frozenset({TaskStatus.PENDING}),
        actor=ActorConstraint.ASSIGNEE,
    ),
    TaskStatus.WAITING_APPROVAL: TransitionRule(
        sources=frozenset({TaskStatus.PENDING, TaskStatus.IN_PROGRESS}),
        actor=ActorConstraint.ASSIGNEE,
        requires_required_actions=True,
    ),
    TaskStatus.COMPLETED: TransitionRule(
        sources=frozenset({TaskStatus.WAITING_APPROVAL}),
        actor=ActorConstraint.ADMIN,
    ),
    TaskStatus.PENDING: TransitionRule(
        sources=frozenset({TaskStatus.WAITING_APPROVAL}),
        actor=ActorConstraint.ADMIN,
    ),
    TaskStatus.BLOCKED: TransitionRule(
        sources=_NON_TERMINAL,
        actor=ActorConstraint.ADMIN,
    ),
}


def allowed_targets(status: TaskStatus) -> set[TaskStatus]:
    """Statuses reachable from the given one."""
    return {target for target, rule in TRANSITIONS.items() if status in rule.sources}


def check_transition(*, task: Task, target: TaskStatus, actor: Actor) -> TransitionRule:
    """Validate a transition request against the table.

    Checks run in order: source state, actor, guard. Nothing is written here.

    Raises:
        InvalidTransitionError: If the task's status is not a valid source for target
        PermissionDeniedError: If the actor may not request this transition
        GuardNotSatisfiedError: If required actions are still incomplete
    """
    rule = TRANSITIONS.get(target)
    if rule is None or task.status not in rule.sources:
        msg = f"Cannot move task {task.id} from {task.status} to {target}"
        raise InvalidTransitionError(msg)

    if rule.actor == ActorConstraint.ADMIN and not actor.is_admin:
        msg = f"Only an admin can move task {task.id} to {target}"
        raise PermissionDeniedError(msg)
    if rule.actor == ActorConstraint.ASSIGNEE and actor.id != task.assigned_to:
        msg = f"Only the assignee can move task {task.id} to {target}"
        raise PermissionDeniedError(msg)

    if rule.requires_required_actions:
        missing = task.incomplete_required_actions()
        if missing:
            titles = ", ".join(action.title for action in missing)
            msg = f"Task {task.id} has incomplete required actions: {titles}"
            raise GuardNotSatisfiedError(msg, missing_action_ids=[action.id for action in missing])

    logger.debug("Transition %s -> %s allowed for task %s", task.status, target, task.id)
    return rule
