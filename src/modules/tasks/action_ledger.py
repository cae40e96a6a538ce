"""Per-action completion state inside a task.

The action sequence is handled as an insertion-ordered map keyed by action id,
so a ledger change replaces exactly one entry and every other entry keeps its
position and content.
"""

import logging
from collections.abc import Callable
from typing import Any

from src.core.clock import Clock, now_ms
from src.core.errors import ActionNotFoundError, InvalidTransitionError
from src.core.logging import span
from src.domain.action_data import merge_action_data
from src.domain.events import ActivityType
from src.domain.task import Action, Task
from src.domain.user import Actor
from src.modules.tasks.repository import TaskStore
from src.modules.tasks.side_effects import SideEffects


logger = logging.getLogger(__name__)


def _replace_action(task: Task, action_id: str, build: Callable[[Action], Action]) -> list[Action]:
    by_id = {action.id: action for action in task.actions}
    current = by_id.get(action_id)
    if current is None:
        raise ActionNotFoundError(task.id, action_id)
    by_id[action_id] = build(current)
    return list(by_id.values())


def complete_in_task(
    task: Task,
    action_id: str,
    *,
    actor_id: str,
    completed_at: int,
    patch: dict[str, Any] | None = None,
) -> list[Action]:
    """Return the task's actions with one action marked complete.

    Re-completing an already completed action overwrites its stamps and merges
    the new patch again.

    Raises:
        ActionNotFoundError: If the task has no action with that id
        InvalidActionDataError: If the patch does not fit the action type
    """

    def build(action: Action) -> Action:
        data = merge_action_data(action.type, action.data, patch or {})
        return Action.model_validate(
            {
                **action.model_dump(),
                "completed": True,
                "completed_at": completed_at,
                "completed_by": actor_id,
                "data": data,
            }
        )

    return _replace_action(task, action_id, build)


def uncomplete_in_task(task: Task, action_id: str) -> list[Action]:
    """Return the task's actions with one action reset to incomplete; its data is kept.

    Raises:
        ActionNotFoundError: If the task has no action with that id
    """

    def build(action: Action) -> Action:
        return Action.model_validate(
            {
                **action.model_dump(),
                "completed": False,
                "completed_at": None,
                "completed_by": None,
            }
        )

    return _replace_action(task, action_id, build)


def _ensure_editable(task: Task) -> None:
    if task.status.is_terminal:
        msg = f"Actions of task {task.id} cannot change while it is {task.status}"
        raise InvalidTransitionError(msg)


class ActionLedger:
    """Applies action completion changes with versioned read-modify-write."""

    def __init__(self, *, repository: TaskStore, side_effects: SideEffects, clock: Clock = now_ms) -> None:
        self._repository = repository
        self._side_effects = side_effects
        self._clock = clock

    async def complete_action(
        self,
        *,
        task_id: str,
        action_id: str,
        actor: Actor,
        patch: dict[str, Any] | None = None,
    ) -> Task:
        """Mark an action complete, stamping the actor and time and merging patch into its data."""
        with span("action_ledger.complete_action", task_id=task_id, action_id=action_id):

            def mutate(task: Task) -> dict[str, Any]:
                _ensure_editable(task)
                now = self._clock()
                actions = complete_in_task(task, action_id, actor_id=actor.id, completed_at=now, patch=patch)
                return {"actions": actions, "updated_at": now}

            result = await self._repository.mutate(task_id, mutate)
            logger.info("Action %s of task %s completed by %s", action_id, task_id, actor.id)

            await self._side_effects.record_activity(
                actor=actor,
                event_type=ActivityType.ACTION_COMPLETED,
                task=result.after,
                extra={"action_id": action_id},
            )
            return result.after

    async def uncomplete_action(self, *, task_id: str, action_id: str, actor: Actor) -> Task:
        """Mark an action incomplete, dropping its completion stamps."""
        with span("action_ledger.uncomplete_action", task_id=task_id, action_id=action_id):

            def mutate(task: Task) -> dict[str, Any]:
                _ensure_editable(task)
                actions = uncomplete_in_task(task, action_id)
                return {"actions": actions, "updated_at": self._clock()}

            result = await self._repository.mutate(task_id, mutate)
            logger.info("Action %s of task %s uncompleted by %s", action_id, task_id, actor.id)

            await self._side_effects.record_activity(
                actor=actor,
                event_type=ActivityType.ACTION_UNCOMPLETED,
                task=result.after,
                extra={"action_id": action_id},
            )
            return result.after
