"""HTTP interface for tasks, their actions and their status workflow."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, Response, status
from pydantic import BaseModel, Field, ValidationError

from src.core.config import constants
from src.domain.create_models import CommentCreate, TaskCreate
from src.domain.task import Task, TaskPriority, TaskStatus
from src.domain.update_models import StatusChange, TaskUpdate
from src.domain.user import Actor
from src.modules.tasks.container import TaskContainer
from src.modules.tasks.repository import TaskFilters
from src.modules.tasks.service import TaskPage


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


class ActionCompletion(BaseModel):
    """Fields merged into the action's data on completion."""

    data: dict[str, Any] = Field(default_factory=dict)


class CommentBody(BaseModel):
    """Comment text; the author is the calling actor."""

    text: str


def get_container(request: Request) -> TaskContainer:
    """Container built at startup and stored on the app state."""
    return request.app.state.container


def get_actor(
    user_id: Annotated[str, Header(alias=constants.HEADER_USER_ID)],
    user_name: Annotated[str, Header(alias=constants.HEADER_USER_NAME)] = "Unknown User",
    user_role: Annotated[str, Header(alias=constants.HEADER_USER_ROLE)] = "member",
) -> Actor:
    """Actor authenticated upstream and forwarded in request headers."""
    try:
        return Actor(id=user_id, name=user_name, role=user_role)
    except ValidationError as e:
        logger.warning("invalid_actor_headers", extra={"user_id": user_id, "error": str(e)})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid actor headers") from e


ContainerDep = Annotated[TaskContainer, Depends(get_container)]
ActorDep = Annotated[Actor, Depends(get_actor)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(data: TaskCreate, container: ContainerDep, actor: ActorDep) -> Task:
    """Create a task with the given actions."""
    return await container.tasks.create(data=data, actor=actor)


@router.post("/from-template/{template_id}", status_code=status.HTTP_201_CREATED)
async def create_task_from_template(
    template_id: str,
    data: TaskCreate,
    container: ContainerDep,
    actor: ActorDep,
) -> Task:
    """Create a task whose actions are copied from an action template."""
    return await container.tasks.create_from_template(data=data, template_id=template_id, actor=actor)


@router.get("")
async def list_tasks(
    container: ContainerDep,
    project_id: str | None = None,
    assigned_to: str | None = None,
    status_filter: Annotated[TaskStatus | None, Query(alias="status")] = None,
    priority: TaskPriority | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int | None, Query(ge=1, le=constants.MAX_PAGE_LIMIT)] = None,
) -> TaskPage:
    """List tasks newest first."""
    filters = TaskFilters(
        project_id=project_id,
        assigned_to=assigned_to,
        status=status_filter,
        priority=priority,
    )
    return await container.tasks.list_tasks(filters=filters, page=page, limit=limit)


@router.get("/{task_id}")
async def get_task(task_id: str, container: ContainerDep) -> Task:
    return await container.tasks.get(task_id=task_id)


@router.patch("/{task_id}")
async def update_task(task_id: str, changes: TaskUpdate, container: ContainerDep, actor: ActorDep) -> Task:
    """Update editable fields. Status changes go through /status."""
    return await container.tasks.update(task_id=task_id, changes=changes, actor=actor)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: str, container: ContainerDep, actor: ActorDep) -> Response:
    await container.tasks.delete(task_id=task_id, actor=actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{task_id}/actions/{action_id}/complete")
async def complete_action(
    task_id: str,
    action_id: str,
    container: ContainerDep,
    actor: ActorDep,
    body: ActionCompletion | None = None,
) -> Task:
    """Mark an action complete, merging the optional data patch."""
    patch = body.data if body else None
    return await container.ledger.complete_action(task_id=task_id, action_id=action_id, actor=actor, patch=patch)


@router.post("/{task_id}/actions/{action_id}/uncomplete")
async def uncomplete_action(task_id: str, action_id: str, container: ContainerDep, actor: ActorDep) -> Task:
    return await container.ledger.uncomplete_action(task_id=task_id, action_id=action_id, actor=actor)


@router.post("/{task_id}/comments", status_code=status.HTTP_201_CREATED)
async def append_comment(task_id: str, body: CommentBody, container: ContainerDep, actor: ActorDep) -> Task:
    """Append a comment authored by the calling actor."""
    try:
        comment = CommentCreate(author=actor.id, text=body.text)
    except ValidationError as e:
        raise HTTPException(status_code=constants.HTTP_UNPROCESSABLE, detail="Comment text cannot be empty") from e
    return await container.tasks.append_comment(task_id=task_id, comment=comment, actor=actor)


@router.post("/{task_id}/status")
async def change_status(task_id: str, change: StatusChange, container: ContainerDep, actor: ActorDep) -> Task:
    """Request a status transition."""
    return await container.workflow.transition(task_id=task_id, target=change.status, actor=actor)
