"""Pytest configuration and fixtures for unit tests."""

from collections.abc import Awaitable, Callable
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest

from src.domain.task import Task
from src.domain.user import Actor, UserRole
from src.modules.tasks.action_ledger import ActionLedger
from src.modules.tasks.repository import TaskRepository, TemplateRepository
from src.modules.tasks.side_effects import SideEffects
from src.modules.tasks.workflow import WorkflowEngine
from tests.unit.mocks import InMemoryDBClient


START_MS = 1_700_000_000_000


class FakeClock:
    """Deterministic millisecond clock; every reading advances by one second."""

    def __init__(self, start: int = START_MS, step: int = 1_000) -> None:
        self.current = start
        self.step = step

    def __call__(self) -> int:
        self.current += self.step
        return self.current


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches src.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("src.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("src.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("src.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("src.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("src.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("src.core.db_client.count_records", in_memory_db.count_records)
    monkeypatch.setattr("src.core.db_client.get_first_record", in_memory_db.get_first_record)
    return in_memory_db


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def assignee() -> Actor:
    return Actor(id="user_alice", name="Alice", role=UserRole.MEMBER)


@pytest.fixture
def admin() -> Actor:
    return Actor(id="user_bob", name="Bob", role=UserRole.ADMIN)


@pytest.fixture
def collaborators():
    """Mocked notification, activity and chat collaborators."""
    chat = AsyncMock()
    chat.announce = AsyncMock(side_effect=[f"msg_{i}" for i in range(1, 50)])
    return SimpleNamespace(notifier=AsyncMock(), activity=AsyncMock(), chat=chat)


@pytest.fixture
def side_effects(collaborators) -> SideEffects:
    return SideEffects(
        notifier=collaborators.notifier,
        activity=collaborators.activity,
        chat=collaborators.chat,
    )


@pytest.fixture
def repository(patched_db) -> TaskRepository:
    return TaskRepository(max_retries=3)


@pytest.fixture
def templates(patched_db) -> TemplateRepository:
    return TemplateRepository()


@pytest.fixture
def ledger(repository, side_effects, clock) -> ActionLedger:
    return ActionLedger(repository=repository, side_effects=side_effects, clock=clock)


@pytest.fixture
def workflow(repository, side_effects, clock) -> WorkflowEngine:
    return WorkflowEngine(repository=repository, side_effects=side_effects, clock=clock)


@pytest.fixture
def make_task(repository, assignee, admin) -> Callable[..., Awaitable[Task]]:
    """Store a task with two actions (one required, one optional) unless overridden."""

    async def _make(**overrides: Any) -> Task:
        fields: dict[str, Any] = {
            "title": "Inspect pump",
            "description": "Monthly inspection",
            "project_id": "proj_1",
            "assigned_to": assignee.id,
            "created_by": admin.id,
            "status": "pending",
            "priority": "medium",
            "difficulty_level": 3,
            "coins_reward": 30,
            "actions": [
                {"id": "a1", "title": "Check pressure", "type": "checkbox", "required": True},
                {"id": "a2", "title": "Add notes", "type": "text", "required": False},
            ],
            "comments": [],
            "attachments": [],
            "subtasks": [],
            "created_at": START_MS,
            "updated_at": START_MS,
        }
        fields.update(overrides)
        return await repository.create(fields)

    return _make
