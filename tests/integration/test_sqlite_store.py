"""Integration tests against a real SQLite database file."""

import pytest

from src.core import db_client
from src.core.config import Settings
from src.core.errors import ConflictError
from src.domain.create_models import ActionCreate, TaskCreate
from src.domain.task import TaskStatus
from src.domain.user import Actor, UserRole
from src.modules.tasks.container import build_container
from src.modules.tasks.repository import TaskFilters


ALICE = Actor(id="user_alice", name="Alice")
BOB = Actor(id="user_bob", name="Bob", role=UserRole.ADMIN)


@pytest.mark.integration
class TestDbClient:
    """Tests for the SQLite client functions."""

    async def test_versioned_update(self, sqlite_db):
        project = await db_client.create_record(collection="projects", data={"name": "Plant A"})
        task = await db_client.create_record(
            collection="tasks",
            data={
                "title": "Oil change",
                "project_id": project["id"],
                "assigned_to": "user_alice",
                "created_by": "user_bob",
                "difficulty_level": 1.0,
                "coins_reward": 10,
                "actions": [{"id": "a1", "title": "Drain"}],
                "version": 1,
                "created_at": 1,
                "updated_at": 1,
            },
        )

        updated = await db_client.update_record(
            collection="tasks", record_id=task["id"], data={"title": "Oil change (urgent)"}, expected_version=1
        )

        assert updated["version"] == 2
        assert updated["actions"] == [{"id": "a1", "title": "Drain"}]
        assert isinstance(updated["id"], str)
        with pytest.raises(ConflictError):
            await db_client.update_record(
                collection="tasks", record_id=task["id"], data={"title": "stale"}, expected_version=1
            )

    async def test_missing_record(self, sqlite_db):
        with pytest.raises(db_client.RecordNotFoundError):
            await db_client.get_record(collection="tasks", record_id="12345")
        with pytest.raises(db_client.RecordNotFoundError):
            await db_client.get_record(collection="tasks", record_id="not-a-number")

    async def test_filter_sort_and_count(self, sqlite_db):
        for name in ("Beta", "Alpha", "Gamma"):
            await db_client.create_record(collection="projects", data={"name": name})

        records = await db_client.list_records(collection="projects", filter_query='name != "Gamma"', sort="-name")

        assert [r["name"] for r in records] == ["Beta", "Alpha"]
        assert await db_client.count_records(collection="projects", filter_query='name ~ "a"') == 3


@pytest.mark.integration
class TestEngineOnSqlite:
    """The wired engine end to end on SQLite."""

    async def test_submit_and_approve(self, sqlite_db):
        project = await db_client.create_record(collection="projects", data={"name": "Plant A"})
        container = build_container(Settings(_env_file=None))

        task = await container.tasks.create(
            data=TaskCreate(
                title="Inspect valves",
                project_id=project["id"],
                assigned_to=ALICE.id,
                difficulty_level=3,
                actions=[ActionCreate(id="a1", title="Valve 1", required=True)],
            ),
            actor=BOB,
        )
        await container.ledger.complete_action(task_id=task.id, action_id="a1", actor=ALICE)
        submitted = await container.workflow.submit_for_approval(task_id=task.id, actor=ALICE)
        approved = await container.workflow.approve(task_id=task.id, actor=BOB)

        assert task.coins_reward == 30
        assert approved.status == TaskStatus.COMPLETED
        assert approved.pending_approval_announcement_id is None

        messages = await db_client.list_records(collection="project_messages", sort="id")
        assert messages[-1]["original_message_id"] == submitted.pending_approval_announcement_id
        assert messages[-1]["quoted_message"]["author"] == "System"

        activities = await db_client.list_records(collection="activities", sort="id")
        assert {a["project_name"] for a in activities} == {"Plant A"}
        assert activities[-1]["extra"] == {"coins_reward": 30}

    async def test_list_matches_numeric_looking_ids(self, sqlite_db):
        container = build_container(Settings(_env_file=None))
        created = await container.tasks.create(
            data=TaskCreate(title="Calibrate gauge", project_id="007", assigned_to="0042", difficulty_level=1),
            actor=BOB,
        )
        await container.tasks.create(
            data=TaskCreate(title="Calibrate gauge", project_id="7", assigned_to="42", difficulty_level=1),
            actor=BOB,
        )

        by_project = await container.tasks.list_tasks(filters=TaskFilters(project_id="007"))
        by_assignee = await container.tasks.list_tasks(filters=TaskFilters(assigned_to="0042"))

        assert [t.id for t in by_project.items] == [created.id]
        assert by_project.total_count == 1
        assert [t.id for t in by_assignee.items] == [created.id]
        assert by_assignee.total_count == 1
