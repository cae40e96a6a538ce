"""Unit tests for the database-backed notification, activity and chat collaborators."""

import pytest

from src.domain.events import ActivityType, ChatMessage, MessageType, NotificationType, QuotedMessage
from src.domain.task import TaskStatus
from src.services import DbActivityRecorder, DbChatAnnouncer, DbNotificationDispatcher, DbProjectDirectory


@pytest.mark.unit
class TestDbNotificationDispatcher:
    async def test_stores_unread_notification(self, patched_db, clock):
        await DbNotificationDispatcher(clock=clock).notify(
            recipient="user_alice",
            event_type=NotificationType.TASK_APPROVED,
            title="Task approved",
            message="You earned 30 coins.",
            related_entity_id="1001",
        )

        [stored] = patched_db.records("notifications")
        assert stored["type"] == "task_approved"
        assert stored["read"] is False
        assert stored["created_at"] == clock.current


@pytest.mark.unit
class TestDbActivityRecorder:
    async def test_resolves_project_name(self, patched_db, clock, admin):
        project = await patched_db.create_record(collection="projects", data={"name": "Plant A"})
        recorder = DbActivityRecorder(projects=DbProjectDirectory(), clock=clock)

        await recorder.record(
            actor=admin,
            event_type=ActivityType.TASK_STATUS_CHANGED,
            project_id=project["id"],
            task_id="1001",
            task_name="Inspect pump",
            new_status=TaskStatus.COMPLETED,
        )

        [entry] = patched_db.records("activities")
        assert entry["project_name"] == "Plant A"
        assert entry["actor_name"] == "Bob"
        assert entry["new_status"] == "completed"
        assert entry["extra"] == {}

    async def test_unknown_project_falls_back_to_id(self, patched_db):
        assert await DbProjectDirectory().project_name("proj_missing") == "proj_missing"


@pytest.mark.unit
class TestDbChatAnnouncer:
    async def test_returns_stored_message_id(self, patched_db):
        message = ChatMessage(
            content="Task approved",
            timestamp=5,
            message_type=MessageType.TASK_APPROVAL,
            quoted_message=QuotedMessage(content="Task: Inspect pump"),
            original_message_id="1000",
        )

        message_id = await DbChatAnnouncer().announce("proj_1", message)

        [stored] = patched_db.records("project_messages")
        assert stored["id"] == message_id
        assert stored["project_id"] == "proj_1"
        assert stored["author"] == "system"
        assert stored["original_message_id"] == "1000"
