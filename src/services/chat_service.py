"""System announcements posted to project chat channels."""

import logging

from src.core import db_client
from src.core.logging import log_with_context, span
from src.domain.events import ChatMessage


logger = logging.getLogger(__name__)


class DbChatAnnouncer:
    """Posts system messages to the project_messages collection."""

    async def announce(self, project_id: str, message: ChatMessage) -> str:
        """Post message to the project's channel.

        Args:
            project_id: Channel to post to
            message: System-authored message

        Returns:
            ID of the stored message, usable as a later original_message_id

        Raises:
            db_client.DatabaseError: If the insert fails
        """
        with span("chat_service.announce", project_id=project_id, message_type=str(message.message_type)):
            record = await db_client.create_record(
                collection="project_messages",
                data={"project_id": project_id, **message.model_dump(mode="json")},
            )
            message_id = str(record["id"])
            log_with_context(
                logger,
                "info",
                "Chat announcement posted",
                project_id=project_id,
                message_id=message_id,
                message_type=str(message.message_type),
                original_message_id=message.original_message_id,
            )
            return message_id
