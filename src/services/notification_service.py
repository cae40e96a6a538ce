"""Notification delivery backed by the notifications collection."""

import logging

from src.core import db_client
from src.core.clock import Clock, now_ms
from src.core.logging import span
from src.domain.events import Notification, NotificationType


logger = logging.getLogger(__name__)


class DbNotificationDispatcher:
    """Stores one unread notification per call; clients poll the collection."""

    def __init__(self, *, clock: Clock = now_ms) -> None:
        self._clock = clock

    async def notify(
        self,
        *,
        recipient: str,
        event_type: NotificationType,
        title: str,
        message: str,
        related_entity_id: str,
    ) -> None:
        """Persist a notification for recipient.

        Raises:
            db_client.DatabaseError: If the insert fails
        """
        with span("notification_service.notify", recipient=recipient, event_type=str(event_type)):
            notification = Notification(
                recipient=recipient,
                type=event_type,
                title=title,
                message=message,
                related_entity_id=related_entity_id,
            )
            record = await db_client.create_record(
                collection="notifications",
                data={**notification.model_dump(mode="json"), "read": False, "created_at": self._clock()},
            )
            logger.info(
                "notification_sent",
                extra={"recipient": recipient, "type": str(event_type), "notification_id": record["id"]},
            )
