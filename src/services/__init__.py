from src.services.activity_service import DbActivityRecorder
from src.services.chat_service import DbChatAnnouncer
from src.services.notification_service import DbNotificationDispatcher
from src.services.project_service import DbProjectDirectory, ProjectDirectory


__all__ = [
    "DbActivityRecorder",
    "DbChatAnnouncer",
    "DbNotificationDispatcher",
    "DbProjectDirectory",
    "ProjectDirectory",
]
