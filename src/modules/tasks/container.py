"""Wiring of the task engine components."""

from dataclasses import dataclass

from src.core.clock import Clock, now_ms
from src.core.config import Settings
from src.modules.tasks.action_ledger import ActionLedger
from src.modules.tasks.repository import TaskRepository, TemplateRepository
from src.modules.tasks.rewards import RewardSettingsProvider
from src.modules.tasks.service import TaskService
from src.modules.tasks.side_effects import SideEffects
from src.modules.tasks.workflow import WorkflowEngine
from src.services import DbActivityRecorder, DbChatAnnouncer, DbNotificationDispatcher, DbProjectDirectory


@dataclass
class TaskContainer:
    """Everything the HTTP layer needs to serve task requests."""

    repository: TaskRepository
    templates: TemplateRepository
    rewards: RewardSettingsProvider
    side_effects: SideEffects
    ledger: ActionLedger
    workflow: WorkflowEngine
    tasks: TaskService


def build_container(settings: Settings, *, clock: Clock = now_ms) -> TaskContainer:
    """Build the engine on top of the SQLite-backed collaborators."""
    repository = TaskRepository(max_retries=settings.version_conflict_max_retries)
    templates = TemplateRepository()
    rewards = RewardSettingsProvider(settings)
    side_effects = SideEffects(
        notifier=DbNotificationDispatcher(clock=clock),
        activity=DbActivityRecorder(projects=DbProjectDirectory(), clock=clock),
        chat=DbChatAnnouncer(),
    )
    return TaskContainer(
        repository=repository,
        templates=templates,
        rewards=rewards,
        side_effects=side_effects,
        ledger=ActionLedger(repository=repository, side_effects=side_effects, clock=clock),
        workflow=WorkflowEngine(repository=repository, side_effects=side_effects, clock=clock),
        tasks=TaskService(
            repository=repository,
            templates=templates,
            rewards=rewards,
            side_effects=side_effects,
            default_page_limit=settings.default_page_limit,
            clock=clock,
        ),
    )
