"""Tasks module for the task lifecycle and action completion."""


class TasksModule:
    """Tasks module.

    Provides:
    - Task CRUD and template-based creation
    - Action completion ledger
    - Status workflow with approval
    - Coin rewards fixed at creation
    - Notifications, activity trail and chat announcements
    """

    @property
    def name(self) -> str:
        """Module name (unique identifier)."""
        return "tasks"

    @property
    def description(self) -> str:
        """Module description (human-readable)."""
        return "Task lifecycle with action ledger, approval workflow and coin rewards"

    def get_table_schemas(self) -> dict[str, str]:
        """Return table schemas for this module."""
        return {
            "projects": """CREATE TABLE IF NOT EXISTS projects (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL
    )""",
            "system_settings": """CREATE TABLE IF NOT EXISTS system_settings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        task_completion_base REAL NOT NULL CHECK (task_completion_base >= 0),
        complexity_multiplier REAL NOT NULL CHECK (complexity_multiplier >= 0)
    )""",
            "action_templates": """CREATE TABLE IF NOT EXISTS action_templates (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        elements TEXT NOT NULL DEFAULT '[]'
    )""",
            "tasks": """CREATE TABLE IF NOT EXISTS tasks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        project_id TEXT NOT NULL,
        assigned_to TEXT NOT NULL,
        created_by TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'in_progress', 'waiting_approval', 'completed', 'blocked')),
        priority TEXT NOT NULL DEFAULT 'medium'
            CHECK (priority IN ('low', 'medium', 'high', 'critical')),
        difficulty_level REAL NOT NULL CHECK (difficulty_level > 0),
        coins_reward INTEGER NOT NULL CHECK (coins_reward >= 0),
        due_date INTEGER,
        actions TEXT NOT NULL DEFAULT '[]',
        comments TEXT NOT NULL DEFAULT '[]',
        attachments TEXT NOT NULL DEFAULT '[]',
        subtasks TEXT NOT NULL DEFAULT '[]',
        pending_approval_announcement_id TEXT,
        version INTEGER NOT NULL DEFAULT 1,
        created_at INTEGER NOT NULL,
        updated_at INTEGER NOT NULL
    )""",
            "notifications": """CREATE TABLE IF NOT EXISTS notifications (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        recipient TEXT NOT NULL,
        type TEXT NOT NULL,
        title TEXT NOT NULL,
        message TEXT NOT NULL,
        related_entity_id TEXT NOT NULL,
        read INTEGER NOT NULL DEFAULT 0,
        created_at INTEGER NOT NULL
    )""",
            "activities": """CREATE TABLE IF NOT EXISTS activities (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        actor TEXT NOT NULL,
        actor_name TEXT NOT NULL,
        type TEXT NOT NULL,
        project_id TEXT NOT NULL,
        project_name TEXT NOT NULL,
        task_id TEXT NOT NULL,
        task_name TEXT NOT NULL,
        new_status TEXT,
        extra TEXT NOT NULL DEFAULT '{}',
        timestamp INTEGER NOT NULL
    )""",
            "project_messages": """CREATE TABLE IF NOT EXISTS project_messages (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        project_id TEXT NOT NULL,
        author TEXT NOT NULL,
        content TEXT NOT NULL,
        timestamp INTEGER NOT NULL,
        message_type TEXT NOT NULL,
        quoted_message TEXT,
        original_message_id TEXT
    )""",
        }

    def get_indexes(self) -> list[str]:
        """Return indexes for this module's tables."""
        return [
            "CREATE INDEX IF NOT EXISTS idx_tasks_project_id ON tasks (project_id)",
            "CREATE INDEX IF NOT EXISTS idx_tasks_assigned_to ON tasks (assigned_to)",
            "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks (status)",
            "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks (created_at)",
            "CREATE INDEX IF NOT EXISTS idx_notifications_recipient ON notifications (recipient)",
            "CREATE INDEX IF NOT EXISTS idx_activities_task_id ON activities (task_id)",
            "CREATE INDEX IF NOT EXISTS idx_project_messages_project_id ON project_messages (project_id)",
        ]
