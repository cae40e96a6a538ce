"""SQLite schema management (code-first, assembled from registered modules)."""

import logging

from src.core import db_client
from src.core.module_registry import ensure_registered, get_all_indexes, get_all_table_schemas
from src.modules.tasks import TasksModule


logger = logging.getLogger(__name__)


async def init_db(*, db_path: str | None = None) -> None:
    """Create every registered table and index if it does not exist yet.

    Statements are idempotent, so running this on an existing database is a no-op.
    """
    ensure_registered(TasksModule())

    conn = await db_client.get_connection(db_path=db_path)
    schemas = get_all_table_schemas()
    for table_name, ddl in schemas.items():
        await conn.execute(ddl)
        logger.debug("Ensured table", extra={"table": table_name})

    for index in get_all_indexes():
        await conn.execute(index)

    await conn.commit()
    logger.info("Database schema initialized", extra={"tables": sorted(schemas)})
