"""taskquest - task lifecycle with action completion, approval workflow and coin rewards."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.core.config import constants, settings
from src.core.db_client import close_connection, init_db
from src.core.errors import TaskflowError, to_error_response
from src.core.logging import configure_logfire, instrument_fastapi
from src.interface.task_router import router as task_router
from src.modules.tasks.container import TaskContainer, build_container


logger = logging.getLogger(__name__)


async def handle_taskflow_error(_request: Request, exc: Exception) -> JSONResponse:
    """Render engine errors as structured responses."""
    http_status, response = to_error_response(exc)
    logger.info(
        "request_failed",
        extra={"code": response.code, "status": http_status, "error": str(exc)},
    )
    return JSONResponse(content=response.model_dump(mode="json"), status_code=http_status)


def create_app(container: TaskContainer | None = None) -> FastAPI:
    """Build the FastAPI app.

    Args:
        container: Pre-built engine wiring. When omitted the lifespan configures
            logging, initializes the database and builds the default container.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if container is None:
            # Configure logging first so startup logs are captured
            configure_logfire(settings)
            if settings.is_production:
                settings.require_credential("logfire_token", "Pydantic Logfire")
            await init_db()
            logger.info("Database initialized")
            app.state.container = build_container(settings)
        yield
        if container is None:
            await close_connection()

    app = FastAPI(
        title="taskquest",
        description="Task lifecycle with action completion, approval workflow and coin rewards",
        version="0.1.0",
        lifespan=lifespan,
    )
    if container is not None:
        app.state.container = container
    else:
        # Instrument FastAPI with Logfire
        instrument_fastapi(app)

    app.add_exception_handler(TaskflowError, handle_taskflow_error)
    app.include_router(task_router)

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse(content={"status": "healthy"}, status_code=constants.HTTP_OK)

    return app


app = create_app()
