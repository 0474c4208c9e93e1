"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..app import Application
from ..config import cors_origins
from ..logging_config import get_logger
from .routes import chats, control, observability, realtime

logger = get_logger(__name__)

# Process-wide application used by main.py
_app: Application | None = None


def get_app() -> Application:
    """Get the global application instance."""
    global _app
    if not _app:
        _app = Application()
    return _app


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Build the HTTP/WebSocket surface around an Application.

    The Application is started and stopped by the FastAPI lifespan; tests
    pass their own in-memory instance.
    """
    application = application or get_app()

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        await application.start()
        sim_instance = control.get_sim_instance()
        if sim_instance and hasattr(sim_instance, "set_tracker"):
            sim_instance.set_tracker(application.tracker)
        logger.info("Messenger API ready")
        yield
        await application.stop()

    fastapi_app = FastAPI(
        title="Messenger API",
        description="Two-party direct messaging backend",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in (
        chats.create_chats_router(application),
        realtime.create_realtime_router(application),
        observability.create_observability_router(application),
        control.create_control_router(application),
    ):
        fastapi_app.include_router(router)

    return fastapi_app
