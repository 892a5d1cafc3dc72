from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from hep_tracker import __version__
from hep_tracker.api.clients import router as clients_router
from hep_tracker.api.therapist import router as therapist_router
from hep_tracker.config.settings import settings
from hep_tracker.core.logger import setup_logger
from hep_tracker.gateway import create_gateway
from hep_tracker.gateway.base import RecordGateway
from hep_tracker.progress.notify import CompletionsChanged
from hep_tracker.services.program_service import ClientProgramService


def _log_completion_change(event: CompletionsChanged) -> None:
    logger.info(
        f"completion-updated: client={event.client_email} day={event.day} "
        f"created={list(event.created)} deleted={list(event.deleted)}"
    )


def create_app(gateway: RecordGateway | None = None) -> FastAPI:
    """Build the API application.

    Args:
        gateway: Record store to use; when omitted one is created from settings
            on startup and closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_gateway = gateway is None
        active_gateway = gateway if gateway is not None else create_gateway()
        service = ClientProgramService(active_gateway)
        service.notifier.subscribe(_log_completion_change)
        app.state.program_service = service
        logger.info(f"Home exercise program API started (record_store={settings.record_store})")
        try:
            yield
        finally:
            app.state.program_service = None
            if owns_gateway:
                await active_gateway.aclose()
            logger.info("Home exercise program API stopped")

    app = FastAPI(title="Home Exercise Program Tracker", version=__version__, lifespan=lifespan)
    app.include_router(clients_router)
    app.include_router(therapist_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "record_store": settings.record_store}

    return app


setup_logger(level=settings.log_level, log_file=settings.log_file)
app = create_app()
