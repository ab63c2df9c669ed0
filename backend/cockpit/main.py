"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cockpit.application.schemas import ClientListEvent
from cockpit.config import get_settings
from cockpit.domain.entities import ProjectRecord
from cockpit.infrastructure.dependencies import CockpitContext, build_context
from cockpit.infrastructure.logging.log_config import setup_logging
from cockpit.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


def _client_list_broadcaster(context: CockpitContext):
    """Listener that pushes every change of the unified list to SSE clients."""

    async def broadcast(records: list[ProjectRecord]) -> None:
        event = ClientListEvent.build(records, context.sync.active_id, context.sync.mode.value)
        await context.sse.broadcast("clients", event.model_dump(mode="json", by_alias=True))

    return broadcast


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — open the local store, start the sync session."""
    settings = get_settings()
    setup_logging(settings)

    # 1. Build the service graph and open the local store (fatal on failure)
    context = build_context(settings)
    await context.storage.open()

    # 2. Load local records, sign in to the cloud when configured
    context.startup_notices = await context.sync.start()
    for notice in context.startup_notices:
        logger.warning("Startup notice: %s", notice)

    # 3. Fan list changes out to the UIs
    broadcaster = _client_list_broadcaster(context)
    context.sync.add_listener(broadcaster)
    app.state.cockpit = context

    yield

    # Shutdown
    context.sync.remove_listener(broadcaster)
    app.state.cockpit = None
    await context.close()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cockpit.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
