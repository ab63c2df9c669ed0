"""Shared fixtures for integration tests — a real service graph on a temporary SQLite file."""

import httpx
import pytest_asyncio

from cockpit.config import Settings
from cockpit.infrastructure.dependencies import build_context
from cockpit.main import app


@pytest_asyncio.fixture
async def cockpit_context(tmp_path):
    """Local-only, assistant-offline context, opened and registered on the app.

    ASGITransport does not run the lifespan, so the fixture plays its part.
    """
    settings = Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'cockpit.db'}",
        firebase_api_key="",
        openrouter_api_key="",
    )
    context = build_context(settings)
    await context.storage.open()
    context.startup_notices = await context.sync.start()
    app.state.cockpit = context
    yield context
    app.state.cockpit = None
    await context.close()


@pytest_asyncio.fixture
async def client(cockpit_context):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
