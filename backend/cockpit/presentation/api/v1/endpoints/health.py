"""Health check endpoint — reports sync and assistant availability."""

from fastapi import APIRouter, Request

from cockpit.config import get_settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Returns the current application health status."""
    settings = get_settings()
    context = getattr(request.app.state, "cockpit", None)
    return {
        "status": "healthy" if context is not None else "starting",
        "version": settings.app_version,
        "environment": settings.app_env,
        "sync_mode": context.sync.mode.value if context is not None else None,
        "assistant": "online" if settings.assistant_enabled else "offline",
        "notices": list(context.startup_notices) if context is not None else [],
    }
