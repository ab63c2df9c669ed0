"""Logging setup for the cockpit service.

Each ``log_level_*`` setting controls a group of loggers, so the SQL echo,
the outbound HTTP chatter and the remote poller can be turned down
independently of the sync and assistant activity logs.
"""

import logging
import sys

from cockpit.config import Settings, get_settings

_LOG_FORMAT = "%(levelname)-8s %(name)s — %(message)s"

# Settings field → logger names it governs
LOGGER_GROUPS: dict[str, tuple[str, ...]] = {
    "log_level_sql": ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite"),
    "log_level_http": ("httpx", "httpcore"),
    "log_level_uvicorn": ("uvicorn", "uvicorn.access", "uvicorn.error"),
    "log_level_sync": (
        "ProjectSyncService",
        "cockpit.application.services.project_sync_service",
        "cockpit.infrastructure.remote",
    ),
    "log_level_openrouter": (
        "WorkshopService",
        "AssistantGateway",
        "cockpit.infrastructure.openrouter",
        "cockpit.infrastructure.llm",
    ),
}


def setup_logging(settings: Settings | None = None) -> dict[str, int]:
    """Apply the root and per-group levels; returns logger name → level applied.

    Called once from the lifespan. A stderr handler is installed only when
    nothing else (uvicorn, pytest) has configured the root logger.
    """
    settings = settings or get_settings()

    root = logging.getLogger()
    root.setLevel(_parse_level(settings.log_level))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(handler)

    applied: dict[str, int] = {}
    for field_name, logger_names in LOGGER_GROUPS.items():
        level = _parse_level(getattr(settings, field_name, "INFO"))
        for name in logger_names:
            logging.getLogger(name).setLevel(level)
            applied[name] = level

    logging.getLogger(__name__).debug(
        "Logging configured: root=%s %s",
        settings.log_level,
        " ".join(f"{f.removeprefix('log_level_')}={getattr(settings, f)}" for f in LOGGER_GROUPS),
    )
    return applied


def _parse_level(raw: str) -> int:
    """Level name → logging constant; unknown names fall back to INFO."""
    level = logging.getLevelName(str(raw).strip().upper())
    return level if isinstance(level, int) else logging.INFO
