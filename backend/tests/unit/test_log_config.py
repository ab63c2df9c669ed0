"""Unit tests for per-group logging levels."""

import logging

from cockpit.config import Settings
from cockpit.infrastructure.logging.log_config import setup_logging


def test_groups_get_their_configured_level():
    settings = Settings(_env_file=None, log_level_sql="ERROR", log_level_sync="DEBUG", log_level_http="bogus")

    applied = setup_logging(settings)

    assert applied["sqlalchemy.engine"] == logging.ERROR
    assert logging.getLogger("cockpit.infrastructure.remote").level == logging.DEBUG
    assert applied["ProjectSyncService"] == logging.DEBUG
    assert applied["httpx"] == logging.INFO


def test_assistant_loggers_follow_the_openrouter_level():
    settings = Settings(_env_file=None, log_level_openrouter="WARNING")

    applied = setup_logging(settings)

    assert applied["AssistantGateway"] == logging.WARNING
    assert applied["WorkshopService"] == logging.WARNING
