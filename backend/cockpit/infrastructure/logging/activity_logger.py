"""Colored activity logger — ANSI-colored console output for workshop activity.

Color scheme:
    🟢 Green   — Local store
    🔵 Blue    — Cloud store
    🟠 Cyan    — Sync decisions
    🟣 Magenta — Assistant requests
    🟡 Yellow  — Speech
    🔴 Red     — Errors
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any


class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


class ActivityStage:
    """Predefined activity stages with colors and icons."""

    LOCAL = ("LOCAL", _Colors.GREEN, "💾")
    CLOUD = ("CLOUD", _Colors.BLUE, "☁️")
    SYNC = ("SYNC", _Colors.CYAN, "🔄")
    ASSISTANT = ("ASSISTANT", _Colors.MAGENTA, "🤖")
    SPEECH = ("SPEECH", _Colors.YELLOW, "🔊")
    ERROR = ("ERROR", _Colors.RED, "❌")


def _kv(kwargs: dict[str, Any]) -> str:
    return " | ".join(f"{k}={v}" for k, v in kwargs.items())


class ActivityLogger:
    """Color-coded logger for sync and assistant activity.

    Usage:
        log = ActivityLogger("ProjectSyncService")
        log.step_start(ActivityStage.CLOUD, "Adding client", name="Ana")
        log.step_complete(ActivityStage.CLOUD, "Client stored", id="abc")
    """

    def __init__(self, component_name: str):
        self._logger = logging.getLogger(component_name)

    def step_start(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        formatted = (
            f"{color}{_Colors.BOLD}{icon} [{label}]{_Colors.RESET} "
            f"{color}{message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += f" {_Colors.GRAY}({_kv(kwargs)}){_Colors.RESET}"
        self._logger.info(formatted)

    def step_complete(self, stage: tuple[str, str, str], message: str, **kwargs: Any) -> None:
        label, color, icon = stage
        formatted = (
            f"{color}{icon} [{label}]{_Colors.RESET} "
            f"{_Colors.GREEN}✓ {message}{_Colors.RESET}"
        )
        if kwargs:
            formatted += f" {_Colors.GRAY}({_kv(kwargs)}){_Colors.RESET}"
        self._logger.info(formatted)

    def step_warning(self, stage: tuple[str, str, str], message: str, error: Exception | None = None) -> None:
        """Log a recovered failure (the operation degraded instead of failing)."""
        label, _, icon = stage
        formatted = f"{_Colors.YELLOW}{icon} [{label}] {message}{_Colors.RESET}"
        if error:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.warning(formatted)

    def step_error(self, stage: tuple[str, str, str], message: str, error: Exception | None = None) -> None:
        label, _, icon = stage
        formatted = (
            f"{_Colors.RED}{_Colors.BOLD}❌ [{label}]{_Colors.RESET} "
            f"{_Colors.RED}{message}{_Colors.RESET}"
        )
        if error:
            formatted += f" {_Colors.DIM}→ {type(error).__name__}: {error}{_Colors.RESET}"
        self._logger.error(formatted)

    def detail(self, message: str, **kwargs: Any) -> None:
        formatted = f"   {_Colors.GRAY}├─ {message}{_Colors.RESET}"
        if kwargs:
            formatted += f" {_Colors.DIM}({_kv(kwargs)}){_Colors.RESET}"
        self._logger.debug(formatted)

    @asynccontextmanager
    async def timed_step(self, stage: tuple[str, str, str], message: str, **kwargs: Any):
        """Async context manager that logs start/end with elapsed time.

        Usage:
            async with log.timed_step(ActivityStage.ASSISTANT, "Analyzing draft"):
                reply = await gateway.analyze_draft(...)
        """
        self.step_start(stage, message, **kwargs)
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            elapsed = time.perf_counter() - start
            self.step_error(stage, f"{message} — failed after {elapsed:.2f}s", error=e)
            raise
        else:
            elapsed = time.perf_counter() - start
            self.step_complete(stage, f"{message} — {elapsed:.2f}s")
