"""Snapshot listener emulation — an asyncio task that polls and delivers changes."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from cockpit.application.interfaces import Subscription

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Fetcher returns (fingerprint, snapshot); equal fingerprints mean "unchanged".
Fetcher = Callable[[], Awaitable[tuple[Any, T]]]


class PollingSubscription(Subscription, Generic[T]):
    """Delivers the first snapshot immediately, then every changed one.

    Runs as an asyncio.Task; ``close()`` cancels it. A failed poll is logged
    and retried on the next tick so a flaky network does not end the listener.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        callback: Callable[[T], Awaitable[None]],
        interval: float,
        name: str = "snapshot",
    ) -> None:
        self._fetcher = fetcher
        self._callback = callback
        self._interval = interval
        self._name = name
        self._fingerprint: Any = object()
        self._task: asyncio.Task | None = None

    async def start(self) -> "PollingSubscription[T]":
        """Fetch and deliver the initial snapshot, then start polling."""
        await self._poll_once()
        self._task = asyncio.create_task(self._loop())
        logger.debug("Subscription %s started", self._name)
        return self

    async def close(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Subscription %s closed", self._name)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._poll_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Subscription %s polling error", self._name)

    async def _poll_once(self) -> None:
        fingerprint, snapshot = await self._fetcher()
        if fingerprint == self._fingerprint:
            return
        self._fingerprint = fingerprint
        await self._callback(snapshot)
