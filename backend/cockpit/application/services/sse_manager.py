"""SSE Manager — in-process event broadcaster for client list updates."""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from typing import Any

logger = logging.getLogger(__name__)

# Events a slow client may fall behind by before it is dropped
_QUEUE_SIZE = 100


def format_event(event_type: str, data: dict[str, Any]) -> str:
    return f"event: {event_type}\ndata: {json.dumps(data, default=str)}\n\n"


class SSEManager:
    """Fans sync changes out to every connected UI.

    Each connected client gets its own bounded asyncio.Queue; a client whose
    queue fills up is disconnected rather than blocking the broadcaster.
    """

    def __init__(self) -> None:
        self._queues: list[asyncio.Queue[str | None]] = []

    async def subscribe(self, initial: str | None = None) -> AsyncGenerator[str, None]:
        """Yield formatted SSE strings, starting with ``initial`` when given.

        The generator unsubscribes when the client disconnects.
        """
        queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=_QUEUE_SIZE)
        self._queues.append(queue)
        try:
            if initial is not None:
                yield initial
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield event
        finally:
            if queue in self._queues:
                self._queues.remove(queue)

    async def broadcast(self, event_type: str, data: dict[str, Any]) -> None:
        """Broadcast an SSE event to all connected clients."""
        sse_message = format_event(event_type, data)
        dead_queues: list[asyncio.Queue[str | None]] = []

        for queue in self._queues:
            try:
                queue.put_nowait(sse_message)
            except asyncio.QueueFull:
                dead_queues.append(queue)
                logger.warning("SSE client queue full — disconnecting")

        for q in dead_queues:
            self._queues.remove(q)
            # Drain one slot so the sentinel fits
            q.get_nowait()
            q.put_nowait(None)

    async def shutdown(self) -> None:
        """Disconnect all connected clients."""
        for queue in self._queues:
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(None)
        self._queues.clear()

    @property
    def client_count(self) -> int:
        return len(self._queues)
