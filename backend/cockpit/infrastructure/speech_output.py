"""Speech output that hands synthesized audio to the connected UIs over SSE."""

import base64
import logging

from cockpit.application.interfaces import SpeechOutput
from cockpit.application.services.sse_manager import SSEManager

logger = logging.getLogger(__name__)


class BroadcastSpeechOutput(SpeechOutput):
    """The server has no speakers; browsers subscribed to the stream play the clip."""

    def __init__(self, sse: SSEManager):
        self._sse = sse

    @property
    def available(self) -> bool:
        return self._sse.client_count > 0

    async def play(self, audio: bytes, mime_type: str) -> None:
        await self._sse.broadcast(
            "speech",
            {"mime_type": mime_type, "audio_base64": base64.b64encode(audio).decode("ascii")},
        )
        logger.debug("Speech clip broadcast (%d bytes) to %d client(s)", len(audio), self._sse.client_count)
