"""Optional platform capabilities, injected with an explicit unavailable variant."""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class SpeechOutput(ABC):
    """Plays synthesized speech somewhere the operator can hear it."""

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    async def play(self, audio: bytes, mime_type: str) -> None:
        ...


class UnavailableSpeechOutput(SpeechOutput):
    """No audio device — synthesized speech is dropped."""

    @property
    def available(self) -> bool:
        return False

    async def play(self, audio: bytes, mime_type: str) -> None:
        logger.debug("Speech output unavailable; dropping %d bytes of %s", len(audio), mime_type)
