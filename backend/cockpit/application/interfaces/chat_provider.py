"""Abstract chat provider interface — port for AI provider adapters.

Each AI provider (OpenRouter, etc.) implements this interface.
"""

from abc import ABC, abstractmethod
from typing import Any

from cockpit.domain.entities import ChatMessage, ChatCompletionResult


class ChatProvider(ABC):
    """Port — defines what the application layer needs from any chat provider."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique name identifying this provider (e.g. 'openrouter')."""
        ...

    @abstractmethod
    async def complete(
        self,
        messages: list[ChatMessage],
        model: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ChatCompletionResult:
        """Send a non-streaming chat completion request.

        Args:
            messages: The conversation history.
            model: The model identifier (e.g. 'google/gemini-3-flash-preview').
            temperature: Sampling temperature (0.0–2.0).
            max_tokens: Maximum tokens in the response.
            options: Extra request fields passed through verbatim
                (modalities, plugins, response_format, audio).

        Returns:
            A ChatCompletionResult with content, media, annotations and usage.

        Raises:
            ChatProviderError: If the provider returns an error.
        """
        ...
