"""OpenRouter chat-completions adapter for the ChatProvider port.

Besides text, the workshop asks OpenRouter for images (``modalities``),
spoken audio (``audio``), web-grounded answers (``plugins``) and JSON
output (``response_format``). Those request fields arrive through
``options`` untouched; the matching response parts are lifted into
ChatCompletionResult.
"""

import logging
from typing import Any

import httpx

from cockpit.application.interfaces.chat_provider import ChatProvider
from cockpit.domain.entities import ChatCompletionResult, ChatMessage, TokenUsage
from cockpit.domain.exceptions import ChatProviderError

logger = logging.getLogger(__name__)

_RESERVED_KEYS = frozenset({"model", "messages"})
_REQUEST_TIMEOUT = 120.0


class OpenRouterClient(ChatProvider):
    """Infrastructure adapter for https://openrouter.ai/api/v1.

    An injected ``http_client`` is shared and never closed here; without
    one, each request opens and closes its own client.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        app_name: str = "Cockpit Yara",
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._app_name = app_name
        self._http_client = http_client

    @property
    def provider_name(self) -> str:
        return "openrouter"

    # ── Request ─────────────────────────────────────────────────────

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Title": self._app_name,
        }

    @staticmethod
    def _wire_message(msg: ChatMessage) -> dict[str, Any]:
        if isinstance(msg.content, str):
            return {"role": msg.role, "content": msg.content}
        content: list[dict[str, Any]] = []
        for part in msg.content:
            if part.type == "text":
                content.append({"type": "text", "text": part.text or ""})
            elif part.type == "image_url" and part.image_url:
                content.append({"type": "image_url", "image_url": part.image_url})
        return {"role": msg.role, "content": content}

    def _build_payload(
        self,
        messages: list[ChatMessage],
        model: str,
        temperature: float | None,
        max_tokens: int | None,
        options: dict[str, Any] | None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {k: v for k, v in (options or {}).items() if k not in _RESERVED_KEYS}
        payload["model"] = model
        payload["messages"] = [self._wire_message(m) for m in messages]
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        return payload

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        url = f"{self._base_url}/chat/completions"
        if self._http_client is not None:
            return await self._http_client.post(url, headers=self._headers(), json=payload)
        async with httpx.AsyncClient(timeout=_REQUEST_TIMEOUT) as client:
            return await client.post(url, headers=self._headers(), json=payload)

    async def complete(
        self,
        messages: list[ChatMessage],
        model: str,
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
        options: dict[str, Any] | None = None,
    ) -> ChatCompletionResult:
        payload = self._build_payload(messages, model, temperature, max_tokens, options)
        logger.debug("OpenRouter request: model=%s extras=%s", model, sorted(options or {}))
        try:
            response = await self._post(payload)
        except httpx.HTTPError as exc:
            raise ChatProviderError(self.provider_name, 503, f"Connection failed: {exc}") from exc

        if response.status_code != 200:
            raise ChatProviderError(self.provider_name, response.status_code, self._error_message(response))
        return self._to_result(response.json())

    # ── Response ────────────────────────────────────────────────────

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            error = response.json().get("error") or {}
        except (ValueError, AttributeError):
            return response.text
        if isinstance(error, dict):
            return str(error.get("message") or response.text)
        return str(error)

    def _to_result(self, data: dict[str, Any]) -> ChatCompletionResult:
        # OpenRouter can answer 200 with an error body (upstream provider failure)
        error = data.get("error")
        if error:
            raise ChatProviderError(
                self.provider_name, error.get("code", 500), error.get("message", "Unknown error")
            )
        choices = data.get("choices") or []
        if not choices:
            raise ChatProviderError(self.provider_name, 500, "No choices in response")

        choice = choices[0]
        message = choice.get("message") or {}
        usage = data.get("usage") or {}
        audio = message.get("audio") or {}
        return ChatCompletionResult(
            model=data.get("model", ""),
            content=self._text_of(message.get("content")),
            finish_reason=choice.get("finish_reason") or "stop",
            usage=TokenUsage(
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
                cost=usage.get("cost"),
            ),
            images=message.get("images") or [],
            annotations=message.get("annotations") or [],
            audio_base64=audio.get("data") or None,
            provider=self.provider_name,
        )

    @staticmethod
    def _text_of(content: Any) -> str:
        """String content as-is; part lists joined from their text parts."""
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            return "".join(
                p.get("text", "") for p in content if isinstance(p, dict) and p.get("type") == "text"
            )
        return ""
