"""Unit tests for OpenRouterAssistantGateway — prompts, options and response parsing."""

import base64

import pytest

from cockpit.application.interfaces import ChatProvider, ImageInput, Location, SpeechOutput
from cockpit.domain.entities import ChatCompletionResult, ProjectRecord
from cockpit.domain.exceptions import AssistantUnavailableError, ChatProviderError
from cockpit.infrastructure.llm.openrouter_assistant_gateway import (
    EMPTY_REPLY_MESSAGE,
    ERROR_MESSAGE,
    OFFLINE_MESSAGE,
    OpenRouterAssistantGateway,
)


class FakeProvider(ChatProvider):
    """Returns a canned result and records every call."""

    def __init__(self, result: ChatCompletionResult | None = None, error: Exception | None = None):
        self.result = result or ChatCompletionResult(model="m", content="ok", finish_reason="stop")
        self.error = error
        self.calls: list[dict] = []

    @property
    def provider_name(self) -> str:
        return "fake"

    async def complete(self, messages, model, *, temperature=None, max_tokens=None, options=None):
        self.calls.append({"messages": messages, "model": model, "options": options})
        if self.error is not None:
            raise self.error
        return self.result


class RecordingSpeech(SpeechOutput):
    def __init__(self):
        self.clips: list[tuple[bytes, str]] = []

    async def play(self, audio: bytes, mime_type: str) -> None:
        self.clips.append((audio, mime_type))


def _gateway(provider: ChatProvider | None, speech: SpeechOutput | None = None) -> OpenRouterAssistantGateway:
    return OpenRouterAssistantGateway(
        provider,
        assistant_model="assistant-model",
        image_model="image-model",
        speech_model="speech-model",
        search_model="search-model",
        speech_voice="alloy",
        speech_output=speech,
    )


def _result(content: str = "", **kwargs) -> ChatCompletionResult:
    return ChatCompletionResult(model="m", content=content, finish_reason="stop", **kwargs)


# ── analyze_draft ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_analyze_without_key_returns_offline_message():
    assert await _gateway(None).analyze_draft("Olá") == OFFLINE_MESSAGE


@pytest.mark.asyncio
async def test_analyze_provider_failure_returns_error_message():
    provider = FakeProvider(error=ChatProviderError("fake", 500, "down"))

    assert await _gateway(provider).analyze_draft("Olá") == ERROR_MESSAGE


@pytest.mark.asyncio
async def test_analyze_empty_reply_uses_fallback_text():
    provider = FakeProvider(_result("   "))

    assert await _gateway(provider).analyze_draft("Olá") == EMPTY_REPLY_MESSAGE


@pytest.mark.asyncio
async def test_analyze_sends_image_as_data_url():
    provider = FakeProvider(_result("Rascunho recebido."))

    reply = await _gateway(provider).analyze_draft("Vê isto", ImageInput(data="aGk=", mime_type="image/jpeg"))

    assert reply == "Rascunho recebido."
    call = provider.calls[0]
    assert call["model"] == "assistant-model"
    assert call["messages"][0].role == "system"
    parts = call["messages"][1].content
    assert parts[1].image_url == {"url": "data:image/jpeg;base64,aGk="}


# ── speak ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_speak_strips_braced_blocks_and_plays_audio():
    audio = base64.b64encode(b"RIFFwav").decode()
    provider = FakeProvider(_result("", audio_base64=audio))
    speech = RecordingSpeech()

    await _gateway(provider, speech).speak('Pronto. {"status": "ok"}')

    call = provider.calls[0]
    assert call["messages"][1].content == "Pronto."
    assert call["options"]["modalities"] == ["text", "audio"]
    assert call["options"]["audio"] == {"voice": "alloy", "format": "wav"}
    assert speech.clips == [(b"RIFFwav", "audio/wav")]


@pytest.mark.asyncio
async def test_speak_never_raises():
    provider = FakeProvider(error=ChatProviderError("fake", 500, "down"))

    await _gateway(provider, RecordingSpeech()).speak("Olá")


@pytest.mark.asyncio
async def test_speech_failure_is_logged_under_the_gateway_name(caplog):
    provider = FakeProvider(error=ChatProviderError("fake", 500, "down"))

    with caplog.at_level("WARNING", logger="AssistantGateway"):
        await _gateway(provider, RecordingSpeech()).speak("Olá")

    assert [r.name for r in caplog.records] == ["AssistantGateway"]
    assert "Speech synthesis skipped" in caplog.records[0].getMessage()


@pytest.mark.asyncio
async def test_speak_skips_request_without_speech_output():
    provider = FakeProvider()

    await _gateway(provider).speak("Olá")

    assert provider.calls == []


# ── Single-request operations ────────────────────────────────────────


@pytest.mark.asyncio
async def test_operations_raise_when_offline():
    gateway = _gateway(None)

    with pytest.raises(AssistantUnavailableError):
        await gateway.generate_text("BOM")
    with pytest.raises(AssistantUnavailableError):
        await gateway.estimate_costs(ProjectRecord(name="Ana"))


@pytest.mark.asyncio
async def test_generate_image_decodes_data_url():
    images = [{"type": "image_url", "image_url": {"url": "data:image/webp;base64,aW1n"}}]
    provider = FakeProvider(_result("", images=images))

    image = await _gateway(provider).generate_image([ImageInput(data="c2s=")], "render")

    assert image.data == "aW1n"
    assert image.mime_type == "image/webp"
    assert provider.calls[0]["model"] == "image-model"
    assert provider.calls[0]["options"] == {"modalities": ["image", "text"]}


@pytest.mark.asyncio
async def test_generate_image_without_image_raises():
    provider = FakeProvider(_result("Não consigo."))

    with pytest.raises(ChatProviderError) as exc_info:
        await _gateway(provider).generate_image([], "render")

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_search_collects_unique_citations():
    annotations = [
        {"type": "url_citation", "url_citation": {"url": "https://a.example", "title": "A"}},
        {"type": "url_citation", "url_citation": {"url": "https://a.example", "title": "A again"}},
        {"type": "url_citation", "url_citation": {"url": "https://b.example", "title": "B"}},
        {"type": "file", "file": {}},
    ]
    provider = FakeProvider(_result("Dois fornecedores.", annotations=annotations))

    answer = await _gateway(provider).search_grounded("MDF", Location(-23.55, -46.63))

    assert answer.text == "Dois fornecedores."
    assert [(s.url, s.title) for s in answer.sources] == [("https://a.example", "A"), ("https://b.example", "B")]
    call = provider.calls[0]
    assert call["options"] == {"plugins": [{"id": "web"}]}
    assert "-23.55000, -46.63000" in call["messages"][1].content


@pytest.mark.asyncio
async def test_estimate_costs_parses_fenced_json():
    provider = FakeProvider(_result('```json\n{"materialCost": 1200, "laborCost": 800.5}\n```'))

    estimate = await _gateway(provider).estimate_costs(ProjectRecord(name="Ana", bom="3x MDF"))

    assert estimate.material_cost == 1200.0
    assert estimate.labor_cost == 800.5
    assert estimate.total == 2000.5
    assert provider.calls[0]["options"]["response_format"]["type"] == "json_schema"


@pytest.mark.asyncio
async def test_estimate_costs_rejects_unparseable_reply():
    provider = FakeProvider(_result("cerca de mil reais"))

    with pytest.raises(ChatProviderError):
        await _gateway(provider).estimate_costs(ProjectRecord(name="Ana"))
