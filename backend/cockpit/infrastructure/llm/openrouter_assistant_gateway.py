"""OpenRouter assistant gateway — concrete implementation of the AssistantGateway port.

Reuses the ChatProvider (OpenRouterClient) for API calls and adds the
workshop prompt engineering: draft analysis, speech, text and image
generation, web-grounded search and structured cost estimation.
"""

import base64
import json
import logging
import re

from cockpit.application.interfaces import (
    AssistantGateway,
    ChatProvider,
    CostEstimate,
    GroundedAnswer,
    GroundingSource,
    ImageData,
    ImageInput,
    Location,
    SpeechOutput,
    UnavailableSpeechOutput,
)
from cockpit.domain.entities import ChatMessage, ContentPart, ProjectRecord
from cockpit.domain.exceptions import AssistantUnavailableError, ChatProviderError
from cockpit.infrastructure.logging.activity_logger import ActivityLogger, ActivityStage

logger = logging.getLogger(__name__)
alog = ActivityLogger("AssistantGateway")

_ANALYZE_SYSTEM_PROMPT = (
    "És a Yara, inteligência Evaldo.OS para marcenaria industrial. "
    "Analisa rascunhos técnicos com precisão. "
    "Responde de forma curta e assertiva em português de Portugal."
)

_TEXT_SYSTEM_PROMPT = (
    "Atue como um consultor sênior de marcenaria e design. Forneça análises técnicas, "
    "descrições claras e listas de materiais precisas baseadas nas imagens e solicitações. "
    "Suas respostas devem ser profissionais, como se fossem para um cliente ou marceneiro."
)

_SEARCH_SYSTEM_PROMPT = (
    "Você é Iara, uma assistente de pesquisa para o MarcenApp. Responda às perguntas do "
    "usuário de forma concisa e útil, usando as ferramentas de busca para encontrar "
    "informações atualizadas. Sempre que usar informações da web ou de mapas, cite suas fontes."
)

_SPEECH_SYSTEM_PROMPT = "Lê o texto do utilizador em voz alta, exatamente como escrito, sem acrescentar nada."

OFFLINE_MESSAGE = (
    "Mestre, a Iara está em modo offline (chave API não detectada). "
    "Por favor, configure sua Chave API nas variáveis de ambiente "
    "para restaurar a orquestração neural completa."
)
ERROR_MESSAGE = "Erro na orquestração neural. Verifique sua conexão."
EMPTY_REPLY_MESSAGE = "Sem resposta operacional."

_COST_SCHEMA = {
    "type": "json_schema",
    "json_schema": {
        "name": "project_costs",
        "strict": True,
        "schema": {
            "type": "object",
            "properties": {
                "materialCost": {"type": "number"},
                "laborCost": {"type": "number"},
            },
            "required": ["materialCost", "laborCost"],
            "additionalProperties": False,
        },
    },
}

_BRACED_BLOCK_RE = re.compile(r"\{.*?\}", re.DOTALL)
_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+);base64,(?P<data>.+)$", re.DOTALL)


def _strip_fences(text: str) -> str:
    """Remove a surrounding ```json fence if the model added one."""
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


class OpenRouterAssistantGateway(AssistantGateway):
    """Infrastructure adapter — the workshop's view of the external assistant.

    ``provider`` is None when no API key is configured; every request then
    resolves to the offline behaviour of the operation.
    """

    def __init__(
        self,
        provider: ChatProvider | None,
        *,
        assistant_model: str,
        image_model: str,
        speech_model: str,
        search_model: str,
        speech_voice: str = "alloy",
        speech_output: SpeechOutput | None = None,
    ):
        self._provider = provider
        self._assistant_model = assistant_model
        self._image_model = image_model
        self._speech_model = speech_model
        self._search_model = search_model
        self._speech_voice = speech_voice
        self._speech_output = speech_output or UnavailableSpeechOutput()

    @property
    def available(self) -> bool:
        return self._provider is not None

    def _require_provider(self) -> ChatProvider:
        if self._provider is None:
            raise AssistantUnavailableError()
        return self._provider

    @staticmethod
    def _user_message(prompt: str, images: list[ImageInput] | None = None) -> ChatMessage:
        if not images:
            return ChatMessage(role="user", content=prompt)
        parts = [ContentPart(type="text", text=prompt)]
        parts.extend(
            ContentPart(type="image_url", image_url={"url": img.data_url}) for img in images
        )
        return ChatMessage(role="user", content=parts)

    # ── Chat pipeline ───────────────────────────────────────────────

    async def analyze_draft(self, prompt: str, image: ImageInput | None = None) -> str:
        try:
            provider = self._require_provider()
            messages = [
                ChatMessage(role="system", content=_ANALYZE_SYSTEM_PROMPT),
                self._user_message(prompt, [image] if image else None),
            ]
            async with alog.timed_step(ActivityStage.ASSISTANT, "Analyzing draft", image=bool(image)):
                result = await provider.complete(messages, self._assistant_model)
        except AssistantUnavailableError:
            logger.warning("Assistant offline — no API key configured")
            return OFFLINE_MESSAGE
        except Exception:
            logger.exception("Draft analysis failed")
            return ERROR_MESSAGE
        return result.content.strip() or EMPTY_REPLY_MESSAGE

    async def speak(self, text: str) -> None:
        clean = _BRACED_BLOCK_RE.sub("", text or "").strip()
        if not clean or self._provider is None or not self._speech_output.available:
            return
        try:
            result = await self._provider.complete(
                [
                    ChatMessage(role="system", content=_SPEECH_SYSTEM_PROMPT),
                    ChatMessage(role="user", content=clean),
                ],
                self._speech_model,
                options={
                    "modalities": ["text", "audio"],
                    "audio": {"voice": self._speech_voice, "format": "wav"},
                },
            )
            if not result.audio_base64:
                return
            await self._speech_output.play(base64.b64decode(result.audio_base64), "audio/wav")
            alog.step_complete(ActivityStage.SPEECH, "Reply spoken", chars=len(clean))
        except Exception as exc:
            # Speech is best-effort; the reply text is already delivered
            alog.step_warning(ActivityStage.SPEECH, "Speech synthesis skipped", error=exc)

    # ── Single-request operations ───────────────────────────────────

    async def generate_text(self, prompt: str, images: list[ImageInput] | None = None) -> str:
        provider = self._require_provider()
        async with alog.timed_step(ActivityStage.ASSISTANT, "Generating text", images=len(images or [])):
            result = await provider.complete(
                [
                    ChatMessage(role="system", content=_TEXT_SYSTEM_PROMPT),
                    self._user_message(prompt, images),
                ],
                self._assistant_model,
            )
        return result.content.strip()

    async def generate_image(self, images: list[ImageInput], prompt: str) -> ImageData:
        provider = self._require_provider()
        async with alog.timed_step(ActivityStage.ASSISTANT, "Generating image", references=len(images)):
            result = await provider.complete(
                [self._user_message(prompt, images)],
                self._image_model,
                options={"modalities": ["image", "text"]},
            )
        for image in result.images:
            url = (image.get("image_url") or {}).get("url", "")
            match = _DATA_URL_RE.match(url)
            if match:
                return ImageData(data=match.group("data"), mime_type=match.group("mime"))
        raise ChatProviderError(
            provider=provider.provider_name,
            status_code=502,
            message="Response contained no image",
        )

    async def search_grounded(self, prompt: str, location: Location | None = None) -> GroundedAnswer:
        provider = self._require_provider()
        query = prompt
        if location is not None:
            query = f"{prompt}\n\nLocalização do utilizador: {location.latitude:.5f}, {location.longitude:.5f}"
        async with alog.timed_step(ActivityStage.ASSISTANT, "Grounded search"):
            result = await provider.complete(
                [
                    ChatMessage(role="system", content=_SEARCH_SYSTEM_PROMPT),
                    ChatMessage(role="user", content=query),
                ],
                self._search_model,
                options={"plugins": [{"id": "web"}]},
            )

        sources: list[GroundingSource] = []
        seen: set[str] = set()
        for annotation in result.annotations:
            if annotation.get("type") != "url_citation":
                continue
            citation = annotation.get("url_citation") or {}
            url = citation.get("url", "")
            if url and url not in seen:
                seen.add(url)
                sources.append(GroundingSource(url=url, title=citation.get("title", "")))
        return GroundedAnswer(text=result.content.strip(), sources=sources)

    async def estimate_costs(self, project: ProjectRecord, market_context: str = "") -> CostEstimate:
        provider = self._require_provider()
        prompt = (
            f"Estime custos para o projeto: {project.name}. "
            f"BOM: {project.bom or 'não definida'}. "
            f"Mercado: {market_context or 'preços médios atuais'}"
        )
        async with alog.timed_step(ActivityStage.ASSISTANT, "Estimating costs", project=project.id):
            result = await provider.complete(
                [ChatMessage(role="user", content=prompt)],
                self._assistant_model,
                options={"response_format": _COST_SCHEMA},
            )
        try:
            data = json.loads(_strip_fences(result.content))
            return CostEstimate(
                material_cost=float(data.get("materialCost") or 0),
                labor_cost=float(data.get("laborCost") or 0),
            )
        except (ValueError, TypeError, AttributeError) as exc:
            raise ChatProviderError(
                provider=provider.provider_name,
                status_code=502,
                message=f"Unparseable cost estimate: {exc}",
            ) from exc
