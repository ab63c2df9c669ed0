"""Workshop service — the chat pipeline and the assistant-backed shop tools.

Every operation resolves the record through the sync orchestrator, calls the
assistant gateway once and persists the result back through the orchestrator.
Assistant failures become notices; the record is left as it was.
"""

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TypeVar

from cockpit.application.interfaces import (
    AssistantGateway,
    CostEstimate,
    GroundedAnswer,
    ImageData,
    ImageInput,
    Location,
)
from cockpit.application.services.profile_service import CarpenterProfileService
from cockpit.application.services.project_sync_service import ProjectSyncService
from cockpit.domain.entities import CarpenterProfile, ChatEntry, MessageSender, ProjectRecord
from cockpit.domain.exceptions import (
    AssistantUnavailableError,
    ChatProviderError,
    InsufficientCreditsError,
    ValidationError,
)
from cockpit.infrastructure.logging.activity_logger import ActivityLogger, ActivityStage

logger = logging.getLogger(__name__)
alog = ActivityLogger("WorkshopService")

T = TypeVar("T")

NOTICE_NO_ACTIVE_CLIENT = "Sintonize um cliente."
NOTICE_ASSISTANT_ERROR = "Erro Yara."
NOTICE_INSUFFICIENT_CREDITS = "Créditos Insuficientes."
DEFAULT_IMAGE_PROMPT = "Analisa este rascunho técnico."

# Credits spent per paid operation
IMAGE_ANALYSIS_COST = 1
RENDER_COST = 1

BOM_PROMPT = (
    'MESTRE BENTO: Gere uma LISTA DE MATERIAIS REALISTA para o projeto: "{description}". '
    "Use MDF 18mm para frentes e 15mm caixaria. Enumere ferragens profissionais."
)
ECONOMY_PROMPT = "Analise economia para esta BOM: {bom}"
CLAUSE_PROMPT = "Gere uma cláusula de proteção jurídica para marcenaria no projeto: {name}"
RENDER_PROMPT = (
    "YARA MATERIALIZATION: {instruction}. "
    "INDUSTRIAL MASTER DIRECTIVES: "
    "1. AMBIENTE COMPLETO: Renderize o móvel em um cenário de alto padrão. "
    "2. ILUMINAÇÃO: Use perfis realistas e luz solar suave. "
    "3. TEXTURAS: O MDF deve ser ultra-nítido. "
    "4. QUALIDADE: 4K UHD, profundidade cinematográfica."
)


def format_brl(value: float) -> str:
    """1234.5 → 'R$ 1.234,50'."""
    text = f"{value:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"R$ {text}"


@dataclass
class ChatOutcome:
    """Result of one chat exchange."""

    record: ProjectRecord | None = None
    reply: ChatEntry | None = None
    notices: list[str] = field(default_factory=list)
    stale: bool = False


@dataclass
class ToolOutcome:
    """Result of a workshop tool; only the fields the tool produces are set."""

    notices: list[str] = field(default_factory=list)
    text: str = ""
    record: ProjectRecord | None = None
    estimate: CostEstimate | None = None
    answer: GroundedAnswer | None = None
    image: ImageData | None = None


class WorkshopService:
    """Orchestrates the assistant tools. Depends on the gateway port and the sync service (DI).

    With a profile service, image analysis and renders are paid in credits.
    Spoken replies run as background tasks so the text reply is not held up.
    """

    def __init__(
        self,
        sync: ProjectSyncService,
        gateway: AssistantGateway,
        profiles: CarpenterProfileService | None = None,
    ):
        self._sync = sync
        self._gateway = gateway
        self._profiles = profiles
        self._speech_tasks: set[asyncio.Task] = set()

    async def _ask(self, action: str, call: Awaitable[T]) -> tuple[T | None, list[str]]:
        """Await a gateway call, turning assistant failures into notices."""
        try:
            return await call, []
        except AssistantUnavailableError as exc:
            alog.step_warning(ActivityStage.ASSISTANT, f"{action}: assistant offline")
            return None, [str(exc)]
        except ChatProviderError as exc:
            alog.step_error(ActivityStage.ASSISTANT, f"{action} failed", error=exc)
            return None, [f"{NOTICE_ASSISTANT_ERROR} {exc.message}"]

    async def _charge(self, action: str, amount: int) -> list[str]:
        """Spend credits for a paid operation; a short balance becomes a notice."""
        if self._profiles is None:
            return []
        try:
            await self._profiles.consume_credits(amount)
        except InsufficientCreditsError as exc:
            alog.step_warning(ActivityStage.ASSISTANT, f"{action}: not charged", error=exc)
            return [NOTICE_INSUFFICIENT_CREDITS]
        return []

    # ── Speech ──────────────────────────────────────────────────────

    def _speak_later(self, text: str) -> None:
        task = asyncio.create_task(self._gateway.speak(text))
        self._speech_tasks.add(task)
        task.add_done_callback(self._speech_done)

    def _speech_done(self, task: asyncio.Task) -> None:
        self._speech_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Speech task failed", exc_info=task.exception())

    async def drain(self) -> None:
        """Wait for the spoken replies still in flight."""
        if self._speech_tasks:
            await asyncio.gather(*self._speech_tasks, return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._speech_tasks):
            task.cancel()
        await self.drain()

    # ── Chat pipeline ───────────────────────────────────────────────

    async def send_message(self, text: str, image_base64: str | None = None) -> ChatOutcome:
        """Send a message to Yara on behalf of the active record.

        The reply is dropped when the operator switched to another record
        while it was in flight; the operator's own entry is kept.
        """
        record_id = self._sync.active_id
        if record_id is None:
            return ChatOutcome(notices=[NOTICE_NO_ACTIVE_CLIENT])
        text = (text or "").strip()
        if not text and not image_base64:
            raise ValidationError({"text": "Escreva uma mensagem ou anexe uma imagem."})
        if image_base64:
            notices = await self._charge("Draft analysis", IMAGE_ANALYSIS_COST)
            if notices:
                return ChatOutcome(record=self._sync.get(record_id), notices=notices)

        user_entry = ChatEntry.from_user(text, image_base64)
        await self._sync.append_messages(record_id, [user_entry], persist=False)

        image = ImageInput(data=image_base64) if image_base64 else None
        try:
            reply_text = await self._gateway.analyze_draft(text or DEFAULT_IMAGE_PROMPT, image)
        except Exception:
            logger.exception("Chat pipeline failed for %s", record_id)
            record = await self._sync.flush_messages(record_id)
            return ChatOutcome(record=record, notices=[NOTICE_ASSISTANT_ERROR])

        if self._sync.active_id != record_id:
            alog.step_warning(ActivityStage.SYNC, f"Reply for {record_id} discarded (active record changed)")
            record = await self._sync.flush_messages(record_id)
            return ChatOutcome(record=record, stale=True)

        reply = ChatEntry.from_assistant(reply_text)
        record = await self._sync.append_messages(record_id, [reply])
        self._speak_later(reply_text)
        return ChatOutcome(record=record, reply=reply)

    # ── Bill of materials ───────────────────────────────────────────

    async def generate_bom(self, description: str, images: list[ImageInput] | None = None) -> ToolOutcome:
        description = (description or "").strip()
        if not description:
            raise ValidationError({"description": "Descreva o projeto."})
        text, notices = await self._ask(
            "BOM", self._gateway.generate_text(BOM_PROMPT.format(description=description), images)
        )
        return ToolOutcome(notices=notices, text=text or "")

    async def save_bom(self, record_id: str, bom: str) -> ToolOutcome:
        result = await self._sync.update_client(record_id, {"bom": bom})
        return ToolOutcome(notices=result.notices, record=result.record)

    async def analyze_bom_economy(self, bom: str) -> ToolOutcome:
        bom = (bom or "").strip()
        if not bom:
            raise ValidationError({"bom": "Lista de materiais vazia."})
        text, notices = await self._ask("Economy", self._gateway.generate_text(ECONOMY_PROMPT.format(bom=bom)))
        return ToolOutcome(notices=notices, text=text or "")

    # ── Costs ───────────────────────────────────────────────────────

    async def estimate_costs(
        self, record_id: str, bom: str | None = None, market_context: str = ""
    ) -> ToolOutcome:
        """Estimate costs and write them (and the total as the estimated value) on the record."""
        record = self._sync.get(record_id)
        project = dataclasses.replace(record, bom=bom) if bom else record
        estimate, notices = await self._ask(
            "Costs", self._gateway.estimate_costs(project, market_context)
        )
        if estimate is None:
            return ToolOutcome(notices=notices, record=record)

        fields: dict[str, object] = {
            "custo_material": estimate.material_cost,
            "custo_mao_obra": estimate.labor_cost,
            "valor_estimado": estimate.total,
        }
        if bom:
            fields["bom"] = bom
        result = await self._sync.update_client(record_id, fields)
        return ToolOutcome(notices=result.notices, record=result.record, estimate=estimate)

    # ── Contract ────────────────────────────────────────────────────

    async def draft_contract(
        self,
        record_id: str,
        company_name: str,
        client_document: str,
        total_value: float,
    ) -> ToolOutcome:
        record = self._sync.get(record_id)
        errors: dict[str, str] = {}
        if not (company_name or "").strip():
            errors["company_name"] = "Nome da empresa é obrigatório."
        if not record.name.strip():
            errors["client_name"] = "Nome do cliente é obrigatório."
        if not (client_document or "").strip():
            errors["client_document"] = "Documento é obrigatório."
        if total_value <= 0:
            errors["total_value"] = "Valor deve ser maior que zero."
        if errors:
            raise ValidationError(errors)

        clause, notices = await self._ask(
            "Contract", self._gateway.generate_text(CLAUSE_PROMPT.format(name=record.name))
        )
        if clause is None:
            return ToolOutcome(notices=notices, record=record)

        contract = compose_contract(record, company_name.strip(), client_document.strip(), total_value, clause)
        result = await self._sync.update_client(record_id, {"contract": contract})
        return ToolOutcome(notices=result.notices, text=contract, record=result.record)

    # ── Search and render ───────────────────────────────────────────

    async def search_suppliers(self, query: str, location: Location | None = None) -> ToolOutcome:
        query = (query or "").strip()
        if not query:
            raise ValidationError({"query": "Indique o que procura."})
        answer, notices = await self._ask("Search", self._gateway.search_grounded(query, location))
        return ToolOutcome(notices=notices, text=answer.text if answer else "", answer=answer)

    async def render_view(self, record_id: str, prompt: str, images: list[ImageInput]) -> ToolOutcome:
        """Generate a render and append it to the record's conversation."""
        record = self._sync.get(record_id)
        prompt = (prompt or "").strip()
        if not prompt:
            raise ValidationError({"prompt": "Descreva a renderização."})
        notices = await self._charge("Render", RENDER_COST)
        if notices:
            return ToolOutcome(notices=notices, record=record)
        image, notices = await self._ask(
            "Render", self._gateway.generate_image(images, RENDER_PROMPT.format(instruction=prompt))
        )
        if image is None:
            return ToolOutcome(notices=notices, record=record)

        entry = ChatEntry(sender=MessageSender.ASSISTANT, text=prompt, type="image", src=image.data_url)
        record = await self._sync.append_messages(record_id, [entry])
        return ToolOutcome(record=record, image=image)

    # ── Dossier ─────────────────────────────────────────────────────

    def build_dossier(self, record_id: str, profile: CarpenterProfile | None = None) -> str:
        return render_dossier(self._sync.get(record_id), profile)


def compose_contract(
    record: ProjectRecord,
    company_name: str,
    client_document: str,
    total_value: float,
    clause: str,
) -> str:
    issued = datetime.now(timezone.utc).strftime("%d/%m/%Y")
    lines = [
        "CONTRATO DE PRESTAÇÃO DE SERVIÇOS DE MARCENARIA",
        "",
        f"CONTRATADA: {company_name}",
        f"CONTRATANTE: {record.name} (Documento: {client_document})",
        "",
        "CLÁUSULA PRIMEIRA - DO OBJETO",
        f'Fabricação e instalação do projeto "{record.name}" conforme lista de materiais aprovada.',
        "",
        "CLÁUSULA SEGUNDA - DO VALOR",
        f"O valor total dos serviços é de {format_brl(total_value)}.",
        "",
        "CLÁUSULA TERCEIRA - DA PROTEÇÃO",
        clause.strip(),
        "",
        f"Emitido em {issued}.",
    ]
    return "\n".join(lines)


def render_dossier(record: ProjectRecord, profile: CarpenterProfile | None = None) -> str:
    """Markdown dossier of one record."""
    out = [f"# Dossiê Técnico: {record.name}", ""]
    if profile is not None and (profile.name or profile.business_name):
        responsible = " / ".join(p for p in (profile.name, profile.business_name) if p)
        out.append(f"**Responsável técnico:** {responsible}  ")
    out.extend([
        f"**Status:** {record.status}  ",
        f"**Telefone:** {record.phone or '-'}  ",
        f"**Valor estimado:** {format_brl(record.valor_estimado)}  ",
        f"**Custo de material:** {format_brl(record.custo_material)}  ",
        f"**Mão de obra:** {format_brl(record.custo_mao_obra)}  ",
        f"**Data de emissão:** {datetime.now(timezone.utc).strftime('%d/%m/%Y')}",
        "",
        "## Lista de materiais",
        "",
        record.bom.strip() or "_Sem lista de materiais._",
        "",
        "## Contrato",
        "",
        record.contract.strip() or "_Sem contrato._",
        "",
        "## Conversa",
        "",
    ])
    if not record.messages:
        out.append("_Sem mensagens._")
    for entry in record.messages:
        who = "Mestre" if entry.sender is MessageSender.USER else "Yara"
        when = entry.timestamp.strftime("%d/%m/%Y %H:%M")
        body = f"[imagem] {entry.text}" if entry.type == "image" else entry.text
        out.append(f"- **{who}** ({when}): {body}")
    return "\n".join(out) + "\n"
