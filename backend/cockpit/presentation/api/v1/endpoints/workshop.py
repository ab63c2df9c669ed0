"""Workshop endpoints — chat with Yara and the assistant-backed tools."""

from fastapi import APIRouter, Depends, HTTPException, status

from cockpit.application.interfaces import ImageInput, Location
from cockpit.application.schemas.clients import ChatEntrySchema, ClientResponse
from cockpit.application.schemas.workshop import (
    BomRequest,
    BomSaveRequest,
    ContractRequest,
    CostsRequest,
    CostsResponse,
    DossierResponse,
    EconomyRequest,
    ImagePayload,
    MessageRequest,
    MessageResponse,
    RenderRequest,
    RenderResponse,
    SearchRequest,
    SearchResponse,
    SourceSchema,
    ToolTextResponse,
)
from cockpit.application.services import CarpenterProfileService, ToolOutcome, WorkshopService
from cockpit.domain.exceptions import EntityNotFoundError, LocalStoreUnavailableError, ValidationError
from cockpit.infrastructure.dependencies import get_profile_service, get_workshop_service

router = APIRouter(prefix="/workshop", tags=["Workshop"])


def _images(payloads: list[ImagePayload]) -> list[ImageInput]:
    return [ImageInput(data=p.data, mime_type=p.mime_type) for p in payloads]


def _client(outcome: ToolOutcome) -> ClientResponse | None:
    return ClientResponse.model_validate(outcome.record) if outcome.record is not None else None


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, EntityNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.errors)
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


_HANDLED = (EntityNotFoundError, ValidationError, LocalStoreUnavailableError)


@router.post("/messages", response_model=MessageResponse)
async def send_message(
    data: MessageRequest,
    service: WorkshopService = Depends(get_workshop_service),
) -> MessageResponse:
    """Send a message (and optionally a sketch) to Yara for the active client."""
    try:
        outcome = await service.send_message(data.text, data.image_base64)
    except _HANDLED as e:
        raise _http_error(e)
    return MessageResponse(
        client=ClientResponse.model_validate(outcome.record) if outcome.record else None,
        reply=ChatEntrySchema.model_validate(outcome.reply) if outcome.reply else None,
        notices=outcome.notices,
        stale=outcome.stale,
    )


@router.post("/bom", response_model=ToolTextResponse)
async def generate_bom(
    data: BomRequest,
    service: WorkshopService = Depends(get_workshop_service),
) -> ToolTextResponse:
    try:
        outcome = await service.generate_bom(data.description, _images(data.images))
    except _HANDLED as e:
        raise _http_error(e)
    return ToolTextResponse(text=outcome.text, notices=outcome.notices)


@router.put("/clients/{client_id}/bom", response_model=ToolTextResponse)
async def save_bom(
    client_id: str,
    data: BomSaveRequest,
    service: WorkshopService = Depends(get_workshop_service),
) -> ToolTextResponse:
    try:
        outcome = await service.save_bom(client_id, data.bom)
    except _HANDLED as e:
        raise _http_error(e)
    return ToolTextResponse(text=data.bom, client=_client(outcome), notices=outcome.notices)


@router.post("/bom/economy", response_model=ToolTextResponse)
async def analyze_bom_economy(
    data: EconomyRequest,
    service: WorkshopService = Depends(get_workshop_service),
) -> ToolTextResponse:
    try:
        outcome = await service.analyze_bom_economy(data.bom)
    except _HANDLED as e:
        raise _http_error(e)
    return ToolTextResponse(text=outcome.text, notices=outcome.notices)


@router.post("/clients/{client_id}/costs", response_model=CostsResponse)
async def estimate_costs(
    client_id: str,
    data: CostsRequest,
    service: WorkshopService = Depends(get_workshop_service),
) -> CostsResponse:
    """Estimate material and labour costs; the total becomes the estimated value."""
    try:
        outcome = await service.estimate_costs(client_id, data.bom, data.market_context)
    except _HANDLED as e:
        raise _http_error(e)
    estimate = outcome.estimate
    return CostsResponse(
        material_cost=estimate.material_cost if estimate else None,
        labor_cost=estimate.labor_cost if estimate else None,
        total=estimate.total if estimate else None,
        client=_client(outcome),
        notices=outcome.notices,
    )


@router.post("/clients/{client_id}/contract", response_model=ToolTextResponse)
async def draft_contract(
    client_id: str,
    data: ContractRequest,
    service: WorkshopService = Depends(get_workshop_service),
) -> ToolTextResponse:
    try:
        outcome = await service.draft_contract(
            client_id, data.company_name, data.client_document, data.total_value
        )
    except _HANDLED as e:
        raise _http_error(e)
    return ToolTextResponse(text=outcome.text, client=_client(outcome), notices=outcome.notices)


@router.post("/search", response_model=SearchResponse)
async def search_suppliers(
    data: SearchRequest,
    service: WorkshopService = Depends(get_workshop_service),
) -> SearchResponse:
    """Web-grounded supplier and price search."""
    location = Location(data.location.latitude, data.location.longitude) if data.location else None
    try:
        outcome = await service.search_suppliers(data.query, location)
    except _HANDLED as e:
        raise _http_error(e)
    sources = [SourceSchema(url=s.url, title=s.title) for s in outcome.answer.sources] if outcome.answer else []
    return SearchResponse(text=outcome.text, sources=sources, notices=outcome.notices)


@router.post("/clients/{client_id}/render", response_model=RenderResponse)
async def render_view(
    client_id: str,
    data: RenderRequest,
    service: WorkshopService = Depends(get_workshop_service),
) -> RenderResponse:
    try:
        outcome = await service.render_view(client_id, data.prompt, _images(data.images))
    except _HANDLED as e:
        raise _http_error(e)
    return RenderResponse(
        image_url=outcome.image.data_url if outcome.image else None,
        client=_client(outcome),
        notices=outcome.notices,
    )


@router.get("/clients/{client_id}/dossier", response_model=DossierResponse)
async def get_dossier(
    client_id: str,
    service: WorkshopService = Depends(get_workshop_service),
    profiles: CarpenterProfileService = Depends(get_profile_service),
) -> DossierResponse:
    """Markdown dossier of the client (values, BOM, contract, conversation)."""
    try:
        profile = await profiles.get_profile()
        markdown = service.build_dossier(client_id, profile)
    except _HANDLED as e:
        raise _http_error(e)
    return DossierResponse(client_id=client_id, markdown=markdown)
