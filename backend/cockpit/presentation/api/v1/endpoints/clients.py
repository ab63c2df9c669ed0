"""Client list endpoints — unified list, writes, selection and the SSE stream."""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from cockpit.application.schemas.clients import (
    ClientCreate,
    ClientListEvent,
    ClientResponse,
    ClientUpdate,
    ClientWriteResponse,
    StatsResponse,
)
from cockpit.application.services import ProjectSyncService, SSEManager
from cockpit.application.services.sse_manager import format_event
from cockpit.domain.exceptions import EntityNotFoundError, LocalStoreUnavailableError
from cockpit.infrastructure.dependencies import get_sse_manager, get_sync_service

router = APIRouter(prefix="/clients", tags=["Clients"])


@router.get("", response_model=list[ClientResponse])
async def list_clients(
    sync: ProjectSyncService = Depends(get_sync_service),
) -> list[ClientResponse]:
    """Local-only and cloud records together, most recently updated first."""
    return [ClientResponse.model_validate(r) for r in sync.clients()]


@router.post("", response_model=ClientWriteResponse, status_code=status.HTTP_201_CREATED)
async def add_client(
    data: ClientCreate,
    sync: ProjectSyncService = Depends(get_sync_service),
) -> ClientWriteResponse:
    """Add a Lead and make it the active client."""
    try:
        result = await sync.add_client(data.name, data.phone)
    except LocalStoreUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return ClientWriteResponse(client=ClientResponse.model_validate(result.record), notices=result.notices)


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    sync: ProjectSyncService = Depends(get_sync_service),
) -> StatsResponse:
    return StatsResponse.model_validate(sync.stats())


@router.get("/stream")
async def client_stream(
    sync: ProjectSyncService = Depends(get_sync_service),
    sse: SSEManager = Depends(get_sse_manager),
) -> StreamingResponse:
    """SSE endpoint — a ``clients`` event now and after every change.

    ``speech`` events carry synthesized replies for the browser to play.
    """
    initial = ClientListEvent.build(sync.clients(), sync.active_id, sync.mode.value)
    return StreamingResponse(
        sse.subscribe(initial=format_event("clients", initial.model_dump(mode="json", by_alias=True))),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: str,
    sync: ProjectSyncService = Depends(get_sync_service),
) -> ClientResponse:
    try:
        record = sync.get(client_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ClientResponse.model_validate(record)


@router.patch("/{client_id}", response_model=ClientWriteResponse)
async def update_client(
    client_id: str,
    data: ClientUpdate,
    sync: ProjectSyncService = Depends(get_sync_service),
) -> ClientWriteResponse:
    """Manual edit of contact data, status or values."""
    try:
        result = await sync.update_client(client_id, data.model_dump(exclude_none=True))
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except LocalStoreUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return ClientWriteResponse(client=ClientResponse.model_validate(result.record), notices=result.notices)


@router.post("/{client_id}/select", response_model=ClientResponse)
async def select_client(
    client_id: str,
    sync: ProjectSyncService = Depends(get_sync_service),
) -> ClientResponse:
    """Make this the active client for the chat pipeline."""
    try:
        record = await sync.select(client_id)
    except EntityNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return ClientResponse.model_validate(record)
