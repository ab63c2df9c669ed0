"""Pydantic DTOs (Data Transfer Objects) for the client list."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from cockpit.domain.entities import MessageSender, ProjectRecord, WorkshopStats


class ChatEntrySchema(BaseModel):
    """A chat entry as the UI sees it (``from`` is user | assistant)."""

    id: str
    sender: MessageSender = Field(..., serialization_alias="from")
    text: str
    type: str = "text"
    src: str | None = None
    timestamp: datetime

    model_config = {"from_attributes": True}


class ClientCreate(BaseModel):
    """Schema for adding a new client (always starts as a Lead)."""

    name: str = Field(..., min_length=1, max_length=200, examples=["Ana Souza"])
    phone: str = Field("", max_length=40, examples=["+55 11 99999-0000"])


class ClientUpdate(BaseModel):
    """Schema for a manual edit — all fields optional."""

    name: str | None = Field(None, min_length=1, max_length=200)
    phone: str | None = Field(None, max_length=40)
    status: str | None = Field(None, min_length=1, max_length=40, examples=["Produção"])
    valor_estimado: float | None = Field(None, ge=0)
    bom: str | None = None
    custo_material: float | None = Field(None, ge=0)
    custo_mao_obra: float | None = Field(None, ge=0)
    contract: str | None = None


class ClientResponse(BaseModel):
    """Schema returned to the client."""

    id: str
    name: str
    phone: str
    status: str
    valor_estimado: float
    messages: list[ChatEntrySchema]
    bom: str = ""
    custo_material: float = 0.0
    custo_mao_obra: float = 0.0
    contract: str = ""
    extra: dict[str, Any] = {}
    is_local: bool
    created_at: datetime | None = None
    updated_at: datetime

    model_config = {"from_attributes": True}


class StatsResponse(BaseModel):
    total_revenue: float
    active_projects: int

    model_config = {"from_attributes": True}


class ClientWriteResponse(BaseModel):
    """A client after a write, with the notices to show."""

    client: ClientResponse
    notices: list[str] = []


class ClientListEvent(BaseModel):
    """Payload of the ``clients`` SSE event."""

    clients: list[ClientResponse]
    stats: StatsResponse
    active_id: str | None = None
    mode: str

    @classmethod
    def build(cls, records: list[ProjectRecord], active_id: str | None, mode: str) -> "ClientListEvent":
        return cls(
            clients=[ClientResponse.model_validate(r) for r in records],
            stats=StatsResponse.model_validate(WorkshopStats.from_records(records)),
            active_id=active_id,
            mode=mode,
        )
