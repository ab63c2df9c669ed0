"""Pydantic DTOs for the workshop tools and the chat pipeline."""

from pydantic import BaseModel, Field

from cockpit.application.schemas.clients import ChatEntrySchema, ClientResponse


class ImagePayload(BaseModel):
    """Base64 image (without the data-URL prefix)."""

    data: str = Field(..., min_length=1)
    mime_type: str = Field("image/png", examples=["image/png", "image/jpeg"])


class LocationPayload(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class MessageRequest(BaseModel):
    """A chat message for the active client."""

    text: str = Field("", max_length=8000)
    image_base64: str | None = None


class MessageResponse(BaseModel):
    client: ClientResponse | None = None
    reply: ChatEntrySchema | None = None
    notices: list[str] = []
    stale: bool = False


class BomRequest(BaseModel):
    description: str = Field(..., min_length=1, max_length=4000, examples=["Cozinha planejada em L, 3,2 m"])
    images: list[ImagePayload] = []


class BomSaveRequest(BaseModel):
    bom: str = Field(..., max_length=50000)


class EconomyRequest(BaseModel):
    bom: str = Field(..., min_length=1, max_length=50000)


class CostsRequest(BaseModel):
    bom: str | None = Field(None, max_length=50000)
    market_context: str = Field("", max_length=4000)


class CostsResponse(BaseModel):
    material_cost: float | None = None
    labor_cost: float | None = None
    total: float | None = None
    client: ClientResponse | None = None
    notices: list[str] = []


class ContractRequest(BaseModel):
    company_name: str = Field("", max_length=200)
    client_document: str = Field("", max_length=40)
    total_value: float = 0.0


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=2000)
    location: LocationPayload | None = None


class SourceSchema(BaseModel):
    url: str
    title: str = ""


class SearchResponse(BaseModel):
    text: str = ""
    sources: list[SourceSchema] = []
    notices: list[str] = []


class RenderRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=4000)
    images: list[ImagePayload] = []


class ToolTextResponse(BaseModel):
    """Text produced by a tool (BOM, economy analysis, contract)."""

    text: str = ""
    client: ClientResponse | None = None
    notices: list[str] = []


class RenderResponse(BaseModel):
    image_url: str | None = None
    client: ClientResponse | None = None
    notices: list[str] = []


class DossierResponse(BaseModel):
    client_id: str
    markdown: str
