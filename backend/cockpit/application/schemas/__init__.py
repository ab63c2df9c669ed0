from .clients import (
    ChatEntrySchema,
    ClientCreate,
    ClientListEvent,
    ClientResponse,
    ClientUpdate,
    ClientWriteResponse,
    StatsResponse,
)
from .workshop import (
    BomRequest,
    BomSaveRequest,
    ContractRequest,
    CostsRequest,
    CostsResponse,
    DossierResponse,
    EconomyRequest,
    ImagePayload,
    LocationPayload,
    MessageRequest,
    MessageResponse,
    RenderRequest,
    RenderResponse,
    SearchRequest,
    SearchResponse,
    SourceSchema,
    ToolTextResponse,
)
from .profile import (
    CreditPackResponse,
    ProfileResponse,
    ProfileUpdate,
    PurchaseRequest,
    PurchaseResponse,
)

__all__ = [
    "ChatEntrySchema",
    "ClientCreate",
    "ClientListEvent",
    "ClientResponse",
    "ClientUpdate",
    "ClientWriteResponse",
    "StatsResponse",
    "BomRequest",
    "BomSaveRequest",
    "ContractRequest",
    "CostsRequest",
    "CostsResponse",
    "DossierResponse",
    "EconomyRequest",
    "ImagePayload",
    "LocationPayload",
    "MessageRequest",
    "MessageResponse",
    "RenderRequest",
    "RenderResponse",
    "SearchRequest",
    "SearchResponse",
    "SourceSchema",
    "ToolTextResponse",
    "CreditPackResponse",
    "ProfileResponse",
    "ProfileUpdate",
    "PurchaseRequest",
    "PurchaseResponse",
]
