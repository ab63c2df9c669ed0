from .project_store import ProjectStore
from .profile_store import ProfileStore
from .remote_store import RemoteClientStore, Subscription, CollectionCallback, DocumentCallback
from .chat_provider import ChatProvider
from .assistant_gateway import (
    AssistantGateway,
    CostEstimate,
    GroundedAnswer,
    GroundingSource,
    ImageData,
    ImageInput,
    Location,
)
from .platform import SpeechOutput, UnavailableSpeechOutput

__all__ = [
    "ProjectStore",
    "ProfileStore",
    "RemoteClientStore",
    "Subscription",
    "CollectionCallback",
    "DocumentCallback",
    "ChatProvider",
    "AssistantGateway",
    "CostEstimate",
    "GroundedAnswer",
    "GroundingSource",
    "ImageData",
    "ImageInput",
    "Location",
    "SpeechOutput",
    "UnavailableSpeechOutput",
]
