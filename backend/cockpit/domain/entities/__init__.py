from .chat_message import ChatMessage, ContentPart, TokenUsage, ChatCompletionResult
from .project_record import (
    ACTIVE_STATUSES,
    LOCAL_ID_PREFIX,
    ChatEntry,
    MessageSender,
    ProjectRecord,
    ProjectStatus,
    is_local_id,
    new_local_id,
)
from .carpenter_profile import CREDIT_PACKS, CarpenterProfile, CreditPack
from .workshop_stats import WorkshopStats

__all__ = [
    "ChatMessage",
    "ContentPart",
    "TokenUsage",
    "ChatCompletionResult",
    "ACTIVE_STATUSES",
    "LOCAL_ID_PREFIX",
    "ChatEntry",
    "MessageSender",
    "ProjectRecord",
    "ProjectStatus",
    "is_local_id",
    "new_local_id",
    "CREDIT_PACKS",
    "CarpenterProfile",
    "CreditPack",
    "WorkshopStats",
]
