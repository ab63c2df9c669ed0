"""Domain entity — a client/project record and its chat history."""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

LOCAL_ID_PREFIX = "local_"


class ProjectStatus(str, Enum):
    """Lifecycle tags a record moves through."""

    LEAD = "Lead"
    QUOTE = "Orçamento"
    APPROVED = "Aprovado"
    PRODUCTION = "Produção"
    INSTALLATION = "Instalação"
    DONE = "Concluído"


ACTIVE_STATUSES = frozenset({ProjectStatus.PRODUCTION.value, ProjectStatus.INSTALLATION.value})


class MessageSender(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_local_id(record_id: str) -> bool:
    """True when the id belongs to the local-only namespace."""
    return record_id.startswith(LOCAL_ID_PREFIX)


def new_local_id() -> str:
    """Generate an id in the local namespace (``local_<epoch ms>_<suffix>``)."""
    return f"{LOCAL_ID_PREFIX}{int(time.time() * 1000)}_{uuid4().hex[:6]}"


@dataclass
class ChatEntry:
    """A single entry in a record's conversation."""

    sender: MessageSender
    text: str
    type: str = "text"  # "text" | "image"
    src: str | None = None  # data URL for image entries
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_user(cls, text: str, image_base64: str | None = None) -> "ChatEntry":
        if image_base64:
            return cls(
                sender=MessageSender.USER,
                text=text or "[Mídia Sintonizada]",
                type="image",
                src=f"data:image/png;base64,{image_base64}",
            )
        return cls(sender=MessageSender.USER, text=text)

    @classmethod
    def from_assistant(cls, text: str) -> "ChatEntry":
        return cls(sender=MessageSender.ASSISTANT, text=text)


@dataclass
class ProjectRecord:
    """Core domain entity for a client/project.

    The ``id`` decides which store owns the record: ids starting with
    ``local_`` live only in the local store, every other id was assigned by
    the remote store. Unknown remote fields are carried in ``extra`` so they
    survive a round-trip.
    """

    name: str
    phone: str = ""
    status: str = ProjectStatus.LEAD.value
    valor_estimado: float = 0.0
    messages: list[ChatEntry] = field(default_factory=list)
    id: str = ""
    bom: str = ""
    custo_material: float = 0.0
    custo_mao_obra: float = 0.0
    contract: str = ""
    extra: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def new_lead(cls, name: str, phone: str = "") -> "ProjectRecord":
        """Build a fresh Lead with the channel welcome message."""
        welcome = ChatEntry(
            id="init",
            sender=MessageSender.ASSISTANT,
            text=f"Canal master estabelecido para {name}.",
        )
        return cls(name=name, phone=phone, messages=[welcome])

    @property
    def is_local(self) -> bool:
        return is_local_id(self.id)

    @property
    def is_active_project(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def append_messages(self, entries: list[ChatEntry]) -> None:
        """Append entries after the existing history and refresh updated_at."""
        self.messages.extend(entries)
        self.updated_at = _utcnow()
