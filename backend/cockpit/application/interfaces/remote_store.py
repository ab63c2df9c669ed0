"""Abstract interface (port) for the optional cloud document store."""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from cockpit.domain.entities import ProjectRecord

CollectionCallback = Callable[[list[ProjectRecord]], Awaitable[None]]
DocumentCallback = Callable[[ProjectRecord | None], Awaitable[None]]


class Subscription(ABC):
    """Handle for a live snapshot listener."""

    @abstractmethod
    async def close(self) -> None:
        """Stop delivering snapshots. Safe to call more than once."""
        ...


class RemoteClientStore(ABC):
    """Port for the shared ``clients`` collection in the cloud.

    Implementations raise RemoteStoreError (or RemoteAuthError) on rejection.
    """

    @abstractmethod
    async def sign_in_anonymously(self) -> str:
        """Obtain an anonymous identity and return its user id."""
        ...

    @abstractmethod
    async def add(self, record: ProjectRecord) -> str:
        """Insert a new document and return the remote-assigned id."""
        ...

    @abstractmethod
    async def update(self, record_id: str, fields: dict[str, Any]) -> None:
        """Overwrite the given fields and refresh ``updatedAt`` (last write wins)."""
        ...

    @abstractmethod
    async def get(self, record_id: str) -> ProjectRecord | None:
        ...

    @abstractmethod
    async def list_all(self) -> list[ProjectRecord]:
        ...

    @abstractmethod
    async def subscribe_collection(self, callback: CollectionCallback) -> Subscription:
        """Deliver the full collection now and after every change."""
        ...

    @abstractmethod
    async def subscribe_document(self, record_id: str, callback: DocumentCallback) -> Subscription:
        """Deliver one document now and after every change (None when missing)."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        return None
