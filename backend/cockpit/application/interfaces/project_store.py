"""Abstract repository interface (port) for local project persistence."""

from abc import ABC, abstractmethod
from typing import Any

from cockpit.domain.entities import ProjectRecord


class ProjectStore(ABC):
    """Port for the per-device project store — implemented in the infrastructure layer.

    Every method raises LocalStoreUnavailableError when the store is not open.
    """

    @abstractmethod
    async def get_all(self) -> list[ProjectRecord]:
        """Return every record, most recently updated first."""
        ...

    @abstractmethod
    async def get_by_id(self, record_id: str) -> ProjectRecord | None:
        """Retrieve a single record, or None when it does not exist."""
        ...

    @abstractmethod
    async def add(self, record: ProjectRecord) -> list[ProjectRecord]:
        """Persist a new record and return the refreshed list.

        The passed record receives its local id and timestamps.
        """
        ...

    @abstractmethod
    async def update(self, record_id: str, fields: dict[str, Any]) -> ProjectRecord | None:
        """Merge ``fields`` into the record. Returns None if it does not exist."""
        ...

    @abstractmethod
    async def remove(self, record_id: str) -> list[ProjectRecord]:
        """Delete a record and return the refreshed list."""
        ...
