"""Abstract repository interface (port) for the carpenter profile singleton."""

from abc import ABC, abstractmethod

from cockpit.domain.entities import CarpenterProfile


class ProfileStore(ABC):
    """Port for carpenter profile persistence, keyed by a fixed identity."""

    @abstractmethod
    async def get_profile(self) -> CarpenterProfile | None:
        ...

    @abstractmethod
    async def save_profile(self, profile: CarpenterProfile) -> CarpenterProfile:
        ...

    @abstractmethod
    async def add_credits(self, amount: int) -> int:
        """Add ``amount`` to the stored balance and return the new total.

        Read-modify-write without locking: callers share one event loop.
        """
        ...

    @abstractmethod
    async def consume_credits(self, amount: int) -> int:
        """Spend ``amount`` and return the remaining balance.

        Admin profiles are never charged. Raises InsufficientCreditsError
        when the balance is short.
        """
        ...
