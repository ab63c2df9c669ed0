"""Application service (use case) for the carpenter profile and the credit store."""

import logging

from cockpit.application.interfaces import ProfileStore
from cockpit.domain.entities import CREDIT_PACKS, CarpenterProfile, CreditPack
from cockpit.domain.exceptions import EntityNotFoundError, ValidationError

logger = logging.getLogger(__name__)


class CarpenterProfileService:
    """Reads and updates the profile singleton. Depends on the store port (DI)."""

    def __init__(self, store: ProfileStore, email: str):
        self._store = store
        self._email = email

    async def get_profile(self) -> CarpenterProfile:
        """Return the stored profile, or an unsaved default one."""
        profile = await self._store.get_profile()
        return profile or CarpenterProfile(email=self._email)

    async def save_profile(
        self,
        *,
        name: str | None = None,
        business_name: str | None = None,
        integrations: dict[str, str] | None = None,
    ) -> CarpenterProfile:
        profile = await self.get_profile()
        if name is not None:
            profile.name = name.strip()
        if business_name is not None:
            profile.business_name = business_name.strip()
        if integrations is not None:
            profile.integrations.update({k: v for k, v in integrations.items() if v is not None})
        return await self._store.save_profile(profile)

    @staticmethod
    def credit_packs() -> list[CreditPack]:
        return list(CREDIT_PACKS)

    async def purchase_credits(self, pack_id: str) -> int:
        """Simulated checkout: the pack is always approved and credited."""
        pack = next((p for p in CREDIT_PACKS if p.id == pack_id), None)
        if pack is None:
            raise EntityNotFoundError("CreditPack", pack_id)
        total = await self._store.add_credits(pack.credits)
        logger.info("Credit pack '%s' purchased: +%d → %d", pack.id, pack.credits, total)
        return total

    async def add_credits(self, amount: int) -> int:
        if amount <= 0:
            raise ValidationError({"amount": "A quantidade deve ser maior que zero."})
        return await self._store.add_credits(amount)

    async def consume_credits(self, amount: int) -> int:
        """Charge a paid workshop operation; admins run free."""
        if amount <= 0:
            raise ValidationError({"amount": "A quantidade deve ser maior que zero."})
        remaining = await self._store.consume_credits(amount)
        logger.info("Consumed %d credit(s) → %d left", amount, remaining)
        return remaining
