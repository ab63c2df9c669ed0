"""Unit tests for CarpenterProfileService — profile singleton and credit store."""

import pytest

from cockpit.application.interfaces import ProfileStore
from cockpit.application.services.profile_service import CarpenterProfileService
from cockpit.domain.entities import CarpenterProfile
from cockpit.domain.exceptions import EntityNotFoundError, InsufficientCreditsError, ValidationError

EMAIL = "mestre@oficina.digital"


class InMemoryProfileStore(ProfileStore):
    def __init__(self, profile: CarpenterProfile | None = None):
        self.profile = profile

    async def get_profile(self):
        return self.profile

    async def save_profile(self, profile):
        self.profile = profile
        return profile

    async def add_credits(self, amount):
        if self.profile is None:
            self.profile = CarpenterProfile(email=EMAIL)
        self.profile.credits += amount
        return self.profile.credits

    async def consume_credits(self, amount):
        profile = self.profile or CarpenterProfile(email=EMAIL)
        if profile.is_admin:
            return profile.credits
        if profile.credits < amount:
            raise InsufficientCreditsError(amount, profile.credits)
        profile.credits -= amount
        return profile.credits


@pytest.mark.asyncio
async def test_missing_profile_returns_default():
    service = CarpenterProfileService(InMemoryProfileStore(), EMAIL)

    profile = await service.get_profile()

    assert profile.email == EMAIL
    assert profile.credits == 0
    assert profile.name == ""


@pytest.mark.asyncio
async def test_save_profile_merges_integrations():
    store = InMemoryProfileStore(CarpenterProfile(email=EMAIL, integrations={"promob": "k1"}))
    service = CarpenterProfileService(store, EMAIL)

    profile = await service.save_profile(name=" Bento ", integrations={"erp": "k2"})

    assert profile.name == "Bento"
    assert profile.integrations == {"promob": "k1", "erp": "k2"}
    assert store.profile is profile


@pytest.mark.asyncio
async def test_sequential_credit_additions_accumulate():
    service = CarpenterProfileService(InMemoryProfileStore(), EMAIL)

    await service.add_credits(10)
    total = await service.add_credits(50)

    assert total == 60


@pytest.mark.asyncio
async def test_purchase_adds_pack_credits():
    service = CarpenterProfileService(InMemoryProfileStore(CarpenterProfile(email=EMAIL, credits=5)), EMAIL)

    total = await service.purchase_credits("pro")

    assert total == 55


@pytest.mark.asyncio
async def test_purchase_unknown_pack_raises():
    service = CarpenterProfileService(InMemoryProfileStore(), EMAIL)

    with pytest.raises(EntityNotFoundError):
        await service.purchase_credits("platinum")


@pytest.mark.asyncio
async def test_non_positive_amount_is_rejected():
    service = CarpenterProfileService(InMemoryProfileStore(), EMAIL)

    with pytest.raises(ValidationError):
        await service.add_credits(0)


def test_credit_packs_are_listed():
    assert [p.id for p in CarpenterProfileService.credit_packs()] == ["start", "pro", "expert"]


@pytest.mark.asyncio
async def test_consume_credits_spends_from_the_balance():
    service = CarpenterProfileService(InMemoryProfileStore(CarpenterProfile(email=EMAIL, credits=3)), EMAIL)

    assert await service.consume_credits(2) == 1


@pytest.mark.asyncio
async def test_consume_more_than_the_balance_raises_and_keeps_it():
    store = InMemoryProfileStore(CarpenterProfile(email=EMAIL, credits=1))
    service = CarpenterProfileService(store, EMAIL)

    with pytest.raises(InsufficientCreditsError) as exc_info:
        await service.consume_credits(2)

    assert exc_info.value.available == 1
    assert store.profile.credits == 1


@pytest.mark.asyncio
async def test_admin_is_never_charged():
    store = InMemoryProfileStore(CarpenterProfile(email=EMAIL, credits=0, is_admin=True))
    service = CarpenterProfileService(store, EMAIL)

    assert await service.consume_credits(5) == 0


@pytest.mark.asyncio
async def test_consume_non_positive_amount_is_rejected():
    service = CarpenterProfileService(InMemoryProfileStore(), EMAIL)

    with pytest.raises(ValidationError):
        await service.consume_credits(0)
