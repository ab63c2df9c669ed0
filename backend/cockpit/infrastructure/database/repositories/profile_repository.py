"""Concrete carpenter profile store backed by SQLAlchemy."""

from cockpit.application.interfaces import ProfileStore
from cockpit.domain.entities import CarpenterProfile
from cockpit.domain.exceptions import InsufficientCreditsError
from cockpit.infrastructure.database.models import CarpenterProfileModel
from cockpit.infrastructure.database.session import StorageContext


class SQLAlchemyProfileStore(ProfileStore):
    """Implements the ProfileStore port; the profile row is keyed by ``email``."""

    def __init__(self, context: StorageContext, email: str):
        self._context = context
        self._email = email

    def _to_entity(self, model: CarpenterProfileModel) -> CarpenterProfile:
        data = model.data or {}
        return CarpenterProfile(
            email=model.email,
            name=str(data.get("name") or ""),
            business_name=str(data.get("business_name") or ""),
            credits=int(data.get("credits") or 0),
            is_admin=bool(data.get("is_admin", False)),
            integrations=dict(data.get("integrations") or {}),
        )

    def _to_data(self, entity: CarpenterProfile) -> dict:
        return {
            "name": entity.name,
            "business_name": entity.business_name,
            "credits": entity.credits,
            "is_admin": entity.is_admin,
            "integrations": entity.integrations,
        }

    async def get_profile(self) -> CarpenterProfile | None:
        async with self._context.session() as session:
            model = await session.get(CarpenterProfileModel, self._email)
            return self._to_entity(model) if model else None

    async def save_profile(self, profile: CarpenterProfile) -> CarpenterProfile:
        profile.email = self._email
        async with self._context.session() as session:
            model = await session.get(CarpenterProfileModel, self._email)
            if model is None:
                session.add(CarpenterProfileModel(email=self._email, data=self._to_data(profile)))
            else:
                model.data = self._to_data(profile)
        return profile

    async def add_credits(self, amount: int) -> int:
        async with self._context.session() as session:
            model = await session.get(CarpenterProfileModel, self._email)
            if model is None:
                profile = CarpenterProfile(email=self._email, credits=amount)
                session.add(CarpenterProfileModel(email=self._email, data=self._to_data(profile)))
                return profile.credits
            profile = self._to_entity(model)
            profile.credits += amount
            model.data = self._to_data(profile)
            return profile.credits

    async def consume_credits(self, amount: int) -> int:
        async with self._context.session() as session:
            model = await session.get(CarpenterProfileModel, self._email)
            profile = self._to_entity(model) if model else CarpenterProfile(email=self._email)
            if profile.is_admin or amount <= 0:
                return profile.credits
            if profile.credits < amount:
                raise InsufficientCreditsError(amount, profile.credits)
            profile.credits -= amount
            model.data = self._to_data(profile)
            return profile.credits
