"""Concrete local project store backed by SQLAlchemy."""

from dataclasses import fields as dataclass_fields
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select

from cockpit.application.interfaces import ProjectStore
from cockpit.domain.entities import ProjectRecord, new_local_id
from cockpit.infrastructure.database.models import ProjectModel
from cockpit.infrastructure.database.session import StorageContext
from cockpit.infrastructure.record_codec import record_from_document, record_to_document

_IMMUTABLE_FIELDS = frozenset({"id", "created_at", "updated_at"})
_RECORD_FIELDS = frozenset(f.name for f in dataclass_fields(ProjectRecord)) - _IMMUTABLE_FIELDS - {"extra"}


def _aware(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on the way back
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SQLAlchemyProjectStore(ProjectStore):
    """Implements the ProjectStore port on the embedded database."""

    def __init__(self, context: StorageContext):
        self._context = context

    def _to_entity(self, model: ProjectModel) -> ProjectRecord:
        """Map ORM model → domain entity."""
        return record_from_document(
            model.id,
            dict(model.data or {}),
            created_at=_aware(model.created_at),
            updated_at=_aware(model.updated_at),
        )

    def _to_model(self, entity: ProjectRecord) -> ProjectModel:
        """Map domain entity → ORM model (for creation)."""
        return ProjectModel(
            id=entity.id,
            data=record_to_document(entity),
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def get_all(self) -> list[ProjectRecord]:
        async with self._context.session() as session:
            stmt = select(ProjectModel).order_by(ProjectModel.updated_at.desc())
            result = await session.execute(stmt)
            return [self._to_entity(row) for row in result.scalars().all()]

    async def get_by_id(self, record_id: str) -> ProjectRecord | None:
        async with self._context.session() as session:
            result = await session.get(ProjectModel, record_id)
            return self._to_entity(result) if result else None

    async def add(self, record: ProjectRecord) -> list[ProjectRecord]:
        now = datetime.now(timezone.utc)
        record.id = new_local_id()
        record.created_at = now
        record.updated_at = now
        async with self._context.session() as session:
            session.add(self._to_model(record))
        return await self.get_all()

    async def update(self, record_id: str, fields: dict[str, Any]) -> ProjectRecord | None:
        async with self._context.session() as session:
            model = await session.get(ProjectModel, record_id)
            if model is None:
                return None
            entity = self._to_entity(model)
            for key, value in fields.items():
                if key in _IMMUTABLE_FIELDS:
                    continue
                if key == "extra":
                    entity.extra.update(value or {})
                elif key in _RECORD_FIELDS:
                    setattr(entity, key, value)
                else:
                    entity.extra[key] = value
            entity.updated_at = datetime.now(timezone.utc)
            model.data = record_to_document(entity)
            model.updated_at = entity.updated_at
            await session.flush()
            return entity

    async def remove(self, record_id: str) -> list[ProjectRecord]:
        async with self._context.session() as session:
            model = await session.get(ProjectModel, record_id)
            if model is not None:
                await session.delete(model)
        return await self.get_all()
