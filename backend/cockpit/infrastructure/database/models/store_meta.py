"""Key/value table holding local store metadata (schema version)."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from cockpit.infrastructure.database.base import Base


class StoreMetaModel(Base):
    __tablename__ = "store_meta"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
