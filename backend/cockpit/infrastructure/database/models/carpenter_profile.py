"""SQLAlchemy ORM model for the carpenter profile singleton."""

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from cockpit.infrastructure.database.base import Base


class CarpenterProfileModel(Base):
    """ORM model — maps to the 'carpenter_profile' table, keyed by account email."""

    __tablename__ = "carpenter_profile"

    email: Mapped[str] = mapped_column(String(255), primary_key=True)
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<CarpenterProfileModel(email={self.email})>"
