"""SQLAlchemy ORM model for local project records."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from cockpit.infrastructure.database.base import Base


class ProjectModel(Base):
    """ORM model — maps to the 'projects' table.

    The record body is kept as a JSON document so new fields need no migration.
    """

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_projects_updated_at", "updated_at"),
    )

    def __repr__(self) -> str:
        return f"<ProjectModel(id={self.id}, name='{(self.data or {}).get('name', '')}')>"
