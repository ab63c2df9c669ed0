"""Derived workshop aggregates — never stored, always recomputed."""

from collections.abc import Iterable
from dataclasses import dataclass

from cockpit.domain.entities.project_record import ProjectRecord


@dataclass(frozen=True)
class WorkshopStats:
    total_revenue: float = 0.0
    active_projects: int = 0

    @classmethod
    def from_records(cls, records: Iterable[ProjectRecord]) -> "WorkshopStats":
        total = 0.0
        active = 0
        for record in records:
            total += float(record.valor_estimado or 0)
            if record.is_active_project:
                active += 1
        return cls(total_revenue=total, active_projects=active)
