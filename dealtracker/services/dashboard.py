"""Dashboard aggregates for the current startup."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from dealtracker.storage.repositories.activity import ActivityRepository
from dealtracker.storage.repositories.prospects import ProspectRepository
from dealtracker.types import ProspectStage

if TYPE_CHECKING:
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.models.database import ActivityLog, Prospect
    from dealtracker.web.tenant_context import TenantContext

logger = structlog.get_logger(__name__)

RECENT_ACTIVITY_LIMIT = 10


@dataclass
class DashboardData:
    total_prospects: int = 0
    pipeline_value: float = 0.0
    won_deals: int = 0
    won_value: float = 0.0
    stage_counts: dict[str, int] = field(default_factory=lambda: {s.value: 0 for s in ProspectStage})
    recent_activity: list[tuple[ActivityLog, str | None]] = field(default_factory=list)
    upcoming_meetings: list[Prospect] = field(default_factory=list)
    failed_sections: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_prospects": self.total_prospects,
            "pipeline_value": self.pipeline_value,
            "won_deals": self.won_deals,
            "won_value": self.won_value,
            "stage_counts": self.stage_counts,
            "recent_activity": [
                {
                    "id": entry.id,
                    "action_type": entry.action_type,
                    "description": entry.description,
                    "user": user,
                    "created_at": entry.created_at.isoformat(),
                }
                for entry, user in self.recent_activity
            ],
            "upcoming_meetings": [
                {
                    "id": p.id,
                    "company_name": p.company_name,
                    "meeting_date": p.meeting_date.isoformat() if p.meeting_date else None,
                }
                for p in self.upcoming_meetings
            ],
            "failed_sections": self.failed_sections,
        }


class DashboardService:
    def __init__(self, engine: AsyncEngine) -> None:
        self._prospects = ProspectRepository(engine)
        self._activity = ActivityRepository(engine)

    async def build_dashboard(self, tenant: TenantContext, today: date) -> DashboardData:
        """Read the three dashboard sections concurrently.

        A section whose read fails renders empty and is named in
        ``failed_sections``; the others still render.
        """
        data = DashboardData()
        if not tenant.has_tenant:
            return data

        prospects, activity, meetings = await asyncio.gather(
            self._prospects.list_all(tenant),
            self._activity.list_recent(tenant, RECENT_ACTIVITY_LIMIT),
            self._prospects.list_meetings(tenant, on_or_after=today),
            return_exceptions=True,
        )

        if isinstance(prospects, BaseException):
            self._section_failed(data, "prospects", prospects)
        else:
            self._summarize(data, prospects)
        if isinstance(activity, BaseException):
            self._section_failed(data, "recent_activity", activity)
        else:
            data.recent_activity = activity
        if isinstance(meetings, BaseException):
            self._section_failed(data, "upcoming_meetings", meetings)
        else:
            data.upcoming_meetings = meetings
        return data

    @staticmethod
    def _summarize(data: DashboardData, prospects: list[Prospect]) -> None:
        data.total_prospects = len(prospects)
        for p in prospects:
            value = p.estimated_value or 0.0
            data.pipeline_value += value
            data.stage_counts[p.stage] = data.stage_counts.get(p.stage, 0) + 1
            if p.stage == ProspectStage.CLOSED_WON.value:
                data.won_deals += 1
                data.won_value += value

    @staticmethod
    def _section_failed(data: DashboardData, section: str, exc: BaseException) -> None:
        if not isinstance(exc, Exception):
            raise exc
        logger.warning("dashboard_section_failed", section=section, error=str(exc))
        data.failed_sections.append(section)
