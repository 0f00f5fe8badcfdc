"""Prospect pipeline operations: create, edit, stage moves, notes, listings.

Every single-field change follows the same path: validate the value
against its fixed set, update scoped by tenant and record id, then append
one activity row. There are no stage transition guards and no conflict
detection, so concurrent writers simply overwrite each other.
"""

from __future__ import annotations

from datetime import date  # noqa: TC003 - pydantic needs the runtime type
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, Field, field_validator

from dealtracker.exceptions import InvalidInputError, RecordNotFoundError
from dealtracker.models.database import _utc_now
from dealtracker.storage.repositories.activity import ActivityRepository
from dealtracker.storage.repositories.profiles import ProfileRepository
from dealtracker.storage.repositories.prospects import ProspectRepository
from dealtracker.storage.repositories.startups import MembershipRepository
from dealtracker.types import INDUSTRIES, ActivityType, ProspectFunction, ProspectStage

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.audit.logger import ActivityRecorder
    from dealtracker.models.database import ActivityLog, Profile, Prospect
    from dealtracker.web.tenant_context import TenantContext

logger = structlog.get_logger(__name__)


def parse_stage(value: str) -> ProspectStage:
    try:
        return ProspectStage(value)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown stage: {value}") from exc


def stage_label(value: str) -> str:
    try:
        return ProspectStage(value).label
    except ValueError:
        return value


def check_industry(value: str | None) -> str | None:
    if value in (None, ""):
        return None
    if value not in INDUSTRIES:
        raise InvalidInputError(f"Unknown industry: {value}")
    return value


class ProspectFields(BaseModel):
    """Editable prospect fields, validated before any write."""

    company_name: str = Field(min_length=1, max_length=200)
    contact_name: str | None = None
    contact_email: str | None = None
    industry: str | None = None
    function: ProspectFunction = ProspectFunction.OTHER
    estimated_value: float | None = Field(default=None, ge=0)
    stage: ProspectStage = ProspectStage.NEW
    notes: str | None = None
    next_action: str | None = None
    next_action_due: date | None = None
    meeting_date: date | None = None
    owner_id: str | None = None

    @field_validator("company_name")
    @classmethod
    def _strip_company(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "Company name is required"
            raise ValueError(msg)
        return v

    @field_validator("industry")
    @classmethod
    def _known_industry(cls, v: str | None) -> str | None:
        if v in (None, ""):
            return None
        if v not in INDUSTRIES:
            msg = f"Unknown industry: {v}"
            raise ValueError(msg)
        return v

    def to_columns(self) -> dict[str, object]:
        data = self.model_dump()
        data["function"] = self.function.value
        data["stage"] = self.stage.value
        return data


class ProspectService:
    def __init__(self, engine: AsyncEngine, recorder: ActivityRecorder) -> None:
        self._prospects = ProspectRepository(engine)
        self._profiles = ProfileRepository(engine)
        self._memberships = MembershipRepository(engine)
        self._activity = ActivityRepository(engine)
        self._recorder = recorder

    # -- reads ---------------------------------------------------------------

    async def get(self, tenant: TenantContext, prospect_id: str) -> Prospect:
        prospect = await self._prospects.get(tenant, prospect_id)
        if prospect is None:
            raise RecordNotFoundError("Prospect not found")
        return prospect

    async def list_active(self, tenant: TenantContext) -> list[Prospect]:
        return await self._prospects.list_active(tenant)

    async def list_dead_leads(self, tenant: TenantContext) -> list[Prospect]:
        return await self._prospects.list_dead(tenant)

    async def list_meetings(self, tenant: TenantContext) -> list[Prospect]:
        return await self._prospects.list_meetings(tenant)

    async def list_upcoming_meetings(self, tenant: TenantContext, today: date) -> list[Prospect]:
        return await self._prospects.list_meetings(tenant, on_or_after=today)

    async def history(
        self, tenant: TenantContext, prospect_id: str
    ) -> list[tuple[ActivityLog, str | None]]:
        return await self._activity.list_for_prospect(tenant, prospect_id)

    async def candidate_owners(self, tenant: TenantContext) -> list[Profile]:
        """Startup members plus every admin, ordered by name."""
        if not tenant.has_tenant:
            return []
        member_ids = await self._memberships.list_member_ids(tenant.startup_id or "")
        admin_ids = await self._profiles.list_admin_ids()
        return await self._profiles.list_by_ids(list(dict.fromkeys(member_ids + admin_ids)))

    async def _check_owner(self, tenant: TenantContext, owner_id: str | None) -> None:
        if not owner_id:
            return
        owners = await self.candidate_owners(tenant)
        if owner_id not in {p.id for p in owners}:
            raise InvalidInputError("Owner must be a member of this startup or an admin")

    # -- writes --------------------------------------------------------------

    async def create_prospect(self, tenant: TenantContext, fields: ProspectFields) -> Prospect:
        startup_id = tenant.require_startup()
        await self._check_owner(tenant, fields.owner_id)
        prospect = await self._prospects.create(tenant, **fields.to_columns())
        await self._recorder.record(
            startup_id=startup_id,
            actor_id=tenant.principal_id,
            category=ActivityType.PROSPECT_CREATED,
            description=f"Created prospect {prospect.company_name}",
            target_id=prospect.id,
        )
        return prospect

    async def update_prospect(
        self, tenant: TenantContext, prospect_id: str, fields: ProspectFields
    ) -> Prospect:
        startup_id = tenant.require_startup()
        await self._check_owner(tenant, fields.owner_id)
        _, prospect = await self._apply(tenant, prospect_id, **fields.to_columns())
        await self._recorder.record(
            startup_id=startup_id,
            actor_id=tenant.principal_id,
            category=ActivityType.PROSPECT_UPDATED,
            description=f"Updated {prospect.company_name}",
            target_id=prospect.id,
        )
        return prospect

    async def change_stage(
        self, tenant: TenantContext, prospect_id: str, stage: str | ProspectStage
    ) -> Prospect:
        """Move a prospect to any stage. Re-submitting the current stage still records activity."""
        new_stage = parse_stage(stage)
        startup_id = tenant.require_startup()
        before, prospect = await self._apply(tenant, prospect_id, stage=new_stage.value)
        old_stage = str(before["stage"])
        await self._recorder.record(
            startup_id=startup_id,
            actor_id=tenant.principal_id,
            category=ActivityType.STAGE_CHANGE,
            description=f"Moved {prospect.company_name} from {stage_label(old_stage)} to {new_stage.label}",
            target_id=prospect.id,
            metadata={"from": old_stage, "to": new_stage.value},
        )
        return prospect

    async def change_owner(
        self, tenant: TenantContext, prospect_id: str, owner_id: str | None
    ) -> Prospect:
        startup_id = tenant.require_startup()
        owner_id = owner_id or None
        await self._check_owner(tenant, owner_id)
        _, prospect = await self._apply(tenant, prospect_id, owner_id=owner_id)
        await self._recorder.record(
            startup_id=startup_id,
            actor_id=tenant.principal_id,
            category=ActivityType.PROSPECT_UPDATED,
            description=f"Changed owner of {prospect.company_name}",
            target_id=prospect.id,
            metadata={"owner_id": owner_id},
        )
        return prospect

    async def change_industry(
        self, tenant: TenantContext, prospect_id: str, industry: str | None
    ) -> Prospect:
        industry = check_industry(industry)
        startup_id = tenant.require_startup()
        _, prospect = await self._apply(tenant, prospect_id, industry=industry)
        await self._recorder.record(
            startup_id=startup_id,
            actor_id=tenant.principal_id,
            category=ActivityType.PROSPECT_UPDATED,
            description=f"Changed industry of {prospect.company_name} to {industry or 'none'}",
            target_id=prospect.id,
        )
        return prospect

    async def add_note(self, tenant: TenantContext, prospect_id: str, note: str) -> Prospect:
        note = note.strip()
        if not note:
            raise InvalidInputError("Note cannot be empty")
        startup_id = tenant.require_startup()
        current = await self.get(tenant, prospect_id)
        stamped = f"[{_utc_now():%Y-%m-%d}] {note}"
        notes = f"{current.notes}\n\n{stamped}" if current.notes else stamped
        _, prospect = await self._apply(tenant, prospect_id, notes=notes)
        await self._recorder.record(
            startup_id=startup_id,
            actor_id=tenant.principal_id,
            category=ActivityType.NOTE_ADDED,
            description=f"Added a note to {prospect.company_name}",
            target_id=prospect.id,
        )
        return prospect

    async def revive_dead_lead(self, tenant: TenantContext, prospect_id: str) -> Prospect:
        """Put a closed-lost prospect back at the start of the pipeline."""
        current = await self.get(tenant, prospect_id)
        if current.stage != ProspectStage.CLOSED_LOST.value:
            raise InvalidInputError("Only dead leads can be revived")
        return await self.change_stage(tenant, prospect_id, ProspectStage.NEW)

    async def delete_prospect(self, tenant: TenantContext, prospect_id: str) -> None:
        if not await self._prospects.delete(tenant, prospect_id):
            raise RecordNotFoundError("Prospect not found")

    async def _apply(
        self, tenant: TenantContext, prospect_id: str, **fields: object
    ) -> tuple[dict[str, object], Prospect]:
        result = await self._prospects.update(tenant, prospect_id, **fields)
        if result is None:
            raise RecordNotFoundError("Prospect not found")
        return result
