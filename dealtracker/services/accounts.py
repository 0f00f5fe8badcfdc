"""Admin account actions and self-service profile edits.

Admin actions re-read the caller's role from the database on every call
instead of trusting the request context, and report failures as an
``ActionResult`` carrying an error message rather than raising.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from dealtracker.exceptions import DealTrackerError, InvalidInputError
from dealtracker.storage.repositories.profiles import ProfileRepository
from dealtracker.storage.repositories.startups import MembershipRepository, StartupRepository
from dealtracker.types import MemberRole, UserRole

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.models.database import Profile
    from dealtracker.web.auth.identity import IdentityService
    from dealtracker.web.tenant_context import TenantContext

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ActionResult:
    """Outcome of an admin-gated action: a value on success, an error message otherwise."""

    value: Any = None
    error: str | None = None
    denied: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_member_role(value: str | MemberRole) -> MemberRole:
    try:
        return MemberRole(value)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown member role: {value}") from exc


async def verify_admin(profiles: ProfileRepository, tenant: TenantContext) -> str | None:
    """Return an error message unless the caller's stored profile is an admin."""
    profile = await profiles.get(tenant.principal_id)
    if profile is None:
        return "Unauthorized - not authenticated"
    if profile.role != UserRole.ADMIN.value:
        logger.warning("admin_action_denied", user_id=tenant.principal_id)
        return "Unauthorized - admin only"
    return None


class AccountService:
    def __init__(self, engine: AsyncEngine, identity: IdentityService) -> None:
        self._profiles = ProfileRepository(engine)
        self._startups = StartupRepository(engine)
        self._memberships = MembershipRepository(engine)
        self._identity = identity

    async def create_startup(
        self,
        tenant: TenantContext,
        name: str,
        description: str | None = None,
        category: str | None = None,
    ) -> ActionResult:
        if error := await verify_admin(self._profiles, tenant):
            return ActionResult(error=error, denied=True)
        name = name.strip()
        if not name:
            return ActionResult(error="Startup name is required")
        try:
            startup = await self._startups.create(
                name, (description or "").strip() or None, (category or "").strip() or None
            )
        except DealTrackerError as exc:
            return ActionResult(error=str(exc))
        return ActionResult(value=startup)

    async def create_user_with_password(
        self,
        tenant: TenantContext,
        *,
        email: str,
        password: str,
        full_name: str,
        startup_id: str,
        role: str | MemberRole = MemberRole.FOUNDER,
    ) -> ActionResult:
        """Provision an account directly and grant it membership in ``startup_id``."""
        if error := await verify_admin(self._profiles, tenant):
            return ActionResult(error=error, denied=True)
        try:
            member_role = parse_member_role(role)
            if await self._startups.get(startup_id) is None:
                return ActionResult(error="Startup not found")
            principal = await self._identity.admin_create_user(email, password, full_name)
            await self._memberships.add_member(startup_id, principal.user_id, member_role)
        except DealTrackerError as exc:
            return ActionResult(error=str(exc))
        logger.info("admin_created_user", user_id=principal.user_id, startup_id=startup_id)
        return ActionResult(value=principal.user_id)

    async def get_team_members(self, tenant: TenantContext) -> ActionResult:
        """Every non-admin profile with its startup memberships."""
        if error := await verify_admin(self._profiles, tenant):
            return ActionResult(value=[], error=error, denied=True)
        try:
            members = await self._profiles.list_non_admin_with_startups()
        except DealTrackerError as exc:
            return ActionResult(value=[], error=str(exc))
        return ActionResult(value=members)

    async def update_profile_name(self, tenant: TenantContext, full_name: str) -> Profile:
        profile = await self._profiles.update_full_name(
            tenant.principal_id, full_name.strip() or None
        )
        if profile is None:
            raise InvalidInputError("Profile not found")
        return profile
