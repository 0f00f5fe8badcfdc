"""Invite lifecycle: admin creation and deletion, public lookup and acceptance."""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import TYPE_CHECKING

import structlog

from dealtracker.exceptions import DealTrackerError, InvalidInputError, StaleReferenceError
from dealtracker.models.database import _utc_now
from dealtracker.services.accounts import ActionResult, parse_member_role, verify_admin
from dealtracker.storage.repositories.invites import InviteRepository
from dealtracker.storage.repositories.profiles import ProfileRepository
from dealtracker.storage.repositories.startups import MembershipRepository, StartupRepository
from dealtracker.types import MemberRole
from dealtracker.web.auth.identity import normalize_email

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.models.database import Invite
    from dealtracker.web.auth.identity import IdentityService
    from dealtracker.web.tenant_context import Principal, TenantContext

logger = structlog.get_logger(__name__)


class InviteService:
    def __init__(self, engine: AsyncEngine, identity: IdentityService, ttl_days: int = 7) -> None:
        self._invites = InviteRepository(engine)
        self._profiles = ProfileRepository(engine)
        self._startups = StartupRepository(engine)
        self._memberships = MembershipRepository(engine)
        self._identity = identity
        self._ttl = timedelta(days=ttl_days)

    async def create_invite(
        self,
        tenant: TenantContext,
        *,
        email: str,
        startup_id: str,
        role: str | MemberRole = MemberRole.FOUNDER,
    ) -> ActionResult:
        if error := await verify_admin(self._profiles, tenant):
            return ActionResult(error=error, denied=True)
        try:
            email = normalize_email(email)
            member_role = parse_member_role(role)
            if await self._startups.get(startup_id) is None:
                return ActionResult(error="Startup not found")
            invite = await self._invites.create(
                email=email,
                startup_id=startup_id,
                role=member_role,
                token=secrets.token_urlsafe(32),
                invited_by=tenant.principal_id,
                expires_at=_utc_now() + self._ttl,
            )
        except DealTrackerError as exc:
            return ActionResult(error=str(exc))
        return ActionResult(value=invite)

    async def delete_invite(self, tenant: TenantContext, invite_id: str) -> ActionResult:
        if error := await verify_admin(self._profiles, tenant):
            return ActionResult(error=error, denied=True)
        try:
            deleted = await self._invites.delete(invite_id)
        except DealTrackerError as exc:
            return ActionResult(error=str(exc))
        if not deleted:
            return ActionResult(error="Invite not found")
        return ActionResult(value=invite_id)

    async def list_pending_invites(self, tenant: TenantContext) -> ActionResult:
        """Unaccepted invites with startup names; expired ones are included and flagged."""
        if error := await verify_admin(self._profiles, tenant):
            return ActionResult(value=[], error=error, denied=True)
        try:
            rows = await self._invites.list_pending()
        except DealTrackerError as exc:
            return ActionResult(value=[], error=str(exc))
        now = _utc_now()
        return ActionResult(
            value=[(invite, name, invite.is_usable(now)) for invite, name in rows]
        )

    async def lookup_invite(self, token: str) -> tuple[Invite, str] | None:
        """Return a usable invite and its startup name, or None."""
        invite = await self._invites.get_by_token(token)
        if invite is None or not invite.is_usable():
            return None
        startup = await self._startups.get(invite.startup_id)
        return invite, startup.name if startup else ""

    async def accept_invite(self, token: str, password: str, full_name: str) -> Principal:
        """Create the invitee's account and membership.

        The invite is claimed first with a conditional update, so a token
        can be accepted once. If account or membership creation fails, the
        account is removed again and the claim is released.
        """
        full_name = full_name.strip()
        if not full_name:
            raise InvalidInputError("Full name is required")
        invite = await self._invites.claim(token, _utc_now())
        if invite is None:
            raise StaleReferenceError("Invalid or expired invite")

        try:
            principal = await self._identity.admin_create_user(invite.email, password, full_name)
        except DealTrackerError:
            await self._invites.release(invite.id)
            raise

        try:
            await self._memberships.add_member(
                invite.startup_id, principal.user_id, MemberRole(invite.role)
            )
        except DealTrackerError:
            await self._identity.delete_user(principal.user_id)
            await self._invites.release(invite.id)
            raise
        logger.info(
            "invite_accepted",
            invite_id=invite.id,
            user_id=principal.user_id,
            startup_id=invite.startup_id,
        )
        return principal
