"""Tenant selection: turn (profile, client hint) into a validated startup id.

The ``current_startup_id`` cookie is only a hint. It is re-validated on
every request by ``resolve_tenant`` and the result is carried downstream
in an immutable ``TenantContext``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import structlog
from fastapi import Depends, Request

from dealtracker.config.settings import get_settings
from dealtracker.exceptions import AuthenticationRequiredError
from dealtracker.storage.repositories.profiles import ProfileRepository
from dealtracker.storage.repositories.startups import MembershipRepository, StartupRepository
from dealtracker.types import UserRole
from dealtracker.web.auth.session import require_principal
from dealtracker.web.dependencies import get_db_engine
from dealtracker.web.tenant_context import Principal, TenantContext

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine
    from starlette.responses import Response

    from dealtracker.models.database import Profile

logger = structlog.get_logger(__name__)


class MembershipLookup(Protocol):
    async def is_member(self, profile_id: str, startup_id: str) -> bool: ...


class TenantSelectionRequired(Exception):
    """Raised for a page view with no hint while a default startup exists.

    The app handler persists ``startup_id`` as the new hint and redirects
    back to ``url`` so the choice takes effect immediately.
    """

    def __init__(self, startup_id: str, url: str) -> None:
        super().__init__(startup_id)
        self.startup_id = startup_id
        self.url = url


async def resolve_tenant(
    profile: Profile | None, hint: str | None, memberships: MembershipLookup
) -> str | None:
    """Validate a client-supplied startup hint for this profile.

    Admins are trusted outright. Founders need a membership row for the
    hinted startup; a stale or foreign hint degrades to None, never an error.
    """
    if profile is None:
        return None
    if not hint:
        return None
    if profile.role == UserRole.ADMIN.value:
        return hint
    if await memberships.is_member(profile.id, hint):
        return hint
    logger.info("tenant_hint_rejected", profile_id=profile.id, hint=hint)
    return None


async def pick_default_startup(
    profile: Profile, startups: StartupRepository, memberships: MembershipRepository
) -> str | None:
    """First startup by name for admins, first membership for founders."""
    if profile.role == UserRole.ADMIN.value:
        return await startups.first_by_name()
    return await memberships.first_startup_for(profile.id)


def set_tenant_cookie(response: Response, startup_id: str) -> None:
    """Persist a validated startup choice as the hint cookie."""
    settings = get_settings()
    response.set_cookie(
        key=settings.tenant_cookie_name,
        value=startup_id,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
        max_age=settings.tenant_cookie_max_age,
    )


def _is_page_view(request: Request) -> bool:
    return request.method == "GET" and not request.url.path.startswith("/api/")


async def get_tenant(
    request: Request,
    principal: Principal = Depends(require_principal),
    engine: AsyncEngine = Depends(get_db_engine),
) -> TenantContext:
    """Resolve principal -> profile -> validated startup for this request."""
    profile = await ProfileRepository(engine).get(principal.user_id)
    if profile is None:
        raise AuthenticationRequiredError("No profile for this session")

    memberships = MembershipRepository(engine)
    hint = request.cookies.get(get_settings().tenant_cookie_name)
    startup_id = await resolve_tenant(profile, hint, memberships)

    if not hint and _is_page_view(request):
        default = await pick_default_startup(profile, StartupRepository(engine), memberships)
        if default is not None:
            raise TenantSelectionRequired(default, str(request.url))

    tenant = TenantContext(
        principal_id=profile.id,
        email=profile.email,
        role=UserRole(profile.role),
        startup_id=startup_id,
        full_name=profile.full_name,
    )
    structlog.contextvars.bind_contextvars(user_id=tenant.principal_id, startup_id=startup_id)
    return tenant
