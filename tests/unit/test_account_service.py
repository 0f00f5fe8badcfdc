"""Unit tests for admin account actions."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

import pytest

from dealtracker.services.accounts import AccountService
from dealtracker.storage.repositories.profiles import ProfileRepository
from dealtracker.storage.repositories.startups import MembershipRepository
from dealtracker.types import UserRole

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.web.auth.identity import IdentityService
    from dealtracker.web.tenant_context import TenantContext


@pytest.fixture()
def service(engine: AsyncEngine, identity: IdentityService) -> AccountService:
    return AccountService(engine, identity)


@pytest.mark.unit
class TestAdminVerification:
    async def test_stored_role_wins_over_context(
        self, engine: AsyncEngine, service: AccountService, seed, founder_tenant: TenantContext
    ) -> None:
        # A context claiming admin is not enough; the stored profile decides
        forged = replace(founder_tenant, role=UserRole.ADMIN)
        result = await service.create_startup(forged, "Gamma")
        assert result.denied
        assert result.error == "Unauthorized - admin only"

    async def test_demoted_admin_is_denied(
        self, engine: AsyncEngine, service: AccountService, seed, admin_tenant: TenantContext
    ) -> None:
        await ProfileRepository(engine).set_role(seed.admin_id, UserRole.FOUNDER)
        result = await service.get_team_members(admin_tenant)
        assert result.denied
        assert result.value == []


@pytest.mark.unit
class TestAdminActions:
    async def test_create_startup(self, service: AccountService, admin_tenant: TenantContext) -> None:
        result = await service.create_startup(admin_tenant, "  Gamma ", "Desc", "")
        assert result.ok
        assert result.value.name == "Gamma"
        assert result.value.category is None

    async def test_create_startup_requires_name(
        self, service: AccountService, admin_tenant: TenantContext
    ) -> None:
        result = await service.create_startup(admin_tenant, "   ")
        assert result.error == "Startup name is required"

    async def test_create_user_with_password(
        self, engine: AsyncEngine, service: AccountService, seed, admin_tenant: TenantContext
    ) -> None:
        result = await service.create_user_with_password(
            admin_tenant,
            email="hire@example.com",
            password="secret-pass",
            full_name="Hugo Hire",
            startup_id=seed.beta.id,
            role="team",
        )
        assert result.ok, result.error
        assert await MembershipRepository(engine).is_member(result.value, seed.beta.id)

    async def test_create_user_reports_errors(
        self, service: AccountService, seed, admin_tenant: TenantContext
    ) -> None:
        short = await service.create_user_with_password(
            admin_tenant,
            email="hire@example.com",
            password="123",
            full_name="Hugo",
            startup_id=seed.beta.id,
        )
        assert "at least 6" in short.error
        bad_role = await service.create_user_with_password(
            admin_tenant,
            email="hire@example.com",
            password="secret-pass",
            full_name="Hugo",
            startup_id=seed.beta.id,
            role="owner",
        )
        assert bad_role.error == "Unknown member role: owner"

    async def test_team_members(
        self, service: AccountService, seed, admin_tenant: TenantContext
    ) -> None:
        result = await service.get_team_members(admin_tenant)
        emails = {profile.email for profile, _ in result.value}
        assert emails == {"founder@example.com", "outsider@example.com"}

    async def test_update_profile_name(
        self, service: AccountService, founder_tenant: TenantContext
    ) -> None:
        profile = await service.update_profile_name(founder_tenant, "  Fay F. ")
        assert profile.full_name == "Fay F."
