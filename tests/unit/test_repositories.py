"""Unit tests for tenant scoping in the repositories."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest

from dealtracker.exceptions import AccessDeniedError
from dealtracker.models.database import Invite, Startup, _utc_now, as_utc
from dealtracker.storage.repositories.invites import InviteRepository
from dealtracker.storage.repositories.materials import MaterialRepository
from dealtracker.storage.repositories.products import ProductRepository
from dealtracker.storage.repositories.profiles import ProfileRepository
from dealtracker.storage.repositories.prospects import ProspectRepository
from dealtracker.storage.repositories.sales_scripts import SalesScriptRepository
from dealtracker.storage.repositories.startups import MembershipRepository, StartupRepository
from dealtracker.types import MaterialType, MemberRole, ScriptChannel

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.web.tenant_context import TenantContext


@pytest.mark.unit
class TestNoTenant:
    async def test_reads_return_empty(self, engine: AsyncEngine, no_tenant: TenantContext) -> None:
        assert await ProspectRepository(engine).list_all(no_tenant) == []
        assert await ProspectRepository(engine).list_meetings(no_tenant) == []
        assert await ProspectRepository(engine).get(no_tenant, "anything") is None
        assert await ProductRepository(engine).list_all(no_tenant) == []
        assert await SalesScriptRepository(engine).list_all(no_tenant) == []
        assert await MaterialRepository(engine).list_with_versions(no_tenant) == []

    async def test_writes_raise(self, engine: AsyncEngine, no_tenant: TenantContext) -> None:
        with pytest.raises(AccessDeniedError):
            await ProspectRepository(engine).create(no_tenant, company_name="Acme")
        with pytest.raises(AccessDeniedError):
            await ProductRepository(engine).create(no_tenant, "Widget")
        with pytest.raises(AccessDeniedError):
            await SalesScriptRepository(engine).create(
                no_tenant, "Intro", "Hello", ScriptChannel.EMAIL
            )
        with pytest.raises(AccessDeniedError):
            await MaterialRepository(engine).create(no_tenant, "Deck", MaterialType.OTHER, None)


@pytest.mark.unit
class TestCrossTenantIsolation:
    async def test_prospect_invisible_from_other_startup(
        self, engine: AsyncEngine, seed, admin_tenant: TenantContext
    ) -> None:
        repo = ProspectRepository(engine)
        prospect = await repo.create(admin_tenant, company_name="Acme")
        beta = replace(admin_tenant, startup_id=seed.beta.id)
        assert await repo.get(beta, prospect.id) is None
        assert await repo.list_all(beta) == []
        assert await repo.update(beta, prospect.id, company_name="Hijacked") is None
        assert await repo.delete(beta, prospect.id) is False
        assert (await repo.get(admin_tenant, prospect.id)).company_name == "Acme"

    async def test_product_update_scoped(
        self, engine: AsyncEngine, seed, founder_tenant: TenantContext
    ) -> None:
        repo = ProductRepository(engine)
        product = await repo.create(founder_tenant, "Widget", pricing="$10")
        other = replace(founder_tenant, startup_id=seed.beta.id)
        assert await repo.update(other, product.id, "Gadget") is None
        updated = await repo.update(founder_tenant, product.id, "Gadget", "New", "$20")
        assert updated is not None
        assert updated.name == "Gadget"

    async def test_update_returns_previous_values(
        self, engine: AsyncEngine, founder_tenant: TenantContext
    ) -> None:
        repo = ProspectRepository(engine)
        prospect = await repo.create(founder_tenant, company_name="Acme", stage="new")
        before, after = await repo.update(founder_tenant, prospect.id, stage="intro_made")
        assert before["stage"] == "new"
        assert after.stage == "intro_made"

    async def test_update_ignores_non_editable_fields(
        self, engine: AsyncEngine, seed, founder_tenant: TenantContext
    ) -> None:
        repo = ProspectRepository(engine)
        prospect = await repo.create(founder_tenant, company_name="Acme")
        _, after = await repo.update(founder_tenant, prospect.id, startup_id=seed.beta.id)
        assert after.startup_id == seed.alpha.id


@pytest.mark.unit
class TestProspectListings:
    async def test_active_and_dead_split(
        self, engine: AsyncEngine, founder_tenant: TenantContext
    ) -> None:
        repo = ProspectRepository(engine)
        await repo.create(founder_tenant, company_name="Live", stage="proposal_sent")
        await repo.create(founder_tenant, company_name="Gone", stage="closed_lost")
        assert [p.company_name for p in await repo.list_active(founder_tenant)] == ["Live"]
        assert [p.company_name for p in await repo.list_dead(founder_tenant)] == ["Gone"]


@pytest.mark.unit
class TestSalesScripts:
    async def test_filter_by_channel_and_search(
        self, engine: AsyncEngine, founder_tenant: TenantContext
    ) -> None:
        repo = SalesScriptRepository(engine)
        await repo.create(founder_tenant, "Cold intro", "Hi there", ScriptChannel.EMAIL)
        await repo.create(
            founder_tenant, "Follow up", "Circling back on pricing", ScriptChannel.LINKEDIN
        )
        linkedin = await repo.list_all(founder_tenant, channel=ScriptChannel.LINKEDIN)
        assert [s.title for s in linkedin] == ["Follow up"]
        found = await repo.list_all(founder_tenant, search="PRICING")
        assert [s.title for s in found] == ["Follow up"]
        assert await repo.list_all(founder_tenant, channel=ScriptChannel.TEXT) == []


@pytest.mark.unit
class TestStartupsAndMemberships:
    async def test_list_all_unscoped_is_admin_only(
        self, engine: AsyncEngine, admin_tenant: TenantContext, founder_tenant: TenantContext
    ) -> None:
        repo = StartupRepository(engine)
        assert [s.name for s in await repo.list_all_unscoped(admin_tenant)] == [
            "Alpha Labs",
            "Beta Works",
        ]
        with pytest.raises(AccessDeniedError):
            await repo.list_all_unscoped(founder_tenant)

    async def test_list_accessible(
        self, engine: AsyncEngine, admin_tenant: TenantContext, founder_tenant: TenantContext
    ) -> None:
        repo = StartupRepository(engine)
        assert len(await repo.list_accessible(admin_tenant)) == 2
        assert [s.name for s in await repo.list_accessible(founder_tenant)] == ["Alpha Labs"]

    async def test_add_member_is_idempotent(self, engine: AsyncEngine, seed) -> None:
        members = MembershipRepository(engine)
        first = await members.add_member(seed.alpha.id, seed.outsider_id, MemberRole.TEAM)
        second = await members.add_member(seed.alpha.id, seed.outsider_id, MemberRole.FOUNDER)
        assert first.id == second.id
        assert second.role == MemberRole.TEAM.value
        assert (await members.list_member_ids(seed.alpha.id)).count(seed.outsider_id) == 1
        startups = await StartupRepository(engine).list_for_member(seed.outsider_id)
        assert sorted(s.name for s in startups) == ["Alpha Labs", "Beta Works"]


@pytest.mark.unit
class TestProfiles:
    async def test_non_admins_with_startups(self, engine: AsyncEngine, seed) -> None:
        rows = await ProfileRepository(engine).list_non_admin_with_startups()
        by_email = {profile.email: startups for profile, startups in rows}
        assert "admin@example.com" not in by_email
        assert [(s.name, role) for s, role in by_email["founder@example.com"]] == [
            ("Alpha Labs", "founder")
        ]

    async def test_get_by_email_is_case_insensitive(self, engine: AsyncEngine, seed) -> None:
        profile = await ProfileRepository(engine).get_by_email("Founder@Example.com")
        assert profile is not None
        assert profile.id == seed.founder_id


@pytest.mark.unit
class TestTimestamps:
    def test_new_rows_carry_aware_utc(self) -> None:
        assert Startup(name="Acme").created_at.tzinfo is UTC
        assert _utc_now().tzinfo is UTC

    def test_naive_values_are_read_as_utc(self) -> None:
        noon = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        assert as_utc(noon.replace(tzinfo=None)) == noon
        assert as_utc(noon) is noon
        invite = Invite(
            email="x@example.com",
            startup_id="s",
            token="t",
            invited_by="p",
            expires_at=noon,
        )
        assert invite.is_usable(datetime(2026, 1, 1, 11, 0, tzinfo=UTC))
        assert not invite.is_usable(datetime(2026, 1, 1, 13, 0, tzinfo=UTC))

    async def test_stored_expiry_round_trips(self, engine: AsyncEngine, seed) -> None:
        repo = InviteRepository(engine)
        await repo.create(
            email="new@example.com",
            startup_id=seed.alpha.id,
            role=MemberRole.FOUNDER,
            token="round-trip",
            invited_by=seed.admin_id,
            expires_at=_utc_now() + timedelta(days=1),
        )
        stored = await repo.get_by_token("round-trip")
        assert stored is not None
        assert stored.is_usable()
        assert await repo.claim("round-trip", _utc_now()) is not None
