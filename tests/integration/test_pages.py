"""Integration tests for the server-rendered pages."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

PAGES = [
    "/dashboard",
    "/prospects",
    "/dead-leads",
    "/calendar",
    "/products",
    "/materials",
    "/sales-scripts",
    "/settings",
]


@pytest.mark.integration
class TestDefaultTenantSelection:
    async def test_first_visit_selects_default_startup(
        self, founder_client: AsyncClient, seed
    ) -> None:
        resp = await founder_client.get("/dashboard")
        assert resp.status_code == 302
        assert resp.headers["location"].endswith("/dashboard")
        assert resp.cookies.get("current_startup_id") == seed.alpha.id

        page = await founder_client.get("/dashboard", follow_redirects=True)
        assert page.status_code == 200
        assert "Alpha Labs" in page.text

    async def test_admin_default_is_first_startup_by_name(
        self, admin_client: AsyncClient, seed
    ) -> None:
        resp = await admin_client.get("/prospects")
        assert resp.cookies.get("current_startup_id") == seed.alpha.id

    async def test_stale_hint_renders_empty_state(self, founder_client: AsyncClient, seed) -> None:
        founder_client.cookies.set("current_startup_id", seed.beta.id)
        resp = await founder_client.get("/dashboard")
        assert resp.status_code == 200
        assert "No startup selected" in resp.text

    async def test_user_without_startups(self, client: AsyncClient, seed) -> None:
        await client.post(
            "/api/auth/signup", json={"email": "solo@example.com", "password": "secret-pass"}
        )
        resp = await client.get("/prospects")
        assert resp.status_code == 200
        assert "No prospects yet" in resp.text


@pytest.mark.integration
class TestPagesRender:
    @pytest.mark.parametrize("path", PAGES)
    async def test_admin_pages(self, admin_client: AsyncClient, seed, path: str) -> None:
        admin_client.cookies.set("current_startup_id", seed.beta.id)
        resp = await admin_client.get(path)
        assert resp.status_code == 200
        assert "Beta Works" in resp.text

    @pytest.mark.parametrize("path", PAGES)
    async def test_founder_pages(self, founder_client: AsyncClient, seed, path: str) -> None:
        founder_client.cookies.set("current_startup_id", seed.alpha.id)
        resp = await founder_client.get(path)
        assert resp.status_code == 200

    async def test_settings_admin_sections_hidden_from_founder(
        self, founder_client: AsyncClient, admin_client: AsyncClient, seed
    ) -> None:
        founder_client.cookies.set("current_startup_id", seed.alpha.id)
        admin_client.cookies.set("current_startup_id", seed.alpha.id)
        assert "Create user" not in (await founder_client.get("/settings")).text
        assert "Create user" in (await admin_client.get("/settings")).text

    async def test_prospect_pages_show_data(self, founder_client: AsyncClient, seed) -> None:
        founder_client.cookies.set("current_startup_id", seed.alpha.id)
        created = await founder_client.post(
            "/api/prospects",
            json={"company_name": "Acme Co", "meeting_date": "2030-05-01", "estimated_value": 900},
        )
        pid = created.json()["id"]
        await founder_client.patch(f"/api/prospects/{pid}/stage", json={"stage": "intro_made"})

        listing = await founder_client.get("/prospects")
        assert "Acme Co" in listing.text
        detail = await founder_client.get(f"/prospects/{pid}")
        assert detail.status_code == 200
        assert "Moved Acme Co from New to Intro Made" in detail.text
        calendar = await founder_client.get("/calendar")
        assert "May 2030" in calendar.text
        dashboard = await founder_client.get("/dashboard")
        assert "$900" in dashboard.text

    async def test_missing_prospect_page(self, founder_client: AsyncClient, seed) -> None:
        founder_client.cookies.set("current_startup_id", seed.alpha.id)
        resp = await founder_client.get("/prospects/does-not-exist")
        assert resp.status_code == 404
        assert "Prospect not found" in resp.text


@pytest.mark.integration
class TestStartupSwitcher:
    async def test_form_switch_redirects_back(self, admin_client: AsyncClient, seed) -> None:
        resp = await admin_client.post(
            "/startups/current",
            data={"startup_id": seed.beta.id},
            headers={"referer": "https://test/products"},
        )
        assert resp.status_code == 303
        assert resp.headers["location"] == "/products"
        assert resp.cookies.get("current_startup_id") == seed.beta.id

    async def test_form_switch_ignores_offsite_referer(
        self, admin_client: AsyncClient, seed
    ) -> None:
        resp = await admin_client.post(
            "/startups/current",
            data={"startup_id": seed.beta.id},
            headers={"referer": "https://evil.example/phish"},
        )
        assert resp.status_code == 303
        assert resp.headers["location"] == "/dashboard"

    async def test_form_switch_to_foreign_startup(
        self, founder_client: AsyncClient, seed
    ) -> None:
        resp = await founder_client.post("/startups/current", data={"startup_id": seed.beta.id})
        assert resp.status_code == 403
        assert "do not have access" in resp.text
