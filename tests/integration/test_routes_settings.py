"""Integration tests for admin settings and the invite flow."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient


@pytest.mark.integration
class TestAdminOnlyActions:
    @pytest.mark.parametrize(
        ("method", "path", "body"),
        [
            ("POST", "/api/settings/startups", {"name": "Gamma"}),
            ("GET", "/api/settings/team", None),
            ("GET", "/api/settings/invites", None),
            ("POST", "/api/settings/invites", {"email": "x@example.com", "startup_id": "s"}),
            ("DELETE", "/api/settings/invites/some-id", None),
        ],
    )
    async def test_founder_gets_error_payload(
        self, founder_client: AsyncClient, method: str, path: str, body: dict | None
    ) -> None:
        resp = await founder_client.request(method, path, json=body)
        assert resp.status_code == 403
        assert resp.json() == {"error": "Unauthorized - admin only"}

    async def test_create_startup(self, admin_client: AsyncClient) -> None:
        resp = await admin_client.post(
            "/api/settings/startups", json={"name": "Gamma", "category": "Fintech"}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["startup"]["name"] == "Gamma"
        names = [s["name"] for s in (await admin_client.get("/api/startups")).json()["startups"]]
        assert names == ["Alpha Labs", "Beta Works", "Gamma"]

    async def test_create_user_then_login(self, admin_client: AsyncClient, app, seed) -> None:
        resp = await admin_client.post(
            "/api/settings/users",
            json={
                "email": "hire@example.com",
                "password": "secret-pass",
                "full_name": "Hugo Hire",
                "startup_id": seed.beta.id,
                "role": "team",
            },
        )
        assert resp.status_code == 200
        assert resp.json()["success"] is True

        async with AsyncClient(transport=ASGITransport(app=app), base_url="https://test") as c:
            login = await c.post(
                "/api/auth/login", json={"email": "hire@example.com", "password": "secret-pass"}
            )
            assert login.status_code == 200
            startups = (await c.get("/api/startups")).json()["startups"]
            assert [s["name"] for s in startups] == ["Beta Works"]

    async def test_create_user_unknown_startup(self, admin_client: AsyncClient) -> None:
        resp = await admin_client.post(
            "/api/settings/users",
            json={
                "email": "hire@example.com",
                "password": "secret-pass",
                "full_name": "Hugo Hire",
                "startup_id": "missing",
            },
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Startup not found"}

    async def test_team_members(self, admin_client: AsyncClient) -> None:
        resp = await admin_client.get("/api/settings/team")
        members = {m["email"]: m for m in resp.json()["members"]}
        assert set(members) == {"founder@example.com", "outsider@example.com"}
        assert members["founder@example.com"]["startups"][0]["name"] == "Alpha Labs"

    async def test_update_own_profile(self, founder_client: AsyncClient) -> None:
        resp = await founder_client.put("/api/settings/profile", json={"full_name": "Fay F."})
        assert resp.status_code == 200
        assert resp.json()["full_name"] == "Fay F."


@pytest.mark.integration
class TestInviteFlow:
    async def _create_invite(self, admin_client: AsyncClient, startup_id: str) -> dict:
        resp = await admin_client.post(
            "/api/settings/invites",
            json={"email": "invitee@example.com", "startup_id": startup_id, "role": "team"},
        )
        assert resp.status_code == 200, resp.text
        return resp.json()

    async def test_invite_accept_once(self, admin_client: AsyncClient, client, seed) -> None:
        invite = await self._create_invite(admin_client, seed.alpha.id)
        assert invite["invite_url"] == f"/invite/{invite['token']}"

        pending = (await admin_client.get("/api/settings/invites")).json()["invites"]
        assert [p["email"] for p in pending] == ["invitee@example.com"]

        lookup = await client.get(f"/api/invites/{invite['token']}")
        assert lookup.json()["startup_name"] == "Alpha Labs"

        page = await client.get(f"/invite/{invite['token']}")
        assert page.status_code == 200
        assert "Join Alpha Labs" in page.text

        accepted = await client.post(
            f"/api/invites/{invite['token']}/accept",
            json={"password": "secret-pass", "full_name": "Ivy Invitee"},
        )
        assert accepted.status_code == 200
        startups = (await client.get("/api/startups")).json()["startups"]
        assert [s["name"] for s in startups] == ["Alpha Labs"]

        again = await client.post(
            f"/api/invites/{invite['token']}/accept",
            json={"password": "secret-pass", "full_name": "Ivy Again"},
        )
        assert again.status_code == 403
        assert (await client.get(f"/api/invites/{invite['token']}")).status_code == 403
        assert (await admin_client.get("/api/settings/invites")).json()["invites"] == []

    async def test_unknown_invite_page(self, client) -> None:
        resp = await client.get("/invite/not-a-token")
        assert resp.status_code == 404
        assert "Invalid invite" in resp.text

    async def test_delete_invite(self, admin_client: AsyncClient, client, seed) -> None:
        invite = await self._create_invite(admin_client, seed.alpha.id)
        resp = await admin_client.delete(f"/api/settings/invites/{invite['invite_id']}")
        assert resp.json() == {"success": True}
        assert (await client.get(f"/api/invites/{invite['token']}")).status_code == 403
