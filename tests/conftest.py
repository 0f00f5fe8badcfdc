"""Shared test fixtures."""

from __future__ import annotations

from dataclasses import dataclass

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from dealtracker.audit.logger import ActivityRecorder
from dealtracker.config.settings import get_settings
from dealtracker.models.database import Startup
from dealtracker.storage.database import get_engine, init_db
from dealtracker.storage.local_store import LocalObjectStore
from dealtracker.storage.repositories.profiles import ProfileRepository
from dealtracker.storage.repositories.startups import MembershipRepository, StartupRepository
from dealtracker.types import UserRole
from dealtracker.web.app import create_app
from dealtracker.web.auth.identity import IdentityService
from dealtracker.web.auth.session import get_session_auth
from dealtracker.web.tenant_context import TenantContext

PASSWORD = "correct-horse"
TEST_ITERATIONS = 1_000


def _clear_caches() -> None:
    get_settings.cache_clear()
    get_session_auth.cache_clear()
    get_engine.cache_clear()


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Point every cached singleton at throwaway test configuration."""
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("PASSWORD_HASH_ITERATIONS", str(TEST_ITERATIONS))
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'default.db'}")
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("MATERIALS_DIR", str(tmp_path / "default-materials"))
    _clear_caches()
    yield
    _clear_caches()


@pytest.fixture()
async def engine(tmp_path):
    """File-backed SQLite engine so concurrent connections share one database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture()
def identity(engine) -> IdentityService:
    return IdentityService(engine, iterations=TEST_ITERATIONS)


@pytest.fixture()
def recorder(engine) -> ActivityRecorder:
    return ActivityRecorder(engine)


@dataclass
class Seed:
    admin_id: str
    founder_id: str
    outsider_id: str
    alpha: Startup
    beta: Startup


@pytest.fixture()
async def seed(engine, identity) -> Seed:
    """One admin, two startups, and one founder in each startup."""
    admin = await identity.sign_up("admin@example.com", PASSWORD, "Ada Admin")
    await ProfileRepository(engine).set_role(admin.user_id, UserRole.ADMIN)
    founder = await identity.sign_up("founder@example.com", PASSWORD, "Fay Founder")
    outsider = await identity.sign_up("outsider@example.com", PASSWORD, "Oscar Outsider")

    startups = StartupRepository(engine)
    alpha = await startups.create("Alpha Labs", category="SaaS")
    beta = await startups.create("Beta Works")

    members = MembershipRepository(engine)
    await members.add_member(alpha.id, founder.user_id)
    await members.add_member(beta.id, outsider.user_id)
    return Seed(
        admin_id=admin.user_id,
        founder_id=founder.user_id,
        outsider_id=outsider.user_id,
        alpha=alpha,
        beta=beta,
    )


@pytest.fixture()
def admin_tenant(seed) -> TenantContext:
    return TenantContext(
        principal_id=seed.admin_id,
        email="admin@example.com",
        role=UserRole.ADMIN,
        startup_id=seed.alpha.id,
        full_name="Ada Admin",
    )


@pytest.fixture()
def founder_tenant(seed) -> TenantContext:
    return TenantContext(
        principal_id=seed.founder_id,
        email="founder@example.com",
        role=UserRole.FOUNDER,
        startup_id=seed.alpha.id,
        full_name="Fay Founder",
    )


@pytest.fixture()
def no_tenant(seed) -> TenantContext:
    return TenantContext(
        principal_id=seed.founder_id,
        email="founder@example.com",
        role=UserRole.FOUNDER,
    )


@pytest.fixture()
def store(tmp_path) -> LocalObjectStore:
    return LocalObjectStore(tmp_path / "materials")


@pytest.fixture()
def app(engine, store):
    """Create a fresh app instance bound to the test database."""
    return create_app(engine=engine, object_store=store)


def _client(app) -> AsyncClient:
    # Session cookies are marked secure outside debug mode
    return AsyncClient(transport=ASGITransport(app=app), base_url="https://test")


async def _login(client: AsyncClient, email: str) -> None:
    resp = await client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200, resp.text


@pytest.fixture()
async def client(app):
    """An anonymous client."""
    async with _client(app) as c:
        yield c


@pytest.fixture()
async def admin_client(app, seed):
    """A client logged in as the admin."""
    async with _client(app) as c:
        await _login(c, "admin@example.com")
        yield c


@pytest.fixture()
async def founder_client(app, seed):
    """A client logged in as the founder of Alpha Labs."""
    async with _client(app) as c:
        await _login(c, "founder@example.com")
        yield c
