"""Unit tests for password hashing and the identity service."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from dealtracker.exceptions import InvalidInputError
from dealtracker.storage.repositories.profiles import ProfileRepository
from dealtracker.types import UserRole
from dealtracker.web.auth.identity import (
    hash_password,
    normalize_email,
    validate_password,
    verify_password,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.web.auth.identity import IdentityService


@pytest.mark.unit
class TestPasswords:
    def test_hash_and_verify(self) -> None:
        encoded = hash_password("hunter22", iterations=1_000)
        assert encoded.startswith("pbkdf2_sha256$1000$")
        assert verify_password("hunter22", encoded)
        assert not verify_password("hunter23", encoded)

    def test_salts_differ(self) -> None:
        assert hash_password("same-pass", 1_000) != hash_password("same-pass", 1_000)

    @pytest.mark.parametrize("encoded", ["", "plain", "md5$1$c2FsdA==$ZGlnZXN0"])
    def test_verify_rejects_unknown_formats(self, encoded: str) -> None:
        assert verify_password("anything", encoded) is False

    def test_short_password_rejected(self) -> None:
        with pytest.raises(InvalidInputError, match="at least 6"):
            validate_password("12345")
        validate_password("123456")

    def test_normalize_email(self) -> None:
        assert normalize_email("  Fay@Example.COM ") == "fay@example.com"

    @pytest.mark.parametrize("email", ["", "no-at-sign", "@example.com", "fay@"])
    def test_invalid_email(self, email: str) -> None:
        with pytest.raises(InvalidInputError):
            normalize_email(email)


@pytest.mark.unit
class TestIdentityService:
    async def test_sign_up_creates_founder_profile(
        self, engine: AsyncEngine, identity: IdentityService
    ) -> None:
        principal = await identity.sign_up("New@Example.com", "secret-pass", "  New User ")
        assert principal.email == "new@example.com"
        profile = await ProfileRepository(engine).get(principal.user_id)
        assert profile is not None
        assert profile.role == UserRole.FOUNDER.value
        assert profile.full_name == "New User"

    async def test_duplicate_email_rejected(self, identity: IdentityService) -> None:
        await identity.sign_up("dup@example.com", "secret-pass")
        with pytest.raises(InvalidInputError, match="already exists"):
            await identity.admin_create_user("DUP@example.com", "secret-pass", "Dup")

    async def test_sign_in(self, identity: IdentityService) -> None:
        created = await identity.sign_up("login@example.com", "secret-pass")
        principal = await identity.sign_in(" LOGIN@example.com", "secret-pass")
        assert principal is not None
        assert principal.user_id == created.user_id

    async def test_sign_in_wrong_password(self, identity: IdentityService) -> None:
        await identity.sign_up("login@example.com", "secret-pass")
        assert await identity.sign_in("login@example.com", "wrong-pass") is None
        assert await identity.sign_in("nobody@example.com", "secret-pass") is None

    async def test_get_principal(self, identity: IdentityService) -> None:
        created = await identity.sign_up("p@example.com", "secret-pass")
        assert await identity.get_principal(created.user_id) == created
        assert await identity.get_principal("missing") is None
