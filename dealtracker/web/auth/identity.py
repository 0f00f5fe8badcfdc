"""Email/password identity service.

Principals live in ``auth_users``; each one gets exactly one ``profiles``
row, created in the same transaction. Passwords are stored as
``pbkdf2_sha256$<iterations>$<salt>$<digest>``.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
from typing import TYPE_CHECKING

import structlog
from sqlmodel import col, delete, select

from dealtracker.exceptions import InvalidInputError
from dealtracker.models.database import AuthUser, Profile, _utc_now
from dealtracker.storage.database import session_scope
from dealtracker.types import UserRole
from dealtracker.web.tenant_context import Principal

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 6
DEFAULT_ITERATIONS = 310_000
_SCHEME = "pbkdf2_sha256"


def hash_password(password: str, iterations: int = DEFAULT_ITERATIONS) -> str:
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return "$".join(
        [
            _SCHEME,
            str(iterations),
            base64.b64encode(salt).decode("utf-8"),
            base64.b64encode(digest).decode("utf-8"),
        ]
    )


def verify_password(password: str, encoded: str) -> bool:
    try:
        scheme, iterations, salt_b64, expected = encoded.split("$", 3)
    except ValueError:
        return False
    if scheme != _SCHEME:
        return False
    salt = base64.b64decode(salt_b64)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, int(iterations))
    return hmac.compare_digest(base64.b64encode(digest).decode("utf-8"), expected)


def normalize_email(email: str) -> str:
    email = email.strip().lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise InvalidInputError("A valid email address is required")
    return email


def validate_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInputError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


class IdentityService:
    """Sign-up, sign-in and out-of-band account creation."""

    def __init__(self, engine: AsyncEngine, iterations: int = DEFAULT_ITERATIONS) -> None:
        self._engine = engine
        self._iterations = iterations

    async def sign_up(self, email: str, password: str, full_name: str | None = None) -> Principal:
        """Self-service sign-up. Always creates a founder profile."""
        principal = await self._create(email, password, full_name)
        logger.info("user_signed_up", user_id=principal.user_id)
        return principal

    async def admin_create_user(
        self, email: str, password: str, full_name: str | None = None
    ) -> Principal:
        """Provision an account without a sign-up flow; returns the durable principal."""
        principal = await self._create(email, password, full_name)
        logger.info("user_provisioned", user_id=principal.user_id)
        return principal

    async def sign_in(self, email: str, password: str) -> Principal | None:
        email = email.strip().lower()
        async with session_scope(self._engine) as session:
            stmt = select(AuthUser).where(col(AuthUser.email) == email)
            user = (await session.execute(stmt)).scalars().first()
            if not user or not verify_password(password, user.password_hash):
                logger.info("sign_in_failed")
                return None
            user.last_sign_in_at = _utc_now()
            session.add(user)
            await session.commit()
            logger.info("user_signed_in", user_id=user.id)
            return Principal(user_id=user.id, email=user.email)

    async def delete_user(self, user_id: str) -> None:
        """Remove an account and its profile, undoing a provisioning step that failed later."""
        async with session_scope(self._engine) as session:
            await session.execute(delete(Profile).where(col(Profile.id) == user_id))
            await session.execute(delete(AuthUser).where(col(AuthUser.id) == user_id))
            await session.commit()
        logger.info("user_deleted", user_id=user_id)

    async def get_principal(self, user_id: str) -> Principal | None:
        async with session_scope(self._engine) as session:
            user = await session.get(AuthUser, user_id)
            if not user:
                return None
            return Principal(user_id=user.id, email=user.email)

    async def _create(self, email: str, password: str, full_name: str | None) -> Principal:
        email = normalize_email(email)
        validate_password(password)
        async with session_scope(self._engine) as session:
            existing = await session.execute(select(AuthUser.id).where(col(AuthUser.email) == email))
            if existing.scalars().first() is not None:
                raise InvalidInputError("An account with this email already exists")
            user = AuthUser(email=email, password_hash=hash_password(password, self._iterations))
            session.add(user)
            await session.flush()
            session.add(
                Profile(
                    id=user.id,
                    email=email,
                    full_name=(full_name or "").strip() or None,
                    role=UserRole.FOUNDER.value,
                )
            )
            await session.commit()
            return Principal(user_id=user.id, email=email)
