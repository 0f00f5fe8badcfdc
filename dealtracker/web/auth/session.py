"""Cookie-based session authentication (the Identity Resolver)."""

from __future__ import annotations

import hashlib
import hmac
import secrets
import time
from functools import lru_cache
from typing import Any

import structlog
from fastapi import Request

from dealtracker.exceptions import AuthenticationRequiredError
from dealtracker.web.tenant_context import Principal

logger = structlog.get_logger(__name__)

SESSION_COOKIE = "session"


class SessionAuth:
    """Signed, expiring session tokens held server-side."""

    def __init__(self, secret_key: str, max_age: int = 86400) -> None:
        self._secret = secret_key.encode()
        self._max_age = max_age
        self._sessions: dict[str, dict[str, Any]] = {}

    def create_session(self, user_id: str, email: str) -> str:
        """Create a new session and return the token."""
        token = secrets.token_urlsafe(32)
        signature = self._sign(token)
        signed_token = f"{token}.{signature}"

        self._sessions[signed_token] = {
            "user_id": user_id,
            "email": email,
            "created_at": time.time(),
        }
        logger.info("session_created", user_id=user_id)
        return signed_token

    def validate_session(self, token: str) -> dict[str, Any] | None:
        """Validate a session token and return the session data."""
        if not token or "." not in token:
            return None

        raw_token, signature = token.rsplit(".", 1)
        expected_sig = self._sign(raw_token)

        if not hmac.compare_digest(signature, expected_sig):
            return None

        session = self._sessions.get(token)
        if not session:
            return None

        if time.time() - session["created_at"] > self._max_age:
            self.destroy_session(token)
            return None

        return session

    def destroy_session(self, token: str) -> None:
        """Remove a session."""
        self._sessions.pop(token, None)
        logger.info("session_destroyed")

    def _sign(self, data: str) -> str:
        return hmac.new(self._secret, data.encode(), hashlib.sha256).hexdigest()[:32]


@lru_cache
def get_session_auth() -> SessionAuth:
    """Return the process-wide session store."""
    from dealtracker.config.settings import get_settings

    settings = get_settings()
    return SessionAuth(settings.secret_key, max_age=settings.session_max_age)


async def get_principal(request: Request) -> Principal | None:
    """Resolve the calling principal from the session cookie, or None."""
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return None
    session = get_session_auth().validate_session(token)
    if not session:
        return None
    return Principal(user_id=session["user_id"], email=session["email"])


async def require_principal(request: Request) -> Principal:
    principal = await get_principal(request)
    if principal is None:
        raise AuthenticationRequiredError("Not authenticated")
    return principal
