"""Request principal and tenant context for multi-tenant request scoping."""

from __future__ import annotations

from dataclasses import dataclass

from dealtracker.exceptions import AccessDeniedError
from dealtracker.types import UserRole


@dataclass(frozen=True, slots=True)
class Principal:
    """An authenticated identity, as resolved from the session cookie."""

    user_id: str
    email: str


@dataclass(frozen=True, slots=True)
class TenantContext:
    """Immutable tenant context carried through each request.

    ``startup_id`` is only ever set from the output of ``resolve_tenant``;
    ``None`` means the caller has no validated tenant and every scoped
    read returns an empty result.
    """

    principal_id: str
    email: str
    role: UserRole
    startup_id: str | None = None
    full_name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def has_tenant(self) -> bool:
        return self.startup_id is not None

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    def require_startup(self) -> str:
        """Return the validated startup id, refusing writes when there is none."""
        if self.startup_id is None:
            raise AccessDeniedError("No startup selected")
        return self.startup_id
