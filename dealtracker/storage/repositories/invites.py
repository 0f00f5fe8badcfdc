"""Invite repository with single-use claim semantics."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - used at runtime in query filters
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import update
from sqlmodel import col, select

from dealtracker.models.database import Invite, Startup
from dealtracker.storage.database import session_scope

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.types import MemberRole

logger = structlog.get_logger(__name__)


class InviteRepository:
    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def create(
        self,
        *,
        email: str,
        startup_id: str,
        role: MemberRole,
        token: str,
        invited_by: str,
        expires_at: datetime,
    ) -> Invite:
        async with session_scope(self._engine) as session:
            invite = Invite(
                email=email.lower(),
                startup_id=startup_id,
                role=role.value,
                token=token,
                invited_by=invited_by,
                expires_at=expires_at,
            )
            session.add(invite)
            await session.commit()
            logger.info("invite_created", id=invite.id, startup_id=startup_id)
            return invite

    async def get_by_token(self, token: str) -> Invite | None:
        async with session_scope(self._engine) as session:
            stmt = select(Invite).where(col(Invite.token) == token)
            return (await session.execute(stmt)).scalars().first()

    async def claim(self, token: str, now: datetime) -> Invite | None:
        """Mark a usable invite accepted in one conditional UPDATE.

        Returns the claimed invite, or None when the token is unknown, expired
        or already accepted. Two racing claims cannot both succeed.
        """
        async with session_scope(self._engine) as session:
            stmt = (
                update(Invite)
                .where(
                    col(Invite.token) == token,
                    col(Invite.accepted_at).is_(None),
                    col(Invite.expires_at) > now,
                )
                .values(accepted_at=now)
            )
            result = await session.execute(stmt)
            await session.commit()
            if result.rowcount != 1:
                return None
            invite = (
                (await session.execute(select(Invite).where(col(Invite.token) == token)))
                .scalars()
                .first()
            )
            logger.info("invite_claimed", id=invite.id if invite else None)
            return invite

    async def release(self, invite_id: str) -> None:
        """Undo a claim when account creation after it failed."""
        async with session_scope(self._engine) as session:
            await session.execute(
                update(Invite).where(col(Invite.id) == invite_id).values(accepted_at=None)
            )
            await session.commit()
            logger.info("invite_released", id=invite_id)

    async def delete(self, invite_id: str) -> bool:
        async with session_scope(self._engine) as session:
            invite = await session.get(Invite, invite_id)
            if not invite:
                return False
            await session.delete(invite)
            await session.commit()
            logger.info("invite_deleted", id=invite_id)
            return True

    async def list_pending(self) -> list[tuple[Invite, str]]:
        """Unaccepted invites with their startup name, newest first."""
        async with session_scope(self._engine) as session:
            stmt = (
                select(Invite, Startup.name)
                .join(Startup, col(Startup.id) == col(Invite.startup_id))
                .where(col(Invite.accepted_at).is_(None))
                .order_by(col(Invite.created_at).desc())
            )
            rows = (await session.execute(stmt)).all()
            return [(invite, name) for invite, name in rows]
