"""Activity recorder: append-only, best-effort activity trail.

Uses its own DB session so a failed activity write never rolls back or
blocks the mutation it describes. Metadata JSON is sanitized (sensitive
fields stripped, oversized values replaced so the JSON stays under 10KB).
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog
from sqlmodel.ext.asyncio.session import AsyncSession

from dealtracker.models.database import ActivityLog

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.types import ActivityType

logger = structlog.get_logger(__name__)

_SENSITIVE_FIELDS = frozenset(
    {
        "password",
        "secret",
        "token",
        "api_key",
        "authorization",
        "cookie",
        "session",
    }
)

_MAX_METADATA_BYTES = 10_240  # 10KB
_TRUNCATED = "[truncated]"


def _sanitize_metadata(metadata: dict[str, Any]) -> str:
    sanitized = {k: v for k, v in metadata.items() if k.lower() not in _SENSITIVE_FIELDS}
    encoded = json.dumps(sanitized, default=str)
    # Shrink the largest value first; json.dumps output is ASCII so len counts bytes
    while len(encoded) > _MAX_METADATA_BYTES:
        largest = max(sanitized, key=lambda k: len(json.dumps(sanitized[k], default=str)))
        if sanitized[largest] == _TRUNCATED:
            return json.dumps({"truncated": True})
        sanitized[largest] = _TRUNCATED
        encoded = json.dumps(sanitized, default=str)
    return encoded


class ActivityRecorder:
    """Insert-only activity writer with its own DB session.

    Rows are never updated or deleted. There is no retry and no dedup:
    each call writes at most once.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def record(
        self,
        *,
        startup_id: str,
        actor_id: str,
        category: ActivityType,
        description: str,
        target_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        """Append one activity row. Returns False if the write failed."""
        try:
            async with AsyncSession(self._engine) as session:
                session.add(
                    ActivityLog(
                        startup_id=startup_id,
                        prospect_id=target_id,
                        user_id=actor_id,
                        action_type=category.value,
                        description=description,
                        metadata_json=_sanitize_metadata(metadata) if metadata else None,
                    )
                )
                await session.commit()
        except Exception:
            # Activity failures are logged, never raised
            logger.exception(
                "activity_record_failed",
                category=category.value,
                startup_id=startup_id,
                target_id=target_id,
            )
            return False
        return True


async def record_activity(
    *,
    startup_id: str,
    actor_id: str,
    category: ActivityType,
    description: str,
    target_id: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> bool:
    """Convenience wrapper that records through the process-wide engine."""
    from dealtracker.storage.database import get_engine

    recorder = ActivityRecorder(get_engine())
    return await recorder.record(
        startup_id=startup_id,
        actor_id=actor_id,
        category=category,
        description=description,
        target_id=target_id,
        metadata=metadata,
    )
