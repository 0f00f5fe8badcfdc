"""SQLModel database table models."""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


# Timestamps are stored timezone-aware; SQLite hands them back naive, in UTC.
UTCDateTime = DateTime(timezone=True)


def _utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive value read back from the database."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _new_uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Identity and tenancy
# ---------------------------------------------------------------------------


class AuthUser(SQLModel, table=True):
    __tablename__ = "auth_users"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    created_at: datetime = Field(default_factory=_utc_now, sa_type=UTCDateTime)
    last_sign_in_at: datetime | None = Field(default=None, sa_type=UTCDateTime)


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"

    id: str = Field(foreign_key="auth_users.id", primary_key=True)
    email: str = Field(index=True)
    full_name: str | None = None
    role: str = Field(default="founder")  # admin | founder
    created_at: datetime = Field(default_factory=_utc_now, sa_type=UTCDateTime)


class Startup(SQLModel, table=True):
    __tablename__ = "startups"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    name: str = Field(index=True)
    description: str | None = None
    category: str | None = None
    created_at: datetime = Field(default_factory=_utc_now, sa_type=UTCDateTime)


class StartupMember(SQLModel, table=True):
    __tablename__ = "startup_members"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    startup_id: str = Field(foreign_key="startups.id", index=True)
    user_id: str = Field(foreign_key="profiles.id", index=True)
    role: str = Field(default="founder")  # founder | team
    created_at: datetime = Field(default_factory=_utc_now, sa_type=UTCDateTime)


class Invite(SQLModel, table=True):
    __tablename__ = "invites"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    email: str
    startup_id: str = Field(foreign_key="startups.id", index=True)
    role: str = Field(default="founder")  # founder | team
    token: str = Field(index=True, unique=True)
    invited_by: str = Field(foreign_key="profiles.id")
    expires_at: datetime = Field(sa_type=UTCDateTime)
    accepted_at: datetime | None = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=_utc_now, sa_type=UTCDateTime)

    def is_usable(self, now: datetime | None = None) -> bool:
        """An invite is usable until it is accepted or its expiry passes."""
        now = now or _utc_now()
        return self.accepted_at is None and as_utc(now) < as_utc(self.expires_at)


# ---------------------------------------------------------------------------
# Tenant-owned data (every row carries startup_id)
# ---------------------------------------------------------------------------


class Product(SQLModel, table=True):
    __tablename__ = "products"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    startup_id: str = Field(foreign_key="startups.id", index=True)
    name: str
    description: str | None = None
    pricing: str | None = None
    created_at: datetime = Field(default_factory=_utc_now, sa_type=UTCDateTime)


class Prospect(SQLModel, table=True):
    __tablename__ = "prospects"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    startup_id: str = Field(foreign_key="startups.id", index=True)
    company_name: str
    contact_name: str | None = None
    contact_email: str | None = None
    industry: str | None = None
    function: str = Field(default="other")
    estimated_value: float | None = None
    stage: str = Field(default="new", index=True)
    notes: str | None = None
    next_action: str | None = None
    next_action_due: date | None = None
    meeting_date: date | None = None
    owner_id: str | None = Field(default=None, foreign_key="profiles.id")
    created_at: datetime = Field(default_factory=_utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=_utc_now, sa_type=UTCDateTime)


class Material(SQLModel, table=True):
    __tablename__ = "materials"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    startup_id: str = Field(foreign_key="startups.id", index=True)
    name: str
    type: str = Field(default="other")  # pitch_deck | trend_report | other
    notes: str | None = None
    created_at: datetime = Field(default_factory=_utc_now, sa_type=UTCDateTime)


class MaterialVersion(SQLModel, table=True):
    __tablename__ = "material_versions"
    __table_args__ = (UniqueConstraint("material_id", "version_number"),)

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    material_id: str = Field(foreign_key="materials.id", index=True)
    version_number: int
    file_path: str
    file_name: str
    uploaded_by: str
    uploaded_at: datetime = Field(default_factory=_utc_now, sa_type=UTCDateTime)


class SalesScript(SQLModel, table=True):
    __tablename__ = "sales_scripts"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    startup_id: str = Field(foreign_key="startups.id", index=True)
    title: str
    content: str
    channel: str = Field(default="email")  # text | email | linkedin | social_media
    created_at: datetime = Field(default_factory=_utc_now, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=_utc_now, sa_type=UTCDateTime)


class ActivityLog(SQLModel, table=True):
    __tablename__ = "activity_log"

    id: str = Field(default_factory=_new_uuid, primary_key=True)
    startup_id: str = Field(index=True)
    prospect_id: str | None = Field(default=None, index=True)
    user_id: str
    action_type: str = Field(index=True)
    description: str
    metadata_json: str | None = None
    created_at: datetime = Field(default_factory=_utc_now, sa_type=UTCDateTime, index=True)
