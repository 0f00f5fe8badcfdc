"""FastAPI dependency injection for per-application shared state.

The engine, object store, identity service and activity recorder are
created once by ``create_app`` and kept on ``app.state``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.audit.logger import ActivityRecorder
    from dealtracker.services.accounts import AccountService
    from dealtracker.services.dashboard import DashboardService
    from dealtracker.services.invites import InviteService
    from dealtracker.services.materials import MaterialService
    from dealtracker.services.prospects import ProspectService
    from dealtracker.storage.object_store import ObjectStore
    from dealtracker.web.auth.identity import IdentityService


def get_db_engine(request: Request) -> AsyncEngine:
    return request.app.state.engine  # type: ignore[no-any-return]


def get_object_store(request: Request) -> ObjectStore:
    return request.app.state.object_store  # type: ignore[no-any-return]


def get_identity(request: Request) -> IdentityService:
    return request.app.state.identity  # type: ignore[no-any-return]


def get_recorder(request: Request) -> ActivityRecorder:
    return request.app.state.recorder  # type: ignore[no-any-return]


def get_prospect_service(request: Request) -> ProspectService:
    from dealtracker.services.prospects import ProspectService

    return ProspectService(get_db_engine(request), get_recorder(request))


def get_material_service(request: Request) -> MaterialService:
    from dealtracker.config.settings import get_settings
    from dealtracker.services.materials import MaterialService

    return MaterialService(
        get_db_engine(request),
        get_object_store(request),
        get_recorder(request),
        max_upload_bytes=get_settings().max_upload_bytes,
    )


def get_account_service(request: Request) -> AccountService:
    from dealtracker.services.accounts import AccountService

    return AccountService(get_db_engine(request), get_identity(request))


def get_invite_service(request: Request) -> InviteService:
    from dealtracker.config.settings import get_settings
    from dealtracker.services.invites import InviteService

    return InviteService(
        get_db_engine(request), get_identity(request), ttl_days=get_settings().invite_ttl_days
    )


def get_dashboard_service(request: Request) -> DashboardService:
    from dealtracker.services.dashboard import DashboardService

    return DashboardService(get_db_engine(request))
