"""FastAPI application factory."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import quote

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from dealtracker import __version__
from dealtracker.audit.logger import ActivityRecorder
from dealtracker.config.logging import setup_logging
from dealtracker.config.settings import get_settings
from dealtracker.exceptions import (
    AccessDeniedError,
    AuthenticationRequiredError,
    BackendError,
    InvalidInputError,
    RecordNotFoundError,
)
from dealtracker.storage.database import get_engine, init_db
from dealtracker.storage.object_store import create_object_store
from dealtracker.web.auth.identity import IdentityService
from dealtracker.web.auth.tenancy import TenantSelectionRequired, set_tenant_cookie
from dealtracker.web.middleware import RequestIDMiddleware
from dealtracker.web.routes.activity import router as activity_router
from dealtracker.web.routes.auth import router as auth_router
from dealtracker.web.routes.invites import router as invites_router
from dealtracker.web.routes.materials import router as materials_router
from dealtracker.web.routes.pages import router as pages_router
from dealtracker.web.routes.products import router as products_router
from dealtracker.web.routes.prospects import router as prospects_router
from dealtracker.web.routes.scripts import router as scripts_router
from dealtracker.web.routes.settings import router as settings_router
from dealtracker.web.routes.startups import router as startups_router

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.storage.object_store import ObjectStore

logger = structlog.get_logger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def _is_api(request: Request) -> bool:
    return request.url.path.startswith("/api/")


def _error_page(request: Request, status_code: int, message: str) -> HTMLResponse:
    return templates.TemplateResponse(
        request, "error.html", {"message": message}, status_code=status_code
    )


def _register_exception_handlers(app: FastAPI) -> None:
    # Redirect to /login for browser page requests; return JSON for API
    @app.exception_handler(AuthenticationRequiredError)
    async def auth_required_handler(
        request: Request, exc: AuthenticationRequiredError
    ) -> Response:
        if not _is_api(request):
            next_url = quote(str(request.url.path), safe="/")
            return RedirectResponse(url=f"/login?next={next_url}", status_code=302)
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    @app.exception_handler(TenantSelectionRequired)
    async def tenant_selection_handler(request: Request, exc: TenantSelectionRequired) -> Response:
        response = RedirectResponse(url=exc.url, status_code=302)
        set_tenant_cookie(response, exc.startup_id)
        logger.info("tenant_default_selected", startup_id=exc.startup_id)
        return response

    @app.exception_handler(AccessDeniedError)
    async def access_denied_handler(request: Request, exc: AccessDeniedError) -> Response:
        logger.info("access_denied", path=request.url.path, reason=str(exc))
        if not _is_api(request):
            return _error_page(request, 403, str(exc))
        return JSONResponse(status_code=403, content={"detail": str(exc)})

    @app.exception_handler(InvalidInputError)
    async def invalid_input_handler(request: Request, exc: InvalidInputError) -> Response:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(RecordNotFoundError)
    async def not_found_handler(request: Request, exc: RecordNotFoundError) -> Response:
        if not _is_api(request):
            return _error_page(request, 404, str(exc))
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(BackendError)
    async def backend_error_handler(request: Request, exc: BackendError) -> Response:
        logger.error("backend_error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=503,
            content={"detail": "The service is temporarily unavailable. Please try again."},
        )


def create_app(
    engine: AsyncEngine | None = None, object_store: ObjectStore | None = None
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``engine`` and ``object_store`` default to the ones configured in settings.
    """
    settings = get_settings()
    setup_logging(log_level=settings.log_level, json_output=not settings.debug)

    engine = engine or get_engine()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await init_db(engine)
        yield

    app = FastAPI(
        title="Deal Tracker",
        description="Multi-tenant sales pipeline tracker",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.engine = engine
    app.state.object_store = object_store or create_object_store()
    app.state.identity = IdentityService(engine, iterations=settings.password_hash_iterations)
    app.state.recorder = ActivityRecorder(engine)

    _register_exception_handlers(app)

    # Middleware (last added runs first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )
    app.add_middleware(RequestIDMiddleware)

    # Public routes
    app.include_router(auth_router)
    app.include_router(invites_router)

    @app.get("/api/health")
    async def health_check() -> dict[str, object]:
        from dealtracker.web.health import check_health

        return await check_health(app.state.engine)

    # Each of these resolves the tenant itself, which requires a session
    for router in (
        startups_router,
        prospects_router,
        products_router,
        materials_router,
        scripts_router,
        activity_router,
        settings_router,
        pages_router,
    ):
        app.include_router(router)

    static_dir = Path(__file__).parent / "static"
    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    logger.info("app_created")
    return app
