"""Authentication routes: email/password login and sign-up."""

from __future__ import annotations

from pathlib import Path

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, Field

from dealtracker.config.settings import get_settings
from dealtracker.web.auth.identity import IdentityService
from dealtracker.web.auth.session import SESSION_COOKIE, get_principal, get_session_auth
from dealtracker.web.dependencies import get_identity
from dealtracker.web.tenant_context import Principal

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["auth"])
templates = Jinja2Templates(directory=str(Path(__file__).parent.parent / "templates"))


def safe_next(next_url: str | None) -> str:
    if next_url and next_url.startswith("/") and not next_url.startswith("//"):
        return next_url
    return "/dashboard"


def start_session(response: Response, principal: Principal) -> None:
    settings = get_settings()
    token = get_session_auth().create_session(principal.user_id, principal.email)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
        max_age=settings.session_max_age,
    )


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
async def root(principal: Principal | None = Depends(get_principal)) -> Response:
    return RedirectResponse(url="/dashboard" if principal else "/login", status_code=302)


@router.get("/login", response_class=HTMLResponse)
async def login_page(
    request: Request,
    next: str | None = None,  # noqa: A002
    principal: Principal | None = Depends(get_principal),
) -> Response:
    if principal:
        return RedirectResponse(url=safe_next(next), status_code=302)
    return templates.TemplateResponse(request, "login.html", {"next": safe_next(next)})


@router.get("/signup", response_class=HTMLResponse)
async def signup_page(
    request: Request, principal: Principal | None = Depends(get_principal)
) -> Response:
    if principal:
        return RedirectResponse(url="/dashboard", status_code=302)
    return templates.TemplateResponse(request, "signup.html")


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class SignupRequest(BaseModel):
    email: str = Field(min_length=3)
    password: str
    full_name: str = ""


@router.post("/api/auth/login")
async def login(
    body: LoginRequest,
    response: Response,
    identity: IdentityService = Depends(get_identity),
) -> dict[str, str]:
    principal = await identity.sign_in(body.email, body.password)
    if principal is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    start_session(response, principal)
    return {"status": "ok", "email": principal.email}


@router.post("/api/auth/signup", status_code=201)
async def signup(
    body: SignupRequest,
    response: Response,
    identity: IdentityService = Depends(get_identity),
) -> dict[str, str]:
    principal = await identity.sign_up(body.email, body.password, body.full_name)
    start_session(response, principal)
    return {"status": "ok", "user_id": principal.user_id, "email": principal.email}


@router.post("/api/auth/logout")
async def logout(request: Request, response: Response) -> dict[str, str]:
    """Destroy the current session and forget the selected startup."""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        get_session_auth().destroy_session(token)
    response.delete_cookie(SESSION_COOKIE)
    response.delete_cookie(get_settings().tenant_cookie_name)
    return {"status": "logged_out"}
