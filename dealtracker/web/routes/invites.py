"""Public invite routes: landing page, lookup and acceptance."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel

from dealtracker.exceptions import StaleReferenceError
from dealtracker.services.invites import InviteService
from dealtracker.web.dependencies import get_invite_service
from dealtracker.web.routes.auth import start_session

router = APIRouter(tags=["invites"])
templates = Jinja2Templates(directory=str(Path(__file__).parent.parent / "templates"))


class AcceptInviteRequest(BaseModel):
    password: str
    full_name: str


@router.get("/invite/{token}", response_class=HTMLResponse)
async def invite_page(
    request: Request,
    token: str,
    service: InviteService = Depends(get_invite_service),
) -> HTMLResponse:
    found = await service.lookup_invite(token)
    if found is None:
        return templates.TemplateResponse(
            request, "invite.html", {"invite": None, "token": token}, status_code=404
        )
    invite, startup_name = found
    return templates.TemplateResponse(
        request,
        "invite.html",
        {"invite": invite, "startup_name": startup_name, "token": token},
    )


@router.get("/api/invites/{token}")
async def lookup_invite(
    token: str,
    service: InviteService = Depends(get_invite_service),
) -> dict[str, Any]:
    found = await service.lookup_invite(token)
    if found is None:
        raise StaleReferenceError("Invalid or expired invite")
    invite, startup_name = found
    return {
        "email": invite.email,
        "startup_name": startup_name,
        "role": invite.role,
        "expires_at": invite.expires_at.isoformat(),
    }


@router.post("/api/invites/{token}/accept")
async def accept_invite(
    token: str,
    body: AcceptInviteRequest,
    response: Response,
    service: InviteService = Depends(get_invite_service),
) -> dict[str, str]:
    principal = await service.accept_invite(token, body.password, body.full_name)
    start_session(response, principal)
    return {"status": "ok", "user_id": principal.user_id, "email": principal.email}
