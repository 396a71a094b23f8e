"""
FastAPI router for the public consultant redirect endpoints.

Called from landing pages (popup and button embed scripts) without
authentication. One router serves both the /api/public and /api/public-v2
mounts; both use the same least-loaded selection.

Key Endpoints:
- GET /next-redirect - Pick a consultant and issue a reservation token
- POST /confirm-redirect - Confirm a token after the visitor opened WhatsApp
- GET /redirect-stats - Today's lead balance across a platform's consultants

API Contract:
- Success: { success: true, data: {...} } (confirm also carries a message)
- Failure: { success: false, error: "<short message>" } with 400/404, or 500
  from the application-level handler for store failures
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Query, Request
from fastapi.responses import JSONResponse

from consultant_redirect.core.dependencies import RedirectStoreDep, SettingsDep
from consultant_redirect.core.exceptions import RedirectError
from consultant_redirect.models.schemas import ConfirmRedirectRequest
from consultant_redirect.services.balance import get_today_balance
from consultant_redirect.services.reservations import (
    confirm_reservation,
    issue_reservation,
)


logger = logging.getLogger(__name__)

CONFIRMED_MESSAGE: str = "Redirecionamento confirmado com sucesso"

router = APIRouter()


# =============================================================================
# Helper Functions
# =============================================================================


def _error_response(error: RedirectError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={"success": False, "error": error.message},
    )


def _client_ip(request: Request) -> str:
    """Requester IP, preferring the first X-Forwarded-For hop set by the proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


# =============================================================================
# GET /next-redirect
# =============================================================================


@router.get("/next-redirect", response_model=None)
async def next_redirect(
    request: Request,
    store: RedirectStoreDep,
    settings: SettingsDep,
    platform: Optional[str] = Query(default=None, description="Platform tag (whatsapp, google, meta)"),
):
    """
    Choose the consultant for the next contact and issue a reservation token.

    Example Response:
        {
            "success": true,
            "data": {
                "numero": "5511999990000",
                "plataforma": "whatsapp",
                "consultor": {"id": 7, "name": "Maria", "email": "maria@...", "utm_consultor": "maria"},
                "token": "9f2c...",
                "expires_at": "2026-10-19T13:10:00+00:00",
                "expires_in_minutes": 10
            }
        }

    ``consultor`` is null when a backup number was handed out.
    404 when the platform has neither an active consultant nor a backup number.
    """
    try:
        issued = await issue_reservation(
            store,
            settings,
            platform=platform,
            ip_origem=_client_ip(request),
            user_agent=request.headers.get("user-agent", ""),
        )
    except RedirectError as e:
        return _error_response(e)

    return {"success": True, "data": issued.to_response_data()}


# =============================================================================
# POST /confirm-redirect
# =============================================================================


@router.post("/confirm-redirect", response_model=None)
async def confirm_redirect(
    store: RedirectStoreDep,
    settings: SettingsDep,
    body: Optional[ConfirmRedirectRequest] = Body(default=None),
):
    """
    Confirm a reservation token once the visitor has been sent to the number.

    Example Request:
        POST /confirm-redirect
        {"token": "9f2c...", "numero": "5511999990000", "plataforma": "whatsapp",
         "lead_data": {"nome": "Fulano"}}

    Example Response:
        {
            "success": true,
            "message": "Redirecionamento confirmado com sucesso",
            "data": {"numero": "5511999990000", "plataforma": "whatsapp",
                     "confirmed_at": "2026-10-19T13:03:12+00:00"}
        }

    400 for missing fields, used or expired tokens; 404 for unknown tokens.
    """
    body = body or ConfirmRedirectRequest()
    try:
        confirmed = await confirm_reservation(
            store,
            settings,
            token=body.token,
            numero=body.numero,
            platform=body.plataforma,
            lead_data=body.lead_data,
        )
    except RedirectError as e:
        return _error_response(e)

    return {
        "success": True,
        "message": CONFIRMED_MESSAGE,
        "data": confirmed.to_response_data(),
    }


# =============================================================================
# GET /redirect-stats
# =============================================================================


@router.get("/redirect-stats", response_model=None)
async def redirect_stats(
    store: RedirectStoreDep,
    settings: SettingsDep,
    platform: Optional[str] = Query(default=None, description="Platform tag (whatsapp, google, meta)"),
):
    """
    Report today's lead balance across the platform's active consultants.

    Example Response:
        {
            "success": true,
            "data": {
                "plataforma": "whatsapp",
                "consultores": [{"id": 3, "name": "...", "email": "...",
                                 "utm_consultor_norm": "maria", "today_count": 4}, ...],
                "hoje_min": 4, "hoje_max": 5, "diferenca": 1,
                "media": 4.5, "desvio_padrao": 0.5,
                "total_consultores": 3, "consultores_ativos": 2,
                "total_redirecionamentos": 812, "redirects_hoje": 9
            }
        }
    """
    try:
        balance = await get_today_balance(store, settings, platform=platform)
    except RedirectError as e:
        return _error_response(e)

    return {"success": True, "data": balance.to_response_data()}
