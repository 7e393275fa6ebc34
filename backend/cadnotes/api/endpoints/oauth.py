from __future__ import annotations

import secrets
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import PlainTextResponse, RedirectResponse

from cadnotes.config import settings
from cadnotes.core.exceptions import OAuthError
from cadnotes.dependencies import get_oauth_client, get_session
from cadnotes.utils.logging import get_logger

if TYPE_CHECKING:
    from cadnotes.core.services.oauth_service import OnshapeOAuthClient
    from cadnotes.core.session import SessionData

logger = get_logger(__name__)

router = APIRouter()


def _safe_return_path(value: str | None) -> str | None:
    # Only same-site paths; never bounce to another host
    if value and value.startswith("/") and not value.startswith("//"):
        return value
    return None


@router.get("/oauthStart")
async def oauth_start(
    return_to: str | None = Query(default=None, alias="returnTo"),
    session: SessionData = Depends(get_session),
    oauth_client: OnshapeOAuthClient = Depends(get_oauth_client),
):
    """Redirect the browser to the Onshape authorization page."""
    state = secrets.token_urlsafe(24)
    session.remember_oauth_state(state, _safe_return_path(return_to))
    return RedirectResponse(oauth_client.authorization_url(state), status_code=status.HTTP_302_FOUND)


@router.get("/oauthRedirect")
@router.get("/oauthCallback")
async def oauth_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    session: SessionData = Depends(get_session),
    oauth_client: OnshapeOAuthClient = Depends(get_oauth_client),
):
    """Exchange the authorization code and store the token in the session."""
    expected_state = session.pop_oauth_state()
    if error:
        logger.warning("Onshape authorization denied", extra={"error": error})
        return PlainTextResponse(f"Authorization failed: {error}", status_code=status.HTTP_400_BAD_REQUEST)
    if not code:
        return PlainTextResponse("Missing authorization code", status_code=status.HTTP_400_BAD_REQUEST)
    if not expected_state or state != expected_state:
        logger.warning("OAuth state mismatch")
        return PlainTextResponse("Invalid OAuth state", status_code=status.HTTP_400_BAD_REQUEST)

    try:
        token = await oauth_client.exchange_code(code)
    except OAuthError as err:
        logger.error("OAuth code exchange failed", extra={"error": str(err)})
        return PlainTextResponse("OAuth failed", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    session.set_onshape_token(token)
    target = _safe_return_path(session.pop_return_to()) or settings.oauth_success_redirect
    logger.info("Onshape connected", extra={"redirect": target})
    return RedirectResponse(target, status_code=status.HTTP_302_FOUND)
