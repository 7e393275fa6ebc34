from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlencode

from fastapi import status
from fastapi.responses import JSONResponse, RedirectResponse

from cadnotes.utils.logging import get_logger

if TYPE_CHECKING:
    from fastapi import Request
    from fastapi.exceptions import RequestValidationError

    from cadnotes.core.exceptions import OAuthReauthorizationRequired, UpstreamError

logger = get_logger(__name__)

OAUTH_START_PATH = "/oauthStart"


async def oauth_reauthorization_handler(_: Request, exc: OAuthReauthorizationRequired) -> RedirectResponse:
    """Send the browser back through the Onshape OAuth flow."""
    target = OAUTH_START_PATH
    if exc.return_to:
        target = f"{OAUTH_START_PATH}?{urlencode({'returnTo': exc.return_to})}"
    return RedirectResponse(target, status_code=status.HTTP_302_FOUND)


async def upstream_error_handler(_: Request, exc: UpstreamError) -> JSONResponse:
    """Pass Onshape's status code and error text through to the caller."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as 400 with a readable message."""
    errors = exc.errors()
    messages = []
    for err in errors:
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    logger.info("Rejected invalid request", extra={"path": request.url.path, "errors": messages})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "; ".join(messages) or "Invalid request"},
    )
