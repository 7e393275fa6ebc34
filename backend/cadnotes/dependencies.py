from __future__ import annotations

import math
import time
from functools import lru_cache
from typing import TYPE_CHECKING

from fastapi import Depends, HTTPException, Request, status

from cadnotes.config import settings
from cadnotes.core.repositories.implementations.supabase.note_repository import (
    SupabaseNoteRepository,
)
from cadnotes.core.services.auth_service import AuthService
from cadnotes.core.services.note_service import NoteService
from cadnotes.core.services.oauth_service import OnshapeOAuthClient, TokenGuard
from cadnotes.core.services.onshape_service import OnshapeApiClient
from cadnotes.core.session import SessionData
from cadnotes.db.base import create_request_supabase_client
from cadnotes.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from supabase import Client

    from cadnotes.core.models.oauth import OAuthToken
    from cadnotes.core.repositories.note_repository import NoteRepository
    from cadnotes.core.schemas.auth import AuthUser


# In-memory rate limiting
_login_attempts: dict[str, list[float]] = {}


def _is_rate_limited(identifier: str) -> bool:
    """Record an attempt and report whether the identifier is over the limit."""
    if not settings.enable_rate_limiting:
        return False
    now = time.time()
    window_start = now - settings.login_attempt_window
    # Attempts are appended in time order, so the last one is the newest
    stale = [key for key, recorded in _login_attempts.items() if not recorded or recorded[-1] <= window_start]
    for key in stale:
        del _login_attempts[key]
    attempts = [a for a in _login_attempts.get(identifier, []) if a > window_start]
    if len(attempts) >= settings.max_login_attempts:
        _login_attempts[identifier] = attempts
        return True
    attempts.append(now)
    _login_attempts[identifier] = attempts
    return False


def rate_limit_by_ip(request: Request, operation: str = "default") -> None:
    """Raise 429 when the client IP exceeds the attempt budget for an operation."""
    client_ip = request.client.host if request.client else "unknown"
    identifier = f"{operation}:{client_ip}"
    if not _is_rate_limited(identifier):
        return

    logger.warning(f"Rate limited {operation} attempt", extra={"ip": client_ip})
    attempts = _login_attempts.get(identifier, [])
    earliest_attempt = min(attempts) if attempts else time.time()
    seconds_until_reset = max(1, math.ceil(settings.login_attempt_window - (time.time() - earliest_attempt)))
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=f"Too many {operation} attempts. Please try again later.",
        headers={
            "Retry-After": str(seconds_until_reset),
            "RateLimit-Limit": str(settings.max_login_attempts),
            "RateLimit-Remaining": "0",
            "RateLimit-Reset": str(seconds_until_reset),
        },
    )


def rate_limit_login(request: Request) -> None:
    rate_limit_by_ip(request, "login")


def rate_limit_signup(request: Request) -> None:
    rate_limit_by_ip(request, "signup")


def get_session(request: Request) -> SessionData:
    return SessionData(request.session)


def get_auth_service() -> AuthService:
    """Auth service on a fresh anon client (GoTrue state is per client)."""
    return AuthService(create_request_supabase_client())


async def get_current_user(
    session: SessionData = Depends(get_session),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthUser:
    """Return the session's user, refreshing its Supabase token when due.

    A session whose Supabase token cannot be refreshed is cleared.
    """
    user = session.user
    token = session.supabase_token
    if user is None or token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    if token.expires_within(settings.token_refresh_leeway):
        if not token.refresh_token:
            session.clear()
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired")
        try:
            refreshed = await auth_service.refresh_session(token.refresh_token)
        except ValueError as err:
            logger.info("Clearing session after failed Supabase refresh", extra={"user_id": str(user.id)})
            session.clear()
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired") from err
        session.set_supabase_token(refreshed.tokens)
    return user


def get_request_supabase_client(
    session: SessionData = Depends(get_session),
    _user: AuthUser = Depends(get_current_user),
) -> Client:
    """Supabase client acting as the signed-in user so RLS applies."""
    token = session.supabase_token
    return create_request_supabase_client(token.access_token if token else None)


def get_note_repository(client: Client = Depends(get_request_supabase_client)) -> NoteRepository:
    """Get a request-scoped note repository instance using request client."""
    return SupabaseNoteRepository(client)


def get_note_service(repo: NoteRepository = Depends(get_note_repository)) -> NoteService:
    """Get a request-scoped note service instance."""
    return NoteService(repo)


@lru_cache(maxsize=1)
def get_oauth_client() -> OnshapeOAuthClient:
    return OnshapeOAuthClient()


@lru_cache(maxsize=1)
def get_onshape_client() -> OnshapeApiClient:
    return OnshapeApiClient()


def get_token_guard(oauth_client: OnshapeOAuthClient = Depends(get_oauth_client)) -> TokenGuard:
    return TokenGuard(oauth_client)


def _request_path(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


async def require_onshape_token(
    request: Request,
    session: SessionData = Depends(get_session),
    guard: TokenGuard = Depends(get_token_guard),
) -> OAuthToken:
    """Usable Onshape token, or a redirect into the OAuth flow."""
    return await guard.ensure_token(session, required=True, return_to=_request_path(request))


async def optional_onshape_token(
    session: SessionData = Depends(get_session),
    guard: TokenGuard = Depends(get_token_guard),
) -> OAuthToken | None:
    """Usable Onshape token, or None without interrupting the request."""
    return await guard.ensure_token(session, required=False)
