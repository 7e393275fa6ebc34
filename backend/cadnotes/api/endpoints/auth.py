from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, HTTPException, status

from cadnotes.api.schemas.auth import (
    AuthResponse,
    CurrentUserResponse,
    SignInRequest,
    SignUpRequest,
    UserPublic,
)
from cadnotes.dependencies import (
    get_auth_service,
    get_current_user,
    get_session,
    optional_onshape_token,
    rate_limit_login,
    rate_limit_signup,
)
from cadnotes.utils.logging import get_logger

if TYPE_CHECKING:
    from cadnotes.core.models.oauth import OAuthToken
    from cadnotes.core.schemas.auth import AuthSession, AuthUser
    from cadnotes.core.services.auth_service import AuthService
    from cadnotes.core.session import SessionData

logger = get_logger(__name__)

router = APIRouter(
    responses={
        401: {"description": "Unauthorized"},
        429: {"description": "Too many requests"}
    }
)


def _start_session(session: SessionData, auth: AuthSession) -> None:
    # A new login never inherits the previous user's tokens or active note
    session.clear()
    session.set_user(auth.user)
    session.set_supabase_token(auth.tokens)


def _public(user: AuthUser) -> UserPublic:
    return UserPublic(id=str(user.id), email=user.email)


@router.post("/login", response_model=AuthResponse, dependencies=[Depends(rate_limit_login)])
async def login(
    payload: SignInRequest,
    session: SessionData = Depends(get_session),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Sign in with email and password and start a cookie session."""
    try:
        auth = await auth_service.sign_in(payload)
    except ValueError as err:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(err)) from err
    except Exception as err:
        logger.error("Unexpected error during login", extra={"error": str(err)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from err

    _start_session(session, auth)
    return AuthResponse(message="Logged in", user=_public(auth.user))


@router.post("/signup", response_model=AuthResponse, dependencies=[Depends(rate_limit_signup)])
async def signup(
    payload: SignUpRequest,
    session: SessionData = Depends(get_session),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Create an account; signs the user in when Supabase returns a session."""
    try:
        auth = await auth_service.sign_up(payload)
    except ValueError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    except Exception as err:
        logger.error("Unexpected error during signup", extra={"error": str(err)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from err

    if auth.tokens is None:
        return AuthResponse(message="Check your inbox to confirm your email.")
    _start_session(session, auth)
    return AuthResponse(message="Signed up", user=_public(auth.user))


@router.post("/logout", response_model=AuthResponse)
async def logout(
    session: SessionData = Depends(get_session),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Drop the cookie session; revoking the Supabase session is best effort."""
    token = session.supabase_token
    await auth_service.sign_out(token.access_token if token else None)
    session.clear()
    return AuthResponse(message="Logged out")


@router.get("/currentUser", response_model=CurrentUserResponse)
async def current_user(
    user: AuthUser = Depends(get_current_user),
    onshape_token: OAuthToken | None = Depends(optional_onshape_token),
):
    """Return the signed-in user and whether Onshape is connected."""
    return CurrentUserResponse(user=_public(user), onshape_connected=onshape_token is not None)
