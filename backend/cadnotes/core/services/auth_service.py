from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from cadnotes.core.models.oauth import OAuthToken
from cadnotes.core.schemas.auth import AuthSession, AuthUser
from cadnotes.utils.logging import get_logger
from cadnotes.utils.validation import validate_password_strength

if TYPE_CHECKING:
    from cadnotes.api.schemas.auth import SignInRequest, SignUpRequest


logger = get_logger(__name__)


class AuthService:
    """Email/password authentication against Supabase GoTrue."""

    def __init__(self, supabase_client: Any):
        self.supabase = supabase_client

    async def sign_up(self, payload: SignUpRequest) -> AuthSession:
        """Create an account; tokens are None until the email is confirmed."""
        is_valid_password, password_error = validate_password_strength(payload.password)
        if not is_valid_password:
            raise ValueError(password_error)

        email = payload.email.lower().strip()
        password = payload.password

        try:
            resp = await asyncio.to_thread(
                lambda: self.supabase.auth.sign_up({
                    "email": email,
                    "password": password,
                })
            )
        except Exception as err:
            error_msg = str(err).lower()

            logger.warning(
                "Sign up failed",
                extra={
                    "email": email,
                    "error_type": type(err).__name__,
                    "error_summary": error_msg[:100] if error_msg else "Unknown error",
                }
            )

            if "signup" in error_msg and ("disabled" in error_msg or "not allowed" in error_msg):
                raise ValueError("Signups are currently disabled") from err
            if "already registered" in error_msg or "already exists" in error_msg:
                raise ValueError("An account with this email already exists") from err
            elif "invalid email" in error_msg:
                raise ValueError("Invalid email format") from err
            elif "weak password" in error_msg:
                raise ValueError("Password does not meet security requirements") from err
            else:
                raise ValueError("Failed to create account. Please try again.") from err

        if not resp.user:
            raise ValueError("Failed to create account. Please try again.")

        logger.info("User signed up", extra={"email": resp.user.email, "user_id": str(resp.user.id)})
        return self._to_auth_session(resp)

    async def sign_in(self, payload: SignInRequest) -> AuthSession:
        email = payload.email.lower().strip()
        password = payload.password

        if not email or not password:
            raise ValueError("Email and password are required")

        try:
            resp = await asyncio.to_thread(
                lambda: self.supabase.auth.sign_in_with_password({
                    "email": email,
                    "password": password,
                })
            )
        except Exception as err:
            error_msg = str(err).lower()

            logger.warning(
                "Sign in failed",
                extra={
                    "email": email,
                    "error_type": type(err).__name__,
                    "error_summary": error_msg[:100] if error_msg else "Unknown error",
                }
            )

            if "invalid login credentials" in error_msg or "invalid email or password" in error_msg:
                raise ValueError("Invalid email or password") from err
            elif "email not confirmed" in error_msg:
                raise ValueError("Please confirm your email address before signing in") from err
            elif "too many requests" in error_msg:
                raise ValueError("Too many signin attempts. Please try again later.") from err
            else:
                raise ValueError("Authentication service error. Please try again.") from err

        if not resp.user or not getattr(resp, "session", None):
            raise ValueError("Invalid email or password")

        logger.info("User signed in", extra={"email": resp.user.email, "user_id": str(resp.user.id)})
        return self._to_auth_session(resp)

    async def sign_out(self, access_token: str | None) -> None:
        """Revoke the Supabase session. Failures are logged, never raised."""
        if not access_token:
            return
        try:
            await asyncio.to_thread(lambda: self.supabase.auth.admin.sign_out(access_token))
        except Exception as err:
            logger.warning("Sign out failed", extra={"error": str(err)[:100]})

    async def refresh_session(self, refresh_token: str) -> AuthSession:
        try:
            resp = await asyncio.to_thread(
                lambda: self.supabase.auth.refresh_session(refresh_token)
            )
        except Exception as err:
            error_msg = str(err).lower()

            logger.warning("Supabase session refresh failed", extra={"error": error_msg[:100]})

            if "invalid" in error_msg or "expired" in error_msg:
                raise ValueError("Invalid or expired refresh token") from err
            raise ValueError("Failed to refresh session") from err

        if not resp.user or not getattr(resp, "session", None):
            raise ValueError("Invalid refresh token")
        return self._to_auth_session(resp)

    @staticmethod
    def _to_auth_session(resp: Any) -> AuthSession:
        user = AuthUser(id=resp.user.id, email=resp.user.email or "")
        session = getattr(resp, "session", None)
        tokens = None
        if session is not None:
            tokens = OAuthToken.from_token_response({
                "access_token": session.access_token,
                "refresh_token": session.refresh_token,
                "expires_at": session.expires_at,
                "expires_in": session.expires_in,
            })
        return AuthSession(user=user, tokens=tokens)
