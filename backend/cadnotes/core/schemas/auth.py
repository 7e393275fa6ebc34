from __future__ import annotations

from uuid import UUID  # noqa: TCH003

from cadnotes.core.models.base import AppBaseModel
from cadnotes.core.models.oauth import OAuthToken  # noqa: TCH001


class AuthUser(AppBaseModel):
    """Authenticated user as remembered in the session."""

    id: UUID
    email: str


class AuthSession(AppBaseModel):
    """Result of a successful Supabase sign in, sign up or refresh.

    `tokens` is None when Supabase created the account but withholds a
    session until the email address is confirmed.
    """

    user: AuthUser
    tokens: OAuthToken | None = None
