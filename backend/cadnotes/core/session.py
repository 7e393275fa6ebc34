from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from cadnotes.core.models.oauth import OAuthToken
from cadnotes.core.schemas.auth import AuthUser
from cadnotes.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import MutableMapping

logger = get_logger(__name__)

USER_KEY = "user"
SUPABASE_TOKEN_KEY = "supabase"
ONSHAPE_TOKEN_KEY = "onshape"
ACTIVE_NOTE_KEY = "active_note_id"
OAUTH_STATE_KEY = "oauth_state"
OAUTH_RETURN_TO_KEY = "oauth_return_to"


class SessionData:
    """Typed view over the per-request cookie session.

    Starlette's SessionMiddleware exposes the session as a plain dict that is
    serialized back into the signed cookie after the response, so everything
    stored here must be JSON-friendly.
    """

    def __init__(self, raw: MutableMapping[str, Any]) -> None:
        self._raw = raw

    # User

    @property
    def user(self) -> AuthUser | None:
        data = self._raw.get(USER_KEY)
        if not data:
            return None
        try:
            return AuthUser.model_validate(data)
        except ValueError:
            logger.warning("Discarding malformed session user")
            self._raw.pop(USER_KEY, None)
            return None

    def set_user(self, user: AuthUser) -> None:
        self._raw[USER_KEY] = {"id": str(user.id), "email": user.email}

    # Tokens

    @property
    def supabase_token(self) -> OAuthToken | None:
        return self._get_token(SUPABASE_TOKEN_KEY)

    def set_supabase_token(self, token: OAuthToken | None) -> None:
        self._set_token(SUPABASE_TOKEN_KEY, token)

    @property
    def onshape_token(self) -> OAuthToken | None:
        return self._get_token(ONSHAPE_TOKEN_KEY)

    def set_onshape_token(self, token: OAuthToken | None) -> None:
        self._set_token(ONSHAPE_TOKEN_KEY, token)

    # Active note cache

    @property
    def active_note_id(self) -> UUID | None:
        value = self._raw.get(ACTIVE_NOTE_KEY)
        if not value:
            return None
        try:
            return UUID(str(value))
        except ValueError:
            self._raw.pop(ACTIVE_NOTE_KEY, None)
            return None

    def set_active_note_id(self, note_id: UUID | None) -> None:
        if note_id is None:
            self._raw.pop(ACTIVE_NOTE_KEY, None)
        else:
            self._raw[ACTIVE_NOTE_KEY] = str(note_id)

    # OAuth flow bookkeeping

    def remember_oauth_state(self, state: str, return_to: str | None = None) -> None:
        self._raw[OAUTH_STATE_KEY] = state
        if return_to:
            self._raw[OAUTH_RETURN_TO_KEY] = return_to

    def pop_oauth_state(self) -> str | None:
        return self._raw.pop(OAUTH_STATE_KEY, None)

    def pop_return_to(self) -> str | None:
        return self._raw.pop(OAUTH_RETURN_TO_KEY, None)

    def clear(self) -> None:
        self._raw.clear()

    def _get_token(self, key: str) -> OAuthToken | None:
        data = self._raw.get(key)
        if not data:
            return None
        try:
            return OAuthToken.model_validate(data)
        except ValueError:
            logger.warning("Discarding malformed token in session", extra={"key": key})
            self._raw.pop(key, None)
            return None

    def _set_token(self, key: str, token: OAuthToken | None) -> None:
        if token is None:
            self._raw.pop(key, None)
        else:
            self._raw[key] = token.model_dump()
