from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import requests

from cadnotes.config import settings
from cadnotes.core.exceptions import OAuthError, OAuthReauthorizationRequired
from cadnotes.core.models.oauth import OAuthToken
from cadnotes.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from cadnotes.core.session import SessionData

logger = get_logger(__name__)


class OnshapeOAuthClient:
    """OAuth2 authorization-code client for the Onshape identity server.

    The token endpoint is called with HTTP Basic client authentication and a
    form-encoded body, for both the code exchange and refresh grants.
    """

    def __init__(
        self,
        *,
        client_id: str | None = None,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
        scope: str | None = None,
        authorize_url: str | None = None,
        token_url: str | None = None,
        timeout: float | None = None,
        http: requests.Session | None = None,
    ) -> None:
        self.client_id = client_id or settings.onshape_client_id
        self.client_secret = client_secret or settings.onshape_client_secret
        self.redirect_uri = redirect_uri or settings.onshape_redirect_uri
        self.scope = scope or settings.onshape_scope
        self.authorize_url = authorize_url or settings.onshape_authorize_url
        self.token_url = token_url or settings.onshape_token_url
        self.timeout = timeout or settings.http_timeout
        self._http = http or requests.Session()

    def authorization_url(self, state: str) -> str:
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": self.scope,
            "state": state,
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> OAuthToken:
        data = await self._token_request({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
        })
        return self._parse_token(data)

    async def refresh(self, refresh_token: str) -> OAuthToken:
        data = await self._token_request({
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        })
        return self._parse_token(data, previous_refresh_token=refresh_token)

    async def _token_request(self, form: dict[str, str]) -> dict[str, Any]:
        grant = form["grant_type"]
        try:
            resp = await asyncio.to_thread(
                lambda: self._http.post(
                    self.token_url,
                    data=form,
                    auth=(self.client_id, self.client_secret),
                    headers={"Accept": "application/json"},
                    timeout=self.timeout,
                )
            )
        except requests.RequestException as err:
            logger.warning("Token endpoint unreachable", extra={"grant_type": grant, "error": str(err)})
            raise OAuthError(f"Token endpoint unreachable: {err}") from err

        if not resp.ok:
            logger.warning(
                "Token endpoint rejected grant",
                extra={"grant_type": grant, "status": resp.status_code, "body": resp.text[:200]},
            )
            raise OAuthError(f"Token endpoint returned {resp.status_code}: {resp.text[:200]}")

        try:
            return resp.json()
        except ValueError as err:
            raise OAuthError("Token endpoint returned a non-JSON body") from err

    @staticmethod
    def _parse_token(data: dict[str, Any], previous_refresh_token: str | None = None) -> OAuthToken:
        try:
            return OAuthToken.from_token_response(data, previous_refresh_token=previous_refresh_token)
        except ValueError as err:
            raise OAuthError(str(err)) from err


class TokenGuard:
    """Hands out a usable Onshape bearer token for the current session.

    A token expiring within `leeway` seconds is refreshed first and the
    result written back to the session. Token-requiring callers get an
    `OAuthReauthorizationRequired` when nothing usable is left; tolerant
    callers get None.
    """

    def __init__(
        self,
        oauth_client: OnshapeOAuthClient,
        *,
        leeway: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._oauth = oauth_client
        self._leeway = settings.token_refresh_leeway if leeway is None else leeway
        self._clock = clock

    async def ensure_token(
        self,
        session: SessionData,
        *,
        required: bool = True,
        return_to: str | None = None,
    ) -> OAuthToken | None:
        token = session.onshape_token
        if token is None:
            return self._unavailable(required, return_to)

        now = self._clock()
        if not token.expires_within(self._leeway, now=now):
            return token

        if not token.refresh_token:
            logger.info("Onshape token expired and no refresh token is stored")
            session.set_onshape_token(None)
            return self._unavailable(required, return_to)

        try:
            refreshed = await self._oauth.refresh(token.refresh_token)
        except OAuthError as err:
            logger.warning("Onshape token refresh failed", extra={"error": str(err)})
            session.set_onshape_token(None)
            return self._unavailable(required, return_to)

        session.set_onshape_token(refreshed)
        logger.info("Refreshed Onshape token", extra={"expires_at": refreshed.expires_at})
        return refreshed

    @staticmethod
    def _unavailable(required: bool, return_to: str | None) -> None:
        if required:
            raise OAuthReauthorizationRequired(return_to)
        return None
