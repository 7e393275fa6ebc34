from __future__ import annotations

import time

from pydantic import Field

from cadnotes.utils.logging import get_logger

from .base import AppBaseModel

logger = get_logger(__name__)

# Assumed lifetime when a token response carries no expiry
DEFAULT_EXPIRES_IN = 3600


class OAuthToken(AppBaseModel):
    """Bearer credentials for one external API session.

    `expires_at` is absolute epoch seconds, so the token can be stored in the
    session cookie and compared against the clock on a later request.
    """

    access_token: str
    refresh_token: str | None = None
    expires_at: float = Field(default=0.0, description="Epoch seconds")

    def expires_within(self, seconds: float, now: float | None = None) -> bool:
        current = time.time() if now is None else now
        return self.expires_at - current <= seconds

    @classmethod
    def from_token_response(
        cls,
        data: dict,
        *,
        now: float | None = None,
        previous_refresh_token: str | None = None,
    ) -> OAuthToken:
        """Build a token from a token endpoint (or GoTrue) response body.

        Providers may omit the refresh token on refresh grants, in which case
        the previous one stays valid.
        """
        access_token = data.get("access_token")
        if not access_token:
            raise ValueError("Token response did not include an access_token")
        current = time.time() if now is None else now
        expires_at = data.get("expires_at")
        if expires_at is None:
            expires_in = data.get("expires_in")
            if not expires_in:
                logger.warning("Token response has no expiry", extra={"assumed_expires_in": DEFAULT_EXPIRES_IN})
                expires_in = DEFAULT_EXPIRES_IN
            expires_at = current + float(expires_in)
        return cls(
            access_token=access_token,
            refresh_token=data.get("refresh_token") or previous_refresh_token,
            expires_at=float(expires_at),
        )
