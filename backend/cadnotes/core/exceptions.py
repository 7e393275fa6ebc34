from __future__ import annotations


class OAuthError(Exception):
    """Token endpoint exchange or refresh failed."""


class OAuthReauthorizationRequired(Exception):
    """The route needs an Onshape token and none is usable.

    Rendered as a redirect to the authorization start route.
    """

    def __init__(self, return_to: str | None = None) -> None:
        super().__init__("Onshape authorization required")
        self.return_to = return_to


class UpstreamError(Exception):
    """Onshape answered with a non-2xx status or could not be reached."""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail
