from __future__ import annotations

import asyncio
from typing import Any

import requests

from cadnotes.config import settings
from cadnotes.core.exceptions import UpstreamError
from cadnotes.utils.logging import get_logger

logger = get_logger(__name__)

GLTF_MEDIA_TYPE = "model/gltf+json"


class OnshapeApiClient:
    """Read-only calls against the Onshape REST API with a user bearer token."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        http: requests.Session | None = None,
    ) -> None:
        self.base_url = (base_url or settings.onshape_api_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout
        self._http = http or requests.Session()

    async def get_assembly_definition(self, access_token: str, did: str, wid: str, eid: str) -> Any:
        return await self._get(access_token, f"/assemblies/d/{did}/w/{wid}/e/{eid}")

    async def export_gltf(self, access_token: str, did: str, wid: str, eid: str) -> Any:
        return await self._get(
            access_token,
            f"/assemblies/d/{did}/w/{wid}/e/{eid}/gltf",
            accept=GLTF_MEDIA_TYPE,
        )

    async def get_exploded_views(self, access_token: str, did: str, wid: str, eid: str) -> Any:
        return await self._get(access_token, f"/assemblies/d/{did}/w/{wid}/e/{eid}/explodedviews")

    async def get_mates(self, access_token: str, did: str, wid: str, eid: str) -> Any:
        return await self._get(access_token, f"/assemblies/d/{did}/w/{wid}/e/{eid}/mates")

    async def list_documents(self, access_token: str, *, limit: int = 20, offset: int = 0) -> Any:
        return await self._get(access_token, "/documents", params={"limit": limit, "offset": offset})

    async def _get(
        self,
        access_token: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        accept: str = "application/json",
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {access_token}", "Accept": accept}
        try:
            resp = await asyncio.to_thread(
                lambda: self._http.get(url, headers=headers, params=params, timeout=self.timeout)
            )
        except requests.RequestException as err:
            logger.error("Onshape request failed", extra={"path": path, "error": str(err)})
            raise UpstreamError(502, "Onshape API unreachable") from err

        if not resp.ok:
            logger.warning(
                "Onshape returned an error",
                extra={"path": path, "status": resp.status_code, "body": resp.text[:200]},
            )
            raise UpstreamError(resp.status_code, resp.text or resp.reason or "Onshape API error")

        try:
            return resp.json()
        except ValueError as err:
            raise UpstreamError(502, "Onshape API returned a non-JSON body") from err
