"""
DESCRIPTION
-----------
ApiClient is a thin async wrapper over httpx for the agent store API.
Every non-2xx response is turned into an ApiError carrying the status and the
server-supplied message/detail, so callers can classify failures by status.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx

from src.directory.errors import ApiError

logger = logging.getLogger(__name__)

USER_AGENT = "agent-onboarding-wizard/1.0"

FilePart = Tuple[str, Tuple[str, bytes, str]]


def _error_from_response(response: httpx.Response) -> ApiError:
    #note: data only carries what the server sent as JSON; canned text stays out of it.
    data: Dict[str, Any] = {}
    if "application/json" in str(response.headers.get("content-type", "")).lower():
        try:
            parsed = response.json()
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            data = parsed

    detail = data.get("detail")
    if not isinstance(detail, str):
        detail = "" if detail is None else str(detail)
    if not data:
        detail = response.text[:200]
    message = str(data.get("message") or detail or response.reason_phrase or f"HTTP {response.status_code}")
    return ApiError(
        message,
        status=response.status_code,
        detail=detail,
        code=data.get("code"),
        data=data,
    )


class ApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        token: str = "",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json", "User-Agent": USER_AGENT},
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self, requires_auth: bool) -> Dict[str, str]:
        if requires_auth and self._token:
            return {"Authorization": f"Bearer {self._token}"}
        return {}

    async def request(
        self,
        method: str,
        path: str,
        *,
        requires_auth: bool = False,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method, path, headers=self._headers(requires_auth), **kwargs
            )
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise ApiError(f"Request to {path} failed: {exc}") from exc

        if response.is_error:
            error = _error_from_response(response)
            logger.warning("%s %s -> %s: %s", method, path, response.status_code, error.message)
            raise error
        return response

    async def get_json(self, path: str, *, requires_auth: bool = False) -> Any:
        response = await self.request("GET", path, requires_auth=requires_auth)
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(f"Response from {path} is not JSON", status=response.status_code) from exc

    async def put_form(self, path: str, data: Mapping[str, str]) -> httpx.Response:
        return await self.request("PUT", path, data=dict(data))

    async def send_multipart(
        self,
        method: str,
        path: str,
        *,
        fields: Mapping[str, str],
        files: Optional[List[FilePart]] = None,
    ) -> Any:
        response = await self.request(
            method,
            path,
            requires_auth=True,
            data=dict(fields),
            files=files or None,
        )
        if "application/json" in str(response.headers.get("content-type", "")).lower():
            return response.json()
        return {"message": response.text}
