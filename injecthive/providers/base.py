from abc import ABC
from typing import Any, Dict, Optional

import httpx


class Provider(ABC):
    """Base REST data source.

    Subclasses call ``_get_json``; when an ``httpx.AsyncClient`` is injected it is
    reused for every call (tests pass one backed by ``httpx.MockTransport``),
    otherwise a short-lived client is opened per request.
    """

    name: str
    timeout_s: float = 10

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout_s: Optional[float] = None):
        self._client = client
        if timeout_s is not None:
            self.timeout_s = timeout_s

    async def _get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        if self._client is not None:
            response = await self._client.get(url, params=params, headers=headers, timeout=self.timeout_s)
            response.raise_for_status()
            return response

        async with httpx.AsyncClient() as client:
            response = await client.get(url, params=params, headers=headers, timeout=self.timeout_s)
            response.raise_for_status()
            return response

    async def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        response = await self._get(url, params=params, headers=headers)
        return response.json()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
