"""HTTP client for the Gemini Studio endpoints."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

import httpx

from ..errors import NETWORK_ERROR, ErrorEnvelope

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(connect=5.0, read=120.0, write=10.0, pool=5.0)


class ApiError(Exception):
    """A request failed. ``status`` is None when no response arrived."""

    def __init__(self, status: Optional[int], envelope: ErrorEnvelope) -> None:
        self.status = status
        self.envelope = envelope
        super().__init__(f"[{status}] {envelope.error}")


class StudioClient:
    """Posts JSON to the server and returns the decoded success payload.

    Any non-2xx status, unreadable body or transport failure is raised as
    :class:`ApiError` carrying an :class:`ErrorEnvelope`.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8000",
        *,
        timeout: httpx.Timeout | float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(path, json=body)
        except httpx.HTTPError as e:
            logger.warning("POST %s failed: %s", path, e)
            raise ApiError(None, ErrorEnvelope(error=NETWORK_ERROR)) from e

        try:
            data = resp.json()
        except ValueError:
            data = None

        if not resp.is_success:
            raise ApiError(resp.status_code, ErrorEnvelope.from_payload(data))
        if not isinstance(data, dict):
            raise ApiError(
                resp.status_code,
                ErrorEnvelope(error="Unexpected response from server", details=resp.text[:200]),
            )
        return data

    async def chat(self, message: str, history: Sequence[Dict[str, str]]) -> str:
        data = await self._post("/chat", {"message": message, "history": list(history)})
        return str(data.get("response", ""))

    async def generate_image(self, prompt: str, **settings: Any) -> Dict[str, Any]:
        return await self._post("/generate-image", {"prompt": prompt, **settings})

    async def generate_video(self, prompt: str, **settings: Any) -> Dict[str, Any]:
        return await self._post("/generate-video", {"prompt": prompt, **settings})

    async def health(self) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.get("/health")
                resp.raise_for_status()
                return resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ApiError(None, ErrorEnvelope(error=NETWORK_ERROR, details=str(e))) from e
