from __future__ import annotations

import base64
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from ..core.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Multipart:
    """A single file part for an upload request."""
    field_name: str
    file_name: str
    content: bytes


@dataclass(frozen=True)
class TransportResult:
    """Raw outcome of one HTTP exchange: status code, body bytes and headers."""
    status_code: int
    content: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


class JiraTransport:
    """
    Thin async HTTP adapter for the JIRA REST API using basic auth (email + API token).

    Paths are resolved against `<base_url><api_prefix>/`. Credentials and base address are
    fixed at construction; the proxy may be changed through `set_proxy`.
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        token: str,
        *,
        api_prefix: str = "/rest/api/2",
        timeout: float = 30.0,
        proxy: Optional[str] = None,
        verify: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not base_url or not username or not token:
            raise ValueError("Missing JIRA configuration for transport initialization.")
        self.base_url = base_url.rstrip("/")
        self.api_prefix = "/" + api_prefix.strip("/")
        self.timeout = httpx.Timeout(timeout)
        self.verify = verify
        self._auth_header = self._basic_auth_header(username, token)
        self._proxy = proxy
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "JiraTransport":
        return cls(
            settings.jira_base_url,
            settings.JIRA_EMAIL,
            settings.JIRA_API_TOKEN,
            api_prefix=settings.JIRA_API_PREFIX,
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
            proxy=settings.JIRA_PROXY_URL,
            verify=settings.JIRA_VERIFY_SSL,
            transport=transport,
        )

    @property
    def proxy(self) -> Optional[str]:
        return self._proxy

    async def set_proxy(self, proxy: Optional[str]) -> None:
        """Route subsequent requests through `proxy` (None to go direct)."""
        self._proxy = proxy
        await self.close()

    def _basic_auth_header(self, username: str, token: str) -> str:
        raw = f"{username}:{token}".encode("utf-8")
        b64 = base64.b64encode(raw).decode("ascii")
        return f"Basic {b64}"

    async def open(self) -> None:
        if self._client is None:
            # Content-Type is left to httpx so that JSON and multipart bodies each get their own.
            kwargs: Dict[str, Any] = {
                "base_url": f"{self.base_url}{self.api_prefix}/",
                "headers": {"Authorization": self._auth_header, "Accept": "application/json"},
                "timeout": self.timeout,
            }
            if self._transport is not None:
                kwargs["transport"] = self._transport
            else:
                kwargs["verify"] = self.verify
                if self._proxy:
                    kwargs["proxy"] = self._proxy
            self._client = httpx.AsyncClient(**kwargs)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            await self.open()
        assert self._client is not None
        return self._client

    async def perform(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        multipart: Optional[Multipart] = None,
    ) -> TransportResult:
        """Issue one request and return its status, body and headers. Network errors propagate."""
        client = await self._ensure_client()
        kwargs: Dict[str, Any] = {}
        if params:
            kwargs["params"] = params
        if multipart is not None:
            kwargs["files"] = {
                multipart.field_name: (multipart.file_name, multipart.content, "application/octet-stream")
            }
            kwargs["headers"] = {"X-Atlassian-Token": "no-check"}
        elif json is not None:
            kwargs["json"] = json

        start = time.perf_counter()
        resp = await client.request(method, path.lstrip("/"), **kwargs)
        logger.debug(
            "%s %s -> %s (%.2f ms)",
            method,
            path,
            resp.status_code,
            (time.perf_counter() - start) * 1000.0,
        )
        return TransportResult(status_code=resp.status_code, content=resp.content, headers=dict(resp.headers))
