"""HTTP client for the Jade sync API."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp

from .status import StatusKind

logger = logging.getLogger("jade_publisher.sync.client")

FAILURE_POLICIES = ("retain", "drop")


class RemoteError(Exception):
    """Base class for errors talking to the remote store."""


class RemoteUnavailable(RemoteError):
    """The remote could not be reached or did not answer in time."""


class Unauthorized(RemoteError):
    """The remote rejected the configured access token."""


class RemoteRejected(RemoteError):
    """The remote answered a call with an error status."""

    def __init__(self, status: int, message: str = ""):
        self.status = status
        self.message = message
        super().__init__(f"HTTP {status}: {message}" if message else f"HTTP {status}")


@dataclass(frozen=True)
class SyncSettings:
    """Immutable settings snapshot taken at the start of a cycle."""

    endpoint: str = ""
    access_token: str = ""
    api_path: str = "/api/sync"
    health_path: str = "/check-health"
    token_header: str = "X-Access-Token"
    health_timeout: float = 0.5
    request_timeout: float = 30.0
    cycle_timeout: Optional[float] = None
    retry_attempts: int = 0
    failure_policy: str = "retain"
    flush_before_full_sync: bool = True

    @property
    def base_url(self) -> str:
        return f"{self.endpoint.rstrip('/')}{self.api_path}"

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        endpoint: str = "",
        access_token: str = "",
    ) -> "SyncSettings":
        raw = config.get("publisher", {}) if config else {}
        cycle_timeout = raw.get("cycle_timeout")
        failure_policy = str(raw.get("failure_policy", "retain"))
        if failure_policy not in FAILURE_POLICIES:
            logger.warning("Unknown failure policy %r, using 'retain'", failure_policy)
            failure_policy = "retain"
        return cls(
            endpoint=endpoint.strip(),
            access_token=access_token.strip(),
            api_path=str(raw.get("api_path", "/api/sync")),
            health_path=str(raw.get("health_path", "/check-health")),
            token_header=str(raw.get("token_header", "X-Access-Token")),
            health_timeout=float(raw.get("health_timeout", 0.5)),
            request_timeout=float(raw.get("request_timeout", 30.0)),
            cycle_timeout=float(cycle_timeout) if cycle_timeout is not None else None,
            retry_attempts=max(0, int(raw.get("retry_attempts", 0))),
            failure_policy=failure_policy,
            flush_before_full_sync=bool(raw.get("flush_before_full_sync", True)),
        )


class JadeClient:
    """Async client for the sync endpoints under ``<endpoint><api_path>``.

    Use as an async context manager; the underlying ``aiohttp`` session
    carries the access token header on every call.
    """

    def __init__(self, settings: SyncSettings):
        self.settings = settings
        self.base_url = settings.base_url
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "JadeClient":
        headers = {}
        if self.settings.access_token:
            headers[self.settings.token_header] = self.settings.access_token
        self._session = aiohttp.ClientSession(
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=self.settings.request_timeout),
        )
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise RuntimeError("JadeClient must be used inside 'async with'")
        return self._session

    def _url(self, path: str) -> str:
        if not path or path == "/":
            return self.base_url
        return f"{self.base_url}/{path.lstrip('/')}"

    async def check_health(self) -> None:
        """Check the remote is reachable, with a bounded timeout.

        Raises:
            Unauthorized: The access token was rejected.
            RemoteUnavailable: Timeout, transport error or unhealthy answer.
        """
        url = self._url(self.settings.health_path)
        timeout = aiohttp.ClientTimeout(total=self.settings.health_timeout)
        try:
            async with self.session.get(url, timeout=timeout) as resp:
                if resp.status in (401, 403):
                    raise Unauthorized(f"Access token rejected by {url}")
                if resp.status >= 400:
                    raise RemoteUnavailable(f"Health check returned HTTP {resp.status}")
                payload = await self._read_json(resp)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteUnavailable(f"Health check failed: {e!r}") from e

        if isinstance(payload, dict) and payload.get("data") is False:
            raise RemoteUnavailable("Remote reported itself unhealthy")
        logger.debug("Health check passed: %s", url)

    async def file_exists(self, content_hash: str) -> bool:
        """Ask whether content with this hash is already stored."""
        payload = await self._request(
            "GET",
            "/check-file-exists",
            params={"md5": content_hash},
        )
        data = payload.get("data") if isinstance(payload, dict) else None
        return bool(data.get("exists")) if isinstance(data, dict) else False

    async def sync_file(
        self,
        path: str,
        status: StatusKind,
        *,
        old_path: Optional[str] = None,
        content_hash: str = "",
        extension: str = "",
        last_modified: str = "",
        data: Optional[bytes] = None,
    ) -> Dict[str, Any]:
        """Send one sync action as a multipart form.

        ``data`` is only attached when the remote does not have the bytes yet.
        """
        form = aiohttp.FormData()
        form.add_field("path", path)
        form.add_field("status", status.value)
        if old_path is not None:
            form.add_field("oldPath", old_path)
        if status is not StatusKind.DELETED:
            form.add_field("md5", content_hash)
            form.add_field("extension", extension)
            form.add_field("lastModified", last_modified)
        if data is not None:
            form.add_field(
                "file",
                data,
                filename=path.rsplit("/", 1)[-1],
                content_type="application/octet-stream",
            )
        return await self._request("POST", "/", data=form)

    async def flush(self) -> Dict[str, Any]:
        """Clear the remote staging area before a full resync."""
        return await self._request("GET", "/flush")

    async def rebuild(self, files: List[Dict[str, Any]], clear_others: bool) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/rebuild",
            json={"files": files, "clearOthers": clear_others},
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        url = self._url(path)
        try:
            async with self.session.request(method, url, **kwargs) as resp:
                payload = await self._read_json(resp)
                if resp.status in (401, 403):
                    raise Unauthorized(f"{method} {url} was not authorized")
                if resp.status >= 400:
                    message = payload.get("msg", "") if isinstance(payload, dict) else ""
                    raise RemoteRejected(resp.status, str(message or resp.reason or ""))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RemoteUnavailable(f"{method} {url} failed: {e!r}") from e
        logger.debug("%s %s -> %s", method, url, resp.status)
        return payload if isinstance(payload, dict) else {}

    @staticmethod
    async def _read_json(resp: aiohttp.ClientResponse) -> Any:
        try:
            return await resp.json(content_type=None)
        except ValueError:
            return None


__all__ = [
    "FAILURE_POLICIES",
    "JadeClient",
    "RemoteError",
    "RemoteRejected",
    "RemoteUnavailable",
    "SyncSettings",
    "Unauthorized",
]
