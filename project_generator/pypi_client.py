"""Async client for the PyPI JSON API.

Wraps ``GET {index}/{name}/json`` and picks the newest stable release.
Failures are raised, never returned: :class:`TransientIndexError` for errors
that a retry may fix, :class:`PackageLookupError` for the rest.  Retry policy
lives in the resolver, not here.

Typical usage::

    async with PyPIClient() as client:
        release = await client.latest_stable("httpx")
        print(release.version)
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, Field

from project_generator.errors import PackageLookupError, TransientIndexError
from project_generator.versions import is_stable_release, parse_release

_RETRYABLE_STATUS = {429}


class PackageRelease(BaseModel):
    """The release chosen for one package."""

    name: str = Field(description="Package name as requested")
    version: str = Field(description="Newest stable, non-yanked version")


class PyPIClient:
    """Async client for the PyPI JSON API.

    One ``httpx.AsyncClient`` is shared by every lookup made through the
    same instance, so use it as an async context manager.  A *transport* may
    be passed for tests (``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str = "https://pypi.org/pypi",
        timeout: float = 10.0,
        connect_timeout: float = 5.0,
        max_connections: int = 8,
        user_agent: str = "python-project-generator",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.connect_timeout = connect_timeout
        self.max_connections = max_connections
        self.user_agent = user_agent
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PyPIClient:
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=self.connect_timeout),
            limits=httpx.Limits(
                max_connections=self.max_connections,
                max_keepalive_connections=self.max_connections,
            ),
            headers={"User-Agent": self.user_agent, "Accept": "application/json"},
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch_metadata(self, name: str) -> dict[str, Any]:
        """Return the raw JSON document for *name*.

        Raises:
            TransientIndexError: On timeouts, connection errors, HTTP 429 and 5xx.
            PackageLookupError: On 404, any other error status, or a body that
                is not a JSON object.
        """
        if self._client is None:
            raise RuntimeError("PyPIClient must be used as an async context manager")

        try:
            response = await self._client.get(f"/{name}/json")
        except httpx.TimeoutException as exc:
            raise TransientIndexError(name, f"timed out after {self.timeout}s") from exc
        except httpx.TransportError as exc:
            raise TransientIndexError(name, f"connection error: {exc}") from exc
        except httpx.HTTPError as exc:
            raise PackageLookupError(name, f"request failed: {exc}") from exc

        status = response.status_code
        if status in _RETRYABLE_STATUS or status >= 500:
            raise TransientIndexError(name, f"index returned HTTP {status}")
        if status == 404:
            raise PackageLookupError(name, "not found on the package index")
        if status != 200:
            raise PackageLookupError(name, f"index returned HTTP {status}")

        try:
            data = response.json()
        except ValueError as exc:
            raise PackageLookupError(name, "response is not valid JSON") from exc
        if not isinstance(data, dict):
            raise PackageLookupError(name, "response is not a JSON object")
        return data

    async def latest_stable(self, name: str) -> PackageRelease:
        """Return the newest stable, non-yanked release of *name*."""
        data = await self.fetch_metadata(name)
        return PackageRelease(name=name, version=select_stable_version(name, data))


# ---------------------------------------------------------------------------
# Release selection
# ---------------------------------------------------------------------------


def _yanked(files: Any) -> bool:
    """A release is yanked when it has files and all of them are yanked."""
    if not isinstance(files, list) or not files:
        return False
    return all(isinstance(f, dict) and f.get("yanked", False) for f in files)


def select_stable_version(name: str, data: dict[str, Any]) -> str:
    """Choose the version to pin from a PyPI JSON document.

    ``info.version`` wins when it is a parseable, stable, non-yanked release.
    Otherwise the highest such release in ``releases`` is used.

    Raises:
        PackageLookupError: With reason ``prerelease-only`` when no stable
            release exists, or when the document has neither field.
    """
    info = data.get("info")
    releases = data.get("releases")
    if not isinstance(info, dict) and not isinstance(releases, dict):
        raise PackageLookupError(name, "malformed index response")
    releases = releases if isinstance(releases, dict) else {}

    current = info.get("version") if isinstance(info, dict) else None
    if (
        isinstance(current, str)
        and is_stable_release(current)
        and not _yanked(releases.get(current))
    ):
        return current

    candidates = [
        version
        for version, files in releases.items()
        if is_stable_release(version) and not _yanked(files)
    ]
    if not candidates:
        raise PackageLookupError(name, "prerelease-only")
    return max(candidates, key=lambda v: parse_release(v) or ())
