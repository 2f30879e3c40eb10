"""Concurrent package version resolution.

For every package in a configuration's dependency map, look up the newest
stable release on the package index and attach it.  Lookups run concurrently
behind a semaphore, transient failures are retried with exponential backoff,
and a package that still cannot be resolved keeps its compiled-in default.
``resolve`` never raises because of the index.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from pydantic import BaseModel, Field
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from project_generator.config import ResolverConfig
from project_generator.errors import PackageLookupError, TransientIndexError
from project_generator.logger import get_logger
from project_generator.project.models import ProjectConfiguration
from project_generator.pypi_client import PyPIClient

logger = get_logger(__name__)

ClientFactory = Callable[[], PyPIClient]


class PackageFallback(BaseModel):
    """A package that kept its default version, and why."""

    name: str
    default_version: str | None = None
    reason: str


class ResolutionReport(BaseModel):
    """Outcome of one resolver run.

    ``configuration`` is always complete: resolved versions where lookups
    succeeded, defaults everywhere else.
    """

    configuration: ProjectConfiguration
    resolved: dict[str, str] = Field(default_factory=dict)
    fallbacks: list[PackageFallback] = Field(default_factory=list)
    skipped: bool = False

    @property
    def has_fallbacks(self) -> bool:
        return bool(self.fallbacks)


def lookup_names(configuration: ProjectConfiguration) -> list[str]:
    """Distinct package names to look up, sorted.

    Dependency keys are already normalised and carry no extras.
    """
    return configuration.dependencies.names()


class VersionResolver:
    """Resolve the dependency versions of a :class:`ProjectConfiguration`.

    Args:
        config: Concurrency, retry and index settings.
        client_factory: Returns a fresh, unopened :class:`PyPIClient`.  Tests
            use it to inject a client backed by ``httpx.MockTransport``.
    """

    def __init__(
        self,
        config: ResolverConfig | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.config = config or ResolverConfig()
        self._client_factory = client_factory or self._default_client
        # Delays grow as backoff_base * 2 ** (attempt - 1), capped at backoff_max.
        self.wait = wait_exponential(
            multiplier=self.config.backoff_base, max=self.config.backoff_max
        )

    def _default_client(self) -> PyPIClient:
        return PyPIClient(
            base_url=self.config.index_url,
            timeout=self.config.timeout,
            connect_timeout=self.config.connect_timeout,
            max_connections=self.config.max_concurrency,
            user_agent=self.config.user_agent,
        )

    # -- Public API --------------------------------------------------------

    async def resolve(
        self, configuration: ProjectConfiguration, *, skip: bool = False
    ) -> ResolutionReport:
        """Attach the newest stable versions to *configuration*'s dependencies.

        With ``skip=True`` no client is created and every package keeps its
        default version.
        """
        names = lookup_names(configuration)
        if skip:
            logger.debug("Version lookup skipped for %d package(s)", len(names))
            return ResolutionReport(configuration=configuration, skipped=True)
        if not names:
            return ResolutionReport(configuration=configuration)

        semaphore = asyncio.Semaphore(self.config.max_concurrency)
        async with self._client_factory() as client:
            outcomes = await asyncio.gather(
                *(self._lookup(client, semaphore, name) for name in names)
            )

        resolved: dict[str, str] = {}
        fallbacks: list[PackageFallback] = []
        for name, version, reason in outcomes:
            if version is not None:
                resolved[name] = version
                continue
            spec = configuration.dependencies.get(name)
            fallbacks.append(
                PackageFallback(
                    name=name,
                    default_version=spec.default_version if spec else None,
                    reason=reason or "unknown error",
                )
            )

        dependencies = configuration.dependencies.with_versions(resolved)
        return ResolutionReport(
            configuration=configuration.with_dependencies(dependencies),
            resolved=resolved,
            fallbacks=fallbacks,
        )

    # -- Internals ---------------------------------------------------------

    def _retrying(self, name: str) -> AsyncRetrying:
        def _log_retry(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            logger.debug(
                "Lookup of %s failed (attempt %d/%d): %s; retrying in %.1fs",
                name,
                retry_state.attempt_number,
                self.config.max_attempts,
                getattr(exc, "reason", exc),
                delay,
            )

        return AsyncRetrying(
            retry=retry_if_exception_type(TransientIndexError),
            stop=stop_after_attempt(self.config.max_attempts),
            wait=self.wait,
            before_sleep=_log_retry,
            reraise=True,
        )

    async def _lookup(
        self, client: PyPIClient, semaphore: asyncio.Semaphore, name: str
    ) -> tuple[str, str | None, str | None]:
        """Look up one package, returning ``(name, version, failure_reason)``."""
        async with semaphore:
            try:
                async for attempt in self._retrying(name):
                    with attempt:
                        release = await client.latest_stable(name)
            except PackageLookupError as exc:
                logger.warning("Using default version for %s: %s", name, exc.reason)
                return name, None, exc.reason

        logger.debug("Resolved %s to %s", name, release.version)
        return name, release.version, None
