"""Shared pytest fixtures for the project generator test suite.

Provides reusable fixtures for:
- Building configurations from a minimal set of answers
- A fake PyPI JSON API served through ``httpx.MockTransport``
- Resolver settings that retry without sleeping
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import httpx
import pytest

from project_generator.config import ResolverConfig, Settings
from project_generator.project import (
    ConfigurationBuilder,
    Flavor,
    MappingDefaults,
    ProjectConfiguration,
)
from project_generator.pypi_client import PyPIClient

FAKE_INDEX_URL = "https://pypi.test/pypi"

BASE_ANSWERS: dict[str, Any] = {
    "project_name": "My Project",
    "project_description": "A project used in tests",
    "creator": "Arthur Dent",
    "creator_email": "arthur@example.com",
}


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------


def build_configuration(
    flavor: Flavor = Flavor.PURE,
    defaults: dict[str, Any] | None = None,
    **overrides: Any,
) -> ProjectConfiguration:
    """Build a configuration from the base answers plus *overrides*."""
    builder = ConfigurationBuilder(
        defaults=MappingDefaults(defaults),
        flavor=flavor,
        current_year=2025,
    )
    return builder.from_mapping({**BASE_ANSWERS, **overrides})


@pytest.fixture
def make_answers():
    """Factory for keyed answers: ``make_answers(license="None")``."""

    def _make(**overrides: Any) -> dict[str, Any]:
        return {**BASE_ANSWERS, **overrides}

    return _make


@pytest.fixture
def make_configuration():
    """Factory for configurations: ``make_configuration(Flavor.PURE, include_docs=True)``."""
    return build_configuration


@pytest.fixture
def configuration() -> ProjectConfiguration:
    """The default pure-Python application."""
    return build_configuration()


# ---------------------------------------------------------------------------
# Fake package index
# ---------------------------------------------------------------------------


def release_payload(version: str, extra_releases: dict[str, list[dict[str, Any]]] | None = None) -> dict[str, Any]:
    releases: dict[str, list[dict[str, Any]]] = {version: [{"yanked": False}]}
    releases.update(extra_releases or {})
    return {"info": {"name": "pkg", "version": version}, "releases": releases}


class FakeIndex:
    """In-memory PyPI JSON API.

    Every package resolves to ``default_version`` unless listed in
    ``versions``.  ``failures[name]`` is a queue of status codes or exceptions
    served before the package succeeds.  Packages in ``missing`` return 404.
    """

    def __init__(self, default_version: str = "99.0.0") -> None:
        self.default_version = default_version
        self.versions: dict[str, str] = {}
        self.payloads: dict[str, Any] = {}
        self.failures: dict[str, list[int | Exception]] = {}
        self.missing: set[str] = set()
        self.calls: list[str] = []
        self.user_agents: set[str] = set()
        self.in_flight = 0
        self.max_in_flight = 0
        self.delay = 0.0

    def calls_for(self, name: str) -> int:
        return self.calls.count(name)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        name = request.url.path.rstrip("/").split("/")[-2]
        self.calls.append(name)
        self.user_agents.add(request.headers.get("User-Agent", ""))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            queue = self.failures.get(name)
            if queue:
                failure = queue.pop(0)
                if isinstance(failure, Exception):
                    raise failure
                return httpx.Response(failure, json={"message": "unavailable"})
            if name in self.missing:
                return httpx.Response(404, json={"message": "Not Found"})
            if name in self.payloads:
                return httpx.Response(200, json=self.payloads[name])
            return httpx.Response(200, json=release_payload(self.versions.get(name, self.default_version)))
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_index() -> FakeIndex:
    return FakeIndex()


@pytest.fixture
def resolver_config() -> ResolverConfig:
    """Resolver settings pointing at the fake index, retrying without delay."""
    return ResolverConfig(
        index_url=FAKE_INDEX_URL,
        max_attempts=3,
        backoff_base=0,
        backoff_max=0,
    )


@pytest.fixture
def client_factory(fake_index: FakeIndex, resolver_config: ResolverConfig):
    def _factory() -> PyPIClient:
        return PyPIClient(
            base_url=resolver_config.index_url,
            max_connections=resolver_config.max_concurrency,
            user_agent=resolver_config.user_agent,
            transport=httpx.MockTransport(fake_index.handler),
        )

    return _factory


@pytest.fixture
def settings(resolver_config: ResolverConfig, tmp_path: Path) -> Settings:
    settings = Settings(resolver=resolver_config)
    settings.generator.output_dir = tmp_path
    return settings
