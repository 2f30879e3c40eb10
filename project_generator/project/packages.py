"""Compiled-in package catalogue.

The catalogue is a static table: each entry names a package, its fallback
version and a predicate deciding whether a project needs it.  The fallback
versions are what a generated project gets when version lookup is skipped
or fails.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from project_generator.project.models import (
    ConstraintKind,
    DatabaseManager,
    Dependencies,
    DependencyGroup,
    Flavor,
    PackageSpec,
    ProjectKind,
    ProjectManager,
)
from project_generator.versions import parse_python_version

_REQUIREMENT_RE = re.compile(
    r"^(?P<name>[A-Za-z0-9](?:[A-Za-z0-9._-]*[A-Za-z0-9])?)"
    r"(?:\[(?P<extras>[A-Za-z0-9._-]+(?:\s*,\s*[A-Za-z0-9._-]+)*)\])?$"
)


@dataclass(frozen=True)
class PackageFacets:
    """The configuration fields that decide which packages are needed."""

    project_manager: ProjectManager
    project_kind: ProjectKind
    flavor: Flavor
    is_async_project: bool
    min_python_version: str
    include_docs: bool
    database_manager: DatabaseManager | None


@dataclass(frozen=True)
class CatalogueEntry:
    name: str
    default_version: str
    group: DependencyGroup
    when: Callable[[PackageFacets], bool]
    extras: tuple[str, ...] = ()
    marker: str | None = None


def _always(_: PackageFacets) -> bool:
    return True


def _needs_tomli(facets: PackageFacets) -> bool:
    return parse_python_version(facets.min_python_version)[:2] < (3, 11)


def _is_full(facets: PackageFacets) -> bool:
    return facets.flavor is Flavor.FULL_FRAMEWORK


def _uses_sqlalchemy(facets: PackageFacets) -> bool:
    return _is_full(facets) and facets.database_manager is DatabaseManager.SQLALCHEMY


_DEV = DependencyGroup.DEV
_RUNTIME = DependencyGroup.RUNTIME
_DOCS = DependencyGroup.DOCS

CATALOGUE: tuple[CatalogueEntry, ...] = (
    # Dev tooling shared by every project
    CatalogueEntry("mypy", "1.18.2", _DEV, _always),
    CatalogueEntry("pre-commit", "4.3.0", _DEV, _always),
    CatalogueEntry("pytest", "8.4.2", _DEV, _always),
    CatalogueEntry("pytest-cov", "7.0.0", _DEV, _always),
    CatalogueEntry("ruff", "0.14.0", _DEV, _always),
    CatalogueEntry("tomli", "2.3.0", _DEV, _needs_tomli, marker="python_version < '3.11'"),
    CatalogueEntry("pytest-asyncio", "1.2.0", _DEV, lambda f: f.is_async_project),
    CatalogueEntry(
        "maturin", "1.9.6", _DEV, lambda f: f.project_manager is ProjectManager.MATURIN
    ),
    CatalogueEntry("httpx", "0.28.1", _DEV, _is_full),
    # Documentation site
    CatalogueEntry("mkdocs-material", "9.6.21", _DOCS, lambda f: f.include_docs),
    CatalogueEntry(
        "mkdocstrings", "0.30.1", _DOCS, lambda f: f.include_docs, extras=("python",)
    ),
    # FastAPI stack
    CatalogueEntry("asyncpg", "0.30.0", _RUNTIME, _is_full),
    CatalogueEntry(
        "camel-converter", "5.0.0", _RUNTIME, _is_full, extras=("pydantic",)
    ),
    CatalogueEntry("fastapi", "0.119.0", _RUNTIME, _is_full),
    CatalogueEntry("granian", "2.5.5", _RUNTIME, _is_full, extras=("pname", "reload")),
    CatalogueEntry("httptools", "0.7.1", _RUNTIME, _is_full),
    CatalogueEntry("loguru", "0.7.3", _RUNTIME, _is_full),
    CatalogueEntry("orjson", "3.11.3", _RUNTIME, _is_full),
    CatalogueEntry("pwdlib", "0.2.1", _RUNTIME, _is_full, extras=("argon2",)),
    CatalogueEntry("pydantic", "2.12.2", _RUNTIME, _is_full, extras=("email",)),
    CatalogueEntry("pydantic-settings", "2.11.0", _RUNTIME, _is_full),
    CatalogueEntry("pyjwt", "2.10.1", _RUNTIME, _is_full),
    CatalogueEntry("python-multipart", "0.0.20", _RUNTIME, _is_full),
    CatalogueEntry("valkey", "6.1.1", _RUNTIME, _is_full),
    CatalogueEntry(
        "uvloop", "0.21.0", _RUNTIME, _is_full, marker="sys_platform != 'win32'"
    ),
    CatalogueEntry("sqlalchemy", "2.0.44", _RUNTIME, _uses_sqlalchemy),
    CatalogueEntry("alembic", "1.17.0", _RUNTIME, _uses_sqlalchemy),
)


def parse_requirement_name(raw: str) -> tuple[str, tuple[str, ...]]:
    """Split ``name[extra,...]`` into a normalised name and its extras.

    Raises:
        ValueError: If *raw* is not a valid package name.
    """
    match = _REQUIREMENT_RE.match(raw.strip())
    if match is None:
        raise ValueError(f"{raw!r} is not a valid package name")
    name = normalize_name(match.group("name"))
    extras_raw = match.group("extras")
    extras = tuple(e.strip() for e in extras_raw.split(",")) if extras_raw else ()
    return name, extras


def normalize_name(name: str) -> str:
    """PEP 503 normalisation: lowercase, runs of ``-_.`` become ``-``."""
    return re.sub(r"[-_.]+", "-", name).lower()


def build_dependencies(facets: PackageFacets, extra_dependencies: Iterable[str] = ()) -> Dependencies:
    """Return the dependency map a project with *facets* needs.

    Every spec carries its fallback version and no resolved version.  User
    extras that name a catalogue package are not added twice.
    """
    constraint = (
        ConstraintKind.PINNED
        if facets.project_kind is ProjectKind.APPLICATION
        else ConstraintKind.MINIMUM
    )
    specs: dict[str, PackageSpec] = {}
    for entry in CATALOGUE:
        if not entry.when(facets):
            continue
        specs[entry.name] = PackageSpec(
            name=entry.name,
            extras=entry.extras,
            group=entry.group,
            constraint=constraint,
            default_version=entry.default_version,
            marker=entry.marker,
        )

    for raw in extra_dependencies:
        name, extras = parse_requirement_name(raw)
        if name in specs:
            continue
        specs[name] = PackageSpec(
            name=name,
            extras=extras,
            group=DependencyGroup.RUNTIME,
            constraint=constraint,
        )

    return Dependencies(packages=specs)


def expected_package_names(facets: PackageFacets, extra_dependencies: Iterable[str] = ()) -> set[str]:
    return set(build_dependencies(facets, extra_dependencies).packages)
