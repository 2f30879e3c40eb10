"""The file table: which files a project gets, and from which template.

``FILE_TABLE`` is static.  Each entry pairs an output path with a template
and a predicate over :class:`ManifestFacets`.  ``ensure_collision_free``
walks every valid facet combination and checks that no two entries matching
the same combination share a path.
"""

from __future__ import annotations

import functools
import itertools
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from project_generator.errors import ManifestCollisionError
from project_generator.project.models import (
    DatabaseManager,
    Flavor,
    LicenseType,
    ProjectConfiguration,
    ProjectKind,
    ProjectManager,
    Pyo3PythonManager,
)


@dataclass(frozen=True)
class ManifestFacets:
    """The configuration fields that decide the file set."""

    project_manager: ProjectManager
    pyo3_python_manager: Pyo3PythonManager | None
    flavor: Flavor
    project_kind: ProjectKind
    is_async_project: bool
    license: LicenseType
    use_dependabot: bool
    use_continuous_deployment: bool
    use_release_drafter: bool
    include_docs: bool
    database_manager: DatabaseManager | None

    @classmethod
    def from_configuration(cls, configuration: ProjectConfiguration) -> ManifestFacets:
        return cls(**{name: getattr(configuration, name) for name in cls.__dataclass_fields__})


Predicate = Callable[[ManifestFacets], bool]


@dataclass(frozen=True)
class FileSpec:
    path: str
    template: str
    when: Predicate
    executable: bool = False


@dataclass(frozen=True, order=True)
class ManifestEntry:
    """One file to write, with ``{module}`` already substituted."""

    path: str
    template: str
    executable: bool = False


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def always(_: ManifestFacets) -> bool:
    return True


def manager_is(manager: ProjectManager) -> Predicate:
    return lambda f: f.project_manager is manager


def license_is(license_type: LicenseType) -> Predicate:
    return lambda f: f.license is license_type


def is_full(f: ManifestFacets) -> bool:
    return f.flavor is Flavor.FULL_FRAMEWORK


def is_maturin(f: ManifestFacets) -> bool:
    return f.project_manager is ProjectManager.MATURIN


def has_cli(f: ManifestFacets) -> bool:
    return f.project_kind is ProjectKind.APPLICATION and not is_full(f)


def database_is(manager: DatabaseManager) -> Predicate:
    return lambda f: is_full(f) and f.database_manager is manager


def uses_requirements_dev(f: ManifestFacets) -> bool:
    return f.project_manager is ProjectManager.SETUPTOOLS or (
        is_maturin(f) and f.pyo3_python_manager is Pyo3PythonManager.SETUPTOOLS
    )


def docs(f: ManifestFacets) -> bool:
    return f.include_docs


# ---------------------------------------------------------------------------
# The table
# ---------------------------------------------------------------------------

_FASTAPI_PACKAGE = (
    "__init__.py",
    "core/__init__.py",
    "core/cache.py",
    "core/config.py",
    "core/db.py",
    "core/security.py",
    "core/utils.py",
    "api/__init__.py",
    "api/deps.py",
    "api/router.py",
    "api/routes/__init__.py",
    "api/routes/health.py",
    "api/routes/login.py",
    "api/routes/users.py",
    "models/__init__.py",
    "models/message.py",
    "models/token.py",
    "models/users.py",
    "services/__init__.py",
    "services/cache/__init__.py",
    "services/cache/user_cache_services.py",
    "services/db/__init__.py",
    "services/db/health_services.py",
    "services/db/user_services.py",
)

FILE_TABLE: tuple[FileSpec, ...] = (
    # Repository files
    FileSpec(".gitignore", "common/gitignore.j2", always),
    FileSpec(".pre-commit-config.yaml", "common/pre-commit-config.yaml.j2", always),
    FileSpec("README.md", "common/README.md.j2", always),
    FileSpec("LICENSE", "licenses/MIT.j2", license_is(LicenseType.MIT)),
    FileSpec("LICENSE", "licenses/Apache-2.0.j2", license_is(LicenseType.APACHE)),
    # Build descriptors, one per manager
    FileSpec("pyproject.toml", "build/pyproject_uv.toml.j2", manager_is(ProjectManager.UV)),
    FileSpec("pyproject.toml", "build/pyproject_poetry.toml.j2", manager_is(ProjectManager.POETRY)),
    FileSpec(
        "pyproject.toml",
        "build/pyproject_setuptools.toml.j2",
        manager_is(ProjectManager.SETUPTOOLS),
    ),
    FileSpec("pyproject.toml", "build/pyproject_pixi.toml.j2", manager_is(ProjectManager.PIXI)),
    FileSpec("pyproject.toml", "build/pyproject_maturin.toml.j2", is_maturin),
    FileSpec("requirements-dev.txt", "build/requirements-dev.txt.j2", uses_requirements_dev),
    FileSpec("Cargo.toml", "rust/Cargo.toml.j2", is_maturin),
    FileSpec("src/lib.rs", "rust/lib.rs.j2", is_maturin),
    # Source package
    FileSpec("{module}/__init__.py", "package/__init__.py.j2", lambda f: not is_full(f)),
    FileSpec("{module}/py.typed", "package/py.typed.j2", always),
    FileSpec("{module}/_version.py", "package/_version.py.j2", lambda f: not is_maturin(f)),
    FileSpec("{module}/_{module}.pyi", "rust/stub.pyi.j2", is_maturin),
    FileSpec(
        "{module}/main.py",
        "package/main.py.j2",
        lambda f: has_cli(f) and not f.is_async_project,
    ),
    FileSpec(
        "{module}/main.py",
        "package/main_async.py.j2",
        lambda f: has_cli(f) and f.is_async_project,
    ),
    FileSpec("{module}/__main__.py", "package/__main__.py.j2", has_cli),
    # Tests
    FileSpec("tests/__init__.py", "tests/__init__.py.j2", always),
    FileSpec("tests/test_version.py", "tests/test_version.py.j2", lambda f: not is_maturin(f)),
    FileSpec("tests/test_extension.py", "rust/test_extension.py.j2", is_maturin),
    FileSpec(
        "tests/test_main.py",
        "tests/test_main.py.j2",
        lambda f: has_cli(f) and not f.is_async_project,
    ),
    FileSpec(
        "tests/test_main.py",
        "tests/test_main_async.py.j2",
        lambda f: has_cli(f) and f.is_async_project,
    ),
    # GitHub
    FileSpec(".github/workflows/testing.yml", "github/testing.yml.j2", always),
    FileSpec(
        ".github/workflows/pypi_publish.yml",
        "github/pypi_publish.yml.j2",
        lambda f: f.use_continuous_deployment and not is_full(f),
    ),
    FileSpec(".github/dependabot.yml", "github/dependabot.yml.j2", lambda f: f.use_dependabot),
    FileSpec(
        ".github/release-drafter.yml",
        "github/release-drafter.yml.j2",
        lambda f: f.use_release_drafter,
    ),
    FileSpec(
        ".github/workflows/release_drafter.yml",
        "github/release_drafter_workflow.yml.j2",
        lambda f: f.use_release_drafter,
    ),
    # Docs subtree
    FileSpec("docs/mkdocs.yml", "docs/mkdocs.yml.j2", docs),
    FileSpec("docs/requirements.txt", "docs/requirements.txt.j2", docs),
    FileSpec("docs/pages/index.md", "docs/index.md.j2", docs),
    FileSpec("docs/pages/css/custom.css", "docs/custom.css.j2", docs),
    FileSpec(".github/workflows/docs_publish.yml", "github/docs_publish.yml.j2", docs),
    # FastAPI project
    *(
        FileSpec(f"{{module}}/{name}", f"fastapi/package/{name}.j2", is_full)
        for name in _FASTAPI_PACKAGE
    ),
    FileSpec("{module}/main.py", "fastapi/package/main.py.j2", is_full),
    FileSpec("tests/conftest.py", "fastapi/tests/conftest.py.j2", is_full),
    FileSpec("tests/test_health.py", "fastapi/tests/test_health.py.j2", is_full),
    FileSpec("tests/utils.py", "fastapi/tests/utils.py.j2", is_full),
    FileSpec("tests/api/__init__.py", "tests/__init__.py.j2", is_full),
    FileSpec("tests/api/test_deps.py", "fastapi/tests/api/test_deps.py.j2", is_full),
    FileSpec("tests/core/__init__.py", "tests/__init__.py.j2", is_full),
    FileSpec("tests/core/test_config.py", "fastapi/tests/core/test_config.py.j2", is_full),
    FileSpec("Dockerfile", "fastapi/Dockerfile.j2", is_full),
    FileSpec(".dockerignore", "fastapi/dockerignore.j2", is_full),
    FileSpec("docker-compose.yml", "fastapi/docker-compose.yml.j2", is_full),
    FileSpec("docker-compose.override.yml", "fastapi/docker-compose.override.yml.j2", is_full),
    FileSpec("docker-compose.traefik.yml", "fastapi/docker-compose.traefik.yml.j2", is_full),
    FileSpec(".env-example", "fastapi/env-example.j2", is_full),
    FileSpec("scripts/entrypoint.sh", "fastapi/entrypoint.sh.j2", is_full, executable=True),
    FileSpec(
        "migrations/0001_init.up.sql",
        "fastapi/migrations/0001_init.up.sql.j2",
        database_is(DatabaseManager.ASYNCPG),
    ),
    FileSpec(
        "migrations/0001_init.down.sql",
        "fastapi/migrations/0001_init.down.sql.j2",
        database_is(DatabaseManager.ASYNCPG),
    ),
    FileSpec("alembic.ini", "fastapi/alembic/alembic.ini.j2", database_is(DatabaseManager.SQLALCHEMY)),
    FileSpec(
        "migrations/env.py",
        "fastapi/alembic/env.py.j2",
        database_is(DatabaseManager.SQLALCHEMY),
    ),
    FileSpec(
        "migrations/script.py.mako",
        "fastapi/alembic/script.py.mako.j2",
        database_is(DatabaseManager.SQLALCHEMY),
    ),
    FileSpec(
        "migrations/versions/0001_init.py",
        "fastapi/alembic/0001_init.py.j2",
        database_is(DatabaseManager.SQLALCHEMY),
    ),
)


# ---------------------------------------------------------------------------
# Facet enumeration and the collision check
# ---------------------------------------------------------------------------


def _project_shapes() -> Iterator[tuple[Flavor, ProjectManager, Pyo3PythonManager | None, ProjectKind, bool, DatabaseManager | None]]:
    """Every (flavor, manager, pyo3, kind, async, database) a valid configuration can have."""
    for manager, kind, is_async in itertools.product(
        (ProjectManager.UV, ProjectManager.POETRY, ProjectManager.SETUPTOOLS, ProjectManager.PIXI),
        ProjectKind,
        (False, True),
    ):
        yield Flavor.PURE, manager, None, kind, is_async, None
    for pyo3, kind, is_async in itertools.product(Pyo3PythonManager, ProjectKind, (False, True)):
        yield Flavor.NATIVE_EXTENSION, ProjectManager.MATURIN, pyo3, kind, is_async, None
    for manager, database in itertools.product(
        (ProjectManager.UV, ProjectManager.POETRY, ProjectManager.SETUPTOOLS), DatabaseManager
    ):
        yield Flavor.FULL_FRAMEWORK, manager, None, ProjectKind.APPLICATION, True, database


def all_facets() -> Iterator[ManifestFacets]:
    """Every facet combination a valid configuration can produce."""
    for shape in _project_shapes():
        flavor, manager, pyo3, kind, is_async, database = shape
        for license_type, *flags in itertools.product(LicenseType, *([(False, True)] * 4)):
            dependabot, deployment, drafter, include_docs = flags
            yield ManifestFacets(
                project_manager=manager,
                pyo3_python_manager=pyo3,
                flavor=flavor,
                project_kind=kind,
                is_async_project=is_async,
                license=license_type,
                use_dependabot=dependabot,
                use_continuous_deployment=deployment,
                use_release_drafter=drafter,
                include_docs=include_docs,
                database_manager=database,
            )


def find_collision(
    facets: ManifestFacets, table: tuple[FileSpec, ...] = FILE_TABLE
) -> tuple[str, list[str]] | None:
    """Return the first path matched by more than one entry, with its templates."""
    seen: dict[str, str] = {}
    for spec in table:
        if not spec.when(facets):
            continue
        if spec.path in seen:
            return spec.path, [seen[spec.path], spec.template]
        seen[spec.path] = spec.template
    return None


def check_table(table: tuple[FileSpec, ...]) -> None:
    """Raise :class:`ManifestCollisionError` if *table* can collide."""
    for facets in all_facets():
        collision = find_collision(facets, table)
        if collision is not None:
            raise ManifestCollisionError(*collision)


@functools.lru_cache(maxsize=1)
def ensure_collision_free() -> bool:
    """Check ``FILE_TABLE`` once per process."""
    check_table(FILE_TABLE)
    return True


# ---------------------------------------------------------------------------
# Manifest computation
# ---------------------------------------------------------------------------


def compute_manifest(configuration: ProjectConfiguration) -> list[ManifestEntry]:
    """The files to write for *configuration*, sorted by path.

    Raises:
        ManifestCollisionError: Two entries land on the same path once
            ``{module}`` is substituted.
    """
    facets = ManifestFacets.from_configuration(configuration)
    module = configuration.module_name
    entries: dict[str, ManifestEntry] = {}
    for spec in FILE_TABLE:
        if not spec.when(facets):
            continue
        entry = ManifestEntry(
            path=spec.path.format(module=module),
            template=spec.template,
            executable=spec.executable,
        )
        if entry.path in entries:
            raise ManifestCollisionError(entry.path, [entries[entry.path].template, entry.template])
        entries[entry.path] = entry
    return sorted(entries.values())
