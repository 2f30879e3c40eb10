"""Configuration model for one generated project.

``ProjectConfiguration`` is built once from raw answers (see
``project_generator.project.questions``), updated once by the version resolver
through :meth:`ProjectConfiguration.with_dependencies`, and read-only after
that.  Every instance that exists has passed the full set of cross-field
checks in ``project_generator.project.validation``.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class LicenseType(str, Enum):
    MIT = "MIT"
    APACHE = "Apache-2.0"
    NONE = "None"


class ProjectManager(str, Enum):
    UV = "uv"
    POETRY = "poetry"
    SETUPTOOLS = "setuptools"
    PIXI = "pixi"
    MATURIN = "maturin"


class Pyo3PythonManager(str, Enum):
    """Tool that manages the Python side of a PyO3/maturin project."""

    UV = "uv"
    SETUPTOOLS = "setuptools"


class Flavor(str, Enum):
    """Mutually exclusive project shape chosen before the interview starts."""

    PURE = "pure"
    NATIVE_EXTENSION = "native-extension"
    FULL_FRAMEWORK = "full-framework"


class ProjectKind(str, Enum):
    APPLICATION = "application"
    LIBRARY = "library"


class DependabotSchedule(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class DependabotDay(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class DatabaseManager(str, Enum):
    ASYNCPG = "asyncpg"
    SQLALCHEMY = "sqlalchemy"


class DependencyGroup(str, Enum):
    RUNTIME = "runtime"
    DEV = "dev"
    DOCS = "docs"


class ConstraintKind(str, Enum):
    PINNED = "pinned"
    MINIMUM = "minimum"

    @property
    def operator(self) -> str:
        return "==" if self is ConstraintKind.PINNED else ">="


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------


class DocsInfo(BaseModel):
    """MkDocs site settings, present only when docs are included."""

    model_config = ConfigDict(frozen=True)

    site_name: str
    site_description: str = ""
    site_url: str = ""
    locale: str = "en"
    repo_name: str = ""
    repo_url: str = ""


class PackageSpec(BaseModel):
    """One third-party package the generated project depends on.

    ``version`` is ``None`` until the resolver fills it in; in that state the
    compiled-in ``default_version`` applies.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    extras: tuple[str, ...] = ()
    group: DependencyGroup = DependencyGroup.RUNTIME
    constraint: ConstraintKind = ConstraintKind.PINNED
    default_version: str | None = None
    version: str | None = None
    marker: str | None = None

    @property
    def effective_version(self) -> str | None:
        """Resolved version if there is one, otherwise the default."""
        return self.version or self.default_version

    @property
    def is_resolved(self) -> bool:
        return self.version is not None

    @property
    def display_name(self) -> str:
        """``name[extra1,extra2]``."""
        if not self.extras:
            return self.name
        return f"{self.name}[{','.join(self.extras)}]"

    @property
    def specifier(self) -> str:
        """``==1.2.3`` / ``>=1.2.3``, or an empty string with no known version."""
        version = self.effective_version
        if version is None:
            return ""
        return f"{self.constraint.operator}{version}"

    @property
    def requirement(self) -> str:
        """Full PEP 508 requirement string."""
        requirement = f"{self.display_name}{self.specifier}"
        if self.marker:
            requirement += f"; {self.marker}"
        return requirement

    def with_version(self, version: str) -> PackageSpec:
        return self.model_copy(update={"version": version})


class Dependencies(BaseModel):
    """Mapping of package name to :class:`PackageSpec`."""

    model_config = ConfigDict(frozen=True)

    packages: dict[str, PackageSpec] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _keys_match_names(self) -> Dependencies:
        for key, spec in self.packages.items():
            if key != spec.name:
                raise ValueError(f"dependency key {key!r} does not match package {spec.name!r}")
        return self

    @classmethod
    def from_specs(cls, specs: list[PackageSpec]) -> Dependencies:
        """Build from a list, rejecting duplicate names."""
        packages: dict[str, PackageSpec] = {}
        for spec in specs:
            if spec.name in packages:
                raise ValueError(f"duplicate dependency {spec.name!r}")
            packages[spec.name] = spec
        return cls(packages=packages)

    def __len__(self) -> int:
        return len(self.packages)

    def __contains__(self, name: object) -> bool:
        return name in self.packages

    def get(self, name: str) -> PackageSpec | None:
        return self.packages.get(name)

    def names(self) -> list[str]:
        """Sorted package names."""
        return sorted(self.packages)

    def for_group(self, group: DependencyGroup) -> list[PackageSpec]:
        """Specs in *group*, sorted by name."""
        return [
            self.packages[name]
            for name in sorted(self.packages)
            if self.packages[name].group is group
        ]

    def with_versions(self, versions: Mapping[str, str]) -> Dependencies:
        """Return a copy with the given resolved versions applied.

        Names in *versions* that are not part of this map are ignored.
        """
        packages = {
            name: spec.with_version(versions[name]) if name in versions else spec
            for name, spec in self.packages.items()
        }
        return Dependencies(packages=packages)


# ---------------------------------------------------------------------------
# ProjectConfiguration
# ---------------------------------------------------------------------------


class ProjectConfiguration(BaseModel):
    """The validated, immutable description of one project to generate.

    Construction runs every cross-field rule and raises
    :class:`~project_generator.errors.ConfigurationError` listing all broken
    rules at once.

    A field of the wrong type fails earlier with pydantic's own
    ``ValidationError``.  Build through
    :class:`~project_generator.project.questions.ConfigurationBuilder` to get
    a ``ConfigurationError`` in every case.
    """

    model_config = ConfigDict(frozen=True)

    project_name: str
    project_slug: str
    source_dir: str
    project_description: str = ""
    creator: str = ""
    creator_email: str = ""
    license: LicenseType = LicenseType.MIT
    copyright_year: int | None = None
    version: str = "0.1.0"
    python_version: str
    min_python_version: str
    github_actions_python_test_versions: list[str]
    project_manager: ProjectManager
    pyo3_python_manager: Pyo3PythonManager | None = None
    flavor: Flavor = Flavor.PURE
    project_kind: ProjectKind
    is_async_project: bool = False
    max_line_length: int = 100
    use_dependabot: bool = False
    dependabot_schedule: DependabotSchedule | None = None
    dependabot_day: DependabotDay | None = None
    use_continuous_deployment: bool = False
    use_release_drafter: bool = False
    use_multi_os_ci: bool = False
    include_docs: bool = False
    docs_info: DocsInfo | None = None
    database_manager: DatabaseManager | None = None
    extra_dependencies: list[str] = Field(default_factory=list)
    dependencies: Dependencies

    @model_validator(mode="after")
    def _check_invariants(self) -> ProjectConfiguration:
        from project_generator.errors import ConfigurationError
        from project_generator.project.validation import find_violations

        violations = find_violations(dict(self))
        if violations:
            raise ConfigurationError(violations)
        return self

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def is_application(self) -> bool:
        return self.project_kind is ProjectKind.APPLICATION

    @property
    def is_full_framework(self) -> bool:
        return self.flavor is Flavor.FULL_FRAMEWORK

    @property
    def uses_maturin(self) -> bool:
        return self.project_manager is ProjectManager.MATURIN

    @property
    def module_name(self) -> str:
        """Import name of the generated package."""
        return self.source_dir

    def summary(self) -> dict[str, Any]:
        """Flat label/value mapping for console reporting."""
        return {
            "Project": self.project_name,
            "Slug": self.project_slug,
            "Flavor": self.flavor.value,
            "Manager": self.project_manager.value,
            "Kind": self.project_kind.value,
            "Python": f"{self.min_python_version} - {self.python_version}",
            "Docs": "yes" if self.include_docs else "no",
            "Dependencies": str(len(self.dependencies)),
        }

    # ------------------------------------------------------------------
    # The single resolver update
    # ------------------------------------------------------------------

    def with_dependencies(self, dependencies: Dependencies) -> ProjectConfiguration:
        """Return the configuration with resolved dependency versions.

        The package set must not change; only versions are updated.
        """
        if set(dependencies.packages) != set(self.dependencies.packages):
            raise ValueError("resolved dependencies must cover exactly the configured packages")
        return self.model_copy(update={"dependencies": dependencies})
