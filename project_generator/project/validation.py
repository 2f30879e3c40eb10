"""Field and cross-field rules for a project configuration.

``find_violations`` works on a plain mapping so the same rules serve both the
answer builder (before a model exists) and the model's own validator.  A rule
whose inputs are missing or unparseable is skipped; the field-level violation
for that input is reported instead.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from project_generator.errors import Violation
from project_generator.project.models import (
    DependabotSchedule,
    Flavor,
    LicenseType,
    ProjectKind,
    ProjectManager,
)
from project_generator.project.packages import (
    PackageFacets,
    expected_package_names,
    parse_requirement_name,
)
from project_generator.versions import is_valid_semver, parse_python_version

SLUG_RE = re.compile(r"^[a-z0-9-]+$")
SOURCE_DIR_RE = re.compile(r"^[a-z_][a-z0-9_]*$")

# Top-level directories the file table writes into.
RESERVED_SOURCE_DIRS = frozenset({"docs", "migrations", "scripts", "src", "tests"})

MIN_LINE_LENGTH = 1
MAX_LINE_LENGTH = 255


class _Collector:
    def __init__(self) -> None:
        self.violations: list[Violation] = []
        self.bad_fields: set[str] = set()

    def add(self, code: str, field: str, message: str) -> None:
        self.violations.append(Violation(code, field, message))
        self.bad_fields.add(field)


def find_violations(values: Mapping[str, Any]) -> list[Violation]:
    """Return every rule broken by *values*, in a stable order."""
    out = _Collector()
    _check_identity(values, out)
    _check_python_versions(values, out)
    _check_limits(values, out)
    _check_conditional_fields(values, out)
    _check_flavor(values, out)
    _check_extras(values, out)
    _check_dependency_set(values, out)
    return out.violations


# ---------------------------------------------------------------------------
# Individual rule groups
# ---------------------------------------------------------------------------


def _check_identity(values: Mapping[str, Any], out: _Collector) -> None:
    if "project_name" in values and not str(values["project_name"] or "").strip():
        out.add("required", "project_name", "a project name is required")

    slug = values.get("project_slug")
    if slug is not None and not SLUG_RE.match(slug):
        out.add(
            "invalid-slug",
            "project_slug",
            f"{slug!r} must be non-empty and contain only a-z, 0-9 and '-'",
        )

    source_dir = values.get("source_dir")
    if source_dir is not None and not SOURCE_DIR_RE.match(source_dir):
        out.add(
            "invalid-source-dir",
            "source_dir",
            f"{source_dir!r} is not a valid Python package name",
        )
    elif source_dir in RESERVED_SOURCE_DIRS:
        out.add(
            "reserved-source-dir",
            "source_dir",
            f"{source_dir!r} clashes with a top-level directory of the generated project",
        )

    version = values.get("version")
    if version is not None and not is_valid_semver(version):
        out.add("invalid-version", "version", f"{version!r} is not a MAJOR.MINOR.PATCH version")


def _parse_or_report(value: str, field: str, out: _Collector) -> tuple[int, int, int] | None:
    try:
        return parse_python_version(value)
    except ValueError:
        out.add("invalid-python-version", field, f"{value!r} is not a valid Python version")
        return None


def _check_python_versions(values: Mapping[str, Any], out: _Collector) -> None:
    target = minimum = None
    if values.get("python_version") is not None:
        target = _parse_or_report(values["python_version"], "python_version", out)
    if values.get("min_python_version") is not None:
        minimum = _parse_or_report(values["min_python_version"], "min_python_version", out)

    if target is not None and minimum is not None and minimum > target:
        out.add(
            "python-version-order",
            "min_python_version",
            f"minimum {values['min_python_version']} is newer than target {values['python_version']}",
        )

    field = "github_actions_python_test_versions"
    if field not in values:
        return
    tested = values[field] or []
    if not tested:
        out.add("required", field, "at least one Python version must be tested")
        return

    seen: set[tuple[int, int, int]] = set()
    for raw in tested:
        parsed = _parse_or_report(raw, field, out)
        if parsed is None:
            continue
        if parsed in seen:
            out.add("invalid-python-version", field, f"{raw} is listed more than once")
        seen.add(parsed)
        if minimum is not None and parsed[:2] < minimum[:2]:
            out.add(
                "test-version-below-minimum",
                field,
                f"{raw} is older than the minimum Python version {values['min_python_version']}",
            )
        if target is not None and parsed[:2] < target[:2]:
            out.add(
                "test-version-below-target",
                field,
                f"{raw} is older than the target Python version {values['python_version']}",
            )


def _check_limits(values: Mapping[str, Any], out: _Collector) -> None:
    length = values.get("max_line_length")
    if length is not None and not MIN_LINE_LENGTH <= length <= MAX_LINE_LENGTH:
        out.add(
            "invalid-line-length",
            "max_line_length",
            f"{length} is outside {MIN_LINE_LENGTH}..{MAX_LINE_LENGTH}",
        )

    year = values.get("copyright_year")
    if year is not None and not 1000 <= year <= 9999:
        out.add("invalid-year", "copyright_year", f"{year} is not a four digit year")


def _present(values: Mapping[str, Any], key: str) -> bool:
    return values.get(key) is not None


def _check_conditional_fields(values: Mapping[str, Any], out: _Collector) -> None:
    if "license" in values:
        licensed = values["license"] is not LicenseType.NONE
        if licensed != _present(values, "copyright_year"):
            out.add(
                "copyright-year-mismatch",
                "copyright_year",
                "a copyright year is required exactly when a license is chosen",
            )

    if "use_dependabot" in values:
        if bool(values["use_dependabot"]) != _present(values, "dependabot_schedule"):
            out.add(
                "dependabot-schedule-mismatch",
                "dependabot_schedule",
                "a dependabot schedule is required exactly when dependabot is enabled",
            )
    weekly = values.get("dependabot_schedule") is DependabotSchedule.WEEKLY
    if weekly != _present(values, "dependabot_day"):
        out.add(
            "dependabot-day-mismatch",
            "dependabot_day",
            "a dependabot day is required exactly when the schedule is weekly",
        )

    if "include_docs" in values:
        if bool(values["include_docs"]) != _present(values, "docs_info"):
            out.add(
                "docs-fields-mismatch",
                "docs_info",
                "docs settings are required exactly when docs are included",
            )


def _check_flavor(values: Mapping[str, Any], out: _Collector) -> None:
    manager = values.get("project_manager")
    flavor = values.get("flavor")
    if manager is None or flavor is None:
        return

    is_maturin = manager is ProjectManager.MATURIN
    if (flavor is Flavor.NATIVE_EXTENSION) != is_maturin:
        out.add(
            "flavor-manager-mismatch",
            "project_manager",
            "native-extension projects must use maturin, and maturin only builds native extensions",
        )
    if is_maturin != _present(values, "pyo3_python_manager"):
        out.add(
            "pyo3-manager-mismatch",
            "pyo3_python_manager",
            "a PyO3 Python manager is required exactly when maturin is the project manager",
        )

    full = flavor is Flavor.FULL_FRAMEWORK
    if full != _present(values, "database_manager"):
        out.add(
            "database-manager-mismatch",
            "database_manager",
            "a database manager is required exactly for full-framework projects",
        )
    if not full:
        return
    if not values.get("is_async_project"):
        out.add("async-required", "is_async_project", "full-framework projects are always async")
    if values.get("project_kind") is not ProjectKind.APPLICATION:
        out.add("application-required", "project_kind", "full-framework projects are applications")
    if manager is ProjectManager.PIXI:
        out.add(
            "unsupported-manager",
            "project_manager",
            "pixi is not supported for full-framework projects",
        )


def _check_extras(values: Mapping[str, Any], out: _Collector) -> None:
    seen: set[str] = set()
    for raw in values.get("extra_dependencies") or []:
        try:
            name, _ = parse_requirement_name(raw)
        except ValueError as exc:
            out.add("invalid-package-name", "extra_dependencies", str(exc))
            continue
        if name in seen:
            out.add("invalid-package-name", "extra_dependencies", f"{raw!r} is listed more than once")
        seen.add(name)


_FACET_FIELDS = (
    "project_manager",
    "project_kind",
    "flavor",
    "is_async_project",
    "min_python_version",
    "include_docs",
    "database_manager",
)


def _check_dependency_set(values: Mapping[str, Any], out: _Collector) -> None:
    dependencies = values.get("dependencies")
    if dependencies is None:
        return
    if out.bad_fields & {*_FACET_FIELDS, "extra_dependencies"}:
        return
    if any(key not in values for key in _FACET_FIELDS):
        return

    facets = PackageFacets(**{key: values[key] for key in _FACET_FIELDS})
    expected = expected_package_names(facets, values.get("extra_dependencies") or [])
    actual = set(dependencies.packages)
    if actual != expected:
        missing = sorted(expected - actual)
        unexpected = sorted(actual - expected)
        out.add(
            "dependency-set-mismatch",
            "dependencies",
            f"missing {missing or 'nothing'}, unexpected {unexpected or 'nothing'}",
        )
