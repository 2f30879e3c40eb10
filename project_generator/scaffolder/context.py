"""Template context built from a configuration.

The context is a plain dict of JSON-like values derived only from the
configuration, so rendering the same configuration twice gives the same
bytes.
"""

from __future__ import annotations

import json
from typing import Any

from project_generator.project.models import (
    ConstraintKind,
    DependencyGroup,
    LicenseType,
    PackageSpec,
    ProjectConfiguration,
    ProjectManager,
    Pyo3PythonManager,
)
from project_generator.utils import pascal_case
from project_generator.versions import parse_python_version, python_version_nodot

PRE_COMMIT_HOOKS_REV = "v6.0.0"
MULTI_OS_RUNNERS = ("ubuntu-latest", "windows-latest", "macos-latest")


def _package(spec: PackageSpec) -> dict[str, Any]:
    version = spec.effective_version
    if version is None:
        poetry_version = "*"
    elif spec.constraint is ConstraintKind.PINNED:
        poetry_version = version
    else:
        poetry_version = f">={version}"

    if spec.extras or spec.marker:
        fields = [f"version = {json.dumps(poetry_version)}"]
        if spec.extras:
            fields.append(f"extras = {json.dumps(list(spec.extras))}")
        if spec.marker:
            fields.append(f"markers = {json.dumps(spec.marker)}")
        poetry_value = "{ " + ", ".join(fields) + " }"
    else:
        poetry_value = json.dumps(poetry_version)
    return {
        "name": spec.name,
        "extras": list(spec.extras),
        "version": version,
        "marker": spec.marker,
        "requirement": spec.requirement,
        "poetry_version": poetry_version,
        "poetry_value": poetry_value,
    }


def _version_of(configuration: ProjectConfiguration, name: str) -> str | None:
    spec = configuration.dependencies.get(name)
    return spec.effective_version if spec else None


def _hook_rev(configuration: ProjectConfiguration, name: str) -> str:
    version = _version_of(configuration, name)
    return f"v{version}" if version else "main"


def _run_prefix(configuration: ProjectConfiguration) -> str:
    manager = configuration.project_manager
    if manager is ProjectManager.MATURIN:
        if configuration.pyo3_python_manager is Pyo3PythonManager.UV:
            return "uv run "
        return ""
    return {
        ProjectManager.UV: "uv run ",
        ProjectManager.POETRY: "poetry run ",
        ProjectManager.PIXI: "pixi run ",
    }.get(manager, "")


def _minor(version: str) -> str:
    major, minor, _ = parse_python_version(version)
    return f"{major}.{minor}"


def build_context(configuration: ProjectConfiguration) -> dict[str, Any]:
    """Return the Jinja2 context for *configuration*."""
    deps = configuration.dependencies
    module = configuration.module_name
    docs = configuration.docs_info

    return {
        "project_name": configuration.project_name,
        "project_slug": configuration.project_slug,
        "module": module,
        "class_name": pascal_case(module),
        "extension_module": f"_{module}",
        "crate_name": module,
        "project_description": configuration.project_description,
        "creator": configuration.creator,
        "creator_email": configuration.creator_email,
        "license": configuration.license.value,
        "has_license": configuration.license is not LicenseType.NONE,
        "copyright_year": configuration.copyright_year,
        "version": configuration.version,
        "python_version": configuration.python_version,
        "min_python_version": configuration.min_python_version,
        "min_python_minor": _minor(configuration.min_python_version),
        "python_target_minor": _minor(configuration.python_version),
        "ruff_target": f"py{python_version_nodot(configuration.min_python_version)}",
        "test_python_versions": list(configuration.github_actions_python_test_versions),
        "project_manager": configuration.project_manager.value,
        "run_prefix": _run_prefix(configuration),
        "pyo3_python_manager": (
            configuration.pyo3_python_manager.value if configuration.pyo3_python_manager else None
        ),
        "flavor": configuration.flavor.value,
        "is_application": configuration.is_application,
        "is_async": configuration.is_async_project,
        "is_full": configuration.is_full_framework,
        "max_line_length": configuration.max_line_length,
        "dependabot_schedule": (
            configuration.dependabot_schedule.value if configuration.dependabot_schedule else None
        ),
        "dependabot_day": configuration.dependabot_day.value if configuration.dependabot_day else None,
        "use_continuous_deployment": configuration.use_continuous_deployment,
        "use_multi_os_ci": configuration.use_multi_os_ci,
        "ci_runners": list(MULTI_OS_RUNNERS) if configuration.use_multi_os_ci else ["ubuntu-latest"],
        "include_docs": configuration.include_docs,
        "docs": docs.model_dump() if docs else None,
        "database_manager": (
            configuration.database_manager.value if configuration.database_manager else None
        ),
        "runtime_packages": [_package(s) for s in deps.for_group(DependencyGroup.RUNTIME)],
        "dev_packages": [_package(s) for s in deps.for_group(DependencyGroup.DEV)],
        "docs_packages": [_package(s) for s in deps.for_group(DependencyGroup.DOCS)],
        "pre_commit_hooks_rev": PRE_COMMIT_HOOKS_REV,
        "ruff_rev": _hook_rev(configuration, "ruff"),
        "mypy_rev": _hook_rev(configuration, "mypy"),
        "maturin_version": _version_of(configuration, "maturin"),
    }
