"""Tests for the file table (project_generator.scaffolder.manifest).

Covers:
- The table is collision free for every valid configuration shape
- A colliding table is rejected
- Every template named by the table exists
- Which files each project shape receives
"""

from __future__ import annotations

import pytest

from project_generator.errors import ManifestCollisionError
from project_generator.project import Flavor
from project_generator.project.validation import RESERVED_SOURCE_DIRS
from project_generator.scaffolder import FILE_TABLE, TemplateRenderer, compute_manifest, ensure_collision_free
from project_generator.scaffolder.manifest import (
    FileSpec,
    ManifestFacets,
    all_facets,
    always,
    check_table,
    find_collision,
)

pytestmark = pytest.mark.unit


def _paths(configuration) -> set[str]:
    return {entry.path for entry in compute_manifest(configuration)}


# ---------------------------------------------------------------------------
# Table integrity
# ---------------------------------------------------------------------------


class TestTableIntegrity:
    def test_collision_free(self):
        assert ensure_collision_free() is True

    def test_colliding_table_rejected(self):
        table = (
            FileSpec("README.md", "common/README.md.j2", always),
            FileSpec("README.md", "docs/index.md.j2", lambda f: f.include_docs),
        )
        with pytest.raises(ManifestCollisionError) as exc_info:
            check_table(table)
        assert exc_info.value.path == "README.md"
        assert exc_info.value.templates == ["common/README.md.j2", "docs/index.md.j2"]

    def test_exclusive_predicates_do_not_collide(self):
        table = (
            FileSpec("README.md", "common/README.md.j2", lambda f: not f.include_docs),
            FileSpec("README.md", "docs/index.md.j2", lambda f: f.include_docs),
        )
        check_table(table)

    def test_every_shape_is_enumerated(self):
        facets = list(all_facets())
        assert {f.flavor for f in facets} == set(Flavor)
        assert all(find_collision(f) is None for f in facets)

    def test_every_template_exists(self):
        renderer = TemplateRenderer()
        missing = [spec.template for spec in FILE_TABLE if not renderer.has_template(spec.template)]
        assert missing == []

    def test_facets_from_configuration(self, configuration):
        facets = ManifestFacets.from_configuration(configuration)
        assert facets.flavor is Flavor.PURE
        assert facets.include_docs is False

    def test_reserved_directories_cover_the_table(self):
        top_level = {spec.path.split("/")[0] for spec in FILE_TABLE if "/" in spec.path}
        top_level -= {"{module}", ".github"}
        assert top_level <= RESERVED_SOURCE_DIRS

    def test_substituted_paths_collide(self, configuration):
        clashing = configuration.model_copy(update={"source_dir": "tests"})
        with pytest.raises(ManifestCollisionError) as exc_info:
            compute_manifest(clashing)
        assert exc_info.value.path == "tests/__init__.py"
        assert exc_info.value.templates == ["package/__init__.py.j2", "tests/__init__.py.j2"]


# ---------------------------------------------------------------------------
# compute_manifest
# ---------------------------------------------------------------------------


class TestComputeManifest:
    def test_sorted_by_path(self, configuration):
        paths = [entry.path for entry in compute_manifest(configuration)]
        assert paths == sorted(paths)
        assert len(paths) == len(set(paths))

    def test_pure_application(self, configuration):
        paths = _paths(configuration)
        assert {
            ".gitignore",
            ".pre-commit-config.yaml",
            "README.md",
            "LICENSE",
            "pyproject.toml",
            "my_project/__init__.py",
            "my_project/py.typed",
            "my_project/_version.py",
            "my_project/main.py",
            "my_project/__main__.py",
            "tests/__init__.py",
            "tests/test_version.py",
            "tests/test_main.py",
            ".github/workflows/testing.yml",
            ".github/workflows/pypi_publish.yml",
            ".github/dependabot.yml",
            ".github/release-drafter.yml",
            ".github/workflows/release_drafter.yml",
        } <= paths
        assert "requirements-dev.txt" not in paths
        assert not any(p.startswith("docs/") for p in paths)

    def test_module_placeholder_substituted(self, make_configuration):
        paths = _paths(make_configuration(source_dir="widgets"))
        assert "widgets/__init__.py" in paths
        assert not any("{module}" in p for p in paths)

    def test_library_has_no_cli(self, make_configuration):
        paths = _paths(make_configuration(project_kind="library"))
        assert "my_project/main.py" not in paths
        assert "my_project/__main__.py" not in paths
        assert "tests/test_main.py" not in paths

    def test_async_application_uses_async_templates(self, make_configuration):
        entries = {e.path: e.template for e in compute_manifest(make_configuration(is_async_project=True))}
        assert entries["my_project/main.py"] == "package/main_async.py.j2"
        assert entries["tests/test_main.py"] == "tests/test_main_async.py.j2"

    def test_no_license(self, make_configuration):
        assert "LICENSE" not in _paths(make_configuration(license="None"))

    def test_apache_license(self, make_configuration):
        entries = {e.path: e.template for e in compute_manifest(make_configuration(license="Apache-2.0"))}
        assert entries["LICENSE"] == "licenses/Apache-2.0.j2"

    def test_docs_toggle_only_adds_docs_files(self, make_configuration):
        without = _paths(make_configuration(include_docs=False))
        with_docs = _paths(make_configuration(include_docs=True))
        assert without <= with_docs
        assert with_docs - without == {
            "docs/mkdocs.yml",
            "docs/requirements.txt",
            "docs/pages/index.md",
            "docs/pages/css/custom.css",
            ".github/workflows/docs_publish.yml",
        }

    def test_optional_github_files(self, make_configuration):
        paths = _paths(
            make_configuration(
                use_dependabot=False,
                use_release_drafter=False,
                use_continuous_deployment=False,
            )
        )
        assert ".github/workflows/testing.yml" in paths
        assert ".github/dependabot.yml" not in paths
        assert ".github/release-drafter.yml" not in paths
        assert ".github/workflows/pypi_publish.yml" not in paths

    @pytest.mark.parametrize("manager", ["uv", "poetry", "pixi"])
    def test_managers_without_requirements_file(self, make_configuration, manager):
        assert "requirements-dev.txt" not in _paths(make_configuration(project_manager=manager))

    def test_setuptools_has_requirements_file(self, make_configuration):
        entries = {e.path: e.template for e in compute_manifest(make_configuration(project_manager="setuptools"))}
        assert entries["pyproject.toml"] == "build/pyproject_setuptools.toml.j2"
        assert "requirements-dev.txt" in entries

    def test_native_extension(self, make_configuration):
        entries = {e.path: e.template for e in compute_manifest(make_configuration(Flavor.NATIVE_EXTENSION))}
        assert entries["pyproject.toml"] == "build/pyproject_maturin.toml.j2"
        assert {"Cargo.toml", "src/lib.rs", "my_project/_my_project.pyi", "tests/test_extension.py"} <= set(entries)
        assert "my_project/_version.py" not in entries
        assert "tests/test_version.py" not in entries
        assert "requirements-dev.txt" not in entries

    def test_native_extension_with_setuptools(self, make_configuration):
        config = make_configuration(Flavor.NATIVE_EXTENSION, pyo3_python_manager="setuptools")
        assert "requirements-dev.txt" in _paths(config)

    def test_full_framework_asyncpg(self, make_configuration):
        paths = _paths(make_configuration(Flavor.FULL_FRAMEWORK))
        assert {
            "my_project/main.py",
            "my_project/core/config.py",
            "my_project/api/routes/health.py",
            "my_project/api/routes/login.py",
            "my_project/api/routes/users.py",
            "my_project/core/security.py",
            "my_project/models/token.py",
            "my_project/models/users.py",
            "my_project/services/db/user_services.py",
            "my_project/services/cache/user_cache_services.py",
            "tests/conftest.py",
            "tests/test_health.py",
            "tests/utils.py",
            "tests/api/test_deps.py",
            "tests/core/test_config.py",
            "docker-compose.traefik.yml",
            "Dockerfile",
            "docker-compose.yml",
            "scripts/entrypoint.sh",
            "migrations/0001_init.up.sql",
            "migrations/0001_init.down.sql",
        } <= paths
        assert "alembic.ini" not in paths
        assert "my_project/__main__.py" not in paths
        assert ".github/workflows/pypi_publish.yml" not in paths

    def test_full_framework_sqlalchemy(self, make_configuration):
        paths = _paths(make_configuration(Flavor.FULL_FRAMEWORK, database_manager="sqlalchemy"))
        assert {
            "alembic.ini",
            "migrations/env.py",
            "migrations/script.py.mako",
            "migrations/versions/0001_init.py",
        } <= paths
        assert "migrations/0001_init.up.sql" not in paths

    def test_only_entrypoint_is_executable(self, make_configuration):
        executable = [e.path for e in compute_manifest(make_configuration(Flavor.FULL_FRAMEWORK)) if e.executable]
        assert executable == ["scripts/entrypoint.sh"]
