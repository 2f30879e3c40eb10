"""Project scaffolder -- renders and writes a project tree.

Quick usage::

    from project_generator.scaffolder import ProjectGenerator

    generator = ProjectGenerator(configuration)
    project_path = await generator.generate("/tmp/output")
"""

from project_generator.scaffolder.generator import ProjectGenerator
from project_generator.scaffolder.manifest import (
    FILE_TABLE,
    ManifestEntry,
    compute_manifest,
    ensure_collision_free,
)
from project_generator.scaffolder.templates import TemplateRenderer

__all__ = [
    "FILE_TABLE",
    "ManifestEntry",
    "ProjectGenerator",
    "TemplateRenderer",
    "compute_manifest",
    "ensure_collision_free",
]
