"""Project configuration model.

Turns raw interview answers into a validated, immutable
``ProjectConfiguration``::

    from project_generator.project import ConfigurationBuilder, Flavor

    builder = ConfigurationBuilder(flavor=Flavor.PURE)
    configuration = builder.from_mapping({"project_name": "My Project", ...})
"""

from project_generator.project.defaults import (
    DefaultProvider,
    JsonDefaultStore,
    MappingDefaults,
)
from project_generator.project.models import (
    ConstraintKind,
    DatabaseManager,
    DependabotDay,
    DependabotSchedule,
    Dependencies,
    DependencyGroup,
    DocsInfo,
    Flavor,
    LicenseType,
    PackageSpec,
    ProjectConfiguration,
    ProjectKind,
    ProjectManager,
    Pyo3PythonManager,
)
from project_generator.project.questions import QUESTIONS, ConfigurationBuilder, Question

__all__ = [
    "QUESTIONS",
    "ConfigurationBuilder",
    "ConstraintKind",
    "DatabaseManager",
    "DefaultProvider",
    "DependabotDay",
    "DependabotSchedule",
    "Dependencies",
    "DependencyGroup",
    "DocsInfo",
    "Flavor",
    "JsonDefaultStore",
    "LicenseType",
    "MappingDefaults",
    "PackageSpec",
    "ProjectConfiguration",
    "ProjectKind",
    "ProjectManager",
    "Pyo3PythonManager",
    "Question",
]
