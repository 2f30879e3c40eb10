"""Package version resolver."""

from project_generator.resolver.version_resolver import (
    PackageFallback,
    ResolutionReport,
    VersionResolver,
    lookup_names,
)

__all__ = [
    "PackageFallback",
    "ResolutionReport",
    "VersionResolver",
    "lookup_names",
]
