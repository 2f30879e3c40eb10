"""Exception hierarchy for the generation pipeline.

Validation and output-target errors are raised before any side effect takes
place.  Write failures carry the path that failed.  Package lookup errors are
internal to the resolver and never escape it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class GeneratorError(Exception):
    """Base class for every error the pipeline reports to its caller."""


@dataclass(frozen=True)
class Violation:
    """A single broken configuration rule."""

    code: str
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message} [{self.code}]"


class ConfigurationError(GeneratorError):
    """Raised when raw answers cannot produce a valid configuration.

    Every violation found is reported, not just the first one.
    """

    def __init__(self, violations: list[Violation]) -> None:
        self.violations = list(violations)
        summary = "; ".join(str(v) for v in self.violations)
        super().__init__(f"Invalid project configuration: {summary}")

    @property
    def codes(self) -> set[str]:
        """Return the set of violation codes."""
        return {v.code for v in self.violations}

    @property
    def fields(self) -> set[str]:
        """Return the set of fields with at least one violation."""
        return {v.field for v in self.violations}


class OutputTargetError(GeneratorError):
    """Raised when the destination directory exists and is not empty."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Destination {path} already exists and is not empty")


class MaterializationError(GeneratorError):
    """Raised when a file could not be written.

    Files written before the failure are left in place.
    """

    def __init__(self, path: Path, cause: OSError) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"Unable to write {path}: {cause}")


class DefaultsFileError(GeneratorError):
    """Raised when the stored defaults file cannot be read."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Unable to read stored defaults from {path}: {reason}")


class ManifestCollisionError(GeneratorError):
    """Raised when two file table entries can match the same path."""

    def __init__(self, path: str, templates: list[str]) -> None:
        self.path = path
        self.templates = templates
        super().__init__(f"{path} is produced by more than one template: {', '.join(templates)}")


class PackageLookupError(Exception):
    """A package index lookup failed in a way retrying cannot fix."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"{name}: {reason}")


class TransientIndexError(PackageLookupError):
    """A package index lookup failed in a way that may succeed on retry."""
