"""Default providers for configuration answers.

Precedence when building a configuration is: explicit answer, then the
injected provider, then the compiled-in default.  Providers are consulted
while the configuration is built and never afterwards.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from platformdirs import user_config_dir

from project_generator.errors import DefaultsFileError

APP_NAME = "python-project-generator"

# Keys a user may store.  Values are raw answers, parsed like typed input.
STORABLE_KEYS: tuple[str, ...] = (
    "creator",
    "creator_email",
    "license",
    "python_version",
    "min_python_version",
    "github_actions_python_test_versions",
    "project_manager",
    "pyo3_python_manager",
    "project_kind",
    "is_async_project",
    "max_line_length",
    "use_dependabot",
    "dependabot_schedule",
    "dependabot_day",
    "use_continuous_deployment",
    "use_release_drafter",
    "use_multi_os_ci",
    "include_docs",
    "docs_locale",
    "database_manager",
)


class DefaultProvider(Protocol):
    """Anything that can supply a stored default for an answer key."""

    def get(self, key: str) -> Any | None: ...


class MappingDefaults:
    """In-memory provider, mainly for tests and callers with their own store."""

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values = dict(values or {})

    def get(self, key: str) -> Any | None:
        return self._values.get(key)


class JsonDefaultStore:
    """User defaults persisted as JSON in the platform config directory.

    A missing file means no stored defaults.  A file that cannot be read or is
    not a JSON object raises :class:`DefaultsFileError` on load.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or Path(user_config_dir(APP_NAME)) / "config.json"
        self._values: dict[str, Any] | None = None

    def load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise DefaultsFileError(self.path, str(exc)) from exc
        if not isinstance(data, dict):
            raise DefaultsFileError(self.path, "not a JSON object")
        return data

    def get(self, key: str) -> Any | None:
        if self._values is None:
            self._values = self.load()
        return self._values.get(key)

    def save(self, key: str, value: Any) -> Path:
        """Store one default and return the file written.

        Raises:
            KeyError: If *key* is not a storable answer key.
        """
        if key not in STORABLE_KEYS:
            raise KeyError(f"{key!r} cannot be stored as a default")
        values = self.load()
        values[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(values, indent=2, sort_keys=True), encoding="utf-8")
        self._values = values
        return self.path

    def reset(self) -> None:
        """Forget every stored default."""
        if self.path.exists():
            self.path.unlink()
        self._values = {}
