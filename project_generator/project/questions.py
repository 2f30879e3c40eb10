"""Question table and the builder that turns raw answers into a configuration.

Each question declares when it is visible as a predicate over the answers
parsed so far.  Hidden questions are never consumed from the input; they take
their hidden value instead (usually ``None``, or the value a flavor forces).

Typical usage::

    builder = ConfigurationBuilder(defaults=JsonDefaultStore(), flavor=Flavor.PURE)
    configuration = builder.from_mapping({"project_name": "My Project", ...})
"""

from __future__ import annotations

import datetime
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import ValidationError

from project_generator.errors import ConfigurationError, Violation
from project_generator.project.defaults import STORABLE_KEYS, DefaultProvider, MappingDefaults
from project_generator.project.models import (
    DatabaseManager,
    DependabotDay,
    DependabotSchedule,
    DocsInfo,
    Flavor,
    LicenseType,
    ProjectConfiguration,
    ProjectKind,
    ProjectManager,
    Pyo3PythonManager,
)
from project_generator.project.packages import PackageFacets, build_dependencies
from project_generator.project.validation import find_violations
from project_generator.utils import derive_slug, derive_source_dir
from project_generator.versions import is_valid_python_version, python_minor_range

Answers = dict[str, Any]

DEFAULT_PYTHON_VERSION = "3.10"
DEFAULT_MIN_PYTHON_VERSION = "3.10"

_TRUE = {"1", "y", "yes", "true"}
_FALSE = {"2", "n", "no", "false"}


class QuestionKind(str, Enum):
    TEXT = "text"
    CHOICE = "choice"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    VERSION = "version"
    LIST = "list"


@dataclass(frozen=True)
class Question:
    """One entry of the interview.

    ``default`` is either a value or a callable taking the answers parsed so
    far.  ``hidden`` gives the value used when ``visible`` is false.
    """

    key: str
    prompt: str
    kind: QuestionKind
    choices: type[Enum] | None = None
    default: Any = None
    required: bool = False
    visible: Callable[[Answers], bool] = lambda answers: True
    hidden: Callable[[Answers], Any] = lambda answers: None

    def __post_init__(self) -> None:
        if (self.kind is QuestionKind.CHOICE) != (self.choices is not None):
            raise TypeError(f"{self.key}: choices are required exactly for choice questions")


# ---------------------------------------------------------------------------
# Visibility predicates and derived defaults
# ---------------------------------------------------------------------------


def _flavor(answers: Answers) -> Flavor:
    return answers.get("flavor", Flavor.PURE)


def _not_full(answers: Answers) -> bool:
    return _flavor(answers) is not Flavor.FULL_FRAMEWORK


def _docs(answers: Answers) -> bool:
    return bool(answers.get("include_docs"))


def _default_tested_versions(answers: Answers) -> list[str]:
    candidates = [
        v
        for v in (answers.get("python_version"), answers.get("min_python_version"))
        if v and is_valid_python_version(v)
    ]
    if not candidates:
        return python_minor_range(DEFAULT_PYTHON_VERSION)
    newest = max(candidates, key=lambda v: tuple(int(p) for p in v.split(".")))
    major, minor = newest.split(".")[:2]
    return python_minor_range(f"{major}.{minor}")


QUESTIONS: tuple[Question, ...] = (
    Question("project_name", "Project Name", QuestionKind.TEXT, required=True),
    Question(
        "project_slug",
        "Project Slug",
        QuestionKind.TEXT,
        default=lambda a: derive_slug(a.get("project_name", "")),
        required=True,
    ),
    Question(
        "source_dir",
        "Source Directory",
        QuestionKind.TEXT,
        default=lambda a: derive_source_dir(a.get("project_name", "")),
        required=True,
    ),
    Question("project_description", "Project Description", QuestionKind.TEXT, required=True),
    Question("creator", "Creator", QuestionKind.TEXT, required=True),
    Question("creator_email", "Creator Email", QuestionKind.TEXT, required=True),
    Question("license", "License", QuestionKind.CHOICE, LicenseType, default=LicenseType.MIT),
    Question(
        "copyright_year",
        "Copyright Year",
        QuestionKind.INTEGER,
        default=lambda a: a["current_year"],
        visible=lambda a: a.get("license", LicenseType.MIT) is not LicenseType.NONE,
    ),
    Question("version", "Version", QuestionKind.TEXT, default="0.1.0"),
    Question("python_version", "Python Version", QuestionKind.VERSION, default=DEFAULT_PYTHON_VERSION),
    Question(
        "min_python_version",
        "Minimum Python Version",
        QuestionKind.VERSION,
        default=DEFAULT_MIN_PYTHON_VERSION,
    ),
    Question(
        "github_actions_python_test_versions",
        "Python Versions for Github Actions Testing",
        QuestionKind.LIST,
        default=_default_tested_versions,
    ),
    Question(
        "project_manager",
        "Project Manager",
        QuestionKind.CHOICE,
        ProjectManager,
        default=ProjectManager.UV,
        visible=lambda a: _flavor(a) is not Flavor.NATIVE_EXTENSION,
        hidden=lambda a: ProjectManager.MATURIN,
    ),
    Question(
        "pyo3_python_manager",
        "PyO3 Python Manager",
        QuestionKind.CHOICE,
        Pyo3PythonManager,
        default=Pyo3PythonManager.UV,
        visible=lambda a: a.get("project_manager") is ProjectManager.MATURIN,
    ),
    Question(
        "project_kind",
        "Application or Library",
        QuestionKind.CHOICE,
        ProjectKind,
        default=ProjectKind.APPLICATION,
        visible=_not_full,
        hidden=lambda a: ProjectKind.APPLICATION,
    ),
    Question(
        "is_async_project",
        "Async Project",
        QuestionKind.BOOLEAN,
        default=False,
        visible=_not_full,
        hidden=lambda a: True,
    ),
    Question("max_line_length", "Max Line Length", QuestionKind.INTEGER, default=100),
    Question("use_dependabot", "Use Dependabot", QuestionKind.BOOLEAN, default=True),
    Question(
        "dependabot_schedule",
        "Dependabot Schedule",
        QuestionKind.CHOICE,
        DependabotSchedule,
        default=DependabotSchedule.DAILY,
        visible=lambda a: bool(a.get("use_dependabot")),
    ),
    Question(
        "dependabot_day",
        "Dependabot Day",
        QuestionKind.CHOICE,
        DependabotDay,
        default=DependabotDay.MONDAY,
        visible=lambda a: a.get("dependabot_schedule") is DependabotSchedule.WEEKLY,
    ),
    Question(
        "use_continuous_deployment",
        "Use Continuous Deployment",
        QuestionKind.BOOLEAN,
        default=True,
    ),
    Question("use_release_drafter", "Use Release Drafter", QuestionKind.BOOLEAN, default=True),
    Question("use_multi_os_ci", "Use Multi OS CI", QuestionKind.BOOLEAN, default=True),
    Question("include_docs", "Include Docs", QuestionKind.BOOLEAN, default=False),
    Question(
        "docs_site_name",
        "Docs Site Name",
        QuestionKind.TEXT,
        default=lambda a: a.get("project_name", ""),
        required=True,
        visible=_docs,
    ),
    Question(
        "docs_site_description",
        "Docs Site Description",
        QuestionKind.TEXT,
        default=lambda a: a.get("project_description", ""),
        visible=_docs,
    ),
    Question("docs_site_url", "Docs Site URL", QuestionKind.TEXT, default="", visible=_docs),
    Question("docs_locale", "Docs Locale", QuestionKind.TEXT, default="en", visible=_docs),
    Question(
        "docs_repo_name",
        "Docs Repository Name",
        QuestionKind.TEXT,
        default=lambda a: a.get("project_slug", ""),
        visible=_docs,
    ),
    Question("docs_repo_url", "Docs Repository URL", QuestionKind.TEXT, default="", visible=_docs),
    Question(
        "database_manager",
        "Database Manager",
        QuestionKind.CHOICE,
        DatabaseManager,
        default=DatabaseManager.ASYNCPG,
        visible=lambda a: _flavor(a) is Flavor.FULL_FRAMEWORK,
    ),
    Question("extra_dependencies", "Extra Dependencies", QuestionKind.LIST, default=lambda a: []),
)

QUESTION_KEYS = frozenset(q.key for q in QUESTIONS)

_FACET_KEYS = tuple(PackageFacets.__dataclass_fields__)

_DOCS_FIELDS = {
    "docs_site_name": "site_name",
    "docs_site_description": "site_description",
    "docs_site_url": "site_url",
    "docs_locale": "locale",
    "docs_repo_name": "repo_name",
    "docs_repo_url": "repo_url",
}


def visible_questions(answers: Mapping[str, Any], flavor: Flavor = Flavor.PURE) -> list[Question]:
    """Questions visible for a complete set of parsed *answers*."""
    state = {**answers, "flavor": flavor}
    return [q for q in QUESTIONS if q.visible(state)]


# ---------------------------------------------------------------------------
# Raw value parsing
# ---------------------------------------------------------------------------


class _ParseError(ValueError):
    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(message)


def _is_blank(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def _parse_choice(question: Question, raw: Any) -> Enum:
    choices = question.choices
    if choices is None:
        raise TypeError(f"{question.key} is not a choice question")
    members = list(choices)
    if isinstance(raw, choices):
        return raw
    text = str(raw).strip()
    if text.isdigit() and 1 <= int(text) <= len(members):
        return members[int(text) - 1]
    lowered = text.lower()
    for member in members:
        if lowered in (str(member.value).lower(), member.name.lower()):
            return member
    allowed = ", ".join(str(m.value) for m in members)
    raise _ParseError("invalid-choice", f"{text!r} is not one of: {allowed}")


def _parse_boolean(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise _ParseError("invalid-boolean", f"{raw!r} is not a yes/no answer")


def _parse_integer(raw: Any) -> int:
    if isinstance(raw, bool):
        raise _ParseError("invalid-integer", f"{raw!r} is not a whole number")
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        raise _ParseError("invalid-integer", f"{raw!r} is not a whole number") from None


def _parse_list(raw: Any) -> list[str]:
    items = raw.split(",") if isinstance(raw, str) else list(raw)
    result: list[str] = []
    for item in items:
        text = str(item).strip()
        if text and text not in result:
            result.append(text)
    return result


def parse_answer(question: Question, raw: Any) -> Any:
    """Convert one non-blank raw answer to the question's type.

    Raises:
        ValueError: With a ``code`` attribute naming the violation.
    """
    if question.kind is QuestionKind.CHOICE:
        return _parse_choice(question, raw)
    if question.kind is QuestionKind.BOOLEAN:
        return _parse_boolean(raw)
    if question.kind is QuestionKind.INTEGER:
        return _parse_integer(raw)
    if question.kind is QuestionKind.LIST:
        return _parse_list(raw)
    return str(raw).strip()


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class ConfigurationBuilder:
    """Builds a :class:`ProjectConfiguration` from raw answers.

    Args:
        defaults: Stored user defaults.  Only keys in ``STORABLE_KEYS`` are
            looked up.
        flavor: The project shape; it forces some answers and hides the
            questions for them.
        current_year: Default copyright year.  Defaults to this year.
    """

    def __init__(
        self,
        defaults: DefaultProvider | None = None,
        flavor: Flavor = Flavor.PURE,
        current_year: int | None = None,
    ) -> None:
        self.defaults: DefaultProvider = defaults or MappingDefaults()
        self.flavor = flavor
        self.current_year = current_year or datetime.date.today().year

    # -- Public API --------------------------------------------------------

    def from_sequence(self, values: Iterable[Any]) -> ProjectConfiguration:
        """Consume one raw value per visible question, in table order.

        A blank value (``None`` or an empty string) takes the default.  A
        sequence shorter than the visible question list leaves the remaining
        questions at their defaults.
        """
        remaining = iter(values)
        sentinel = object()

        def take(question: Question) -> Any:
            value = next(remaining, sentinel)
            return None if value is sentinel else value

        answers, violations = self._collect(take)
        leftover = sum(1 for _ in remaining)
        if leftover:
            violations.append(
                Violation("too-many-answers", "answers", f"{leftover} answer(s) left unused")
            )
        return self._finish(answers, violations)

    def from_mapping(self, answers: Mapping[str, Any]) -> ProjectConfiguration:
        """Use explicit answers by key.  Answers for hidden questions are ignored."""
        violations = [
            Violation("unknown-field", key, f"{key!r} is not a known question")
            for key in answers
            if key not in QUESTION_KEYS
        ]
        parsed, more = self._collect(lambda question: answers.get(question.key))
        return self._finish(parsed, violations + more)

    # -- Internals ---------------------------------------------------------

    def _collect(self, take: Callable[[Question], Any]) -> tuple[Answers, list[Violation]]:
        state: Answers = {"flavor": self.flavor, "current_year": self.current_year}
        violations: list[Violation] = []

        for question in QUESTIONS:
            if not question.visible(state):
                state[question.key] = question.hidden(state)
                continue

            raw = take(question)
            if _is_blank(raw) and question.key in STORABLE_KEYS:
                raw = self.defaults.get(question.key)
            if _is_blank(raw):
                raw = question.default(state) if callable(question.default) else question.default

            if _is_blank(raw):
                if question.required:
                    violations.append(
                        Violation("required", question.key, f"a {question.prompt!r} value is required")
                    )
                else:
                    state[question.key] = raw if raw is not None else ""
                continue

            try:
                state[question.key] = parse_answer(question, raw)
            except _ParseError as exc:
                violations.append(Violation(exc.code, question.key, str(exc)))

        return state, violations

    def _finish(self, answers: Answers, violations: list[Violation]) -> ProjectConfiguration:
        values = {
            key: value
            for key, value in answers.items()
            if key in ProjectConfiguration.model_fields
        }
        values["flavor"] = self.flavor

        if answers.get("include_docs"):
            values["docs_info"] = DocsInfo(
                **{field: answers.get(key, "") for key, field in _DOCS_FIELDS.items()}
            )
        else:
            values["docs_info"] = None

        violations = violations + find_violations(values)
        if violations:
            raise ConfigurationError(violations)

        facets = PackageFacets(**{key: values[key] for key in _FACET_KEYS})
        values["dependencies"] = build_dependencies(facets, values["extra_dependencies"])
        try:
            return ProjectConfiguration(**values)
        except ValidationError as exc:
            raise ConfigurationError(
                [
                    Violation(
                        "invalid-type",
                        ".".join(str(part) for part in error["loc"]) or "configuration",
                        error["msg"],
                    )
                    for error in exc.errors()
                ]
            ) from exc
