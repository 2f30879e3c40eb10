"""Unit tests for the question table and builder (project_generator.project.questions).

Tests cover:
- Question visibility for dependabot, docs, PyO3 and database questions
- Answer precedence: explicit, stored default, compiled-in default
- Ordered answers (from_sequence) and keyed answers (from_mapping)
- Raw value parsing errors
"""

from __future__ import annotations

import pytest

from project_generator.errors import ConfigurationError
from project_generator.project import (
    ConfigurationBuilder,
    DatabaseManager,
    Flavor,
    LicenseType,
    MappingDefaults,
    ProjectManager,
    Pyo3PythonManager,
)
from project_generator.project.questions import QUESTIONS, Question, QuestionKind, visible_questions

BASE_SEQUENCE = ["My Project", "", "", "A project used in tests", "Arthur Dent", "arthur@example.com"]


def _keys(answers, flavor=Flavor.PURE) -> set[str]:
    return {q.key for q in visible_questions(answers, flavor)}


# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------


class TestQuestionDefinitions:
    @pytest.mark.unit
    def test_choice_question_needs_choices(self):
        with pytest.raises(TypeError, match="colour"):
            Question("colour", "Colour", QuestionKind.CHOICE)

    @pytest.mark.unit
    def test_choices_only_for_choice_questions(self):
        with pytest.raises(TypeError, match="licence"):
            Question("licence", "Licence", QuestionKind.TEXT, LicenseType)

    @pytest.mark.unit
    def test_bundled_choice_questions_carry_choices(self):
        choice_questions = [q for q in QUESTIONS if q.kind is QuestionKind.CHOICE]
        assert choice_questions
        assert all(q.choices is not None for q in choice_questions)


class TestVisibility:
    @pytest.mark.unit
    def test_dependabot_questions_follow_the_toggle(self):
        assert "dependabot_schedule" not in _keys({"use_dependabot": False})
        assert "dependabot_schedule" in _keys({"use_dependabot": True})

    @pytest.mark.unit
    def test_dependabot_day_only_for_weekly(self):
        from project_generator.project import DependabotSchedule

        daily = {"use_dependabot": True, "dependabot_schedule": DependabotSchedule.DAILY}
        weekly = {"use_dependabot": True, "dependabot_schedule": DependabotSchedule.WEEKLY}
        assert "dependabot_day" not in _keys(daily)
        assert "dependabot_day" in _keys(weekly)

    @pytest.mark.unit
    def test_docs_questions_follow_the_toggle(self):
        docs_keys = {q.key for q in QUESTIONS if q.key.startswith("docs_")}
        assert len(docs_keys) == 6
        assert not docs_keys & _keys({"include_docs": False})
        assert docs_keys <= _keys({"include_docs": True})

    @pytest.mark.unit
    def test_pyo3_question_only_for_maturin(self):
        assert "pyo3_python_manager" not in _keys({"project_manager": ProjectManager.UV})
        assert "pyo3_python_manager" in _keys(
            {"project_manager": ProjectManager.MATURIN}, Flavor.NATIVE_EXTENSION
        )

    @pytest.mark.unit
    def test_flavor_hides_forced_questions(self):
        native = _keys({"project_manager": ProjectManager.MATURIN}, Flavor.NATIVE_EXTENSION)
        full = _keys({}, Flavor.FULL_FRAMEWORK)
        assert "project_manager" not in native
        assert "project_kind" not in full
        assert "is_async_project" not in full
        assert "database_manager" in full
        assert "database_manager" not in _keys({})

    @pytest.mark.unit
    def test_copyright_year_hidden_without_license(self):
        assert "copyright_year" not in _keys({"license": LicenseType.NONE})
        assert "copyright_year" in _keys({"license": LicenseType.MIT})


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestPrecedence:
    @pytest.mark.unit
    def test_stored_default_beats_compiled_default(self, make_configuration):
        config = make_configuration(defaults={"license": "Apache-2.0", "max_line_length": "88"})
        assert config.license is LicenseType.APACHE
        assert config.max_line_length == 88

    @pytest.mark.unit
    def test_explicit_answer_beats_stored_default(self, make_configuration):
        config = make_configuration(defaults={"license": "Apache-2.0"}, license="MIT")
        assert config.license is LicenseType.MIT

    @pytest.mark.unit
    def test_stored_default_fills_a_blank_answer(self, make_answers):
        builder = ConfigurationBuilder(
            defaults=MappingDefaults({"creator": "Ford Prefect"}), current_year=2025
        )
        config = builder.from_mapping(make_answers(creator=""))
        assert config.creator == "Ford Prefect"

    @pytest.mark.unit
    def test_unstorable_keys_are_not_read_from_defaults(self, make_configuration):
        config = make_configuration(defaults={"project_slug": "stored-slug"})
        assert config.project_slug == "my-project"

    @pytest.mark.unit
    def test_current_year_is_the_copyright_default(self, make_answers):
        config = ConfigurationBuilder(current_year=1999).from_mapping(make_answers())
        assert config.copyright_year == 1999

    @pytest.mark.unit
    def test_tested_versions_default_from_newest_python(self, make_configuration):
        config = make_configuration(python_version="3.12", min_python_version="3.11")
        assert config.github_actions_python_test_versions == ["3.12", "3.13", "3.14"]


# ---------------------------------------------------------------------------
# from_sequence
# ---------------------------------------------------------------------------


class TestFromSequence:
    @pytest.mark.unit
    def test_blank_answers_take_defaults(self):
        config = ConfigurationBuilder(current_year=2025).from_sequence(BASE_SEQUENCE)
        assert config.project_slug == "my-project"
        assert config.source_dir == "my_project"
        assert config.license is LicenseType.MIT

    @pytest.mark.unit
    def test_hidden_questions_consume_no_answer(self):
        # License "3" (None) hides the copyright year, so the next answer is the version.
        config = ConfigurationBuilder(current_year=2025).from_sequence(BASE_SEQUENCE + ["3", "1.2.3"])
        assert config.license is LicenseType.NONE
        assert config.copyright_year is None
        assert config.version == "1.2.3"

    @pytest.mark.unit
    def test_native_flavor_sequence(self):
        builder = ConfigurationBuilder(flavor=Flavor.NATIVE_EXTENSION, current_year=2025)
        # license, year, version, python, min, tested, then the PyO3 manager
        values = BASE_SEQUENCE + ["", "", "", "", "", "", "setuptools"]
        config = builder.from_sequence(values)
        assert config.project_manager is ProjectManager.MATURIN
        assert config.pyo3_python_manager is Pyo3PythonManager.SETUPTOOLS

    @pytest.mark.unit
    def test_too_many_answers(self, configuration):
        count = len(visible_questions(dict(configuration), Flavor.PURE))
        values = BASE_SEQUENCE + [None] * (count - len(BASE_SEQUENCE)) + ["extra", "more"]
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigurationBuilder(current_year=2025).from_sequence(values)
        assert exc_info.value.codes == {"too-many-answers"}


# ---------------------------------------------------------------------------
# from_mapping and parsing
# ---------------------------------------------------------------------------


class TestFromMapping:
    @pytest.mark.unit
    def test_unknown_field(self, make_answers):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigurationBuilder().from_mapping(make_answers(colour="blue"))
        assert exc_info.value.codes == {"unknown-field"}
        assert exc_info.value.fields == {"colour"}

    @pytest.mark.unit
    def test_missing_required_answer(self, make_answers):
        answers = make_answers()
        del answers["creator"]
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigurationBuilder().from_mapping(answers)
        assert exc_info.value.codes == {"required"}
        assert exc_info.value.fields == {"creator"}

    @pytest.mark.unit
    def test_wrong_type_is_a_configuration_error(self, make_answers, monkeypatch):
        monkeypatch.setattr(
            "project_generator.project.questions.build_dependencies",
            lambda facets, extra: "not a dependency map",
        )
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigurationBuilder().from_mapping(make_answers())
        assert exc_info.value.codes == {"invalid-type"}
        assert any(field.startswith("dependencies") for field in exc_info.value.fields)

    @pytest.mark.unit
    def test_answers_for_hidden_questions_are_ignored(self, make_configuration):
        config = make_configuration(use_dependabot=False, dependabot_schedule="weekly")
        assert config.use_dependabot is False
        assert config.dependabot_schedule is None

    @pytest.mark.unit
    def test_choice_by_index_name_and_value(self, make_configuration):
        assert make_configuration(license=2).license is LicenseType.APACHE
        assert make_configuration(license="apache").license is LicenseType.APACHE
        assert make_configuration(license="apache-2.0").license is LicenseType.APACHE
        assert make_configuration(license=LicenseType.APACHE).license is LicenseType.APACHE

    @pytest.mark.unit
    @pytest.mark.parametrize("raw, expected", [("y", True), ("no", False), ("1", True), ("2", False), (False, False)])
    def test_boolean_answers(self, make_configuration, raw, expected):
        assert make_configuration(include_docs=raw).include_docs is expected

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "key, raw, code",
        [
            ("license", "GPL", "invalid-choice"),
            ("license", "9", "invalid-choice"),
            ("use_dependabot", "maybe", "invalid-boolean"),
            ("max_line_length", "wide", "invalid-integer"),
            ("max_line_length", True, "invalid-integer"),
        ],
    )
    def test_parse_errors(self, make_answers, key, raw, code):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigurationBuilder().from_mapping(make_answers(**{key: raw}))
        assert exc_info.value.codes == {code}
        assert exc_info.value.fields == {key}

    @pytest.mark.unit
    def test_docs_answers_build_docs_info(self, make_configuration):
        config = make_configuration(include_docs=True, docs_repo_url="https://github.com/a/b")
        assert config.docs_info is not None
        assert config.docs_info.site_name == "My Project"
        assert config.docs_info.site_description == "A project used in tests"
        assert config.docs_info.repo_name == "my-project"
        assert config.docs_info.repo_url == "https://github.com/a/b"
        assert config.docs_info.locale == "en"

    @pytest.mark.unit
    def test_full_flavor_database_choice(self, make_configuration):
        config = make_configuration(Flavor.FULL_FRAMEWORK, database_manager="sqlalchemy")
        assert config.database_manager is DatabaseManager.SQLALCHEMY
        assert "sqlalchemy" in config.dependencies
        assert "alembic" in config.dependencies

    @pytest.mark.unit
    def test_extra_dependencies_list(self, make_configuration):
        config = make_configuration(extra_dependencies="requests, Rich[jupyter], requests")
        assert config.extra_dependencies == ["requests", "Rich[jupyter]"]
        assert config.dependencies.get("rich").extras == ("jupyter",)
        assert config.dependencies.get("requests").default_version is None
