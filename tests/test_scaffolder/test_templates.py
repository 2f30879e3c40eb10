"""Tests for TemplateRenderer and its filters."""

from __future__ import annotations

import pytest
from jinja2 import UndefinedError, meta

from project_generator.project import Flavor
from project_generator.scaffolder import TemplateRenderer
from project_generator.scaffolder.context import build_context

pytestmark = pytest.mark.unit


@pytest.fixture
def custom_renderer(tmp_path) -> TemplateRenderer:
    (tmp_path / "greeting.j2").write_text("Hello {{ name }}!\n")
    (tmp_path / "filters.j2").write_text(
        "{{ title | quote }}|{{ items | toml_list }}|{{ module | pascal_case }}|{{ \"matrix.os\" | gha }}"
    )
    (tmp_path / "block.j2").write_text("{% if flag %}\n  yes\n{% endif %}\nend\n")
    return TemplateRenderer(tmp_path)


class TestTemplateRenderer:
    def test_render(self, custom_renderer):
        assert custom_renderer.render("greeting.j2", {"name": "World"}) == "Hello World!\n"

    def test_undefined_variable_is_an_error(self, custom_renderer):
        with pytest.raises(UndefinedError):
            custom_renderer.render("greeting.j2", {})

    def test_filters(self, custom_renderer):
        out = custom_renderer.render(
            "filters.j2",
            {"title": 'Say "hi"', "items": ["3.12", "3.13"], "module": "my_project"},
        )
        assert out == '"Say \\"hi\\""|["3.12", "3.13"]|MyProject|${{ matrix.os }}'

    def test_block_whitespace_trimmed(self, custom_renderer):
        assert custom_renderer.render("block.j2", {"flag": True}) == "  yes\nend\n"
        assert custom_renderer.render("block.j2", {"flag": False}) == "end\n"

    def test_has_template(self, custom_renderer):
        assert custom_renderer.has_template("greeting.j2") is True
        assert custom_renderer.has_template("missing.j2") is False

    def test_list_templates(self, custom_renderer):
        assert custom_renderer.list_templates() == ["block.j2", "filters.j2", "greeting.j2"]
        assert custom_renderer.list_templates("nope") == []

    def test_default_template_dir(self):
        renderer = TemplateRenderer()
        assert "build/pyproject_uv.toml.j2" in renderer.list_templates("build")


class TestBundledTemplates:
    def test_every_variable_is_in_the_context(self, make_configuration):
        renderer = TemplateRenderer()
        keys = set(build_context(make_configuration(Flavor.FULL_FRAMEWORK)))
        unknown: dict[str, set[str]] = {}
        for name in renderer.list_templates():
            source = (renderer.template_dir / name).read_text(encoding="utf-8")
            variables = meta.find_undeclared_variables(renderer.env.parse(source))
            if variables - keys:
                unknown[name] = variables - keys
        assert unknown == {}

    def test_context_keys_do_not_depend_on_shape(self, make_configuration):
        shapes = [
            make_configuration(),
            make_configuration(Flavor.NATIVE_EXTENSION),
            make_configuration(Flavor.FULL_FRAMEWORK, include_docs=True),
        ]
        key_sets = {frozenset(build_context(config)) for config in shapes}
        assert len(key_sets) == 1
