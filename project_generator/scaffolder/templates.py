"""Jinja2 template rendering for project scaffolding.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``project_generator/scaffolder/templates/`` directory and renders them with
the context built from a project configuration.  Undefined variables are
errors, so a template can never silently render an empty value.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from project_generator.utils import pascal_case

# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for project scaffolding.

    Rendering is pure: the output depends only on the template and the
    context, so one renderer may be used from several threads at once.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        # Register custom filters
        self.env.filters["quote"] = _quote_filter
        self.env.filters["pascal_case"] = pascal_case
        self.env.filters["toml_list"] = _toml_list_filter
        self.env.filters["gha"] = _gha_filter

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"build/pyproject_uv.toml.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    def has_template(self, template_path: str) -> bool:
        return (self.template_dir / template_path).is_file()

    def list_templates(self, prefix: str = "") -> list[str]:
        """Return a sorted list of all ``.j2`` template paths under *prefix*.

        Paths are relative to the template root directory.
        """
        search_dir = self.template_dir / prefix if prefix else self.template_dir
        if not search_dir.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix() for p in search_dir.rglob("*.j2")
        )


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------


def _quote_filter(value: Any) -> str:
    """Double-quoted string literal valid in TOML and YAML."""
    return json.dumps(str(value), ensure_ascii=False)


def _toml_list_filter(values: list[Any]) -> str:
    """``["a", "b"]``."""
    return "[" + ", ".join(_quote_filter(v) for v in values) + "]"


def _gha_filter(expression: str) -> str:
    """Wrap *expression* in GitHub Actions ``${{ }}`` syntax."""
    return "${{ " + expression + " }}"
