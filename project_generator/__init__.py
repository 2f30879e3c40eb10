"""python-project-generator: scaffold complete Python projects.

The generation pipeline turns raw answers into a validated configuration,
resolves current package versions from PyPI, and renders the project tree.

Quick usage::

    python -m project_generator.pipeline answers.json --output ./projects
"""

__version__ = "0.1.0"
