"""Project generator runtime settings.

Centralised, typed settings for the generation pipeline.  All settings use
Pydantic v2 models so they are validated at construction time and can be
serialised to/from JSON or read from environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, model_validator

from project_generator import __version__


class ResolverConfig(BaseModel):
    """Tuning knobs for package version lookups."""

    index_url: str = Field(default="https://pypi.org/pypi", description="PyPI JSON API root")
    timeout: float = Field(default=10.0, gt=0, description="Per-request timeout in seconds")
    connect_timeout: float = Field(default=5.0, gt=0)
    max_concurrency: int = Field(
        default=8, ge=1, description="Maximum lookups in flight at once"
    )
    max_attempts: int = Field(default=3, ge=1, description="Attempts per package, first included")
    backoff_base: float = Field(
        default=0.5, ge=0, description="Initial retry delay in seconds, doubled per attempt"
    )
    backoff_max: float = Field(default=8.0, ge=0, description="Upper bound for a single retry delay")
    user_agent: str = Field(default=f"python-project-generator/{__version__}")

    @model_validator(mode="after")
    def _backoff_bounds(self) -> ResolverConfig:
        if self.backoff_max < self.backoff_base:
            raise ValueError("backoff_max must not be smaller than backoff_base")
        return self


class GeneratorConfig(BaseModel):
    """Tuning knobs for project materialization."""

    output_dir: Path = Field(default=Path("."))
    render_concurrency: int = Field(
        default=8, ge=1, description="Maximum templates rendered at once"
    )


class Settings(BaseModel):
    """Global generator settings.

    Instances are created once by the CLI entry point (or by tests) and
    passed to ``GenerationPipeline``.
    """

    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    verbose: bool = False

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the settings to a JSON file.

        Returns:
            The path where the file was written.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "Settings":
        """Load previously-saved settings from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            PPG_INDEX_URL, PPG_TIMEOUT, PPG_MAX_CONCURRENCY, PPG_MAX_ATTEMPTS,
            PPG_BACKOFF_BASE, PPG_BACKOFF_MAX, PPG_OUTPUT_DIR,
            PPG_RENDER_CONCURRENCY, PPG_VERBOSE.
        """
        resolver_kwargs: dict[str, Any] = {}
        if os.environ.get("PPG_INDEX_URL"):
            resolver_kwargs["index_url"] = os.environ["PPG_INDEX_URL"]
        if os.environ.get("PPG_TIMEOUT"):
            resolver_kwargs["timeout"] = float(os.environ["PPG_TIMEOUT"])
        if os.environ.get("PPG_MAX_CONCURRENCY"):
            resolver_kwargs["max_concurrency"] = int(os.environ["PPG_MAX_CONCURRENCY"])
        if os.environ.get("PPG_MAX_ATTEMPTS"):
            resolver_kwargs["max_attempts"] = int(os.environ["PPG_MAX_ATTEMPTS"])
        if os.environ.get("PPG_BACKOFF_BASE"):
            resolver_kwargs["backoff_base"] = float(os.environ["PPG_BACKOFF_BASE"])
        if os.environ.get("PPG_BACKOFF_MAX"):
            resolver_kwargs["backoff_max"] = float(os.environ["PPG_BACKOFF_MAX"])

        generator_kwargs: dict[str, Any] = {}
        if os.environ.get("PPG_OUTPUT_DIR"):
            generator_kwargs["output_dir"] = Path(os.environ["PPG_OUTPUT_DIR"])
        if os.environ.get("PPG_RENDER_CONCURRENCY"):
            generator_kwargs["render_concurrency"] = int(os.environ["PPG_RENDER_CONCURRENCY"])

        verbose = os.environ.get("PPG_VERBOSE", "").lower() in {"1", "true", "yes"}

        return cls(
            resolver=ResolverConfig(**resolver_kwargs),
            generator=GeneratorConfig(**generator_kwargs),
            verbose=verbose,
        )
