"""Project generation pipeline.

Drives one run end to end:

Step 1: CONFIGURE -- Build a validated configuration from raw answers.
Step 2: RESOLVE   -- Look up current package versions (optional).
Step 3: GENERATE  -- Render and write the project tree.

Usage::

    python -m project_generator.pipeline answers.json --output ./projects
    python -m project_generator.pipeline answers.json --flavor full-framework
    python -m project_generator.pipeline --save-default creator "Jane Doe"
"""

from __future__ import annotations

import asyncio
import json
import sys
import time
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from rich.panel import Panel
from rich.table import Table

from project_generator import __version__
from project_generator.config import Settings
from project_generator.errors import ConfigurationError, DefaultsFileError, GeneratorError
from project_generator.logger import get_logger, set_verbose
from project_generator.project import (
    ConfigurationBuilder,
    DefaultProvider,
    Flavor,
    JsonDefaultStore,
    ProjectConfiguration,
)
from project_generator.resolver import PackageFallback, VersionResolver
from project_generator.resolver.version_resolver import ClientFactory
from project_generator.scaffolder import ProjectGenerator
from project_generator.utils import (
    console,
    create_progress,
    format_duration,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


class GenerationResult(BaseModel):
    """Outcome of one pipeline run.

    ``errors`` is empty when ``success`` is true.  ``fallbacks`` lists the
    packages that kept their default version; they never make a run fail.
    """

    success: bool
    project_path: Path | None = None
    errors: list[str] = Field(default_factory=list)
    fallbacks: list[PackageFallback] = Field(default_factory=list)
    duration: float = 0.0


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class GenerationPipeline:
    """Configuration, version resolution and materialization in sequence.

    Attributes:
        settings: Runtime settings for the resolver and the generator.
        defaults: Stored user defaults consulted while building the
            configuration.
        resolver: The package version resolver.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        defaults: DefaultProvider | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.defaults = defaults
        self.resolver = VersionResolver(self.settings.resolver, client_factory=client_factory)

    def build_configuration(
        self,
        answers: Mapping[str, Any] | Iterable[Any],
        flavor: Flavor = Flavor.PURE,
    ) -> ProjectConfiguration:
        """Build the configuration from keyed or ordered answers.

        Raises:
            ConfigurationError: With every violation found.
            DefaultsFileError: If the stored defaults cannot be read.
        """
        builder = ConfigurationBuilder(defaults=self.defaults, flavor=flavor)
        if isinstance(answers, Mapping):
            return builder.from_mapping(answers)
        return builder.from_sequence(answers)

    async def run(
        self,
        answers: Mapping[str, Any] | Iterable[Any],
        *,
        flavor: Flavor = Flavor.PURE,
        skip_version_lookup: bool = False,
        output_dir: str | Path | None = None,
    ) -> GenerationResult:
        """Execute the pipeline.

        Args:
            answers: A key/answer mapping, or one answer per visible
                question in order.
            flavor: The project shape.
            skip_version_lookup: Keep the compiled-in package versions and
                make no network calls.
            output_dir: Parent of the project directory.  Defaults to
                ``settings.generator.output_dir``.

        Returns:
            A :class:`GenerationResult`.  Configuration and output errors are
            reported in it rather than raised.
        """
        start = time.monotonic()
        output_dir = Path(output_dir) if output_dir is not None else self.settings.generator.output_dir

        console.print(
            Panel(
                f"[bold bright_cyan]Python Project Generator[/bold bright_cyan] {__version__}\n"
                f"Flavor  : {flavor.value}\n"
                f"Output  : {output_dir.resolve()}\n"
                f"Lookup  : {'skipped' if skip_version_lookup else self.settings.resolver.index_url}",
                title="[bold]Generation Start[/bold]",
                border_style="bright_cyan",
            )
        )

        # Step 1: configuration
        try:
            configuration = self.build_configuration(answers, flavor)
        except ConfigurationError as exc:
            _print_violations(exc)
            return GenerationResult(
                success=False,
                errors=[str(v) for v in exc.violations],
                duration=time.monotonic() - start,
            )
        except DefaultsFileError as exc:
            print_error(str(exc))
            return GenerationResult(
                success=False,
                errors=[str(exc)],
                duration=time.monotonic() - start,
            )

        # Steps 2 and 3: resolve, then generate
        fallbacks: list[PackageFallback] = []
        try:
            with create_progress() as progress:
                task = progress.add_task("Resolving package versions...", total=None)
                report = await self.resolver.resolve(configuration, skip=skip_version_lookup)
                fallbacks = report.fallbacks

                progress.update(task, description="Writing project files...")
                generator = ProjectGenerator(report.configuration, settings=self.settings.generator)
                project_path = await generator.generate(output_dir)
        except GeneratorError as exc:
            logger.debug("Generation failed", exc_info=True)
            print_error(str(exc))
            return GenerationResult(
                success=False,
                errors=[str(exc)],
                fallbacks=fallbacks,
                duration=time.monotonic() - start,
            )

        duration = time.monotonic() - start
        if fallbacks:
            _print_fallbacks(fallbacks)

        summary = report.configuration.summary()
        summary["Location"] = str(project_path)
        if report.skipped:
            summary["Versions"] = "defaults (lookup skipped)"
        else:
            summary["Versions"] = f"{len(report.resolved)} resolved, {len(fallbacks)} default"
        summary["Duration"] = format_duration(duration)
        print_summary_table(summary, title="Generation Summary")
        print_success(f"Created {project_path}")

        return GenerationResult(
            success=True,
            project_path=project_path,
            fallbacks=fallbacks,
            duration=duration,
        )


# ---------------------------------------------------------------------------
# Reporting helpers
# ---------------------------------------------------------------------------


def _print_violations(error: ConfigurationError) -> None:
    table = Table(title="Configuration Errors", show_header=True, header_style="bold red")
    table.add_column("Field", style="bold")
    table.add_column("Problem")
    table.add_column("Code", style="dim")
    for violation in error.violations:
        table.add_row(violation.field, violation.message, violation.code)
    console.print(table)
    print_error(f"{len(error.violations)} configuration error(s), nothing was written.")


def _print_fallbacks(fallbacks: list[PackageFallback]) -> None:
    table = Table(title="Default Versions Used", show_header=True, header_style="bold yellow")
    table.add_column("Package", style="bold")
    table.add_column("Version")
    table.add_column("Reason", style="dim")
    for fallback in fallbacks:
        table.add_row(fallback.name, fallback.default_version or "(unpinned)", fallback.reason)
    console.print(table)
    print_warning(f"{len(fallbacks)} package(s) could not be resolved and use their default version.")


def load_answers(path: Path) -> Mapping[str, Any] | list[Any]:
    """Read answers from a JSON object (keyed) or array (ordered)."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, (dict, list)):
        raise ValueError(f"{path} must contain a JSON object or array")
    return data


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _handle_defaults(args: Any, store: JsonDefaultStore) -> None:
    if args.reset_defaults:
        store.reset()
        print_success(f"Removed stored defaults ({store.path})")
    if args.save_default:
        key, value = args.save_default
        try:
            path = store.save(key, value)
        except KeyError as exc:
            print_error(str(exc.args[0]))
            sys.exit(1)
        print_success(f"Saved default for {key} in {path}")
    if args.show_defaults:
        values = store.load()
        if values:
            print_summary_table({k: json.dumps(v) for k, v in sorted(values.items())}, title="Stored Defaults")
        else:
            print_warning("No stored defaults")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``python -m project_generator.pipeline``."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Python Project Generator -- scaffold a new Python project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m project_generator.pipeline answers.json\n"
            "  python -m project_generator.pipeline answers.json -o ./projects --flavor native-extension\n"
            "  python -m project_generator.pipeline --save-default creator \"Jane Doe\"\n"
            "  python -m project_generator.pipeline --show-defaults\n"
        ),
    )

    parser.add_argument(
        "answers",
        nargs="?",
        help="JSON file with an object of answers by key, or an array of answers in question order",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Directory the project directory is created in (default: current directory)",
    )
    parser.add_argument(
        "--flavor",
        choices=[f.value for f in Flavor],
        default=Flavor.PURE.value,
        help="Project shape (default: pure)",
    )
    parser.add_argument(
        "--skip-download-latest-packages",
        action="store_true",
        help="Use the built-in package versions instead of looking them up on PyPI",
    )
    parser.add_argument(
        "--strict-versions",
        action="store_true",
        help="Exit with status 2 if any package version could not be resolved",
    )
    parser.add_argument(
        "--defaults-file",
        default=None,
        help="Stored defaults file (default: the platform config directory)",
    )
    parser.add_argument(
        "--save-default",
        nargs=2,
        metavar=("KEY", "VALUE"),
        help="Store a default answer",
    )
    parser.add_argument("--reset-defaults", action="store_true", help="Remove all stored defaults")
    parser.add_argument("--show-defaults", action="store_true", help="Print the stored defaults")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    settings = Settings.from_env()
    if args.verbose:
        settings.verbose = True
    set_verbose(settings.verbose)

    store = JsonDefaultStore(Path(args.defaults_file) if args.defaults_file else None)

    if args.save_default or args.reset_defaults or args.show_defaults:
        try:
            _handle_defaults(args, store)
        except DefaultsFileError as exc:
            print_error(str(exc))
            sys.exit(1)
        if args.answers is None:
            return

    if args.answers is None:
        parser.error("an answers file is required")

    answers_path = Path(args.answers)
    if not answers_path.exists():
        console.print(f"[bold red]Error:[/bold red] Answers file not found: {answers_path}")
        sys.exit(1)
    try:
        answers = load_answers(answers_path)
    except ValueError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)

    pipeline = GenerationPipeline(settings, defaults=store)
    result = asyncio.run(
        pipeline.run(
            answers,
            flavor=Flavor(args.flavor),
            skip_version_lookup=args.skip_download_latest_packages,
            output_dir=args.output,
        )
    )

    if not result.success:
        console.print("[bold red]Generation failed.[/bold red]")
        sys.exit(1)
    if args.strict_versions and result.fallbacks:
        sys.exit(2)


if __name__ == "__main__":
    main()
