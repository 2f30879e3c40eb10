"""Main scaffolding orchestrator.

Takes a finished ``ProjectConfiguration`` and writes the project tree:

1. refuse a destination that exists and is not empty;
2. compute the manifest and render every file, concurrently;
3. write the files one by one in path order.

A write failure stops the run and leaves what was already written.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from project_generator.config import GeneratorConfig
from project_generator.errors import MaterializationError, OutputTargetError
from project_generator.logger import get_logger
from project_generator.project.models import ProjectConfiguration
from project_generator.utils import is_empty_dir, make_executable, write_text_file

from .context import build_context
from .manifest import ManifestEntry, compute_manifest, ensure_collision_free
from .templates import TemplateRenderer

logger = get_logger(__name__)

RenderedFile = tuple[ManifestEntry, str]


class ProjectGenerator:
    """Render and write one project.

    Args:
        config: The validated (and usually version-resolved) configuration.
        renderer: Template renderer; a default one is created if omitted.
        settings: Render concurrency settings.
    """

    def __init__(
        self,
        config: ProjectConfiguration,
        renderer: TemplateRenderer | None = None,
        settings: GeneratorConfig | None = None,
    ) -> None:
        ensure_collision_free()
        self.config = config
        self.renderer = renderer or TemplateRenderer()
        self.settings = settings or GeneratorConfig()

    # -- Public API --------------------------------------------------------

    def target_for(self, output_dir: str | Path) -> Path:
        return Path(output_dir) / self.config.project_slug

    async def generate(self, output_dir: str | Path) -> Path:
        """Generate the project under ``output_dir / project_slug``.

        Raises:
            OutputTargetError: If the destination exists and is not empty.
                Nothing is rendered or written in that case.
            MaterializationError: If a file cannot be written.

        Returns:
            Path to the generated project root.
        """
        target = self.target_for(output_dir)
        if target.exists() and not is_empty_dir(target):
            raise OutputTargetError(target)

        rendered = await self.render()
        await asyncio.to_thread(self._write_all, target, rendered)
        logger.debug("Wrote %d files to %s", len(rendered), target)
        return target

    async def render(self) -> list[RenderedFile]:
        """Render every manifest entry, returning them in path order.

        Renders run in worker threads, at most
        ``settings.render_concurrency`` at a time.
        """
        manifest = compute_manifest(self.config)
        context = build_context(self.config)
        semaphore = asyncio.Semaphore(self.settings.render_concurrency)

        async def _render(entry: ManifestEntry) -> RenderedFile:
            async with semaphore:
                content = await asyncio.to_thread(self.renderer.render, entry.template, context)
            return entry, content

        return list(await asyncio.gather(*(_render(entry) for entry in manifest)))

    # -- Writing -----------------------------------------------------------

    def _write_all(self, target: Path, rendered: list[RenderedFile]) -> None:
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise MaterializationError(target, exc) from exc

        for entry, content in rendered:
            path = target / entry.path
            try:
                write_text_file(path, content)
                if entry.executable:
                    make_executable(path)
            except OSError as exc:
                raise MaterializationError(path, exc) from exc
            logger.debug("Wrote %s", entry.path)
