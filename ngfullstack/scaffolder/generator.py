"""Project file-tree generation and the sub-generators composed with it.

* :class:`ProjectGenerator` walks the ``project`` template tree using the
  predicate inputs from a :class:`~ngfullstack.planner.TemplateRequest`.
* :class:`EndpointGenerator` scaffolds one API resource from an
  :class:`~ngfullstack.planner.EndpointRequest` and registers its route
  (and Sequelize model) below the configured needles.
* :class:`ComponentGenerator` records the options later ``component`` runs
  use, from a :class:`~ngfullstack.planner.ComponentRequest`.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from ngfullstack.config import GenerationParameters
from ngfullstack.flags import DataLayer
from ngfullstack.planner import ComponentRequest, EndpointRequest, TemplateRequest
from ngfullstack.store import ConfigurationStore
from ngfullstack.utils import console, pascal_case, print_warning

from .templates import TemplateRenderer

COMPONENT_NAMESPACE = "generator-ng-component"


class ProjectGenerator:
    """Writes the main project tree."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def generate(self, output_dir: str | Path, request: TemplateRequest) -> list[Path]:
        written = await self.renderer.render_tree(
            "project",
            output_dir,
            dict(request.context),
            active=request.active,
            typescript=request.typescript,
        )
        console.print(f"  Wrote [bold]{len(written)}[/bold] project files")
        return written


class EndpointGenerator:
    """Scaffolds an API endpoint directory under ``endpointDirectory``."""

    def __init__(self, renderer: TemplateRenderer, params: GenerationParameters) -> None:
        self.renderer = renderer
        self.params = params

    async def generate(self, output_dir: str | Path, request: EndpointRequest) -> list[Path]:
        """Render the endpoint files and register the route.

        Returns:
            Written endpoint files (registration edits are not included).
        """
        root = Path(output_dir)
        endpoint_dir = root / self.params.endpoint_directory / request.name
        route = request.route or self.params.route_for(request.name)
        backend = request.models.value if request.models is not None else None

        context: dict[str, Any] = {
            "name": request.name,
            "route": route,
            "models": backend,
        }
        written = await self.renderer.render_tree(
            "endpoint",
            endpoint_dir,
            context,
            active=[backend] if backend else [],
            renames={"__name__": request.name},
        )

        if self.params.insert_routes:
            await self._register(
                root / self.params.register_routes_file,
                self.params.routes_needle,
                f"app.use('{route}', require('./api/{request.name}'));",
            )
        if request.models is DataLayer.SEQUELIZE and self.params.insert_models:
            model = pascal_case(request.name)
            await self._register(
                root / self.params.register_models_file,
                self.params.models_needle,
                f"db.{model} = db.sequelize.import('../api/{request.name}/{request.name}.model');",
            )

        console.print(
            f"  Endpoint [bold]{route}[/bold] "
            f"({backend or 'no persistence'})"
        )
        return written

    async def _register(self, path: Path, needle: str, line: str) -> bool:
        inserted = await asyncio.to_thread(insert_below_needle, path, needle, line)
        if not inserted:
            print_warning(f"  Could not find '{needle}' in {path}; add manually: {line}")
        return inserted


class ComponentGenerator:
    """Persists component sub-generator options in its own rc namespace.

    Existing options are only replaced when ``force_config`` is set, which
    mirrors the operator declining to reuse the main configuration.
    """

    def __init__(self, store: ConfigurationStore) -> None:
        self.store = store

    def generate(self, request: ComponentRequest) -> bool:
        """Record *request*; returns ``False`` when existing options were kept."""
        if "filters" in self.store and not request.force_config:
            console.print("  Keeping existing component configuration")
            return False

        self.store.update(
            {
                "routeDirectory": request.route_directory,
                "directiveDirectory": request.directive_directory,
                "filterDirectory": request.filter_directory,
                "serviceDirectory": request.service_directory,
                "basePath": request.base_path,
                "filters": list(request.filters),
                "extensions": list(request.extensions),
            }
        )
        self.store.flush()
        return True


def insert_below_needle(path: Path, needle: str, line: str) -> bool:
    """Insert *line* after the line containing *needle*, keeping its indent.

    Returns ``False`` if the file or needle is missing.  Inserting a line
    that is already present is a no-op that returns ``True``.
    """
    if not path.is_file():
        return False
    lines = path.read_text(encoding="utf-8").splitlines(keepends=True)
    for index, current in enumerate(lines):
        if needle in current:
            indent = current[: len(current) - len(current.lstrip())]
            if any(existing.strip() == line for existing in lines):
                return True
            lines.insert(index + 1, f"{indent}{line}\n")
            path.write_text("".join(lines), encoding="utf-8")
            return True
    return False
