"""ngfullstack generator pipeline.

Runs the five generation phases in order:

Phase 1: INITIALIZE -- Record the generator version, probe the environment,
                       offer to reuse a stored configuration.
Phase 2: PROMPT     -- Client, server and project question batches.
Phase 3: CONFIGURE  -- Validate and persist the flags, derive project
                       settings and composition options, configure the
                       component sub-generator.
Phase 4: WRITE      -- Write the project tree and the default API endpoint.
Phase 5: INSTALL    -- Install npm dependencies (unless skipped).

Accepting a stored configuration sets the skip signal once, during
Initialize; every step marked ``skip_on_reuse`` in a later phase is then
skipped uniformly by the phase driver.

Usage::

    python -m ngfullstack.pipeline my-app --output ./my-app
    python -m ngfullstack.pipeline --skip-install --app-suffix Module
"""

from __future__ import annotations

import argparse
import asyncio
import platform
import sys
import time
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from jinja2 import TemplateError
from rich.panel import Panel

from ngfullstack import __version__
from ngfullstack.config import Config, GenerationParameters
from ngfullstack.flags import ConfigurationInconsistency, FlagMap, check_consistency
from ngfullstack.planner import CompositionOptions, plan
from ngfullstack.prompts import Prompter, RichPrompter
from ngfullstack.resolver import FeatureFlagResolver, ResolverStep
from ngfullstack.scaffolder import (
    ComponentGenerator,
    EndpointGenerator,
    ProjectGenerator,
    TemplateRenderer,
)
from ngfullstack.scaffolder.generator import COMPONENT_NAMESPACE
from ngfullstack.settings import DerivedProjectSettings, app_names, derive_settings
from ngfullstack.store import ConfigurationStore, PersistenceFailure
from ngfullstack.utils import (
    PHASE_NAMES,
    CollaboratorProbeFailure,
    console,
    format_duration,
    print_error,
    print_phase_header,
    print_success,
    print_summary_table,
    print_warning,
    probe_version,
    run_command,
)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PipelineError(Exception):
    """Raised when a pipeline phase fails irrecoverably."""

    def __init__(self, phase: int, message: str) -> None:
        self.phase = phase
        super().__init__(f"Phase {phase} ({PHASE_NAMES.get(phase, '?')}): {message}")


# ---------------------------------------------------------------------------
# Phases, steps and run state
# ---------------------------------------------------------------------------


class Phase(IntEnum):
    INITIALIZE = 1
    PROMPT = 2
    CONFIGURE = 3
    WRITE = 4
    INSTALL = 5


@dataclass
class Step:
    """A named unit of work inside a phase."""

    name: str
    run: Callable[[], Awaitable[None]]
    skip_on_reuse: bool = False


@dataclass
class GenerationState:
    """Values owned by the pipeline driver and threaded between steps."""

    flags: FlagMap = field(default_factory=FlagMap)
    reused: bool = False
    force_config: bool = False
    app_name: str = ""
    script_app_name: str = ""
    settings: Optional[DerivedProjectSettings] = None
    options: Optional[CompositionOptions] = None
    reuse_error: Optional[ConfigurationInconsistency] = None
    written: list[Path] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class Pipeline:
    """Drives the five generation phases for one invocation.

    Attributes:
        config: Run options.
        store: The generator's namespace in the rc file.
        resolver: Feature-flag resolver bound to the prompter.
        state: Flags, derived settings and composition options.
        report: Serialisable run summary (phases, skipped steps, probes).
    """

    def __init__(
        self,
        config: Config,
        prompter: Optional[Prompter] = None,
        *,
        store: Optional[ConfigurationStore] = None,
        renderer: Optional[TemplateRenderer] = None,
        component_generator: Optional[ComponentGenerator] = None,
        endpoint_generator: Optional[EndpointGenerator] = None,
    ) -> None:
        self.config = config
        self.resolver = FeatureFlagResolver(prompter or RichPrompter())
        self.store = store or ConfigurationStore(config.rc_path, config.generator_name)
        self.renderer = renderer or TemplateRenderer(config.template_dir)
        self.project_generator = ProjectGenerator(self.renderer)
        self.component_generator = component_generator or ComponentGenerator(
            ConfigurationStore(config.rc_path, COMPONENT_NAMESPACE)
        )
        self._endpoint_generator = endpoint_generator

        # Set once by check_for_config; read at the start of every later phase.
        self.skip_config = False

        self.state = GenerationState()
        self.report: dict[str, Any] = {
            "started_at": datetime.now(timezone.utc).isoformat(),
            "phases_completed": [],
            "phases_failed": [],
            "skipped_steps": [],
            "environment": {},
            "success": False,
        }
        self._probe_task: Optional[asyncio.Task[None]] = None

    # ------------------------------------------------------------------
    # Phase table and driver
    # ------------------------------------------------------------------

    def phases(self) -> list[tuple[Phase, list[Step]]]:
        """The ordered phase table."""
        return [
            (
                Phase.INITIALIZE,
                [
                    Step("init", self.init),
                    Step("info", self.info),
                    Step("check_for_config", self.check_for_config),
                ],
            ),
            (
                Phase.PROMPT,
                [
                    Step(f"{name}_prompts", self._prompt_step(step), skip_on_reuse=True)
                    for name, step in self.resolver.batches()
                ],
            ),
            (
                Phase.CONFIGURE,
                [
                    Step("validate", self.validate),
                    Step("save_settings", self.save_settings, skip_on_reuse=True),
                    Step("derive_settings", self.derive),
                    Step("ng_component", self.compose_component, skip_on_reuse=True),
                ],
            ),
            (
                Phase.WRITE,
                [
                    Step("generate_project", self.generate_project),
                    Step("generate_endpoint", self.generate_endpoint),
                ],
            ),
            (Phase.INSTALL, [Step("install_deps", self.install_deps)]),
        ]

    async def run_phase(self, phase: Phase, steps: list[Step], skip_signal: bool) -> list[str]:
        """Run *steps* in order, skipping ``skip_on_reuse`` steps when signalled.

        Returns:
            Names of the steps that actually ran.
        """
        executed: list[str] = []
        for step in steps:
            if skip_signal and step.skip_on_reuse:
                self.report["skipped_steps"].append(f"{phase.name.lower()}.{step.name}")
                continue
            await step.run()
            executed.append(step.name)
        return executed

    async def run(self) -> dict[str, Any]:
        """Execute every phase in order.

        A :class:`ConfigurationInconsistency` or :class:`PipelineError` stops
        the run and is recorded in the report.  A :class:`PersistenceFailure`
        is recorded and re-raised.

        Returns:
            The run report, including a top-level ``success`` boolean.
        """
        pipeline_start = time.monotonic()
        console.print(
            Panel(
                f"[bold bright_cyan]ngfullstack {__version__}[/bold bright_cyan]\n"
                f"Output : {self.config.output_dir.resolve()}\n"
                f"Config : {self.config.rc_path}",
                title="[bold]Generator Start[/bold]",
                border_style="bright_cyan",
            )
        )

        all_success = True
        try:
            for phase, steps in self.phases():
                print_phase_header(phase.value, phase.name)
                skip_signal = self.skip_config
                phase_start = time.monotonic()
                try:
                    executed = await self.run_phase(phase, steps, skip_signal)
                except (ConfigurationInconsistency, PipelineError) as exc:
                    all_success = False
                    self._record_failure(phase, exc)
                    break
                except PersistenceFailure as exc:
                    all_success = False
                    self._record_failure(phase, exc)
                    raise
                except Exception as exc:
                    all_success = False
                    tb = traceback.format_exc()
                    self._record_failure(phase, exc)
                    self.report[f"phase{phase.value}_error"] = tb
                    console.print(tb, style="dim", markup=False)
                    break

                elapsed = time.monotonic() - phase_start
                self.report["phases_completed"].append(phase.value)
                if executed:
                    print_success(
                        f"Phase {phase.value} ({phase.name}) completed in {format_duration(elapsed)}"
                    )
                else:
                    console.print(f"[dim]Phase {phase.value} ({phase.name}) skipped[/dim]")
        finally:
            if self._probe_task is not None:
                await self._probe_task
            self.report["success"] = all_success
            self.report["total_duration"] = format_duration(time.monotonic() - pipeline_start)
            self.report["finished_at"] = datetime.now(timezone.utc).isoformat()
            self._print_final_summary()

        return self.report

    def _record_failure(self, phase: Phase, exc: Exception) -> None:
        self.report["phases_failed"].append(phase.value)
        self.report[f"phase{phase.value}_error"] = str(exc)
        print_error(f"Phase {phase.value} ({phase.name}) FAILED: {exc}")

    # ------------------------------------------------------------------
    # Phase 1: INITIALIZE
    # ------------------------------------------------------------------

    async def init(self) -> None:
        """Record the generator version and compute application names."""
        self.store.set("generatorVersion", __version__)
        self.state.app_name, self.state.script_app_name = app_names(self.config)

    async def info(self) -> None:
        """Record environment details and start the npm probe."""
        self.report["environment"].update(
            {
                "generator": __version__,
                "python": platform.python_version(),
                "platform": sys.platform,
            }
        )
        self._probe_task = asyncio.create_task(self._probe_npm())

        console.print(
            Panel(
                "Out of the box I create an AngularJS app with an Express server.",
                title=f"[bold]{self.state.app_name}[/bold]",
                border_style="green",
            )
        )

    async def _probe_npm(self) -> None:
        try:
            version = await probe_version(["npm", "--version"])
        except CollaboratorProbeFailure:
            version = "unknown"
        self.report["environment"]["npm"] = version

    async def check_for_config(self) -> None:
        """Offer to reuse a stored configuration and set the skip signal."""
        existing = self.store.get("filters")
        if not existing:
            return

        try:
            flags = self.resolver.offer_reuse(existing)
        except ConfigurationInconsistency as exc:
            # Accepted but unreadable; reported when Configure validates.
            self.skip_config = True
            self.state.reused = True
            self.state.reuse_error = exc
            print_warning("  Stored configuration is inconsistent")
            return

        if flags is not None:
            self.skip_config = True
            self.state.flags = flags
            self.state.reused = True
            console.print("  Reusing stored configuration")
            return

        # Declined: a run aborted before Configure leaves no reusable flags.
        self.state.force_config = True
        self.store.set("filters", {})
        self.store.flush()

    # ------------------------------------------------------------------
    # Phase 2: PROMPT
    # ------------------------------------------------------------------

    def _prompt_step(self, step: ResolverStep) -> Callable[[], Awaitable[None]]:
        async def run() -> None:
            self.state.flags = step(self.state.flags)

        return run

    # ------------------------------------------------------------------
    # Phase 3: CONFIGURE
    # ------------------------------------------------------------------

    async def validate(self) -> None:
        """Reject flag sets that break a family invariant."""
        if self.state.reuse_error is not None:
            raise self.state.reuse_error
        check_consistency(self.state.flags, fresh=not self.state.reused)

    async def save_settings(self) -> None:
        """Persist the fixed generation parameters and the flags."""
        self.store.update(GenerationParameters().as_store_items())
        self.store.set("filters", self.state.flags.to_filters())
        path = self.store.flush()
        console.print(f"  Saved configuration to [bold]{path}[/bold]")

    async def derive(self) -> None:
        """Compute derived settings and composition options from the flags."""
        settings = derive_settings(
            self.state.flags, self.state.app_name, self.state.script_app_name
        )
        self.state.settings = settings
        self.state.options = plan(
            self.state.flags, settings, force_config=self.state.force_config
        )
        print_summary_table(
            {
                "Script extension": settings.script_ext,
                "Template extension": settings.template_ext,
                "Style extension": settings.style_ext,
                "Modules": ", ".join(settings.modules),
                "Flags": "reused" if self.state.reused else "new",
            },
            title="Project Settings",
        )

    async def compose_component(self) -> None:
        """Configure the component sub-generator."""
        self.component_generator.generate(self._require_options(Phase.CONFIGURE).component)

    # ------------------------------------------------------------------
    # Phase 4: WRITE
    # ------------------------------------------------------------------

    async def generate_project(self) -> None:
        options = self._require_options(Phase.WRITE)
        try:
            self.config.output_dir.mkdir(parents=True, exist_ok=True)
            written = await self.project_generator.generate(
                self.config.output_dir, options.templates
            )
        except (OSError, TemplateError) as exc:
            raise PipelineError(Phase.WRITE.value, f"could not write project: {exc}") from exc
        self.state.written.extend(written)

    async def generate_endpoint(self) -> None:
        options = self._require_options(Phase.WRITE)
        try:
            written = await self.endpoint_generator.generate(
                self.config.output_dir, options.endpoint
            )
        except (OSError, TemplateError) as exc:
            raise PipelineError(
                Phase.WRITE.value, f"could not write endpoint {options.endpoint.name}: {exc}"
            ) from exc
        self.state.written.extend(written)

    @property
    def endpoint_generator(self) -> EndpointGenerator:
        """Endpoint sub-generator using the persisted generation parameters."""
        if self._endpoint_generator is None:
            params = GenerationParameters.from_store(self.store.all())
            self._endpoint_generator = EndpointGenerator(self.renderer, params)
        return self._endpoint_generator

    def _require_options(self, phase: Phase) -> CompositionOptions:
        if self.state.options is None:
            raise PipelineError(phase.value, "composition options were not derived")
        return self.state.options

    # ------------------------------------------------------------------
    # Phase 5: INSTALL
    # ------------------------------------------------------------------

    async def install_deps(self) -> None:
        """Run ``npm install`` in the output directory unless skipped."""
        if self.config.skip_install:
            console.print(
                "  Skipping dependency installation. Run [bold]npm install[/bold] when ready."
            )
            return

        try:
            returncode, _, stderr = await run_command(
                ["npm", "install"], cwd=self.config.output_dir, capture=False
            )
        except OSError as exc:
            raise PipelineError(Phase.INSTALL.value, f"npm install could not start: {exc}") from exc
        if returncode != 0:
            raise PipelineError(
                Phase.INSTALL.value, f"npm install exited with code {returncode} {stderr}".strip()
            )

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def _print_final_summary(self) -> None:
        success = self.report["success"]
        border_style = "green" if success else "red"
        status = "[bold green]SUCCESS[/bold green]" if success else "[bold red]FAILED[/bold red]"

        completed = ", ".join(PHASE_NAMES[p] for p in self.report["phases_completed"]) or "none"
        detail_lines = [
            f"Status    : {status}",
            f"Duration  : {self.report.get('total_duration', '?')}",
            f"Completed : {completed}",
        ]
        if self.report["phases_failed"]:
            failed = ", ".join(PHASE_NAMES[p] for p in self.report["phases_failed"])
            detail_lines.append(f"Failed    : {failed}")
        detail_lines.extend([
            f"Flags     : {'reused' if self.state.reused else 'new'}",
            f"Files     : {len(self.state.written)}",
            f"npm       : {self.report['environment'].get('npm', 'not probed')}",
            "",
            f"Output    : {self.config.output_dir.resolve()}",
        ])

        console.print()
        console.print(
            Panel(
                "\n".join(detail_lines),
                title="[bold]Generation Complete[/bold]",
                border_style=border_style,
            )
        )


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ngfullstack",
        description="Scaffold an AngularJS + Express full-stack project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  ngfullstack\n"
            "  ngfullstack my-app --output ./my-app\n"
            "  ngfullstack --skip-install --app-suffix Module\n"
        ),
    )
    parser.add_argument("name", nargs="?", default=None, help="Application name")
    parser.add_argument(
        "--skip-install",
        action="store_true",
        default=None,
        help="Do not install dependencies",
    )
    parser.add_argument(
        "--app-suffix",
        default=None,
        help="Suffix added to the script module name (default: App)",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Directory to generate into (default: current directory)",
    )
    parser.add_argument(
        "--templates",
        default=None,
        help="Use a different project template directory",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for ``ngfullstack`` / ``python -m ngfullstack.pipeline``."""
    args = build_parser().parse_args(argv)

    config = Config.from_env(
        name=args.name,
        skip_install=args.skip_install,
        app_suffix=args.app_suffix,
        output_dir=Path(args.output) if args.output else None,
        template_dir=Path(args.templates) if args.templates else None,
    )
    if config.template_dir is not None and not config.template_dir.is_dir():
        print_error(f"Error: template directory not found: {config.template_dir}")
        sys.exit(1)

    pipeline = Pipeline(config)
    try:
        result = asyncio.run(pipeline.run())
    except PersistenceFailure as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        print_warning("Aborted.")
        sys.exit(130)

    if not result.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
