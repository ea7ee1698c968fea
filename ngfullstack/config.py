"""ngfullstack configuration.

Typed run options and the fixed generation parameters persisted alongside the
feature flags. All settings use Pydantic v2 models so they can be validated at
construction time and serialised to/from JSON or environment variables without
boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ngfullstack.utils import pluralize


class GenerationParameters(BaseModel):
    """Fixed parameters consumed by later sub-generator invocations.

    They are written next to ``filters`` at the Configure stage so that a
    subsequent ``endpoint`` run knows where to place files and which needles
    to insert registrations below.  Field aliases match the persisted keys.
    """

    model_config = ConfigDict(populate_by_name=True)

    endpoint_directory: str = Field(default="server/api/", alias="endpointDirectory")
    insert_routes: bool = Field(default=True, alias="insertRoutes")
    register_routes_file: str = Field(default="server/routes.js", alias="registerRoutesFile")
    routes_needle: str = Field(default="// Insert routes below", alias="routesNeedle")
    routes_base: str = Field(default="/api/", alias="routesBase")
    pluralize_routes: bool = Field(default=True, alias="pluralizeRoutes")
    insert_sockets: bool = Field(default=True, alias="insertSockets")
    register_sockets_file: str = Field(
        default="server/config/socketio.js", alias="registerSocketsFile"
    )
    sockets_needle: str = Field(default="// Insert sockets below", alias="socketsNeedle")
    insert_models: bool = Field(default=True, alias="insertModels")
    register_models_file: str = Field(default="server/sqldb/index.js", alias="registerModelsFile")
    models_needle: str = Field(default="// Insert models below", alias="modelsNeedle")

    def as_store_items(self) -> dict[str, Any]:
        """Return the ``{persisted_key: value}`` mapping written to the store."""
        return self.model_dump(by_alias=True)

    def route_for(self, name: str) -> str:
        """Mount path for the *name* resource, e.g. ``/api/things``."""
        segment = pluralize(name) if self.pluralize_routes else name
        return self.routes_base.rstrip("/") + "/" + segment

    @classmethod
    def from_store(cls, values: dict[str, Any]) -> "GenerationParameters":
        """Build parameters from persisted keys, falling back to defaults."""
        known = {
            field.alias: values[field.alias]
            for field in cls.model_fields.values()
            if field.alias and field.alias in values
        }
        return cls.model_validate(known)


class Config(BaseModel):
    """Run options for a single generator invocation.

    Instances are created once by the CLI entry point (or by tests) and then
    passed through the pipeline.  Nothing here is derived from the answers
    given during prompting.
    """

    name: Optional[str] = Field(default=None, description="Application name (positional argument)")
    skip_install: bool = Field(default=False, description="Do not install dependencies")
    app_suffix: str = Field(
        default="App", description="Suffix appended to the script application name"
    )
    output_dir: Path = Field(default=Path("."))
    rc_filename: str = Field(default=".yo-rc.json")
    generator_name: str = Field(default="generator-ngfullstack")
    template_dir: Optional[Path] = Field(
        default=None, description="Override for the bundled project templates"
    )

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def rc_path(self) -> Path:
        """Path to the shared generator configuration file."""
        return self.output_dir / self.rc_filename

    @property
    def app_name_source(self) -> str:
        """Raw application name: the ``name`` argument or the output directory name."""
        if self.name:
            return self.name
        return self.output_dir.resolve().name

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls, **overrides: Any) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            NGFS_NAME, NGFS_OUTPUT_DIR, NGFS_SKIP_INSTALL, NGFS_APP_SUFFIX,
            NGFS_TEMPLATE_DIR.

        Keyword arguments that are not ``None`` take precedence over the
        environment.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("NGFS_NAME"):
            kwargs["name"] = os.environ["NGFS_NAME"]
        if os.environ.get("NGFS_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["NGFS_OUTPUT_DIR"])
        if os.environ.get("NGFS_SKIP_INSTALL"):
            kwargs["skip_install"] = os.environ["NGFS_SKIP_INSTALL"].strip().lower() in {
                "1",
                "true",
                "yes",
                "on",
            }
        if os.environ.get("NGFS_APP_SUFFIX"):
            kwargs["app_suffix"] = os.environ["NGFS_APP_SUFFIX"]
        if os.environ.get("NGFS_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["NGFS_TEMPLATE_DIR"])

        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)
