"""Project settings derived from a stable ``FlagMap``.

These values are pure functions of the flags (plus the application name) and
are recomputed every run, whether the flags were just resolved or replayed
from a stored configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from ngfullstack.config import Config
from ngfullstack.flags import FlagMap, Scripting
from ngfullstack.planner import build_module_manifest, render_module_manifest
from ngfullstack.utils import camel_case, slugify

BASE_SCRIPT_EXT = "js"
BASE_TEMPLATE_EXT = "html"
BASE_STYLE_EXT = "css"


class DerivedProjectSettings(BaseModel):
    """Scalar values the Write stage needs, computed once flags stabilise."""

    model_config = ConfigDict(frozen=True)

    app_name: str
    script_app_name: str
    script_ext: str
    template_ext: str
    style_ext: str
    modules: tuple[str, ...]

    @property
    def angular_modules(self) -> str:
        """Module manifest formatted for the generated ``angular.module`` call."""
        return render_module_manifest(self.modules)

    def template_context(self) -> dict[str, object]:
        """Context variables exposed to the project templates."""
        return {
            "appname": self.app_name,
            "scriptAppName": self.script_app_name,
            "scriptExt": self.script_ext,
            "templateExt": self.template_ext,
            "styleExt": self.style_ext,
            "angularModules": self.angular_modules,
        }


def app_names(config: Config) -> tuple[str, str]:
    """Return ``(app_name, script_app_name)`` for a run.

    The application name is the ``name`` argument (or the output directory
    name) slugified and camel-cased; the script name appends the app suffix.
    """
    app_name = camel_case(slugify(config.app_name_source)) or "app"
    return app_name, app_name + config.app_suffix


def derive_settings(flags: FlagMap, app_name: str, script_app_name: str) -> DerivedProjectSettings:
    """Compute extensions and the module manifest for *flags*.

    Each family falls back to its base extension when no specialised flag is
    set, which only happens for partial stored configurations.
    """
    script_ext = "ts" if flags.scripting is Scripting.TS else BASE_SCRIPT_EXT
    template_ext = flags.markup.value if flags.markup is not None else BASE_TEMPLATE_EXT
    style_ext = flags.stylesheet.extension if flags.stylesheet is not None else BASE_STYLE_EXT

    return DerivedProjectSettings(
        app_name=app_name,
        script_app_name=script_app_name,
        script_ext=script_ext,
        template_ext=template_ext,
        style_ext=style_ext,
        modules=tuple(build_module_manifest(flags, script_app_name)),
    )
