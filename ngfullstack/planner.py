"""Composition planning.

Translates the final flag map into explicit request payloads for the
collaborators invoked during Configure and Write:

* :class:`TemplateRequest` -- predicate inputs for the project template walk.
* :class:`ComponentRequest` -- options for the component sub-generator.
* :class:`EndpointRequest` -- options for the resource (endpoint) sub-generator.

It also owns the ordered Angular module manifest.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, ConfigDict, Field

from ngfullstack.flags import ConfigurationInconsistency, DataLayer, FlagMap, Scripting

if TYPE_CHECKING:
    from ngfullstack.settings import DerivedProjectSettings


CLIENT_APP_PATH = "client/app/"
CLIENT_BASE_PATH = "client"
DEFAULT_ENDPOINT_NAME = "thing"

# Active members of these flags are forwarded to the component sub-generator.
COMPONENT_FILTER_FLAGS = ("ngroute", "uirouter", "jasmine", "mocha", "expect", "should")

# (flag, extension token) in the order the component sub-generator expects.
EXTENSION_FLAGS: tuple[tuple[str, str], ...] = (
    ("babel", "babel"),
    ("ts", "ts"),
    ("js", "js"),
    ("html", "html"),
    ("jade", "jade"),
    ("css", "css"),
    ("stylus", "styl"),
    ("sass", "scss"),
    ("less", "less"),
)

ES6_MARKER = "es6"

BASE_MODULES = ("ngCookies", "ngResource", "ngSanitize")
ROUTER_MODULES = {"ngroute": "ngRoute", "uirouter": "ui.router"}
SOCKETIO_MODULE = "btford.socket-io"
UIBOOTSTRAP_MODULE = "ui.bootstrap"
VALIDATION_MODULE = "validation.match"


# ---------------------------------------------------------------------------
# Request contracts
# ---------------------------------------------------------------------------


class TemplateRequest(BaseModel):
    """Inputs for the project template walk.

    Attributes:
        active: Flag names and extension tokens a template path marker may
            reference; a file is written only if all its markers are active.
        typescript: Rewrite ``.js`` destinations under ``client/`` to ``.ts``.
        context: Variables exposed to rendered templates.
    """

    model_config = ConfigDict(frozen=True)

    active: frozenset[str]
    typescript: bool = False
    context: dict[str, object] = Field(default_factory=dict)


class ComponentRequest(BaseModel):
    """Options for the component sub-generator."""

    model_config = ConfigDict(frozen=True)

    route_directory: str = CLIENT_APP_PATH
    directive_directory: str = CLIENT_APP_PATH
    filter_directory: str = CLIENT_APP_PATH
    service_directory: str = CLIENT_APP_PATH
    filters: tuple[str, ...] = ()
    extensions: tuple[str, ...] = ()
    base_path: str = CLIENT_BASE_PATH
    force_config: bool = False


class EndpointRequest(BaseModel):
    """Options for the resource sub-generator."""

    model_config = ConfigDict(frozen=True)

    name: str = DEFAULT_ENDPOINT_NAME
    # None mounts the resource below the persisted routesBase.
    route: Optional[str] = None
    models: Optional[DataLayer] = None


class CompositionOptions(BaseModel):
    """Everything the Configure and Write stages hand to collaborators."""

    model_config = ConfigDict(frozen=True)

    extensions: tuple[str, ...]
    markers: tuple[str, ...]
    templates: TemplateRequest
    component: ComponentRequest
    endpoint: EndpointRequest
    modules: tuple[str, ...]


# ---------------------------------------------------------------------------
# Planning functions
# ---------------------------------------------------------------------------


def active_extensions(flags: FlagMap) -> list[str]:
    """Extension tokens for every enabled scripting, markup and style variant."""
    filters = flags.to_filters()
    return [token for flag, token in EXTENSION_FLAGS if filters.get(flag) is True]


def active_markers(flags: FlagMap) -> list[str]:
    """Routing / testing markers plus the fixed ES6 syntax marker."""
    filters = flags.to_filters()
    markers = [flag for flag in COMPONENT_FILTER_FLAGS if filters.get(flag) is True]
    markers.append(ES6_MARKER)
    return markers


def choose_model_backend(flags: FlagMap) -> Optional[DataLayer]:
    """Pick the data layer backing the default endpoint's model.

    * No models wanted: ``None`` (the endpoint is scaffolded without
      persistence).
    * Exactly one data layer: that one.
    * Several: the explicit default-models choice.

    Raises:
        ConfigurationInconsistency: If models are wanted but no backend can
            be determined.
    """
    if not flags.models:
        return None
    if flags.default_models is not None:
        if flags.default_models not in flags.data_layers:
            raise ConfigurationInconsistency(
                f"default models backend '{flags.default_models.value}' is not a selected data layer"
            )
        return flags.default_models
    if len(flags.data_layers) == 1:
        return flags.data_layers[0]
    if not flags.data_layers:
        raise ConfigurationInconsistency("models are enabled but no data layer is selected")
    raise ConfigurationInconsistency(
        "several data layers are selected but no default models backend was chosen"
    )


def build_module_manifest(flags: FlagMap, script_app_name: str) -> list[str]:
    """Ordered Angular module names for the generated application module.

    Auth-family modules come first (admin, then auth), then the four base
    modules, then routing, real-time, UI add-on and validation modules.
    """
    modules: list[str] = []
    if flags.auth:
        modules.append(f"{script_app_name}.admin")
        modules.append(f"{script_app_name}.auth")

    modules.append(f"{script_app_name}.constants")
    modules.extend(BASE_MODULES)

    if flags.router is not None:
        modules.append(ROUTER_MODULES[flags.router.value])
    if flags.socketio:
        modules.append(SOCKETIO_MODULE)
    if flags.uibootstrap:
        modules.append(UIBOOTSTRAP_MODULE)
    if flags.auth:
        modules.append(VALIDATION_MODULE)
    return modules


def render_module_manifest(modules: tuple[str, ...] | list[str]) -> str:
    """Format module names as a quoted, one-per-line JavaScript list body."""
    return "\n  " + ",\n  ".join(f"'{name}'" for name in modules) + "\n"


def plan(
    flags: FlagMap,
    settings: "DerivedProjectSettings",
    *,
    force_config: bool = False,
) -> CompositionOptions:
    """Build the collaborator payloads for *flags*.

    Args:
        flags: Final flag map.
        settings: Settings derived from the same flags.
        force_config: Whether the operator declined to reuse a stored
            configuration; forwarded to the component sub-generator.

    Raises:
        ConfigurationInconsistency: See :func:`choose_model_backend`.
    """
    extensions = active_extensions(flags)
    markers = active_markers(flags)
    backend = choose_model_backend(flags)

    context: dict[str, object] = {
        "filters": flags.to_filters(),
        **settings.template_context(),
    }

    return CompositionOptions(
        extensions=tuple(extensions),
        markers=tuple(markers),
        templates=TemplateRequest(
            active=frozenset([*flags.active(), *extensions, *markers]),
            typescript=flags.scripting is Scripting.TS,
            context=context,
        ),
        component=ComponentRequest(
            filters=tuple(markers),
            extensions=tuple(extensions),
            force_config=force_config,
        ),
        endpoint=EndpointRequest(models=backend),
        modules=settings.modules,
    )
