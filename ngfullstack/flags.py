"""Feature-flag families and the canonical ``FlagMap`` value.

Every question answered during prompting lands in exactly one family.
Single-choice families (scripting, markup, stylesheet, routing, build tool,
test framework, assertion style) are modelled as optional enum fields so two
members can never be selected at once; multi-select families (data layers,
OAuth strategies) are ordered tuples.

The flat, string-keyed ``filters`` document is only a projection of this
model: it is what gets persisted and what the template collaborators match
file markers against.  :meth:`FlagMap.from_filters` is the single place where
such a document re-enters the system, so it is also where an inconsistent
document (two primaries in one family) is rejected.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field


class ConfigurationInconsistency(Exception):
    """A resolved or reused flag set violates a family invariant."""

    def __init__(self, problems: str | list[str]) -> None:
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        super().__init__("Inconsistent configuration: " + "; ".join(self.problems))


# ---------------------------------------------------------------------------
# Families
# ---------------------------------------------------------------------------


class Scripting(str, Enum):
    """Client script language."""
    BABEL = "babel"
    TS = "ts"


class Markup(str, Enum):
    """Client template language."""
    HTML = "html"
    JADE = "jade"


class Stylesheet(str, Enum):
    """Client stylesheet language."""
    CSS = "css"
    SASS = "sass"
    STYLUS = "stylus"
    LESS = "less"

    @property
    def extension(self) -> str:
        return _STYLE_EXTENSIONS[self]


_STYLE_EXTENSIONS: dict[Stylesheet, str] = {
    Stylesheet.CSS: "css",
    Stylesheet.SASS: "scss",
    Stylesheet.STYLUS: "styl",
    Stylesheet.LESS: "less",
}


class Router(str, Enum):
    """Angular routing library."""
    NGROUTE = "ngroute"
    UIROUTER = "uirouter"


class DataLayer(str, Enum):
    """Server-side object/data mapper."""
    MONGOOSE = "mongoose"
    SEQUELIZE = "sequelize"

    @property
    def models_flag(self) -> str:
        """Flag marking this data layer as the backend for default models."""
        return f"{self.value}Models"


class AuthStrategy(str, Enum):
    """Additional OAuth strategies layered on local auth."""
    GOOGLE = "googleAuth"
    FACEBOOK = "facebookAuth"
    TWITTER = "twitterAuth"


class BuildTool(str, Enum):
    GRUNT = "grunt"
    GULP = "gulp"


class TestFramework(str, Enum):
    JASMINE = "jasmine"
    MOCHA = "mocha"


class AssertionStyle(str, Enum):
    """Chai assertion interface, only meaningful with Mocha."""
    EXPECT = "expect"
    SHOULD = "should"


E = TypeVar("E", bound=Enum)

SINGLE_CHOICE_FAMILIES: dict[str, type[Enum]] = {
    "scripting": Scripting,
    "markup": Markup,
    "stylesheet": Stylesheet,
    "router": Router,
    "build_tool": BuildTool,
    "test_framework": TestFramework,
}


# ---------------------------------------------------------------------------
# FlagMap
# ---------------------------------------------------------------------------


class FlagMap(BaseModel):
    """The resolved set of feature choices driving generation.

    Instances are immutable; resolver steps return updated copies via
    :meth:`pydantic.BaseModel.model_copy`.
    """

    model_config = ConfigDict(frozen=True)

    scripting: Optional[Scripting] = None
    markup: Optional[Markup] = None
    stylesheet: Optional[Stylesheet] = None
    router: Optional[Router] = None
    bootstrap: bool = False
    uibootstrap: bool = False

    data_layers: tuple[DataLayer, ...] = Field(default=())
    models: bool = False
    default_models: Optional[DataLayer] = None
    auth: bool = False
    oauth_strategies: tuple[AuthStrategy, ...] = Field(default=())
    socketio: bool = False

    build_tool: Optional[BuildTool] = None
    test_framework: Optional[TestFramework] = None
    assertion_style: Optional[AssertionStyle] = None

    # -- Projection --------------------------------------------------------

    def to_filters(self) -> dict[str, bool]:
        """Project onto the flat ``filters`` document.

        Key order and the explicit ``False`` entries for the losing test
        framework members match what has always been persisted, so an
        existing rc file round-trips unchanged.
        """
        filters: dict[str, bool] = {"js": True}
        for member in (self.scripting, self.markup, self.stylesheet, self.router):
            if member is not None:
                filters[member.value] = True
        filters["bootstrap"] = self.bootstrap
        filters["uibootstrap"] = self.uibootstrap

        if self.socketio:
            filters["socketio"] = True
        if self.auth:
            filters["auth"] = True

        if self.models:
            filters["models"] = True
            if self.default_models is not None:
                filters[self.default_models.models_flag] = True
        for layer in self.data_layers:
            filters[layer.value] = True
        if not self.models:
            filters["noModels"] = True

        if self.oauth_strategies:
            filters["oauth"] = True
            for strategy in self.oauth_strategies:
                filters[strategy.value] = True

        if self.build_tool is not None:
            filters[self.build_tool.value] = True

        if self.test_framework is TestFramework.MOCHA:
            filters["mocha"] = True
            filters["jasmine"] = False
            filters["should"] = False
            filters["expect"] = False
            if self.assertion_style is not None:
                filters[self.assertion_style.value] = True
        elif self.test_framework is TestFramework.JASMINE:
            filters["jasmine"] = True
            filters["mocha"] = False
            filters["should"] = False
            filters["expect"] = False

        return filters

    @classmethod
    def from_filters(cls, filters: dict[str, Any]) -> "FlagMap":
        """Parse a persisted ``filters`` document.

        Raises:
            ConfigurationInconsistency: If the document is not a mapping or
                two members of a single-choice family are both set.
        """
        if not isinstance(filters, dict):
            raise ConfigurationInconsistency(
                f"stored filters must be a mapping, got {type(filters).__name__}"
            )
        problems: list[str] = []

        def pick(family: type[E], keys: Optional[dict[E, str]] = None) -> Optional[E]:
            chosen = [
                member
                for member in family
                if filters.get(keys[member] if keys else member.value)
            ]
            if len(chosen) > 1:
                names = ", ".join(keys[m] if keys else m.value for m in chosen)
                problems.append(f"more than one {family.__name__} selected ({names})")
                return None
            return chosen[0] if chosen else None

        values: dict[str, Any] = {
            field: pick(family) for field, family in SINGLE_CHOICE_FAMILIES.items()
        }
        values["assertion_style"] = pick(AssertionStyle)
        values["default_models"] = pick(
            DataLayer, {layer: layer.models_flag for layer in DataLayer}
        )
        if problems:
            raise ConfigurationInconsistency(problems)

        return cls(
            **values,
            bootstrap=bool(filters.get("bootstrap")),
            uibootstrap=bool(filters.get("uibootstrap")),
            data_layers=tuple(layer for layer in DataLayer if filters.get(layer.value)),
            models=bool(filters.get("models")),
            auth=bool(filters.get("auth")),
            oauth_strategies=tuple(s for s in AuthStrategy if filters.get(s.value)),
            socketio=bool(filters.get("socketio")),
        )

    # -- Queries -----------------------------------------------------------

    def enabled(self, flag: str) -> bool:
        """``True`` when *flag* is set in the projected ``filters`` document."""
        return self.to_filters().get(flag) is True

    def active(self) -> list[str]:
        """Names of every flag that is currently ``True``, in projection order."""
        return [name for name, value in self.to_filters().items() if value is True]


# ---------------------------------------------------------------------------
# Consistency
# ---------------------------------------------------------------------------


def check_consistency(flags: FlagMap, *, fresh: bool = False) -> FlagMap:
    """Validate cross-family invariants and return *flags* unchanged.

    Args:
        flags: The flag set to validate.
        fresh: ``True`` for a set produced by the question flow, which must
            have every single-choice family answered.

    Raises:
        ConfigurationInconsistency: Listing every violated invariant.
    """
    problems: list[str] = []

    if fresh:
        for field in SINGLE_CHOICE_FAMILIES:
            if getattr(flags, field) is None:
                problems.append(f"no {field.replace('_', ' ')} selected")

    if flags.test_framework is TestFramework.MOCHA and flags.assertion_style is None:
        problems.append("mocha requires an assertion style (expect or should)")
    if flags.test_framework is not TestFramework.MOCHA and flags.assertion_style is not None:
        problems.append(
            f"assertion style '{flags.assertion_style.value}' is only valid with mocha"
        )

    if flags.uibootstrap and not flags.bootstrap:
        problems.append("uibootstrap requires bootstrap")
    if flags.oauth_strategies and not flags.auth:
        problems.append("oauth strategies require auth")
    if flags.data_layers and not flags.models:
        problems.append("data layers selected but models flag not set")
    if flags.default_models is not None and flags.default_models not in flags.data_layers:
        problems.append(
            f"default models backend '{flags.default_models.value}' is not a selected data layer"
        )
    if len(set(flags.data_layers)) != len(flags.data_layers):
        problems.append("duplicate data layer")
    if len(set(flags.oauth_strategies)) != len(flags.oauth_strategies):
        problems.append("duplicate oauth strategy")

    if problems:
        raise ConfigurationInconsistency(problems)
    return flags

