"""Unit tests for flag families and the FlagMap model (ngfullstack.flags).

Tests cover:
- to_filters projection (key set, order, losing test-framework members)
- from_filters parsing and single-choice conflicts
- Reuse round-trip of the projected document
- check_consistency invariants
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ngfullstack.flags import (
    AssertionStyle,
    AuthStrategy,
    ConfigurationInconsistency,
    DataLayer,
    FlagMap,
    Stylesheet,
    TestFramework as Framework,
    check_consistency,
)

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Families
# ---------------------------------------------------------------------------


class TestFamilies:
    @pytest.mark.parametrize(
        "style, ext",
        [
            (Stylesheet.CSS, "css"),
            (Stylesheet.SASS, "scss"),
            (Stylesheet.STYLUS, "styl"),
            (Stylesheet.LESS, "less"),
        ],
    )
    def test_stylesheet_extension(self, style: Stylesheet, ext: str):
        assert style.extension == ext

    def test_models_flag(self):
        assert DataLayer.MONGOOSE.models_flag == "mongooseModels"
        assert DataLayer.SEQUELIZE.models_flag == "sequelizeModels"


# ---------------------------------------------------------------------------
# to_filters
# ---------------------------------------------------------------------------


class TestToFilters:
    def test_default_projection(self, default_flags: FlagMap):
        assert default_flags.to_filters() == {
            "js": True,
            "babel": True,
            "html": True,
            "sass": True,
            "uirouter": True,
            "bootstrap": True,
            "uibootstrap": True,
            "socketio": True,
            "auth": True,
            "models": True,
            "mongooseModels": True,
            "mongoose": True,
            "grunt": True,
            "jasmine": True,
            "mocha": False,
            "should": False,
            "expect": False,
        }

    def test_key_order(self, default_flags: FlagMap):
        keys = list(default_flags.to_filters())
        assert keys[:5] == ["js", "babel", "html", "sass", "uirouter"]
        assert keys.index("auth") < keys.index("models") < keys.index("mongoose")

    def test_mocha_projection(self, minimal_flags: FlagMap):
        filters = minimal_flags.to_filters()
        assert filters["mocha"] is True
        assert filters["jasmine"] is False
        assert filters["expect"] is False
        assert filters["should"] is True

    def test_no_models(self, minimal_flags: FlagMap):
        filters = minimal_flags.to_filters()
        assert filters["noModels"] is True
        assert "models" not in filters
        assert "auth" not in filters
        assert "socketio" not in filters

    def test_bootstrap_always_present(self, minimal_flags: FlagMap):
        filters = minimal_flags.to_filters()
        assert filters["bootstrap"] is False
        assert filters["uibootstrap"] is False

    def test_oauth(self, default_flags: FlagMap):
        flags = default_flags.model_copy(
            update={"oauth_strategies": (AuthStrategy.GOOGLE, AuthStrategy.TWITTER)}
        )
        filters = flags.to_filters()
        assert filters["oauth"] is True
        assert filters["googleAuth"] is True
        assert filters["twitterAuth"] is True
        assert "facebookAuth" not in filters

    def test_empty_map_projects_only_defaults(self):
        assert FlagMap().to_filters() == {
            "js": True,
            "bootstrap": False,
            "uibootstrap": False,
            "noModels": True,
        }

    def test_active_and_enabled(self, default_flags: FlagMap):
        active = default_flags.active()
        assert "mocha" not in active
        assert "mongoose" in active
        assert default_flags.enabled("sass")
        assert not default_flags.enabled("less")
        assert not default_flags.enabled("unknown")


# ---------------------------------------------------------------------------
# from_filters
# ---------------------------------------------------------------------------


class TestFromFilters:
    def test_round_trip(self, default_flags: FlagMap, minimal_flags: FlagMap):
        for flags in (default_flags, minimal_flags):
            assert FlagMap.from_filters(flags.to_filters()) == flags

    def test_round_trip_two_layers(self, default_flags: FlagMap):
        flags = default_flags.model_copy(
            update={
                "data_layers": (DataLayer.MONGOOSE, DataLayer.SEQUELIZE),
                "default_models": DataLayer.SEQUELIZE,
                "oauth_strategies": (AuthStrategy.FACEBOOK,),
            }
        )
        assert FlagMap.from_filters(flags.to_filters()) == flags

    def test_projection_is_stable(self, default_flags: FlagMap):
        filters = default_flags.to_filters()
        assert FlagMap.from_filters(filters).to_filters() == filters

    def test_unknown_keys_are_ignored(self):
        flags = FlagMap.from_filters({"js": True, "babel": True, "coffee": True})
        assert flags.scripting is not None
        assert flags.scripting.value == "babel"

    def test_two_primaries_rejected(self):
        with pytest.raises(ConfigurationInconsistency) as exc_info:
            FlagMap.from_filters({"babel": True, "ts": True})
        assert "Scripting" in exc_info.value.problems[0]

    @pytest.mark.parametrize("document", [["ts", "sass"], "ts", 1])
    def test_non_mapping_rejected(self, document):
        with pytest.raises(ConfigurationInconsistency, match="must be a mapping"):
            FlagMap.from_filters(document)

    def test_two_assertion_styles_rejected(self):
        with pytest.raises(ConfigurationInconsistency):
            FlagMap.from_filters({"mocha": True, "expect": True, "should": True})

    def test_two_default_models_rejected(self):
        with pytest.raises(ConfigurationInconsistency):
            FlagMap.from_filters(
                {"mongooseModels": True, "sequelizeModels": True, "mongoose": True}
            )

    def test_all_problems_reported(self):
        with pytest.raises(ConfigurationInconsistency) as exc_info:
            FlagMap.from_filters({"babel": True, "ts": True, "grunt": True, "gulp": True})
        assert len(exc_info.value.problems) == 2

    def test_false_members_are_not_selected(self):
        flags = FlagMap.from_filters({"jasmine": False, "mocha": True, "expect": True})
        assert flags.test_framework is Framework.MOCHA
        assert flags.assertion_style is AssertionStyle.EXPECT

    def test_frozen(self, default_flags: FlagMap):
        with pytest.raises(ValidationError):
            default_flags.auth = False


# ---------------------------------------------------------------------------
# check_consistency
# ---------------------------------------------------------------------------


class TestCheckConsistency:
    def test_valid_sets_pass(self, default_flags: FlagMap, minimal_flags: FlagMap):
        assert check_consistency(default_flags, fresh=True) is default_flags
        assert check_consistency(minimal_flags, fresh=True) is minimal_flags

    def test_fresh_requires_every_family(self):
        with pytest.raises(ConfigurationInconsistency) as exc_info:
            check_consistency(FlagMap(), fresh=True)
        assert len(exc_info.value.problems) == 6
        assert "no build tool selected" in exc_info.value.problems

    def test_partial_set_passes_when_not_fresh(self):
        assert check_consistency(FlagMap()) == FlagMap()

    def test_mocha_requires_assertion(self, minimal_flags: FlagMap):
        flags = minimal_flags.model_copy(update={"assertion_style": None})
        with pytest.raises(ConfigurationInconsistency, match="assertion style"):
            check_consistency(flags)

    def test_assertion_requires_mocha(self, default_flags: FlagMap):
        flags = default_flags.model_copy(update={"assertion_style": AssertionStyle.EXPECT})
        with pytest.raises(ConfigurationInconsistency, match="only valid with mocha"):
            check_consistency(flags)

    def test_uibootstrap_requires_bootstrap(self, default_flags: FlagMap):
        flags = default_flags.model_copy(update={"bootstrap": False})
        with pytest.raises(ConfigurationInconsistency, match="uibootstrap"):
            check_consistency(flags)

    def test_oauth_requires_auth(self, default_flags: FlagMap):
        flags = default_flags.model_copy(
            update={"auth": False, "oauth_strategies": (AuthStrategy.GOOGLE,)}
        )
        with pytest.raises(ConfigurationInconsistency, match="oauth"):
            check_consistency(flags)

    def test_layers_require_models(self, default_flags: FlagMap):
        flags = default_flags.model_copy(update={"models": False})
        with pytest.raises(ConfigurationInconsistency, match="models flag"):
            check_consistency(flags)

    def test_default_models_must_be_selected(self, default_flags: FlagMap):
        flags = default_flags.model_copy(update={"default_models": DataLayer.SEQUELIZE})
        with pytest.raises(ConfigurationInconsistency, match="not a selected data layer"):
            check_consistency(flags)

    def test_duplicate_layers(self, default_flags: FlagMap):
        flags = default_flags.model_copy(
            update={"data_layers": (DataLayer.MONGOOSE, DataLayer.MONGOOSE)}
        )
        with pytest.raises(ConfigurationInconsistency, match="duplicate data layer"):
            check_consistency(flags)
