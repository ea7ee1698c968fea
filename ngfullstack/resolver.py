"""Feature-flag resolution.

Turns question answers into a canonical :class:`~ngfullstack.flags.FlagMap`.
The fold functions (``apply_*_answers``) are pure ``(FlagMap, Answers) ->
FlagMap`` transformations; :class:`FeatureFlagResolver` wires them to the
question batches and the reuse decision.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from ngfullstack.flags import (
    DataLayer,
    FlagMap,
    TestFramework,
    check_consistency,
)
from ngfullstack.prompts import Answers, Prompter
from ngfullstack.questions import (
    CLIENT_QUESTIONS,
    PROJECT_QUESTIONS,
    REUSE_QUESTIONS,
    SERVER_QUESTIONS,
)
from ngfullstack.utils import print_section

ResolverStep = Callable[[FlagMap], FlagMap]


# ---------------------------------------------------------------------------
# Fold functions
# ---------------------------------------------------------------------------


def apply_client_answers(flags: FlagMap, answers: Answers) -> FlagMap:
    """Fold the client batch: scripting, markup, stylesheet, router, UI add-ons.

    ``uibootstrap`` is only asked when Bootstrap is wanted; when it was not
    asked it is cleared rather than left at a previous value.
    """
    bootstrap = bool(answers.get("bootstrap"))
    return flags.model_copy(
        update={
            "scripting": answers["transpiler"],
            "markup": answers["markup"],
            "stylesheet": answers["stylesheet"],
            "router": answers["router"],
            "bootstrap": bootstrap,
            "uibootstrap": bootstrap and bool(answers.get("uibootstrap")),
        }
    )


def apply_server_answers(flags: FlagMap, answers: Answers) -> FlagMap:
    """Fold the server batch: data layers, default models, auth, socket.io.

    With a single data layer that layer backs the default models; with
    several, the explicit ``models`` answer decides.  Sub-questions that were
    skipped clear their flags.
    """
    selected: list[DataLayer] = list(answers.get("odms") or [])
    layers = tuple(layer for layer in DataLayer if layer in selected)

    default_models: Optional[DataLayer] = None
    if layers:
        default_models = answers.get("models") or selected[0]

    auth = bool(layers) and bool(answers.get("auth"))
    strategies = tuple(answers.get("oauth") or []) if auth else ()

    return flags.model_copy(
        update={
            "data_layers": layers,
            "models": bool(layers),
            "default_models": default_models,
            "auth": auth,
            "oauth_strategies": strategies,
            "socketio": bool(layers) and bool(answers.get("socketio")),
        }
    )


def apply_project_answers(flags: FlagMap, answers: Answers) -> FlagMap:
    """Fold the project batch: build tool, test framework, assertion style.

    Choosing Jasmine clears any assertion style; choosing Mocha keeps only
    the one just selected.
    """
    testing: TestFramework = answers["testing"]
    assertion = answers.get("chai") if testing is TestFramework.MOCHA else None
    return flags.model_copy(
        update={
            "build_tool": answers["buildtool"],
            "test_framework": testing,
            "assertion_style": assertion,
        }
    )


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class FeatureFlagResolver:
    """Builds the flag map from question batches or a stored configuration.

    Attributes:
        prompter: Source of answers; :class:`~ngfullstack.prompts.RichPrompter`
            interactively, a scripted double in tests.
    """

    def __init__(self, prompter: Prompter) -> None:
        self.prompter = prompter

    # -- Reuse -------------------------------------------------------------

    def offer_reuse(self, existing_filters: Optional[dict[str, Any]]) -> Optional[FlagMap]:
        """Ask whether to reuse *existing_filters*.

        Returns:
            The parsed flags when reuse is accepted, ``None`` when there is
            nothing to reuse or the operator declined.

        Raises:
            ConfigurationInconsistency: If the stored document is not a
                mapping or selects two members of a single-choice family.
        """
        if not existing_filters:
            return None
        answers = self.prompter.ask(REUSE_QUESTIONS)
        if not answers.get("skipConfig"):
            return None
        return FlagMap.from_filters(existing_filters)

    # -- Question batches --------------------------------------------------

    def ask_client(self, flags: FlagMap) -> FlagMap:
        print_section("Client")
        return apply_client_answers(flags, self.prompter.ask(CLIENT_QUESTIONS))

    def ask_server(self, flags: FlagMap) -> FlagMap:
        print_section("Server")
        return apply_server_answers(flags, self.prompter.ask(SERVER_QUESTIONS))

    def ask_project(self, flags: FlagMap) -> FlagMap:
        print_section("Project")
        return apply_project_answers(flags, self.prompter.ask(PROJECT_QUESTIONS))

    def batches(self) -> list[tuple[str, ResolverStep]]:
        """The ordered question batches as ``(name, step)`` pairs."""
        return [
            ("client", self.ask_client),
            ("server", self.ask_server),
            ("project", self.ask_project),
        ]

    # -- One-shot resolution -----------------------------------------------

    def resolve(
        self, existing_filters: Optional[dict[str, Any]] = None
    ) -> tuple[FlagMap, bool]:
        """Resolve the flag map in one call.

        Returns:
            ``(flags, reused)``.  Reused flags are returned exactly as stored;
            fresh flags are folded from all three batches starting from an
            empty map and validated.
        """
        reused = self.offer_reuse(existing_filters)
        if reused is not None:
            return reused, True

        flags = FlagMap()
        for _, step in self.batches():
            flags = step(flags)
        return check_consistency(flags, fresh=True), False
