"""Shared pytest fixtures for the ngfullstack test suite.

Provides reusable fixtures for:
- Temporary project directories and rc files
- A scripted prompter that answers question batches from a dict
- Canonical answer sets and the flag maps they resolve to
- Run configuration pointing at a temporary output directory
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from ngfullstack.config import Config
from ngfullstack.flags import (
    AssertionStyle,
    BuildTool,
    DataLayer,
    FlagMap,
    Markup,
    Router,
    Scripting,
    Stylesheet,
    TestFramework,
)
from ngfullstack.prompts import Prompter, Question


# ---------------------------------------------------------------------------
# Scripted prompter
# ---------------------------------------------------------------------------


class ScriptedPrompter(Prompter):
    """Answers questions from a fixed ``{name: raw_answer}`` mapping.

    Every question actually asked is recorded in :attr:`asked`, so tests can
    assert which conditional questions were reached.  Asking a question with
    no scripted answer fails the test.
    """

    def __init__(self, answers: dict[str, Any]) -> None:
        self.answers = dict(answers)
        self.asked: list[str] = []

    def answer(self, question: Question) -> Any:
        self.asked.append(question.name)
        if question.name not in self.answers:
            raise AssertionError(f"Unexpected question: {question.name}")
        return self.answers[question.name]


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------


@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Temporary directory for generated projects (auto-cleanup)."""
    project_dir = tmp_path / "my-app"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture
def write_rc(tmp_project_dir: Path):
    """Write a ``.yo-rc.json`` document into the project directory."""

    def _write(document: dict[str, Any]) -> Path:
        path = tmp_project_dir / ".yo-rc.json"
        path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def config(tmp_project_dir: Path) -> Config:
    """Run options with installation skipped."""
    return Config(output_dir=tmp_project_dir, skip_install=True)


# ---------------------------------------------------------------------------
# Answers
# ---------------------------------------------------------------------------


@pytest.fixture
def default_answers() -> dict[str, Any]:
    """Raw answers for the default choice of every question."""
    return {
        "transpiler": "Babel",
        "markup": "HTML",
        "stylesheet": "Sass",
        "router": "uiRouter",
        "bootstrap": True,
        "uibootstrap": True,
        "odms": [DataLayer.MONGOOSE],
        "auth": True,
        "oauth": [],
        "socketio": True,
        "buildtool": "Grunt",
        "testing": "Jasmine",
    }


@pytest.fixture
def default_flags() -> FlagMap:
    """The flag map :func:`default_answers` resolves to."""
    return FlagMap(
        scripting=Scripting.BABEL,
        markup=Markup.HTML,
        stylesheet=Stylesheet.SASS,
        router=Router.UIROUTER,
        bootstrap=True,
        uibootstrap=True,
        data_layers=(DataLayer.MONGOOSE,),
        models=True,
        default_models=DataLayer.MONGOOSE,
        auth=True,
        socketio=True,
        build_tool=BuildTool.GRUNT,
        test_framework=TestFramework.JASMINE,
    )


@pytest.fixture
def minimal_flags() -> FlagMap:
    """TypeScript, Jade, no data layer, Gulp with Mocha + Should."""
    return FlagMap(
        scripting=Scripting.TS,
        markup=Markup.JADE,
        stylesheet=Stylesheet.CSS,
        router=Router.NGROUTE,
        build_tool=BuildTool.GULP,
        test_framework=TestFramework.MOCHA,
        assertion_style=AssertionStyle.SHOULD,
    )


@pytest.fixture
def scripted():
    """Factory for :class:`ScriptedPrompter` instances."""
    return ScriptedPrompter
