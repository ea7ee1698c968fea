"""Question batches asked by the feature-flag resolver."""

from __future__ import annotations

from ngfullstack.flags import (
    AssertionStyle,
    AuthStrategy,
    BuildTool,
    DataLayer,
    Markup,
    Router,
    Scripting,
    Stylesheet,
    TestFramework,
)
from ngfullstack.prompts import Answers, Choice, Question


def _has_data_layer(answers: Answers) -> bool:
    return bool(answers.get("odms"))


REUSE_QUESTIONS: list[Question] = [
    Question(
        type="confirm",
        name="skipConfig",
        message="Existing configuration found, would you like to use it?",
        default=True,
    ),
]


CLIENT_QUESTIONS: list[Question] = [
    Question(
        type="list",
        name="transpiler",
        message="What would you like to write scripts with?",
        choices=["Babel", "TypeScript"],
        filter=lambda val: {"Babel": Scripting.BABEL, "TypeScript": Scripting.TS}[val],
    ),
    Question(
        type="list",
        name="markup",
        message="What would you like to write markup with?",
        choices=["HTML", "Jade"],
        filter=lambda val: Markup(val.lower()),
    ),
    Question(
        type="list",
        name="stylesheet",
        message="What would you like to write stylesheets with?",
        choices=["CSS", "Sass", "Stylus", "Less"],
        default=1,
        filter=lambda val: Stylesheet(val.lower()),
    ),
    Question(
        type="list",
        name="router",
        message="What Angular router would you like to use?",
        choices=["ngRoute", "uiRouter"],
        default=1,
        filter=lambda val: Router(val.lower()),
    ),
    Question(
        type="confirm",
        name="bootstrap",
        message="Would you like to include Bootstrap?",
    ),
    Question(
        type="confirm",
        name="uibootstrap",
        message="Would you like to include UI Bootstrap?",
        when=lambda answers: bool(answers.get("bootstrap")),
    ),
]


SERVER_QUESTIONS: list[Question] = [
    Question(
        type="checkbox",
        name="odms",
        message="What would you like to use for data modeling?",
        choices=[
            Choice(DataLayer.MONGOOSE, "Mongoose (MongoDB)", checked=True),
            Choice(DataLayer.SEQUELIZE, "Sequelize (MySQL, SQLite, MariaDB, PostgreSQL)"),
        ],
        filter=lambda values: [DataLayer(v) for v in values],
    ),
    Question(
        type="list",
        name="models",
        message="What would you like to use for the default models?",
        choices=["Mongoose", "Sequelize"],
        filter=lambda val: DataLayer(val.lower()),
        when=lambda answers: len(answers.get("odms") or []) > 1,
    ),
    Question(
        type="confirm",
        name="auth",
        message="Would you scaffold out an authentication boilerplate?",
        when=_has_data_layer,
    ),
    Question(
        type="checkbox",
        name="oauth",
        message="Would you like to include additional oAuth strategies?",
        choices=[
            Choice(AuthStrategy.GOOGLE, "Google"),
            Choice(AuthStrategy.FACEBOOK, "Facebook"),
            Choice(AuthStrategy.TWITTER, "Twitter"),
        ],
        filter=lambda values: [AuthStrategy(v) for v in values],
        when=lambda answers: bool(answers.get("auth")),
    ),
    # socket.io is only offered alongside a data layer.
    Question(
        type="confirm",
        name="socketio",
        message="Would you like to use socket.io?",
        default=True,
        when=_has_data_layer,
    ),
]


PROJECT_QUESTIONS: list[Question] = [
    Question(
        type="list",
        name="buildtool",
        message="Would you like to use Gulp or Grunt?",
        choices=["Grunt", "Gulp"],
        default=0,
        filter=lambda val: BuildTool(val.lower()),
    ),
    Question(
        type="list",
        name="testing",
        message="What would you like to write tests with?",
        choices=["Jasmine", "Mocha + Chai + Sinon"],
        filter=lambda val: {
            "Jasmine": TestFramework.JASMINE,
            "Mocha + Chai + Sinon": TestFramework.MOCHA,
        }[val],
    ),
    Question(
        type="list",
        name="chai",
        message="What would you like to write Chai assertions with?",
        choices=["Expect", "Should"],
        filter=lambda val: AssertionStyle(val.lower()),
        when=lambda answers: answers.get("testing") is TestFramework.MOCHA,
    ),
]
