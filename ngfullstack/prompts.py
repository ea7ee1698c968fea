"""Question definitions and the terminal prompter.

A question batch is a list of :class:`Question` objects asked in order.  Each
question may carry a ``when`` predicate evaluated against the answers given
so far in the same batch, and a ``filter`` that normalises the raw answer
before it is recorded.  :class:`Prompter` implements that batch protocol;
subclasses only supply the raw answer for a single question.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from rich.prompt import Confirm, Prompt

from ngfullstack.utils import console, print_warning

Answers = dict[str, Any]


@dataclass
class Choice:
    """One selectable entry of a ``list`` or ``checkbox`` question."""

    value: Any
    name: str = ""
    checked: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            self.name = str(self.value)


@dataclass
class Question:
    """A single prompt.

    Attributes:
        type: ``"list"`` (pick one), ``"confirm"`` (yes/no) or ``"checkbox"``
            (pick any number).
        name: Key under which the answer is recorded.
        message: Text shown to the operator.
        choices: Options for ``list`` / ``checkbox`` questions.  Plain strings
            are wrapped into :class:`Choice` objects.
        default: Index of the default choice for ``list`` questions, or the
            default boolean for ``confirm`` questions.
        when: Optional predicate over earlier answers; the question is
            skipped (and records nothing) when it returns ``False``.
        filter: Optional normaliser applied to the raw answer.
    """

    type: str
    name: str
    message: str
    choices: list[Union[Choice, str]] = field(default_factory=list)
    default: Any = None
    when: Optional[Callable[[Answers], bool]] = None
    filter: Optional[Callable[[Any], Any]] = None

    def __post_init__(self) -> None:
        if self.type not in ("list", "confirm", "checkbox"):
            raise ValueError(f"Unsupported question type: {self.type!r}")
        self.choices = [c if isinstance(c, Choice) else Choice(c) for c in self.choices]

    def applies(self, answers: Answers) -> bool:
        return self.when is None or bool(self.when(answers))


class Prompter:
    """Ask a batch of questions and return the filtered answers."""

    def ask(self, questions: list[Question]) -> Answers:
        answers: Answers = {}
        for question in questions:
            if not question.applies(answers):
                continue
            raw = self.answer(question)
            answers[question.name] = question.filter(raw) if question.filter else raw
        return answers

    def answer(self, question: Question) -> Any:
        """Return the raw (unfiltered) answer for *question*."""
        raise NotImplementedError


class RichPrompter(Prompter):
    """Interactive prompter built on :mod:`rich.prompt`."""

    def answer(self, question: Question) -> Any:
        if question.type == "confirm":
            default = True if question.default is None else bool(question.default)
            return Confirm.ask(question.message, default=default, console=console)

        if question.type == "list":
            labels = [choice.name for choice in question.choices]
            index = question.default if isinstance(question.default, int) else 0
            return Prompt.ask(
                question.message,
                choices=labels,
                default=labels[index],
                console=console,
            )

        return self._ask_checkbox(question)

    def _ask_checkbox(self, question: Question) -> list[Any]:
        console.print(f"[prompt]{question.message}[/prompt]")
        for number, choice in enumerate(question.choices, start=1):
            console.print(f"  {number}) {choice.name}")
        checked = [i for i, choice in enumerate(question.choices) if choice.checked]
        keep = ",".join(str(i + 1) for i in checked) or "none"

        while True:
            raw = Prompt.ask(
                f"Enter numbers separated by commas, or 'none' (blank keeps {keep})",
                console=console,
            ).strip()
            if not raw:
                selected: Optional[list[int]] = checked
            elif raw.lower() == "none":
                selected = []
            else:
                selected = _parse_selection(raw, len(question.choices))
            if selected is not None:
                return [question.choices[i].value for i in selected]
            print_warning(f"Please enter numbers between 1 and {len(question.choices)}.")


def _parse_selection(raw: str, count: int) -> Optional[list[int]]:
    """Parse ``"1, 3"`` into sorted zero-based indices, or ``None`` if invalid."""
    indices: set[int] = set()
    for part in raw.replace(" ", "").split(","):
        if not part:
            continue
        if not part.isdigit():
            return None
        number = int(part)
        if not 1 <= number <= count:
            return None
        indices.add(number - 1)
    return sorted(indices)
