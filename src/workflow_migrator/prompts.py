"""Terminal prompts backed by questionary."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

import questionary

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .protocols import Choice

T = TypeVar("T")


class QuestionaryPrompter:
    """Prompter implementation for interactive terminal sessions.

    Ctrl-C raises KeyboardInterrupt, which ends the run.
    """

    indent: str

    def __init__(self, indent: str = "  ") -> None:
        self.indent = indent

    def confirm(self, message: str, *, default: bool) -> bool:
        return bool(questionary.confirm(f"{self.indent}{message}", default=default).unsafe_ask())

    def select_one(self, message: str, choices: Sequence[Choice[T]]) -> T:
        if not choices:
            msg = f"No choices available for: {message}"
            raise ValueError(msg)
        answer: T = questionary.select(
            f"{self.indent}{message}",
            choices=[questionary.Choice(title=choice.label, value=choice.value) for choice in choices],
            instruction="(up/down to move, Enter to select)",
        ).unsafe_ask()
        return answer
