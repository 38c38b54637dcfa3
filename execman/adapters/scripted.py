"""
Scripted decisions — headless DecisionProvider with canned answers.

Used by tests and non-terminal callers. Answers are consumed in order;
running out raises, so an unexpected prompt fails loudly instead of
silently picking a default.
"""

from __future__ import annotations

from execman.adapters.base import DecisionProvider


class ScriptedDecisions(DecisionProvider):
    """DecisionProvider that replays a fixed list of answers."""

    def __init__(self, answers: list[str] | None = None):
        self._answers = list(answers or [])
        self._questions: list[str] = []
        self._messages: list[str] = []

    @property
    def questions(self) -> list[str]:
        """Every question asked so far."""
        return self._questions

    @property
    def messages(self) -> list[str]:
        """Every notification shown so far."""
        return self._messages

    @property
    def remaining(self) -> int:
        return len(self._answers)

    def ask(self, question: str) -> str:
        self._questions.append(question)
        if not self._answers:
            raise RuntimeError(f"No scripted answer for prompt: {question!r}")
        return self._answers.pop(0)

    def notify(self, message: str) -> None:
        self._messages.append(message)
