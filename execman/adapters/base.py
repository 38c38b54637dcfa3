"""
Decision provider — the contract between the engines and whoever answers prompts.

The engines never read stdin or print directly. Every question that
resolves an ambiguity goes through a DecisionProvider, so the same
engine runs behind a terminal (ConsoleDecisions) or headless in tests
and automation (ScriptedDecisions).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

_YES = ("y", "yes")
_NO = ("n", "no")


class DecisionProvider(ABC):
    """Answers the engine's prompts.

    Implementations return the operator's raw answer; interpretation
    (yes/no, numeric choices, defaults) belongs to the caller so every
    provider resolves unrecognized input the same way.
    """

    @abstractmethod
    def ask(self, question: str) -> str:
        """Pose ``question`` and return the raw answer ('' for none)."""

    @abstractmethod
    def notify(self, message: str) -> None:
        """Show an informational line to the operator."""

    def confirm(self, question: str, default: bool = False) -> bool:
        """Yes/no question. Anything unrecognized resolves to ``default``."""
        answer = self.ask(question).strip().lower()
        if answer in _YES:
            return True
        if answer in _NO:
            return False
        return default

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
