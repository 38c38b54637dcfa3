"""Adapters — how the engines reach the operator.

Public re-exports for convenient access.
"""

from execman.adapters.base import DecisionProvider
from execman.adapters.console import ConsoleDecisions
from execman.adapters.scripted import ScriptedDecisions

__all__ = [
    "ConsoleDecisions",
    "DecisionProvider",
    "ScriptedDecisions",
]
