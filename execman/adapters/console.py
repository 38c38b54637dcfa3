"""
Console decisions — DecisionProvider backed by the terminal via click.
"""

from __future__ import annotations

import click

from execman.adapters.base import DecisionProvider


class ConsoleDecisions(DecisionProvider):
    """Prompts on stdin/stdout. EOF or Ctrl-D counts as no answer."""

    def ask(self, question: str) -> str:
        try:
            return click.prompt(
                question, default="", show_default=False, prompt_suffix=" "
            )
        except click.Abort:
            click.echo()
            return ""

    def notify(self, message: str) -> None:
        click.echo(message)
