"""
Confirmation capability for destructive operations.

Coordinators never read the terminal directly; they ask a Confirmer.
Only the literal answer "yes" confirms.
"""

from typing import Protocol

import click
import typer

CONFIRM_WORD = "yes"


class Confirmer(Protocol):
    def confirm(self, prompt: str) -> bool:
        ...


class PromptConfirmer:
    """Asks on the terminal; anything but "yes" (or end of input) declines."""

    def confirm(self, prompt: str) -> bool:
        try:
            answer = typer.prompt(f"{prompt} (yes/no)", default="", show_default=False)
        except click.exceptions.Abort:
            return False
        return answer.strip() == CONFIRM_WORD
