"""Interactive prompt capability.

Services never read the terminal directly; they ask a ``PromptProvider``.
The CLI wires in ``RichPromptProvider``; tests script the answers.
"""

from collections.abc import Sequence
from typing import Protocol

from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table


class PromptProvider(Protocol):
    """Answers operator questions synchronously."""

    def confirm(self, message: str, default: bool = True) -> bool: ...

    def text(self, message: str, default: str | None = None) -> str: ...

    def select(self, message: str, choices: Sequence[tuple[str, str]]) -> str | None:
        """Pick one of ``(label, value)`` choices; None when nothing is chosen."""
        ...


class RichPromptProvider:
    """Terminal prompts rendered with rich."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def confirm(self, message: str, default: bool = True) -> bool:
        return Confirm.ask(message, default=default, console=self.console)

    def text(self, message: str, default: str | None = None) -> str:
        if default is None:
            return Prompt.ask(message, console=self.console)
        return Prompt.ask(message, default=default, console=self.console)

    def select(self, message: str, choices: Sequence[tuple[str, str]]) -> str | None:
        if not choices:
            return None

        table = Table(title=message, show_header=False, box=None)
        for index, (label, _) in enumerate(choices, start=1):
            table.add_row(f"[bold]{index}[/bold]", label)
        table.add_row("[bold]0[/bold]", "cancel")
        self.console.print(table)

        picked = IntPrompt.ask(
            "Choice",
            choices=[str(i) for i in range(len(choices) + 1)],
            default=1,
            show_choices=False,
            console=self.console,
        )
        if picked == 0:
            return None
        return choices[picked - 1][1]
