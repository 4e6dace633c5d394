"""Terminal implementation of the form prompt."""

from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from src.chat.prompt import FormField

# Returned by rich when the user presses Enter on a pre-filled field. Compared
# by identity, so typing the mask text literally still counts as a new value.
_KEEP = object()


class ConsolePrompt:
    """Asks each field in turn on the console, then asks for confirmation."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self._console = console or Console()

    def ask(self, title: str, fields: Sequence[FormField]) -> Optional[dict[str, Optional[str]]]:
        self._console.print(f"[bold]{title}[/bold]")
        answers: dict[str, Optional[str]] = {}
        try:
            for f in fields:
                answers[f.name] = self._ask_field(f)
            if not Confirm.ask("Save", console=self._console, default=True):
                return None
        except (KeyboardInterrupt, EOFError):
            self._console.print()
            return None
        return answers

    def _ask_field(self, f: FormField) -> Optional[str]:
        if not f.prefilled:
            return Prompt.ask(f.label, console=self._console, password=f.secret, default="", show_default=False)
        label = f"{f.label} [dim]({escape(f.value)})[/dim]"
        answer = Prompt.ask(label, console=self._console, password=f.secret, default=_KEEP, show_default=False)
        return None if answer is _KEEP else answer
