from __future__ import annotations
from typing import Any
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.text import Text
from .models import StreamOutcome


class Reporter:
    def __init__(self, console: Console) -> None:
        self.console = console

    def value(self, data: Any) -> None:
        self.console.print_json(data=data)

    def text(self, data: str) -> None:
        self.console.print(data, markup=False, highlight=False, soft_wrap=True)

    def segment(self, segment: str) -> None:
        self.console.print(Text(segment), soft_wrap=True)

    def error(self, exc: BaseException) -> None:
        title = Text(type(exc).__name__, style="bold red")
        self.console.print(Panel.fit(Text(str(exc)), title=title))

    def outcome(self, outcome: StreamOutcome) -> None:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Status", width=10)
        table.add_column("Segments")
        table.add_column("Error")
        status = "✅" if outcome.completed else "❌"
        error = "" if outcome.error is None else f"{type(outcome.error).__name__}: {outcome.error}"
        table.add_row(f"{status} {outcome.status.value}", str(outcome.segments), error)
        style = "bold green" if outcome.completed else "bold red"
        self.console.print(Panel.fit(table, title=Text("Stream", style=style)))

    def exit_code(self, outcome: StreamOutcome) -> int:
        return 0 if outcome.completed else 1
