"""User-facing notification sinks.

Services report failures through an object with a single ``error(message)``
method. The return value is never used.
"""

from __future__ import annotations

from typing import Protocol

from rich.console import Console


class Notifier(Protocol):
    def error(self, message: str) -> None: ...


class ConsoleNotifier:
    """Print error notifications to a rich console (stderr by default)."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)

    def error(self, message: str) -> None:
        self.console.print(message, style="red", markup=False, highlight=False)


class NullNotifier:
    """Discard notifications (scripts and batch jobs)."""

    def error(self, message: str) -> None:
        return None
