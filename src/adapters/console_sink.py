"""Rich console delivery adapter.

Prints every decision that reaches the delivery sink. Used by the replay
command to make a recorded signal log readable.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from rich.console import Console
from rich.panel import Panel

from adapters.notification_formatting import format_notification_text

LOGGER = logging.getLogger(__name__)


class ConsoleSink:
    """Delivery sink that renders decisions with rich."""

    def __init__(
        self,
        console: Console,
        url_template: str,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._console = console
        self._url_template = url_template
        self._clock = clock
        self.badge_count = 0
        self.call_prompt_visible = False

    def _stamp(self) -> str:
        if self._clock is None:
            return ""
        return f"[dim]{self._clock():8.2f}s[/dim] "

    def deliver_notification(self, title: str, body: str, conversation_id: Optional[str], is_call: bool) -> None:
        text = format_notification_text(title, body, conversation_id, is_call, self._url_template)
        border = "green" if is_call else "cyan"
        self._console.print(self._stamp() + "notification")
        self._console.print(Panel(text, border_style=border, expand=False))

    def update_badge_count(self, count: int) -> None:
        self.badge_count = count
        label = str(count) if count else "cleared"
        self._console.print(f"{self._stamp()}badge → [bold magenta]{label}[/bold magenta]")

    def prompt_incoming_call(self, conversation_id: Optional[str]) -> None:
        self.call_prompt_visible = True
        target = conversation_id or "unknown conversation"
        self._console.print(f"{self._stamp()}[bold green]incoming call[/bold green] ({target})")

    def clear_call_prompt(self, reason: str) -> None:
        self.call_prompt_visible = False
        self._console.print(f"{self._stamp()}call prompt cleared ({reason})")


class LoggingRescraper:
    """Rescrape port for offline replay: the log already holds scrape results."""

    def __init__(self) -> None:
        self.requests = 0

    def request_rescrape(self) -> None:
        self.requests += 1
        LOGGER.info("Re-scrape requested")
