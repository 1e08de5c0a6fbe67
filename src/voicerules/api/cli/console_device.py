"""Device stand-in that prints actions instead of driving a speaker."""

from __future__ import annotations

import asyncio

from rich.console import Console
from rich.markup import escape


class ConsoleDevice:
    """DeviceProtocol implementation for dry runs from the terminal.

    ``sleep`` is skipped unless ``real_sleep`` is set so a dry run returns
    immediately.
    """

    def __init__(self, console: Console | None = None, real_sleep: bool = False) -> None:
        self._console = console or Console()
        self._real_sleep = real_sleep

    async def interrupt_current_playback(self) -> None:
        self._console.print("[yellow]interrupt playback[/yellow]")

    async def play(
        self,
        *,
        text: str | None = None,
        url: str | None = None,
        blocking: bool = False,
    ) -> None:
        mode = "blocking" if blocking else "async"
        if text is not None:
            self._console.print(f"[green]say ({mode}):[/green] {escape(text)}")
        if url is not None:
            self._console.print(f"[green]play ({mode}):[/green] {escape(url)}")

    async def send_silent_command(self, command: str) -> None:
        self._console.print(f"[magenta]command:[/magenta] {escape(command)}")

    async def sleep(self, ms: int) -> None:
        self._console.print(f"[dim]wait {ms}ms[/dim]")
        if self._real_sleep:
            await asyncio.sleep(ms / 1000)
