"""
Capability Handle Protocol

The narrow interface through which executors affect the physical speaker.
It is owned by the voice/device collaborator; the dispatch engine never
touches hardware directly.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

EventHandler = Callable[[Any], Awaitable[None]]


class DeviceProtocol(Protocol):
    """Operations the engine may perform on the voice device."""

    async def interrupt_current_playback(self) -> None:
        """Abort whatever the device is currently saying or playing."""
        ...

    async def play(
        self,
        *,
        text: str | None = None,
        url: str | None = None,
        blocking: bool = False,
    ) -> None:
        """Speak ``text`` or stream audio from ``url``.

        Args:
            text: Text to synthesize.
            url: Audio URL to stream.
            blocking: Wait until playback finishes before returning.
        """
        ...

    async def send_silent_command(self, command: str) -> None:
        """Forward an opaque built-in command without spoken acknowledgment."""
        ...

    async def sleep(self, ms: int) -> None:
        """Pause for ``ms`` milliseconds."""
        ...


class SpeechEventSourceProtocol(Protocol):
    """Observer registration for device events (playback status, utterances)."""

    def subscribe(self, handler: EventHandler) -> None:
        ...

    def unsubscribe(self, handler: EventHandler) -> None:
        ...
