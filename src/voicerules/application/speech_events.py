"""Device speech events and an explicit observer channel for them.

The device collaborator publishes raw event JSON; subscribers register on a
``SpeechEventChannel`` instead of reaching into process-global state.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Union
from uuid import uuid4

import structlog

from voicerules.core.utils.time import epoch_ms

logger = structlog.get_logger(__name__)

_PLAYBACK_STATUS = {"Playing": "playing", "Paused": "paused"}


@dataclass(frozen=True)
class PlaybackEvent:
    """Playback status changed: ``playing``, ``paused`` or ``idle``."""

    status: str


@dataclass(frozen=True)
class UtteranceEvent:
    """A final speech recognition result."""

    text: str
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: int = field(default_factory=epoch_ms)


@dataclass(frozen=True)
class WakeWordEvent:
    keyword: str


DeviceEvent = Union[PlaybackEvent, UtteranceEvent, WakeWordEvent]
Subscriber = Callable[[DeviceEvent], Awaitable[None]]


def _decode(raw: Any) -> Any:
    if isinstance(raw, (str, bytes)):
        try:
            return json.loads(raw)
        except ValueError:
            return None
    return raw


def _recognized_text(line: Any) -> str | None:
    if not isinstance(line, dict):
        return None
    header = line.get("header") or {}
    payload = line.get("payload") or {}
    if header.get("namespace") != "SpeechRecognizer" or header.get("name") != "RecognizeResult":
        return None
    if not payload.get("is_final"):
        return None
    results = payload.get("results") or []
    if not results or not isinstance(results[0], dict):
        return None
    return results[0].get("text") or None


def parse_device_event(raw: str | bytes | dict[str, Any]) -> DeviceEvent | None:
    """Decode one raw device event.

    Returns ``None`` for events that carry nothing the engine acts on,
    including non-final recognition results and malformed JSON.
    """
    event = _decode(raw)
    if not isinstance(event, dict):
        return None

    kind = event.get("event")
    data = event.get("data")
    if kind == "playing":
        return PlaybackEvent(status=_PLAYBACK_STATUS.get(str(data), "idle"))
    if kind == "instruction" and isinstance(data, dict) and data.get("NewLine"):
        text = _recognized_text(_decode(data["NewLine"]))
        return UtteranceEvent(text=text) if text else None
    if kind == "kws":
        return WakeWordEvent(keyword=str(data))
    return None


class SpeechEventChannel:
    """Observer registration for device events.

    Subscribers run one after another in registration order, so a single
    utterance is fully handled before the next event is delivered.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, handler: Subscriber) -> None:
        if handler not in self._subscribers:
            self._subscribers.append(handler)

    def unsubscribe(self, handler: Subscriber) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    async def publish(self, event: DeviceEvent) -> None:
        for handler in list(self._subscribers):
            try:
                await handler(event)
            except Exception as e:
                logger.error(
                    "speech_events.subscriber_failed",
                    event_type=type(event).__name__,
                    error=str(e),
                )

    async def publish_raw(self, raw: str | bytes | dict[str, Any]) -> DeviceEvent | None:
        """Parse a raw device event and publish it if it is meaningful."""
        event = parse_device_event(raw)
        if event is not None:
            await self.publish(event)
        return event
