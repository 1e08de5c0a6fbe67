"""Tests for device event parsing and the speech event channel."""

import json
from unittest.mock import AsyncMock

from voicerules.application.speech_events import (
    PlaybackEvent,
    SpeechEventChannel,
    UtteranceEvent,
    WakeWordEvent,
    parse_device_event,
)


def _instruction(text: str, is_final: bool = True) -> str:
    line = {
        "header": {"namespace": "SpeechRecognizer", "name": "RecognizeResult"},
        "payload": {"is_final": is_final, "results": [{"text": text}]},
    }
    return json.dumps({"event": "instruction", "data": {"NewLine": json.dumps(line)}})


class TestParseDeviceEvent:
    def test_final_recognition_result(self) -> None:
        event = parse_device_event(_instruction("open light"))
        assert isinstance(event, UtteranceEvent)
        assert event.text == "open light"
        assert event.id

    def test_partial_result_ignored(self) -> None:
        assert parse_device_event(_instruction("open", is_final=False)) is None

    def test_other_instruction_ignored(self) -> None:
        line = {"header": {"namespace": "AudioPlayer", "name": "Play"}, "payload": {}}
        raw = {"event": "instruction", "data": {"NewLine": json.dumps(line)}}
        assert parse_device_event(raw) is None

    def test_playing_status(self) -> None:
        assert parse_device_event({"event": "playing", "data": "Playing"}) == PlaybackEvent("playing")
        assert parse_device_event({"event": "playing", "data": "Paused"}) == PlaybackEvent("paused")
        assert parse_device_event({"event": "playing", "data": "Stopped"}) == PlaybackEvent("idle")

    def test_wake_word(self) -> None:
        assert parse_device_event({"event": "kws", "data": "xiaoai"}) == WakeWordEvent("xiaoai")

    def test_malformed_json(self) -> None:
        assert parse_device_event("{not json") is None


class TestSpeechEventChannel:
    async def test_publish_in_registration_order(self) -> None:
        seen = []
        channel = SpeechEventChannel()

        async def first(event):
            seen.append(("first", event))

        async def second(event):
            seen.append(("second", event))

        channel.subscribe(first)
        channel.subscribe(second)
        event = WakeWordEvent("xiaoai")
        await channel.publish(event)

        assert seen == [("first", event), ("second", event)]

    async def test_failing_subscriber_does_not_block_others(self) -> None:
        channel = SpeechEventChannel()
        broken = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        channel.subscribe(broken)
        channel.subscribe(healthy)

        await channel.publish(PlaybackEvent("idle"))

        healthy.assert_awaited_once()

    async def test_publish_raw_parses_first(self) -> None:
        channel = SpeechEventChannel()
        handler = AsyncMock()
        channel.subscribe(handler)

        event = await channel.publish_raw(_instruction("hello"))
        ignored = await channel.publish_raw(_instruction("hel", is_final=False))

        assert isinstance(event, UtteranceEvent)
        assert ignored is None
        handler.assert_awaited_once_with(event)
