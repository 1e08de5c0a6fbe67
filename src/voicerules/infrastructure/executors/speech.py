"""
Speech Executors

Reply, audio and built-in command responses. All three talk to the device
only through the capability handle.

After interrupting the device's own reply, the speaker needs a settle delay
before it accepts new audio or commands; issuing them immediately drops
the audio. The delay is applied whenever an executor interrupts.
"""

from __future__ import annotations

import structlog

from voicerules.core.domain.errors import ConfigurationError
from voicerules.core.domain.outcome import Handled, Outcome, Reply
from voicerules.core.domain.rule import (
    AudioResponse,
    BuiltInCommandResponse,
    TextResponse,
)
from voicerules.core.interfaces.device import DeviceProtocol

logger = structlog.get_logger(__name__)

SETTLE_DELAY_SECONDS = 2.0


async def interrupt_and_settle(device: DeviceProtocol, settle_delay: float) -> None:
    """Interrupt current playback and wait for the device to recover."""
    await device.interrupt_current_playback()
    await device.sleep(int(settle_delay * 1000))


class ReplyExecutor:
    """Return a text reply, or speak it directly when interrupting."""

    def __init__(self, settle_delay: float = SETTLE_DELAY_SECONDS) -> None:
        self._settle_delay = settle_delay

    async def execute(self, response: TextResponse, device: DeviceProtocol) -> Outcome:
        if not response.abort_xiaoai:
            return Reply(response.text)

        await interrupt_and_settle(device, self._settle_delay)
        await device.play(text=response.text, blocking=response.play_blocking)
        return Handled()


class AudioExecutor:
    """Interrupt, then play optional spoken text and/or an audio URL."""

    def __init__(self, settle_delay: float = SETTLE_DELAY_SECONDS) -> None:
        self._settle_delay = settle_delay

    async def execute(self, response: AudioResponse, device: DeviceProtocol) -> Outcome:
        await interrupt_and_settle(device, self._settle_delay)

        if response.audio_text:
            await device.play(text=response.audio_text, blocking=True)

        if response.audio_url:
            await device.play(url=response.audio_url)

        return Handled()


class DeviceCommandExecutor:
    """Forward a built-in command through the silent command channel."""

    def __init__(self, settle_delay: float = SETTLE_DELAY_SECONDS) -> None:
        self._settle_delay = settle_delay

    async def execute(
        self, response: BuiltInCommandResponse, device: DeviceProtocol
    ) -> Outcome:
        command = response.built_in_command
        try:
            if not command:
                raise ConfigurationError("Built-in command is not configured")

            if response.abort_xiaoai:
                logger.info("device_command.interrupting")
                await interrupt_and_settle(device, self._settle_delay)

            logger.info("device_command.sending", command=command)
            await device.send_silent_command(command)
            logger.info("device_command.completed", command=command)
            return Handled()
        except Exception as e:
            logger.error("device_command.failed", command=command, error=str(e))
            return Reply(f"Built-in command failed: {e}")
