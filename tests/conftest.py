"""Test configuration and shared fixtures."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from voicerules.core.domain.rule import Rule, TextResponse, Trigger, TriggerType
from voicerules.infrastructure.persistence import FileRuleStore


@pytest.fixture
def device():
    """Capability handle double; call order is visible in ``device.mock_calls``."""
    handle = MagicMock()
    handle.interrupt_current_playback = AsyncMock()
    handle.play = AsyncMock()
    handle.send_silent_command = AsyncMock()
    handle.sleep = AsyncMock()
    return handle


@pytest.fixture
def store(tmp_path):
    return FileRuleStore(tmp_path / "data")


@pytest.fixture
def make_rule():
    """Factory for in-memory rules with a text reply by default."""

    def _make(
        keyword: str = "open light",
        trigger_type: TriggerType = TriggerType.CONTAINS,
        response=None,
        **kwargs,
    ) -> Rule:
        return Rule(
            trigger=Trigger(type=trigger_type, keyword=keyword),
            response=response or TextResponse(text="OK"),
            **kwargs,
        )

    return _make
