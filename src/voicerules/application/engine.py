"""Rule dispatch engine.

Entry point for the conversation pipeline: one utterance in, one outcome
out. The rule snapshot is re-read from the store on every utterance, so
admin edits apply from the next turn on without any caching here.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import structlog

from voicerules.application.dispatcher import ActionDispatcher
from voicerules.application.rule_matcher import match_rule
from voicerules.application.speech_events import (
    DeviceEvent,
    Subscriber,
    UtteranceEvent,
)
from voicerules.core.domain.outcome import Outcome, Reply
from voicerules.core.domain.rule import Rule
from voicerules.core.domain.settings import AppSettings
from voicerules.core.interfaces.device import DeviceProtocol, SpeechEventSourceProtocol
from voicerules.core.interfaces.rule_store import RuleStoreProtocol

logger = structlog.get_logger(__name__)

Fallback = Callable[[str], Awaitable[None]]


@dataclass(frozen=True)
class EngineContext:
    """Immutable snapshot of enabled rules and settings for one turn."""

    rules: tuple[Rule, ...] = ()
    settings: AppSettings = field(default_factory=AppSettings)

    @property
    def call_ai_keywords(self) -> list[str]:
        return list(self.settings.call_ai_keywords)

    @property
    def system_prompt(self) -> str:
        return self.settings.system_prompt

    @property
    def history_max_length(self) -> int:
        return self.settings.history_max_length

    @property
    def openai_api_key(self) -> str | None:
        return self.settings.openai.api_key if self.settings.openai else None

    @property
    def openai_base_url(self) -> str | None:
        return self.settings.openai.base_url if self.settings.openai else None

    @property
    def openai_model(self) -> str | None:
        return self.settings.openai.model if self.settings.openai else None


class RuleDispatchEngine:
    """Match utterances against stored rules and run the matched action."""

    def __init__(
        self,
        store: RuleStoreProtocol,
        dispatcher: ActionDispatcher | None = None,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher or ActionDispatcher()
        self._context = EngineContext()
        self._turn_lock = asyncio.Lock()

    @property
    def context(self) -> EngineContext:
        """The most recently loaded snapshot."""
        return self._context

    async def reload(self) -> EngineContext:
        """Re-read enabled rules and settings from the store.

        On a store failure the previous snapshot stays in effect.
        """
        try:
            rules = await self._store.enabled_rules()
            settings = await self._store.load_settings()
        except Exception as e:
            logger.error("engine.reload_failed", error=str(e))
            return self._context

        self._context = EngineContext(rules=tuple(rules), settings=settings)
        return self._context

    async def handle_message(self, device: DeviceProtocol | None, text: str) -> Outcome:
        """Handle one utterance.

        Returns:
            ``Reply``, ``Handled``, or ``None`` when no rule matched and the
            caller should continue with its default handling.
        """
        async with self._turn_lock:
            context = await self.reload()
            rule = match_rule(text, context.rules)
            if rule is None:
                logger.debug("engine.no_match", text=text)
                return None
            return await self._dispatcher.dispatch(rule, device)

    def attach(
        self,
        channel: SpeechEventSourceProtocol,
        device: DeviceProtocol,
        fallback: Fallback | None = None,
    ) -> Subscriber:
        """Route final utterances from ``channel`` through this engine.

        Replies are spoken on the device; a no-match goes to ``fallback``.

        Args:
            channel: Event channel owned by the device collaborator.
            device: Capability handle passed to executors.
            fallback: Called with the utterance when no rule matched.

        Returns:
            The registered subscriber, for ``channel.unsubscribe``.
        """

        async def _on_event(event: DeviceEvent) -> None:
            if not isinstance(event, UtteranceEvent):
                return
            outcome = await self.handle_message(device, event.text)
            if isinstance(outcome, Reply):
                await device.play(text=outcome.text, blocking=True)
            elif outcome is None and fallback is not None:
                await fallback(event.text)

        channel.subscribe(_on_event)
        return _on_event
