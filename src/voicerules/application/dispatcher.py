"""Action dispatch for matched rules.

Selects exactly one executor by response kind and guarantees that nothing
escapes to the caller: executors convert their own faults, and anything
they let through (sandbox faults, bugs) becomes the generic failure reply.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import assert_never

import structlog

from voicerules.core.domain.errors import UnknownKindError
from voicerules.core.domain.outcome import Outcome, Reply
from voicerules.core.domain.rule import (
    ApiCallResponse,
    AudioResponse,
    BuiltInCommandResponse,
    LocalCodeResponse,
    RemoteCodeResponse,
    Rule,
    SandboxCodeResponse,
    TerminalCommandResponse,
    TextResponse,
    UnknownResponse,
)
from voicerules.core.interfaces.device import DeviceProtocol
from voicerules.core.interfaces.executor import ExecutorProtocol
from voicerules.infrastructure.executors import (
    ApiCallExecutor,
    AudioExecutor,
    DeviceCommandExecutor,
    LocalCodeExecutor,
    RemoteCodeExecutor,
    ReplyExecutor,
    SandboxCodeExecutor,
    TerminalCommandExecutor,
)
from voicerules.infrastructure.executors.speech import SETTLE_DELAY_SECONDS

logger = structlog.get_logger(__name__)

GENERIC_FAILURE = "Failed to execute custom rule"
DEVICE_UNAVAILABLE = "System error: device handle unavailable"


@dataclass
class ExecutorSet:
    """One executor per response kind."""

    reply: ExecutorProtocol[TextResponse] = field(default_factory=ReplyExecutor)
    audio: ExecutorProtocol[AudioResponse] = field(default_factory=AudioExecutor)
    device_command: ExecutorProtocol[BuiltInCommandResponse] = field(default_factory=DeviceCommandExecutor)
    local_code: ExecutorProtocol[LocalCodeResponse] = field(default_factory=LocalCodeExecutor)
    sandbox_code: ExecutorProtocol[SandboxCodeResponse] = field(default_factory=SandboxCodeExecutor)
    api_call: ExecutorProtocol[ApiCallResponse] = field(default_factory=ApiCallExecutor)
    remote_code: ExecutorProtocol[RemoteCodeResponse] = field(default_factory=RemoteCodeExecutor)
    terminal: ExecutorProtocol[TerminalCommandResponse] = field(default_factory=TerminalCommandExecutor)

    @classmethod
    def create(
        cls,
        *,
        settle_delay: float = SETTLE_DELAY_SECONDS,
        api_timeout: float = 30.0,
    ) -> ExecutorSet:
        """Build the default executors with the given timings."""
        return cls(
            reply=ReplyExecutor(settle_delay),
            audio=AudioExecutor(settle_delay),
            device_command=DeviceCommandExecutor(settle_delay),
            api_call=ApiCallExecutor(timeout=api_timeout),
        )


class ActionDispatcher:
    """Run the matched rule's response through its executor."""

    def __init__(self, executors: ExecutorSet | None = None) -> None:
        self._executors = executors or ExecutorSet()

    async def _run(self, rule: Rule, device: DeviceProtocol) -> Outcome:
        response = rule.response
        ex = self._executors
        match response:
            case TextResponse():
                return await ex.reply.execute(response, device)
            case AudioResponse():
                return await ex.audio.execute(response, device)
            case BuiltInCommandResponse():
                return await ex.device_command.execute(response, device)
            case LocalCodeResponse():
                return await ex.local_code.execute(response, device)
            case SandboxCodeResponse():
                return await ex.sandbox_code.execute(response, device)
            case ApiCallResponse():
                return await ex.api_call.execute(response, device)
            case RemoteCodeResponse():
                return await ex.remote_code.execute(response, device)
            case TerminalCommandResponse():
                return await ex.terminal.execute(response, device)
            case UnknownResponse():
                raise UnknownKindError(response.type)
            case _:
                assert_never(response)

    async def dispatch(self, rule: Rule, device: DeviceProtocol | None) -> Outcome:
        """Execute a matched rule and return its outcome.

        Never raises: unknown kinds yield ``None`` and any fault an executor
        does not handle itself yields the generic failure reply.
        """
        if device is None:
            logger.error("dispatcher.device_unavailable", rule_id=rule.id)
            return Reply(DEVICE_UNAVAILABLE)

        logger.info(
            "dispatcher.rule_matched",
            rule_id=rule.id,
            keyword=rule.trigger.keyword,
            trigger_type=rule.trigger.type.value,
            response_type=rule.response.type,
        )
        try:
            return await self._run(rule, device)
        except UnknownKindError as e:
            logger.warning("dispatcher.unknown_kind", rule_id=rule.id, kind=e.kind)
            return None
        except Exception as e:
            logger.error(
                "dispatcher.rule_failed",
                rule_id=rule.id,
                response_type=rule.response.type,
                error=str(e),
                error_type=type(e).__name__,
            )
            return Reply(GENERIC_FAILURE)
