"""
Remote Code Executor

Ships rule code to an isolated process execution service and speaks
whatever the process printed.
"""

from __future__ import annotations

from typing import Any

import aiohttp
import structlog

from voicerules.core.domain.errors import (
    ConfigurationError,
    ExecutionError,
    NetworkError,
    RuleTimeoutError,
    VoiceRulesError,
)
from voicerules.core.domain.outcome import Outcome, Reply
from voicerules.core.domain.rule import RemoteCodeResponse
from voicerules.core.interfaces.device import DeviceProtocol

logger = structlog.get_logger(__name__)

DEFAULT_REPLY = "Execution complete"


class RemoteCodeExecutor:
    """Run python/node code through the execution service's ``/execute``."""

    async def _call(self, response: RemoteCodeResponse) -> dict[str, Any]:
        if not response.remote_url or not response.remote_code:
            raise ConfigurationError("Remote execution URL or code is not configured")

        timeout = float(response.remote_timeout or 30)
        payload = {
            "language": response.language,
            "code": response.remote_code,
            "timeout": timeout,
        }

        logger.info(
            "remote_code.started",
            url=response.remote_url,
            language=response.language,
            timeout=timeout,
        )
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    response.remote_url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=timeout),
                ) as http_response:
                    status = http_response.status
                    if not 200 <= status < 300:
                        body = await http_response.text()
                        raise NetworkError(
                            f"remote service returned {status}", status=status, body=body
                        )
                    result = await http_response.json(content_type=None)
        except TimeoutError as e:
            raise RuleTimeoutError(
                f"remote execution timed out after {timeout:g}s", timeout=timeout
            ) from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"request failed: {str(e) or type(e).__name__}") from e
        except ValueError as e:
            raise NetworkError(f"invalid response from remote service: {e}") from e

        if not isinstance(result, dict):
            raise NetworkError("invalid response from remote service")
        if result.get("error"):
            raise ExecutionError(f"remote error: {result['error']}")
        return result

    async def execute(
        self, response: RemoteCodeResponse, device: DeviceProtocol
    ) -> Outcome:
        try:
            result = await self._call(response)
        except VoiceRulesError as e:
            logger.error("remote_code.failed", error=e.message, code=e.code)
            return Reply(f"Remote execution failed: {e.message}")

        logger.info("remote_code.completed", exit_code=result.get("exitCode"))
        return Reply(result.get("output") or result.get("result") or DEFAULT_REPLY)
