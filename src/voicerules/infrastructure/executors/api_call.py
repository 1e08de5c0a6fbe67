"""
API Call Executor

Performs one outbound HTTP request per matched rule and turns the response
body into a spoken reply.
"""

from __future__ import annotations

import json
from typing import Any

import aiohttp
import structlog

from voicerules.core.domain.errors import ConfigurationError, NetworkError
from voicerules.core.domain.outcome import Outcome, Reply
from voicerules.core.domain.rule import ApiCallResponse
from voicerules.core.interfaces.device import DeviceProtocol

logger = structlog.get_logger(__name__)

COMMON_FIELDS = ("message", "text", "content", "data", "result")
BODY_METHODS = ("POST", "PUT")

_MISSING = object()


def _pretty(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def _stringify(value: Any) -> str:
    """Render a decoded JSON value the way a JSON consumer would read it."""
    if isinstance(value, (dict, list)):
        return _pretty(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def extract_json_path(obj: Any, path: str) -> Any:
    """Walk a dot-separated key path into decoded JSON.

    Numeric segments index into lists. Returns ``None`` when any segment
    is missing.
    """
    current = obj
    for key in path.split("."):
        if isinstance(current, dict) and key in current:
            current = current[key]
        elif isinstance(current, list) and key.isdigit() and int(key) < len(current):
            current = current[int(key)]
        else:
            return None
    return current


def parse_api_response(
    raw: str,
    response_type: str = "auto",
    path: str | None = None,
    fallback: str | None = None,
) -> str:
    """Turn a raw response body into reply text.

    Args:
        raw: Response body as text.
        response_type: ``text`` returns the body verbatim; ``json`` and
            ``auto`` decode it first.
        path: Optional dot-separated path to extract from the decoded JSON.
        fallback: Text used when a forced JSON decode or a path lookup fails.

    Returns:
        The reply text.
    """
    if response_type == "text":
        return raw

    try:
        data = json.loads(raw)
    except ValueError as e:
        if response_type == "json":
            logger.warning("api_call.json_decode_failed", error=str(e))
            return fallback or raw
        return raw

    if path:
        extracted = extract_json_path(data, path)
        if extracted is not None:
            return _stringify(extracted)
        logger.warning("api_call.path_not_found", path=path)
        return fallback or _pretty(data)

    if isinstance(data, dict):
        for key in COMMON_FIELDS:
            value = data.get(key, _MISSING)
            if value is not _MISSING and value is not None:
                return _stringify(value)

    return _pretty(data)


class ApiCallExecutor:
    """Call an HTTP endpoint and speak the parsed response."""

    def __init__(self, timeout: float = 30.0) -> None:
        self._timeout = timeout

    async def _request(self, response: ApiCallResponse) -> str:
        if not response.api_url:
            raise ConfigurationError("API URL is not configured")

        method = (response.api_method or "GET").upper()
        headers = {"Content-Type": "application/json", **(response.api_headers or {})}
        body = response.api_body if response.api_body and method in BODY_METHODS else None

        logger.info("api_call.started", url=response.api_url, method=method)
        try:
            async with aiohttp.ClientSession() as session:
                async with session.request(
                    method,
                    response.api_url,
                    headers=headers,
                    data=body,
                    timeout=aiohttp.ClientTimeout(total=self._timeout),
                ) as http_response:
                    raw = await http_response.text(errors="replace")
                    status = http_response.status
        except (aiohttp.ClientError, TimeoutError) as e:
            raise NetworkError(f"request failed: {str(e) or type(e).__name__}") from e

        if not 200 <= status < 300:
            raise NetworkError(f"HTTP {status}: {raw}", status=status, body=raw)

        return raw

    async def execute(self, response: ApiCallResponse, device: DeviceProtocol) -> Outcome:
        try:
            raw = await self._request(response)
        except (ConfigurationError, NetworkError) as e:
            logger.error("api_call.failed", error=e.message, code=e.code)
            return Reply(f"API call failed: {e.message}")

        text = parse_api_response(
            raw,
            response.api_response_type or "auto",
            response.api_response_path,
            response.api_response_fallback,
        )
        return Reply(text)
