"""
Unit tests for the API call executor

Covers response parsing (auto/json/text, path extraction, fallbacks) and
the HTTP round trip with mocked aiohttp sessions and a local aiohttp server.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
from aiohttp import test_utils, web
import pytest

from voicerules.core.domain.outcome import Reply
from voicerules.core.domain.rule import ApiCallResponse
from voicerules.infrastructure.executors import ApiCallExecutor
from voicerules.infrastructure.executors.api_call import (
    extract_json_path,
    parse_api_response,
)

_SESSION = "voicerules.infrastructure.executors.api_call.aiohttp.ClientSession"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mock_aiohttp_response(*, text_data="", status=200):
    """Create a mock aiohttp response context manager."""
    response = AsyncMock()
    response.status = status
    response.text = AsyncMock(return_value=text_data)

    ctx = AsyncMock()
    ctx.__aenter__ = AsyncMock(return_value=response)
    ctx.__aexit__ = AsyncMock(return_value=False)
    return ctx


def _mock_session(response_ctx=None, side_effect=None):
    """Create a mock aiohttp.ClientSession as an async context manager."""
    session = MagicMock()
    session.request = MagicMock(return_value=response_ctx, side_effect=side_effect)

    session_ctx = AsyncMock()
    session_ctx.__aenter__ = AsyncMock(return_value=session)
    session_ctx.__aexit__ = AsyncMock(return_value=False)
    return session_ctx, session


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestExtractJsonPath:
    def test_nested_keys(self) -> None:
        assert extract_json_path({"data": {"message": "hi"}}, "data.message") == "hi"

    def test_list_index(self) -> None:
        assert extract_json_path({"items": [{"n": 1}, {"n": 2}]}, "items.1.n") == 2

    def test_missing_segment(self) -> None:
        assert extract_json_path({"data": {}}, "data.message") is None


class TestParseApiResponse:
    def test_path_hit(self) -> None:
        assert parse_api_response('{"data":{"message":"hi"}}', path="data.message") == "hi"

    def test_path_miss_uses_fallback(self) -> None:
        assert parse_api_response('{"data":{}}', path="data.message", fallback="nothing") == "nothing"

    def test_path_miss_without_fallback_pretty_prints(self) -> None:
        assert parse_api_response('{"a":1}', path="b") == json.dumps({"a": 1}, indent=2)

    def test_common_field(self) -> None:
        assert parse_api_response('{"status":1,"result":"done"}') == "done"

    def test_common_field_order(self) -> None:
        assert parse_api_response('{"text":"t","message":"m"}') == "m"

    def test_no_common_field_pretty_prints(self) -> None:
        assert parse_api_response('{"temp":21}') == '{\n  "temp": 21\n}'

    def test_text_mode_is_verbatim(self) -> None:
        assert parse_api_response('{"message":"m"}', response_type="text") == '{"message":"m"}'

    def test_auto_mode_non_json_is_raw(self) -> None:
        assert parse_api_response("plain words") == "plain words"

    def test_json_mode_decode_failure_uses_fallback(self) -> None:
        assert parse_api_response("oops", response_type="json", fallback="bad data") == "bad data"
        assert parse_api_response("oops", response_type="json") == "oops"

    def test_non_string_values(self) -> None:
        assert parse_api_response('{"ok":true}', path="ok") == "true"
        assert parse_api_response('{"n":3.0}', path="n") == "3"


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class TestApiCallExecutor:
    async def test_extracts_path_from_response(self, device) -> None:
        session_ctx, _ = _mock_session(
            _mock_aiohttp_response(text_data='{"data":{"message":"hi"}}')
        )
        response = ApiCallResponse(api_url="http://svc/x", api_response_path="data.message")

        with patch(_SESSION, return_value=session_ctx):
            outcome = await ApiCallExecutor().execute(response, device)

        assert outcome == Reply("hi")

    async def test_post_sends_body_and_merged_headers(self, device) -> None:
        session_ctx, session = _mock_session(_mock_aiohttp_response(text_data='{"message":"ok"}'))
        response = ApiCallResponse(
            api_url="http://svc/x",
            api_method="post",
            api_headers={"Authorization": "Bearer t"},
            api_body='{"q":1}',
        )

        with patch(_SESSION, return_value=session_ctx):
            await ApiCallExecutor().execute(response, device)

        args, kwargs = session.request.call_args
        assert args == ("POST", "http://svc/x")
        assert kwargs["data"] == '{"q":1}'
        assert kwargs["headers"] == {
            "Content-Type": "application/json",
            "Authorization": "Bearer t",
        }

    async def test_get_never_sends_body(self, device) -> None:
        session_ctx, session = _mock_session(_mock_aiohttp_response(text_data="ok"))
        response = ApiCallResponse(api_url="http://svc/x", api_body='{"q":1}')

        with patch(_SESSION, return_value=session_ctx):
            await ApiCallExecutor().execute(response, device)

        assert session.request.call_args.kwargs["data"] is None

    async def test_http_error_status(self, device) -> None:
        session_ctx, _ = _mock_session(_mock_aiohttp_response(text_data="down", status=503))

        with patch(_SESSION, return_value=session_ctx):
            outcome = await ApiCallExecutor().execute(ApiCallResponse(api_url="http://svc/x"), device)

        assert outcome == Reply("API call failed: HTTP 503: down")

    async def test_transport_error(self, device) -> None:
        session_ctx, _ = _mock_session(side_effect=aiohttp.ClientConnectionError("refused"))

        with patch(_SESSION, return_value=session_ctx):
            outcome = await ApiCallExecutor().execute(ApiCallResponse(api_url="http://svc/x"), device)

        assert outcome == Reply("API call failed: request failed: refused")

    async def test_missing_url(self, device) -> None:
        outcome = await ApiCallExecutor().execute(ApiCallResponse(), device)
        assert outcome == Reply("API call failed: API URL is not configured")


class TestApiCallOverHttp:
    """Round trips against a local aiohttp server."""

    @staticmethod
    def _app(body: bytes, content_type: str) -> web.Application:
        async def handler(request: web.Request) -> web.Response:
            return web.Response(body=body, headers={"Content-Type": content_type})

        app = web.Application()
        app.router.add_get("/x", handler)
        return app

    async def test_undecodable_body_is_replaced_not_raised(self, device) -> None:
        app = self._app(b"\xff\xfe bad", "text/plain; charset=utf-8")

        async with test_utils.TestServer(app) as server:
            response = ApiCallResponse(api_url=str(server.make_url("/x")))
            outcome = await ApiCallExecutor(timeout=5).execute(response, device)

        assert isinstance(outcome, Reply)
        assert outcome.text == "\ufffd\ufffd bad"

    async def test_json_body(self, device) -> None:
        app = self._app(b'{"message":"hello"}', "application/json")

        async with test_utils.TestServer(app) as server:
            response = ApiCallResponse(api_url=str(server.make_url("/x")))
            outcome = await ApiCallExecutor(timeout=5).execute(response, device)

        assert outcome == Reply("hello")
