"""
Tests for remote move suggestions against a mocked completions endpoint.
"""

import json

import httpx
import pytest

from conftest import board_of
from tictactoe.config import Settings
from tictactoe.core import Board
from tictactoe.remote import RemoteMoveStrategy, build_prompt, parse_move

BOARD = board_of("X___O___X")  # empty cells: 1, 2, 3, 5, 6, 7


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _strategy(handler, api_key="sk-test"):
    settings = Settings(openai_api_key=api_key, openai_url="https://llm.test/v1/chat/completions")
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return RemoteMoveStrategy(settings, client=client)


class TestParseMove:
    @pytest.mark.parametrize("text, expected", [("2", 2), (" 6\n", 6), ("Move: 7.", 7), ("5 or 3", 5)])
    def test_accepts_first_integer_on_empty_cell(self, text, expected):
        assert parse_move(text, BOARD) == expected

    @pytest.mark.parametrize("text", [None, "", "centre", "4", "0", "9", "42"])
    def test_rejects_unusable_answers(self, text):
        assert parse_move(text, BOARD) is None


def test_prompt_embeds_board_as_json():
    prompt = build_prompt(BOARD)
    assert '["X", null, null, null, "O", null, null, null, "X"]' in prompt
    assert "play as O" in prompt


@pytest.mark.asyncio
async def test_suggest_move_posts_board_and_returns_index():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion(" 3 "))

    strategy = _strategy(handler)
    assert await strategy.suggest_move(BOARD) == 3
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"]["model"] == "gpt-3.5-turbo"
    assert seen["body"]["max_tokens"] == 8
    assert seen["body"]["messages"][0]["role"] == "user"


@pytest.mark.asyncio
async def test_missing_key_skips_network():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected without a key")

    strategy = _strategy(handler, api_key=None)
    assert not strategy.configured
    assert await strategy.suggest_move(BOARD) is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(401, json={"error": "bad key"}),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, json=_completion(None)),
        httpx.Response(200, json=_completion("8")),  # occupied
        httpx.Response(200, json=_completion("11")),  # out of range
    ],
)
async def test_unusable_responses_are_unavailable(response):
    strategy = _strategy(lambda request: response)
    assert await strategy.suggest_move(BOARD) is None


@pytest.mark.asyncio
async def test_transport_error_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    strategy = _strategy(handler)
    assert await strategy.suggest_move(Board()) is None


@pytest.mark.asyncio
async def test_single_request_per_suggestion():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(503)

    strategy = _strategy(handler)
    assert await strategy.suggest_move(BOARD) is None
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_unencodable_key_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_completion("3"))

    strategy = _strategy(handler, api_key="sk-–abc")
    assert await strategy.suggest_move(BOARD) is None


@pytest.mark.asyncio
async def test_invalid_url_is_unavailable():
    settings = Settings(openai_api_key="sk-test", openai_url="not a url")
    assert await RemoteMoveStrategy(settings).suggest_move(BOARD) is None
