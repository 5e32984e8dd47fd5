"""
Language-model move suggestions for the automated player.

Suggestions are best effort: every failure is logged and reported as None so
the caller can fall back to the local heuristic.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

import httpx

from .config import Settings
from .core import Board, Player

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"\d+")

PROMPT_TEMPLATE = """You are a skilled Tic Tac Toe AI.
Given the current board, always play as {player}.
Return ONLY the index (0-8) of your next move, as an integer (no text).
Board (row major order: 0-2 first row, 3-5 second row, 6-8 third row):
{board}
"""


# PUBLIC_INTERFACE
def build_prompt(board: Board, player: Player = Player.O) -> str:
    return PROMPT_TEMPLATE.format(player=player.value, board=json.dumps(board.to_list()))


# PUBLIC_INTERFACE
def parse_move(text: Optional[str], board: Board) -> Optional[int]:
    """Pull the first integer out of `text`; None unless it names an empty cell."""
    if not text:
        return None
    match = _DIGITS.search(text)
    if match is None:
        return None
    index = int(match.group(0))
    if not board.is_empty(index):
        return None
    return index


class RemoteMoveStrategy:
    """Asks an OpenAI-compatible chat completions endpoint for a move."""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None, player: Player = Player.O):
        self.settings = settings
        self.player = player
        self._client = client

    @property
    def configured(self) -> bool:
        return self.settings.remote_enabled

    def _payload(self, board: Board) -> Dict[str, Any]:
        return {
            "model": self.settings.openai_model,
            "messages": [{"role": "user", "content": build_prompt(board, self.player)}],
            "temperature": 0.2,
            "max_tokens": 8,
        }

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.settings.openai_api_key}"}
        if self._client is not None:
            return await self._client.post(
                self.settings.openai_url, json=payload, headers=headers, timeout=self.settings.remote_timeout
            )
        async with httpx.AsyncClient(timeout=self.settings.remote_timeout) as client:
            return await client.post(self.settings.openai_url, json=payload, headers=headers)

    # PUBLIC_INTERFACE
    async def suggest_move(self, board: Board) -> Optional[int]:
        """Return a suggested empty cell index, or None when unavailable."""
        if not self.configured:
            logger.debug("No OPENAI_API_KEY configured, skipping remote suggestion")
            return None

        try:
            return await self._request_move(board)
        except Exception as exc:
            logger.warning("Remote move suggestion failed: %r", exc)
            return None

    async def _request_move(self, board: Board) -> Optional[int]:
        try:
            response = await self._post(self._payload(board))
        except httpx.HTTPError as exc:
            logger.warning("Remote move request failed: %s", exc)
            return None

        if not response.is_success:
            logger.warning("Remote move service error: %s %s", response.status_code, response.reason_phrase)
            return None

        try:
            text = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            logger.warning("Remote move response malformed: %.200s", response.text)
            return None

        move = parse_move(text if isinstance(text, str) else None, board)
        if move is None:
            logger.warning("Remote move unparseable or illegal: %r", text)
        return move
