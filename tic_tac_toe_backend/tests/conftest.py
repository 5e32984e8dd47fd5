"""
Shared pytest fixtures for the Tic Tac Toe backend tests.
"""

import random
import sys
from pathlib import Path
from typing import List, Optional

import pytest

# Make `import tictactoe` work without installing the package.
SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from tictactoe.config import Settings  # noqa: E402
from tictactoe.controller import GameController  # noqa: E402
from tictactoe.core import Board  # noqa: E402


def board_of(layout: str) -> Board:
    """Build a board from a 9-character layout such as 'OO__X_X__'."""
    return Board.from_cells([None if ch == "_" else ch for ch in layout])


class FakeRemote:
    """Stands in for RemoteMoveStrategy, returning canned suggestions."""

    def __init__(self, moves: Optional[List[Optional[int]]] = None):
        self.moves = list(moves or [])
        self.calls: List[Board] = []

    async def suggest_move(self, board: Board) -> Optional[int]:
        self.calls.append(board)
        return self.moves.pop(0) if self.moves else None


@pytest.fixture
def settings() -> Settings:
    return Settings(ai_move_delay=0, secret_key="test-secret")


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def controller(rng) -> GameController:
    return GameController(move_delay=0, rng=rng)
