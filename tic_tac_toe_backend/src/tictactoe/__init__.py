"""
Tic Tac Toe game engine: board rules, heuristic and remote AI, and the
session controller served to the frontend by `tictactoe.main`.
"""

from .core import (
    WIN_LINES,
    Board,
    GameMode,
    IllegalMove,
    InvalidBoard,
    NoLegalMove,
    Outcome,
    OutcomeKind,
    Player,
    TicTacToeError,
    choose_move,
    detect_winner,
    evaluate,
    is_full,
    is_terminal,
)
from .controller import GameController, Phase
from .remote import RemoteMoveStrategy, parse_move

__version__ = "0.2.0"
__all__ = [
    "WIN_LINES",
    "Board",
    "GameMode",
    "IllegalMove",
    "InvalidBoard",
    "NoLegalMove",
    "Outcome",
    "OutcomeKind",
    "Player",
    "TicTacToeError",
    "choose_move",
    "detect_winner",
    "evaluate",
    "is_full",
    "is_terminal",
    "GameController",
    "Phase",
    "RemoteMoveStrategy",
    "parse_move",
]
