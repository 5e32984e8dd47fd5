import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple


class TicTacToeError(Exception):
    """Base class for game engine errors."""


class IllegalMove(TicTacToeError, ValueError):
    """Raised when a move targets an occupied or non-existent cell."""


class InvalidBoard(TicTacToeError, ValueError):
    """Raised when cells do not describe a reachable board."""


class NoLegalMove(TicTacToeError):
    """Raised when a move is requested on a full board."""


class Player(str, Enum):
    X = "X"
    O = "O"

    @property
    def opponent(self) -> "Player":
        return Player.O if self is Player.X else Player.X


class GameMode(str, Enum):
    UNSELECTED = "unselected"
    PVP = "pvp"
    AI = "ai"


class OutcomeKind(str, Enum):
    IN_PROGRESS = "in_progress"
    WIN = "win"
    DRAW = "draw"


Cell = Optional[Player]

BOARD_SIZE = 9
CENTER = 4

WIN_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # columns
    (0, 4, 8), (2, 4, 6),             # diagonals
)


@dataclass(frozen=True)
class Board:
    """Row-major 3x3 grid. Never mutated; `place` returns a new board."""

    cells: Tuple[Cell, ...] = (None,) * BOARD_SIZE

    # PUBLIC_INTERFACE
    @classmethod
    def from_cells(cls, cells: Iterable[object]) -> "Board":
        """Build a board from 'X'/'O'/None values, checking X moved first."""
        parsed: List[Cell] = []
        for value in cells:
            if value is None or value == "":
                parsed.append(None)
                continue
            try:
                parsed.append(Player(value))
            except ValueError:
                raise InvalidBoard(f"Unknown cell value: {value!r}") from None
        if len(parsed) != BOARD_SIZE:
            raise InvalidBoard(f"Board must have {BOARD_SIZE} cells, got {len(parsed)}")
        x_count = parsed.count(Player.X)
        o_count = parsed.count(Player.O)
        if o_count not in (x_count, x_count - 1):
            raise InvalidBoard(f"Unreachable board: {x_count} X against {o_count} O")
        return cls(tuple(parsed))

    def __getitem__(self, index: int) -> Cell:
        return self.cells[index]

    def is_empty(self, index: int) -> bool:
        return 0 <= index < BOARD_SIZE and self.cells[index] is None

    def empty_indices(self) -> List[int]:
        return [i for i, cell in enumerate(self.cells) if cell is None]

    # PUBLIC_INTERFACE
    def place(self, index: int, player: Player) -> "Board":
        """Return a new board with `player` at `index`."""
        if not self.is_empty(index):
            raise IllegalMove(f"Cell {index} is not available")
        cells = list(self.cells)
        cells[index] = player
        return Board(tuple(cells))

    def to_list(self) -> List[Optional[str]]:
        """Cells as 'X'/'O'/None, the shape sent over the wire."""
        return [cell.value if cell is not None else None for cell in self.cells]


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    winner: Optional[Player] = None

    @property
    def is_over(self) -> bool:
        return self.kind is not OutcomeKind.IN_PROGRESS


IN_PROGRESS = Outcome(OutcomeKind.IN_PROGRESS)
DRAW = Outcome(OutcomeKind.DRAW)


# PUBLIC_INTERFACE
def detect_winner(board: Board) -> Optional[Player]:
    """Returns X, O, or None if no line is complete."""
    for a, b, c in WIN_LINES:
        if board[a] is not None and board[a] == board[b] == board[c]:
            return board[a]
    return None


# PUBLIC_INTERFACE
def is_full(board: Board) -> bool:
    return all(cell is not None for cell in board.cells)


# PUBLIC_INTERFACE
def is_terminal(board: Board) -> bool:
    return detect_winner(board) is not None or is_full(board)


# PUBLIC_INTERFACE
def evaluate(board: Board) -> Outcome:
    """Classify the board as won, drawn, or still in progress."""
    winner = detect_winner(board)
    if winner is not None:
        return Outcome(OutcomeKind.WIN, winner)
    if is_full(board):
        return DRAW
    return IN_PROGRESS


def _completing_cell(board: Board, player: Player) -> Optional[int]:
    """First empty cell that would give `player` a full line."""
    for line in WIN_LINES:
        values: Sequence[Cell] = [board[i] for i in line]
        if values.count(player) == 2 and None in values:
            return line[values.index(None)]
    return None


# PUBLIC_INTERFACE
def choose_move(board: Board, player: Player = Player.O, rng: Optional[random.Random] = None) -> int:
    """Heuristic AI: 1. win if can, 2. block win, 3. center, 4. random empty."""
    empties = board.empty_indices()
    if not empties:
        raise NoLegalMove("No empty cell left on the board")

    move = _completing_cell(board, player)
    if move is None:
        move = _completing_cell(board, player.opponent)
    if move is None and board.is_empty(CENTER):
        move = CENTER
    if move is None:
        move = (rng or random).choice(empties)
    return move
